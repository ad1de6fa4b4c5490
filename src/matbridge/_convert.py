"""Conversion Engine.

Moves data between native matrix values and host arrays.

Directions:
    Inbound (host -> native):
        from_dynamic  validate, allocate, copy (widening cast if needed)
        reference     validate with exact kind, alias the host buffer
    Outbound (native -> host):
        to_dynamic    allocate a fresh array, copy, wrap in active flavor
        copy_into     copy into an existing array, casting to its kind

Rejections are normal outcomes: the inbound functions return ``None`` for an
unsuitable array and leave it to the binding layer (ConverterTable) to raise
NotConvertibleError.

Ownership:
    Value conversions never couple lifetimes: once the call returns neither
    side refers to the other. Outbound results are always fresh allocations.
    References borrow; the caller keeps the host array alive and unchanged in
    size until the reference is released.

Example:
    >>> engine = ConversionEngine()
    >>> engine.register(Matrix3d)
    True
    >>> m = engine.from_dynamic(np.eye(3, dtype=np.int32), Matrix3d)  # widened
    >>> engine.to_dynamic(m).dtype
    dtype('float64')
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Type

import numpy as np

from ._context import BridgeContext, get_context
from ._errors import BridgeError, Rejection, BRIDGE_ERROR_NOT_AN_ARRAY
from ._flavor import ArrayFlavor
from ._native import Matrix, MatrixRef
from ._shape import check_convertible
from ._view import StridedView, read_into, write_from

logger = logging.getLogger("matbridge.convert")

__all__ = [
    'ConversionEngine',
    'to_dynamic',
    'from_dynamic',
    'reference',
    'copy_into',
    'is_convertible',
    'check',
    'register_once',
]


def _value_type(native_type: Type[Matrix]) -> Type[Matrix]:
    if issubclass(native_type, MatrixRef):
        return native_type.target
    return native_type


class ConversionEngine:
    """
    Conversion functions bound to a BridgeContext.

    Args:
        context: Shared context. If None, the process default context is
            looked up on every call (so reset_context() takes effect).
    """

    def __init__(self, context: Optional[BridgeContext] = None):
        self._context = context

    @property
    def context(self) -> BridgeContext:
        return self._context if self._context is not None else get_context()

    # =========================================================================
    # Validation
    # =========================================================================

    def check(self, obj: Any, native_type: Type[Matrix]) -> Optional[Rejection]:
        """
        Validate `obj` for `native_type` without converting.

        Reference types (``T.Ref``) require an exact scalar kind match.

        Returns:
            None if admitted, otherwise the Rejection.
        """
        return check_convertible(
            native_type.shape_constraint,
            native_type.scalar_kind,
            obj,
            exact_kind=issubclass(native_type, MatrixRef),
            diagnostics=self.context.diagnostics,
        )

    def is_convertible(self, obj: Any, native_type: Type[Matrix]) -> bool:
        return self.check(obj, native_type) is None

    # =========================================================================
    # Inbound
    # =========================================================================

    def from_dynamic(self, obj: Any, native_type: Type[Matrix]) -> Optional[Matrix]:
        """
        Build a native value from a host array.

        Args:
            obj: Host array.
            native_type: Declared native type. Passing ``T.Ref`` delegates to
                `reference`.

        Returns:
            A new value owning its storage, or None if `obj` is rejected.

        Raises:
            MemoryError: If native storage cannot be allocated.
        """
        if issubclass(native_type, MatrixRef):
            return self.reference(obj, native_type)

        rejection = self.check(obj, native_type)
        if rejection is not None:
            logger.debug("Rejected %s for %s: %s", type(obj).__name__,
                         native_type.__name__, rejection.name)
            return None

        if obj.ndim == 1:
            value = native_type(obj.shape[0])
        else:
            value = native_type(*obj.shape)

        read_into(value.storage, obj,
                  row_vector=native_type.shape_constraint.is_row_vector)
        return value

    def reference(self, obj: Any, native_type: Type[Matrix]) -> Optional[MatrixRef]:
        """
        Build a zero-copy reference aliasing a host array.

        No promotion happens: the array's scalar kind must equal the native
        kind. The caller keeps `obj` alive and does not resize it while the
        reference is in use.

        Args:
            obj: Host array.
            native_type: Declared native type or its ``.Ref`` variant.

        Returns:
            A live ``native_type.Ref`` instance, or None if rejected.
        """
        ref_type = _value_type(native_type).Ref
        rejection = self.check(obj, ref_type)
        if rejection is not None:
            logger.debug("Rejected %s for %s: %s", type(obj).__name__,
                         ref_type.__name__, rejection.name)
            return None

        window = StridedView(obj, row_vector=ref_type.shape_constraint.is_row_vector)
        return ref_type(window)

    # =========================================================================
    # Outbound
    # =========================================================================

    def to_dynamic(self, value: Matrix) -> np.ndarray:
        """
        Copy a native value into a freshly allocated host array.

        Column-vector types with more than one row come back as rank 1 under
        the ARRAY flavor; everything else is rank 2 (rows, cols). The result
        is a numpy.matrix under the MATRIX flavor.

        Emits DefaultFlavorWarning once if no flavor was chosen yet.
        """
        return self._to_dynamic(value)

    def _to_dynamic(self, value: Matrix) -> np.ndarray:
        # Fixed depth: resolve_for_output <- _to_dynamic <- public entry <- caller.
        ctx = self.context
        with ctx.lock:
            flavor = ctx.flavor.resolve_for_output(stacklevel=4)

        rows, cols = value.shape
        dtype = value.scalar_kind.numpy_dtype
        if (value.shape_constraint.is_column_vector and rows > 1
                and flavor is ArrayFlavor.ARRAY):
            buffer = np.empty((rows,), dtype=dtype)
        else:
            buffer = np.empty((rows, cols), dtype=dtype)

        write_from(value.storage, buffer)
        return ctx.flavor.wrap(buffer, flavor)

    def copy_into(self, value: Matrix, array: np.ndarray) -> None:
        """
        Copy a native value into an existing host array.

        The array keeps its dtype; elements are cast to it when kinds differ.

        Raises:
            BridgeError: If `array` is not an array, has a dtype outside the
                supported kinds, or its size does not match.
            ValueError: If `array` is read-only.
        """
        if not isinstance(array, np.ndarray):
            raise BridgeError(BRIDGE_ERROR_NOT_AN_ARRAY,
                              f"Expected numpy.ndarray, got {type(array).__name__}")
        write_from(value.storage, array)

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, native_type: Type[Matrix]) -> bool:
        """
        Register converters for `native_type` in the context's table, once.

        Returns:
            True if this call performed the registration.
        """
        ctx = self.context
        with ctx.lock:
            return ctx.registry.register_once(_value_type(native_type), self)

    def __repr__(self) -> str:
        bound = "default" if self._context is None else repr(self._context)
        return f"ConversionEngine(context={bound})"


# =============================================================================
# Module-Level API (default context)
# =============================================================================

_default_engine = ConversionEngine()


def to_dynamic(value: Matrix) -> np.ndarray:
    return _default_engine._to_dynamic(value)


def from_dynamic(obj: Any, native_type: Type[Matrix]) -> Optional[Matrix]:
    return _default_engine.from_dynamic(obj, native_type)


def reference(obj: Any, native_type: Type[Matrix]) -> Optional[MatrixRef]:
    return _default_engine.reference(obj, native_type)


def copy_into(value: Matrix, array: np.ndarray) -> None:
    _default_engine.copy_into(value, array)


def is_convertible(obj: Any, native_type: Type[Matrix]) -> bool:
    return _default_engine.is_convertible(obj, native_type)


def check(obj: Any, native_type: Type[Matrix]) -> Optional[Rejection]:
    return _default_engine.check(obj, native_type)


def register_once(native_type: Type[Matrix]) -> bool:
    """Register `native_type` with the default context (idempotent)."""
    return _default_engine.register(native_type)
