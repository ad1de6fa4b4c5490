"""Native Matrix Types.

Statically-shaped matrix value types on the native side of the bridge.

Every native type is a subclass of `Matrix` carrying two class-level facts:

    scalar_kind       the ScalarKind of its elements
    shape_constraint  fixed or DYNAMIC rows / cols

Types are declared with `matrix_type`. Each declared type also gets a
reference variant, ``T.Ref``, whose instances alias a host array buffer
instead of owning storage.

Type Hierarchy:

    Matrix                    # owns column-major storage
    ├── Matrix3d, VectorXd...  # declared with matrix_type()
    └── MatrixRef             # aliases a borrowed buffer
        └── Matrix3d.Ref...

Example:
    >>> Matrix3d = matrix_type("Matrix3d", "float64", 3, 3)
    >>> m = Matrix3d(3, 3)
    >>> m[0, 1] = 2.5
    >>> m.element_at(0, 1)
    2.5
"""

from __future__ import annotations

from typing import Any, ClassVar, List, Optional, Protocol, Sequence, Tuple, Type, \
    runtime_checkable

import numpy as np

from ._dtypes import ScalarKind, kind_of
from ._errors import BridgeError, ReleasedReferenceError, BRIDGE_ERROR_DIMENSION_MISMATCH, \
    BRIDGE_ERROR_INVALID_SHAPE
from ._shape import DYNAMIC, ShapeConstraint
from ._view import StridedView

__all__ = [
    'MatrixLike',
    'Matrix',
    'MatrixRef',
    'matrix_type',
]


# =============================================================================
# Capability Protocol
# =============================================================================

@runtime_checkable
class MatrixLike(Protocol):
    """Capabilities the conversion engine needs from a native value."""

    scalar_kind: ScalarKind
    shape_constraint: ShapeConstraint

    @property
    def shape(self) -> Tuple[int, int]:
        ...

    def element_at(self, row: int, col: Optional[int] = None) -> Any:
        ...

    def set_element_at(self, row: int, col: Optional[int], value: Any) -> None:
        ...


# =============================================================================
# Matrix Base
# =============================================================================

class Matrix:
    """
    Base class of native matrix value types.

    Instances own a 2-D column-major buffer of `scalar_kind` elements whose
    shape always satisfies `shape_constraint`. Do not instantiate Matrix
    itself; declare a concrete type with `matrix_type`.
    """

    scalar_kind: ClassVar[Optional[ScalarKind]] = None
    shape_constraint: ClassVar[ShapeConstraint] = ShapeConstraint()
    Ref: ClassVar[Type["MatrixRef"]]

    __slots__ = ('_storage',)

    def __init__(self, rows: int, cols: Optional[int] = None):
        """
        Allocate a zero-filled value.

        Args:
            rows: Row count, or the vector length when `cols` is omitted.
            cols: Column count. May be omitted for vector types only.
        """
        rows, cols = type(self)._resolve_dims(rows, cols)
        self._storage: Optional[np.ndarray] = np.zeros(
            (rows, cols), dtype=self.scalar_kind.numpy_dtype, order='F'
        )

    @classmethod
    def _resolve_dims(cls, rows: int, cols: Optional[int]) -> Tuple[int, int]:
        if cls.scalar_kind is None:
            raise TypeError(f"{cls.__name__} is abstract; declare a type with matrix_type()")
        constraint = cls.shape_constraint
        if cols is None:
            if not constraint.is_vector:
                raise TypeError(f"{cls.__name__} is not a vector type; pass rows and cols")
            if constraint.is_row_vector:
                rows, cols = 1, rows
            else:
                rows, cols = rows, 1
        if rows < 0 or cols < 0:
            raise ValueError(f"Negative dimensions: {rows}x{cols}")
        if not constraint.accepts(rows, cols):
            raise BridgeError(
                BRIDGE_ERROR_DIMENSION_MISMATCH,
                f"{cls.__name__} is {constraint}, cannot hold {rows}x{cols}",
            )
        return rows, cols

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]]) -> "Matrix":
        """Build a value from nested row lists (or a flat list for vectors)."""
        data = np.asarray(rows, dtype=cls.scalar_kind.numpy_dtype)
        if data.ndim == 1:
            out = cls(data.shape[0])
            out.storage[...] = data.reshape(out.shape)
        elif data.ndim == 2:
            out = cls(*data.shape)
            out.storage[...] = data
        else:
            raise ValueError(f"Expected 1D or 2D data, got {data.ndim}D")
        return out

    @classmethod
    def is_vector_type(cls) -> bool:
        return cls.shape_constraint.is_vector

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def storage(self) -> np.ndarray:
        """Backing 2-D buffer."""
        if self._storage is None:
            raise ReleasedReferenceError(type(self).__name__)
        return self._storage

    @property
    def shape(self) -> Tuple[int, int]:
        return self.storage.shape

    @property
    def rows(self) -> int:
        return self.storage.shape[0]

    @property
    def cols(self) -> int:
        return self.storage.shape[1]

    @property
    def size(self) -> int:
        return self.storage.size

    @property
    def dtype(self) -> np.dtype:
        return self.storage.dtype

    # -------------------------------------------------------------------------
    # Element access
    # -------------------------------------------------------------------------

    def _index(self, row: int, col: Optional[int]) -> Tuple[int, int]:
        if col is not None:
            return row, col
        if not self.shape_constraint.is_vector:
            raise TypeError("Single index access requires a vector type")
        return (0, row) if self.shape_constraint.is_row_vector else (row, 0)

    def element_at(self, row: int, col: Optional[int] = None) -> Any:
        """Element at (row, col), or at position `row` of a vector."""
        return self.storage[self._index(row, col)].item()

    def set_element_at(self, row: int, col: Optional[int], value: Any) -> None:
        self.storage[self._index(row, col)] = value

    def fill(self, value: Any) -> None:
        self.storage.fill(value)

    def tolist(self) -> List[List[Any]]:
        return self.storage.tolist()

    def __getitem__(self, key) -> Any:
        if isinstance(key, tuple):
            if len(key) != 2:
                raise TypeError("Index must be (row, col) tuple")
            return self.element_at(*key)
        return self.element_at(key)

    def __setitem__(self, key, value: Any) -> None:
        if isinstance(key, tuple):
            if len(key) != 2:
                raise TypeError("Index must be (row, col) tuple")
            self.set_element_at(key[0], key[1], value)
        else:
            self.set_element_at(key, None, value)

    # -------------------------------------------------------------------------
    # Magic methods
    # -------------------------------------------------------------------------

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return (
            self.scalar_kind == other.scalar_kind
            and self.shape == other.shape
            and bool(np.array_equal(self.storage, other.storage))
        )

    __hash__ = None

    def __len__(self) -> int:
        return self.size if self.shape_constraint.is_vector else self.rows

    def __repr__(self) -> str:
        rows, cols = self.shape
        return f"<{type(self).__name__} {rows}x{cols} {self.scalar_kind}>"


# =============================================================================
# Reference Variant
# =============================================================================

class MatrixRef(Matrix):
    """
    Native value aliasing a host array buffer.

    The buffer is borrowed, not copied: writes through the reference land in
    the host array and host-side writes are visible here. The borrow lasts
    until `release()` or the end of a ``with`` block; afterwards every access
    raises ReleasedReferenceError.

    Instances are created by the conversion engine only.

    Example:
        >>> arr = np.zeros((3, 3))
        >>> with engine.reference(arr, Matrix3d) as ref:
        ...     ref[0, 0] = 1.0
        >>> arr[0, 0]
        1.0
    """

    target: ClassVar[Type[Matrix]]

    __slots__ = ('_window',)

    def __init__(self, window: StridedView):
        """
        Bind to a borrowed window.

        Internal constructor - use ConversionEngine.reference() instead.
        """
        if self.scalar_kind is None:
            raise TypeError("MatrixRef is abstract; use a declared type's .Ref")
        if window.kind is not self.scalar_kind:
            raise TypeError(
                f"{type(self).__name__} needs {self.scalar_kind} elements, got {window.kind}"
            )
        type(self)._resolve_dims(*window.shape)
        self._window = window
        self._storage = window.array

    def release(self) -> None:
        """End the borrow. The host array is left untouched."""
        if self._storage is not None:
            self._storage = None
            self._window.release()

    @property
    def is_released(self) -> bool:
        return self._storage is None

    @property
    def window(self) -> StridedView:
        return self._window

    def __enter__(self) -> "MatrixRef":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def __repr__(self) -> str:
        if self._storage is None:
            return f"<{type(self).__name__} [released]>"
        rows, cols = self.shape
        return f"<{type(self).__name__} {rows}x{cols} {self.scalar_kind} [borrowed]>"


# =============================================================================
# Type Declaration
# =============================================================================

def matrix_type(
    name: str,
    scalar: Any,
    rows: int = DYNAMIC,
    cols: int = DYNAMIC,
) -> Type[Matrix]:
    """
    Declare a native matrix type.

    Args:
        name: Class name of the new type.
        scalar: Scalar type, resolved with `kind_of`.
        rows: Fixed row count or DYNAMIC.
        cols: Fixed column count or DYNAMIC.

    Returns:
        New Matrix subclass; its reference variant is available as `.Ref`.

    Raises:
        UnsupportedScalarKindError: If `scalar` has no ScalarKind.
        BridgeError: If the shape declaration is invalid.

    Example:
        >>> VectorXf = matrix_type("VectorXf", "float32", DYNAMIC, 1)
        >>> VectorXf.shape_constraint.is_column_vector
        True
    """
    if not name or not name.isidentifier():
        raise BridgeError(BRIDGE_ERROR_INVALID_SHAPE, f"Invalid type name: {name!r}")

    kind = kind_of(scalar)
    constraint = ShapeConstraint(rows, cols)

    cls = type(name, (Matrix,), {
        '__slots__': (),
        '__module__': __name__,
        '__qualname__': name,
        'scalar_kind': kind,
        'shape_constraint': constraint,
    })
    ref_name = f"{name}Ref"
    cls.Ref = type(ref_name, (MatrixRef,), {
        '__slots__': (),
        '__module__': __name__,
        '__qualname__': f"{name}.Ref",
        'scalar_kind': kind,
        'shape_constraint': constraint,
        'target': cls,
    })
    return cls
