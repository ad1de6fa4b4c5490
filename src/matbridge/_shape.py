"""Shape Descriptors and the Compatibility Validator.

This module decides whether a host array may become a value of a given
native matrix type. It never raises for an unsuitable array: the answer is
either ``None`` (admit) or a `Rejection` describing the first failed rule.

Rules, checked in order:
    1. Scalar kind: the array kind must equal the native kind or be
       promotable to it (equal only, for zero-copy references).
    2. Vector types (one axis fixed to 1) accept rank 1 arrays, and rank 2
       arrays that have an axis of length 1 in the matching orientation.
       A 1x1 array fits either orientation.
    3. Matrix types require rank 2; fixed axes must match exactly.
    4. The buffer must be positively known to be aligned.

Example:
    >>> c = ShapeConstraint(3, 1)           # fixed 3-vector (column)
    >>> check_convertible(c, ScalarKind.FLOAT64, np.zeros((1, 3)))
    <Rejection.ORIENTATION: 15>
    >>> is_convertible(c, ScalarKind.FLOAT64, np.zeros(3))
    True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np

from ._dtypes import ScalarKind, kind_of_array_dtype, promotable
from ._errors import BridgeError, BRIDGE_ERROR_INVALID_SHAPE, Rejection

logger = logging.getLogger("matbridge.shape")

__all__ = [
    "DYNAMIC",
    "ShapeConstraint",
    "ArrayInfo",
    "check_convertible",
    "is_convertible",
]

# Axis size decided at runtime.
DYNAMIC = -1


# =============================================================================
# Shape Constraint
# =============================================================================

@dataclass(frozen=True)
class ShapeConstraint:
    """Static shape of a native matrix type.

    Attributes:
        rows: Fixed row count or DYNAMIC.
        cols: Fixed column count or DYNAMIC.
    """
    rows: int = DYNAMIC
    cols: int = DYNAMIC

    def __post_init__(self) -> None:
        for axis in (self.rows, self.cols):
            if not isinstance(axis, int) or isinstance(axis, bool):
                raise BridgeError(
                    BRIDGE_ERROR_INVALID_SHAPE,
                    f"Axis size must be an int or DYNAMIC, got {axis!r}",
                )
            if axis < 0 and axis != DYNAMIC:
                raise BridgeError(
                    BRIDGE_ERROR_INVALID_SHAPE,
                    f"Axis size must be non-negative or DYNAMIC, got {axis}",
                )

    @property
    def is_row_vector(self) -> bool:
        return self.rows == 1

    @property
    def is_column_vector(self) -> bool:
        return self.cols == 1

    @property
    def is_vector(self) -> bool:
        """True for types that also accept rank 1 arrays."""
        return self.rows == 1 or self.cols == 1

    @property
    def vector_length(self) -> int:
        """Declared length along the non-unit axis (vectors only)."""
        if self.is_row_vector:
            return self.cols
        if self.is_column_vector:
            return self.rows
        raise BridgeError(BRIDGE_ERROR_INVALID_SHAPE, f"{self} is not a vector shape")

    def accepts(self, rows: int, cols: int) -> bool:
        """Check runtime dimensions against the fixed axes."""
        return (self.rows in (DYNAMIC, rows)) and (self.cols in (DYNAMIC, cols))

    def __str__(self) -> str:
        r = "X" if self.rows == DYNAMIC else str(self.rows)
        c = "X" if self.cols == DYNAMIC else str(self.cols)
        return f"{r}x{c}"


# =============================================================================
# Array Description
# =============================================================================

@dataclass(frozen=True)
class ArrayInfo:
    """Snapshot of a host array taken at conversion time.

    Attributes:
        scalar_kind: Kind of the elements, None if unsupported.
        rank: Number of dimensions.
        dims: Dimension sizes.
        is_aligned: Alignment positively confirmed.
        owns_storage: Array owns its buffer (not a view).
    """
    scalar_kind: Optional[ScalarKind]
    rank: int
    dims: Tuple[int, ...]
    is_aligned: bool
    owns_storage: bool

    @classmethod
    def of(cls, array: np.ndarray) -> "ArrayInfo":
        return cls(
            scalar_kind=kind_of_array_dtype(array.dtype),
            rank=array.ndim,
            dims=tuple(int(d) for d in array.shape),
            is_aligned=_is_aligned(array),
            owns_storage=bool(array.flags.owndata),
        )


def _is_aligned(array: np.ndarray) -> bool:
    # Both the ALIGNED flag and the data address must agree.
    if not array.flags.aligned:
        return False
    if array.size == 0:
        return True
    address = array.__array_interface__["data"][0]
    return address % array.dtype.alignment == 0


# =============================================================================
# Validator
# =============================================================================

def _hint(diagnostics: bool, message: str, *args: Any) -> None:
    if diagnostics:
        logger.debug(message, *args)


def _check_vector(constraint: ShapeConstraint, info: ArrayInfo,
                  diagnostics: bool) -> Optional[Rejection]:
    length = constraint.vector_length

    if info.rank == 1:
        if length != DYNAMIC and info.dims[0] != length:
            _hint(diagnostics, "Expected a vector of length %d, got %d",
                  length, info.dims[0])
            return Rejection.DIMENSION
        return None

    if info.rank != 2:
        _hint(diagnostics, "The number of dimensions of the object is not correct (%d)",
              info.rank)
        return Rejection.RANK

    r, c = info.dims
    if r == 1 and c == 1:
        if length not in (DYNAMIC, 1):
            _hint(diagnostics, "Expected a vector of length %d, got 1x1", length)
            return Rejection.DIMENSION
        return None

    if r != 1 and c != 1:
        _hint(diagnostics,
              "The number of dimension of the object does not correspond to a vector")
        return Rejection.NOT_A_VECTOR

    if (r == 1 and constraint.is_column_vector) or (c == 1 and constraint.is_row_vector):
        if constraint.is_column_vector:
            _hint(diagnostics, "The object is not a column vector")
        else:
            _hint(diagnostics, "The object is not a row vector")
        return Rejection.ORIENTATION

    actual = c if constraint.is_row_vector else r
    if length != DYNAMIC and actual != length:
        _hint(diagnostics, "Expected a vector of length %d, got %d", length, actual)
        return Rejection.DIMENSION
    return None


def _check_matrix(constraint: ShapeConstraint, info: ArrayInfo,
                  diagnostics: bool) -> Optional[Rejection]:
    if info.rank != 2:
        _hint(diagnostics, "The number of dimensions of the object is not correct (%d)",
              info.rank)
        return Rejection.RANK
    if not constraint.accepts(*info.dims):
        _hint(diagnostics, "Expected a %s matrix, got %dx%d", constraint, *info.dims)
        return Rejection.DIMENSION
    return None


def check_convertible(
    constraint: ShapeConstraint,
    kind: ScalarKind,
    obj: Any,
    exact_kind: bool = False,
    diagnostics: bool = False,
) -> Optional[Rejection]:
    """Validate `obj` against a native type's kind and shape.

    Args:
        constraint: Static shape of the native type.
        kind: Scalar kind of the native type.
        obj: Candidate host object.
        exact_kind: Require identical kinds (zero-copy references).
        diagnostics: Log a hint explaining the rejection.

    Returns:
        None if admitted, otherwise the Rejection for the first failed rule.
    """
    if not isinstance(obj, np.ndarray):
        return Rejection.NOT_AN_ARRAY

    info = ArrayInfo.of(obj)

    src = info.scalar_kind
    if src is None or (src != kind if exact_kind else not promotable(src, kind)):
        _hint(diagnostics, "Scalar type %s cannot be converted to %s", obj.dtype, kind)
        return Rejection.SCALAR_KIND

    if constraint.is_vector:
        rejection = _check_vector(constraint, info, diagnostics)
    else:
        rejection = _check_matrix(constraint, info, diagnostics)
    if rejection is not None:
        return rejection

    if not info.is_aligned:
        _hint(diagnostics, "Non-aligned arrays are not supported")
        return Rejection.MISALIGNED

    return None


def is_convertible(
    constraint: ShapeConstraint,
    kind: ScalarKind,
    obj: Any,
    exact_kind: bool = False,
    diagnostics: bool = False,
) -> bool:
    """Boolean form of `check_convertible`."""
    return check_convertible(constraint, kind, obj, exact_kind, diagnostics) is None
