"""
Memory Views and Copies

Strided, bounds-describing windows over host array buffers.

A view never owns memory and never copies: reads and writes through it touch
the host buffer in place. Rank 1 arrays are presented as 2-D with a length-1
axis of stride 0, so native code indexes every array as (row, col).

Two copy directions are provided on top of the views:

    read_into   native storage <- host array   (same kind or widening cast)
    write_from  native storage -> host array   (cast to the array's kind)

When kinds differ, the view is always built at the array's own kind and the
cast happens element-wise during the copy; the source kind is taken once
from the array's dtype, there is no search over kinds.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
from numpy.lib.stride_tricks import as_strided

from ._dtypes import ScalarKind, kind_of_array_dtype
from ._errors import BridgeError, ReleasedReferenceError, BRIDGE_ERROR_DIMENSION_MISMATCH, \
    BRIDGE_ERROR_SCALAR_KIND

__all__ = ['StridedView', 'as_matrix_view', 'read_into', 'write_from']


# =============================================================================
# View Construction
# =============================================================================

def as_matrix_view(array: np.ndarray, row_vector: bool = False) -> np.ndarray:
    """
    Present `array` as a 2-D strided view sharing its buffer.

    Args:
        array: Rank 1 or rank 2 host array.
        row_vector: Orientation for rank 1 input: (1, n) if True,
            (n, 1) otherwise. Ignored for rank 2 input.

    Returns:
        Base-class ndarray view; writable if `array` is.
    """
    base = np.asarray(array)
    if base.ndim == 2:
        return base.view(np.ndarray)
    if base.ndim != 1:
        raise BridgeError(
            BRIDGE_ERROR_DIMENSION_MISMATCH,
            f"Expected 1D or 2D array, got {base.ndim}D",
        )

    n = base.shape[0]
    stride = base.strides[0]
    if row_vector:
        return as_strided(base, shape=(1, n), strides=(0, stride))
    return as_strided(base, shape=(n, 1), strides=(stride, 0))


class StridedView:
    """
    Borrowed window over a host array buffer.

    Holds the 2-D view for the duration of a borrow. After `release()` the
    window is gone and any access raises ReleasedReferenceError.

    Attributes:
        kind: Scalar kind of the viewed elements.
        shape: (rows, cols) of the window.
        strides: Byte strides of the window.
    """

    __slots__ = ('_view', 'kind', 'shape', 'strides')

    def __init__(self, array: np.ndarray, row_vector: bool = False):
        kind = kind_of_array_dtype(array.dtype)
        if kind is None:
            raise BridgeError(
                BRIDGE_ERROR_SCALAR_KIND,
                f"Cannot view array of dtype {array.dtype}",
            )
        self._view: Optional[np.ndarray] = as_matrix_view(array, row_vector)
        self.kind: ScalarKind = kind
        self.shape: Tuple[int, int] = self._view.shape
        self.strides: Tuple[int, int] = self._view.strides

    @property
    def array(self) -> np.ndarray:
        """The live 2-D window."""
        if self._view is None:
            raise ReleasedReferenceError("StridedView")
        return self._view

    @property
    def is_released(self) -> bool:
        return self._view is None

    @property
    def writeable(self) -> bool:
        return bool(self.array.flags.writeable)

    def release(self) -> None:
        self._view = None

    def __repr__(self) -> str:
        state = "released" if self._view is None else "live"
        return f"<StridedView {self.shape[0]}x{self.shape[1]} {self.kind} [{state}]>"


# =============================================================================
# Copies
# =============================================================================

def read_into(dst: np.ndarray, array: np.ndarray, row_vector: bool = False) -> None:
    """
    Copy a host array into native storage.

    Args:
        dst: Native 2-D storage, already allocated with the right shape.
        array: Validated host array.
        row_vector: Orientation used for rank 1 input.
    """
    view = as_matrix_view(array, row_vector)
    if view.shape != dst.shape:
        raise BridgeError(
            BRIDGE_ERROR_DIMENSION_MISMATCH,
            f"Cannot read {view.shape} into storage of shape {dst.shape}",
        )
    if view.dtype == dst.dtype:
        np.copyto(dst, view, casting='no')
    else:
        # Widening only; promotion has been validated upstream.
        np.copyto(dst, view, casting='unsafe')


def write_from(src: np.ndarray, array: np.ndarray) -> None:
    """
    Copy native storage into an existing host array.

    The array keeps its own kind; values are cast to it when kinds differ.
    Only the four supported kinds are written; any other dtype is refused.

    Args:
        src: Native 2-D storage.
        array: Writable rank 1 or rank 2 host array of matching size.

    Raises:
        BridgeError: If the array dtype is unsupported or its size differs.
    """
    if kind_of_array_dtype(array.dtype) is None:
        raise BridgeError(
            BRIDGE_ERROR_SCALAR_KIND,
            f"Cannot write into array of dtype {array.dtype}",
        )
    view = as_matrix_view(array, row_vector=src.shape[0] == 1 and src.shape[1] != 1)
    if view.shape != src.shape:
        raise BridgeError(
            BRIDGE_ERROR_DIMENSION_MISMATCH,
            f"Cannot write {src.shape} into array of shape {np.shape(array)}",
        )
    if view.dtype == src.dtype:
        np.copyto(view, src, casting='no')
    else:
        np.copyto(view, src, casting='unsafe')
