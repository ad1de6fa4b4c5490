"""
Scalar Kinds

Defines the closed set of scalar kinds understood by the bridge and the
implicit widening relation between them.

Each native scalar type maps to exactly one ScalarKind. Host array dtypes map
to at most one ScalarKind; dtypes outside the set are simply not convertible.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, FrozenSet, Optional, Tuple

import numpy as np

from ._errors import UnsupportedScalarKindError


# =============================================================================
# Scalar Kind Enumeration
# =============================================================================

class ScalarKind(IntEnum):
    """
    Scalar kinds supported by the bridge.

    Example:
        >>> ScalarKind.FLOAT64.numpy_dtype
        dtype('float64')
        >>> ScalarKind.INT32.itemsize
        4
    """
    INT32 = 0
    INT64 = 1
    FLOAT32 = 2
    FLOAT64 = 3

    @property
    def numpy_dtype(self) -> np.dtype:
        """Native-endian numpy dtype of this kind."""
        return np.dtype(_KIND_INFO[self]["dtype"])

    @property
    def itemsize(self) -> int:
        """Size in bytes of one element."""
        return _KIND_INFO[self]["size"]

    @property
    def label(self) -> str:
        """Lower-case name, e.g. 'float64'."""
        return _KIND_INFO[self]["dtype"]

    @property
    def is_float(self) -> bool:
        return self in (ScalarKind.FLOAT32, ScalarKind.FLOAT64)

    def __str__(self) -> str:
        return self.label


_KIND_INFO: Dict[ScalarKind, Dict[str, Any]] = {
    ScalarKind.INT32: {"dtype": "int32", "size": 4},
    ScalarKind.INT64: {"dtype": "int64", "size": 8},
    ScalarKind.FLOAT32: {"dtype": "float32", "size": 4},
    ScalarKind.FLOAT64: {"dtype": "float64", "size": 8},
}

# (numpy dtype kind character, itemsize) -> ScalarKind
_DTYPE_MAP: Dict[Tuple[str, int], ScalarKind] = {
    ("i", 4): ScalarKind.INT32,
    ("i", 8): ScalarKind.INT64,
    ("f", 4): ScalarKind.FLOAT32,
    ("f", 8): ScalarKind.FLOAT64,
}

_NAME_ALIASES: Dict[str, ScalarKind] = {
    "int32": ScalarKind.INT32,
    "i32": ScalarKind.INT32,
    "intc": ScalarKind.INT32,
    "int64": ScalarKind.INT64,
    "i64": ScalarKind.INT64,
    "int": ScalarKind.INT64,
    "float32": ScalarKind.FLOAT32,
    "f32": ScalarKind.FLOAT32,
    "float": ScalarKind.FLOAT64,
    "single": ScalarKind.FLOAT32,
    "float64": ScalarKind.FLOAT64,
    "f64": ScalarKind.FLOAT64,
    "double": ScalarKind.FLOAT64,
}

_PY_TYPE_MAP: Dict[type, ScalarKind] = {
    int: ScalarKind.INT64,
    float: ScalarKind.FLOAT64,
}


# =============================================================================
# Promotion Table
# =============================================================================

# Explicit widenings allowed for value copies. Identity is implied.
PROMOTIONS: FrozenSet[Tuple[ScalarKind, ScalarKind]] = frozenset({
    (ScalarKind.INT32, ScalarKind.INT64),
    (ScalarKind.INT32, ScalarKind.FLOAT32),
    (ScalarKind.INT32, ScalarKind.FLOAT64),
    (ScalarKind.INT64, ScalarKind.FLOAT32),
    (ScalarKind.INT64, ScalarKind.FLOAT64),
    (ScalarKind.FLOAT32, ScalarKind.FLOAT64),
})


def promotable(src: ScalarKind, dst: ScalarKind) -> bool:
    """
    Check whether values of kind `src` may be copied into storage of kind `dst`.

    Never consult this for zero-copy references: aliasing requires the kinds
    to be identical.

    Example:
        >>> promotable(ScalarKind.INT32, ScalarKind.FLOAT64)
        True
        >>> promotable(ScalarKind.FLOAT64, ScalarKind.FLOAT32)
        False
    """
    return src == dst or (src, dst) in PROMOTIONS


# =============================================================================
# Kind Lookup
# =============================================================================

def kind_of_array_dtype(dtype: Any) -> Optional[ScalarKind]:
    """
    Map a host array dtype to its scalar kind.

    Returns:
        The matching ScalarKind, or None if the dtype is outside the
        supported set (bool, unsigned, complex, object, byte-swapped...).
    """
    try:
        dt = np.dtype(dtype)
    except (TypeError, ValueError):
        return None
    if not dt.isnative:
        return None
    return _DTYPE_MAP.get((dt.kind, dt.itemsize))


def kind_of(scalar_type: Any) -> ScalarKind:
    """
    Resolve the scalar kind of a native scalar type.

    Args:
        scalar_type: ScalarKind, numpy dtype or scalar type, Python int/float,
            or a name such as 'float64', 'double' or 'int'.

    Returns:
        The ScalarKind.

    Raises:
        UnsupportedScalarKindError: If the type has no ScalarKind.
    """
    if isinstance(scalar_type, ScalarKind):
        return scalar_type
    if isinstance(scalar_type, str):
        kind = _NAME_ALIASES.get(scalar_type.lower())
        if kind is None:
            raise UnsupportedScalarKindError(scalar_type)
        return kind
    if isinstance(scalar_type, type) and scalar_type in _PY_TYPE_MAP:
        return _PY_TYPE_MAP[scalar_type]
    if scalar_type is None or scalar_type is bool or scalar_type is object:
        raise UnsupportedScalarKindError(scalar_type)
    kind = kind_of_array_dtype(scalar_type)
    if kind is None:
        raise UnsupportedScalarKindError(scalar_type)
    return kind


__all__ = [
    "ScalarKind",
    "PROMOTIONS",
    "promotable",
    "kind_of",
    "kind_of_array_dtype",
]
