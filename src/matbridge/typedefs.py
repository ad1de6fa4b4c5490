"""
Common Native Types

Ready-made declarations for the usual fixed and dynamic shapes, named
<Matrix|Vector|RowVector><size><scalar>:

    size    2, 3, 4 or X (dynamic)
    scalar  d = float64, f = float32, i = int32, l = int64

`enable_default_types()` registers all of them with a context; like every
registration it is safe to call repeatedly.
"""

from typing import Dict, Optional, Tuple, Type

from ._context import BridgeContext
from ._convert import ConversionEngine
from ._native import Matrix, matrix_type
from ._shape import DYNAMIC

_SCALARS = (
    ("d", "float64"),
    ("f", "float32"),
    ("i", "int32"),
    ("l", "int64"),
)

_SIZES = (("2", 2), ("3", 3), ("4", 4), ("X", DYNAMIC))


def _declare() -> Dict[str, Type[Matrix]]:
    types: Dict[str, Type[Matrix]] = {}
    for suffix, scalar in _SCALARS:
        for tag, n in _SIZES:
            for name, shape in (
                (f"Matrix{tag}{suffix}", (n, n)),
                (f"Vector{tag}{suffix}", (n, 1)),
                (f"RowVector{tag}{suffix}", (1, n)),
            ):
                types[name] = matrix_type(name, scalar, *shape)
    return types


DEFAULT_TYPES: Dict[str, Type[Matrix]] = _declare()

globals().update(DEFAULT_TYPES)


def enable_default_types(context: Optional[BridgeContext] = None) -> int:
    """
    Register every predeclared type.

    Args:
        context: Target context (defaults to the process context).

    Returns:
        Number of types newly registered by this call.
    """
    engine = ConversionEngine(context)
    return sum(1 for t in DEFAULT_TYPES.values() if engine.register(t))


def lookup(name: str) -> Type[Matrix]:
    """Get a predeclared type by name, e.g. 'Vector3d'."""
    try:
        return DEFAULT_TYPES[name]
    except KeyError:
        raise KeyError(f"No predeclared type named {name!r}") from None


def all_types() -> Tuple[Type[Matrix], ...]:
    return tuple(DEFAULT_TYPES.values())


__all__ = ['DEFAULT_TYPES', 'enable_default_types', 'lookup', 'all_types'] + list(DEFAULT_TYPES)
