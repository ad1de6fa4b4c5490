"""
Array Flavor State

Selects which host array class outbound conversions produce:

    MATRIX  numpy.matrix   (legacy, always rank 2)
    ARRAY   numpy.ndarray  (column vectors come back as rank 1)

The state starts UNSET. The first outbound conversion made while UNSET
switches to MATRIX and emits a single DefaultFlavorWarning; an explicit
choice made beforehand avoids the warning altogether.

FlavorState does no locking itself. The owning BridgeContext serializes
access to it.
"""

from __future__ import annotations

import logging
import warnings
from enum import Enum
from typing import Any, Optional, Tuple, Union

import numpy as np

from ._errors import DefaultFlavorWarning, DEFAULT_FLAVOR_MESSAGE

logger = logging.getLogger("matbridge.flavor")

__all__ = ['ArrayFlavor', 'FlavorState']


# =============================================================================
# Flavor Enumeration
# =============================================================================

class ArrayFlavor(Enum):
    """
    Host array flavor produced by outbound conversions.

    Attributes:
        UNSET: No explicit choice yet; resolves to MATRIX on first use.
        MATRIX: Legacy matrix-like flavor (numpy.matrix).
        ARRAY: Generic array-like flavor (numpy.ndarray).
    """
    UNSET = 'unset'
    MATRIX = 'matrix'
    ARRAY = 'array'

    @classmethod
    def from_name(cls, name: str) -> "ArrayFlavor":
        """Parse 'matrix' / 'array' (case-insensitive, a few aliases)."""
        aliases = {
            'matrix': cls.MATRIX,
            'numpy.matrix': cls.MATRIX,
            'legacy': cls.MATRIX,
            'array': cls.ARRAY,
            'ndarray': cls.ARRAY,
            'numpy.ndarray': cls.ARRAY,
            'unset': cls.UNSET,
            '': cls.UNSET,
        }
        key = name.strip().lower()
        if key not in aliases:
            raise ValueError(f"Unknown array flavor: {name!r}. Valid: matrix, array")
        return aliases[key]


# =============================================================================
# Flavor State
# =============================================================================

class FlavorState:
    """
    Active array flavor plus the one-time default warning guard.

    Type handles for numpy.matrix and numpy.ndarray are captured on first
    use and reused for every subtype check.
    """

    def __init__(self, initial: ArrayFlavor = ArrayFlavor.UNSET):
        self._flavor = initial
        self._warned = False
        self._types: Optional[Tuple[type, type]] = None

    def _array_types(self) -> Tuple[type, type]:
        if self._types is None:
            self._types = (np.matrix, np.ndarray)
        return self._types

    @property
    def flavor(self) -> ArrayFlavor:
        return self._flavor

    @property
    def warned(self) -> bool:
        """Whether the default-flavor warning has been emitted."""
        return self._warned

    def set(self, flavor: Union[ArrayFlavor, str]) -> None:
        """Select MATRIX or ARRAY explicitly."""
        if isinstance(flavor, str):
            flavor = ArrayFlavor.from_name(flavor)
        if flavor is ArrayFlavor.UNSET:
            raise ValueError("Cannot switch to UNSET; choose MATRIX or ARRAY")
        if flavor is not self._flavor:
            logger.debug("Array flavor switched: %s -> %s",
                         self._flavor.value, flavor.value)
        self._flavor = flavor

    def set_from(self, obj: Any) -> ArrayFlavor:
        """
        Select the flavor matching an array class or instance.

        Args:
            obj: numpy.matrix / numpy.ndarray (sub)class or an instance of one.

        Returns:
            The selected flavor.

        Raises:
            TypeError: If `obj` is neither.
        """
        matrix_type, array_type = self._array_types()
        obj_type = obj if isinstance(obj, type) else type(obj)
        if issubclass(obj_type, matrix_type):
            self.set(ArrayFlavor.MATRIX)
        elif issubclass(obj_type, array_type):
            self.set(ArrayFlavor.ARRAY)
        else:
            raise TypeError(
                f"Expected numpy.matrix or numpy.ndarray type, got {obj_type.__name__}"
            )
        return self._flavor

    def current_type(self) -> type:
        """Host class produced by the current flavor (MATRIX while unset)."""
        matrix_type, array_type = self._array_types()
        if self._flavor is ArrayFlavor.ARRAY:
            return array_type
        return matrix_type

    def is_flavor(self, flavor: Union[ArrayFlavor, str]) -> bool:
        """
        Test the active flavor by subtype check against the cached handles.

        numpy.matrix derives from numpy.ndarray, so the matrix test runs
        first and ARRAY only holds for non-matrix classes.

        Raises:
            ValueError: If `flavor` is an unknown name.
            TypeError: If `flavor` is neither an ArrayFlavor nor a name.
        """
        if isinstance(flavor, str):
            flavor = ArrayFlavor.from_name(flavor)
        elif not isinstance(flavor, ArrayFlavor):
            raise TypeError(f"Expected ArrayFlavor or name, got {type(flavor).__name__}")
        matrix_type, array_type = self._array_types()
        current = self.current_type()
        if flavor is ArrayFlavor.MATRIX:
            return issubclass(current, matrix_type)
        if flavor is ArrayFlavor.ARRAY:
            return issubclass(current, array_type) and not issubclass(current, matrix_type)
        return self._flavor is ArrayFlavor.UNSET

    def resolve_for_output(self, stacklevel: int = 2) -> ArrayFlavor:
        """
        Flavor to use for an outbound conversion.

        Resolves UNSET to MATRIX, warning once for the lifetime of this state.
        The switch happens before the warning, so a warning filter that raises
        still leaves the state resolved.

        Args:
            stacklevel: Passed to warnings.warn, counted from this method.
        """
        if self._flavor is ArrayFlavor.UNSET:
            self.set(ArrayFlavor.MATRIX)
            if not self._warned:
                self._warned = True
                warnings.warn(DEFAULT_FLAVOR_MESSAGE, DefaultFlavorWarning,
                              stacklevel=stacklevel)
        return self._flavor

    def wrap(self, buffer: np.ndarray, flavor: ArrayFlavor) -> np.ndarray:
        """Present a freshly allocated buffer as the given flavor."""
        matrix_type, _ = self._array_types()
        if flavor is ArrayFlavor.MATRIX:
            return buffer.view(matrix_type)
        return buffer

    def __repr__(self) -> str:
        return f"FlavorState({self._flavor.value})"
