"""
Error handling for matbridge.

Rejections during validation are ordinary outcomes and are reported as
values (see `Rejection`). Exceptions are raised only at the edges: by the
binding layer when no converter admits an object, when a native type is
declared with an unsupported scalar type, and when a released zero-copy
reference is touched.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


# =============================================================================
# Error Codes
# =============================================================================

BRIDGE_OK = 0

# Conversion rejections (10-19)
BRIDGE_ERROR_NOT_CONVERTIBLE = 10
BRIDGE_ERROR_NOT_AN_ARRAY = 11
BRIDGE_ERROR_SCALAR_KIND = 12
BRIDGE_ERROR_RANK = 13
BRIDGE_ERROR_NOT_A_VECTOR = 14
BRIDGE_ERROR_ORIENTATION = 15
BRIDGE_ERROR_DIMENSION_MISMATCH = 16
BRIDGE_ERROR_MISALIGNED = 17

# Declaration errors (20-29)
BRIDGE_ERROR_UNSUPPORTED_SCALAR = 20
BRIDGE_ERROR_INVALID_SHAPE = 21

# Lifetime and registration errors (30-39)
BRIDGE_ERROR_RELEASED = 30
BRIDGE_ERROR_NOT_REGISTERED = 31
BRIDGE_ERROR_DUPLICATE_CONVERTER = 32


_ERROR_MESSAGES = {
    BRIDGE_OK: "Success",
    BRIDGE_ERROR_NOT_CONVERTIBLE: "Not convertible",
    BRIDGE_ERROR_NOT_AN_ARRAY: "Object is not an array",
    BRIDGE_ERROR_SCALAR_KIND: "Scalar kind is not convertible",
    BRIDGE_ERROR_RANK: "The number of dimensions of the object is not correct",
    BRIDGE_ERROR_NOT_A_VECTOR: "The number of dimensions of the object does not correspond to a vector",
    BRIDGE_ERROR_ORIENTATION: "Vector orientation does not match",
    BRIDGE_ERROR_DIMENSION_MISMATCH: "Dimension mismatch",
    BRIDGE_ERROR_MISALIGNED: "Non-aligned arrays are not supported",
    BRIDGE_ERROR_UNSUPPORTED_SCALAR: "Unsupported scalar type",
    BRIDGE_ERROR_INVALID_SHAPE: "Invalid shape declaration",
    BRIDGE_ERROR_RELEASED: "Reference has been released",
    BRIDGE_ERROR_NOT_REGISTERED: "Type is not registered",
    BRIDGE_ERROR_DUPLICATE_CONVERTER: "Converter already present",
}


# =============================================================================
# Exception Classes
# =============================================================================

class BridgeError(Exception):
    """
    Base exception for all matbridge errors.

    Attributes:
        code: Numeric error code (BRIDGE_ERROR_*).
        message: Human-readable detail.
    """

    OK = BRIDGE_OK
    ERROR_NOT_CONVERTIBLE = BRIDGE_ERROR_NOT_CONVERTIBLE
    ERROR_UNSUPPORTED_SCALAR = BRIDGE_ERROR_UNSUPPORTED_SCALAR
    ERROR_INVALID_SHAPE = BRIDGE_ERROR_INVALID_SHAPE
    ERROR_RELEASED = BRIDGE_ERROR_RELEASED
    ERROR_NOT_REGISTERED = BRIDGE_ERROR_NOT_REGISTERED
    ERROR_DUPLICATE_CONVERTER = BRIDGE_ERROR_DUPLICATE_CONVERTER

    def __init__(self, code: int, message: Optional[str] = None):
        self.code = code
        if message is None:
            message = _ERROR_MESSAGES.get(code, f"Unknown error (code={code})")
        self.message = message
        super().__init__(f"matbridge error {code}: {message}")

    @classmethod
    def from_code(cls, code: int, context: str = "") -> "BridgeError":
        """Create exception from error code with optional context."""
        base_msg = _ERROR_MESSAGES.get(code, "Unknown error")
        msg = f"{context}: {base_msg}" if context else base_msg
        return cls(code, msg)


class NotConvertibleError(BridgeError, TypeError):
    """No registered converter admits the object for the requested type."""

    def __init__(self, message: Optional[str] = None,
                 rejection: Optional["Rejection"] = None):
        self.rejection = rejection
        code = rejection.code if rejection is not None else BRIDGE_ERROR_NOT_CONVERTIBLE
        super().__init__(code, message)


class UnsupportedScalarKindError(BridgeError, TypeError):
    """A native type was declared with a scalar type that has no ScalarKind."""

    def __init__(self, scalar_type: Any):
        self.scalar_type = scalar_type
        super().__init__(
            BRIDGE_ERROR_UNSUPPORTED_SCALAR,
            f"Unsupported scalar type: {scalar_type!r}",
        )


class ReleasedReferenceError(BridgeError, RuntimeError):
    """A zero-copy reference was used after its borrow ended."""

    def __init__(self, type_name: str = "reference"):
        super().__init__(
            BRIDGE_ERROR_RELEASED,
            f"{type_name} has been released; the borrowed buffer is no longer accessible",
        )


# =============================================================================
# Warnings
# =============================================================================

class DefaultFlavorWarning(FutureWarning):
    """Outbound conversion happened before any array flavor was chosen."""


DEFAULT_FLAVOR_MESSAGE = (
    "matbridge: returning the deprecated numpy.matrix class without it being "
    "asked for explicitly. The default will change to numpy.ndarray.\n"
    "- Either call matbridge.switch_to_numpy_matrix() before converting to "
    "suppress this warning\n"
    "- or call matbridge.switch_to_numpy_array() and adapt your code accordingly."
)


# =============================================================================
# Rejection Reasons
# =============================================================================

class Rejection(Enum):
    """
    Why the validator refused an object.

    Returned (not raised) by `check_convertible`; the binding layer may attach
    it to a NotConvertibleError.
    """
    NOT_AN_ARRAY = BRIDGE_ERROR_NOT_AN_ARRAY
    SCALAR_KIND = BRIDGE_ERROR_SCALAR_KIND
    RANK = BRIDGE_ERROR_RANK
    NOT_A_VECTOR = BRIDGE_ERROR_NOT_A_VECTOR
    ORIENTATION = BRIDGE_ERROR_ORIENTATION
    DIMENSION = BRIDGE_ERROR_DIMENSION_MISMATCH
    MISALIGNED = BRIDGE_ERROR_MISALIGNED

    @property
    def code(self) -> int:
        return self.value

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self.value]


__all__ = [
    "BridgeError",
    "NotConvertibleError",
    "UnsupportedScalarKindError",
    "ReleasedReferenceError",
    "DefaultFlavorWarning",
    "DEFAULT_FLAVOR_MESSAGE",
    "Rejection",
    "BRIDGE_OK",
    "BRIDGE_ERROR_NOT_CONVERTIBLE",
    "BRIDGE_ERROR_NOT_AN_ARRAY",
    "BRIDGE_ERROR_SCALAR_KIND",
    "BRIDGE_ERROR_RANK",
    "BRIDGE_ERROR_NOT_A_VECTOR",
    "BRIDGE_ERROR_ORIENTATION",
    "BRIDGE_ERROR_DIMENSION_MISMATCH",
    "BRIDGE_ERROR_MISALIGNED",
    "BRIDGE_ERROR_UNSUPPORTED_SCALAR",
    "BRIDGE_ERROR_INVALID_SHAPE",
    "BRIDGE_ERROR_RELEASED",
    "BRIDGE_ERROR_NOT_REGISTERED",
    "BRIDGE_ERROR_DUPLICATE_CONVERTER",
]
