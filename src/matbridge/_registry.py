"""
Converter Tables and One-Time Registration

`ConverterTable` plays the part of the host binding layer: for every native
type it keeps a chain of inbound converters (tried in order) and a single
outbound converter. `Registry` wires a native type into a table exactly once.

Registration is idempotent - the guard is consulted before the table is
touched, so calling `register_once` again for the same type changes nothing.

Usage:
    >>> registry = Registry()
    >>> registry.register_once(Matrix3d, engine)
    True
    >>> registry.register_once(Matrix3d, engine)   # no-op
    False
    >>> registry.table.from_python(np.eye(3), Matrix3d)
    <Matrix3d 3x3 float64>
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, TYPE_CHECKING

from ._errors import BridgeError, NotConvertibleError, BRIDGE_ERROR_DUPLICATE_CONVERTER, \
    BRIDGE_ERROR_NOT_REGISTERED

if TYPE_CHECKING:
    from ._convert import ConversionEngine

logger = logging.getLogger("matbridge.registry")

__all__ = [
    'InboundConverter',
    'ConverterTable',
    'ConverterRegistration',
    'Registry',
]


# =============================================================================
# Binding-Layer Tables
# =============================================================================

@dataclass(frozen=True)
class InboundConverter:
    """One link of an inbound chain."""
    target: type
    convertible: Callable[[Any], bool]
    construct: Callable[[Any], Any]


class ConverterTable:
    """
    Inbound converter chains and outbound converters, keyed by native type.
    """

    def __init__(self):
        self._inbound: Dict[type, List[InboundConverter]] = {}
        self._outbound: Dict[type, Callable[[Any], Any]] = {}

    def push_inbound(self, target: type,
                     convertible: Callable[[Any], bool],
                     construct: Callable[[Any], Any]) -> None:
        """Append an inbound converter to the chain of `target`."""
        self._inbound.setdefault(target, []).append(
            InboundConverter(target, convertible, construct)
        )

    def set_outbound(self, source: type, convert: Callable[[Any], Any]) -> None:
        """
        Install the outbound converter of `source`.

        Raises:
            BridgeError: If `source` already has one.
        """
        if source in self._outbound:
            raise BridgeError(
                BRIDGE_ERROR_DUPLICATE_CONVERTER,
                f"Outbound converter for {source.__name__} already present",
            )
        self._outbound[source] = convert

    def inbound_for(self, target: type) -> Tuple[InboundConverter, ...]:
        return tuple(self._inbound.get(target, ()))

    def outbound_for(self, source: type) -> Optional[Callable[[Any], Any]]:
        return self._outbound.get(source)

    def entry_count(self, native_type: type) -> int:
        """Number of table entries (inbound + outbound) held for a type."""
        count = len(self._inbound.get(native_type, ()))
        if native_type in self._outbound:
            count += 1
        return count

    def from_python(self, obj: Any, target: type) -> Any:
        """
        Convert a host object to `target` using the first admitting converter.

        Raises:
            NotConvertibleError: If the chain is empty or nothing admits `obj`.
        """
        for converter in self._inbound.get(target, ()):
            if converter.convertible(obj):
                return converter.construct(obj)
        raise NotConvertibleError(
            f"No registered converter accepts {_describe(obj)} as {target.__name__}"
        )

    def to_python(self, value: Any) -> Any:
        """
        Convert a native value with the outbound converter of its type.

        Raises:
            BridgeError: If the value's type is not registered.
        """
        convert = self._outbound.get(type(value))
        if convert is None:
            raise BridgeError(
                BRIDGE_ERROR_NOT_REGISTERED,
                f"No outbound converter for {type(value).__name__}",
            )
        return convert(value)


def _describe(obj: Any) -> str:
    shape = getattr(obj, 'shape', None)
    dtype = getattr(obj, 'dtype', None)
    if shape is not None and dtype is not None:
        return f"{type(obj).__name__}(dtype={dtype}, shape={tuple(shape)})"
    return type(obj).__name__


# =============================================================================
# Registration
# =============================================================================

@dataclass
class ConverterRegistration:
    """
    Functions wired into the table for one native type.

    Attributes:
        native_type: The registered type.
        convertible: Value-mode admission predicate.
        construct: Value-mode constructor.
        convertible_reference: Zero-copy admission predicate.
        construct_reference: Zero-copy constructor.
        to_dynamic: Outbound converter.
        registered: Whether the functions have been pushed to the table.
    """
    native_type: type
    convertible: Callable[[Any], bool]
    construct: Callable[[Any], Any]
    convertible_reference: Callable[[Any], bool]
    construct_reference: Callable[[Any], Any]
    to_dynamic: Callable[[Any], Any]
    registered: bool = False


class Registry:
    """
    Per-context registration guard over a ConverterTable.

    Not synchronized; the owning BridgeContext holds its lock around calls.
    """

    def __init__(self, table: Optional[ConverterTable] = None):
        self.table = table if table is not None else ConverterTable()
        self._registrations: Dict[type, ConverterRegistration] = {}

    def is_registered(self, native_type: type) -> bool:
        registration = self._registrations.get(native_type)
        return registration is not None and registration.registered

    def registration(self, native_type: type) -> Optional[ConverterRegistration]:
        return self._registrations.get(native_type)

    @property
    def registered_types(self) -> Tuple[type, ...]:
        return tuple(t for t, r in self._registrations.items() if r.registered)

    def register_once(self, native_type: type, engine: "ConversionEngine") -> bool:
        """
        Wire `native_type` into the table unless already done.

        Pushes the value converter under the type, the zero-copy converter
        under its `.Ref` variant, and outbound converters for both.

        Args:
            native_type: Declared Matrix subclass.
            engine: Engine whose conversion functions get registered.

        Returns:
            True if this call performed the registration, False otherwise.
        """
        if self.is_registered(native_type):
            logger.debug("%s already registered, skipping", native_type.__name__)
            return False

        ref_type = native_type.Ref
        for source in (native_type, ref_type):
            if self.table.outbound_for(source) is not None:
                raise BridgeError(
                    BRIDGE_ERROR_DUPLICATE_CONVERTER,
                    f"Table already converts {source.__name__} outside this registry",
                )

        registration = ConverterRegistration(
            native_type=native_type,
            convertible=lambda obj: engine.is_convertible(obj, native_type),
            construct=lambda obj: engine.from_dynamic(obj, native_type),
            convertible_reference=lambda obj: engine.is_convertible(obj, ref_type),
            construct_reference=lambda obj: engine.reference(obj, native_type),
            to_dynamic=engine.to_dynamic,
        )

        self.table.push_inbound(native_type, registration.convertible, registration.construct)
        self.table.push_inbound(ref_type, registration.convertible_reference,
                                registration.construct_reference)
        self.table.set_outbound(native_type, registration.to_dynamic)
        self.table.set_outbound(ref_type, registration.to_dynamic)

        registration.registered = True
        self._registrations[native_type] = registration
        logger.debug("Registered converters for %s (%s, %s)",
                     native_type.__name__, native_type.scalar_kind,
                     native_type.shape_constraint)
        return True
