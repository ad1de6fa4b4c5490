"""
Bridge Context

Holds every piece of mutable process state the conversion engine needs:

    config    immutable BridgeConfig
    flavor    FlavorState (active flavor, one-time warning guard)
    registry  Registry over a ConverterTable

A context is built once at startup and shared by reference with every
conversion call site. One re-entrant lock serializes flavor switches,
registrations and flavor resolution, so registration happens-before any
conversion that observes it.

A lazily created default context backs the module-level API; `reset_context`
replaces it (mainly for tests and embedding applications).
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from ._config import BridgeConfig
from ._flavor import ArrayFlavor, FlavorState
from ._registry import Registry

logger = logging.getLogger("matbridge.context")

__all__ = [
    'BridgeContext',
    'get_context',
    'reset_context',
    'get_config',
    'switch_flavor',
    'switch_to_numpy_matrix',
    'switch_to_numpy_array',
    'set_flavor_from',
    'current_flavor',
    'current_array_type',
    'is_flavor',
]


class BridgeContext:
    """
    Configuration and state shared by conversion engines.

    Example:
        >>> ctx = BridgeContext(BridgeConfig(initial_flavor=ArrayFlavor.ARRAY))
        >>> engine = ConversionEngine(ctx)
    """

    def __init__(self, config: Optional[BridgeConfig] = None):
        self.config = config if config is not None else BridgeConfig.from_env()
        self.flavor = FlavorState(self.config.initial_flavor)
        self.registry = Registry()
        self.lock = threading.RLock()

    @property
    def diagnostics(self) -> bool:
        return self.config.diagnostics

    def switch_flavor(self, flavor) -> None:
        with self.lock:
            self.flavor.set(flavor)

    def current_flavor(self) -> ArrayFlavor:
        with self.lock:
            return self.flavor.flavor

    def __repr__(self) -> str:
        return (
            f"BridgeContext(flavor={self.flavor.flavor.value}, "
            f"registered={len(self.registry.registered_types)}, "
            f"diagnostics={self.config.diagnostics})"
        )


# =============================================================================
# Default Context
# =============================================================================

_default_context: Optional[BridgeContext] = None
_default_lock = threading.Lock()


def get_context() -> BridgeContext:
    """Get the process-wide default context (created on first call)."""
    global _default_context
    if _default_context is None:
        with _default_lock:
            if _default_context is None:
                _default_context = BridgeContext()
                logger.debug("Created default context: %r", _default_context)
    return _default_context


def reset_context(config: Optional[BridgeConfig] = None) -> BridgeContext:
    """
    Replace the default context with a fresh one.

    Registrations and flavor of the old context are dropped.

    Args:
        config: Config for the new context (defaults to the environment).

    Returns:
        The new default context.
    """
    global _default_context
    with _default_lock:
        _default_context = BridgeContext(config)
        logger.debug("Reset default context: %r", _default_context)
    return _default_context


def get_config() -> BridgeConfig:
    """Get the configuration of the default context."""
    return get_context().config


# =============================================================================
# Flavor API (default context)
# =============================================================================

def switch_flavor(flavor) -> None:
    """Select the array flavor for future outbound conversions.

    Args:
        flavor: ArrayFlavor.MATRIX / ArrayFlavor.ARRAY or 'matrix' / 'array'.
    """
    get_context().switch_flavor(flavor)


def switch_to_numpy_matrix() -> None:
    switch_flavor(ArrayFlavor.MATRIX)


def switch_to_numpy_array() -> None:
    switch_flavor(ArrayFlavor.ARRAY)


def set_flavor_from(obj) -> ArrayFlavor:
    """Select the flavor matching a numpy array class or instance."""
    ctx = get_context()
    with ctx.lock:
        return ctx.flavor.set_from(obj)


def current_flavor() -> ArrayFlavor:
    return get_context().current_flavor()


def current_array_type() -> type:
    """Host class outbound conversions currently produce."""
    ctx = get_context()
    with ctx.lock:
        return ctx.flavor.current_type()


def is_flavor(flavor) -> bool:
    """Test the active flavor; accepts an ArrayFlavor or a name."""
    ctx = get_context()
    with ctx.lock:
        return ctx.flavor.is_flavor(flavor)
