"""
Configuration for matbridge.

Provides:
- Diagnostics switch (rejection hints logged at DEBUG level)
- Initial array flavor, so embedding applications can avoid the
  default-flavor warning without touching code

Both can be set from the environment:

    MATBRIDGE_DIAGNOSTICS=1     log why arrays are rejected
    MATBRIDGE_FLAVOR=array      start in ARRAY flavor ('matrix' also valid)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from ._flavor import ArrayFlavor

__all__ = ['BridgeConfig']


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, '').lower() in ('1', 'true', 'yes')


@dataclass(frozen=True)
class BridgeConfig:
    """
    Immutable settings of a bridge context.

    Attributes:
        diagnostics: Log a hint for every rejected conversion.
        initial_flavor: Flavor the context starts with.
    """
    diagnostics: bool = False
    initial_flavor: ArrayFlavor = ArrayFlavor.UNSET

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "BridgeConfig":
        """
        Build a config from environment variables.

        Args:
            env: Mapping to read from (defaults to os.environ).

        Raises:
            ValueError: If MATBRIDGE_FLAVOR names an unknown flavor.
        """
        if env is None:
            env = os.environ
        return cls(
            diagnostics=_env_flag(env, 'MATBRIDGE_DIAGNOSTICS'),
            initial_flavor=ArrayFlavor.from_name(env.get('MATBRIDGE_FLAVOR', '')),
        )

    def with_options(self, **changes) -> "BridgeConfig":
        """Copy with some fields replaced."""
        return replace(self, **changes)
