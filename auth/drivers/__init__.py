"""auth/drivers/ -- CredentialStore implementations and the driver registry.

The `driver` config value is looked up here, case-insensitively, instead of
being imported by name. Applications add their own stores with
register_driver() before the first AuthService.instance() call.
"""

from __future__ import annotations

import logging

from auth.drivers.base import AuthBinding, CredentialStore, DriverFactory
from auth.drivers.file import FileCredentialStore
from core.errors import ConfigError

logger = logging.getLogger("authgate.auth")

_DRIVERS: dict[str, DriverFactory] = {
    "file": FileCredentialStore,
}


def register_driver(name: str, factory: DriverFactory) -> None:
    """Make factory available under name (replacing any existing entry)."""
    key = name.strip().lower()
    if not key:
        raise ValueError("Driver name must not be empty.")
    _DRIVERS[key] = factory


def resolve_driver(name: str) -> DriverFactory:
    """Return the factory registered under name. Raises ConfigError if none is."""
    key = (name or "").strip().lower()
    factory = _DRIVERS.get(key)
    if factory is None:
        raise ConfigError(f"Unknown auth driver '{name}'. Registered: {', '.join(sorted(_DRIVERS))}.")
    logger.debug("Resolved auth driver '%s' -> %s", name, getattr(factory, "__name__", factory))
    return factory


__all__ = [
    "AuthBinding",
    "CredentialStore",
    "DriverFactory",
    "FileCredentialStore",
    "register_driver",
    "resolve_driver",
]
