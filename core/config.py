"""
core/config.py -- Configuration capability for authgate via pydantic-settings.

All environment variable reads for authgate happen here. No module should
call os.getenv() directly -- ask load_config() for the mapping instead.

Design patterns used:
  Named config groups: load_config("auth") resolves the group name to a
      BaseSettings subclass. The group name doubles as the environment
      prefix, so the "auth" group reads AUTH_DRIVER, AUTH_HASH_KEY, etc.

  Singleton via lru_cache: load_config() builds each group once and returns
      the cached mapping on every later call. Tests call
      load_config.cache_clear() after changing the environment.

  Immutable result: the mapping handed to AuthService and its driver is a
      MappingProxyType. Configuration is written once at load and read-only
      afterwards, which is what lets the AuthService singleton be shared
      without locks.

  @model_validator(mode="after"): cross-field checks run once every field is
      resolved. An empty hash_key is allowed here (only hash() needs it) but
      is logged, mirroring the dev-mode SECRET_KEY warning.

Every failure surfaces as core.errors.ConfigError.

Layer rule: core/ is the kernel. This module may not import from auth/ or
session/.
"""

import hashlib
import json
import logging
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional

from pydantic import ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from core.errors import ConfigError

logger = logging.getLogger("authgate.config")


class AuthSettings(BaseSettings):
    """Settings for the "auth" config group.

    All fields have defaults so AuthSettings() can be built in tests without a
    .env file. Field names map to AUTH_-prefixed variables: `hash_key` reads
    AUTH_HASH_KEY, `users` reads AUTH_USERS (a JSON object).
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    # Registry name of the CredentialStore implementation (case-insensitive).
    driver: str = "file"
    # Registry name of the session backend.
    session_type: str = "memory"
    # Session key the identity is stored under.
    session_key: str = "auth_user"

    # ------------------------------------------------------------------
    # Hashing
    # ------------------------------------------------------------------

    # Empty string means "not configured"; AuthService.hash() refuses to run.
    hash_key: str = ""
    hash_method: str = "sha256"

    # ------------------------------------------------------------------
    # File driver
    # ------------------------------------------------------------------

    # username -> hex HMAC digest produced by AuthService.hash()
    users: dict[str, str] = {}
    # Optional JSON file with the same shape; merged over `users`.
    users_file: Optional[Path] = None

    # ------------------------------------------------------------------
    # Database session backend
    # ------------------------------------------------------------------

    session_db_url: str = "sqlite:///:memory:"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_auth_settings(self) -> "AuthSettings":
        """Normalize names, check the hash algorithm and merge the users file."""
        self.driver = self.driver.strip()
        if not self.driver:
            raise ValueError("driver must name a registered credential store.")
        if not self.session_key:
            raise ValueError("session_key must not be empty.")

        self.hash_method = self.hash_method.strip().lower()
        # shake_* digests need an explicit length and cannot back an HMAC hexdigest.
        if self.hash_method not in hashlib.algorithms_available or self.hash_method.startswith("shake"):
            raise ValueError(f"Unsupported hash_method '{self.hash_method}'.")

        if not self.hash_key:
            logger.warning("WARNING: AUTH_HASH_KEY is not set. Password hashing will fail until it is configured.")

        if self.users_file is not None:
            self.users = {**self.users, **_read_users_file(self.users_file)}
        return self


def _read_users_file(path: Path) -> dict[str, str]:
    """Return the username -> hash object stored in a JSON users file.

    Raises ValueError (surfaced as ConfigError) when the file is missing,
    unreadable, or not a flat object of strings.
    """
    file_path = path.expanduser().resolve()
    if not file_path.is_file():
        raise ValueError(f"users_file '{path}' is not a readable file.")
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Could not read users_file '{path}': {e}") from e
    if not isinstance(raw, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in raw.items()):
        raise ValueError(f"users_file '{path}' must contain a JSON object of username -> hash strings.")
    logger.debug("Loaded %d user(s) from %s", len(raw), file_path)
    return raw


# Config group name -> settings class. The name is also the env prefix.
_GROUPS: dict[str, type[BaseSettings]] = {
    "auth": AuthSettings,
}


@lru_cache
def load_config(name: str = "auth") -> Mapping[str, Any]:
    """Return the read-only configuration mapping for a config group.

    Raises ConfigError when the group is unknown or its values fail
    validation. Failed loads are not cached, so fixing the environment and
    calling again works without cache_clear().
    """
    settings_cls = _GROUPS.get(name)
    if settings_cls is None:
        raise ConfigError(f"No configuration group named '{name}'.")
    try:
        settings = settings_cls()
    except (ValidationError, SettingsError) as e:
        raise ConfigError(f"Invalid '{name}' configuration: {e}") from e
    return MappingProxyType(settings.model_dump())
