"""
auth/drivers/file.py -- Static user-table driver (the reference CredentialStore).

The user table maps username -> hex HMAC digest, as produced by
AuthService.hash(). It arrives fully loaded inside the config mapping and is
frozen at construction: this driver does no I/O and has no user-management
operations.

Not supported: roles, "remember me" tokens, logout_all.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Optional

from auth.drivers.base import AuthBinding
from core.errors import UnsupportedFeatureError

logger = logging.getLogger("authgate.auth")


class FileCredentialStore:
    """CredentialStore backed by the `users` table from configuration."""

    def __init__(self, config: Mapping[str, Any], auth: AuthBinding) -> None:
        self._auth = auth
        self._users: Mapping[str, str] = MappingProxyType(dict(config.get("users") or {}))

    def login(self, username: str, password: str, remember: bool) -> bool:
        """Check a plaintext password against the stored hash for username.

        The table stores hashes only, so the password is hashed before the
        comparison. Raises UnsupportedFeatureError when remember is set: this
        driver has no persistent-token mechanism.
        """
        if remember:
            raise UnsupportedFeatureError("File based auth does not support remember.")

        hashed = self._auth.hash(password)
        stored = self._users.get(username)
        if stored is not None and hmac.compare_digest(stored.encode("utf-8"), hashed.encode("utf-8")):
            return self._auth.complete_login(username)
        return False

    def force_login(self, username: str) -> bool:
        """Log username in without checking any password.

        For administrative and test use. Nothing here authorizes the caller;
        that is the caller's job.
        """
        logger.warning("Forced login for user '%s' (no credential check)", username)
        return self._auth.complete_login(username)

    def password(self, username: str) -> Optional[str]:
        return self._users.get(username)

    def check_password(self, password: str) -> bool:
        """Compare password with the stored hash of the logged-in user.

        password is compared as given, against the stored *hash*: callers must
        pass AuthService.hash(plaintext), not the plaintext itself.
        """
        username = self._auth.get_user()
        if username is None:
            return False
        return password == self.password(username)
