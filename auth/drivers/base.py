"""
auth/drivers/base.py -- The CredentialStore contract every driver satisfies.

Two Protocols meet here:

  CredentialStore  what AuthService needs from a driver (credential checks).
  AuthBinding      what a driver may use from AuthService (keyed hashing,
                   the current identity, and login completion).

Drivers receive the AuthBinding at construction instead of subclassing
AuthService. complete_login() therefore exists exactly once, in the service,
and every driver binds identities into the session the same way.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Optional, Protocol, runtime_checkable


class AuthBinding(Protocol):
    def hash(self, value: str) -> str: ...

    def get_user(self, default: Any = None) -> Any: ...

    def complete_login(self, identity: Any) -> bool: ...


@runtime_checkable
class CredentialStore(Protocol):
    def login(self, username: str, password: str, remember: bool) -> bool:
        """Verify credentials and, on success, call AuthBinding.complete_login().

        Returns False for any credential mismatch. Raises
        UnsupportedFeatureError for capabilities the driver lacks.
        """
        ...

    def password(self, username: str) -> Optional[str]:
        """Return the stored credential for username, or None if absent."""
        ...

    def check_password(self, password: str) -> bool:
        """Compare password with the stored credential of the logged-in user."""
        ...


# Registry entries build a driver from the full config mapping and the service.
DriverFactory = Callable[[Mapping[str, Any], AuthBinding], CredentialStore]
