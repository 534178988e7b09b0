"""
auth/service.py -- AuthService: login, logout, login-state and keyed hashing.

AuthService is the single entry point the rest of an application talks to.
It owns the per-session state machine and nothing else:

  ANONYMOUS      no identity stored under config["session_key"]
  AUTHENTICATED  an identity is stored there

ANONYMOUS -> AUTHENTICATED happens only through complete_login(), which a
driver calls after it has verified credentials. AUTHENTICATED -> ANONYMOUS
happens only through logout(). There are no intermediate states.

Credential lookup is delegated to a CredentialStore ("driver") resolved from
config["driver"] through the registry in auth/drivers. The service never
holds an identity itself: every read and write goes through the Session.

Security design decisions:
  Session fixation: the session id is regenerated on login and on a partial
      logout, so an id planted before authentication is useless after it.

  Enumeration: wrong password, unknown user and empty password all return
      False from login(). Only misconfiguration raises.

  Hashing: HMAC with config["hash_key"] and config["hash_method"]. The key is
      required; hashing without one would make every stored hash a plain
      digest anyone can precompute.

Singleton: instance() builds one AuthService per process under a lock
(double-checked), so concurrent first requests in a threaded server cannot
construct it twice. get_auth_service() is the provider for
dependency-injection frameworks.

The process-wide instance is bound to ONE Session for the life of the
process: every caller of instance() shares the same login. That fits a CLI
or a one-user process. A server handling many users builds one service per
request around that request's session:

    config = load_config("auth")
    auth = AuthService(config, resolve_driver(config["driver"]), session=request_session)

Services built this way share the read-only config and never see each
other's identity.
"""

from __future__ import annotations

import hmac
import logging
import threading
from collections.abc import Mapping
from typing import Any, ClassVar, Optional

from auth.drivers import CredentialStore, DriverFactory, resolve_driver
from core.config import load_config
from core.errors import ConfigError, UnsupportedFeatureError
from session import Session, get_session

logger = logging.getLogger("authgate.auth")


class AuthService:
    """Authentication state machine bound to one Session and one driver.

    Usage:
        auth = AuthService.instance()
        if auth.login(username, password):
            ...
        auth.logged_in()      # True
        auth.get_user()       # "alice"
        auth.logout()
    """

    _instance: ClassVar[Optional["AuthService"]] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        config: Mapping[str, Any],
        driver_factory: DriverFactory,
        session: Optional[Session] = None,
    ) -> None:
        self.config = config
        # SessionError from the backend propagates unchanged.
        owns_session = session is None
        self.session: Session = session if session is not None else get_session(config["session_type"], config)
        try:
            self.driver: CredentialStore = driver_factory(config, self)
        except (TypeError, ValueError, KeyError) as e:
            if owns_session:
                self.close()
            raise ConfigError(f"Could not construct auth driver '{config.get('driver')}': {e}") from e

    def close(self) -> None:
        """Release the session backend's resources (engines, connections), if it has any."""
        close = getattr(self.session, "close", None)
        if close is not None:
            close()

    # ------------------------------------------------------------------
    # Process-wide instance
    # ------------------------------------------------------------------

    @classmethod
    def instance(cls) -> "AuthService":
        """Return the process-wide AuthService, building it on first call.

        Raises ConfigError if the "auth" config group cannot be loaded or its
        driver cannot be resolved, SessionError if the session backend cannot
        be acquired.
        """
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    config = load_config("auth")
                    factory = resolve_driver(config.get("driver", ""))
                    cls._instance = cls(config, factory)
                    logger.info(
                        "AuthService ready (driver=%s, session_type=%s)",
                        config["driver"],
                        config["session_type"],
                    )
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the process-wide instance. The next instance() call rebuilds it."""
        with cls._instance_lock:
            cls._instance = None

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def get_user(self, default: Any = None) -> Any:
        """Return the identity stored in the session, or default if nobody is logged in."""
        return self.session.get(self.config["session_key"], default)

    def logged_in(self, role: Optional[str] = None) -> bool:
        """Return True if an identity is stored in the session.

        role is accepted so richer drivers can add role checks; the reference
        behavior ignores it.
        """
        return self.get_user() is not None

    def login(self, username: str, password: str, remember: bool = False) -> bool:
        """Attempt a login. Returns True on success, False on any credential failure.

        An empty password is rejected before the driver is consulted.
        """
        if not password:
            return False
        ok = self.driver.login(username, password, remember)
        if ok:
            logger.info("Login succeeded for user '%s'", username)
        else:
            logger.info("Login failed for user '%s'", username)
        return ok

    def logout(self, destroy: bool = False, logout_all: bool = False) -> bool:
        """Log the current user out.

        destroy=True invalidates the whole session. Otherwise only the
        identity key is removed and the session id is regenerated, keeping
        every other session value. logout_all is for drivers with persistent
        tokens; the reference driver has none.

        Returns not logged_in() afterwards. False means something still
        resolves to an identity and the logout must be treated as failed.
        """
        user = self.get_user()
        if destroy:
            self.session.destroy()
        else:
            self.session.delete(self.config["session_key"])
            self.session.regenerate()

        if user is not None:
            logger.info("Logged out user '%s' (destroy=%s)", user, destroy)
        return not self.logged_in()

    def complete_login(self, identity: Any) -> bool:
        """Bind identity into the session after a driver has verified it.

        Regenerates the session id first, then stores the identity. Always
        returns True: validation already happened in the driver.
        """
        self.session.regenerate()
        self.session.set(self.config["session_key"], identity)
        return True

    # ------------------------------------------------------------------
    # Hashing
    # ------------------------------------------------------------------

    def hash(self, value: str) -> str:
        """Return the hex HMAC of value using the configured method and key.

        Raises ConfigError if hash_key is not set or hash_method is unknown.
        """
        key = self.config.get("hash_key")
        if not key:
            raise ConfigError("A valid hash key must be set in your auth config.")
        try:
            return hmac.new(key.encode("utf-8"), value.encode("utf-8"), self.config["hash_method"]).hexdigest()
        except (ValueError, KeyError) as e:
            raise ConfigError(f"Invalid hash_method '{self.config.get('hash_method')}': {e}") from e

    # ------------------------------------------------------------------
    # Driver delegation
    # ------------------------------------------------------------------

    def password(self, username: str) -> Optional[str]:
        """Return the stored credential for username, or None if unknown."""
        return self.driver.password(username)

    def check_password(self, password: str) -> bool:
        """Compare password with the stored credential of the logged-in user."""
        return self.driver.check_password(password)

    def force_login(self, username: str) -> bool:
        """Log username in without a password, if the driver supports it.

        Raises UnsupportedFeatureError for drivers without force_login().
        """
        force = getattr(self.driver, "force_login", None)
        if force is None:
            raise UnsupportedFeatureError(f"Driver '{self.config.get('driver')}' does not support force_login.")
        return force(username)


def get_auth_service() -> AuthService:
    """Provider for dependency injection. Returns AuthService.instance()."""
    return AuthService.instance()
