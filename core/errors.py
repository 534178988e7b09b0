"""
core/errors.py -- Exception taxonomy shared by every authgate layer.

Failure-to-operate is loud (an exception from this module). Failure-to-
authenticate is quiet: wrong credentials, unknown users and empty passwords
come back as a plain False from AuthService.login() and never raise. Keeping
the two apart lets callers show one "invalid username or password" message
without leaking which part was wrong.

Layer rule: core/ is the kernel. This module imports nothing from auth/ or
session/.
"""


class AuthError(Exception):
    """Base class for every error raised by the authentication layer."""


class ConfigError(AuthError):
    """Configuration is missing, unloadable, or lacks a required key."""


class SessionError(AuthError):
    """The session backend could not be acquired or failed mid-operation."""


class UnsupportedFeatureError(AuthError):
    """A driver was asked for a capability it does not implement."""
