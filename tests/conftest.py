"""
tests/conftest.py -- Shared fixtures for authgate tests.

This module provides:
  - hmac_hex(): the expected digest for a plaintext, computed independently
    of AuthService so hashing tests are not circular
  - _isolate_process_state (autouse): strips AUTH_* variables, moves into a
    temp dir (so a developer's .env is never read), and resets the config
    cache and the AuthService singleton around every test
  - config / session / auth: a directly-wired AuthService over the File driver
    and an in-memory session -- no environment involved
  - auth_env: AUTH_* variables matching `config`, for instance() and CLI tests
"""

from __future__ import annotations

import hashlib
import hmac
import json
import os
from types import MappingProxyType

import pytest

from auth.drivers import FileCredentialStore
from auth.service import AuthService
from core.config import load_config
from session import MemorySession

HASH_KEY = "test-hash-key-0123456789abcdef"

PASSWORDS = {
    "alice": "wonderland",
    "bob": "builder",
}


def hmac_hex(value: str, key: str = HASH_KEY, method: str = "sha256") -> str:
    return hmac.new(key.encode("utf-8"), value.encode("utf-8"), getattr(hashlib, method)).hexdigest()


USERS = {name: hmac_hex(pw) for name, pw in PASSWORDS.items()}


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch, tmp_path):
    for var in list(os.environ):
        if var.startswith("AUTH_"):
            monkeypatch.delenv(var)
    monkeypatch.chdir(tmp_path)
    load_config.cache_clear()
    AuthService.reset_instance()
    yield
    load_config.cache_clear()
    AuthService.reset_instance()


@pytest.fixture
def config():
    return MappingProxyType(
        {
            "driver": "file",
            "session_type": "memory",
            "session_key": "auth_user",
            "hash_key": HASH_KEY,
            "hash_method": "sha256",
            "users": dict(USERS),
        }
    )


@pytest.fixture
def session() -> MemorySession:
    return MemorySession()


@pytest.fixture
def auth(config, session) -> AuthService:
    return AuthService(config, FileCredentialStore, session=session)


@pytest.fixture
def auth_env(monkeypatch):
    monkeypatch.setenv("AUTH_HASH_KEY", HASH_KEY)
    monkeypatch.setenv("AUTH_USERS", json.dumps(USERS))
