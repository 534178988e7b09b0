"""Unit tests for auth/drivers/file.py -- the static user-table driver.

Covers:
- remember=True always raises UnsupportedFeatureError, even with a correct password
- force_login binds the exact username with no hashing involved
- password() returns the stored hash, or None for unknown users
- check_password() compares against the stored hash as given (callers pre-hash)
- The user table is frozen at construction
"""

from __future__ import annotations

import pytest
from conftest import USERS, hmac_hex

from auth.drivers import FileCredentialStore
from auth.service import AuthService
from core.errors import UnsupportedFeatureError


class TestRemember:
    @pytest.mark.parametrize("password", ["wonderland", "wrong"])
    def test_remember_raises_through_service(self, auth, session, password):
        before = session.id
        with pytest.raises(UnsupportedFeatureError):
            auth.login("alice", password, remember=True)
        assert auth.logged_in() is False
        assert session.id == before

    def test_remember_raises_on_driver(self, auth):
        with pytest.raises(UnsupportedFeatureError):
            auth.driver.login("alice", "wonderland", True)


class TestForceLogin:
    def test_force_login_binds_username(self, auth):
        assert auth.driver.force_login("alice") is True
        assert auth.get_user() == "alice"

    def test_force_login_needs_no_hash_key(self, config, session):
        auth = AuthService({**config, "hash_key": ""}, FileCredentialStore, session=session)
        assert auth.driver.force_login("ghost") is True
        assert auth.get_user() == "ghost"

    def test_force_login_logs_warning(self, auth, caplog):
        with caplog.at_level("WARNING", logger="authgate.auth"):
            auth.driver.force_login("alice")
        assert "Forced login" in caplog.text


class TestPassword:
    def test_known_user_returns_stored_hash(self, auth):
        assert auth.driver.password("alice") == USERS["alice"]

    def test_unknown_user_returns_none(self, auth):
        assert auth.driver.password("mallory") is None

    def test_missing_users_key_means_empty_table(self, config, session):
        cfg = {k: v for k, v in config.items() if k != "users"}
        auth = AuthService(cfg, FileCredentialStore, session=session)
        assert auth.driver.password("alice") is None
        assert auth.login("alice", "wonderland") is False


class TestCheckPassword:
    def test_false_when_nobody_logged_in(self, auth):
        assert auth.driver.check_password(USERS["alice"]) is False

    def test_compares_against_stored_hash(self, auth):
        auth.login("alice", "wonderland")
        assert auth.driver.check_password(hmac_hex("wonderland")) is True
        assert auth.driver.check_password(hmac_hex("builder")) is False

    def test_plaintext_is_not_hashed(self, auth):
        # Literal behavior: the argument is not hashed before comparison.
        auth.login("alice", "wonderland")
        assert auth.driver.check_password("wonderland") is False

    def test_false_for_forced_user_without_table_entry(self, auth):
        auth.driver.force_login("ghost")
        assert auth.driver.check_password(hmac_hex("anything")) is False


class TestUserTable:
    def test_table_is_copied_at_construction(self, session):
        users = {"alice": hmac_hex("wonderland")}
        config = {"session_key": "auth_user", "hash_key": "k", "hash_method": "sha256", "users": users}
        auth = AuthService(config, FileCredentialStore, session=session)
        users["mallory"] = "x"
        assert auth.driver.password("mallory") is None

    def test_table_is_read_only(self, auth):
        with pytest.raises(TypeError):
            auth.driver._users["mallory"] = "x"
