#!/usr/bin/env python3
"""Unit tests for session token management.

Tests cover:
    - Configuration from environment
    - Login, token caching and invalidation
    - Retry logic on login failures
    - Safe token fingerprints for logging
"""
import hashlib
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from src.darb.api.auth import CachedToken, SessionTokenManager, token_fingerprint
from src.darb.api.exceptions import ConfigurationError, ConnectionError, LoginError


def make_session(status=200, payload=None, text=""):
    """Build an aiohttp.ClientSession mock whose post() yields one response."""
    mock_response = MagicMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=payload)
    mock_response.text = AsyncMock(return_value=text)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = MagicMock()
    mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


# ============================================
# CachedToken Tests
# ============================================

class TestCachedToken:
    """Test the CachedToken dataclass."""

    def test_token_id_is_sha256_hash(self):
        token = CachedToken(access_token="my_secret_token_value")
        expected = hashlib.sha256(b"my_secret_token_value").hexdigest()[:8]

        assert token.token_id == expected
        assert "my_secret" not in token.token_id

    def test_fingerprint_is_stable(self):
        assert token_fingerprint("abc") == token_fingerprint("abc")
        assert token_fingerprint("abc") != token_fingerprint("abd")


# ============================================
# SessionTokenManager Tests
# ============================================

class TestSessionTokenManager:
    """Test SessionTokenManager login and caching."""

    @pytest.fixture
    def env_vars(self, monkeypatch):
        monkeypatch.setenv("REGISTER_API_BASE_URL", "http://register.test/")
        monkeypatch.setenv("REGISTER_USERNAME", "clerk")
        monkeypatch.setenv("REGISTER_PASSWORD", "s3cret")

    def test_missing_env_vars_raises(self, monkeypatch):
        monkeypatch.delenv("REGISTER_API_BASE_URL", raising=False)
        monkeypatch.delenv("REGISTER_USERNAME", raising=False)
        monkeypatch.delenv("REGISTER_PASSWORD", raising=False)

        with pytest.raises(ConfigurationError) as exc_info:
            SessionTokenManager()

        assert exc_info.value.details["missing_keys"] == [
            "REGISTER_API_BASE_URL",
            "REGISTER_USERNAME",
            "REGISTER_PASSWORD",
        ]

    def test_explicit_credentials(self, monkeypatch):
        monkeypatch.delenv("REGISTER_USERNAME", raising=False)

        manager = SessionTokenManager(
            base_url="http://explicit.test/", username="u", password="p"
        )

        assert manager.base_url == "http://explicit.test"
        assert manager.username == "u"

    @pytest.mark.asyncio
    async def test_login_success_is_cached(self, env_vars):
        manager = SessionTokenManager()
        session = make_session(payload={"token": "tok-123"})

        with patch("aiohttp.ClientSession", return_value=session) as session_cls:
            assert await manager.get_token() == "tok-123"
            assert await manager.get_token() == "tok-123"

        session_cls.assert_called_once()
        url = session.post.call_args.args[0]
        assert url == "http://register.test/api/login"
        assert session.post.call_args.kwargs["json"] == {
            "username": "clerk",
            "password": "s3cret",
        }
        assert manager.token_info == {
            "token_id": token_fingerprint("tok-123"),
            "username": "clerk",
        }

    @pytest.mark.asyncio
    async def test_invalidate_forces_new_login(self, env_vars):
        manager = SessionTokenManager()

        with patch("aiohttp.ClientSession", return_value=make_session(payload={"token": "a"})):
            await manager.get_token()
        manager.invalidate()
        assert manager.token_info is None

        with patch("aiohttp.ClientSession", return_value=make_session(payload={"token": "b"})):
            assert await manager.get_token() == "b"

    @pytest.mark.asyncio
    async def test_rejected_login_not_retried(self, env_vars):
        manager = SessionTokenManager()
        session = make_session(status=401)

        with patch("aiohttp.ClientSession", return_value=session):
            with pytest.raises(LoginError) as exc_info:
                await manager.get_token()

        assert exc_info.value.details["status_code"] == 401
        assert session.post.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_token_in_response(self, env_vars):
        manager = SessionTokenManager()

        with patch("aiohttp.ClientSession", return_value=make_session(payload={})):
            with pytest.raises(LoginError, match="missing token"):
                await manager.get_token()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [["tok"], "tok", None, {"token": 123}])
    async def test_malformed_login_response(self, env_vars, payload):
        manager = SessionTokenManager()
        session = make_session(payload=payload)

        with patch("aiohttp.ClientSession", return_value=session):
            with pytest.raises(LoginError):
                await manager.get_token()

        assert session.post.call_count == 1

    @pytest.mark.asyncio
    async def test_non_json_login_response(self, env_vars):
        manager = SessionTokenManager()
        session = make_session()
        response = session.post.return_value
        response.json = AsyncMock(side_effect=ValueError("Expecting value"))

        with patch("aiohttp.ClientSession", return_value=session):
            with pytest.raises(LoginError, match="not a JSON object"):
                await manager.get_token()

    @pytest.mark.asyncio
    async def test_server_error_retried_with_backoff(self, env_vars):
        manager = SessionTokenManager()
        session = make_session(status=503, text="unavailable")

        with patch("aiohttp.ClientSession", return_value=session):
            with patch("src.darb.api.auth.asyncio.sleep", new=AsyncMock()) as sleep:
                with pytest.raises(LoginError) as exc_info:
                    await manager.get_token()

        assert session.post.call_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1, 2]
        assert exc_info.value.details["status_code"] == 503

    @pytest.mark.asyncio
    async def test_connection_error_wrapped(self, env_vars):
        manager = SessionTokenManager()
        session = make_session()
        session.post = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))

        with patch("aiohttp.ClientSession", return_value=session):
            with patch("src.darb.api.auth.asyncio.sleep", new=AsyncMock()):
                with pytest.raises(ConnectionError):
                    await manager.get_token()

        assert session.post.call_count == 3
