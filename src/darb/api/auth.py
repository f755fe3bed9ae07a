#!/usr/bin/env python3
"""Bearer token handling for the Asset Register backend.

The backend issues an opaque bearer token from ``POST /api/login`` and
accepts it in the ``Authorization`` header on every other endpoint. It does
not report an expiry, so a cached token is kept until the backend answers
401, at which point it is invalidated and a fresh login is attempted.

Security Notes:
    - Tokens are cached in memory only (never persisted to disk)
    - Passwords should be provided via environment variables
    - Log output uses a SHA-256 prefix of the token, never the token itself

Example:
    >>> manager = SessionTokenManager(base_url="https://register.example.com")
    >>> token = await manager.get_token()
"""
import asyncio
import hashlib
import logging
import os
from dataclasses import dataclass
from typing import Optional

import aiohttp
from dotenv import load_dotenv

from .exceptions import (
    ConfigurationError,
    ConnectionError,
    LoginError,
    NetworkError,
    TimeoutError,
)

load_dotenv()

logger = logging.getLogger(__name__)

LOGIN_ENDPOINT = "/api/login"


def token_fingerprint(token: str) -> str:
    """Safe identifier for logging (SHA-256 hash, first 8 chars)."""
    return hashlib.sha256(token.encode()).hexdigest()[:8]


@dataclass
class CachedToken:
    """Container for a bearer token issued by the backend.

    Attributes:
        access_token: The bearer token string.
        username: Account the token was issued for.
    """
    access_token: str
    username: Optional[str] = None

    @property
    def token_id(self) -> str:
        """Get a safe identifier for logging."""
        return token_fingerprint(self.access_token)


class SessionTokenManager:
    """Logs in to the backend and caches the issued bearer token.

    Attributes:
        base_url: Backend base URL (from env: REGISTER_API_BASE_URL).
        username: Account name (from env: REGISTER_USERNAME).
        password: Account password (from env: REGISTER_PASSWORD).

    Concurrent callers share one login: refreshes are serialized with an
    asyncio.Lock and re-check the cache after acquiring it.
    """

    can_refresh = True

    def __init__(
        self,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.base_url = (base_url or os.getenv("REGISTER_API_BASE_URL", "")).rstrip("/")
        self.username = username or os.getenv("REGISTER_USERNAME")
        self.password = password or os.getenv("REGISTER_PASSWORD")

        missing = []
        if not self.base_url:
            missing.append("REGISTER_API_BASE_URL")
        if not self.username:
            missing.append("REGISTER_USERNAME")
        if not self.password:
            missing.append("REGISTER_PASSWORD")
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing_keys=missing,
            )

        self._cached_token: Optional[CachedToken] = None
        self._lock = asyncio.Lock()

    async def get_token(self) -> str:
        """Get a bearer token, logging in if none is cached.

        Raises:
            LoginError: If the backend rejects the credentials
            NetworkError: If the backend cannot be reached after retries
        """
        if self._cached_token:
            return self._cached_token.access_token

        async with self._lock:
            if self._cached_token:
                return self._cached_token.access_token

            self._cached_token = await self._login()
            return self._cached_token.access_token

    async def _login(self, max_retries: int = 3) -> CachedToken:
        """POST the credentials to the login endpoint.

        Retries transport failures with exponential backoff (1s, 2s, ...);
        a rejected login is never retried.
        """
        url = f"{self.base_url}{LOGIN_ENDPOINT}"
        payload = {"username": self.username, "password": self.password}
        last_error: Optional[Exception] = None

        for attempt in range(1, max_retries + 1):
            try:
                async with aiohttp.ClientSession() as session:
                    async with session.post(
                        url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=30),
                    ) as response:
                        if response.status in (400, 401, 403):
                            raise LoginError(
                                "Invalid username or password",
                                username=self.username,
                                status_code=response.status,
                            )

                        if response.status >= 400:
                            error_text = await response.text()
                            last_error = LoginError(
                                f"Login endpoint returned HTTP {response.status}",
                                username=self.username,
                                status_code=response.status,
                                details={"response": error_text[:200]},
                            )
                            logger.warning(
                                f"Login attempt {attempt}/{max_retries} failed: "
                                f"HTTP {response.status}"
                            )
                        else:
                            try:
                                data = await response.json(content_type=None)
                            except ValueError:
                                data = None
                            if not isinstance(data, dict):
                                raise LoginError(
                                    "Login response is not a JSON object",
                                    username=self.username,
                                    status_code=response.status,
                                )
                            access_token = data.get("token")
                            if not access_token or not isinstance(access_token, str):
                                raise LoginError(
                                    "Login response missing token",
                                    username=self.username,
                                    status_code=response.status,
                                )
                            token = CachedToken(access_token=access_token, username=self.username)
                            logger.info(f"Logged in as {self.username} (token id={token.token_id})")
                            return token

            except LoginError as e:
                if e.details.get("status_code", 0) < 500:
                    raise
                last_error = e

            except aiohttp.ClientConnectionError as e:
                last_error = ConnectionError(
                    f"Failed to connect to login endpoint: {e}",
                    host=self.base_url,
                    cause=e,
                )
                logger.warning(f"Login attempt {attempt}/{max_retries} failed: connection error")

            except asyncio.TimeoutError as e:
                last_error = TimeoutError("Login request timed out", timeout_seconds=30, cause=e)
                logger.warning(f"Login attempt {attempt}/{max_retries} failed: timeout")

            except aiohttp.ClientError as e:
                last_error = NetworkError(f"Network error during login: {e}", cause=e)
                logger.warning(f"Login attempt {attempt}/{max_retries} failed: {e}")

            if attempt < max_retries:
                await asyncio.sleep(2 ** (attempt - 1))

        if isinstance(last_error, Exception):
            raise last_error
        raise LoginError(f"Login failed after {max_retries} attempts", username=self.username)

    def invalidate(self):
        """Drop the cached token so the next call logs in again."""
        self._cached_token = None

    @property
    def token_info(self) -> Optional[dict]:
        """Debug info about the cached token (never the token itself)."""
        if not self._cached_token:
            return None
        return {
            "token_id": self._cached_token.token_id,
            "username": self._cached_token.username,
        }
