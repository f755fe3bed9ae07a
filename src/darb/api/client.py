#!/usr/bin/env python3
"""Async HTTP client for the Asset Register REST backend.

This module provides a reusable HTTP client that handles the common concerns
of talking to the register backend:

    - Bearer authentication, either from a SessionTokenManager (CLI) or a
      per-request token forwarded from an API caller
    - Automatic re-login on 401 when the token source can refresh
    - Rate limit handling on 429 and exponential backoff on 5xx/network errors
    - Connection pooling via a shared aiohttp session
    - Circuit breaker for resilience against backend outages
    - Typed exceptions for every failure mode

Design Philosophy:
    This client knows HOW to talk to the backend, but not WHAT to fetch.
    Knowledge of stations, assets, and batches lives in BackendRepository.

Usage:
    async with RegisterClient(token_manager=SessionTokenManager()) as client:
        pumps = await client.get("/api/pumps")
        assets = await client.get("/api/assets", params={"pump_id": 5})

    # Forwarding a caller's token on a shared client
    me = await client.get("/api/me", token=bearer_token)
"""
import asyncio
import logging
import os
from typing import Any, Optional

import aiohttp

from .exceptions import (
    APIError,
    ConfigurationError,
    ConnectionError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TimeoutError,
    UnauthorizedError,
    ValidationError,
)
from .resilience import CircuitBreaker

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0


class RegisterClient:
    """Async HTTP client for the Asset Register backend.

    Designed to be used as an async context manager so the session is always
    closed:

        async with RegisterClient() as client:
            data = await client.get("/api/pumps")

    Attributes:
        base_url: Backend base URL (e.g., "https://register.example.com")
        token_manager: Optional token source used when no per-request token
            is given. Must provide ``get_token()``, ``invalidate()`` and
            ``can_refresh``.
        timeout_seconds: Total request timeout
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_manager=None,
        timeout_seconds: Optional[float] = None,
        enable_circuit_breaker: bool = True,
        circuit_failure_threshold: int = 5,
        circuit_timeout: float = 60.0,
    ):
        """Initialize the RegisterClient.

        Raises:
            ConfigurationError: If base_url is not provided and
                REGISTER_API_BASE_URL is not set.
        """
        self.base_url = (base_url or os.getenv("REGISTER_API_BASE_URL", "")).rstrip("/")
        if not self.base_url:
            raise ConfigurationError(
                "Base URL is required. Provide base_url parameter or set "
                "REGISTER_API_BASE_URL environment variable.",
                missing_keys=["REGISTER_API_BASE_URL"],
            )

        self.token_manager = token_manager
        self.timeout_seconds = timeout_seconds or float(
            os.getenv("REGISTER_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
        )

        self._session: Optional[aiohttp.ClientSession] = None

        self._circuit_breaker: Optional[CircuitBreaker] = None
        if enable_circuit_breaker:
            self._circuit_breaker = CircuitBreaker(
                failure_threshold=circuit_failure_threshold,
                timeout=circuit_timeout,
                name="register_api",
            )

    # ----------------------------------------
    # Context Manager Protocol
    # ----------------------------------------

    async def __aenter__(self) -> "RegisterClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def open(self):
        """Create the HTTP session (idempotent)."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=10, limit_per_host=10),
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds, connect=10),
            )

    async def close(self):
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    # ----------------------------------------
    # Low-Level Request Methods
    # ----------------------------------------

    async def _get_auth_headers(self, token: Optional[str] = None) -> dict[str, str]:
        """Build request headers, preferring an explicit per-request token."""
        headers = {"Accept": "application/json"}
        if token is None and self.token_manager is not None:
            token = await self.token_manager.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
        token: Optional[str] = None,
    ) -> Any:
        """Make a single HTTP request (no retry logic).

        Returns:
            Parsed JSON body, the raw text when the body is not JSON, or
            None for an empty body.

        Raises:
            APIError / AuthenticationError subclasses for non-2xx responses
            RuntimeError: If called before the session is opened
            ConnectionError: If connection to server fails
            TimeoutError: If request times out
        """
        if not self._session:
            raise RuntimeError(
                "RegisterClient must be used as async context manager: "
                "async with RegisterClient(...) as client:"
            )

        url = f"{self.base_url}{endpoint}"

        try:
            headers = await self._get_auth_headers(token)

            async with self._session.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                json=json_body,
            ) as response:
                if response.status >= 400:
                    error_text = await response.text()
                    raise self._create_api_error(
                        status=response.status,
                        method=method,
                        endpoint=endpoint,
                        response_body=error_text,
                        retry_after=response.headers.get("Retry-After"),
                    )

                body = await response.text()
                if not body:
                    return None
                if "json" in (response.content_type or ""):
                    return await response.json(content_type=None)
                return body

        except aiohttp.ClientConnectionError as e:
            raise ConnectionError(
                f"Failed to connect to {self.base_url}",
                host=self.base_url,
                cause=e,
            )

        except asyncio.TimeoutError as e:
            raise TimeoutError(
                f"Request to {endpoint} timed out",
                timeout_seconds=self.timeout_seconds,
                cause=e,
            )

        except aiohttp.ClientError as e:
            raise NetworkError(
                f"Network error during {method} {endpoint}: {e}",
                cause=e,
            )

    def _create_api_error(
        self,
        status: int,
        method: str,
        endpoint: str,
        response_body: str,
        retry_after: Optional[str] = None,
    ) -> Exception:
        """Create the exception matching a non-2xx status code."""
        if status == 401:
            return UnauthorizedError(details={"endpoint": endpoint})

        if status == 403:
            return ForbiddenError(
                f"{method} {endpoint} is not permitted for this account",
                details={"endpoint": endpoint},
            )

        if status == 404:
            return NotFoundError(
                resource_type="Resource",
                resource_id=endpoint,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        if status == 429:
            try:
                wait = int(retry_after) if retry_after else None
            except ValueError:
                wait = None
            return RateLimitError(
                f"Rate limit exceeded for {endpoint}",
                retry_after=wait,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        if status in (400, 422):
            return ValidationError(
                f"Validation failed for {method} {endpoint}",
                status_code=status,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        if status >= 500:
            return ServerError(
                f"Server error ({status}) for {method} {endpoint}",
                status_code=status,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        return APIError(
            f"{method} {endpoint} failed",
            status_code=status,
            endpoint=endpoint,
            method=method,
            response_body=response_body,
        )

    async def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
        token: Optional[str] = None,
        max_retries: int = 3,
    ) -> Any:
        """Make an HTTP request with automatic retry and circuit breaker.

            - Circuit breaker: Fail fast if the backend is down
            - 401: Invalidate and re-login when the token source can refresh
            - 429: Wait for Retry-After, retry
            - 5xx and network errors: Exponential backoff retry
            - 403, 404, 400/422: Fail immediately

        Raises:
            CircuitOpenError: If circuit breaker is open
            UnauthorizedError: If the token is rejected and cannot be refreshed
            APIError: If request fails after all retries
            NetworkError: If network error persists after retries
        """
        if self._circuit_breaker:
            await self._circuit_breaker.before_call()

        can_refresh = (
            token is None
            and self.token_manager is not None
            and getattr(self.token_manager, "can_refresh", False)
        )

        last_error: Optional[Exception] = None
        backoff_delay = 1.0

        for attempt in range(1, max_retries + 1):
            try:
                result = await self._request(method, endpoint, params, json_body, token)

                if self._circuit_breaker:
                    await self._circuit_breaker.record_success()

                return result

            except UnauthorizedError as e:
                if not can_refresh or attempt == max_retries:
                    raise
                last_error = e
                logger.warning(f"Session token rejected, logging in again (attempt {attempt})")
                self.token_manager.invalidate()
                continue

            except RateLimitError as e:
                last_error = e
                if attempt == max_retries:
                    break
                logger.warning(
                    f"Rate limited, waiting {e.retry_after}s (attempt {attempt}/{max_retries})"
                )
                await asyncio.sleep(e.retry_after)
                continue

            except (ServerError, NetworkError) as e:
                last_error = e
                if attempt < max_retries:
                    logger.warning(
                        f"{e.code} on {method} {endpoint}, retrying in {backoff_delay}s "
                        f"(attempt {attempt}/{max_retries})"
                    )
                    await asyncio.sleep(backoff_delay)
                    backoff_delay = min(backoff_delay * 2, 60.0)
                    continue

                if self._circuit_breaker:
                    await self._circuit_breaker.record_failure(e)
                raise

            except (ForbiddenError, NotFoundError, ValidationError):
                raise

            except APIError as e:
                if self._circuit_breaker and e.recoverable:
                    await self._circuit_breaker.record_failure(e)
                raise

        if self._circuit_breaker and last_error:
            await self._circuit_breaker.record_failure(last_error)

        if last_error:
            raise last_error

        raise APIError(
            "Request failed after all retries",
            status_code=0,
            endpoint=endpoint,
            method=method,
        )

    @property
    def circuit_status(self) -> Optional[dict[str, Any]]:
        """Get circuit breaker status for monitoring."""
        if self._circuit_breaker:
            return self._circuit_breaker.get_status()
        return None

    # ----------------------------------------
    # High-Level Request Methods
    # ----------------------------------------

    async def get(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        token: Optional[str] = None,
    ) -> Any:
        """Make a GET request."""
        return await self._request_with_retry("GET", endpoint, params=params, token=token)

    async def post(
        self,
        endpoint: str,
        json_body: dict,
        token: Optional[str] = None,
    ) -> Any:
        """Make a POST request with a JSON body."""
        return await self._request_with_retry("POST", endpoint, json_body=json_body, token=token)

    async def put(
        self,
        endpoint: str,
        json_body: dict,
        token: Optional[str] = None,
    ) -> Any:
        """Make a PUT request with a JSON body."""
        return await self._request_with_retry("PUT", endpoint, json_body=json_body, token=token)

    async def delete(
        self,
        endpoint: str,
        token: Optional[str] = None,
    ) -> Any:
        """Make a DELETE request."""
        return await self._request_with_retry("DELETE", endpoint, token=token)
