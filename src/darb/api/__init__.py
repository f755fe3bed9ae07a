"""Asset Register backend access.

Classes:
    RegisterClient: HTTP client with retry, re-login, and circuit breaker
    SessionTokenManager: Username/password login with token caching

Exceptions:
    RegisterError: Base exception for all register client errors
    ConfigurationError: Missing or invalid configuration
    AuthenticationError: Login, 401 and 403 failures
    APIError: Non-2xx backend responses
    NetworkError: Network connectivity issues
    CircuitOpenError: Backend circuit breaker is open

Resilience:
    CircuitBreaker: Stop calling a backend that keeps failing
    process_concurrent: Bounded concurrent fan-out
"""
from .auth import CachedToken, SessionTokenManager, token_fingerprint
from .client import RegisterClient
from .error_sanitizer import ErrorSanitizer, sanitize_error_message
from .exceptions import (
    APIError,
    AuthenticationError,
    CircuitOpenError,
    ConfigurationError,
    ConnectionError,
    ForbiddenError,
    LoginError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RegisterError,
    ServerError,
    TimeoutError,
    UnauthorizedError,
    ValidationError,
)
from .resilience import CircuitBreaker, CircuitState, process_concurrent

__all__ = [
    # Client
    "RegisterClient",
    # Auth
    "SessionTokenManager",
    "CachedToken",
    "token_fingerprint",
    # Sanitization
    "ErrorSanitizer",
    "sanitize_error_message",
    # Exceptions
    "RegisterError",
    "ConfigurationError",
    "AuthenticationError",
    "LoginError",
    "UnauthorizedError",
    "ForbiddenError",
    "APIError",
    "RateLimitError",
    "NotFoundError",
    "ValidationError",
    "ServerError",
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    "CircuitOpenError",
    # Resilience
    "CircuitBreaker",
    "CircuitState",
    "process_concurrent",
]
