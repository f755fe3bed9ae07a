"""
Error Message Sanitization for register API responses.

Errors raised while talking to the register backend can carry the backend's
base URL, the caller's bearer token, login payloads, file paths and raw
response bodies. Everything returned to an API caller passes through here
first; the unsanitized message is only ever logged.

Usage:
    from src.darb.api.error_sanitizer import sanitize_error_message

    try:
        report = await use_case.execute(station_id)
    except RegisterError as e:
        logger.error(f"Report failed: {e}")
        raise HTTPException(502, sanitize_error_message(str(e), "Backend error"))

What Gets Sanitized
-------------------
    - Bearer tokens and Authorization headers -> Bearer [REDACTED]
    - token=/password=/username= key-value pairs -> key=[REDACTED]
    - URLs with embedded credentials -> [URL_WITH_CREDENTIALS]
    - REGISTER_* environment variable names -> [ENV_VAR]
    - Absolute file paths -> [FILE_PATH]
    - Python stack traces -> [STACK_TRACE]
    - IPv4 addresses -> [IP_ADDRESS]
    - JWTs, long hex and base64 blobs -> [TOKEN_REDACTED]
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass
class SanitizationResult:
    """Result of error message sanitization.

    Attributes:
        sanitized_message: Message safe to return to a client
        redaction_count: Number of redactions made
    """

    sanitized_message: str
    redaction_count: int

    @property
    def was_sanitized(self) -> bool:
        return self.redaction_count > 0


class ErrorSanitizer:
    """Redacts credentials and internals from error messages.

    Attributes:
        patterns: List of (regex_pattern, replacement) tuples
        max_message_length: Maximum length of sanitized messages
    """

    # Order matters: URL and header patterns run before the generic key=value ones
    DEFAULT_PATTERNS: list[tuple[str, str]] = [
        (r'https?://[^\s/:@]+:[^\s/@]+@[^\s]+', '[URL_WITH_CREDENTIALS]'),

        (r'bearer\s+[A-Za-z0-9_\-\.=]+', 'Bearer [REDACTED]'),
        (r'authorization[:\s]+[^\s\n]+', 'Authorization: [REDACTED]'),
        (r'"?token"?\s*[=:]\s*"?[^\s\n,;"}]+"?', 'token=[REDACTED]'),
        (r'"?password"?\s*[=:]\s*"?[^\s\n,;"}]+"?', 'password=[REDACTED]'),
        (r'session[-_]?id[=:\s]+[^\s\n,;]+', 'session_id=[REDACTED]'),

        (r'\bREGISTER_(?:API_BASE_URL|USERNAME|PASSWORD)\b', '[ENV_VAR]'),

        (r'Traceback \(most recent call last\):[\s\S]*?(?=\n\n|\n[A-Z]|\Z)', '[STACK_TRACE]'),
        (r'File "([^"]+)", line \d+', 'File "[REDACTED]", line [REDACTED]'),
        (r'/(?:home|root|usr|var|etc|opt|srv|tmp)/[^\s\n,;]+', '[FILE_PATH]'),
        (r'[A-Z]:\\[^\s\n,;]+', '[FILE_PATH]'),

        (r'\b(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\b', '[IP_ADDRESS]'),

        (r'\beyJ[A-Za-z0-9_-]*\.eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]+\b', '[TOKEN_REDACTED]'),
        (r'\b[0-9a-fA-F]{32,}\b', '[TOKEN_REDACTED]'),
        (r'\b[A-Za-z0-9+/]{40,}={0,2}', '[TOKEN_REDACTED]'),
    ]

    def __init__(
        self,
        patterns: Optional[list[tuple[str, str]]] = None,
        max_message_length: int = 300,
    ):
        self.patterns = list(patterns or self.DEFAULT_PATTERNS)
        self.max_message_length = max_message_length
        self._compiled_patterns = [
            (re.compile(pattern, re.IGNORECASE), replacement)
            for pattern, replacement in self.patterns
        ]

    def sanitize(self, message: str, error_type: Optional[str] = None) -> SanitizationResult:
        """Sanitize an error message for client exposure.

        Args:
            message: Raw error message
            error_type: Optional prefix such as "Backend error"
        """
        if not message:
            return SanitizationResult(sanitized_message="An error occurred", redaction_count=0)

        sanitized = message
        redaction_count = 0

        for pattern, replacement in self._compiled_patterns:
            sanitized, count = pattern.subn(replacement, sanitized)
            redaction_count += count

        if len(sanitized) > self.max_message_length:
            sanitized = sanitized[: self.max_message_length] + "... [TRUNCATED]"

        if not sanitized.strip():
            sanitized = "An error occurred"

        if error_type and not sanitized.startswith(error_type):
            sanitized = f"{error_type}: {sanitized}"

        return SanitizationResult(sanitized_message=sanitized, redaction_count=redaction_count)

    def is_safe(self, message: str) -> bool:
        """True when no pattern would redact anything in message."""
        return not any(pattern.search(message) for pattern, _ in self._compiled_patterns)


_default_sanitizer: Optional[ErrorSanitizer] = None


def get_sanitizer() -> ErrorSanitizer:
    """Get the shared sanitizer instance."""
    global _default_sanitizer
    if _default_sanitizer is None:
        _default_sanitizer = ErrorSanitizer()
    return _default_sanitizer


def sanitize_error_message(
    message: str,
    error_type: Optional[str] = None,
) -> str:
    """Sanitize a message with the shared sanitizer.

    Example:
        >>> sanitize_error_message("Login failed: password=hunter2")
        'Login failed: password=[REDACTED]'
        >>> sanitize_error_message("REGISTER_API_BASE_URL is not set", "Configuration error")
        'Configuration error: [ENV_VAR] is not set'
    """
    return get_sanitizer().sanitize(message, error_type).sanitized_message
