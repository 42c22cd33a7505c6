# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error message sanitization utilities.

Health verdicts carry the cause of a failure in their details, and those
details are served to whoever calls the health endpoint. Broker exceptions
can echo SASL settings or bootstrap strings with embedded credentials, so
every error that reaches a health result or a log line passes through here.

Example:
    >>> from kafka_health_probe.utils import sanitize_error_message
    >>> try:
    ...     raise ValueError("SASL handshake failed: sasl_password=secret123")
    ... except Exception as e:
    ...     safe_msg = sanitize_error_message(e)
    >>> "secret123" not in safe_msg
    True
"""

from __future__ import annotations

# Patterns that may indicate sensitive data in error messages.
# These patterns are checked case-insensitively against the error message.
SENSITIVE_PATTERNS: tuple[str, ...] = (
    # Credentials
    "password",
    "passwd",
    "pwd",
    # Secrets and keys
    "secret",
    "token",
    "api_key",
    "apikey",
    "api-key",
    "private_key",
    "privatekey",
    "private-key",
    # Authentication
    "credential",
    "bearer",
    "authorization",
    "sasl_plain_username",
    "sasl_plain_password",
    "sasl.jaas.config",
    "ssl_password",
    # Common credential parameter names
    "user:pass",
    "username:password",
    # Certificate and key material
    "-----begin",
    "-----end",
    # Broker URI schemes (often contain credentials)
    "kafka://",
    "sasl_ssl://",
    "sasl_plaintext://",
)


def sanitize_error_string(error_str: str, max_length: int = 500) -> str:
    """Sanitize a raw error string for safe inclusion in logs and responses.

    Sanitization rules:
        1. Check for common patterns indicating credentials/connection strings
        2. If sensitive patterns detected, return generic redacted message
        3. Truncate long messages to prevent excessive data exposure

    Args:
        error_str: The error string to sanitize
        max_length: Maximum length of the sanitized message (default 500)

    Returns:
        Sanitized error message safe for storage and logging.
    """
    if not error_str:
        return ""

    error_lower = error_str.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in error_lower:
            return "[REDACTED - potentially sensitive data]"

    if len(error_str) > max_length:
        return error_str[:max_length] + "... [truncated]"

    return error_str


def sanitize_error_message(exception: BaseException, max_length: int = 500) -> str:
    """Sanitize an exception message for safe inclusion in health details.

    Args:
        exception: The exception to sanitize
        max_length: Maximum length of the sanitized message (default 500)

    Returns:
        Sanitized error message, formatted as "{ExceptionType}: {message}".
        Only the exception type is kept when the message looks sensitive.

    Example:
        >>> sanitize_error_message(TimeoutError("no ack after 2.5s"))
        'TimeoutError: no ack after 2.5s'
    """
    exception_type = type(exception).__name__
    exception_str = str(exception)

    exception_lower = exception_str.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in exception_lower:
            return f"{exception_type}: [REDACTED - potentially sensitive data]"

    if len(exception_str) > max_length:
        exception_str = exception_str[:max_length] + "... [truncated]"

    if not exception_str:
        return exception_type

    return f"{exception_type}: {exception_str}"


def sanitize_bootstrap_servers(servers: str) -> str:
    """Strip credentials from a bootstrap servers string.

    Example:
        >>> sanitize_bootstrap_servers("user:pass@kafka:9092,kafka2:9092")
        'kafka:9092,kafka2:9092'
    """
    if not servers:
        return "unknown"

    sanitized = []
    for server in (s.strip() for s in servers.split(",")):
        if "@" in server:
            server = server.split("@", 1)[1]
        sanitized.append(server)

    return ",".join(sanitized)


__all__: list[str] = [
    "SENSITIVE_PATTERNS",
    "sanitize_bootstrap_servers",
    "sanitize_error_message",
    "sanitize_error_string",
]
