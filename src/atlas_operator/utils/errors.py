"""Operator error types and sanitization utilities to prevent information leakage."""

from __future__ import annotations

import re
from typing import Any


class OperatorError(Exception):
    """Base class for errors raised by the operator."""


class ResolutionError(OperatorError):
    """Connection configuration could not be resolved or failed validation."""


class MissingKubeProjectError(ResolutionError):
    """A projectRef points at an AtlasProject object that does not exist."""

    def __init__(self, name: str, namespace: str):
        self.name = name
        self.namespace = namespace
        super().__init__(f"referenced AtlasProject {namespace}/{name} not found")


class ObjectNotFoundError(OperatorError):
    """A Kubernetes object is absent from the cluster."""


class ConflictError(OperatorError):
    """A write raced with a newer version of the object."""


class AtlasAPIError(OperatorError):
    """The Atlas Admin API returned an error response."""

    def __init__(self, status: int, error_code: str | None = None, detail: str | None = None):
        self.status = status
        self.error_code = error_code
        self.detail = detail
        message = f"Atlas API error {status}"
        if error_code:
            message += f" ({error_code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class AtlasNotFoundError(AtlasAPIError):
    """The requested Atlas resource does not exist."""


class TokenFetchError(OperatorError):
    """An OAuth access token could not be obtained."""


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"public[_\s]?api[_\s]?key[:\s]+([a-zA-Z0-9\-]+)",
    r"private[_\s]?api[_\s]?key[:\s]+([a-zA-Z0-9\-]+)",
    r"client[_\s]?secret[:\s]+([^\s,;\)]+)",
    r"bearer\s+([A-Za-z0-9\-_\.=]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "privateapikey",
    "publicapikey",
    "clientsecret",
    "accesstoken",
    "password",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )
    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields."""
    sanitized: dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_FIELDS:
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value
    return sanitized
