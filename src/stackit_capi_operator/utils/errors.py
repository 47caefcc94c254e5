"""Error taxonomy and sanitization utilities."""

from __future__ import annotations

import re
from typing import Any


class ReconcileError(Exception):
    """Base class for errors raised while reconciling an object."""


class NotFoundError(ReconcileError):
    """An object does not exist in the store that was asked for it."""

    def __init__(self, kind: str, identity: Any, message: str | None = None):
        self.kind = kind
        self.identity = identity
        super().__init__(message or f"{kind} {identity} not found")


class ConfigurationError(ReconcileError):
    """The declared state is wrong and needs a human to fix it."""


class SecretNotFoundError(ConfigurationError):
    """The referenced credential secret does not exist."""

    def __init__(self, identity: Any):
        self.identity = identity
        super().__init__(f"the STACKIT secret {identity} does not exist")


class InvalidTokenError(ConfigurationError):
    """The credential secret holds no usable token."""


class TransientError(ReconcileError):
    """The store or network failed; the pass should be retried with backoff."""


class ConflictError(TransientError):
    """An optimistic-concurrency check rejected a write."""


class AlreadyOwnedError(ReconcileError):
    """Another controller already holds the controller reference on an object."""


class ProviderClientError(ReconcileError):
    """The STACKIT API client could not be constructed."""


class ReconcileCancelledError(ReconcileError):
    """The reconcile pass was cancelled before it finished."""


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"bearer\s+([A-Za-z0-9\-\._~\+/]+=*)",
    r"authorization[:\s]+([^\s,;\)]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "token",
    "password",
    "secret",
    "credentials",
    "authorization",
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
        sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

    # Redact "<field>=value" pairs
    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\b{field}\s*=\s*([^\s,;\)]+)",
            f"{field}=[REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(str(error))

