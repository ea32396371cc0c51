"""Exception hierarchy for authcore.

All exceptions inherit from :class:`AuthCoreError` so callers can catch
every library failure with a single ``except`` clause. Failures at the
transport, status, and decode layers are always raised to the caller;
the client never logs-and-swallows them and never retries on its own.

Subclass hierarchy::

    AuthCoreError
    +-- TransportError            connection refused, DNS failure, timeout
    +-- HttpStatusError           non-2xx response from the core
    +-- DecodeError               body does not match the expected shape
    |   +-- ProtocolError         version discovery body is not a version list
    +-- NoSupportedVersion        no usable CDI version was offered
    +-- CapabilityNotImplemented  no registered recipe implements a capability
    +-- RecipeError               a recipe failed to register or execute
    +-- OperationNotImplemented   operation exists but is not supported yet
    +-- ConfigError               invalid settings or credential sources
"""

from __future__ import annotations

from typing import Optional


class AuthCoreError(Exception):
    """Base exception for all authcore errors.

    Args:
        message: Human-readable error description.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(AuthCoreError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""


class HttpStatusError(AuthCoreError):
    """Raised when the core answers with a non-success HTTP status.

    Args:
        status_code: The HTTP status code returned by the core.
        body: The (possibly truncated) response text, for diagnostics.
    """

    def __init__(self, status_code: int, body: str = ""):
        detail = f"HTTP {status_code}: {body}" if body else f"HTTP {status_code}"
        super().__init__(detail)
        self.status_code = status_code
        self.body = body


class DecodeError(AuthCoreError):
    """Raised when a response body cannot be decoded into the expected shape."""


class ProtocolError(DecodeError):
    """Raised when the version discovery response is not a list of version strings."""


class NoSupportedVersion(AuthCoreError):
    """Raised when version discovery yields no version this client can use."""


class CapabilityNotImplemented(AuthCoreError):
    """Raised when no registered recipe implements the requested capability.

    Args:
        capability: The capability interface that was requested.
    """

    def __init__(self, capability: type):
        super().__init__(
            f"No registered recipe implements capability '{capability.__name__}'"
        )
        self.capability = capability


class RecipeError(AuthCoreError):
    """Raised when a recipe fails to register or its capability hook fails."""


class OperationNotImplemented(AuthCoreError, NotImplementedError):
    """Raised by operations that the client exposes but does not support yet.

    Args:
        operation: Name of the unsupported operation.
        hint: Optional extra detail appended to the message.
    """

    def __init__(self, operation: str, hint: Optional[str] = None):
        message = f"Operation '{operation}' is not implemented"
        if hint:
            message = f"{message}: {hint}"
        super().__init__(message)
        self.operation = operation


class ConfigError(AuthCoreError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""
