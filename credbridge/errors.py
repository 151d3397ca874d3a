"""
Error hierarchy for credential operations.

Every failure surfaced to the host is a CredentialError. The subclass tells
the host which phase failed; ``operation`` and ``username`` give context.
Messages never include the bearer token or the password.
"""

from __future__ import annotations


class CredentialError(Exception):
    """Base class for all credential lifecycle failures."""

    def __init__(self, message: str, *, operation: str = "", username: str = "") -> None:
        super().__init__(message)
        self.operation = operation
        self.username = username


class ValidationError(CredentialError):
    """Request rejected before any network I/O."""


class ConfigError(ValidationError):
    """Initialization mapping could not be decoded."""


class TransportError(CredentialError):
    """Network failure, timeout, or a non-200 HTTP status."""

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
        username: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, operation=operation, username=username)
        self.status_code = status_code


class DecodeError(CredentialError):
    """Malformed JSON in a statement or in the remote response."""


class RemoteRejectedError(CredentialError):
    """The provisioning service answered with a non-zero status."""

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
        username: str = "",
        remote_error: str = "",
    ) -> None:
        super().__init__(message, operation=operation, username=username)
        self.remote_error = remote_error
