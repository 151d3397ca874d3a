"""
Error-sanitizing wrapper for database plugins.

Any CredentialError raised by the wrapped plugin is re-raised with every
secret value replaced by its placeholder. The exception type and its
context attributes are preserved; the unsanitized original is not chained.
"""

from __future__ import annotations

import copy
import functools
from collections.abc import Callable
from typing import Any

from credbridge.contract import (
    Database,
    DeleteUserRequest,
    DeleteUserResponse,
    InitializeRequest,
    InitializeResponse,
    NewUserRequest,
    NewUserResponse,
    UpdateUserRequest,
    UpdateUserResponse,
)
from credbridge.errors import CredentialError


def sanitize(message: str, secrets: dict[str, str]) -> str:
    """Replace every secret value in ``message`` with its placeholder."""
    # Longest first so a secret containing another is replaced whole.
    for value in sorted(secrets, key=len, reverse=True):
        if value:
            message = message.replace(value, secrets[value])
    return message


def _sanitized(method: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(method)
    def wrapper(self: ErrorSanitizerMiddleware, *args: Any, **kwargs: Any) -> Any:
        try:
            return method(self, *args, **kwargs)
        except CredentialError as e:
            raise self.sanitize_error(e) from None

    return wrapper


class ErrorSanitizerMiddleware:
    """Wrap a Database so errors never carry secret values."""

    def __init__(self, database: Database, secrets_fn: Callable[[], dict[str, str]]) -> None:
        self.database = database
        self.secrets_fn = secrets_fn

    def sanitize_error(self, err: CredentialError) -> CredentialError:
        secrets = self.secrets_fn()
        message = sanitize(str(err), secrets)
        clean = copy.copy(err)
        clean.args = (message,)
        for name, value in vars(clean).items():
            if isinstance(value, str):
                setattr(clean, name, sanitize(value, secrets))
        clean.__cause__ = None
        clean.__context__ = None
        clean.__traceback__ = None
        return clean

    @_sanitized
    def initialize(self, req: InitializeRequest) -> InitializeResponse:
        return self.database.initialize(req)

    @_sanitized
    def new_user(self, req: NewUserRequest, **kwargs: Any) -> NewUserResponse:
        return self.database.new_user(req, **kwargs)

    @_sanitized
    def update_user(self, req: UpdateUserRequest) -> UpdateUserResponse:
        return self.database.update_user(req)

    @_sanitized
    def delete_user(self, req: DeleteUserRequest, **kwargs: Any) -> DeleteUserResponse:
        return self.database.delete_user(req, **kwargs)

    def type(self) -> str:
        return self.database.type()

    @_sanitized
    def close(self) -> None:
        self.database.close()
