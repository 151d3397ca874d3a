"""
Host-facing contract — request/response shapes of the database plugin protocol.

All models are plain dataclasses. The host builds the requests; the plugin
returns the responses or raises a CredentialError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


@dataclass
class Statements:
    """Host-supplied statement templates. Each command is a JSON object string."""

    commands: list[str] = field(default_factory=list)


@dataclass
class UsernameMetadata:
    display_name: str = ""
    role_name: str = ""


@dataclass
class InitializeRequest:
    config: dict[str, Any] = field(default_factory=dict)
    verify_connection: bool = False


@dataclass
class InitializeResponse:
    config: dict[str, Any] = field(default_factory=dict)


@dataclass
class NewUserRequest:
    statements: Statements = field(default_factory=Statements)
    password: str = ""
    username_config: UsernameMetadata = field(default_factory=UsernameMetadata)
    rollback_statements: Statements = field(default_factory=Statements)
    expiration: datetime | None = None


@dataclass
class NewUserResponse:
    username: str


@dataclass
class ChangePassword:
    new_password: str
    statements: Statements = field(default_factory=Statements)


@dataclass
class ChangeExpiration:
    new_expiration: datetime
    statements: Statements = field(default_factory=Statements)


@dataclass
class UpdateUserRequest:
    username: str
    password: ChangePassword | None = None
    expiration: ChangeExpiration | None = None


@dataclass
class UpdateUserResponse:
    pass


@dataclass
class DeleteUserRequest:
    username: str
    statements: Statements = field(default_factory=Statements)


@dataclass
class DeleteUserResponse:
    pass


@runtime_checkable
class Database(Protocol):
    """What the host expects from a database plugin."""

    def initialize(self, req: InitializeRequest) -> InitializeResponse: ...

    def new_user(self, req: NewUserRequest) -> NewUserResponse: ...

    def update_user(self, req: UpdateUserRequest) -> UpdateUserResponse: ...

    def delete_user(self, req: DeleteUserRequest) -> DeleteUserResponse: ...

    def type(self) -> str: ...

    def close(self) -> None: ...
