"""
RemoteMySQL — dynamic MySQL credentials provisioned through a remote HTTP service.

new_user / delete_user become a JSON POST against the provisioning service:

    {"action": "AddUser", "token": "...", "username": "V-K3J9ZQ0AB1X_rw",
     "password": "...", <create statement fields>}

The service answers ``{"status": 0}`` on success or
``{"status": <non-zero>, "error": "..."}`` on failure.

One lock per instance serializes every mutation (create, delete, update):
at most one request is in flight per plugin instance.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
import pydantic

from credbridge.config import read_token
from credbridge.contract import (
    DeleteUserRequest,
    DeleteUserResponse,
    InitializeRequest,
    InitializeResponse,
    NewUserRequest,
    NewUserResponse,
    Statements,
    UpdateUserRequest,
    UpdateUserResponse,
)
from credbridge.errors import (
    DecodeError,
    RemoteRejectedError,
    TransportError,
    ValidationError,
)
from credbridge.models import Action, ProvisioningRequest, ProvisioningResponse, is_privileged
from credbridge.producer import ConnectionProducer
from credbridge.usernames import make_username

logger = logging.getLogger(__name__)

TYPE_NAME = "mgtv_mysql"

CREATE_OP = "invoke db create user"
DELETE_OP = "delete user"


class RemoteMySQL(ConnectionProducer):
    """Database plugin whose source of truth is the provisioning service."""

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        super().__init__(transport=transport)

    def initialize(self, req: InitializeRequest) -> InitializeResponse:
        self.initialize_producer(req.config, req.verify_connection)
        return InitializeResponse(config=req.config)

    def new_user(self, req: NewUserRequest, timeout: float | None = None) -> NewUserResponse:
        """Create a user. Returns the generated, privilege-suffixed username."""
        with self._lock:
            token = read_token()
            if not token:
                raise ValidationError(
                    f"{CREATE_OP}: <new> failed: not exist mysql token", operation=CREATE_OP
                )

            statement = _single_statement(req.statements, "create_statement", CREATE_OP, "")
            username = make_username(is_privileged(statement.get("priv")))

            request = _build_request(
                statement,
                CREATE_OP,
                username,
                username=username,
                password=req.password,
                action=Action.ADD_USER,
                token=token,
            )
            self._exchange(CREATE_OP, username, request, timeout)
            logger.info("Created user %s", username)
            return NewUserResponse(username=username)

    def update_user(self, req: UpdateUserRequest) -> UpdateUserResponse:
        with self._lock:
            if req.password is not None:
                self._change_user_password(req.username, req.password.new_password)
            return UpdateUserResponse()

    def delete_user(self, req: DeleteUserRequest, timeout: float | None = None) -> DeleteUserResponse:
        """Revoke a user through the provisioning service."""
        with self._lock:
            username = req.username
            token = read_token()
            if not token:
                raise ValidationError(
                    f"{DELETE_OP}: {username} failed: not exist mysql token",
                    operation=DELETE_OP,
                    username=username,
                )

            statement = _single_statement(
                req.statements, "revocation_statement", DELETE_OP, username
            )
            request = _build_request(
                statement,
                DELETE_OP,
                username,
                action=Action.DELETE_USER,
                token=token,
                username=username,
            )
            self._exchange(DELETE_OP, username, request, timeout)
            logger.info("Deleted user %s", username)
            return DeleteUserResponse()

    def type(self) -> str:
        return TYPE_NAME

    def _change_user_password(self, username: str, password: str) -> None:
        # Rotation is not supported by the provisioning service.
        logger.debug("Password change for %s ignored", username)

    def _exchange(
        self,
        operation: str,
        username: str,
        request: ProvisioningRequest,
        timeout: float | None,
    ) -> ProvisioningResponse:
        """POST the request and interpret the reply. Caller holds the lock."""
        client = self.client
        if not self.initialized or client is None:
            raise ValidationError(
                f"{operation}: {username} failed: plugin is not initialized",
                operation=operation,
                username=username,
            )
        url = self.config.connection_url
        if not url:
            raise ValidationError(
                f"{operation}: {username} failed: connection url is not configured",
                operation=operation,
                username=username,
            )

        logger.debug("%s request body: %s", operation, request.redacted())
        try:
            raw = client.post(url, request.to_json(), timeout=timeout)
        except TransportError as e:
            raise TransportError(
                f"{operation}: {username} failed: {e}", operation=operation, username=username
            ) from e

        if raw.status_code != 200:
            raise TransportError(
                f"{operation}: {username} failed: http status code: {raw.status_code}",
                operation=operation,
                username=username,
                status_code=raw.status_code,
            )

        try:
            result = ProvisioningResponse.model_validate_json(raw.body)
        except pydantic.ValidationError as e:
            raise DecodeError(
                f"{operation}: {username} failed: invalid response: "
                f"{_describe(e)}",
                operation=operation,
                username=username,
            ) from e

        if not result.ok:
            remote_error = "" if result.error is None else str(result.error)
            raise RemoteRejectedError(
                f"{operation}: {username} failed: {remote_error or f'status {result.status}'}",
                operation=operation,
                username=username,
                remote_error=remote_error,
            )
        return result


def _single_statement(
    statements: Statements, name: str, operation: str, username: str
) -> dict[str, Any]:
    """Decode the one JSON-object statement the operation requires."""
    commands = statements.commands
    if len(commands) > 1:
        raise ValidationError(
            f"{operation}: {username or '<new>'} failed: a maximum of one {name} is supported",
            operation=operation,
            username=username,
        )
    if not commands:
        raise ValidationError(
            f"{operation}: {username or '<new>'} failed: {name} is empty",
            operation=operation,
            username=username,
        )

    try:
        decoded = json.loads(commands[0])
    except json.JSONDecodeError as e:
        raise DecodeError(
            f"{operation}: {username or '<new>'} failed: {name} is not valid JSON: {e}",
            operation=operation,
            username=username,
        ) from e
    if not isinstance(decoded, dict):
        raise DecodeError(
            f"{operation}: {username or '<new>'} failed: {name} must be a JSON object",
            operation=operation,
            username=username,
        )
    return decoded


def _build_request(
    statement: dict[str, Any], operation: str, subject: str, **overlay: Any
) -> ProvisioningRequest:
    try:
        return ProvisioningRequest.build(statement, **overlay)
    except pydantic.ValidationError as e:
        raise DecodeError(
            f"{operation}: {subject} failed: invalid request: {_describe(e)}",
            operation=operation,
            username=subject,
        ) from e


def _describe(err: pydantic.ValidationError) -> str:
    """Field locations and messages only; input values may hold secrets."""
    return "; ".join(
        f"{'.'.join(str(p) for p in item['loc']) or '<body>'}: {item['msg']}"
        for item in err.errors()
    )


__all__ = ["RemoteMySQL", "TYPE_NAME"]
