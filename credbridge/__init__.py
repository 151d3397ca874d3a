"""
credbridge — dynamic database credentials delegated to a remote provisioning service.

Usage:
    import credbridge
    from credbridge.contract import InitializeRequest, NewUserRequest, Statements

    db = credbridge.new()
    db.initialize(InitializeRequest(config={"connection_url": "https://prov/api"}))
    resp = db.new_user(NewUserRequest(statements=Statements(['{"priv": 1}']), password="pw"))
    print(resp.username)    # "V-K3J9ZQ0AB1X_rw"
"""

from __future__ import annotations

from credbridge.errors import (
    ConfigError,
    CredentialError,
    DecodeError,
    RemoteRejectedError,
    TransportError,
    ValidationError,
)

__version__ = "0.1.0"


def new():
    """Build a RemoteMySQL plugin wrapped in the error-sanitizing middleware."""
    from credbridge.middleware import ErrorSanitizerMiddleware
    from credbridge.orchestrator import RemoteMySQL

    db = RemoteMySQL()
    return ErrorSanitizerMiddleware(db, db.secret_values)


__all__ = [
    "ConfigError",
    "CredentialError",
    "DecodeError",
    "RemoteRejectedError",
    "TransportError",
    "ValidationError",
    "__version__",
    "new",
]
