"""Wire models for the remote provisioning service."""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt

REDACTED = "***"

# Statement values that request a read-only account.
_READ_ONLY_PRIV = (None, "0", "")


class Action(StrEnum):
    ADD_USER = "AddUser"
    DELETE_USER = "VaultDelUser"


class ProvisioningRequest(BaseModel):
    """A command for the provisioning service.

    Statement fields (``priv``, ``dbname``, ``iplist``, ...) are carried
    verbatim as extra attributes next to the required ones.
    """

    model_config = ConfigDict(extra="allow")

    action: Action
    token: str
    username: str
    password: str | None = None

    @classmethod
    def build(cls, statement: dict[str, Any], **overlay: Any) -> ProvisioningRequest:
        """Merge ``overlay`` over the decoded statement. Overlay keys win."""
        return cls(**{**statement, **overlay})

    def payload(self) -> dict[str, Any]:
        """Required fields, extras, and optional fields only when given."""
        data = self.model_dump(mode="json")
        if "password" not in self.model_fields_set:
            data.pop("password", None)
        return data

    def to_json(self) -> bytes:
        return json.dumps(self.payload()).encode("utf-8")

    def redacted(self) -> dict[str, Any]:
        """Request fields safe to log."""
        data = self.payload()
        for key in ("token", "password"):
            if key in data:
                data[key] = REDACTED
        return data


class ProvisioningResponse(BaseModel):
    """Reply from the provisioning service. ``status`` 0 means success."""

    model_config = ConfigDict(extra="allow")

    status: StrictInt | StrictFloat
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.status == 0


def is_privileged(priv: Any) -> bool:
    """True when a statement's ``priv`` value asks for a read-write account."""
    if isinstance(priv, (int, float)):
        return priv != 0
    return priv not in _READ_ONLY_PRIV
