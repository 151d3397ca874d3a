"""
Username generation for provisioned accounts.

Generated names look like ``v-<display>-<role>-<random>-<unix time>``, are
truncated to MAX_KEY_LENGTH, upper-cased, then suffixed with the privilege
marker (``_rw`` or ``_r``).
"""

from __future__ import annotations

import secrets
import string
import time

MAX_KEY_LENGTH = 13
RANDOM_LENGTH = 20
PREFIX = "v"
SEPARATOR = "-"
READ_WRITE_SUFFIX = "rw"
READ_ONLY_SUFFIX = "r"

_ALPHABET = string.ascii_letters + string.digits


def truncate(value: str, length: int) -> str:
    """Cut ``value`` to ``length`` chars. 0 means no limit, negative yields ''."""
    if length > 0:
        return value[:length]
    if length == 0:
        return value
    return ""


def random_alphanumeric(length: int = RANDOM_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_username(display: str = "", role: str = "") -> str:
    """Build a unique, not yet truncated username. Empty parts are skipped."""
    parts = [PREFIX, display, role, random_alphanumeric(), str(int(time.time()))]
    return SEPARATOR.join(p for p in parts if p)


def make_username(privileged: bool) -> str:
    """Generate the canonical username exchanged with the provisioning service.

    No display or role name goes in: the 13-char budget is "v-" plus 11
    random characters.
    """
    base = truncate(generate_username(), MAX_KEY_LENGTH)
    suffix = READ_WRITE_SUFFIX if privileged else READ_ONLY_SUFFIX
    return f"{base.upper()}_{suffix}"
