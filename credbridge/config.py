"""
Configuration for the credential bridge.

Two layers:

* ``Settings``: process-level defaults from environment variables
  (``get_config()`` singleton, same pattern as every other env-driven config).
* ``ConnectionConfig``: the host-supplied initialization mapping, decoded with
  weak typing and layered over ``Settings``.

Precedence rules:

* URL: an explicit ``connection_url`` in the mapping wins; ``$vault_mysql_db``
  is the fallback. Setting ``CREDBRIDGE_URL_FROM_ENV=1`` makes the environment
  win unconditionally (legacy behavior).
* Token: only ever read from ``$mysql_token``, on every call, never cached.
* Tuning: mapping > environment > built-in defaults. Durations are seconds.

Usage:
    from credbridge.config import ConnectionConfig, get_config, read_token

    cfg = ConnectionConfig.from_mapping({"timeout": "10"}, get_config())
    token = read_token()
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from credbridge.errors import ConfigError

logger = logging.getLogger(__name__)

TOKEN_ENV = "mysql_token"
URL_ENV = "vault_mysql_db"
URL_FROM_ENV_FLAG = "CREDBRIDGE_URL_FROM_ENV"

DEFAULT_TIMEOUT = 20.0
DEFAULT_KEEP_ALIVE = 30.0
DEFAULT_IDLE_CONN_TIMEOUT = 90.0
DEFAULT_MAX_IDLE_CONNS = 100


@dataclass(frozen=True)
class Settings:
    """Process-level defaults from environment variables."""

    timeout: float = DEFAULT_TIMEOUT
    keep_alive: float = DEFAULT_KEEP_ALIVE
    idle_conn_timeout: float = DEFAULT_IDLE_CONN_TIMEOUT
    max_idle_conns: int = DEFAULT_MAX_IDLE_CONNS
    log_level: str = "INFO"
    url_from_env: bool = False


@dataclass(frozen=True)
class ConnectionConfig:
    """Immutable connection parameters for the provisioning service."""

    connection_url: str = ""
    timeout: float = DEFAULT_TIMEOUT
    keep_alive: float = DEFAULT_KEEP_ALIVE
    idle_conn_timeout: float = DEFAULT_IDLE_CONN_TIMEOUT
    max_idle_conns: int = DEFAULT_MAX_IDLE_CONNS

    @classmethod
    def from_mapping(
        cls, raw: Mapping[str, Any] | None, settings: Settings | None = None
    ) -> ConnectionConfig:
        """Decode a host initialization mapping.

        Numbers and numeric strings are accepted for every tuning field.
        Unknown keys are ignored.
        """
        raw = raw or {}
        settings = settings or get_config()

        explicit_url = raw.get("connection_url") or ""
        if not isinstance(explicit_url, str):
            raise ConfigError(f"connection_url must be a string, got {type(explicit_url).__name__}")

        return cls(
            connection_url=resolve_url(explicit_url, settings),
            timeout=_seconds(raw, "timeout", settings.timeout),
            keep_alive=_seconds(raw, "keep_alive", settings.keep_alive),
            idle_conn_timeout=_seconds(raw, "idle_conn_timeout", settings.idle_conn_timeout),
            max_idle_conns=_count(raw, "max_idle_conns", settings.max_idle_conns),
        )


def resolve_url(explicit: str, settings: Settings | None = None) -> str:
    """Apply the URL precedence rule between the mapping and ``$vault_mysql_db``."""
    settings = settings or get_config()
    from_env = os.environ.get(URL_ENV, "")

    if settings.url_from_env:
        if explicit and from_env and explicit != from_env:
            logger.warning(
                "connection_url %s ignored: %s=1 forces $%s (%s)",
                explicit,
                URL_FROM_ENV_FLAG,
                URL_ENV,
                from_env,
            )
        return from_env or explicit

    if explicit and from_env and explicit != from_env:
        logger.warning(
            "connection_url %s differs from $%s (%s); using the explicit value",
            explicit,
            URL_ENV,
            from_env,
        )
    return explicit or from_env


def read_token() -> str:
    """Read the shared bearer token. Empty string when unset."""
    return os.environ.get(TOKEN_ENV, "")


def _number(value: Any, key: str) -> float:
    number: float | None = None
    if isinstance(value, (int, float, str)):
        try:
            number = float(value.strip() if isinstance(value, str) else value)
        except (ValueError, OverflowError):
            pass
    if number is None or not math.isfinite(number):
        raise ConfigError(f"{key}: cannot decode {value!r} as a finite number")
    return number


def _seconds(raw: Mapping[str, Any], key: str, default: float) -> float:
    if raw.get(key) in (None, ""):
        return default
    value = _number(raw[key], key)
    if value < 0:
        raise ConfigError(f"{key} must not be negative, got {value}")
    return value


def _count(raw: Mapping[str, Any], key: str, default: int) -> int:
    if raw.get(key) in (None, ""):
        return default
    value = _number(raw[key], key)
    if value < 0 or value != int(value):
        raise ConfigError(f"{key} must be a non-negative integer, got {raw[key]!r}")
    return int(value)


# Singleton
_config: Settings | None = None


def get_config() -> Settings:
    """Get or create the singleton settings from environment variables."""
    global _config
    if _config is not None:
        return _config
    _config = _load_from_env()
    return _config


def _load_from_env() -> Settings:
    """Load settings from environment variables."""
    env: dict[str, Any] = {
        "timeout": os.environ.get("CREDBRIDGE_TIMEOUT", ""),
        "keep_alive": os.environ.get("CREDBRIDGE_KEEP_ALIVE", ""),
        "idle_conn_timeout": os.environ.get("CREDBRIDGE_IDLE_CONN_TIMEOUT", ""),
        "max_idle_conns": os.environ.get("CREDBRIDGE_MAX_IDLE_CONNS", ""),
    }
    return Settings(
        timeout=_seconds(env, "timeout", DEFAULT_TIMEOUT),
        keep_alive=_seconds(env, "keep_alive", DEFAULT_KEEP_ALIVE),
        idle_conn_timeout=_seconds(env, "idle_conn_timeout", DEFAULT_IDLE_CONN_TIMEOUT),
        max_idle_conns=_count(env, "max_idle_conns", DEFAULT_MAX_IDLE_CONNS),
        log_level=os.environ.get("CREDBRIDGE_LOG_LEVEL", "INFO").upper(),
        url_from_env=os.environ.get(URL_FROM_ENV_FLAG, "") in ("1", "true", "yes"),
    )


def reset_config() -> None:
    """Reset the singleton settings (for testing)."""
    global _config
    _config = None
