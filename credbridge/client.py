"""
HTTP client for the remote provisioning service.

One pooled ``httpx.Client`` per plugin instance, built at initialization and
shared by every call. No retries: failures go straight back to the caller.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Any

import httpx

from credbridge.errors import TransportError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class RawResponse:
    """Status code and undecoded body of one exchange."""

    status_code: int
    body: bytes


def keepalive_socket_options(interval: float) -> list[tuple[int, int, int]]:
    """TCP keep-alive socket options for the given probe interval (seconds)."""
    options = [(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)]
    seconds = max(int(interval), 1)
    # TCP_KEEPIDLE / TCP_KEEPINTVL are not available on every platform
    if hasattr(socket, "TCP_KEEPIDLE"):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, seconds))
    if hasattr(socket, "TCP_KEEPINTVL"):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, seconds))
    return options


class ProvisioningClient:
    """Blocking JSON-over-HTTP exchange with the provisioning service."""

    def __init__(
        self,
        timeout: float,
        keep_alive: float,
        idle_conn_timeout: float,
        max_idle_conns: int,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.timeout = timeout or None  # 0 disables the timeout
        if transport is None:
            transport = httpx.HTTPTransport(
                limits=httpx.Limits(
                    max_keepalive_connections=max_idle_conns or None,
                    keepalive_expiry=idle_conn_timeout or None,
                ),
                socket_options=keepalive_socket_options(keep_alive) if keep_alive else None,
            )
        self._client = httpx.Client(timeout=httpx.Timeout(self.timeout), transport=transport)

    def post(
        self,
        url: str,
        body: bytes,
        content_type: str = JSON_CONTENT_TYPE,
        timeout: float | None = None,
    ) -> RawResponse:
        """POST ``body`` to ``url``. ``timeout`` overrides the configured one for this call."""
        extra: dict[str, Any] = {}
        if timeout is not None:
            extra["timeout"] = httpx.Timeout(timeout)
        try:
            resp = self._client.post(
                url, content=body, headers={"Content-Type": content_type}, **extra
            )
        except httpx.HTTPError as e:
            raise TransportError(f"POST {url}: {e}") from e
        logger.debug("POST %s -> %d (%d bytes)", url, resp.status_code, len(resp.content))
        return RawResponse(status_code=resp.status_code, body=resp.content)

    def close(self) -> None:
        self._client.close()

    @property
    def closed(self) -> bool:
        return self._client.is_closed
