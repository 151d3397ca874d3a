"""
Connection producer — configuration, HTTP pool and the serializing lock.

There is no database connection behind this producer: every credential
operation is delegated to the provisioning service, so ``connection()`` and
``close()`` have nothing to do.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import httpx

from credbridge.client import ProvisioningClient
from credbridge.config import ConnectionConfig, read_token

logger = logging.getLogger(__name__)


class ConnectionProducer:
    """Holds the decoded connection config and the shared HTTP client."""

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        self.config = ConnectionConfig()
        self.raw_config: dict[str, Any] = {}
        self.initialized = False
        self._client: ProvisioningClient | None = None
        self._transport = transport
        self._lock = threading.Lock()

    def init(self, config: dict[str, Any], verify_connection: bool = False) -> dict[str, Any]:
        """Decode the initialization mapping. Returns it unchanged."""
        with self._lock:
            self.raw_config = dict(config)
            self.config = ConnectionConfig.from_mapping(self.raw_config)
            if verify_connection:
                logger.debug("verify_connection requested; no live check is performed")
            self.initialized = True
            return config

    def init_client(self) -> None:
        """(Re)build the pooled HTTP client from the current config."""
        with self._lock:
            previous = self._client
            self._client = ProvisioningClient(
                timeout=self.config.timeout,
                keep_alive=self.config.keep_alive,
                idle_conn_timeout=self.config.idle_conn_timeout,
                max_idle_conns=self.config.max_idle_conns,
                transport=self._transport,
            )
        if previous is not None:
            previous.close()
        logger.info(
            "Provisioning client ready: url=%s timeout=%ss max_idle_conns=%d",
            self.config.connection_url or "<unset>",
            self.config.timeout,
            self.config.max_idle_conns,
        )

    def initialize_producer(self, config: dict[str, Any], verify_connection: bool = False) -> dict[str, Any]:
        saved = self.init(config, verify_connection)
        self.init_client()
        return saved

    @property
    def client(self) -> ProvisioningClient | None:
        return self._client

    def close_client(self) -> None:
        """Release the HTTP pool. The host-facing close() stays a no-op."""
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            client.close()

    def secret_values(self) -> dict[str, str]:
        """Secret value -> placeholder, for error sanitizing."""
        token = read_token()
        return {token: "[mysql_token]"} if token else {}

    def connection(self) -> None:
        return None

    def close(self) -> None:
        return None
