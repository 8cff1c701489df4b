"""Gateway-wide runtime settings.

``GatewaySettings`` gathers the connection and concurrency limits. Values
come from environment variables (read once and cached) with the defaults in
``llm_gateway.config.defaults``.

Environment Variables
---------------------
- ``GATEWAY_MAX_CONCURRENT_SESSIONS`` (alias ``LLM_MAX_CONCURRENT_TASKS``)
- ``GATEWAY_UPSTREAM_CONCURRENCY``
- ``GATEWAY_OUTBOUND_QUEUE_SIZE``
- ``GATEWAY_MAX_MESSAGE_BYTES``
- ``GATEWAY_WRITE_TIMEOUT_SECONDS``
- ``GATEWAY_DISCONNECT_POLL_SECONDS``
- ``GATEWAY_CATALOG_FILE``
- ``GATEWAY_USE_MOCKS``
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from . import defaults


def _str_to_bool(val: Optional[str]) -> bool:
    if val is None:
        return False
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _env_int(names: tuple[str, ...], default: int) -> int:
    for name in names:
        raw = os.getenv(name)
        if not raw:
            continue
        try:
            val = int(raw)
        except ValueError:
            continue
        if val > 0:
            return val
    return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


@dataclass(frozen=True)
class GatewaySettings:
    """Connection, concurrency and catalog settings.

    Attributes:
        max_sessions_per_connection: Open sessions allowed on one connection.
        upstream_concurrency: Concurrent upstream calls per provider, shared
            by all connections.
        outbound_queue_size: Capacity of the queue between sessions and the
            connection writer; a full queue suspends producers.
        max_message_bytes: Largest inbound frame accepted.
        write_timeout_seconds: Longest a single write may block before the
            client is treated as gone.
        disconnect_poll_seconds: Poll interval of the single-shot disconnect probe.
        catalog_file: Catalog path override (``None`` uses the packaged catalog).
        use_mocks: Route every provider to the offline mock adapter.
    """

    max_sessions_per_connection: int = defaults.MAX_SESSIONS_PER_CONNECTION
    upstream_concurrency: int = defaults.UPSTREAM_CONCURRENCY_PER_PROVIDER
    outbound_queue_size: int = defaults.OUTBOUND_QUEUE_SIZE
    max_message_bytes: int = defaults.MAX_MESSAGE_BYTES
    write_timeout_seconds: float = defaults.WRITE_TIMEOUT_SECONDS
    disconnect_poll_seconds: float = defaults.DISCONNECT_POLL_SECONDS
    catalog_file: Optional[str] = None
    use_mocks: bool = False

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        return cls(
            max_sessions_per_connection=_env_int(
                ("GATEWAY_MAX_CONCURRENT_SESSIONS", "LLM_MAX_CONCURRENT_TASKS"),
                defaults.MAX_SESSIONS_PER_CONNECTION,
            ),
            upstream_concurrency=_env_int(
                ("GATEWAY_UPSTREAM_CONCURRENCY",), defaults.UPSTREAM_CONCURRENCY_PER_PROVIDER
            ),
            outbound_queue_size=_env_int(("GATEWAY_OUTBOUND_QUEUE_SIZE",), defaults.OUTBOUND_QUEUE_SIZE),
            max_message_bytes=_env_int(("GATEWAY_MAX_MESSAGE_BYTES",), defaults.MAX_MESSAGE_BYTES),
            write_timeout_seconds=_env_float("GATEWAY_WRITE_TIMEOUT_SECONDS", defaults.WRITE_TIMEOUT_SECONDS),
            disconnect_poll_seconds=_env_float(
                "GATEWAY_DISCONNECT_POLL_SECONDS", defaults.DISCONNECT_POLL_SECONDS
            ),
            catalog_file=os.getenv("GATEWAY_CATALOG_FILE") or None,
            use_mocks=_str_to_bool(os.getenv("GATEWAY_USE_MOCKS")),
        )


_CACHED: Optional[GatewaySettings] = None


def get_gateway_settings(refresh: bool = False) -> GatewaySettings:
    """Return process-cached settings (``refresh=True`` re-reads the env)."""
    global _CACHED  # noqa: PLW0603 - module cache
    if _CACHED is None or refresh:
        _CACHED = GatewaySettings.from_env()
    return _CACHED


__all__ = ["GatewaySettings", "get_gateway_settings"]
