from __future__ import annotations

import os

import uvicorn

from ..config.defaults import GATEWAY_SERVICE_DEFAULT_HOST, GATEWAY_SERVICE_DEFAULT_PORT


def _parse_port(value: str | None, default: int) -> int:
    """Best-effort parse of a port from string, falling back to a sane default."""
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def main() -> None:
    """Start the development server for the gateway FastAPI app.

    - GATEWAY_SERVICE_HOST: interface to bind (default "127.0.0.1")
    - GATEWAY_SERVICE_PORT: port to bind (default 8091)
    - GATEWAY_SERVICE_RELOAD: "true" enables auto-reload (default off, since
      reload runs the app in a child process)
    """
    host = os.getenv("GATEWAY_SERVICE_HOST", GATEWAY_SERVICE_DEFAULT_HOST)
    port = _parse_port(os.getenv("GATEWAY_SERVICE_PORT"), GATEWAY_SERVICE_DEFAULT_PORT)
    reload_enabled = os.getenv("GATEWAY_SERVICE_RELOAD", "false").lower() == "true"

    uvicorn.run(
        "llm_gateway.service.app:get_app",
        factory=True,
        host=host,
        port=port,
        reload=reload_enabled,
    )


if __name__ == "__main__":
    main()
