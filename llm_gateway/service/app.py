"""
FastAPI surface for the LLM gateway.

Routes
------
- ``GET /api/health``: liveness probe.
- ``GET /api/providers``: configured status per provider tag.
- ``GET /api/models``: catalog descriptors with an ``available`` flag,
  optionally filtered by ``provider``.
- ``GET /api/models/{model_id}``: one descriptor (404 ``UnknownModel``).
- ``POST /api/chat/stream``: one chat request streamed as Server-Sent Events.
- ``WS /ws``: persistent connection multiplexing many chat requests.

The process-wide :class:`Gateway` lives on ``app.state.gateway``; tests
inject their own through ``create_app(gateway)``.
"""

from __future__ import annotations

import os
import uuid
from functools import lru_cache
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from ..base.errors import ErrorKind, GatewayError
from ..config.defaults import GATEWAY_SERVICE_CORS_DEFAULT_ORIGINS
from .gateway import Gateway
from .multiplexer import ConnectionMultiplexer
from .single_shot import SingleShotStreamer, sse_format
from .transport import WebSocketTransport

_STATUS_FOR_KIND = {
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.UNKNOWN_MODEL: 404,
}


def _http_error(exc: GatewayError) -> HTTPException:
    return HTTPException(
        status_code=_STATUS_FOR_KIND.get(exc.kind, 500),
        detail=exc.normalized().to_wire(),
    )


def _gateway(request: Request) -> Gateway:
    return request.app.state.gateway


def create_app(gateway: Optional[Gateway] = None) -> FastAPI:
    """Build the FastAPI application around ``gateway``.

    When no gateway is given one is built from the environment, which loads
    the model catalog; a malformed catalog fails here, before serving.
    """
    app = FastAPI(title="LLM Gateway", version="0.1.0")
    app.state.gateway = gateway or Gateway.from_settings()

    cors_origins_env = os.getenv("GATEWAY_SERVICE_CORS_ORIGINS", GATEWAY_SERVICE_CORS_DEFAULT_ORIGINS)
    allow_origins = [o.strip() for o in cors_origins_env.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    def health() -> Dict[str, Any]:
        """Report that the service is up."""
        return {"ok": True}

    @app.get("/api/providers")
    def get_providers(request: Request) -> Dict[str, Any]:
        return {"ok": True, "providers": _gateway(request).provider_status()}

    @app.get("/api/models")
    def get_models(request: Request, provider: Optional[str] = Query(default=None)) -> Dict[str, Any]:
        """List catalog models, optionally for a single provider."""
        try:
            models = _gateway(request).model_listing(provider)
        except GatewayError as exc:
            raise _http_error(exc) from exc
        return {"ok": True, "models": models}

    @app.get("/api/models/{model_id:path}")
    def get_model(request: Request, model_id: str) -> Dict[str, Any]:
        gateway = _gateway(request)
        try:
            descriptor = gateway.registry.resolve(model_id)
        except GatewayError as exc:
            raise _http_error(exc) from exc
        return {"ok": True, "model": {**descriptor.to_dict(), "available": gateway.is_available(descriptor.provider)}}

    @app.post("/api/chat/stream")
    async def post_chat_stream(request: Request) -> StreamingResponse:
        """Stream one chat request as Server-Sent Events.

        Validation failures are delivered in-band as a single ``chat_error``
        event so clients handle every outcome through one code path. Only a
        body that is not JSON at all is rejected with HTTP 400.
        """
        try:
            payload = await request.json()
        except ValueError as exc:
            raise HTTPException(
                status_code=400,
                detail={"kind": ErrorKind.INVALID_REQUEST.value, "message": "body must be JSON"},
            ) from exc
        request_id = None
        if isinstance(payload, dict):
            request_id = payload.get("requestId") if isinstance(payload.get("requestId"), str) else None
        streamer = SingleShotStreamer(
            _gateway(request),
            is_disconnected=request.is_disconnected,
            request_id=request_id or uuid.uuid4().hex,
        )

        async def iter_sse() -> AsyncIterator[str]:
            async for event in streamer.events(payload):
                yield sse_format(event)

        return StreamingResponse(
            iter_sse(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @app.websocket("/ws")
    async def chat_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        transport = WebSocketTransport(websocket)
        multiplexer = ConnectionMultiplexer(websocket.app.state.gateway, transport)
        try:
            await multiplexer.serve()
        finally:
            await transport.close()

    return app


@lru_cache(maxsize=1)
def get_app() -> FastAPI:
    """Process-wide application used by the dev server."""
    return create_app()


__all__ = ["create_app", "get_app"]
