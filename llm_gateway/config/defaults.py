"""llm_gateway.config.defaults
===========================

Small, stable default values used across the gateway and its service layer.
They can be overridden via environment variables or the external config
file, but provide sensible fallbacks for local development and tests.

This module avoids importing from other gateway packages to prevent circular
dependencies. Only plain constants live here.
"""

from __future__ import annotations

# ---- Service / HTTP layer ----
# Comma-separated list of allowed origins for the dev server.
GATEWAY_SERVICE_CORS_DEFAULT_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"
GATEWAY_SERVICE_DEFAULT_HOST = "127.0.0.1"
GATEWAY_SERVICE_DEFAULT_PORT = 8091

# ---- Connection limits ----
MAX_SESSIONS_PER_CONNECTION = 10
UPSTREAM_CONCURRENCY_PER_PROVIDER = 32
OUTBOUND_QUEUE_SIZE = 256
MAX_MESSAGE_BYTES = 1024 * 1024
WRITE_TIMEOUT_SECONDS = 30.0
DISCONNECT_POLL_SECONDS = 1.0

# ---- Provider endpoints ----
# OpenAI, Anthropic and Google use their SDK defaults when base_url is unset.
XAI_DEFAULT_BASE_URL = "https://api.x.ai/v1"
GROQ_DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"

# Output-token default for vendors that require max_tokens on every call.
ANTHROPIC_DEFAULT_MAX_TOKENS = 4096

__all__ = [
    "GATEWAY_SERVICE_CORS_DEFAULT_ORIGINS",
    "GATEWAY_SERVICE_DEFAULT_HOST",
    "GATEWAY_SERVICE_DEFAULT_PORT",
    "MAX_SESSIONS_PER_CONNECTION",
    "UPSTREAM_CONCURRENCY_PER_PROVIDER",
    "OUTBOUND_QUEUE_SIZE",
    "MAX_MESSAGE_BYTES",
    "WRITE_TIMEOUT_SECONDS",
    "DISCONNECT_POLL_SECONDS",
    "XAI_DEFAULT_BASE_URL",
    "GROQ_DEFAULT_BASE_URL",
    "ANTHROPIC_DEFAULT_MAX_TOKENS",
]
