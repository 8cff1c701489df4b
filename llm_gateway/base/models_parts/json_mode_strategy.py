"""How a model is asked for JSON output."""
from __future__ import annotations

from enum import Enum


class JsonModeStrategy(str, Enum):
    """JSON-mode activation mechanism declared per model.

    ``NONE`` means JSON mode is not available and requests asking for it are
    rejected. ``SYSTEM_PROMPT`` is the instruction fallback for vendors
    without a native switch.
    """

    NONE = "none"
    RESPONSE_FORMAT = "response_format"
    RESPONSE_MIME_TYPE = "response_mime_type"
    SYSTEM_PROMPT = "system_prompt"


JSON_MODE_INSTRUCTION = (
    "Respond with a single valid JSON object only. Do not wrap it in markdown or add any prose."
)

__all__ = ["JsonModeStrategy", "JSON_MODE_INSTRUCTION"]
