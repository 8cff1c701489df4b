"""Message content helpers shared across provider adapters.

Helpers here are side-effect free and operate on provider-agnostic models.
"""
from __future__ import annotations

import re
from typing import Optional, Tuple

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)


def parse_data_url(url: Optional[str]) -> Optional[Tuple[str, str]]:
    """Split a base64 ``data:`` URL into ``(media_type, base64_payload)``.

    Returns ``None`` for anything else (plain http(s) URLs included).
    """
    if not url:
        return None
    match = _DATA_URL.match(url.strip())
    if match is None:
        return None
    return match.group("mime"), match.group("data")


def system_with_instruction(system: Optional[str], instruction: Optional[str]) -> Optional[str]:
    """Append ``instruction`` to a system prompt (either may be missing)."""
    if not instruction:
        return system
    return f"{system}\n\n{instruction}" if system else instruction


__all__ = ["parse_data_url", "system_with_instruction"]
