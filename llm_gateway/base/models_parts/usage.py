"""Token usage accumulated over one stream."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class UsageStats:
    input_tokens: int = 0
    output_tokens: int = 0

    def update(self, *, input_tokens: Optional[int] = None, output_tokens: Optional[int] = None) -> None:
        """Record the latest counts reported by the upstream.

        Providers report running totals, so values replace rather than add.
        """
        if input_tokens is not None:
            self.input_tokens = int(input_tokens)
        if output_tokens is not None:
            self.output_tokens = int(output_tokens)

    def to_dict(self) -> Dict[str, int]:
        return {"inputTokens": self.input_tokens, "outputTokens": self.output_tokens}


__all__ = ["UsageStats"]
