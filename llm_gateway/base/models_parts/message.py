"""Normalized chat message and content parts."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional, Sequence, Union

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ContentPart:
    """One element of a multi-part message.

    ``text`` parts carry ``text``; ``image`` parts carry ``url`` which is
    either an http(s) URL or a ``data:`` URL with inline base64 bytes.
    """

    type: Literal["text", "image"]
    text: Optional[str] = None
    url: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.type == "image"


@dataclass(frozen=True)
class Message:
    role: Role
    content: Union[str, Sequence[ContentPart]]

    @property
    def parts(self) -> List[ContentPart]:
        """Content as a list of parts (a plain string becomes one text part)."""
        if isinstance(self.content, str):
            return [ContentPart(type="text", text=self.content)]
        return list(self.content)

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        if isinstance(self.content, str):
            return self.content
        return "".join(p.text or "" for p in self.content if p.type == "text")

    @property
    def has_images(self) -> bool:
        return any(p.is_image for p in self.parts)


__all__ = ["Role", "ContentPart", "Message"]
