"""
Pydantic DTOs for inbound chat requests and control messages.

Purpose
-------
Validate the wire shape shared by the persistent connection and the
single-shot stream before anything touches the registry or an adapter:
roles, content constraints and option types. Model-specific bounds (option
ranges, JSON mode, vision) are checked later against the resolved descriptor
by ``llm_gateway.base.validation``.

Field names follow the wire (camelCase aliases); Python attributes are
snake_case. Unknown keys are ignored so control envelopes (``type``) can be
validated with the same model.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..models import ChatOptions, ChatRequest, ContentPart, Message

_IMAGE_URL_PREFIXES = ("http://", "https://", "data:")


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ContentPartDTO(_WireModel):
    """A text or image element of a multi-part message."""

    type: Literal["text", "image"]
    text: Optional[str] = None
    url: Optional[str] = None

    @model_validator(mode="after")
    def _validate_payload(self) -> "ContentPartDTO":
        if self.type == "text" and not (self.text and self.text.strip()):
            raise ValueError("text part must include non-empty text")
        if self.type == "image" and not (self.url and self.url.startswith(_IMAGE_URL_PREFIXES)):
            raise ValueError("image part must include an http(s) or data: url")
        return self


class ChatMessageDTO(_WireModel):
    """Represents a chat message with either a text string or structured parts.

    Rules:
        - ``content`` must be a non-empty string or a non-empty list of parts.
        - ``system`` messages may only carry text.
    """

    role: Literal["system", "user", "assistant"]
    content: Union[str, List[ContentPartDTO]]

    @model_validator(mode="after")
    def _validate_content(self) -> "ChatMessageDTO":
        content = self.content
        if isinstance(content, str):
            if content.strip() == "":
                raise ValueError("content string must be non-empty")
            return self
        if not content:
            raise ValueError("content parts must be a non-empty list")
        if self.role == "system" and any(p.type != "text" for p in content):
            raise ValueError("system messages may only contain text parts")
        return self

    def to_message(self) -> Message:
        if isinstance(self.content, str):
            return Message(role=self.role, content=self.content)
        parts = tuple(ContentPart(type=p.type, text=p.text, url=p.url) for p in self.content)
        return Message(role=self.role, content=parts)


class ChatOptionsDTO(_WireModel):
    """Optional generation overrides. Ranges per model are checked later."""

    temperature: Optional[float] = Field(default=None, ge=0.0, allow_inf_nan=False)
    thinking_budget: Optional[int] = Field(default=None, alias="thinkingBudget", ge=0)
    json_mode: bool = Field(default=False, alias="jsonMode")
    max_output_tokens: Optional[int] = Field(default=None, alias="maxOutputTokens", gt=0)

    def to_options(self) -> ChatOptions:
        return ChatOptions(
            temperature=self.temperature,
            thinking_budget=self.thinking_budget,
            json_mode=self.json_mode,
            max_output_tokens=self.max_output_tokens,
        )


class ChatRequestDTO(_WireModel):
    """Inbound chat request (``{"type": "chat", ...}`` or the SSE body).

    Parameters:
        request_id: Client-chosen id, required on the persistent connection.
        model: Model identifier; the gateway default applies when omitted.
        message: A single user string or an ordered list of messages.
        system_prompt: Optional system prompt prepended to the conversation.
        options: Optional generation overrides.

    Raises:
        ValidationError: On empty content, bad roles or malformed options.
    """

    request_id: Optional[str] = Field(default=None, alias="requestId", min_length=1, max_length=256)
    model: Optional[str] = Field(default=None, min_length=1)
    message: Union[str, List[ChatMessageDTO]]
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    options: Optional[ChatOptionsDTO] = None

    @model_validator(mode="after")
    def _validate_message(self) -> "ChatRequestDTO":
        if isinstance(self.message, str):
            if not self.message.strip():
                raise ValueError("message must be non-empty")
            return self
        if not self.message:
            raise ValueError("message list must be non-empty")
        if all(m.role == "system" for m in self.message):
            raise ValueError("message list must include a user or assistant message")
        return self

    def to_request(self, *, request_id: str, default_model: str) -> ChatRequest:
        """Build the normalized domain request."""
        messages: List[Message] = []
        if self.system_prompt and self.system_prompt.strip():
            messages.append(Message(role="system", content=self.system_prompt))
        if isinstance(self.message, str):
            messages.append(Message(role="user", content=self.message))
        else:
            messages.extend(m.to_message() for m in self.message)
        options = self.options.to_options() if self.options else ChatOptions()
        return ChatRequest(
            request_id=request_id,
            model=self.model or default_model,
            messages=tuple(messages),
            options=options,
        )


class CancelDTO(_WireModel):
    """Inbound ``{"type": "cancel", "requestId": ...}`` control message."""

    request_id: str = Field(alias="requestId", min_length=1)


def summarize_validation_error(exc: ValidationError, limit: int = 3) -> str:
    """Render the first ``limit`` validation problems as one short line."""
    parts = []
    for err in exc.errors()[:limit]:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "invalid request"


__all__ = [
    "ContentPartDTO",
    "ChatMessageDTO",
    "ChatOptionsDTO",
    "ChatRequestDTO",
    "CancelDTO",
    "summarize_validation_error",
]
