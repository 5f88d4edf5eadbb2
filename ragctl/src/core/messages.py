"""
ragctl - Message Normalizer
============================
Adapts the chat UI's message shape to the flat role/content messages the
conversation agent consumes.

A UI message carries either a flat ``content`` string or an ordered list
of typed ``parts`` (``text``, ``text-delta``, ``tool-invocation``, …).
``UIMessage.body`` exposes that as a two-case tagged variant,
``FlatContent`` | ``FragmentList``, and ``normalize_messages`` folds it
into a ``ConversationMessage``.  Normalisation is total: it never raises,
it only produces possibly-empty content.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, field_validator

Role = Literal["user", "assistant", "system", "tool"]

_ROLES: frozenset[str] = frozenset(get_args(Role))
_TEXT_PART_TYPES: frozenset[str] = frozenset({"text", "text-delta"})


# ── UI-side shapes ────────────────────────────────────────────────────

def _string_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class MessagePart(BaseModel):
    """One typed fragment of a UI message; unknown fields are kept."""

    model_config = ConfigDict(extra="allow")

    type: str = ""
    text: str | None = None
    delta: str | None = None

    @field_validator("text", "delta", mode="before")
    @classmethod
    def _drop_non_text(cls, v: Any) -> str | None:
        return _string_or_none(v)

    @field_validator("type", mode="before")
    @classmethod
    def _untyped(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""


class UIMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str | None = "user"
    id: str | None = None
    content: str | None = None
    parts: list[MessagePart] | None = None

    # Non-string values would otherwise be a 422; the normalizer maps them instead.
    @field_validator("role", "id", "content", mode="before")
    @classmethod
    def _drop_non_string(cls, v: Any) -> str | None:
        return _string_or_none(v)

    @property
    def body(self) -> MessageBody:
        if self.content is not None:
            return FlatContent(self.content)
        return FragmentList(tuple(self.parts or ()))


@dataclass(frozen=True)
class FlatContent:
    text: str


@dataclass(frozen=True)
class FragmentList:
    parts: tuple[MessagePart, ...]


MessageBody = FlatContent | FragmentList


# ── Agent-side shape ──────────────────────────────────────────────────

class ConversationMessage(BaseModel):
    role: Role
    content: str


# ── Normalisation ─────────────────────────────────────────────────────

def normalize_role(role: str | None) -> Role:
    """Unknown or missing roles default to ``user``."""
    return role if role in _ROLES else "user"  # type: ignore[return-value]


def body_text(body: MessageBody) -> str:
    """Flatten a message body into plain text."""
    if isinstance(body, FlatContent):
        return body.text

    texts = [part.text or part.delta or "" for part in body.parts if part.type in _TEXT_PART_TYPES]
    return "\n".join(text for text in texts if text)


def normalize_message(message: UIMessage) -> ConversationMessage:
    return ConversationMessage(role=normalize_role(message.role), content=body_text(message.body))


def normalize_messages(messages: list[UIMessage]) -> list[ConversationMessage]:
    """Convert UI messages one-to-one into ``ConversationMessage`` objects."""
    return [normalize_message(m) for m in messages]
