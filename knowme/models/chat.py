"""Chat models: conversation turns and file citations."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ChatRole(str, Enum):  # noqa: UP042
    USER = "user"
    ASSISTANT = "assistant"


class Citation(BaseModel):
    """A file the answer drew on, as reported by the retrieval engine."""

    model_config = ConfigDict(frozen=True)

    file_id: str | None = None
    filename: str | None = None
    index: int | None = None


class ChatTurn(BaseModel):
    """One message of visitor history, held only in memory for a request."""

    model_config = ConfigDict(frozen=True)

    role: ChatRole
    content: str
    citations: list[Citation] = Field(default_factory=list)
