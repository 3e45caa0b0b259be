"""Space model: a named collection of owner content with chat behaviour settings."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class Space(BaseModel):
    """A knowledge space owned by one person.

    ``description`` holds the owner's instructions to the assistant and is
    appended verbatim to the chat instructions.  ``index_id`` is the remote
    knowledge index handle; it is created once and only ever written by
    the index manager.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    description: str | None = None
    ai_model: str | None = None
    fallback_message: str | None = None
    persona_style: str | None = None
    tone: str | None = None
    audience: str | None = None
    do_not_mention: str | None = None
    owner_name: str | None = None
    index_id: str | None = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
