"""Share link models: public token links into a space."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from knowme.models.space import Space

INVALID_LINK_MESSAGE = "This link is invalid or has been revoked."


class ShareLink(BaseModel):
    """A revocable public link; ``token`` is the only credential a visitor has."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    space_id: str
    token: str
    name: str | None = None
    revoked: bool = False
    view_count: int = 0
    last_used_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(tz=timezone.utc)  # noqa: UP017
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)  # noqa: UP017
        return expires <= now


class LinkValidation(BaseModel):
    """Outcome of checking a token.

    When ``is_valid`` is False, ``space`` and ``link`` are always ``None``
    and ``message`` is the single generic message, whatever the reason.
    """

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    space: Space | None = None
    link: ShareLink | None = None
    message: str | None = None

    @classmethod
    def invalid(cls) -> LinkValidation:
        return cls(is_valid=False, message=INVALID_LINK_MESSAGE)
