"""Share link validation and revocation.

A token is the only credential a visitor presents.  Every way a token can
be unusable (unknown, revoked, expired, orphaned space) produces the same
:class:`LinkValidation` with the same generic message, so callers cannot
tell which check failed.
"""

from __future__ import annotations

import structlog

from knowme.interfaces.record_store import IRecordStore
from knowme.models.share_link import LinkValidation, ShareLink

logger = structlog.get_logger(logger_name=__name__)


class LinkValidator:
    """Resolves tokens to spaces and counts views."""

    def __init__(self, store: IRecordStore) -> None:
        self._store = store

    async def validate(self, token: str, record_view: bool = True) -> LinkValidation:
        """Check *token*; on success optionally record one view.

        A failure to record the view is logged and does not change the
        result.
        """
        if not token:
            return LinkValidation.invalid()

        link = await self._store.get_active_link_by_token(token)
        if link is None or link.revoked or link.is_expired():
            logger.info("link_rejected", token=token)
            return LinkValidation.invalid()

        space = await self._store.get_space(link.space_id)
        if space is None:
            logger.warning("link_space_missing", link_id=link.id, space_id=link.space_id)
            return LinkValidation.invalid()

        if record_view:
            try:
                await self._store.record_link_view(link.id)
            except Exception as exc:  # noqa: BLE001 -- analytics must not block access
                logger.warning("link_view_record_failed", link_id=link.id, error=str(exc))

        logger.info("link_validated", link_id=link.id, space_id=space.id, recorded=record_view)
        return LinkValidation(is_valid=True, space=space, link=link)

    async def revoke(self, link_id: str) -> ShareLink | None:
        return await self._store.set_link_revoked(link_id, True)

    async def restore(self, link_id: str) -> ShareLink | None:
        return await self._store.set_link_revoked(link_id, False)
