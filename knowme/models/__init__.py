"""knowme domain models -- re-exports all public model classes.

The models are organized by domain concern:
    - space.py       -- a named content collection plus assistant settings
    - document.py    -- document lifecycle, status transition table, chunks
    - share_link.py  -- public token links and validation results
    - chat.py        -- visitor conversation turns and citations
"""

from __future__ import annotations

from knowme.models.chat import ChatRole, ChatTurn, Citation
from knowme.models.document import (
    CONTENT_PREVIEW_CHARS,
    DOCUMENT_TRANSITIONS,
    Document,
    DocumentChunk,
    DocumentEvent,
    DocumentKind,
    DocumentStatus,
    DocumentVisibility,
    ExtractedContent,
    IndexArtifact,
    InvalidTransitionError,
    transition,
)
from knowme.models.share_link import INVALID_LINK_MESSAGE, LinkValidation, ShareLink
from knowme.models.space import Space

__all__ = [
    "CONTENT_PREVIEW_CHARS",
    "ChatRole",
    "ChatTurn",
    "Citation",
    "DOCUMENT_TRANSITIONS",
    "Document",
    "DocumentChunk",
    "DocumentEvent",
    "DocumentKind",
    "DocumentStatus",
    "DocumentVisibility",
    "ExtractedContent",
    "INVALID_LINK_MESSAGE",
    "IndexArtifact",
    "InvalidTransitionError",
    "LinkValidation",
    "ShareLink",
    "Space",
    "transition",
]
