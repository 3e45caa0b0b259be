"""Utility modules for KnowMe.

- **errors** -- Domain-specific exception hierarchy rooted at KnowMeError;
  each pipeline stage raises its own subclass and every class carries the
  HTTP status the API reports for it.
- **concurrency** -- TaskSupervisor, the tracked fire-and-forget spawner
  used for background ingestion jobs.
- **encoding** -- windowed base64 and image media-type sniffing for
  multimodal requests.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from knowme.utils.concurrency import TaskSupervisor
from knowme.utils.encoding import chunked_b64encode, detect_media_type, to_data_uri
from knowme.utils.errors import (
    BlockedSiteError,
    ChatError,
    ConfigurationError,
    DocumentNotFoundError,
    EmptyContentError,
    ExtractionError,
    IndexingError,
    InvalidLinkError,
    KnowMeError,
    NoIndexedContentError,
    ProviderUnavailableError,
    RateLimitError,
    StorageError,
    UnsupportedDocumentError,
    UpstreamTimeoutError,
)
from knowme.utils.logging import configure_logging, get_logger

__all__ = [
    "BlockedSiteError",
    "ChatError",
    "ConfigurationError",
    "DocumentNotFoundError",
    "EmptyContentError",
    "ExtractionError",
    "IndexingError",
    "InvalidLinkError",
    "KnowMeError",
    "NoIndexedContentError",
    "ProviderUnavailableError",
    "RateLimitError",
    "StorageError",
    "TaskSupervisor",
    "UnsupportedDocumentError",
    "UpstreamTimeoutError",
    "chunked_b64encode",
    "configure_logging",
    "detect_media_type",
    "get_logger",
    "to_data_uri",
]
