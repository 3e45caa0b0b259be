"""Custom exception hierarchy for KnowMe.

All application exceptions inherit from :class:`KnowMeError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "web", "storage") caused the failure, and
an ``http_status`` the API middleware uses to build the response.

The hierarchy is organized by pipeline stage:

    KnowMeError  (base -- catch-all for any knowme error)
    +-- ExtractionError            (turning a document into text)
    |   +-- UnsupportedDocumentError
    |   +-- EmptyContentError
    |   +-- BlockedSiteError       (401/403 from a scraped site)
    |   +-- StorageError           (raw bytes could not be read)
    +-- IndexingError              (upload/attach to the knowledge index)
    +-- RateLimitError             (provider rate-limit exceeded)
    +-- ProviderUnavailableError   (quota, billing, auth, service down)
    +-- UpstreamTimeoutError
    +-- ChatError                  (any other chat generation failure)
    +-- NoIndexedContentError      (space has nothing to answer from)
    +-- InvalidLinkError
    +-- DocumentNotFoundError
    +-- ConfigurationError

Ingestion catches these and persists ``message`` on the document; the API
middleware turns them into a JSON body with ``http_status``.
"""


class KnowMeError(Exception):
    """Base exception for all KnowMe errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    http_status: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class ExtractionError(KnowMeError):
    """Raised when a document cannot be turned into text."""

    http_status = 422

    def __init__(
        self,
        message: str = "Content extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedDocumentError(ExtractionError):
    """Raised for a document kind the extractor does not handle."""

    def __init__(
        self,
        message: str = "Unsupported document type",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyContentError(ExtractionError):
    """Raised when extraction produced no usable text."""

    def __init__(
        self,
        message: str = "No content could be extracted from the document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class BlockedSiteError(ExtractionError):
    """Raised when a scraped website answers 401 or 403."""

    def __init__(
        self,
        message: str = "This website blocks automated access or requires login.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(ExtractionError):
    """Raised when stored document bytes cannot be read."""

    def __init__(
        self,
        message: str = "Failed to download file",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Knowledge index errors
# ---------------------------------------------------------------------------

class IndexingError(KnowMeError):
    """Raised when uploading or attaching a file to the knowledge index fails."""

    http_status = 502

    def __init__(
        self,
        message: str = "Failed to index file",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Upstream provider errors
# ---------------------------------------------------------------------------

class RateLimitError(KnowMeError):
    """Raised when an API rate limit is exceeded. Never retried here."""

    http_status = 429

    def __init__(
        self,
        message: str = "Too many requests. Please wait a moment and try again.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(KnowMeError):
    """Raised on quota, billing or authentication failures upstream."""

    http_status = 503

    def __init__(
        self,
        message: str = "The AI service is temporarily unavailable. Please try again later.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UpstreamTimeoutError(KnowMeError):
    """Raised when an upstream call exceeds its timeout."""

    http_status = 504

    def __init__(
        self,
        message: str = "The AI service took too long to respond. Please try again.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ChatError(KnowMeError):
    """Raised for any other failure while generating a chat answer."""

    http_status = 500

    def __init__(
        self,
        message: str = "Something went wrong while generating a response. Please try again.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NoIndexedContentError(KnowMeError):
    """Raised when a space has neither an index nor fallback chunks."""

    http_status = 400

    def __init__(
        self,
        message: str = "No documents have been indexed in this space yet.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Lookup / configuration errors
# ---------------------------------------------------------------------------

class InvalidLinkError(KnowMeError):
    """Raised when a share token is unknown, revoked or expired."""

    http_status = 403

    def __init__(
        self,
        message: str = "This link is invalid or has been revoked.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(KnowMeError):
    """Raised when a document id does not exist."""

    http_status = 404

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(KnowMeError):
    """Raised when configuration is invalid or missing at startup."""

    http_status = 500

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
