"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
Handles the three model calls the application makes outside the
knowledge index: image transcription (vision), PDF extraction using the
native ``file`` content part, and the streamed chat completion used
when a space has no index.  When ``openai_base_url`` is configured the
client points at that URL instead of the default OpenAI endpoint.
"""

from __future__ import annotations

from typing import Any

import openai
import structlog

from knowme.config.settings import Settings
from knowme.interfaces.llm_provider import ILLMProvider
from knowme.interfaces.stream import IByteStream
from knowme.providers.openai_errors import classify_openai_error
from knowme.providers.openai_stream import open_byte_stream
from knowme.utils.encoding import detect_media_type, to_data_uri
from knowme.utils.errors import ConfigurationError, EmptyContentError, ExtractionError

logger = structlog.get_logger(logger_name=__name__)


def build_openai_client(settings: Settings) -> openai.AsyncOpenAI:
    """Create the AsyncOpenAI client shared by the OpenAI-backed providers.

    Built once in ``main._build_all`` and passed to each provider.
    """
    client_kwargs: dict[str, Any] = {
        "api_key": settings.openai_api_key or "not-configured",
        "timeout": openai.Timeout(settings.openai_timeout_seconds, connect=5.0),
        # Failures surface to the owner/visitor instead of being retried.
        "max_retries": 0,
    }
    if settings.openai_base_url:
        client_kwargs["base_url"] = settings.openai_base_url
    return openai.AsyncOpenAI(**client_kwargs)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible API.

    Uses ``gpt-4o`` for vision and ``gpt-4o-mini`` for PDF extraction and
    fallback chat by default; each can be overridden via settings.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._api_key = settings.openai_api_key
        self._client = client or build_openai_client(settings)
        self._chat_model = settings.openai_chat_model
        self._vision_model = settings.openai_vision_model
        self._document_model = settings.openai_document_model
        self._provider_label = (
            "openai-compatible" if settings.openai_base_url else "openai"
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def vision_extract(self, image_bytes: bytes, prompt: str) -> str:
        """Transcribe or describe an image with the vision model."""
        self._require_key()
        media_type = detect_media_type(image_bytes)
        try:
            response = await self._client.chat.completions.create(
                model=self._vision_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {
                                "type": "image_url",
                                "image_url": {"url": to_data_uri(image_bytes, media_type)},
                            },
                        ],
                    }
                ],
                max_tokens=4000,
            )
        except openai.APIError as exc:
            raise classify_openai_error(
                exc,
                provider_name=self._provider_label,
                default=ExtractionError,
                default_message="Failed to extract text from image",
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise EmptyContentError(
                message="No text could be extracted from the image",
                provider_name=self._provider_label,
            )
        logger.info(
            "openai_vision_extract",
            model=self._vision_model,
            media_type=media_type,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    async def document_extract(self, pdf_bytes: bytes, filename: str, prompt: str) -> str:
        """Send the original PDF as a ``file`` content part and return the extraction."""
        self._require_key()
        try:
            response = await self._client.chat.completions.create(
                model=self._document_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "file",
                                "file": {
                                    "filename": filename,
                                    "file_data": to_data_uri(pdf_bytes, "application/pdf"),
                                },
                            },
                            {"type": "text", "text": prompt},
                        ],
                    }
                ],
                max_tokens=4000,
            )
        except openai.APIError as exc:
            raise classify_openai_error(
                exc,
                provider_name=self._provider_label,
                default=ExtractionError,
                default_message="Failed to extract text from PDF",
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise EmptyContentError(
                message="No text could be extracted from the PDF",
                provider_name=self._provider_label,
            )
        logger.info(
            "openai_document_extract",
            model=self._document_model,
            filename=filename,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    async def open_chat_stream(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 1000,
    ) -> IByteStream:
        """Open a streamed chat completion and return its raw SSE body."""
        self._require_key()
        chosen = model or self._chat_model
        try:
            stream = await open_byte_stream(
                lambda: self._client.chat.completions.with_streaming_response.create(
                    model=chosen,
                    messages=messages,
                    max_tokens=max_tokens,
                    stream=True,
                ),
                provider_name=self._provider_label,
            )
        except openai.APIError as exc:
            raise classify_openai_error(exc, provider_name=self._provider_label) from exc
        logger.info("openai_chat_stream_opened", model=chosen, messages=len(messages))
        return stream

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return self._provider_label

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_key(self) -> None:
        if not self._api_key:
            raise ConfigurationError(
                message="OpenAI API key is not configured",
                provider_name=self._provider_label,
            )
