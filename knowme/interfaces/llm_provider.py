"""Abstract base class for LLM service providers.

Defines the contract for the model backend used to read images and PDFs
during ingestion and to stream plain chat completions when a space has
no knowledge index.  The rest of the application never imports the
vendor SDK directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from knowme.interfaces.stream import IByteStream


# Concrete implementation: OpenAILLMProvider (knowme/providers/llm/)
class ILLMProvider(ABC):
    """Contract for LLM services used by extraction and fallback chat."""

    @abstractmethod
    async def vision_extract(self, image_bytes: bytes, prompt: str) -> str:
        """Analyse an image using the model's vision capability.

        Parameters
        ----------
        image_bytes:
            Raw bytes of the image to analyse.
        prompt:
            Instruction describing what to transcribe or describe.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        knowme.utils.errors.KnowMeError
            Classified upstream failure.
        """

    @abstractmethod
    async def document_extract(self, pdf_bytes: bytes, filename: str, prompt: str) -> str:
        """Send a PDF as native file input and return the model's extraction.

        Raises
        ------
        knowme.utils.errors.KnowMeError
            Classified upstream failure.
        """

    @abstractmethod
    async def open_chat_stream(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 1000,
    ) -> IByteStream:
        """Open a streaming chat-completions request.

        The returned stream yields raw SSE bytes in the chat-completions
        chunk shape.  Errors while opening are raised already classified.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this LLM provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""
