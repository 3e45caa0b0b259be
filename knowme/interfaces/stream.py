"""Raw upstream byte stream handed from a provider to the stream transcoder."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator


class IByteStream(ABC):
    """An open upstream HTTP response body.

    Providers return one of these only after the upstream accepted the
    request, so errors raised while *opening* are the provider's to
    classify; errors raised while iterating happen mid-stream.
    """

    @abstractmethod
    def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield body bytes as they arrive, split at arbitrary boundaries."""

    @abstractmethod
    async def aclose(self) -> None:
        """Close the upstream response. Safe to call more than once."""
