"""Abstract base class for fetching web pages that owners add as documents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class FetchedPage:
    """A raw HTTP response for a scraped URL.

    Attributes
    ----------
    url:
        The final URL after redirects.
    status_code:
        HTTP status returned by the site.
    html:
        Response body decoded as text (empty for non-2xx responses).
    """

    url: str
    status_code: int
    html: str = ""


class IPageProvider(ABC):
    """Contract for retrieving page HTML with browser-like request headers."""

    @abstractmethod
    async def fetch(self, url: str) -> FetchedPage:
        """Fetch *url* and return the response, whatever its status code.

        Raises
        ------
        knowme.utils.errors.ExtractionError
            On network failures or timeouts (no response at all).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this fetcher."""
