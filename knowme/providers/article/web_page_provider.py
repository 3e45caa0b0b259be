"""Web page fetcher for URL documents, using httpx.

Sends the request with a realistic desktop browser user agent and the
standard browser ``Accept*`` headers; many sites serve a stripped or
blocked page to obvious bots.  The response is returned whatever its
status code so the URL processor can decide what a 401, 403 or 404
means for the document.
"""

from __future__ import annotations

import httpx
import structlog

from knowme.interfaces.page_provider import FetchedPage, IPageProvider
from knowme.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 15.0
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
}


class WebPageProvider(IPageProvider):
    """Fetches raw page HTML with browser-like headers."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )

    async def fetch(self, url: str) -> FetchedPage:
        """Fetch *url*; non-2xx responses are returned, not raised."""
        try:
            response = await self._client.get(url, headers=BROWSER_HEADERS)
        except httpx.TimeoutException as exc:
            raise ExtractionError(
                message="The website took too long to respond",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(
                message="Unable to reach this website. Please check the URL.",
                provider_name=self.get_provider_name(),
            ) from exc

        html = response.text if response.is_success else ""
        logger.info(
            "page_fetched",
            url=url,
            status_code=response.status_code,
            length=len(html),
        )
        return FetchedPage(url=str(response.url), status_code=response.status_code, html=html)

    async def aclose(self) -> None:
        """Close the underlying client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    def get_provider_name(self) -> str:
        return "web"
