"""Web page fetching adapters for URL documents."""

from knowme.providers.article.web_page_provider import BROWSER_HEADERS, WebPageProvider

__all__ = ["BROWSER_HEADERS", "WebPageProvider"]
