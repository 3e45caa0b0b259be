"""Unit tests for WebPageProvider using httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from knowme.providers.article.web_page_provider import BROWSER_HEADERS, WebPageProvider
from knowme.utils.errors import ExtractionError


def _provider(handler) -> WebPageProvider:  # noqa: ANN001
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebPageProvider(http_client=client)


class TestFetch:
    @pytest.mark.asyncio
    async def test_sends_browser_headers(self) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, html="<p>hi</p>")

        page = await _provider(handler).fetch("https://example.com/about")

        assert page.status_code == 200
        assert page.html == "<p>hi</p>"
        assert seen["user-agent"] == BROWSER_HEADERS["User-Agent"]
        assert seen["accept-language"] == BROWSER_HEADERS["Accept-Language"]

    @pytest.mark.asyncio
    async def test_error_status_is_returned_without_body(self) -> None:
        page = await _provider(lambda request: httpx.Response(403, text="Forbidden")).fetch(
            "https://example.com/private"
        )
        assert page.status_code == 403
        assert page.html == ""

    @pytest.mark.asyncio
    async def test_timeout_is_a_readable_extraction_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(ExtractionError, match="too long to respond"):
            await _provider(handler).fetch("https://example.com/")

    @pytest.mark.asyncio
    async def test_connection_failure_is_a_readable_extraction_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route", request=request)

        with pytest.raises(ExtractionError, match="Unable to reach this website"):
            await _provider(handler).fetch("https://nowhere.invalid/")
