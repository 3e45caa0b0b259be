"""Unit tests for URL scraping: status mapping, HTML cleanup and page analysis."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup
from pydantic import ValidationError

from knowme.models.document import Document, DocumentKind
from knowme.services.ingestion.source_processors.url_processor import (
    PageAnalysis,
    PageMetadata,
    UrlProcessor,
    analyze_page,
    extract_metadata,
    extract_text,
)
from knowme.utils.errors import BlockedSiteError, EmptyContentError, ExtractionError
from tests.conftest import FakePageProvider


def _url_doc(url: str = "https://www.example.com/about") -> Document:
    return Document(space_id="space-1", filename="example.com/about", kind=DocumentKind.URL, source_url=url)


class TestStatusMapping:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_blocked_site(self, status: int) -> None:
        processor = UrlProcessor(FakePageProvider(status_code=status))
        with pytest.raises(BlockedSiteError) as exc_info:
            await processor.process(_url_doc())
        assert exc_info.value.message == "This website blocks automated access or requires login."

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        with pytest.raises(ExtractionError, match="Page not found"):
            await UrlProcessor(FakePageProvider(status_code=404)).process(_url_doc())

    @pytest.mark.asyncio
    async def test_other_error_status(self) -> None:
        with pytest.raises(ExtractionError, match=r"Unable to access this page \(500\)"):
            await UrlProcessor(FakePageProvider(status_code=500)).process(_url_doc())

    @pytest.mark.asyncio
    async def test_thin_page_fails(self) -> None:
        provider = FakePageProvider(html="<html><body><nav>Menu</nav><p>Hi there</p></body></html>")
        with pytest.raises(EmptyContentError, match="Could not extract meaningful content from the URL"):
            await UrlProcessor(provider).process(_url_doc())

    @pytest.mark.asyncio
    async def test_missing_url(self) -> None:
        doc = Document(space_id="space-1", filename="x", kind=DocumentKind.URL)
        with pytest.raises(ExtractionError):
            await UrlProcessor(FakePageProvider()).process(doc)


class TestContent:
    @pytest.mark.asyncio
    async def test_article_text_and_header(self, sample_article_html: str) -> None:
        content = await UrlProcessor(FakePageProvider(html=sample_article_html)).process(_url_doc())

        assert content.text.startswith("Title: About Jane Doe\nSource: https://www.example.com/about\n")
        assert "Description: Profile of Jane Doe" in content.text
        assert "twelve years building data platforms" in content.text
        assert "Fish & chips fan." in content.text
        for chrome in ("Home | Blog", "Site header", "Related posts", "Copyright", "tracking", "color: red"):
            assert chrome not in content.text
        assert content.artifact.filename == "example.txt"
        assert content.artifact.data == content.text.encode("utf-8")
        assert content.title == "About Jane Doe"

    def test_whitespace_is_collapsed(self) -> None:
        soup = BeautifulSoup("<div>a\n\n   b\t<span>c</span></div>", "html.parser")
        assert extract_text(soup) == "a b c"

    def test_og_title_used_when_title_missing(self) -> None:
        soup = BeautifulSoup(
            '<html><head><meta property="og:title" content="OG Title"></head></html>',
            "html.parser",
        )
        meta = extract_metadata(soup, "https://www.site.org/x")
        assert meta.title == "OG Title"
        assert meta.domain == "site.org"


class TestPageAnalysis:
    def test_login_wall(self) -> None:
        html = "<form>Sign in with your password or create account</form>"
        analysis = analyze_page(html, "Sign in password")
        assert analysis.page_type == "login"
        assert "This page appears to require login/authentication" in analysis.warnings

    def test_paywall(self) -> None:
        analysis = analyze_page("<p>Subscribe to continue reading</p>", "word " * 600)
        assert analysis.page_type == "paywall"

    def test_clean_long_article_has_no_warnings(self) -> None:
        text = "Engineering leadership requires patience and curiosity. " * 40
        analysis = analyze_page(f"<p>{text}</p>", text)
        assert analysis.warnings == []
        assert analysis.quality == "high"

    def test_results_are_validated_immutable_models(self) -> None:
        analysis = analyze_page("<p>Subscribe to continue reading</p>", "short text")
        assert analysis.model_dump() == {
            "page_type": "paywall",
            "quality": "low",
            "warnings": [
                "This page may be behind a paywall",
                "Very little content was extracted",
                "Content may be mostly navigation or boilerplate",
            ],
        }
        with pytest.raises(ValidationError):
            analysis.quality = "high"
        with pytest.raises(ValidationError):
            PageAnalysis(quality="excellent")
        assert PageMetadata().model_dump() == {"title": None, "description": None, "domain": None}
