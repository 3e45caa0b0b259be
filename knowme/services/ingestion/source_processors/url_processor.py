"""Source processor for scraped web pages.

Fetches the page through :class:`IPageProvider`, reads title and
description metadata, strips non-content markup with BeautifulSoup and
collapses whitespace.  A light page analysis attaches warnings for login
walls, error pages, paywalls and thin content; warnings are informational
and never fail the document.
"""

from __future__ import annotations

import re
from typing import Literal
from urllib.parse import urlparse

import structlog
from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field

from knowme.interfaces.page_provider import IPageProvider
from knowme.models.document import Document, ExtractedContent, IndexArtifact
from knowme.services.ingestion.source_processors.base import text_artifact_name
from knowme.utils.errors import BlockedSiteError, EmptyContentError, ExtractionError

logger = structlog.get_logger(logger_name=__name__)

MIN_CONTENT_CHARS = 50

_STRIPPED_TAGS = ("script", "style", "nav", "header", "footer", "aside", "noscript")

_LOGIN_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"sign\s*in", r"log\s*in", r"log\s*on",
        r"authentication", r"authenticate",
        r"password", r"forgot\s*password",
        r"create\s*account", r"register",
        r"\bsso\b", r"oauth", r"saml",
    )
]

_GENERIC_PAGE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"access\s*denied", r"403\s*forbidden", r"401\s*unauthorized",
        r"not\s*found", r"404\s*error",
        r"maintenance", r"under\s*construction",
        r"please\s*enable\s*javascript",
        r"captcha", r"prove\s*you['’]?re\s*human",
    )
]

_PAYWALL_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"subscribe\s*to\s*continue", r"subscription\s*required",
        r"premium\s*content", r"unlock\s*this\s*article",
        r"free\s*trial", r"start\s*your\s*free",
    )
]


class PageMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str | None = None
    description: str | None = None
    domain: str | None = None


class PageAnalysis(BaseModel):
    """Heuristic read of what kind of page was scraped."""

    model_config = ConfigDict(frozen=True)

    page_type: Literal["content", "login", "generic", "paywall"] = "content"
    quality: Literal["high", "medium", "low"] = "high"
    warnings: list[str] = Field(default_factory=list)


def extract_metadata(soup: BeautifulSoup, url: str) -> PageMetadata:
    """Read ``<title>``/``og:title`` and the description meta tags."""
    title: str | None = None
    if soup.title and soup.title.string:
        title = soup.title.string.strip() or None
    if not title:
        og_title = soup.find("meta", attrs={"property": "og:title"})
        if og_title and og_title.get("content"):
            title = og_title["content"].strip()

    description: str | None = None
    desc = soup.find("meta", attrs={"name": "description"}) or soup.find(
        "meta", attrs={"property": "og:description"}
    )
    if desc and desc.get("content"):
        description = desc["content"].strip()

    host = urlparse(url).hostname
    return PageMetadata(
        title=title,
        description=description,
        domain=host.removeprefix("www.") if host else None,
    )


def extract_text(soup: BeautifulSoup) -> str:
    """Strip non-content elements, then all tags; entities decoded, whitespace collapsed.

    Mutates *soup*.
    """
    for tag in soup.find_all(_STRIPPED_TAGS):
        tag.decompose()
    text = soup.get_text(" ")
    return re.sub(r"\s+", " ", text).strip()


def analyze_page(html: str, text: str) -> PageAnalysis:
    """Flag login walls, error pages, paywalls and boilerplate-only pages."""
    page_type = "content"
    quality = "high"
    warnings: list[str] = []

    login_hits = sum(1 for p in _LOGIN_PATTERNS if p.search(html))
    if login_hits >= 2 and len(text) < 2000:
        page_type, quality = "login", "low"
        warnings.append("This page appears to require login/authentication")

    if any(p.search(html) for p in _GENERIC_PAGE_PATTERNS):
        page_type, quality = "generic", "low"
        warnings.append("This page appears to be an error or generic page")

    if any(p.search(html) for p in _PAYWALL_PATTERNS):
        page_type, quality = "paywall", "low"
        warnings.append("This page may be behind a paywall")

    if len(text) < 200:
        quality = "low"
        warnings.append("Very little content was extracted")
    elif len(text) < 500:
        if quality == "high":
            quality = "medium"
        warnings.append("Limited content was extracted")

    words = text.split()
    avg_word_length = len(text) / max(len(words), 1)
    if avg_word_length < 3 or len(words) < 50:
        if quality == "high":
            quality = "medium"
        warnings.append("Content may be mostly navigation or boilerplate")

    return PageAnalysis(page_type=page_type, quality=quality, warnings=warnings)


class UrlProcessor:
    """Scrapes ``document.source_url`` into indexable text."""

    def __init__(self, page_provider: IPageProvider, min_chars: int = MIN_CONTENT_CHARS) -> None:
        self._pages = page_provider
        self._min_chars = min_chars

    async def process(self, document: Document) -> ExtractedContent:
        url = document.source_url
        if not url:
            raise ExtractionError(message="No URL was provided for this document")

        page = await self._pages.fetch(url)
        if page.status_code in (401, 403):
            raise BlockedSiteError(provider_name=self._pages.get_provider_name())
        if page.status_code == 404:
            raise ExtractionError(
                message="Page not found",
                provider_name=self._pages.get_provider_name(),
            )
        if page.status_code >= 400:
            raise ExtractionError(
                message=f"Unable to access this page ({page.status_code})",
                provider_name=self._pages.get_provider_name(),
            )

        soup = BeautifulSoup(page.html, "html.parser")
        metadata = extract_metadata(soup, url)
        content = extract_text(soup)
        if len(content) < self._min_chars:
            raise EmptyContentError(message="Could not extract meaningful content from the URL")

        analysis = analyze_page(page.html, content)
        title = metadata.title or metadata.domain or url
        header = [f"Title: {title}", f"Source: {url}"]
        if metadata.description:
            header.append(f"Description: {metadata.description}")
        text = "\n".join(header) + "\n\n" + content

        logger.info(
            "url_scraped",
            document_id=document.id,
            url=url,
            chars=len(content),
            page_type=analysis.page_type,
            quality=analysis.quality,
        )
        return ExtractedContent(
            text=text,
            artifact=IndexArtifact(
                filename=text_artifact_name(metadata.domain or document.filename),
                data=text.encode("utf-8"),
            ),
            warnings=analysis.warnings,
            title=title,
        )
