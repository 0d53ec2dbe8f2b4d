"""
Web page fetching and plain-text extraction.

Fetches source URLs with httpx and strips markup with BeautifulSoup.
Every failure surfaces as SourceError so an ingestion run can skip the
URL and carry on.
"""

import logging
import re
from typing import Optional, Protocol

import httpx
from bs4 import BeautifulSoup

from minirag.config import settings
from minirag.exceptions import SourceError
from minirag.retrieval.chunker import Document

logger = logging.getLogger(__name__)

# Tags whose content is never part of the readable text
NON_CONTENT_TAGS = ["script", "style", "noscript", "meta", "link", "nav", "header", "footer", "form"]


class Scraper(Protocol):
    """Protocol that all scrapers must implement."""

    async def scrape(self, url: str) -> Document:
        ...


def html_to_text(html: str) -> str:
    """
    Extract readable text from an HTML page.

    Block elements become paragraph breaks so the chunker can split on them.

    Args:
        html: HTML source

    Returns:
        Plain text with runs of blank lines collapsed
    """
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()

    text = soup.get_text(separator="\n")
    lines = [re.sub(r"[ \t\xa0]+", " ", line).strip() for line in text.splitlines()]
    text = "\n".join(lines)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


class WebScraper:
    """
    Fetch a URL and return its text as a Document.

    HTML responses are converted to text; text/plain and markdown are kept
    as-is.

    Example:
        >>> scraper = WebScraper()
        >>> document = await scraper.scrape("https://example.com/article")
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """
        Initialize the scraper.

        Args:
            timeout: Request timeout in seconds (default from settings)
            user_agent: User-Agent header (default from settings)
        """
        self.timeout = timeout or settings.scrape_timeout
        self.user_agent = user_agent or settings.user_agent

    async def scrape(self, url: str) -> Document:
        """
        Fetch a URL and extract its text.

        Args:
            url: Page to fetch

        Returns:
            Document with the page text

        Raises:
            SourceError: On network errors, HTTP errors or empty pages
        """
        headers = {"User-Agent": self.user_agent}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True, headers=headers
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise SourceError(url, f"fetch failed: {e}") from e

        content_type = response.headers.get("content-type", "")
        if "html" in content_type or not content_type:
            text = html_to_text(response.text)
        else:
            text = response.text.strip()

        if not text:
            raise SourceError(url, "no text content")

        logger.debug(f"Scraped {url} ({len(text):,} chars)")
        return Document(source_url=url, raw_text=text)
