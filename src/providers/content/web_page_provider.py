"""Web page content provider using httpx and trafilatura.

Fetches HTML via httpx and extracts the main readable text with
trafilatura, which strips navigation, ads and boilerplate.  Pages where
trafilatura finds no main content (short landing pages, unusual markup)
fall back to BeautifulSoup's full-page text with whitespace collapsed.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

import httpx
import structlog
import trafilatura
from bs4 import BeautifulSoup

from src.interfaces.content_provider import IContentProvider
from src.utils.errors import ContentUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; StudyMaterialGenerator/0.1)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}
_WHITESPACE_RE = re.compile(r"\s+")
_NON_CONTENT_TAGS = ("script", "style", "noscript", "template")


class WebPageProvider(IContentProvider):
    """Readable-text extraction for arbitrary http(s) pages."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )

    # ------------------------------------------------------------------
    # IContentProvider implementation
    # ------------------------------------------------------------------

    def supports(self, url: str) -> bool:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    async def extract(self, url: str) -> str:
        """Fetch *url* and return its main text content."""
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ContentUnavailableError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ContentUnavailableError(
                message=f"HTTP {exc.response.status_code} for {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ContentUnavailableError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        html = response.text
        text = trafilatura.extract(html, include_comments=False, include_tables=True)
        if not text or not text.strip():
            logger.debug("trafilatura_extraction_empty", url=url)
            text = html_to_text(html)

        if not text.strip():
            raise ContentUnavailableError(
                message=f"No readable text found at {url}",
                provider_name=self.get_provider_name(),
            )

        logger.info("page_extracted", url=url, text_length=len(text))
        return text.strip()

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    def get_provider_name(self) -> str:
        return "web_page"


def html_to_text(html: str) -> str:
    """Strip tags (and script/style bodies) from *html*, collapsing whitespace."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_NON_CONTENT_TAGS):
        tag.decompose()
    return _WHITESPACE_RE.sub(" ", soup.get_text(separator=" ")).strip()
