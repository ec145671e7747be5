"""Abstract base class for content sources.

A content provider turns a URL into the raw text the pipeline generates
study material from: a YouTube transcript, or the readable text of a web
page.  The study material service asks each configured provider whether it
``supports`` a URL and uses the first that does.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IContentProvider(ABC):
    """Contract for services that extract plain text from a URL."""

    @abstractmethod
    def supports(self, url: str) -> bool:
        """Return ``True`` if this provider can handle *url*."""

    @abstractmethod
    async def extract(self, url: str) -> str:
        """Fetch *url* and return its plain-text content.

        Raises
        ------
        src.utils.errors.ContentUnavailableError
            If nothing could be extracted, including empty or
            whitespace-only results.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier used in logs and error messages."""
