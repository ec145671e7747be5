"""Content source providers.

Two implementations of IContentProvider:
    1. YouTubeTranscriptProvider — transcript text of a YouTube video.
    2. WebPageProvider — readable text of any other http(s) page, via
       trafilatura with a beautifulsoup4 fallback.

The study material service asks them in that order and uses the first one
whose ``supports(url)`` is true.
"""

from src.providers.content.web_page_provider import WebPageProvider
from src.providers.content.youtube_transcript_provider import YouTubeTranscriptProvider

__all__ = ["WebPageProvider", "YouTubeTranscriptProvider"]
