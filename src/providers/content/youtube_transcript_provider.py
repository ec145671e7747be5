"""YouTube transcript content provider.

Parses the video id out of any common YouTube URL shape and fetches the
transcript via ``youtube-transcript-api``.  Transcript segments are joined
with single spaces into one plain-text string.

The transcript API is synchronous (it uses ``requests`` internally), so the
fetch runs in a worker thread to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import re
from urllib.parse import parse_qs, urlparse

import structlog
from youtube_transcript_api import CouldNotRetrieveTranscript, YouTubeTranscriptApi

from src.interfaces.content_provider import IContentProvider
from src.utils.errors import ContentUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_PATH_PREFIXES = ("shorts/", "embed/", "live/", "v/")


def extract_video_id(url: str) -> str | None:
    """Return the 11-character video id of a YouTube URL, or ``None``.

    Supports ``youtube.com/watch?v=ID``, ``youtu.be/ID``,
    ``youtube.com/shorts/ID``, ``youtube.com/embed/ID`` and
    ``youtube.com/live/ID``, with or without ``www.`` / ``m.``.
    """
    parsed = urlparse(url.strip())
    host = (parsed.netloc or "").lower().split(":")[0]
    path = (parsed.path or "").strip("/")

    candidate = ""
    if host == "youtu.be" or host.endswith(".youtu.be"):
        candidate = path.split("/")[0]
    elif host == "youtube.com" or host.endswith(".youtube.com"):
        if path == "watch":
            candidate = parse_qs(parsed.query).get("v", [""])[0].strip()
        else:
            for prefix in _PATH_PREFIXES:
                if path.startswith(prefix):
                    candidate = path[len(prefix):].split("/")[0]
                    break

    return candidate if _VIDEO_ID_RE.match(candidate) else None


class YouTubeTranscriptProvider(IContentProvider):
    """Content provider that returns a YouTube video's transcript text.

    Parameters
    ----------
    languages:
        Preferred transcript languages, most preferred first.
    transcript_api:
        A ``YouTubeTranscriptApi`` instance; one is created when omitted.
    """

    def __init__(
        self,
        languages: list[str] | None = None,
        transcript_api: YouTubeTranscriptApi | None = None,
    ) -> None:
        self._languages = languages or ["en"]
        self._api = transcript_api or YouTubeTranscriptApi()

    def supports(self, url: str) -> bool:
        return extract_video_id(url) is not None

    async def extract(self, url: str) -> str:
        video_id = extract_video_id(url)
        if video_id is None:
            raise ContentUnavailableError(
                message=f"Not a YouTube video URL: {url}",
                provider_name=self.get_provider_name(),
            )

        try:
            transcript = await asyncio.to_thread(
                self._api.fetch, video_id, languages=self._languages
            )
        except CouldNotRetrieveTranscript as exc:
            logger.warning("transcript_unavailable", video_id=video_id, error=str(exc))
            raise ContentUnavailableError(
                message=f"No transcript available for video {video_id}",
                provider_name=self.get_provider_name(),
            ) from exc

        text = " ".join(
            snippet.text.strip() for snippet in transcript if snippet.text and snippet.text.strip()
        )
        if not text:
            raise ContentUnavailableError(
                message=f"Transcript for video {video_id} is empty",
                provider_name=self.get_provider_name(),
            )

        logger.info("transcript_extracted", video_id=video_id, text_length=len(text))
        return text

    def get_provider_name(self) -> str:
        return "youtube_transcript"
