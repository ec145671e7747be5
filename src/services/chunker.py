"""Character-bounded content chunking and batching.

Splits raw content into :class:`~src.models.pipeline.ContentChunk` objects no
longer than ``max_chunk_chars`` and groups them into fixed-size batches for
the orchestrator.

Two guarantees hold for every input:

1. **Lossless** -- concatenating the chunk texts reproduces the content
   exactly.  Chunks never overlap and nothing is stripped.
2. **Bounded** -- every chunk is at most ``max_chunk_chars`` long and only
   the last chunk may be shorter than a full window (or shorter because of
   a whitespace cut, see below).

With ``split_on_whitespace`` enabled (it is off by default, so every full
window is exactly ``max_chunk_chars``), a window that contains whitespace in
its second half is cut just after the last whitespace character so words
are not split across chunks.  Windows without such whitespace (long
tokens, unspaced text) are cut at exactly ``max_chunk_chars``.
"""

from __future__ import annotations

import structlog

from src.models.pipeline import ContentChunk
from src.utils.errors import InvalidConfigurationError

logger = structlog.get_logger(logger_name=__name__)


def chunk_text(
    content: str,
    max_chunk_chars: int,
    split_on_whitespace: bool = False,
) -> list[ContentChunk]:
    """Split *content* into consecutive chunks of at most *max_chunk_chars*.

    Empty content returns an empty list; no chunk is ever empty otherwise.

    Raises
    ------
    InvalidConfigurationError
        If *max_chunk_chars* is not positive.
    """
    if max_chunk_chars <= 0:
        raise InvalidConfigurationError(
            message=f"max_chunk_chars must be positive, got {max_chunk_chars}"
        )

    chunks: list[ContentChunk] = []
    start = 0
    length = len(content)
    # Each window starts where the previous one ended, so nothing overlaps
    # and nothing is skipped.
    while start < length:
        end = min(start + max_chunk_chars, length)
        # The final window is never moved back; it already ends the content.
        if split_on_whitespace and end < length:
            end = _whitespace_cut(content, start, end)
        chunks.append(ContentChunk(index=len(chunks), text=content[start:end]))
        start = end
    return chunks


def batch_chunks(chunks: list[ContentChunk], batch_size: int) -> list[list[ContentChunk]]:
    """Group *chunks* into ordered batches of at most *batch_size*.

    Raises
    ------
    InvalidConfigurationError
        If *batch_size* is not positive.
    """
    if batch_size <= 0:
        raise InvalidConfigurationError(message=f"batch_size must be positive, got {batch_size}")
    return [chunks[i : i + batch_size] for i in range(0, len(chunks), batch_size)]


def _whitespace_cut(content: str, start: int, end: int) -> int:
    """Return a cut position in ``(start, end]`` just after whitespace, or *end*.

    Only whitespace in the second half of the window is considered, so a
    cut never shrinks a chunk below half the window.
    """
    floor = start + (end - start) // 2
    # Scan backwards so the cut lands after the *last* whitespace.
    for pos in range(end - 1, floor - 1, -1):
        if content[pos].isspace():
            return pos + 1
    return end


class ContentChunker:
    """Chunks and batches content with a fixed configuration.

    Parameters
    ----------
    max_chunk_chars:
        Maximum characters per chunk (default 4000).
    batch_size:
        Maximum chunks per batch (default 3).
    split_on_whitespace:
        Prefer cutting after whitespace near the end of each window.
        Off by default: chunks are cut at exactly ``max_chunk_chars``.

    Raises
    ------
    InvalidConfigurationError
        If either size is not positive.
    """

    def __init__(
        self,
        max_chunk_chars: int = 4000,
        batch_size: int = 3,
        split_on_whitespace: bool = False,
    ) -> None:
        if max_chunk_chars <= 0:
            raise InvalidConfigurationError(
                message=f"max_chunk_chars must be positive, got {max_chunk_chars}"
            )
        if batch_size <= 0:
            raise InvalidConfigurationError(
                message=f"batch_size must be positive, got {batch_size}"
            )
        self._max_chunk_chars = max_chunk_chars
        self._batch_size = batch_size
        self._split_on_whitespace = split_on_whitespace

    @property
    def max_chunk_chars(self) -> int:
        return self._max_chunk_chars

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def chunk(self, content: str) -> list[ContentChunk]:
        """Split *content* into chunks (see :func:`chunk_text`)."""
        chunks = chunk_text(content, self._max_chunk_chars, self._split_on_whitespace)
        logger.debug(
            "chunking_complete",
            content_chars=len(content),
            num_chunks=len(chunks),
            max_chunk_chars=self._max_chunk_chars,
        )
        return chunks

    def batch(self, chunks: list[ContentChunk]) -> list[list[ContentChunk]]:
        """Group *chunks* into batches (see :func:`batch_chunks`)."""
        return batch_chunks(chunks, self._batch_size)

    def plan(self, content: str) -> list[list[ContentChunk]]:
        """Chunk *content* and group the chunks into batches in one step."""
        return self.batch(self.chunk(content))
