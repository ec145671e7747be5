"""Batch orchestrator: chunk, fan out per batch, pace, re-sort.

Content is chunked and grouped into batches.  Batches run strictly one
after another; the chunks inside a batch run concurrently through
:func:`~src.utils.concurrency.throttled_gather`, bounded by the batch size.
A fixed pacing delay separates consecutive batches to stay under provider
rate limits.

Failure semantics: every chunk of a batch is allowed to finish (no sibling
is cancelled), then the error of the lowest-index failing chunk is raised
and no partial result is returned.  Later batches are not started.
"""

from __future__ import annotations

import asyncio

from src.models.study import PartialDocument
from src.services.chunker import ContentChunker
from src.services.generation_client import GenerationClient, SleepFn
from src.services.prompt_templates import PromptTemplate
from src.utils.concurrency import throttled_gather
from src.utils.logging import get_logger


class BatchOrchestrator:
    """Runs every chunk of a piece of content through the generation client.

    Parameters
    ----------
    generation_client:
        Produces one partial document per chunk.
    chunker:
        Chunking and batching configuration.  Its ``batch_size`` is also
        the concurrency bound inside a batch.
    batch_delay:
        Seconds to wait between consecutive batches (not after the last).
    sleep:
        Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        generation_client: GenerationClient,
        chunker: ContentChunker,
        batch_delay: float = 1.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        # All collaborators are injected; the orchestrator never creates them.
        self._client = generation_client
        self._chunker = chunker
        self._batch_delay = batch_delay
        self._sleep = sleep
        self._logger = get_logger(__name__)

    async def run(self, content: str, prompt_template: PromptTemplate) -> list[PartialDocument]:
        """Return one partial document per chunk, in chunk order.

        Raises
        ------
        GenerationError
            The failure of the first failing chunk (by chunk index).
        """
        batches = self._chunker.plan(content)
        total_chunks = sum(len(batch) for batch in batches)
        self._logger.info(
            "orchestration_started",
            chunks=total_chunks,
            batches=len(batches),
            batch_size=self._chunker.batch_size,
        )

        results: list[tuple[int, PartialDocument]] = []
        for batch_number, batch in enumerate(batches, start=1):
            # --- Fan out one batch ---
            # return_exceptions=True lets every sibling finish; nothing is
            # cancelled when one chunk fails.
            outcomes = await throttled_gather(
                [self._client.generate(chunk, prompt_template) for chunk in batch],
                limit=self._chunker.batch_size,
                return_exceptions=True,
            )

            # --- Surface the lowest-index failure ---
            # Completion order is arbitrary, so the winner is picked by chunk
            # index, not by which error arrived first.
            failures = [
                (chunk.index, outcome)
                for chunk, outcome in zip(batch, outcomes)
                if isinstance(outcome, BaseException)
            ]
            if failures:
                failed_index, error = min(failures, key=lambda f: f[0])
                self._logger.error(
                    "batch_failed",
                    batch=batch_number,
                    failed_chunks=[index for index, _ in failures],
                    first_failed_chunk=failed_index,
                    error=str(error),
                )
                raise error

            results.extend((chunk.index, outcome) for chunk, outcome in zip(batch, outcomes))
            self._logger.debug("batch_complete", batch=batch_number, of=len(batches))

            # --- Pace ---
            # No delay after the last batch.
            if batch_number < len(batches) and self._batch_delay > 0:
                await self._sleep(self._batch_delay)

        # Output order is chunk-index order.
        results.sort(key=lambda item: item[0])
        return [document for _, document in results]
