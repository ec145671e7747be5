"""Unit tests for BatchOrchestrator batching, pacing, ordering, and failures."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models.pipeline import ContentChunk
from src.models.study import PartialDocument
from src.pipeline.batch_orchestrator import BatchOrchestrator
from src.services.chunker import ContentChunker
from src.utils.errors import GenerationError, GenerationErrorKind


def _client(generate) -> MagicMock:
    client = MagicMock()
    client.generate = AsyncMock(side_effect=generate)
    return client


async def _echo(chunk: ContentChunk, _template) -> PartialDocument:
    return PartialDocument(summary=[chunk.text])


def _chunker(batch_size: int) -> ContentChunker:
    return ContentChunker(max_chunk_chars=2, batch_size=batch_size, split_on_whitespace=False)


@pytest.mark.asyncio
async def test_results_in_chunk_order(no_wait_sleep, simple_template) -> None:
    orchestrator = BatchOrchestrator(_client(_echo), _chunker(2), batch_delay=1.0, sleep=no_wait_sleep)

    partials = await orchestrator.run("A.B.C.", simple_template)

    assert [p.summary for p in partials] == [["A."], ["B."], ["C."]]


@pytest.mark.asyncio
async def test_completion_order_does_not_matter(no_wait_sleep, simple_template) -> None:
    async def _slow_first(chunk: ContentChunk, template) -> PartialDocument:
        await asyncio.sleep(0.03 if chunk.index == 0 else 0)
        return await _echo(chunk, template)

    orchestrator = BatchOrchestrator(_client(_slow_first), _chunker(3), sleep=no_wait_sleep)

    partials = await orchestrator.run("A.B.C.", simple_template)

    assert [p.summary[0] for p in partials] == ["A.", "B.", "C."]


@pytest.mark.asyncio
async def test_delay_only_between_batches(no_wait_sleep, simple_template) -> None:
    orchestrator = BatchOrchestrator(_client(_echo), _chunker(1), batch_delay=1.5, sleep=no_wait_sleep)

    await orchestrator.run("A.B.C.", simple_template)

    assert no_wait_sleep.await_count == 2
    no_wait_sleep.assert_awaited_with(1.5)


@pytest.mark.asyncio
async def test_zero_delay_never_sleeps(no_wait_sleep, simple_template) -> None:
    orchestrator = BatchOrchestrator(_client(_echo), _chunker(1), batch_delay=0.0, sleep=no_wait_sleep)

    await orchestrator.run("A.B.C.", simple_template)

    no_wait_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_first_failing_chunk_wins(no_wait_sleep, simple_template) -> None:
    async def _fail_late_chunks(chunk: ContentChunk, template) -> PartialDocument:
        if chunk.index == 2:
            raise GenerationError(GenerationErrorKind.RATE_LIMITED, message="chunk 2")
        if chunk.index == 1:
            await asyncio.sleep(0.02)
            raise GenerationError(GenerationErrorKind.MALFORMED_RESPONSE, message="chunk 1")
        return await _echo(chunk, template)

    client = _client(_fail_late_chunks)
    orchestrator = BatchOrchestrator(client, _chunker(3), sleep=no_wait_sleep)

    with pytest.raises(GenerationError) as exc_info:
        await orchestrator.run("A.B.C.", simple_template)

    assert exc_info.value.kind == GenerationErrorKind.MALFORMED_RESPONSE
    assert client.generate.await_count == 3


@pytest.mark.asyncio
async def test_failure_stops_later_batches(no_wait_sleep, simple_template) -> None:
    client = _client(GenerationError(GenerationErrorKind.UNRETRYABLE))
    orchestrator = BatchOrchestrator(client, _chunker(1), sleep=no_wait_sleep)

    with pytest.raises(GenerationError):
        await orchestrator.run("A.B.C.", simple_template)

    assert client.generate.await_count == 1
    no_wait_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_content_runs_nothing(no_wait_sleep, simple_template) -> None:
    client = _client(_echo)
    orchestrator = BatchOrchestrator(client, _chunker(2), sleep=no_wait_sleep)

    assert await orchestrator.run("", simple_template) == []
    client.generate.assert_not_awaited()


# ---------------------------------------------------------------------------
# Two-level throttle: K in flight inside a batch, batches strictly serial
# ---------------------------------------------------------------------------


class _GatedClient:
    """Fake client whose calls block until the test opens their gate."""

    def __init__(self, fail_indexes: tuple[int, ...] = ()) -> None:
        self.fail_indexes = set(fail_indexes)
        self.gates: dict[int, asyncio.Event] = {}
        self.events: list[tuple[str, int]] = []
        self.in_flight = 0
        self.peak = 0

    def gate(self, index: int) -> asyncio.Event:
        return self.gates.setdefault(index, asyncio.Event())

    def waiting(self) -> list[int]:
        ended = {index for kind, index in self.events if kind == "end"}
        return [index for kind, index in self.events if kind == "start" and index not in ended]

    async def generate(self, chunk: ContentChunk, _template) -> PartialDocument:
        self.events.append(("start", chunk.index))
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await self.gate(chunk.index).wait()
            if chunk.index in self.fail_indexes:
                raise GenerationError(GenerationErrorKind.UNRETRYABLE, message=f"chunk {chunk.index}")
            return PartialDocument(summary=[chunk.text])
        finally:
            self.in_flight -= 1
            self.events.append(("end", chunk.index))


@pytest.mark.asyncio
async def test_batches_are_serial_and_bounded(no_wait_sleep, simple_template) -> None:
    client = _GatedClient()
    orchestrator = BatchOrchestrator(client, _chunker(2), sleep=no_wait_sleep)
    task = asyncio.create_task(orchestrator.run("A.B.C.D.E.", simple_template))

    # Release the highest waiting index first so completion order is reversed.
    while not task.done():
        await asyncio.sleep(0.001)
        waiting = client.waiting()
        if waiting:
            client.gate(max(waiting)).set()
    partials = await task

    assert [p.summary[0] for p in partials] == ["A.", "B.", "C.", "D.", "E."]
    assert client.peak == 2
    position = {event: i for i, event in enumerate(client.events)}
    for earlier, later in (((0, 1), (2, 3)), ((2, 3), (4,))):
        last_end = max(position[("end", index)] for index in earlier)
        first_start = min(position[("start", index)] for index in later)
        assert last_end < first_start


@pytest.mark.asyncio
async def test_failing_batch_waits_for_siblings(no_wait_sleep, simple_template) -> None:
    client = _GatedClient(fail_indexes=(0,))
    orchestrator = BatchOrchestrator(client, _chunker(3), sleep=no_wait_sleep)
    task = asyncio.create_task(orchestrator.run("A.B.C.", simple_template))

    await asyncio.sleep(0.01)
    assert sorted(client.waiting()) == [0, 1, 2]

    client.gate(0).set()
    await asyncio.sleep(0.01)
    assert ("end", 0) in client.events
    assert sorted(client.waiting()) == [1, 2]
    assert not task.done()

    client.gate(1).set()
    client.gate(2).set()
    with pytest.raises(GenerationError) as exc_info:
        await task

    assert exc_info.value.message == "chunk 0"
    assert client.peak == 3
    assert {("end", 1), ("end", 2)} <= set(client.events)
