"""The structured-generation pipeline: raw text in, merged study document out.

One generic pipeline parameterized by three things: the provider adapter
(inside the generation client), the prompt template, and the target schema
(the repairer's validator).  :func:`build_study_pipeline` wires the default
components from a :class:`PipelineConfig`.
"""

from __future__ import annotations

import asyncio

from src.interfaces.llm_provider import ILLMProvider
from src.models.pipeline import PipelineConfig
from src.models.study import StudyDocument
from src.pipeline.batch_orchestrator import BatchOrchestrator
from src.services.chunker import ContentChunker
from src.services.generation_client import GenerationClient, SleepFn
from src.services.merger import merge_partials
from src.services.prompt_templates import STUDY_MATERIALS_TEMPLATE, PromptTemplate
from src.services.response_repair import ResponseRepairer
from src.utils.errors import ContentUnavailableError
from src.utils.logging import get_logger


class StudyMaterialPipeline:
    """Chunk -> generate -> repair -> merge."""

    def __init__(
        self,
        orchestrator: BatchOrchestrator,
        prompt_template: PromptTemplate = STUDY_MATERIALS_TEMPLATE,
    ) -> None:
        self._orchestrator = orchestrator
        self._template = prompt_template
        self._logger = get_logger(__name__)

    async def generate(self, content: str) -> StudyDocument:
        """Generate the merged study document for *content*.

        Raises
        ------
        ContentUnavailableError
            If *content* is empty or whitespace-only.
        GenerationError
            If any chunk fails for good.
        """
        if not content or not content.strip():
            raise ContentUnavailableError(message="Cannot generate study material from empty content")

        partials = await self._orchestrator.run(content, self._template)
        document = merge_partials(partials)
        self._logger.info(
            "study_material_generated",
            template=self._template.name,
            chunks=len(partials),
            summary_points=len(document.summary),
            flashcards=len(document.flashcards),
            quiz_questions=len(document.quiz),
        )
        return document


def build_study_pipeline(
    llm_provider: ILLMProvider,
    config: PipelineConfig | None = None,
    prompt_template: PromptTemplate = STUDY_MATERIALS_TEMPLATE,
    sleep: SleepFn = asyncio.sleep,
) -> StudyMaterialPipeline:
    """Wire chunker, generation client and orchestrator from *config*.

    Raises
    ------
    InvalidConfigurationError
        If the configured chunk or batch size is not positive.
    """
    config = config or PipelineConfig()
    chunker = ContentChunker(
        max_chunk_chars=config.max_chunk_chars,
        batch_size=config.batch_size,
        split_on_whitespace=config.split_on_whitespace,
    )
    client = GenerationClient(
        llm_provider=llm_provider,
        retry_policy=config.retry,
        repairer=ResponseRepairer(),
        sleep=sleep,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )
    orchestrator = BatchOrchestrator(
        generation_client=client,
        chunker=chunker,
        batch_delay=config.batch_delay,
        sleep=sleep,
    )
    return StudyMaterialPipeline(orchestrator, prompt_template)
