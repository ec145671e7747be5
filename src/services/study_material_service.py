"""The "process content" use case.

Given a source URL:

1. Serve a previously generated document for the same URL from the store
   (``cached=True``) without calling the model.
2. Otherwise pick the first content provider that supports the URL and
   extract its text.
3. Run the study-material pipeline over the text.
4. Persist the result for the requesting user, when one is given.

Generation failures surface as :class:`GenerationError`; storage failures
as :class:`PersistenceError`, so callers can tell "the model failed" apart
from "the database failed".
"""

from __future__ import annotations

from src.interfaces.content_provider import IContentProvider
from src.interfaces.study_store_provider import IStudyMaterialStore
from src.models.material import ProcessResult
from src.pipeline.study_pipeline import StudyMaterialPipeline
from src.utils.errors import ContentUnavailableError
from src.utils.logging import get_logger


class StudyMaterialService:
    """Coordinates content extraction, generation and persistence."""

    def __init__(
        self,
        content_providers: list[IContentProvider],
        pipeline: StudyMaterialPipeline,
        store: IStudyMaterialStore | None = None,
    ) -> None:
        self._content_providers = content_providers
        self._pipeline = pipeline
        self._store = store
        self._logger = get_logger(__name__)

    async def process(
        self,
        url: str,
        user_id: str | None = None,
        thumbnail: str | None = None,
    ) -> ProcessResult:
        """Return the study document for *url*, generating it if needed.

        Raises
        ------
        ContentUnavailableError
            If no provider supports *url* or extraction yields nothing.
        GenerationError
            If generation fails for any chunk.
        PersistenceError
            If the cache lookup or the store write fails.
        """
        url = url.strip()

        if self._store is not None:
            existing = await self._store.find_by_url(url)
            if existing is not None:
                self._logger.info("study_material_cache_hit", url=url, material_id=existing.material_id)
                return ProcessResult(
                    document=existing.document,
                    cached=True,
                    material_id=existing.material_id,
                )

        content = await self.extract_content(url)
        document = await self._pipeline.generate(content)

        material_id: str | None = None
        if self._store is not None and user_id:
            material_id = await self._store.store(
                user_id=user_id,
                source_url=url,
                document=document,
                thumbnail=thumbnail,
            )

        return ProcessResult(document=document, cached=False, material_id=material_id)

    async def extract_content(self, url: str) -> str:
        """Extract raw text from *url* with the first provider that supports it."""
        provider = next((p for p in self._content_providers if p.supports(url)), None)
        if provider is None:
            raise ContentUnavailableError(message=f"No content provider supports {url}")

        self._logger.info("content_extraction_started", url=url, provider=provider.get_provider_name())
        return await provider.extract(url)
