"""Study-material generator FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

Also provides the standalone ``build_pipeline`` helper for CLI or scripting
usage outside the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import build_pipeline_config, load_config
from src.config.settings import Settings
from src.interfaces.content_provider import IContentProvider
from src.interfaces.llm_provider import ILLMProvider
from src.pipeline.study_pipeline import StudyMaterialPipeline, build_study_pipeline
from src.providers.content.web_page_provider import WebPageProvider
from src.providers.content.youtube_transcript_provider import YouTubeTranscriptProvider
from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.store.sqlite_study_store import SQLiteStudyMaterialStore
from src.services.study_material_service import StudyMaterialService
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)

_VERSION = str(config.get("app", {}).get("version", "0.1.0"))


# ---------------------------------------------------------------------------
# LLM and content provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the first available LLM provider based on configured API keys.

    Priority order: Anthropic -> OpenAI -> Ollama (always available).
    """
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    return OllamaLLMProvider(settings=app_settings)


def _build_content_providers(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
) -> list[IContentProvider]:
    """YouTube first: a YouTube URL is also a valid web page URL."""
    return [
        YouTubeTranscriptProvider(languages=app_settings.get_transcript_languages()),
        WebPageProvider(http_client=http_client),
    ]


def build_pipeline(
    custom_settings: Settings | None = None,
    custom_config: dict | None = None,
) -> StudyMaterialPipeline:
    """Construct the study-material pipeline with injected dependencies.

    Parameters
    ----------
    custom_settings:
        Application settings.  Uses module-level ``settings`` if not provided.
    custom_config:
        Resolved configuration dict.  Uses module-level ``config`` if not
        provided.
    """
    # Pipeline only; callers that need content providers or a store build
    # them alongside (see src.cli.generate).
    s = custom_settings or settings
    c = custom_config if custom_config is not None else config
    return build_study_pipeline(
        llm_provider=_build_llm_provider(s),
        config=build_pipeline_config(c),
    )


def _build_all(app_settings: Settings, app_config: dict) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(app_settings.http_timeout),
        follow_redirects=True,
    )

    # -- LLM and generation pipeline --
    primary_llm = _build_llm_provider(app_settings)
    pipeline = build_study_pipeline(
        llm_provider=primary_llm,
        config=build_pipeline_config(app_config),
    )
    # -- Persistence (SQLite-backed study materials) --
    study_store = SQLiteStudyMaterialStore(db_path=app_settings.study_db_path)

    # -- Content providers (ordered by priority) --
    content_providers = _build_content_providers(app_settings, http_client)

    # -- Services --
    study_service = StudyMaterialService(
        content_providers=content_providers,
        pipeline=pipeline,
        store=study_store,
    )

    # -- Provider registry for /health --
    provider_registry = {
        "llm": primary_llm.is_available(),
        "llm_name": primary_llm.get_provider_name(),
        "content": [p.get_provider_name() for p in content_providers],
        "store": True,
    }

    return {
        "http_client": http_client,
        "study_store": study_store,
        "study_service": study_service,
        "provider_registry": provider_registry,
        "primary_llm_name": primary_llm.get_provider_name(),
        "version": _VERSION,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    # Initialize the study database (creates tables if needed)
    await components["study_store"].initialize()

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        primary_llm=components["primary_llm_name"],
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Study Material Generator API",
        version=_VERSION,
        description=(
            "Turn a YouTube video or web page into study material: summary "
            "points, flashcards and multiple-choice quiz questions generated "
            "by a language model, validated and stored per user."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_cors_origins())

    # -- API routes --
    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
