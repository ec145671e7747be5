"""Public interface definitions for all external service providers.

Every external service the study-material generator touches is accessed
exclusively through the abstract base classes defined in this package.
Concrete adapters implement these interfaces and are injected at runtime,
so swapping OpenAI for Anthropic, or SQLite for another store, changes one
line in ``src/main.py`` and nothing else.  Unit tests inject mocks built
from the same interfaces.

CONCRETE PROVIDER MAP:
    Interface             →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    ILLMProvider          →  AnthropicLLMProvider, OpenAILLMProvider,
                             OllamaLLMProvider
    IContentProvider      →  YouTubeTranscriptProvider, WebPageProvider
    IStudyMaterialStore   →  SQLiteStudyMaterialStore
"""

from src.interfaces.content_provider import IContentProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.study_store_provider import IStudyMaterialStore

__all__ = [
    "IContentProvider",
    "ILLMProvider",
    "IStudyMaterialStore",
]
