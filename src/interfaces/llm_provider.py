"""Abstract base class for LLM service providers.

Defines the contract for any text-generation backend used by the study
material pipeline.  Implementations wrap the OpenAI API, the Anthropic API,
or a local Ollama server; the generation client only ever talks to this
interface, so providers are swapped by injecting a different adapter.

Error contract: adapters translate SDK exceptions into the application
hierarchy so retry decisions never depend on a particular SDK:

    "too many requests"             -> RateLimitError
    5xx / connection / timeout      -> ProviderUnavailableError
    anything else                   -> LLMError
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider, OllamaLLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for one-completion-per-request text generation."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The rendered prompt containing the chunk text.
        temperature:
            Sampling temperature.
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's free-text response.

        Raises
        ------
        src.utils.errors.RateLimitError
            If the provider rejected the request as rate limited.
        src.utils.errors.ProviderUnavailableError
            On provider-side failures that may succeed on retry.
        src.utils.errors.LLMError
            For every other failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm credentials are valid."""
