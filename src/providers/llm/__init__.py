"""LLM provider adapters.

Three concrete implementations of ILLMProvider (src/interfaces/llm_provider.py):
    - AnthropicLLMProvider — Claude via the Messages API
    - OpenAILLMProvider    — gpt-4o-mini (also any OpenAI-compatible API)
    - OllamaLLMProvider    — local models via an Ollama server

At startup, main.py creates the first provider with credentials configured
(Anthropic, then OpenAI, then Ollama) and injects it into the generation
client.
"""

from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OllamaLLMProvider", "OpenAILLMProvider"]
