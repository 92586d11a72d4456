"""LLM provider implementations.

Key Components:
    - CompletionProvider: Abstract base for LLM providers
    - OpenAICompatibleProvider: OpenAI chat completions API (OpenAI, vLLM, LMStudio)
    - create_provider: Build the configured provider from settings

Example:
    >>> from sage.providers import create_provider
    >>> provider = create_provider(settings)
    >>> data = await provider.complete_json("Return {\\"ok\\": true}")
"""

from sage.providers.base import CompletionProvider
from sage.providers.factory import create_provider
from sage.providers.openai_compatible import OpenAICompatibleProvider

__all__ = ["CompletionProvider", "OpenAICompatibleProvider", "create_provider"]
