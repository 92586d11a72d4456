"""Provider factory."""

import structlog

from sage.config.settings import SageSettings
from sage.providers.base import CompletionProvider
from sage.providers.openai_compatible import OpenAICompatibleProvider

log = structlog.get_logger(__name__)


def create_provider(settings: SageSettings) -> CompletionProvider:
    """Create the LLM provider described by settings.llm."""
    llm = settings.llm
    api_key = llm.api_key.get_secret_value() if llm.api_key else None

    log.info("creating_llm_provider", base_url=llm.base_url, model=llm.model)

    return OpenAICompatibleProvider(
        base_url=llm.base_url,
        model=llm.model,
        api_key=api_key,
        timeout=llm.timeout,
        temperature=llm.temperature,
        max_retries=llm.max_request_attempts,
        backoff_factor=llm.retry_backoff,
    )
