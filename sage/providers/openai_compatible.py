"""OpenAI-compatible chat completions provider (OpenAI, vLLM, LMStudio, etc.)."""

import asyncio
from typing import Any

import httpx
import structlog

from sage.exceptions import ExternalServiceError, OutputValidationError, ProviderConnectionError
from sage.providers.base import CompletionProvider

log = structlog.get_logger(__name__)

# Rate limiting and gateway failures; other statuses fail on the first response.
RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})


class OpenAICompatibleProvider(CompletionProvider):
    """Completion provider for servers implementing the OpenAI chat API.

    Transport failures and RETRYABLE_STATUS_CODES are retried with
    exponential backoff (``backoff_factor ** attempt`` seconds). Whatever
    still fails is raised as a SageError subclass, never as an httpx error.
    """

    agent_type = "openai-compatible"

    def __init__(
        self,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4.1",
        api_key: str | None = None,
        timeout: float = 120.0,
        temperature: float = 0.3,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
    ):
        """Initialize OpenAI-compatible provider.

        Args:
            base_url: API base URL (e.g., http://localhost:8000/v1)
            model: Model identifier to use
            api_key: Optional API key for authentication
            timeout: Request timeout in seconds
            temperature: Sampling temperature
            max_retries: Attempts per request on transport errors and retryable statuses
            backoff_factor: Base of the exponential backoff between attempts
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.temperature = temperature
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor

        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self.client = httpx.AsyncClient(timeout=timeout, headers=headers)

    async def _post(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        """POST a chat request, retrying transient failures.

        Returns the last response once it is final or attempts run out.
        Transport errors from the last attempt propagate.
        """
        attempt = 1
        while True:
            try:
                response = await self.client.post(url, json=payload)
            except httpx.TransportError as e:
                if attempt >= self.max_retries:
                    raise
                reason = f"{type(e).__name__}: {e}"
            else:
                if response.status_code not in RETRYABLE_STATUS_CODES or attempt >= self.max_retries:
                    return response
                reason = f"HTTP {response.status_code}"

            delay = self.backoff_factor**attempt
            log.warning(
                "llm_request_retry",
                model=self.model,
                attempt=attempt,
                max_attempts=self.max_retries,
                delay=delay,
                reason=reason,
            )
            await asyncio.sleep(delay)
            attempt += 1

    async def complete(self, prompt: str, system: str | None = None, json_mode: bool = False) -> str:
        """Execute a prompt against the chat completions endpoint."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        url = f"{self.base_url}/chat/completions"
        log.info("executing_prompt", model=self.model, prompt_length=len(prompt), json_mode=json_mode)

        try:
            response = await self._post(url, payload)
            response.raise_for_status()
        except httpx.ConnectError as e:
            log.error("llm_provider_unreachable", url=self.base_url)
            raise ProviderConnectionError(
                "Cannot connect to LLM provider",
                provider_url=self.base_url,
                suggestion="Check SAGE_LLM__BASE_URL and that the server is running",
                agent_type=self.agent_type,
            ) from e
        except httpx.TimeoutException as e:
            log.error("llm_provider_timeout", url=self.base_url, timeout=self.timeout)
            raise ProviderConnectionError(
                f"LLM provider timed out after {self.timeout}s",
                provider_url=self.base_url,
                agent_type=self.agent_type,
            ) from e
        except httpx.TransportError as e:
            log.error("llm_provider_transport_error", url=self.base_url, error=str(e))
            raise ProviderConnectionError(
                f"Connection to LLM provider failed: {type(e).__name__}",
                provider_url=self.base_url,
                agent_type=self.agent_type,
            ) from e
        except httpx.HTTPStatusError as e:
            error_detail = _error_detail(e.response)
            log.error(
                "prompt_execution_failed",
                status_code=e.response.status_code,
                error=error_detail,
            )
            raise ExternalServiceError(
                f"LLM provider returned an error: {error_detail}",
                status_code=e.response.status_code,
                response_text=e.response.text,
            ) from e

        try:
            result = response.json()
        except ValueError as e:
            log.error("invalid_provider_response", model=self.model)
            raise OutputValidationError(
                "LLM provider response body is not valid JSON", agent_type=self.agent_type
            ) from e
        if not isinstance(result, dict):
            raise OutputValidationError("LLM provider response is not a JSON object", agent_type=self.agent_type)

        choices = result.get("choices") or []
        if not choices:
            log.error("no_choices_in_response", model=self.model)
            raise OutputValidationError("No choices returned from API", agent_type=self.agent_type)

        output = (choices[0].get("message") or {}).get("content") or ""
        if not output.strip():
            raise OutputValidationError("Model returned empty content", agent_type=self.agent_type)

        usage = result.get("usage") or {}
        log.info(
            "prompt_executed",
            output_length=len(output),
            tokens=usage.get("total_tokens", usage.get("completion_tokens", 0)),
        )
        return output

    async def close(self) -> None:
        await self.client.aclose()


def _error_detail(response: httpx.Response) -> str:
    """Pull the error message out of an OpenAI-style error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return response.text or response.reason_phrase
