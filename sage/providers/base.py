"""
Abstract base class for LLM completion providers.

The release notes workflow only needs two things from a model: free text
for a prompt, and parsed JSON for a prompt. Providers normalize their
backend's API into that contract.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any

from sage.exceptions import OutputValidationError

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class CompletionProvider(ABC):
    """Abstract base class for LLM providers.

    All methods are async to support non-blocking I/O with HTTP clients.
    """

    agent_type: str = "unknown"

    @abstractmethod
    async def complete(self, prompt: str, system: str | None = None, json_mode: bool = False) -> str:
        """Return the model's text response for a prompt.

        Args:
            prompt: User message content
            system: Optional system message
            json_mode: Ask the backend to constrain output to a JSON object

        Raises:
            ProviderConnectionError: If the backend cannot be reached
            ExternalServiceError: If the backend answers with an error status
            OutputValidationError: If the backend returns no content
        """
        pass

    async def complete_json(self, prompt: str, system: str | None = None) -> Any:
        """Return the model's response parsed as JSON.

        Markdown code fences around the JSON are tolerated.

        Raises:
            OutputValidationError: If the response is not valid JSON
        """
        text = await self.complete(prompt, system=system, json_mode=True)
        return parse_json_response(text, agent_type=self.agent_type)

    async def close(self) -> None:
        """Release any resources held by the provider."""
        return None


def parse_json_response(text: str, agent_type: str | None = None) -> Any:
    """Parse model text as JSON, stripping a surrounding code fence if present.

    Raises:
        OutputValidationError: If the text is not valid JSON
    """
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    if match:
        stripped = match.group(1)

    try:
        return json.loads(stripped)
    except json.JSONDecodeError as e:
        raise OutputValidationError(
            f"Model output does not match the expected schema: invalid JSON ({e.msg})",
            agent_type=agent_type,
        ) from e
