"""Custom exception hierarchy for the sage release notes service.

Exception Hierarchy:
    SageError (base)
    ├── ConfigurationError
    ├── ExternalServiceError
    ├── AgentError
    │   ├── ProviderConnectionError
    │   └── OutputValidationError
    └── WorkflowError
        └── CitationError

The section planner itself raises none of these: it is a total function over
validated input. Errors come from configuration loading, the LLM provider,
and the generation workflow that wraps the planner.

Example Usage:
    >>> from sage.exceptions import ConfigurationError
    >>> try:
    ...     load_config(path)
    ... except FileNotFoundError as e:
    ...     raise ConfigurationError(f"Config file not found: {path}") from e
"""

from typing import Any


class SageError(Exception):
    """Base exception for all sage errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(SageError):
    """Configuration-related errors.

    Examples:
        - Configuration file not found
        - Invalid YAML syntax
        - Missing required environment variable referenced by the config
        - Invalid configuration values
    """

    pass


class ExternalServiceError(SageError):
    """External service communication errors.

    Raised when an upstream HTTP service (the LLM endpoint) answers with an
    error status.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
            response_text: Response body text (if applicable)
        """
        self.message = message
        self.status_code = status_code
        self.response_text = response_text

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        super().__init__(full_message)
        self.message = message


# =============================================================================
# Agent Errors
# =============================================================================


class AgentError(SageError):
    """Base exception for LLM generation errors.

    Attributes:
        message: Human-readable error description
        agent_type: Provider that produced the error (e.g., "openai-compatible")
    """

    def __init__(self, message: str, agent_type: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            agent_type: Type of agent that failed
        """
        self.agent_type = agent_type
        full_message = f"{message} (agent: {agent_type})" if agent_type else message
        super().__init__(full_message)
        self.message = message


class ProviderConnectionError(AgentError):
    """Cannot connect to the LLM provider.

    Attributes:
        provider_url: URL of the provider that couldn't be reached
        suggestion: Helpful suggestion for resolving the issue
    """

    def __init__(
        self,
        message: str,
        provider_url: str | None = None,
        suggestion: str | None = None,
        agent_type: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            provider_url: URL of the unreachable provider
            suggestion: Suggestion for resolving the issue
            agent_type: Type of agent/provider
        """
        self.provider_url = provider_url
        self.suggestion = suggestion

        full_message = message
        if provider_url:
            full_message = f"{message} (url: {provider_url})"
        if suggestion:
            full_message = f"{full_message}\nSuggestion: {suggestion}"

        # Skip AgentError formatting, the url already identifies the provider
        SageError.__init__(self, full_message)
        self.agent_type = agent_type
        self.message = message


class OutputValidationError(AgentError):
    """Model output does not match the expected schema.

    The generation workflow retries on this error with stricter instructions.

    Attributes:
        errors: Structured validation errors, when available
    """

    def __init__(
        self,
        message: str,
        errors: list[dict[str, Any]] | None = None,
        agent_type: str | None = None,
    ) -> None:
        self.errors = errors or []
        super().__init__(message, agent_type=agent_type)


# =============================================================================
# Workflow Errors
# =============================================================================


class WorkflowError(SageError):
    """Release notes workflow errors.

    Examples:
        - A workflow step ran without the state produced by its predecessor
        - Generated notes cite issues that were never supplied
    """

    pass


class CitationError(WorkflowError):
    """Generated release notes cite unknown issue keys.

    Attributes:
        unknown_citations: Citations that match no input issue, in document order
    """

    def __init__(self, message: str, unknown_citations: list[str] | None = None) -> None:
        self.unknown_citations = unknown_citations or []
        full_message = message
        if self.unknown_citations:
            full_message = f"{message}: {', '.join(self.unknown_citations)}"
        super().__init__(full_message)
        self.message = message
