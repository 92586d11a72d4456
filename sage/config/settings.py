"""
Configuration system using Pydantic for type-safe settings management.

Settings come from a YAML file (with ${VAR} interpolation) or from
environment variables prefixed with ``SAGE_``, e.g. ``SAGE_LLM__MODEL``.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sage.exceptions import ConfigurationError
from sage.release_notes.classification import DEFAULT_SECTION_TITLES


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=8080, ge=1, le=65535, description="Port to listen on")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment. Error details are hidden from responses in production.",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


class LLMConfig(BaseModel):
    """LLM provider configuration for release notes generation.

    Any server implementing the OpenAI chat completions API works
    (OpenAI, Azure OpenAI proxies, vLLM, LMStudio).
    """

    base_url: str = Field(default="https://api.openai.com/v1", description="API base URL")
    model: str = Field(default="gpt-4.1", description="Model identifier")
    api_key: SecretStr | None = Field(default=None, description="API key sent as a bearer token")
    timeout: float = Field(default=120.0, gt=0, description="Request timeout in seconds")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0, description="Sampling temperature")
    max_generation_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts before giving up when the model output fails schema validation",
    )
    max_request_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per HTTP request on transport errors, rate limiting and gateway failures",
    )
    retry_backoff: float = Field(
        default=2.0,
        ge=0.0,
        description="Base of the exponential backoff between request attempts, in seconds",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError(f"base_url must start with http:// or https://, got: {value}")
        return value.rstrip("/")


class ReleaseNotesConfig(BaseModel):
    """Release notes behavior configuration."""

    default_sections: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SECTION_TITLES),
        min_length=1,
        description="Section titles used when a request does not supply its own",
    )


class SageSettings(BaseSettings):
    """Main service settings.

    Combines all configuration sections and provides loading from YAML files
    with environment variable interpolation.
    """

    model_config = SettingsConfigDict(
        env_prefix="SAGE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    log_level: str = Field(default="INFO", description="Minimum log level")
    server: ServerConfig = Field(default_factory=ServerConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    release_notes: ReleaseNotesConfig = Field(default_factory=ReleaseNotesConfig)

    @classmethod
    def from_yaml(cls, config_path: str) -> SageSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} and ${VAR_NAME:-default} substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            SageSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing required fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file) as f:
                yaml_content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except Exception as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        Supports two syntaxes:
        - ${VAR_NAME} - Required environment variable (raises if not set)
        - ${VAR_NAME:-default} - Optional with default value

        YAML comment lines are left untouched.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
