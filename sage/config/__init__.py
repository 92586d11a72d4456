"""Configuration system for the sage service.

Key Components:
    - SageSettings: Main configuration container with YAML loading support
    - ServerConfig: HTTP server binding and environment
    - LLMConfig: LLM endpoint, model, and generation retry settings
    - ReleaseNotesConfig: Release notes defaults

Example:
    >>> from sage.config import SageSettings
    >>> settings = SageSettings.from_yaml("sage.yaml")
    >>> settings.llm.model
    'gpt-4.1'
"""

from sage.config.settings import LLMConfig, ReleaseNotesConfig, SageSettings, ServerConfig

__all__ = ["LLMConfig", "ReleaseNotesConfig", "SageSettings", "ServerConfig"]
