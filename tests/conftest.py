"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from typing import Any

import pytest

from sage.config.settings import SageSettings
from sage.providers.base import CompletionProvider
from sage.release_notes.schemas import JiraIssueInput, ReleaseNotesInput

DATA_DIR = Path(__file__).parent / "data"


class FakeProvider(CompletionProvider):
    """Completion provider that replays canned responses.

    Each response is either a string (returned as model text) or an
    exception instance (raised). Prompts are recorded for assertions.
    """

    agent_type = "fake"

    def __init__(self, responses: list[Any]):
        self.responses = list(responses)
        self.prompts: list[str] = []
        self.systems: list[str | None] = []
        self.closed = False

    async def complete(self, prompt: str, system: str | None = None, json_mode: bool = False) -> str:
        self.prompts.append(prompt)
        self.systems.append(system)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


def make_issue(key: str, issue_type: str, summary: str = "Summary", **fields: Any) -> JiraIssueInput:
    """Build a validated issue using wire (camelCase) field names."""
    return JiraIssueInput.model_validate({"key": key, "issueType": issue_type, "summary": summary, **fields})


@pytest.fixture
def sample_issues() -> list[JiraIssueInput]:
    """One improvement, one bug, one vulnerability."""
    return [
        make_issue("IMP-1", "IMPROVEMENT", "Adds a new dashboard widget"),
        make_issue("BUG-7", "BUG", "Fixes flaky replica set validation"),
        make_issue("SEC-42", "VULNERABILITY", "Addresses CVE-2024-1234"),
    ]


@pytest.fixture
def sample_request_body() -> dict[str, Any]:
    """Release notes request body as a caller would POST it."""
    return json.loads((DATA_DIR / "release_notes_request.json").read_text())


@pytest.fixture
def sample_request(sample_request_body: dict[str, Any]) -> ReleaseNotesInput:
    return ReleaseNotesInput.model_validate(sample_request_body)


@pytest.fixture
def valid_output() -> dict[str, Any]:
    """Schema-valid model output citing keys from the sample request."""
    return {
        "sections": [
            {
                "title": "Improvements",
                "items": [
                    {
                        "text": "Adds a card that charts daily connection usage.",
                        "citations": ["OPS-101"],
                        "links": [{"text": "connection usage", "url": "https://example.com/docs/usage"}],
                    }
                ],
            },
            {
                "title": "Bug Fixes",
                "items": [
                    {
                        "text": "Fixes the following CVEs:",
                        "subitems": [{"text": "CVE-2024-1234", "citations": ["OPS-301"]}],
                    },
                    {"text": "Resolves a scheduler deadlock.", "citations": ["OPS-201"]},
                ],
            },
        ]
    }


@pytest.fixture
def test_settings() -> SageSettings:
    """Settings with a local LLM endpoint and development error details."""
    return SageSettings(
        llm={"base_url": "http://localhost:8000/v1", "model": "test-model", "max_generation_attempts": 3},
        server={"environment": "development"},
    )


@pytest.fixture
def fake_provider_factory():
    """Return a callable building FakeProvider instances."""
    return FakeProvider
