"""Tests for sage/server.py."""

import json

import pytest
from fastapi.testclient import TestClient

from sage import __version__
from sage.config.settings import SageSettings
from sage.exceptions import ProviderConnectionError
from sage.server import REQUEST_ID_HEADER, create_app, load_settings
from tests.conftest import FakeProvider


@pytest.fixture
def make_client(test_settings):
    """Build a TestClient around an app with a fake provider."""

    def _make(responses=(), settings: SageSettings | None = None) -> tuple[TestClient, FakeProvider]:
        provider = FakeProvider(list(responses))
        app = create_app(settings or test_settings, provider=provider)
        return TestClient(app, raise_server_exceptions=False), provider

    return _make


class TestHealthAndVersion:
    """Tests for service metadata endpoints."""

    def test_health_check_returns_healthy(self, make_client):
        client, _ = make_client()

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "sage"}

    def test_version(self, make_client):
        client, _ = make_client()

        assert client.get("/version").json() == {"version": __version__}

    def test_request_id_echoed(self, make_client):
        client, _ = make_client()

        response = client.get("/health", headers={REQUEST_ID_HEADER: "req-123"})

        assert response.headers[REQUEST_ID_HEADER] == "req-123"

    def test_request_id_generated(self, make_client):
        client, _ = make_client()

        assert len(client.get("/health").headers[REQUEST_ID_HEADER]) == 32


class TestPlanEndpoint:
    """Tests for POST /release-notes/plan."""

    def test_plan_sample_request(self, make_client, sample_request_body):
        client, provider = make_client()

        response = client.post("/release-notes/plan", json=sample_request_body)

        assert response.status_code == 200
        data = response.json()
        assert data["sections"] == [
            {"title": "Improvements", "issueKeys": ["OPS-101"]},
            {"title": "Bug Fixes", "issueKeys": ["OPS-201", "OPS-202"]},
        ]
        assert [issue["key"] for issue in data["issues"]] == ["OPS-101", "OPS-201", "OPS-301", "OPS-401", "OPS-202"]
        assert data["hasSecurityIssues"] is True
        assert "metadata" not in data["issues"][1]
        assert provider.prompts == []

    def test_plan_uses_configured_default_sections(self, make_client):
        settings = SageSettings(release_notes={"default_sections": ["Bug Fixes"]})
        client, _ = make_client(settings=settings)
        body = {"jiraIssues": [{"key": "I-1", "issueType": "IMPROVEMENT", "summary": "s"}, {"key": "B-1", "issueType": "BUG", "summary": "s"}]}

        data = client.post("/release-notes/plan", json=body).json()

        assert data["sections"] == [{"title": "Bug Fixes", "issueKeys": ["B-1"]}]

    def test_invalid_body_returns_400(self, make_client):
        client, _ = make_client()

        response = client.post("/release-notes/plan", json={"jiraIssues": [{"key": "A-1"}]})

        assert response.status_code == 400
        data = response.json()
        assert data["message"] == "Invalid request body"
        assert "jiraIssues" in data["errors"]["fieldErrors"]
        assert data["errors"]["formErrors"] == []

    def test_malformed_json_returns_400(self, make_client):
        client, _ = make_client()

        response = client.post(
            "/release-notes/plan", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["errors"]["formErrors"] == ["Body must be valid JSON"]

    def test_array_body_returns_form_error(self, make_client):
        client, _ = make_client()

        response = client.post("/release-notes/plan", json=[1, 2])

        assert response.status_code == 400
        assert response.json()["errors"]["fieldErrors"] == {}
        assert len(response.json()["errors"]["formErrors"]) == 1


class TestGenerateEndpoint:
    """Tests for POST /completions/release-notes/generate."""

    def test_generate_success(self, make_client, sample_request_body, valid_output):
        client, provider = make_client([json.dumps(valid_output)])

        response = client.post("/completions/release-notes/generate", json=sample_request_body)

        assert response.status_code == 200
        assert response.json() == valid_output
        assert "### OPS-101 (IMPROVEMENT)" in provider.prompts[0]

    def test_generate_invalid_body(self, make_client):
        client, provider = make_client()

        response = client.post("/completions/release-notes/generate", json={"sections": []})

        assert response.status_code == 400
        assert set(response.json()["errors"]["fieldErrors"]) == {"jiraIssues", "sections"}
        assert provider.prompts == []

    def test_generate_failure_includes_details_outside_production(self, make_client, sample_request_body):
        client, _ = make_client([ProviderConnectionError("Cannot connect to LLM provider")])

        response = client.post("/completions/release-notes/generate", json=sample_request_body)

        assert response.status_code == 500
        assert response.json() == {
            "message": "Failed to generate release notes",
            "details": "Cannot connect to LLM provider",
        }

    def test_generate_failure_hides_details_in_production(self, make_client, sample_request_body):
        settings = SageSettings(server={"environment": "production"})
        client, _ = make_client(["{}", "{}", "{}"], settings=settings)

        response = client.post("/completions/release-notes/generate", json=sample_request_body)

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to generate release notes"}

    def test_generate_unexpected_error(self, make_client, sample_request_body):
        client, _ = make_client([RuntimeError("kaboom")])

        response = client.post("/completions/release-notes/generate", json=sample_request_body)

        assert response.status_code == 500
        assert response.json()["details"] == "kaboom"


class TestLoadSettings:
    """Tests for load_settings."""

    def test_from_environment(self, monkeypatch):
        monkeypatch.delenv("SAGE_CONFIG_FILE", raising=False)
        monkeypatch.setenv("SAGE_LLM__MODEL", "env-model")

        assert load_settings().llm.model == "env-model"

    def test_from_config_file(self, monkeypatch, tmp_path):
        config_file = tmp_path / "sage.yaml"
        config_file.write_text("llm:\n  model: file-model\n")
        monkeypatch.setenv("SAGE_CONFIG_FILE", str(config_file))

        assert load_settings().llm.model == "file-model"


class TestLifespan:
    """Tests for application startup and shutdown."""

    def test_shutdown_closes_provider(self, test_settings):
        provider = FakeProvider([])
        app = create_app(test_settings, provider=provider)

        with TestClient(app) as client:
            assert client.get("/health").status_code == 200
            assert provider.closed is False

        assert provider.closed is True

    def test_shutdown_without_provider(self, test_settings):
        app = create_app(test_settings)

        with TestClient(app) as client:
            client.get("/health")

        assert app.state.provider is None
