"""HTTP server for release notes planning and generation."""

import json
import os
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from sage import __version__
from sage.config.settings import SageSettings
from sage.exceptions import SageError
from sage.providers.base import CompletionProvider
from sage.providers.factory import create_provider
from sage.release_notes.planner import build_plan_from_input
from sage.release_notes.schemas import ReleaseNotesInput, format_validation_errors
from sage.release_notes.workflow import ReleaseNotesWorkflow
from sage.utils.logging_config import bind_context, clear_context

log = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def load_settings() -> SageSettings:
    """Load settings from $SAGE_CONFIG_FILE when set, otherwise from the environment."""
    config_file = os.getenv("SAGE_CONFIG_FILE")
    if config_file:
        return SageSettings.from_yaml(config_file)
    return SageSettings()


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    if app.state.provider is not None:
        await app.state.provider.close()
        log.info("llm_provider_closed")


def create_app(
    settings: SageSettings | None = None,
    provider: CompletionProvider | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Service settings; loaded with load_settings() when None
        provider: LLM provider; built from settings on first generation when None
    """
    settings = settings or load_settings()

    app = FastAPI(title="Sage Release Notes Service", version=__version__, lifespan=_lifespan)
    app.state.settings = settings
    app.state.provider = provider

    @app.middleware("http")
    async def request_context(request: Request, call_next: Any) -> Any:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        clear_context()
        bind_context(request_id=request_id, path=request.url.path)
        try:
            response = await call_next(request)
        finally:
            clear_context()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "service": "sage"}

    @app.get("/version")
    async def version() -> dict[str, str]:
        return {"version": __version__}

    @app.post("/release-notes/plan")
    async def plan_release_notes(request: Request) -> JSONResponse:
        """Return the section plan for a release without calling the LLM."""
        parsed = await _parse_release_notes_input(request, settings)
        if isinstance(parsed, JSONResponse):
            return parsed

        plan = build_plan_from_input(parsed)
        log.info(
            "release_notes_planned",
            issue_count=len(plan.issues),
            section_count=len(plan.sections),
            product=parsed.product,
        )
        return JSONResponse(status_code=200, content=plan.to_dict())

    @app.post("/completions/release-notes/generate")
    async def generate_release_notes(request: Request) -> JSONResponse:
        """Generate structured release notes from Jira issues and pull request metadata.

        Request body:
        - jiraIssues: Array of Jira issue objects (required)
        - sections: Array of section titles (optional)
        - customGuidelines: Optional custom formatting guidelines
        - product: Optional product name (for logging)
        """
        parsed = await _parse_release_notes_input(request, settings)
        if isinstance(parsed, JSONResponse):
            return parsed

        if parsed.product:
            bind_context(product=parsed.product)

        workflow = ReleaseNotesWorkflow(
            _get_provider(app),
            max_generation_attempts=settings.llm.max_generation_attempts,
        )

        try:
            notes = await workflow.run(parsed)
        except SageError as e:
            log.error("release_notes_workflow_failed", error=str(e), exc_info=True)
            return _failure_response(settings, e.message)
        except Exception as e:
            log.error("release_notes_workflow_unexpected", error=str(e), exc_info=True)
            return _failure_response(settings, str(e))

        return JSONResponse(status_code=200, content=notes.to_dict())

    return app


async def _parse_release_notes_input(request: Request, settings: SageSettings) -> ReleaseNotesInput | JSONResponse:
    """Validate the request body, or build the 400 response describing why it failed."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        log.warning("invalid_release_notes_body", reason="malformed JSON")
        return JSONResponse(
            status_code=400,
            content={
                "message": "Invalid request body",
                "errors": {"fieldErrors": {}, "formErrors": ["Body must be valid JSON"]},
            },
        )

    if isinstance(body, dict) and "sections" not in body:
        body = {**body, "sections": list(settings.release_notes.default_sections)}

    try:
        return ReleaseNotesInput.model_validate(body)
    except ValidationError as e:
        errors = format_validation_errors(e)
        log.warning("invalid_release_notes_body", **errors)
        return JSONResponse(status_code=400, content={"message": "Invalid request body", "errors": errors})


def _get_provider(app: FastAPI) -> CompletionProvider:
    if app.state.provider is None:
        app.state.provider = create_provider(app.state.settings)
    return app.state.provider


def _failure_response(settings: SageSettings, details: str) -> JSONResponse:
    content = {"message": "Failed to generate release notes"}
    if not settings.server.is_production:
        content["details"] = details
    return JSONResponse(status_code=500, content=content)


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=app.state.settings.server.host, port=app.state.settings.server.port)
