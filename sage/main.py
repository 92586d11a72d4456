"""CLI entry point for the sage release notes service."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click
import structlog
from pydantic import ValidationError

from sage.config.settings import SageSettings
from sage.exceptions import ConfigurationError, SageError
from sage.providers.factory import create_provider
from sage.release_notes.planner import build_plan_from_input
from sage.release_notes.prompt import build_release_notes_prompt
from sage.release_notes.schemas import ReleaseNotesInput, ReleaseNotesOutput, format_validation_errors
from sage.release_notes.workflow import ReleaseNotesWorkflow
from sage.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--config",
    default=None,
    type=click.Path(dir_okay=False),
    help="Path to YAML configuration file (defaults to environment variables)",
)
@click.option("--log-level", default=None, help="Logging level (overrides configuration)")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """sage: Plan and generate release notes from Jira issues."""
    try:
        settings = SageSettings.from_yaml(config) if config else SageSettings()
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    configure_logging(log_level or settings.log_level)
    ctx.obj = {"settings": settings}


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def plan(ctx: click.Context, input_file: str) -> None:
    """Print the section plan for a release notes request file."""
    request = _load_request(input_file, ctx.obj["settings"])
    result = build_plan_from_input(request)
    click.echo(json.dumps(result.to_dict(), indent=2))


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def prompt(ctx: click.Context, input_file: str) -> None:
    """Print the LLM prompt for a release notes request file."""
    request = _load_request(input_file, ctx.obj["settings"])
    click.echo(build_release_notes_prompt(request, build_plan_from_input(request)))


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write JSON to this file instead of stdout")
@click.pass_context
def generate(ctx: click.Context, input_file: str, output: str | None) -> None:
    """Generate release notes for a request file using the configured LLM."""
    settings = ctx.obj["settings"]
    request = _load_request(input_file, settings)

    try:
        notes = asyncio.run(_generate(settings, request))
    except SageError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("generate_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    rendered = json.dumps(notes.to_dict(), indent=2)
    if output:
        Path(output).write_text(rendered + "\n")
        click.echo(f"Release notes written to {output}")
    else:
        click.echo(rendered)


@cli.command()
@click.option("--host", default=None, help="Interface to bind (overrides configuration)")
@click.option("--port", type=int, default=None, help="Port to listen on (overrides configuration)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the HTTP server."""
    import uvicorn

    from sage.server import create_app

    settings = ctx.obj["settings"]
    app = create_app(settings)
    uvicorn.run(app, host=host or settings.server.host, port=port or settings.server.port)


async def _generate(settings: SageSettings, request: ReleaseNotesInput) -> ReleaseNotesOutput:
    provider = create_provider(settings)
    try:
        workflow = ReleaseNotesWorkflow(provider, max_generation_attempts=settings.llm.max_generation_attempts)
        return await workflow.run(request)
    finally:
        await provider.close()


def _load_request(input_file: str, settings: SageSettings) -> ReleaseNotesInput:
    """Read and validate a request file, exiting with a readable error on failure."""
    try:
        data: Any = json.loads(Path(input_file).read_text())
    except json.JSONDecodeError as e:
        click.echo(f"Error: {input_file} is not valid JSON: {e}", err=True)
        sys.exit(1)

    if isinstance(data, dict) and "sections" not in data:
        data["sections"] = list(settings.release_notes.default_sections)

    try:
        return ReleaseNotesInput.model_validate(data)
    except ValidationError as e:
        errors = format_validation_errors(e)
        click.echo(f"Error: invalid release notes request: {json.dumps(errors)}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
