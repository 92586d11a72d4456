"""
Release notes generation workflow.

Runs the four generation steps in order:

1. plan sections from the validated request
2. format the planner and requirements into a prompt
3. generate JSON with the LLM, retrying with stricter instructions when the
   output misses the schema
4. repair, validate, and citation-check the output

Example:
    >>> workflow = ReleaseNotesWorkflow(provider)
    >>> notes = await workflow.run(ReleaseNotesInput.model_validate(body))
    >>> notes.to_dict()["sections"][0]["title"]
    'Improvements'
"""

from typing import Any

import structlog
from pydantic import ValidationError

from sage.exceptions import OutputValidationError
from sage.providers.base import CompletionProvider
from sage.release_notes.citations import validate_release_notes_citations
from sage.release_notes.classification import DEFAULT_CLASSIFICATION, ClassificationTable
from sage.release_notes.models import PlanResult
from sage.release_notes.normalize import normalize_release_notes_output
from sage.release_notes.planner import build_plan_from_input
from sage.release_notes.prompt import (
    SYSTEM_PROMPT,
    build_release_notes_prompt,
    derive_section_focus,
    with_retry_instructions,
)
from sage.release_notes.schemas import ReleaseNotesInput, ReleaseNotesOutput

log = structlog.get_logger(__name__)

DEFAULT_MAX_GENERATION_ATTEMPTS = 3


class ReleaseNotesWorkflow:
    """Generates structured release notes from Jira issues and pull requests."""

    def __init__(
        self,
        provider: CompletionProvider,
        max_generation_attempts: int = DEFAULT_MAX_GENERATION_ATTEMPTS,
        table: ClassificationTable = DEFAULT_CLASSIFICATION,
    ):
        """Initialize the workflow.

        Args:
            provider: LLM provider used for generation
            max_generation_attempts: Attempts before a schema mismatch is fatal
            table: Issue type classification handed to the planner
        """
        if max_generation_attempts < 1:
            raise ValueError("max_generation_attempts must be at least 1")
        self.provider = provider
        self.max_generation_attempts = max_generation_attempts
        self.table = table

    async def run(self, request: ReleaseNotesInput) -> ReleaseNotesOutput:
        """Run every step and return validated release notes.

        Raises:
            OutputValidationError: If no attempt produced schema-valid output
            CitationError: If the notes cite issues that were not supplied
            ProviderConnectionError: If the LLM provider is unreachable
            ExternalServiceError: If the LLM provider returns an error status
        """
        plan = self.plan(request)
        prompt = self.format_prompt(request, plan)
        notes = await self.generate(prompt)
        return self.validate(notes, known_keys=[issue.key for issue in request.jira_issues])

    def plan(self, request: ReleaseNotesInput) -> PlanResult:
        """Step 1: build section plans and attach a focus hint to each section."""
        log.debug(
            "building_section_plans",
            issue_count=len(request.jira_issues),
            section_count=len(request.sections),
        )
        plan = build_plan_from_input(request, self.table)
        for section in plan.sections:
            section.focus = derive_section_focus(section.title)

        log.info(
            "section_plans_built",
            issue_count=len(plan.issues),
            section_count=len(plan.sections),
            has_security_issues=plan.has_security_issues,
        )
        return plan

    def format_prompt(self, request: ReleaseNotesInput, plan: PlanResult) -> str:
        """Step 2: render the prompt."""
        prompt = build_release_notes_prompt(request, plan)
        log.debug("prompt_formatted", prompt_length=len(prompt))
        return prompt

    async def generate(self, prompt: str) -> ReleaseNotesOutput:
        """Step 3: ask the model for release notes.

        Only schema mismatches are retried. Every other failure propagates on
        the first attempt.
        """
        last_error: OutputValidationError | None = None

        for attempt in range(1, self.max_generation_attempts + 1):
            prompt_for_attempt = prompt if attempt == 1 else with_retry_instructions(prompt)
            log.debug("calling_release_notes_model", attempt=attempt, max_attempts=self.max_generation_attempts)

            try:
                raw = await self.provider.complete_json(prompt_for_attempt, system=SYSTEM_PROMPT)
                return self._parse_output(raw)
            except OutputValidationError as e:
                last_error = e
                if attempt == self.max_generation_attempts:
                    break
                log.warning(
                    "release_notes_generation_retry",
                    attempt=attempt,
                    max_attempts=self.max_generation_attempts,
                    error=e.message,
                )

        log.error("release_notes_generation_failed", attempts=self.max_generation_attempts)
        raise last_error or OutputValidationError("Release notes generation produced no output")

    def validate(self, output: ReleaseNotesOutput, known_keys: list[str]) -> ReleaseNotesOutput:
        """Step 4: check that every citation names a supplied issue."""
        validate_release_notes_citations(output, known_keys)
        log.info(
            "release_notes_validated",
            section_count=len(output.sections),
            total_items=sum(len(section.items) for section in output.sections),
        )
        return output

    def _parse_output(self, raw: Any) -> ReleaseNotesOutput:
        normalized = normalize_release_notes_output(raw)
        if normalized is None:
            raise OutputValidationError(
                "Model output does not match the expected schema: no usable sections",
                agent_type=self.provider.agent_type,
            )

        try:
            return ReleaseNotesOutput.model_validate(normalized)
        except ValidationError as e:
            raise OutputValidationError(
                "Model output does not match the expected schema",
                errors=[{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()],
                agent_type=self.provider.agent_type,
            ) from e
