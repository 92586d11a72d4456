"""Release notes planning and generation.

Key Components:
    - build_plan: Group issues into sections and clean their metadata
    - ClassificationTable: Issue type to section title lookup
    - ReleaseNotesInput / ReleaseNotesOutput: Request and response schemas
    - ReleaseNotesWorkflow (sage.release_notes.workflow): LLM generation

Example:
    >>> from sage.release_notes import ReleaseNotesInput, build_plan_from_input
    >>> request = ReleaseNotesInput.model_validate(body)
    >>> plan = build_plan_from_input(request)
    >>> plan.has_security_issues
    False
"""

from sage.release_notes.classification import (
    CURATED_COPY_KEY,
    DEFAULT_CLASSIFICATION,
    DEFAULT_SECTION_TITLES,
    SECURITY_ISSUE_TYPE,
    ClassificationTable,
)
from sage.release_notes.models import EnrichedIssue, PlanResult, PullRequestSummary, SectionPlan
from sage.release_notes.planner import build_plan, build_plan_from_input
from sage.release_notes.schemas import (
    JiraIssueInput,
    PullRequestInput,
    ReleaseNotesInput,
    ReleaseNotesOutput,
)

__all__ = [
    "CURATED_COPY_KEY",
    "DEFAULT_CLASSIFICATION",
    "DEFAULT_SECTION_TITLES",
    "SECURITY_ISSUE_TYPE",
    "ClassificationTable",
    "EnrichedIssue",
    "JiraIssueInput",
    "PlanResult",
    "PullRequestInput",
    "PullRequestSummary",
    "ReleaseNotesInput",
    "ReleaseNotesOutput",
    "SectionPlan",
    "build_plan",
    "build_plan_from_input",
]
