"""
Release notes section planner.

Turns a flat list of validated Jira issues into a plan the generation step
can follow: which configured sections have content and which issues go in
them, a cleaned-up record per issue, and whether any issue is a security fix.

The planner is a pure function. It performs no I/O, keeps no state between
calls, and raises nothing for schema-valid input: unknown issue types and
blank optional fields are dropped rather than reported.

Example:
    >>> plan = build_plan(request.jira_issues, sections=["Improvements", "Bug Fixes"])
    >>> [section.title for section in plan.sections]
    ['Improvements']
"""

from collections.abc import Iterable, Mapping, Sequence

from sage.release_notes.classification import (
    DEFAULT_CLASSIFICATION,
    DEFAULT_SECTION_TITLES,
    ClassificationTable,
)
from sage.release_notes.models import EnrichedIssue, PlanResult, PullRequestSummary, SectionPlan
from sage.release_notes.schemas import JiraIssueInput, MetadataValue, PullRequestInput, ReleaseNotesInput


def build_plan(
    issues: Sequence[JiraIssueInput],
    sections: Sequence[str] | None = None,
    table: ClassificationTable = DEFAULT_CLASSIFICATION,
) -> PlanResult:
    """Build the section plan for a release.

    Args:
        issues: Validated issues in release order
        sections: Ordered section titles; DEFAULT_SECTION_TITLES when None
        table: Issue type classification to apply

    Returns:
        PlanResult with non-empty sections in configured order, one enriched
        issue per input issue, and the security flag
    """
    titles = list(sections) if sections is not None else list(DEFAULT_SECTION_TITLES)

    return PlanResult(
        sections=assign_sections(issues, titles, table),
        issues=[enrich_issue(issue, table) for issue in issues],
        has_security_issues=has_security_issues(issues, table),
    )


def build_plan_from_input(
    request: ReleaseNotesInput,
    table: ClassificationTable = DEFAULT_CLASSIFICATION,
) -> PlanResult:
    """Build the section plan for a validated release notes request."""
    return build_plan(request.jira_issues, request.sections, table)


def assign_sections(
    issues: Iterable[JiraIssueInput],
    titles: Sequence[str],
    table: ClassificationTable = DEFAULT_CLASSIFICATION,
) -> list[SectionPlan]:
    """Group issue keys under the configured section titles.

    Issues whose type is unmapped, or maps to a title that isn't configured,
    stay out of every section. Sections left empty are dropped. A title
    repeated in the configuration is kept once, at its first position.
    """
    buckets: dict[str, list[str]] = {}
    for title in titles:
        buckets.setdefault(title, [])

    for issue in issues:
        target = table.section_for(issue.issue_type)
        if target is None or target not in buckets:
            continue
        buckets[target].append(issue.key)

    return [SectionPlan(title=title, issue_keys=keys) for title, keys in buckets.items() if keys]


def has_security_issues(
    issues: Iterable[JiraIssueInput],
    table: ClassificationTable = DEFAULT_CLASSIFICATION,
) -> bool:
    """True if any issue has the security issue type, wherever it was sectioned."""
    return any(table.is_security(issue.issue_type) for issue in issues)


def enrich_issue(
    issue: JiraIssueInput,
    table: ClassificationTable = DEFAULT_CLASSIFICATION,
) -> EnrichedIssue:
    """Produce the cleaned release-note view of a single issue."""
    curated_copy, metadata = split_curated_copy(issue.additional_metadata, table.curated_copy_key)

    return EnrichedIssue(
        key=issue.key,
        curated_copy=curated_copy,
        description=_trimmed_or_none(issue.description),
        metadata=metadata,
        pull_requests=[_summarize_pull_request(pr) for pr in issue.pull_requests or []],
    )


def split_curated_copy(
    metadata: Mapping[str, MetadataValue] | None,
    curated_key: str,
) -> tuple[str | None, dict[str, str] | None]:
    """Separate curated copy from the rest of an issue's metadata.

    Keys and values are trimmed; values are stringified first. Entries with
    a blank key or value are dropped, and so is the curated copy key whether
    or not it held usable text. Nested values are not descended into.

    Returns:
        (curated_copy, metadata) where metadata is None rather than empty
    """
    if not metadata:
        return None, None

    curated_copy: str | None = None
    cleaned: dict[str, str] = {}

    for raw_key, raw_value in metadata.items():
        key = str(raw_key).strip()
        value = _stringify(raw_value).strip()
        if key == curated_key:
            if value and curated_copy is None:
                curated_copy = value
            continue
        if not key or not value:
            continue
        cleaned[key] = value

    return curated_copy, cleaned or None


def _summarize_pull_request(pr: PullRequestInput) -> PullRequestSummary:
    return PullRequestSummary(title=pr.title.strip(), description=_trimmed_or_none(pr.description))


def _trimmed_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _stringify(value: MetadataValue) -> str:
    # Values render as their JSON text; whole floats below 1e21 print as integers
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return str(value)
