"""
Planner data model for release notes.

These dataclasses are the section planner's output. They are created fresh
for every planning call and never persisted. Optional fields use ``None`` for
"absent"; ``to_dict`` drops absent fields entirely so the JSON shape carries
no empty-string or empty-object sentinels.

Example:
    Serializing a plan for the HTTP layer::

        plan = build_plan(issues)
        payload = plan.to_dict()
        # {"sections": [...], "issues": [...], "hasSecurityIssues": False}
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class PullRequestSummary:
    """A pull request linked to an issue, with whitespace trimmed."""

    title: str
    """Pull request title."""

    description: str | None = None
    """Trimmed description. None when the original was blank or missing."""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"title": self.title}
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass
class SectionPlan:
    """A release notes section and the issues assigned to it.

    Only sections with at least one assigned issue appear in a plan.
    """

    title: str
    """Section heading exactly as configured (e.g., "Bug Fixes")."""

    issue_keys: list[str] = field(default_factory=list)
    """Keys of the issues assigned to this section, in input order."""

    focus: str | None = None
    """One-line hint describing what belongs in the section.

    Filled in by the prompt builder; the planner leaves it unset.
    """

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"title": self.title, "issueKeys": list(self.issue_keys)}
        if self.focus is not None:
            data["focus"] = self.focus
        return data


@dataclass
class EnrichedIssue:
    """An issue with its release-note-relevant fields cleaned up."""

    key: str
    """Issue key, passed through unchanged (e.g., "PROJ-123")."""

    curated_copy: str | None = None
    """Hand-written release note text taken from the curated copy metadata key."""

    description: str | None = None
    """Trimmed description. None when blank or missing."""

    metadata: dict[str, str] | None = None
    """Cleaned metadata without the curated copy key.

    Never an empty dict: None when no entries survive cleaning.
    """

    pull_requests: list[PullRequestSummary] = field(default_factory=list)
    """Linked pull requests in their original order."""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"key": self.key}
        if self.curated_copy is not None:
            data["curatedCopy"] = self.curated_copy
        if self.description is not None:
            data["description"] = self.description
        if self.metadata is not None:
            data["metadata"] = dict(self.metadata)
        data["pullRequests"] = [pr.to_dict() for pr in self.pull_requests]
        return data


@dataclass
class PlanResult:
    """Complete output of one planning call."""

    sections: list[SectionPlan]
    """Non-empty sections in configured order."""

    issues: list[EnrichedIssue]
    """One entry per input issue, in input order, regardless of sectioning."""

    has_security_issues: bool = False
    """Whether any input issue has the security issue type."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "sections": [section.to_dict() for section in self.sections],
            "issues": [issue.to_dict() for issue in self.issues],
            "hasSecurityIssues": self.has_security_issues,
        }
