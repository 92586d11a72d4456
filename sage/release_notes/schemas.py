"""
Request and response schemas for release notes.

Input models validate release notes requests before they reach the planner;
the planner trusts them and never re-validates. Output models describe the
structured release notes the LLM must return.

Field names on the wire are camelCase (``jiraIssues``, ``issueType``) to match
the callers' JSON; Python attributes are snake_case and either name is
accepted on input.
"""

from __future__ import annotations

from typing import Annotated, Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError, field_validator

from sage.release_notes.classification import DEFAULT_SECTION_TITLES

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

MetadataValue = str | int | float | bool | None


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Input
# =============================================================================


class PullRequestInput(_CamelModel):
    """Pull request linked to a Jira issue."""

    title: str = Field(..., description="Pull request title")
    description: str | None = Field(default=None, description="Pull request description in markdown format")


class JiraIssueInput(_CamelModel):
    """A Jira issue included in the release."""

    key: NonEmptyStr = Field(..., description='Jira issue key (e.g., "PROJ-123")')
    issue_type: NonEmptyStr = Field(
        ...,
        alias="issueType",
        description="Type of Jira issue. Matched case-sensitively against the classification table.",
    )
    summary: str = Field(..., description="Jira issue summary/title")
    description: str | None = Field(default=None, description="Jira issue description")
    additional_metadata: dict[str, MetadataValue] | None = Field(
        default=None,
        alias="additionalMetadata",
        description="Optional key/value metadata such as release_notes, customer_impact, or upgrade_notes",
    )
    pull_requests: list[PullRequestInput] | None = Field(
        default=None,
        alias="pullRequests",
        description="Pull requests associated with the Jira issue",
    )


class ReleaseNotesInput(_CamelModel):
    """Release notes generation request."""

    jira_issues: list[JiraIssueInput] = Field(
        ...,
        alias="jiraIssues",
        description="Jira issues associated with the release",
    )
    sections: list[NonEmptyStr] = Field(
        default_factory=lambda: list(DEFAULT_SECTION_TITLES),
        min_length=1,
        description="Ordered list of section titles. Defaults to Improvements and Bug Fixes.",
    )
    custom_guidelines: str | None = Field(
        default=None,
        alias="customGuidelines",
        description="Product-specific guidelines (section ordering, special formatting rules)",
    )
    product: str | None = Field(default=None, description="Product name, used for tracing and logging")


# =============================================================================
# Output
# =============================================================================


class ReleaseNotesLink(BaseModel):
    """A substring of a bullet's text that should be hyperlinked."""

    text: NonEmptyStr = Field(..., description="Exact substring within the bullet text to hyperlink")
    url: str = Field(..., description="Destination URL for the hyperlink")

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Link URLs must be valid.")
        return value


class ReleaseNotesItem(BaseModel):
    """A bullet in a release notes section."""

    text: NonEmptyStr = Field(..., description="Bullet text for this item")
    citations: Annotated[list[str], Field(min_length=1)] | None = Field(
        default=None,
        description="Supporting Jira issue keys. Omitted rather than empty.",
    )
    subitems: list[ReleaseNotesItem] | None = Field(default=None, description="Nested bullet points")
    links: list[ReleaseNotesLink] | None = Field(
        default=None,
        description="Substrings within the bullet text that should be hyperlinked",
    )


class ReleaseNotesSection(BaseModel):
    """A titled group of release notes bullets."""

    title: NonEmptyStr = Field(..., description='Section heading (e.g., "Improvements")')
    items: list[ReleaseNotesItem] = Field(..., min_length=1, description="Bullet items in this section")


class ReleaseNotesOutput(BaseModel):
    """Structured release notes returned by the generation workflow."""

    sections: list[ReleaseNotesSection] = Field(..., min_length=1)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


ReleaseNotesItem.model_rebuild()


def format_validation_errors(exc: ValidationError) -> dict[str, Any]:
    """Flatten a ValidationError into field-level and form-level messages.

    Errors are grouped by their top-level field; errors about the body as a
    whole (e.g., a JSON array where an object was expected) become form errors.

    Example:
        >>> format_validation_errors(exc)
        {"fieldErrors": {"jiraIssues": ["Field required"]}, "formErrors": []}
    """
    field_errors: dict[str, list[str]] = {}
    form_errors: list[str] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        message = error.get("msg", "Invalid value")
        if not loc:
            form_errors.append(message)
            continue
        field_errors.setdefault(str(loc[0]), []).append(message)

    return {"fieldErrors": field_errors, "formErrors": form_errors}
