"""Static issue-type classification for release notes.

Maps issue-tracker types to the release notes section they belong in. The
table is immutable and shared across requests; the planner receives it as a
parameter so tests can substitute their own.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

DEFAULT_SECTION_TITLES: tuple[str, ...] = ("Improvements", "Bug Fixes")

SECURITY_ISSUE_TYPE = "VULNERABILITY"

CURATED_COPY_KEY = "release_notes"

DEFAULT_SECTION_MAPPING: Mapping[str, str] = MappingProxyType(
    {
        "IMPROVEMENT": "Improvements",
        "NEW FEATURE": "Improvements",
        "FEATURE": "Improvements",
        "EPIC": "Improvements",
        "BUG": "Bug Fixes",
        "DEFECT": "Bug Fixes",
        "VULNERABILITY": "Security",
    }
)


@dataclass(frozen=True)
class ClassificationTable:
    """Issue type to section title lookup.

    Lookups are exact and case-sensitive: "Bug" and "BUG" are different types.
    """

    section_mapping: Mapping[str, str] = field(default_factory=lambda: DEFAULT_SECTION_MAPPING)
    security_issue_type: str = SECURITY_ISSUE_TYPE
    curated_copy_key: str = CURATED_COPY_KEY

    def __post_init__(self) -> None:
        if not isinstance(self.section_mapping, MappingProxyType):
            object.__setattr__(self, "section_mapping", MappingProxyType(dict(self.section_mapping)))

    def section_for(self, issue_type: str) -> str | None:
        """Return the section title for an issue type, or None if unmapped."""
        return self.section_mapping.get(issue_type)

    def is_security(self, issue_type: str) -> bool:
        return issue_type == self.security_issue_type


DEFAULT_CLASSIFICATION = ClassificationTable()
