"""Citation checks for generated release notes."""

from collections.abc import Iterable

from sage.exceptions import CitationError
from sage.release_notes.schemas import ReleaseNotesItem, ReleaseNotesOutput


def collect_citations(output: ReleaseNotesOutput) -> list[str]:
    """Return every citation in the output, depth-first in document order."""
    citations: list[str] = []
    for section in output.sections:
        _collect_from_items(section.items, citations)
    return citations


def validate_release_notes_citations(output: ReleaseNotesOutput, known_keys: Iterable[str]) -> None:
    """Ensure the generated notes only cite issues that were supplied.

    Raises:
        CitationError: If any citation names an unknown issue key
    """
    known = set(known_keys)
    unknown: list[str] = []
    for citation in collect_citations(output):
        if citation not in known and citation not in unknown:
            unknown.append(citation)

    if unknown:
        raise CitationError("Release notes cite unknown issues", unknown_citations=unknown)


def _collect_from_items(items: Iterable[ReleaseNotesItem], citations: list[str]) -> None:
    for item in items:
        citations.extend(item.citations or [])
        if item.subitems:
            _collect_from_items(item.subitems, citations)
