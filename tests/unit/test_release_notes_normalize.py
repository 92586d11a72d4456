"""Tests for sage/release_notes/normalize.py."""

import pytest

from sage.release_notes.normalize import normalize_release_notes_output
from sage.release_notes.schemas import ReleaseNotesOutput


class TestNormalizeReleaseNotesOutput:
    """Repairs of common model schema deviations."""

    def test_repairs_common_deviations(self):
        raw = {
            "sections": [
                {
                    "title": "  Improvements ",
                    "items": [
                        {
                            "summary": "Adds a new metrics dashboard for ops teams.",
                            "citations": "DEVPROD-1, DEVPROD-2",
                            "links": [
                                {"label": "Metrics Dashboard", "href": "https://example.com/docs"},
                                {"text": "", "url": ""},
                            ],
                            "subitems": [
                                {"text": "Follow-on task to expand datasets.", "citations": ["DEVPROD-2", ""]},
                                {"text": "  "},
                            ],
                        },
                        {"text": "   ", "citations": ["DEVPROD-3"]},
                    ],
                },
                {
                    "name": "Bug Fixes",
                    "entries": [
                        {
                            "title": "Resolves crash when parsing configs.",
                            "citation": "DEVPROD-9",
                            "links": {"text": "Crash Fix", "url": "https://example.com/fix"},
                        }
                    ],
                },
            ]
        }

        output = ReleaseNotesOutput.model_validate(normalize_release_notes_output(raw))

        improvements, bug_fixes = output.sections
        assert improvements.title == "Improvements"
        assert len(improvements.items) == 1
        assert improvements.items[0].citations == ["DEVPROD-1", "DEVPROD-2"]
        assert [link.model_dump() for link in improvements.items[0].links] == [
            {"text": "Metrics Dashboard", "url": "https://example.com/docs"}
        ]
        assert len(improvements.items[0].subitems) == 1
        assert improvements.items[0].subitems[0].citations == ["DEVPROD-2"]

        assert bug_fixes.title == "Bug Fixes"
        assert bug_fixes.items[0].text == "Resolves crash when parsing configs."
        assert bug_fixes.items[0].citations == ["DEVPROD-9"]

    def test_sections_keyed_by_title(self):
        raw = {
            "sections": {
                "Improvements": [{"text": "Supports automatic sharding.", "issues": ["DEVPROD-10"]}],
                "Bug Fixes": [{"text": "Fixes rollout regression.", "issues": "DEVPROD-11"}],
            }
        }

        output = ReleaseNotesOutput.model_validate(normalize_release_notes_output(raw))

        assert [section.title for section in output.sections] == ["Improvements", "Bug Fixes"]
        assert output.sections[0].items[0].citations == ["DEVPROD-10"]
        assert output.sections[1].items[0].citations == ["DEVPROD-11"]

    def test_plain_string_items(self):
        normalized = normalize_release_notes_output({"sections": [{"title": "Notes", "items": ["Faster builds."]}]})

        assert normalized == {"sections": [{"title": "Notes", "items": [{"text": "Faster builds."}]}]}

    def test_empty_citations_omitted(self):
        normalized = normalize_release_notes_output(
            {"sections": [{"title": "Notes", "items": [{"text": "Grouping bullet", "citations": []}]}]}
        )

        assert normalized["sections"][0]["items"][0] == {"text": "Grouping bullet"}

    def test_drops_sections_without_usable_items(self):
        normalized = normalize_release_notes_output(
            {
                "sections": [
                    {"title": "Empty", "items": [{"text": "  "}]},
                    {"title": "", "items": [{"text": "No title"}]},
                    {"title": "Kept", "items": [{"text": "Valid"}]},
                ]
            }
        )

        assert [section["title"] for section in normalized["sections"]] == ["Kept"]

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "release notes",
            [],
            {},
            {"sections": "Improvements"},
            {"sections": []},
            {"sections": [{"title": "Improvements", "items": []}]},
        ],
    )
    def test_unrecoverable_input_returns_none(self, raw):
        assert normalize_release_notes_output(raw) is None

    def test_valid_output_is_unchanged(self, valid_output):
        assert normalize_release_notes_output(valid_output) == valid_output
