"""Tests for the issue type classification table."""

import pytest

from sage.release_notes.classification import (
    DEFAULT_CLASSIFICATION,
    DEFAULT_SECTION_MAPPING,
    ClassificationTable,
)


class TestDefaultClassification:
    @pytest.mark.parametrize(
        ("issue_type", "section"),
        [
            ("IMPROVEMENT", "Improvements"),
            ("NEW FEATURE", "Improvements"),
            ("FEATURE", "Improvements"),
            ("EPIC", "Improvements"),
            ("BUG", "Bug Fixes"),
            ("DEFECT", "Bug Fixes"),
            ("VULNERABILITY", "Security"),
        ],
    )
    def test_section_for_known_types(self, issue_type, section):
        assert DEFAULT_CLASSIFICATION.section_for(issue_type) == section

    @pytest.mark.parametrize("issue_type", ["Bug", "bug", "Task", "", "STORY"])
    def test_section_for_unmapped_types(self, issue_type):
        assert DEFAULT_CLASSIFICATION.section_for(issue_type) is None

    def test_is_security_is_exact(self):
        assert DEFAULT_CLASSIFICATION.is_security("VULNERABILITY") is True
        assert DEFAULT_CLASSIFICATION.is_security("Vulnerability") is False
        assert DEFAULT_CLASSIFICATION.is_security("BUG") is False

    def test_curated_copy_key(self):
        assert DEFAULT_CLASSIFICATION.curated_copy_key == "release_notes"


class TestImmutability:
    def test_mapping_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_SECTION_MAPPING["TASK"] = "Improvements"

    def test_table_fields_are_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_CLASSIFICATION.security_issue_type = "BUG"

    def test_custom_mapping_is_copied(self):
        mapping = {"Task": "Chores"}
        table = ClassificationTable(section_mapping=mapping)
        mapping["Task"] = "Other"

        assert table.section_for("Task") == "Chores"
        with pytest.raises(TypeError):
            table.section_mapping["Story"] = "Chores"
