"""sage: Release notes planning and generation service.

Groups issue-tracker tickets into release note sections, cleans their
metadata, and drives an LLM to turn the plan into structured release notes.
"""

__version__ = "0.4.0"

from sage.release_notes import (
    DEFAULT_CLASSIFICATION,
    ClassificationTable,
    PlanResult,
    build_plan,
    build_plan_from_input,
)

__all__ = [
    "ClassificationTable",
    "DEFAULT_CLASSIFICATION",
    "PlanResult",
    "build_plan",
    "build_plan_from_input",
    "__version__",
]
