"""
Prompt construction for release notes generation.

Renders a PlanResult and its source issues into the markdown prompt sent to
the LLM. The prompt has four parts: source data (custom guidelines), the
section planner, the per-issue summaries, and the output requirements.
"""

from collections.abc import Sequence

from sage.release_notes.models import PlanResult
from sage.release_notes.schemas import JiraIssueInput, ReleaseNotesInput

RETRY_INSTRUCTIONS = "\n".join(
    [
        "CRITICAL: Return ONLY valid JSON matching this exact schema.",
        'Do not include any fields outside of "sections".',
        'Each section must have "title" and "items".',
        'Each item MUST use "text" (NOT "title") for the item content.',
        'Only sections use "title" - items always use "text".',
        'Each item must have "text" and optionally "citations" (non-empty array if present), "subitems", and "links".',
        'NEVER include "citations": [] - if there are no citations, omit the citations field entirely.',
        'Remove any top-level fields other than "sections".',
    ]
)

SECURITY_GROUPING_HINT = (
    "Security-related issues are present. Consider grouping CVE fixes under a parent bullet "
    'such as "Fixes the following CVEs:" with one sub-bullet per vulnerability.'
)

OUTPUT_REQUIREMENTS: tuple[str, ...] = (
    "Return valid JSON that exactly matches the schema provided in your system prompt.",
    'Use "text" (NOT "title") for all items and subitems. Only sections use "title".',
    "Use the section titles surfaced in the Section Planner. Add new sections only when the data "
    "strongly suggests a distinct category.",
    "Assign each issue to the section that best matches its change; if no section is a perfect fit, "
    "choose the closest match and make the rationale clear in the bullet text.",
    "Summarize each bullet in one or two sentences that highlight user-facing impact.",
    "Prefer curated copy when present; otherwise synthesize text from summaries, descriptions, and metadata.",
    "Do not invent details beyond what appears in the planner.",
    "Use subitems for supporting context such as grouped vulnerabilities, follow-on tasks, "
    "or pull request details.",
    "Wrap tokens that a user might copy verbatim (versions, package names, CLI commands, file paths, "
    "environment variables) in single backticks; avoid multiline code fences.",
    'When hyperlink guidance is available, populate the links array with { "text", "url" } objects '
    "instead of embedding inline markup.",
    "Keep bullet text plain prose (no markdown, Jira formatting, or decorative prefixes).",
    "Include a citations array only when at least one Jira issue applies to that bullet. "
    "NEVER include an empty citations array; omit the field instead.",
    "Omit the citations property on subitems only when they inherit the citation from their parent bullet.",
    "Do not create subitems that only point to additional reading. Capture URLs via the links array "
    "on the relevant bullet instead.",
    "If vulnerabilities are grouped, use a parent bullet with subitems for the individual CVEs.",
    "For pull requests listed under an issue, prefer subitems that briefly describe the change "
    "and cite the parent issue.",
)

SYSTEM_PROMPT = """You produce structured release notes.

Inputs include Jira issues, optional pull requests, curated metadata, and formatting guidance.

Return ONLY a JSON object matching this schema:
{
  "sections": [
    {
      "title": string,
      "items": [
        {
          "text": string,
          "citations"?: string[],
          "subitems"?: [{ ... }],
          "links"?: [{ "text": string, "url": string }]
        }
      ]
    }
  ]
}

Never include markdown fences or explanatory prose around the JSON."""

_FOCUS_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        ("improv", "enhanc", "feature", "new", "upgrade"),
        "Enhancements and new capabilities that improve the product experience.",
    ),
    (
        ("bug", "fix", "stability", "quality", "reliab"),
        "Resolved defects and quality fixes that restore expected behavior.",
    ),
    (
        ("security", "vulner", "cve", "compliance", "hardening"),
        "Security and vulnerability remediation items.",
    ),
)


def derive_section_focus(title: str) -> str:
    """Describe what belongs in a section, judged from its title.

    Example:
        >>> derive_section_focus("Bug Fixes")
        'Resolved defects and quality fixes that restore expected behavior.'
    """
    normalized = title.lower()
    for keywords, focus in _FOCUS_RULES:
        if any(keyword in normalized for keyword in keywords):
            return focus
    return f"Key updates related to {title}."


def format_plan_for_prompt(
    plan: PlanResult,
    issues: Sequence[JiraIssueInput],
    configured_sections: Sequence[str] = (),
) -> str:
    """Render the section planner block of the prompt.

    Every configured section is offered with its focus so the model can
    place unmapped issues; sections the planner filled also list their keys.

    Args:
        plan: Planner output for the request
        issues: The request's issues, in the same order as plan.issues
        configured_sections: Section titles from the request; the planned
            section titles when empty
    """
    planned = {section.title: section for section in plan.sections}
    titles = list(dict.fromkeys(configured_sections)) or list(planned)

    lines = ["## Section Titles"]
    for title in titles:
        section = planned.get(title)
        if section is None:
            lines.append(f"- {title}: {derive_section_focus(title)}")
            continue
        focus = section.focus or derive_section_focus(title)
        lines.append(f"- {title}: {focus} (issues: {', '.join(section.issue_keys)})")

    lines.append("\n## Issue Summaries")

    for source, issue in zip(issues, plan.issues):
        lines.append(f"### {issue.key} ({source.issue_type})")
        lines.append(f"Summary: {source.summary}")
        if issue.curated_copy:
            lines.append(f"Curated Copy: {issue.curated_copy}")
        if issue.description:
            lines.append(f"Description: {issue.description}")
        if issue.metadata:
            lines.append("Metadata:")
            lines.extend(f"- {key}: {value}" for key, value in issue.metadata.items())
        if issue.pull_requests:
            lines.append("Pull Requests:")
            for pr in issue.pull_requests:
                lines.append(f"- {pr.title} :: {pr.description}" if pr.description else f"- {pr.title}")

    if plan.has_security_issues:
        lines.append(f"\n{SECURITY_GROUPING_HINT}")

    return "\n".join(lines)


def build_release_notes_prompt(request: ReleaseNotesInput, plan: PlanResult) -> str:
    """Build the full user prompt for a release notes request."""
    source_lines = ["# Release Notes Source Data"]
    if request.custom_guidelines and request.custom_guidelines.strip():
        source_lines.append("Custom guidelines:")
        source_lines.append(request.custom_guidelines.strip())

    return "\n\n".join(
        [
            "\n".join(source_lines),
            "# Section Planner",
            format_plan_for_prompt(plan, request.jira_issues, request.sections),
            "# Output Requirements",
            "\n".join(f"- {line}" for line in OUTPUT_REQUIREMENTS),
        ]
    )


def with_retry_instructions(prompt: str) -> str:
    """Prefix a prompt with the stricter schema reminder used on retries."""
    return f"{RETRY_INSTRUCTIONS}\n\n---\n\n{prompt}"
