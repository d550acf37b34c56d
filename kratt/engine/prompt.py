"""Prompt construction and result comment rendering."""

from kratt.models.domain import CheckResult, ResultReport

PULL_REQUEST_OPEN_TAG = "<pull-request>"
PULL_REQUEST_CLOSE_TAG = "</pull-request>"

REPORT_FOOTER = "◆ Posted by kratt worker"


def build_prompt(instructions: str, info: str) -> str:
    """Return the agent prompt: instructions, a blank line, then the PR data.

    The PR data is wrapped in ``<pull-request>`` tags so that the agent can
    tell the payload apart from the instructions.
    """
    return (
        f"{instructions.rstrip()}\n"
        f"\n"
        f"{PULL_REQUEST_OPEN_TAG}\n"
        f"{info.strip()}\n"
        f"{PULL_REQUEST_CLOSE_TAG}\n"
    )


def _fence_for(text: str) -> str:
    # Longer than any backtick run inside the output
    longest = 0
    run = 0
    for char in text:
        run = run + 1 if char == "`" else 0
        longest = max(longest, run)
    return "`" * max(3, longest + 1)


def render_check(check: CheckResult) -> list[str]:
    """Render one check as a markdown section."""
    title = check.name.value.capitalize()
    marker = "✅ **Passed**" if check.passed else "❌ **Failed**"

    lines = [f"### {title}: {marker}", "", f"Command: `{' '.join(check.command)}`"]
    if check.result.error:
        lines.extend(["", f"Error: {check.result.error}"])

    # Only the final line break is dropped; the closing fence supplies one
    output = check.result.text.removesuffix("\n")
    if output:
        fence = _fence_for(output)
        lines.extend(["", fence, output, fence])

    return lines


def render_report(report: ResultReport) -> str:
    """Render the pull request comment for a set of check results."""
    summary = "All checks passed." if report.all_passed else "Some checks failed."
    lines = ["## 🤖 Automated Check Results", "", summary]

    for check in report.checks:
        lines.append("")
        lines.extend(render_check(check))

    lines.extend(["", "---", REPORT_FOOTER])
    return "\n".join(lines)
