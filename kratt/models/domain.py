"""
Domain models for the kratt worker.

Every entity here is transient and request-scoped: it is created during one
workflow run and discarded at the end. Nothing is persisted by the engine.

Example:
    Deriving a work order for a new branch::

        order = WorkOrder(branch="feature/auth", instructions="Add JWT login")
        order.instructions_path   # 'docs/feature/auth-instructions.md'
        order.title               # 'Implement feature/auth'
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CheckName(str, Enum):
    """The post-agent checks, in the order they run."""

    LINT = "lint"
    TEST = "test"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of a captured subprocess invocation.

    Attributes:
        output: Merged stdout/stderr bytes, interleaved as a user would see them.
        returncode: Exit status, or None if the program never started.
        error: Failure description; None means the program exited with 0.
    """

    output: bytes = b""
    returncode: int | None = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str:
        """Output decoded as UTF-8 (invalid bytes replaced)."""
        return self.output.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class CheckResult:
    """One lint or test run, kept as data for the report."""

    name: CheckName
    command: list[str]
    result: ExecutionResult

    @property
    def passed(self) -> bool:
        return self.result.succeeded


@dataclass(frozen=True)
class ResultReport:
    """Aggregated check results, rendered into the pull request comment."""

    checks: list[CheckResult]

    @property
    def all_passed(self) -> bool:
        return all(check.passed for check in self.checks)

    def get(self, name: CheckName) -> CheckResult | None:
        for check in self.checks:
            if check.name == name:
                return check
        return None


@dataclass
class PullRequestContext:
    """A pull request as fetched for one ProcessExisting run.

    Attributes:
        number: Pull request number
        info: Raw structured blob returned by the hosting service
        branch: Source branch, filled in by branch resolution
    """

    number: int
    info: str
    branch: str | None = None


@dataclass(frozen=True)
class WorkOrder:
    """Everything StartNew derives from a branch name and instruction text."""

    branch: str
    instructions: str

    @property
    def instructions_path(self) -> str:
        # Slashes are kept: feature/x becomes docs/feature/x-instructions.md
        return f"docs/{self.branch}-instructions.md"

    @property
    def status_path(self) -> str:
        return f"docs/{self.branch}-implementation-status.md"

    @property
    def commit_message(self) -> str:
        return f"Add instructions for {self.branch}"

    @property
    def title(self) -> str:
        return f"Implement {self.branch}"

    @property
    def description(self) -> str:
        return (
            f"Study {self.instructions_path} and make a list of necessary "
            f"implementation steps in {self.status_path}"
        )


@dataclass
class WorkflowResult:
    """Returned by a workflow that ran to completion.

    Attributes:
        workflow: "process" or "start"
        completed_stages: Stage names in execution order
        report: Check results (ProcessExisting only)
        committed: Whether a commit was created
        pull_request_number: Number of an opened pull request (StartNew only)
        details: Free-form extra data for logging
    """

    workflow: str
    completed_stages: list[str] = field(default_factory=list)
    report: ResultReport | None = None
    committed: bool = False
    pull_request_number: int | None = None
    details: dict[str, Any] = field(default_factory=dict)
