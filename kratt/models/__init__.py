"""Domain models for the kratt worker.

Key Models:
    - PullRequestContext: A fetched pull request and its resolved branch
    - WorkOrder: Branch + instructions for starting new work
    - ExecutionResult: Outcome of a captured subprocess run
    - CheckResult / ResultReport: Lint and test results for the PR comment
    - WorkflowResult: Summary of a workflow that ran to completion

Example:
    >>> from kratt.models import WorkOrder
    >>> WorkOrder(branch="feature/x", instructions="do thing").title
    'Implement feature/x'
"""

from kratt.models.domain import (
    CheckName,
    CheckResult,
    ExecutionResult,
    PullRequestContext,
    ResultReport,
    WorkflowResult,
    WorkOrder,
)

__all__ = [
    "CheckName",
    "CheckResult",
    "ExecutionResult",
    "PullRequestContext",
    "ResultReport",
    "WorkOrder",
    "WorkflowResult",
]
