"""Custom exception hierarchy for the kratt pull-request worker.

This module defines a structured exception hierarchy that lets the CLI
report exactly which stage of a workflow failed and why, while still
allowing callers to catch every kratt failure with a single except clause.

Exception Hierarchy:
    KrattError (base)
    ├── ConfigurationError
    ├── GitOperationError
    │   └── GitDiscoveryError (see kratt.git.exceptions)
    ├── ExternalServiceError
    │   └── NotFoundError
    ├── CommandExecutionError
    │   └── CommandTimeoutError
    └── WorkflowError
        ├── FetchError
        ├── BranchResolutionError
        ├── WorktreeError
        ├── AgentExecutionError
        ├── CheckExecutionError
        ├── ReportingError
        ├── CommitError
        ├── PushError
        ├── BranchCreationError
        ├── FileWriteError
        └── PullRequestCreationError

Example Usage:
    >>> from kratt.exceptions import WorkflowError
    >>> try:
    ...     await worker.process_pull_request(42)
    ... except WorkflowError as e:
    ...     print(f"{e.stage} failed: {e.__cause__}")
"""

from collections.abc import Sequence


class KrattError(Exception):
    """Base exception for all kratt errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(KrattError):
    """Configuration-related errors.

    Examples:
        - Configuration file not found or unreadable
        - Invalid YAML syntax
        - Invalid command vectors or timeout values
        - Missing GitHub token
    """

    pass


class GitOperationError(KrattError):
    """A git command or local repository operation failed.

    Attributes:
        command: The command (or operation) that failed, e.g. "git push"
        reason: Why it failed, usually the tool's stderr
    """

    def __init__(self, message: str, command: str | None = None, reason: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            command: Command line that failed
            reason: Underlying failure reason
        """
        self.command = command
        self.reason = reason

        full_message = message
        if command:
            full_message = f"{full_message} (command: {command})"
        if reason:
            full_message = f"{full_message}: {reason}"

        super().__init__(full_message)
        self.message = message


class ExternalServiceError(KrattError):
    """Hosting service communication errors.

    Attributes:
        status_code: HTTP status code (if applicable)
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
        """
        self.status_code = status_code

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        super().__init__(full_message)
        self.message = message


class NotFoundError(ExternalServiceError):
    """The requested pull request does not exist."""

    pass


class CommandExecutionError(KrattError):
    """An external program could not be run to a successful exit.

    Attributes:
        command: Argument vector that was executed
        returncode: Exit status, or None if the program never started
        output: Captured diagnostic output (may be empty)
    """

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        returncode: int | None = None,
        output: str = "",
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.output = output

        full_message = message
        if returncode is not None:
            full_message = f"{message} (exit status {returncode})"

        super().__init__(full_message)
        self.message = message


class CommandTimeoutError(CommandExecutionError):
    """The program was still running when its deadline elapsed.

    Attributes:
        timeout_seconds: Seconds that were left on the deadline at launch
    """

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        timeout_seconds: float | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        if timeout_seconds is not None and "timeout" not in message.lower():
            message = f"{message} (timeout: {timeout_seconds:.1f}s)"
        super().__init__(message, command=command)


# =============================================================================
# Workflow Errors
# =============================================================================


class WorkflowError(KrattError):
    """A workflow stage failed and the remaining stages were skipped.

    The underlying failure is chained as ``__cause__`` and also kept on
    ``cause`` so that callers can inspect it without walking the chain.

    Attributes:
        stage: Name of the stage that aborted the workflow
        cause: The exception raised by the capability call
    """

    description = "workflow stage failed"

    def __init__(self, stage: str, cause: BaseException | None = None, message: str | None = None) -> None:
        """Initialize exception.

        Args:
            stage: Stage name (e.g. "fetch", "run_agent")
            cause: Underlying exception
            message: Overrides the class description
        """
        self.stage = stage
        self.cause = cause

        text = message or self.description
        if cause is not None:
            text = f"{text}: {cause}"

        super().__init__(text)

    @property
    def timed_out(self) -> bool:
        """True when the stage failed because the shared deadline elapsed."""
        return isinstance(self.cause, CommandTimeoutError)


class FetchError(WorkflowError):
    """Pull request data could not be retrieved from the hosting service."""

    description = "failed to fetch pull request"


class BranchResolutionError(WorkflowError):
    """The pull request data carries no recognizable source branch."""

    description = "failed to determine pull request branch"


class WorktreeError(WorkflowError):
    """Worktree listing, creation, path resolution or chdir failed."""

    description = "failed to prepare worktree"


class AgentExecutionError(WorkflowError):
    """The agent failed to launch, exited non-zero, or exceeded the deadline."""

    description = "failed to run agent"


class CheckExecutionError(WorkflowError):
    """A lint or test command exceeded the shared deadline.

    Ordinary lint/test failures are reported in the pull request comment and
    never raise this error.
    """

    description = "failed to run check"


class ReportingError(WorkflowError):
    """The result comment could not be posted."""

    description = "failed to post comment"


class CommitError(WorkflowError):
    """Staging, committing or pushing changes failed."""

    description = "failed to commit changes"


class PushError(WorkflowError):
    """Publishing a new branch upstream failed."""

    description = "failed to push branch upstream"


class BranchCreationError(WorkflowError):
    """A new local branch could not be created."""

    description = "failed to create branch"


class FileWriteError(WorkflowError):
    """The instructions file could not be written."""

    description = "failed to write instructions file"


class PullRequestCreationError(WorkflowError):
    """The hosting service refused to open the pull request."""

    description = "failed to create pull request"
