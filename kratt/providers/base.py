"""
Abstract base classes for the worker's external capabilities.

The workflow engine never shells out or calls an API itself. It is handed
three narrow capabilities and calls them in a fixed order:

    - CommandRunner: runs the agent, lint and test programs
    - LocalGit: repository introspection, worktrees, branches and commits
    - HostingService: pull request data, comments and new pull requests

Each capability has one real implementation (``command_runner``,
``local_git``, ``github_rest``) and one in-memory implementation
(``memory``) used by the tests. All methods are async so the engine can be
cancelled while a capability call is in flight.
"""

from abc import ABC, abstractmethod

from kratt.models.domain import ExecutionResult


class CommandRunner(ABC):
    """Runs external programs under a deadline.

    ``deadline`` is an absolute time on the running event loop's clock
    (``asyncio.get_running_loop().time()``), or None for no deadline. One
    deadline value can therefore be shared by several sequential calls.
    """

    @abstractmethod
    async def run_with_input(self, deadline: float | None, input_text: str, program: str, *args: str) -> None:
        """Run ``program`` with ``input_text`` on stdin and wait for it to exit.

        Raises:
            CommandExecutionError: If the program cannot be launched or exits
                non-zero.
            CommandTimeoutError: If the deadline elapses first. The process is
                killed and reaped before this is raised.
        """
        pass

    @abstractmethod
    async def run_captured(self, deadline: float | None, program: str, *args: str) -> ExecutionResult:
        """Run ``program`` without stdin and capture merged stdout/stderr.

        A launch failure or non-zero exit is returned as data in the result;
        the output is returned in both cases.

        Raises:
            CommandTimeoutError: If the deadline elapses first.
        """
        pass


class LocalGit(ABC):
    """Local version control operations.

    Every operation that runs git raises GitOperationError (carrying the
    command and reason) when the underlying tool fails.
    """

    @abstractmethod
    async def is_repository(self) -> bool:
        """Return whether the current directory is inside a repository.

        Never raises for "not a repository"; that is a False result.
        """
        pass

    @abstractmethod
    async def repository_owner_and_name(self) -> tuple[str, str]:
        """Return (owner, name) of the hosted repository behind the remote.

        Raises:
            GitOperationError: If the remote is absent, unparseable, or not on
                the expected host.
        """
        pass

    @abstractmethod
    async def worktree_exists(self, branch: str) -> bool:
        """Return whether a worktree is checked out for ``branch``."""
        pass

    @abstractmethod
    async def create_worktree(self, branch: str, path: str) -> None:
        """Create a worktree for ``branch`` at ``path``."""
        pass

    @abstractmethod
    async def worktree_path(self, branch: str) -> str:
        """Return the path of the worktree for ``branch``.

        The path is derived from the branch and repository root so repeated
        calls agree without any stored mapping.
        """
        pass

    @abstractmethod
    async def change_working_directory(self, path: str) -> None:
        """Make ``path`` the process's working directory.

        This mutates process-global state; later commands run there.
        """
        pass

    @abstractmethod
    async def stage_commit_and_push(self, message: str) -> bool:
        """Stage everything, commit with ``message`` and push.

        A branch without an upstream is pushed to the remote under its own
        name and starts tracking it.

        Returns:
            False if there was nothing to commit (success, nothing pushed),
            True if a commit was created.
        """
        pass

    @abstractmethod
    async def branch_exists(self, branch: str) -> bool:
        """Return whether ``branch`` already exists."""
        pass

    @abstractmethod
    async def create_branch(self, branch: str) -> None:
        """Create ``branch`` and switch to it; fails if it exists."""
        pass

    @abstractmethod
    async def write_text_file(self, path: str, content: str) -> None:
        """Write ``content`` to ``path``, creating parent directories."""
        pass

    @abstractmethod
    async def push_new_branch_upstream(self, branch: str) -> None:
        """Push a new branch for the first time and set its upstream."""
        pass


class HostingService(ABC):
    """Code hosting service operations (GitHub)."""

    @abstractmethod
    async def fetch_pull_request(self, number: int) -> str:
        """Return pull request data as a serialized document.

        The document carries at least title, body, source branch name
        (``headRefName``) and existing comments.

        Raises:
            NotFoundError: If no pull request has this number.
            ExternalServiceError: For any other service failure.
        """
        pass

    @abstractmethod
    async def post_comment(self, number: int, body: str) -> None:
        """Post ``body`` as a comment on pull request ``number``."""
        pass

    @abstractmethod
    async def open_pull_request(self, title: str, description: str) -> int:
        """Open a pull request from the current branch against the default branch.

        Returns:
            The new pull request's number.
        """
        pass

    async def disconnect(self) -> None:
        """Release any client resources. The default holds none."""
        pass
