"""In-memory capability implementations.

These record every call and can be told to fail, which makes the workflow
engine testable without git, GitHub or real subprocesses.

Example:
    >>> git = InMemoryLocalGit()
    >>> hosting = InMemoryHostingService()
    >>> hosting.set_pull_request(7, '{"headRefName": "fix-typo"}')
    >>> runner = ScriptedCommandRunner()
    >>> runner.set_response("make lint", b"ok")
"""

import asyncio
import shlex
from dataclasses import dataclass, field

from kratt.exceptions import (
    CommandExecutionError,
    CommandTimeoutError,
    ExternalServiceError,
    GitOperationError,
    NotFoundError,
)
from kratt.models.domain import ExecutionResult
from kratt.providers.base import CommandRunner, HostingService, LocalGit


@dataclass
class CreatedPullRequest:
    """A pull request opened through InMemoryHostingService."""

    number: int
    title: str
    description: str


class ScriptedCommandRunner(CommandRunner):
    """CommandRunner that returns configured results instead of running programs.

    Commands are keyed by their shell-joined argument vector
    (``"go test ./..."``). Unconfigured commands succeed with empty output.
    A command listed in ``hang`` sleeps until the deadline and then times out.
    """

    def __init__(self) -> None:
        self.responses: dict[str, ExecutionResult] = {}
        self.input_failures: dict[str, CommandExecutionError] = {}
        self.hang: set[str] = set()
        self.calls: list[str] = []
        self.inputs: dict[str, str] = {}

    def set_response(self, command: str, output: bytes, error: str | None = None) -> None:
        returncode = 0 if error is None else 1
        self.responses[command] = ExecutionResult(output=output, returncode=returncode, error=error)

    def fail_with_input(self, command: str, error: CommandExecutionError | None = None) -> None:
        self.input_failures[command] = error or CommandExecutionError(f"{command} failed", returncode=1)

    def get_stdin_input(self, command: str) -> str | None:
        return self.inputs.get(command)

    async def _wait_out(self, deadline: float | None, command: list[str]) -> None:
        loop = asyncio.get_running_loop()
        if deadline is None:
            await asyncio.Event().wait()
        await asyncio.sleep(max(0.0, deadline - loop.time()))
        raise CommandTimeoutError("deadline exceeded", command=command)

    async def run_with_input(self, deadline: float | None, input_text: str, program: str, *args: str) -> None:
        key = shlex.join([program, *args])
        self.calls.append(key)
        self.inputs[key] = input_text
        if key in self.hang:
            await self._wait_out(deadline, [program, *args])
        if key in self.input_failures:
            raise self.input_failures[key]

    async def run_captured(self, deadline: float | None, program: str, *args: str) -> ExecutionResult:
        key = shlex.join([program, *args])
        self.calls.append(key)
        if key in self.hang:
            await self._wait_out(deadline, [program, *args])
        return self.responses.get(key, ExecutionResult())


@dataclass
class InMemoryLocalGit(LocalGit):
    """LocalGit that keeps repository state in plain attributes.

    Set any ``fail_*`` flag to make the matching operation raise
    GitOperationError. ``pending_changes`` controls whether
    ``stage_commit_and_push`` has anything to commit.
    """

    repository: bool = True
    owner: str = "owner"
    repo: str = "repo"
    root: str = "/work/repo"
    pending_changes: bool = True
    current_dir: str = "/work/repo"
    current_branch: str = "main"

    worktrees: dict[str, str] = field(default_factory=dict)
    branches: set[str] = field(default_factory=lambda: {"main"})
    files: dict[str, str] = field(default_factory=dict)
    commits: list[str] = field(default_factory=list)
    pushed_branches: list[str] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)

    fail_worktree_exists: bool = False
    fail_create_worktree: bool = False
    fail_worktree_path: bool = False
    fail_change_directory: bool = False
    fail_commit_and_push: bool = False
    fail_branch_exists: bool = False
    fail_create_branch: bool = False
    fail_write_file: bool = False
    fail_push_upstream: bool = False
    fail_owner_and_name: bool = False

    def _record(self, call: str, fail: bool) -> None:
        self.calls.append(call)
        if fail:
            raise GitOperationError("simulated failure", command=call, reason="configured to fail")

    async def is_repository(self) -> bool:
        self.calls.append("is_repository")
        return self.repository

    async def repository_owner_and_name(self) -> tuple[str, str]:
        self._record("repository_owner_and_name", self.fail_owner_and_name)
        return self.owner, self.repo

    async def worktree_exists(self, branch: str) -> bool:
        self._record(f"worktree_exists {branch}", self.fail_worktree_exists)
        return branch in self.worktrees

    async def create_worktree(self, branch: str, path: str) -> None:
        self._record(f"create_worktree {branch} {path}", self.fail_create_worktree)
        if branch in self.worktrees:
            raise GitOperationError("worktree already exists", command=f"worktree add {path}", reason=branch)
        self.worktrees[branch] = path
        self.branches.add(branch)

    async def worktree_path(self, branch: str) -> str:
        self._record(f"worktree_path {branch}", self.fail_worktree_path)
        if branch in self.worktrees:
            return self.worktrees[branch]
        parent, _, name = self.root.rpartition("/")
        return f"{parent}/{name}-{branch.replace('/', '-')}"

    async def change_working_directory(self, path: str) -> None:
        self._record(f"change_working_directory {path}", self.fail_change_directory)
        self.current_dir = path

    async def stage_commit_and_push(self, message: str) -> bool:
        self._record(f"stage_commit_and_push {message}", self.fail_commit_and_push)
        if not self.pending_changes:
            return False
        self.commits.append(message)
        self.pending_changes = False
        return True

    async def branch_exists(self, branch: str) -> bool:
        self._record(f"branch_exists {branch}", self.fail_branch_exists)
        return branch in self.branches

    async def create_branch(self, branch: str) -> None:
        self._record(f"create_branch {branch}", self.fail_create_branch)
        if branch in self.branches:
            raise GitOperationError("branch already exists", command=f"checkout -b {branch}", reason=branch)
        self.branches.add(branch)
        self.current_branch = branch

    async def write_text_file(self, path: str, content: str) -> None:
        self._record(f"write_text_file {path}", self.fail_write_file)
        self.files[path] = content
        self.pending_changes = True

    async def push_new_branch_upstream(self, branch: str) -> None:
        self._record(f"push_new_branch_upstream {branch}", self.fail_push_upstream)
        self.pushed_branches.append(branch)


class InMemoryHostingService(HostingService):
    """HostingService backed by dictionaries."""

    def __init__(self) -> None:
        self.pull_requests: dict[int, str] = {}
        self.comments: dict[int, list[str]] = {}
        self.created: list[CreatedPullRequest] = []
        self.calls: list[str] = []
        self.fail_fetch = False
        self.fail_post_comment = False
        self.fail_open_pull_request = False
        self._next_number = 100

    def set_pull_request(self, number: int, info: str) -> None:
        self.pull_requests[number] = info

    def get_comments(self, number: int) -> list[str]:
        return self.comments.get(number, [])

    async def fetch_pull_request(self, number: int) -> str:
        self.calls.append(f"fetch_pull_request {number}")
        if self.fail_fetch:
            raise ExternalServiceError("simulated fetch failure", status_code=502)
        if number not in self.pull_requests:
            raise NotFoundError(f"Pull request #{number} not found", status_code=404)
        return self.pull_requests[number]

    async def post_comment(self, number: int, body: str) -> None:
        self.calls.append(f"post_comment {number}")
        if self.fail_post_comment:
            raise ExternalServiceError("simulated comment failure", status_code=502)
        self.comments.setdefault(number, []).append(body)

    async def open_pull_request(self, title: str, description: str) -> int:
        self.calls.append(f"open_pull_request {title}")
        if self.fail_open_pull_request:
            raise ExternalServiceError("simulated pull request failure", status_code=422)
        self._next_number += 1
        self.created.append(CreatedPullRequest(self._next_number, title, description))
        return self._next_number
