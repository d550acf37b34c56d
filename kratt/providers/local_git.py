"""Local git operations.

Repository introspection (is this a repository, which hosted repository does
the remote point at) goes through GitPython via GitDiscovery. Everything that
changes the repository runs the git CLI through ``run_command``, in the
process's current working directory, so that a ``change_working_directory``
into a worktree redirects every later command.
"""

import asyncio
import os
import shlex
import subprocess
from pathlib import Path

import structlog

from kratt.exceptions import GitOperationError
from kratt.git.discovery import GitDiscovery
from kratt.git.models import WorktreeEntry
from kratt.providers.base import LocalGit
from kratt.utils.async_subprocess import run_command

log = structlog.get_logger(__name__)


def parse_worktree_list(porcelain: str) -> list[WorktreeEntry]:
    """Parse ``git worktree list --porcelain`` output.

    Entries are separated by blank lines; each starts with ``worktree <path>``
    and may carry ``branch refs/heads/<name>``.
    """
    entries = []
    path: str | None = None
    branch: str | None = None

    for line in porcelain.splitlines() + [""]:
        if not line.strip():
            if path is not None:
                entries.append(WorktreeEntry(path=path, branch=branch))
            path, branch = None, None
        elif line.startswith("worktree "):
            path = line[len("worktree ") :]
        elif line.startswith("branch "):
            branch = line[len("branch ") :].removeprefix("refs/heads/")

    return entries


def worktree_dir_name(repo_name: str, branch: str) -> str:
    """Directory name for a branch's worktree, e.g. ``widgets-feature-auth``."""
    return f"{repo_name}-{branch.replace('/', '-')}"


class GitCliRepository(LocalGit):
    """LocalGit implementation backed by the git CLI and GitPython.

    Args:
        remote: Remote used for fetching, pushing and owner/repo discovery.
        expected_host: Host the remote must point at.
        timeout: Per-command timeout in seconds for git invocations.
    """

    def __init__(self, remote: str = "origin", expected_host: str = "github.com", timeout: float | None = 300.0):
        self.remote = remote
        self.expected_host = expected_host
        self.timeout = timeout

    async def _git(self, *args: str, check: bool = True) -> tuple[str, str, int]:
        command = shlex.join(["git", *args])
        log.debug("git_command", command=command, cwd=os.getcwd())
        try:
            return await run_command("git", *args, check=check, timeout=self.timeout)
        except subprocess.CalledProcessError as e:
            reason = (e.stderr or e.stdout or "").strip() or f"exit status {e.returncode}"
            raise GitOperationError("git command failed", command=command, reason=reason) from e
        except TimeoutError as e:
            raise GitOperationError("git command timed out", command=command, reason=f"after {self.timeout}s") from e
        except OSError as e:
            raise GitOperationError("could not run git", command=command, reason=str(e)) from e

    async def is_repository(self) -> bool:
        return await asyncio.to_thread(GitDiscovery(Path.cwd()).is_repository)

    async def repository_owner_and_name(self) -> tuple[str, str]:
        info = await asyncio.to_thread(
            GitDiscovery(Path.cwd()).parse_repository, self.remote, self.expected_host
        )
        return info.owner, info.repo

    async def _worktrees(self) -> list[WorktreeEntry]:
        stdout, _, _ = await self._git("worktree", "list", "--porcelain")
        return parse_worktree_list(stdout)

    async def worktree_exists(self, branch: str) -> bool:
        return any(entry.branch == branch for entry in await self._worktrees())

    async def create_worktree(self, branch: str, path: str) -> None:
        if await self._local_branch_exists(branch):
            await self._git("worktree", "add", path, branch)
            await self._track_remote_branch(branch)
        else:
            # PR branches usually exist only on the remote
            await self._git("fetch", self.remote, branch)
            await self._git("worktree", "add", "--track", "-b", branch, path, f"{self.remote}/{branch}")
        log.info("worktree_created", branch=branch, path=path)

    async def worktree_path(self, branch: str) -> str:
        worktrees = await self._worktrees()
        for entry in worktrees:
            if entry.branch == branch:
                return entry.path

        # Main worktree is listed first, so the path does not depend on which worktree we run from
        root = Path(worktrees[0].path)
        return str(root.parent / worktree_dir_name(root.name, branch))

    async def change_working_directory(self, path: str) -> None:
        try:
            os.chdir(path)
        except OSError as e:
            raise GitOperationError("could not change directory", command=f"chdir {path}", reason=str(e)) from e
        log.debug("changed_directory", path=path)

    async def _has_upstream(self, branch: str = "") -> bool:
        _, _, code = await self._git(
            "rev-parse", "--abbrev-ref", "--symbolic-full-name", f"{branch}@{{upstream}}", check=False
        )
        return code == 0

    async def _track_remote_branch(self, branch: str) -> None:
        if await self._has_upstream(branch):
            return
        if not await self._ref_exists(f"refs/remotes/{self.remote}/{branch}"):
            return
        await self._git("branch", f"--set-upstream-to={self.remote}/{branch}", branch)
        log.info("upstream_set", branch=branch, upstream=f"{self.remote}/{branch}")

    async def stage_commit_and_push(self, message: str) -> bool:
        await self._git("add", "--all")

        status, _, _ = await self._git("status", "--porcelain")
        if not status.strip():
            log.info("no_changes_to_commit")
            return False

        await self._git("commit", "-m", message)

        if await self._has_upstream():
            await self._git("push")
        else:
            await self._git("push", "--set-upstream", self.remote, "HEAD")
        log.info("changes_pushed", message=message)
        return True

    async def _ref_exists(self, ref: str) -> bool:
        _, stderr, code = await self._git("rev-parse", "--verify", "--quiet", ref, check=False)
        if code == 0:
            return True
        if code == 1:
            return False
        raise GitOperationError(
            "git command failed", command=f"git rev-parse --verify --quiet {ref}", reason=stderr.strip()
        )

    async def _local_branch_exists(self, branch: str) -> bool:
        return await self._ref_exists(f"refs/heads/{branch}")

    async def branch_exists(self, branch: str) -> bool:
        if await self._local_branch_exists(branch):
            return True
        return await self._ref_exists(f"refs/remotes/{self.remote}/{branch}")

    async def create_branch(self, branch: str) -> None:
        await self._git("checkout", "-b", branch)
        log.info("branch_created", branch=branch)

    async def write_text_file(self, path: str, content: str) -> None:
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        except OSError as e:
            raise GitOperationError("could not write file", command=f"write {path}", reason=str(e)) from e
        log.debug("file_written", path=path, size=len(content))

    async def push_new_branch_upstream(self, branch: str) -> None:
        await self._git("push", "--set-upstream", self.remote, branch)
        log.info("branch_pushed_upstream", branch=branch, remote=self.remote)
