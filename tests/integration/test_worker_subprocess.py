"""Integration tests for Worker wired to real subprocesses and real git."""

import time

import pytest

from kratt.config.settings import WorkerConfig
from kratt.engine.worker import Worker
from kratt.exceptions import AgentExecutionError
from kratt.providers.command_runner import AsyncCommandRunner
from kratt.providers.local_git import GitCliRepository
from kratt.providers.memory import InMemoryHostingService

pytestmark = pytest.mark.integration


class TestProcessWithRealCommands:
    """Tests for process_pull_request with AsyncCommandRunner."""

    @pytest.mark.asyncio
    async def test_hanging_agent_stops_at_deadline(self, local_git, hosting):
        """Test a real agent that never returns fails with a timeout soon after the deadline."""
        config = WorkerConfig(
            agent_command=["sleep", "60"],
            lint_command=["true"],
            test_command=["true"],
            timeout_seconds=0.5,
        )
        worker = Worker(config, local_git, hosting, AsyncCommandRunner(stream_output=False))
        started = time.monotonic()

        with pytest.raises(AgentExecutionError) as exc_info:
            await worker.process_pull_request(42)

        assert time.monotonic() - started < 10
        assert exc_info.value.stage == "run_agent"
        assert exc_info.value.timed_out
        assert hosting.get_comments(42) == []
        assert local_git.commits == []

    @pytest.mark.asyncio
    async def test_agent_changes_reach_untracked_pr_branch(self, git_repo, run_git, pr_info, monkeypatch):
        """Test agent work on a local branch pushed without -u ends up on origin."""
        run_git(git_repo, "branch", "feature-x")
        run_git(git_repo, "push", "origin", "feature-x")
        monkeypatch.chdir(git_repo)

        hosting = InMemoryHostingService()
        hosting.set_pull_request(7, pr_info(number=7, branch="feature-x"))
        config = WorkerConfig(
            agent_command=["sh", "-c", "cat > /dev/null; echo fixed > fix.txt"],
            lint_command=["true"],
            test_command=["true"],
            timeout_seconds=30.0,
        )
        worker = Worker(config, GitCliRepository(), hosting, AsyncCommandRunner(stream_output=False))

        result = await worker.process_pull_request(7)

        worktree = result.details["worktree"]
        assert result.committed is True
        assert len(hosting.get_comments(7)) == 1
        local = run_git(worktree, "rev-parse", "HEAD").strip()
        remote = run_git(git_repo, "ls-remote", "origin", "refs/heads/feature-x").split()[0]
        assert local == remote
