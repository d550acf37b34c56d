"""Tests for Worker.process_pull_request against in-memory capabilities."""

import asyncio

import pytest

from kratt.engine.prompt import build_prompt
from kratt.engine.worker import AUTOMATED_COMMIT_MESSAGE, Worker
from kratt.exceptions import (
    AgentExecutionError,
    BranchResolutionError,
    CheckExecutionError,
    CommandExecutionError,
    CommitError,
    ExternalServiceError,
    FetchError,
    GitOperationError,
    NotFoundError,
    ReportingError,
    WorkflowError,
    WorktreeError,
)
from kratt.models.domain import CheckName
from kratt.providers.memory import ScriptedCommandRunner


class RecordingRunner(ScriptedCommandRunner):
    """ScriptedCommandRunner that also records the deadline of every call."""

    def __init__(self) -> None:
        super().__init__()
        self.deadlines: list[float | None] = []

    async def run_with_input(self, deadline, input_text, program, *args):
        self.deadlines.append(deadline)
        await super().run_with_input(deadline, input_text, program, *args)

    async def run_captured(self, deadline, program, *args):
        self.deadlines.append(deadline)
        return await super().run_captured(deadline, program, *args)


class TestProcessHappyPath:
    """Tests for a run where every capability succeeds."""

    @pytest.mark.asyncio
    async def test_runs_every_stage_in_order(self, worker):
        """Test the completed stage list matches the pipeline order."""
        result = await worker.process_pull_request(42)

        assert result.workflow == "process"
        assert result.completed_stages == [
            "fetch",
            "resolve_branch",
            "prepare_worktree",
            "build_prompt",
            "run_agent",
            "run_lint",
            "run_test",
            "post_report",
            "commit_and_push",
        ]

    @pytest.mark.asyncio
    async def test_creates_worktree_and_enters_it(self, worker, local_git):
        """Test a missing worktree is created at the derived path and entered."""
        await worker.process_pull_request(42)

        assert local_git.calls[:5] == [
            "worktree_exists fix-typo",
            "worktree_path fix-typo",
            "create_worktree fix-typo /work/repo-fix-typo",
            "worktree_path fix-typo",
            "change_working_directory /work/repo-fix-typo",
        ]
        assert local_git.current_dir == "/work/repo-fix-typo"

    @pytest.mark.asyncio
    async def test_agent_receives_prompt_on_stdin(self, worker, runner, hosting):
        """Test the agent's stdin is the instructions followed by the PR data."""
        await worker.process_pull_request(42)

        info = hosting.pull_requests[42]
        assert runner.get_stdin_input("agent --stdin") == build_prompt("Review the pull request.", info)

    @pytest.mark.asyncio
    async def test_runs_agent_then_lint_then_test(self, worker, runner):
        """Test command order."""
        await worker.process_pull_request(42)

        assert runner.calls == ["agent --stdin", "make lint", "make test"]

    @pytest.mark.asyncio
    async def test_posts_report_comment(self, worker, runner, hosting):
        """Test the report comment carries both checks and their output."""
        runner.set_response("make lint", b"all clean\n")
        runner.set_response("make test", b"ok  \tgithub.com/owner/repo\t0.01s\n")

        result = await worker.process_pull_request(42)

        comments = hosting.get_comments(42)
        assert len(comments) == 1
        assert "### Lint: ✅ **Passed**" in comments[0]
        assert "### Test: ✅ **Passed**" in comments[0]
        assert "all clean" in comments[0]
        assert result.report is not None
        assert result.report.all_passed

    @pytest.mark.asyncio
    async def test_commits_with_fixed_message(self, worker, local_git):
        """Test changes are committed once with the automated message."""
        result = await worker.process_pull_request(42)

        assert local_git.commits == [AUTOMATED_COMMIT_MESSAGE]
        assert local_git.calls[-1] == f"stage_commit_and_push {AUTOMATED_COMMIT_MESSAGE}"
        assert result.committed is True

    @pytest.mark.asyncio
    async def test_no_changes_is_success(self, worker, local_git):
        """Test an agent that changed nothing still completes."""
        local_git.pending_changes = False

        result = await worker.process_pull_request(42)

        assert result.committed is False
        assert local_git.commits == []
        assert "commit_and_push" in result.completed_stages

    @pytest.mark.asyncio
    async def test_result_details(self, worker):
        """Test branch and worktree path are reported in the result."""
        result = await worker.process_pull_request(42)

        assert result.details == {"branch": "fix-typo", "worktree": "/work/repo-fix-typo"}


class TestProcessWorktreeReuse:
    """Tests for runs where the branch already has a worktree."""

    @pytest.mark.asyncio
    async def test_existing_worktree_is_not_recreated(self, worker, local_git):
        """Test an existing worktree is reused at its listed path."""
        local_git.worktrees["fix-typo"] = "/elsewhere/fix-typo"

        await worker.process_pull_request(42)

        assert not any(call.startswith("create_worktree") for call in local_git.calls)
        assert local_git.current_dir == "/elsewhere/fix-typo"

    @pytest.mark.asyncio
    async def test_second_run_creates_worktree_at_most_once(self, worker, local_git):
        """Test repeated runs against one PR create the worktree once."""
        await worker.process_pull_request(42)
        await worker.process_pull_request(42)

        creations = [call for call in local_git.calls if call.startswith("create_worktree")]
        assert creations == ["create_worktree fix-typo /work/repo-fix-typo"]

    @pytest.mark.asyncio
    async def test_existence_check_precedes_creation(self, worker, local_git):
        """Test the existence check is always the first worktree call."""
        await worker.process_pull_request(42)

        assert local_git.calls.index("worktree_exists fix-typo") < local_git.calls.index(
            "create_worktree fix-typo /work/repo-fix-typo"
        )


class TestProcessChecks:
    """Tests for lint and test outcomes."""

    @pytest.mark.asyncio
    async def test_failed_lint_is_reported_not_raised(self, worker, runner, hosting, local_git):
        """Test a failing lint is data: tests still run and changes are committed."""
        runner.set_response("make lint", b"main.go:3: bad format\n", error="make exited with status 2")

        result = await worker.process_pull_request(42)

        lint = result.report.get(CheckName.LINT)
        assert lint is not None
        assert not lint.passed
        assert "make test" in runner.calls
        comment = hosting.get_comments(42)[0]
        assert "### Lint: ❌ **Failed**" in comment
        assert "Error: make exited with status 2" in comment
        assert "main.go:3: bad format" in comment
        assert local_git.commits == [AUTOMATED_COMMIT_MESSAGE]

    @pytest.mark.asyncio
    async def test_failed_tests_are_reported(self, worker, runner, hosting):
        """Test a failing test run marks only the test check as failed."""
        runner.set_response("make test", b"FAIL: TestLogin\n", error="make exited with status 1")

        result = await worker.process_pull_request(42)

        assert result.report.get(CheckName.LINT).passed
        assert not result.report.get(CheckName.TEST).passed
        assert not result.report.all_passed
        assert "### Test: ❌ **Failed**" in hosting.get_comments(42)[0]

    @pytest.mark.asyncio
    async def test_lint_timeout_aborts(self, worker_config, local_git, hosting):
        """Test a lint run that outlives the deadline aborts the workflow."""
        runner = ScriptedCommandRunner()
        runner.hang.add("make lint")
        worker = Worker(worker_config.model_copy(update={"timeout_seconds": 0.05}), local_git, hosting, runner)

        with pytest.raises(CheckExecutionError) as exc_info:
            await worker.process_pull_request(42)

        assert exc_info.value.stage == "run_lint"
        assert exc_info.value.timed_out
        assert "make test" not in runner.calls
        assert hosting.get_comments(42) == []
        assert local_git.commits == []


class TestProcessDeadline:
    """Tests for the shared deadline."""

    @pytest.mark.asyncio
    async def test_one_deadline_shared_by_agent_lint_and_test(self, worker_config, local_git, hosting):
        """Test the agent, lint and test calls all receive the same deadline."""
        runner = RecordingRunner()
        worker = Worker(worker_config, local_git, hosting, runner)

        before = asyncio.get_running_loop().time()
        await worker.process_pull_request(42)

        assert len(runner.deadlines) == 3
        assert len(set(runner.deadlines)) == 1
        assert runner.deadlines[0] >= before + worker_config.timeout_seconds

    @pytest.mark.asyncio
    async def test_agent_timeout_raises_agent_error(self, worker_config, local_git, hosting):
        """Test an agent that outlives the deadline fails the agent stage."""
        runner = ScriptedCommandRunner()
        runner.hang.add("agent --stdin")
        worker = Worker(worker_config.model_copy(update={"timeout_seconds": 0.05}), local_git, hosting, runner)

        with pytest.raises(AgentExecutionError) as exc_info:
            await worker.process_pull_request(42)

        assert exc_info.value.stage == "run_agent"
        assert exc_info.value.timed_out
        assert runner.calls == ["agent --stdin"]

    @pytest.mark.asyncio
    async def test_cancellation_is_not_wrapped(self, worker_config, local_git, hosting):
        """Test cancelling a run propagates CancelledError unchanged."""
        runner = ScriptedCommandRunner()
        runner.hang.add("agent --stdin")
        worker = Worker(worker_config.model_copy(update={"timeout_seconds": 60.0}), local_git, hosting, runner)

        task = asyncio.create_task(worker.process_pull_request(42))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert hosting.get_comments(42) == []


class TestProcessFailures:
    """Tests for abort-on-first-error behavior."""

    @pytest.mark.asyncio
    async def test_unknown_pull_request(self, worker, local_git, runner):
        """Test a missing PR fails the fetch stage before anything mutates."""
        with pytest.raises(FetchError) as exc_info:
            await worker.process_pull_request(7)

        assert exc_info.value.stage == "fetch"
        assert isinstance(exc_info.value.cause, NotFoundError)
        assert isinstance(exc_info.value.__cause__, NotFoundError)
        assert local_git.calls == []
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_fetch_service_failure(self, worker, hosting):
        """Test a service failure during fetch becomes FetchError."""
        hosting.fail_fetch = True

        with pytest.raises(FetchError) as exc_info:
            await worker.process_pull_request(42)

        assert isinstance(exc_info.value.cause, ExternalServiceError)
        assert str(exc_info.value).startswith("failed to fetch pull request: ")

    @pytest.mark.asyncio
    async def test_unresolvable_branch_mutates_nothing(self, worker, hosting, local_git, runner):
        """Test PR data without a branch aborts before any worktree call."""
        hosting.set_pull_request(42, '{"number": 42, "title": "No branch here"}')

        with pytest.raises(BranchResolutionError) as exc_info:
            await worker.process_pull_request(42)

        assert exc_info.value.stage == "resolve_branch"
        assert isinstance(exc_info.value.cause, ValueError)
        assert local_git.calls == []
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_branch_resolved_from_text(self, worker, hosting, local_git):
        """Test the textual fallback for loosely formatted PR data."""
        hosting.set_pull_request(42, "title: Fix typo\nheadRefName: docs/typo\n")

        result = await worker.process_pull_request(42)

        assert result.details["branch"] == "docs/typo"
        assert "create_worktree docs/typo /work/repo-docs-typo" in local_git.calls

    @pytest.mark.parametrize(
        "flag",
        ["fail_worktree_exists", "fail_create_worktree", "fail_worktree_path", "fail_change_directory"],
    )
    @pytest.mark.asyncio
    async def test_worktree_failures(self, worker, local_git, runner, flag):
        """Test every worktree operation failure becomes WorktreeError."""
        setattr(local_git, flag, True)

        with pytest.raises(WorktreeError) as exc_info:
            await worker.process_pull_request(42)

        assert exc_info.value.stage == "prepare_worktree"
        assert isinstance(exc_info.value.cause, GitOperationError)
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_agent_failure_skips_checks_and_report(self, worker, runner, hosting, local_git):
        """Test a failing agent aborts before lint, report and commit."""
        runner.fail_with_input("agent --stdin")

        with pytest.raises(AgentExecutionError) as exc_info:
            await worker.process_pull_request(42)

        assert isinstance(exc_info.value.cause, CommandExecutionError)
        assert not exc_info.value.timed_out
        assert runner.calls == ["agent --stdin"]
        assert hosting.get_comments(42) == []
        assert local_git.commits == []

    @pytest.mark.asyncio
    async def test_report_failure_prevents_commit(self, worker, hosting, local_git):
        """Test a result that could not be reported is never committed."""
        hosting.fail_post_comment = True

        with pytest.raises(ReportingError) as exc_info:
            await worker.process_pull_request(42)

        assert exc_info.value.stage == "post_report"
        assert not any(call.startswith("stage_commit_and_push") for call in local_git.calls)

    @pytest.mark.asyncio
    async def test_commit_failure_after_report(self, worker, hosting, local_git):
        """Test a commit failure surfaces after the comment was posted."""
        local_git.fail_commit_and_push = True

        with pytest.raises(CommitError) as exc_info:
            await worker.process_pull_request(42)

        assert exc_info.value.stage == "commit_and_push"
        assert len(hosting.get_comments(42)) == 1

    @pytest.mark.asyncio
    async def test_every_failure_is_a_workflow_error(self, worker, hosting):
        """Test callers can catch all stage failures with WorkflowError."""
        hosting.fail_fetch = True

        with pytest.raises(WorkflowError):
            await worker.process_pull_request(42)
