"""
The pull request workflow engine.

The Worker drives two workflows over three injected capabilities
(CommandRunner, LocalGit, HostingService):

``process_pull_request`` (ProcessExisting)
    fetch -> resolve_branch -> prepare_worktree -> build_prompt -> run_agent
    -> run_lint -> run_test -> post_report -> commit_and_push

``start`` (StartNew)
    create_branch -> write_instructions -> commit_instructions
    -> push_branch -> open_pull_request

Both are strictly sequential and fail fast: the first failing stage raises
its WorkflowError subclass and no later stage runs. Lint and test failures
are the exception; they are recorded and reported in the pull request
comment. Local changes made before a failure (a created worktree or branch)
are left in place so that a re-run can reuse them.

Concurrency:
    ``change_working_directory`` changes the process-wide working directory,
    so two workflows must never run concurrently in one process.
"""

import asyncio
from dataclasses import dataclass, field

import structlog

from kratt.config.settings import WorkerConfig
from kratt.engine.pipeline import Pipeline, Stage
from kratt.engine.prompt import build_prompt, render_report
from kratt.engine.pull_request import resolve_source_branch
from kratt.exceptions import (
    AgentExecutionError,
    BranchCreationError,
    BranchResolutionError,
    CheckExecutionError,
    CommitError,
    FetchError,
    FileWriteError,
    PullRequestCreationError,
    PushError,
    ReportingError,
    WorkflowError,
    WorktreeError,
)
from kratt.models.domain import (
    CheckName,
    CheckResult,
    PullRequestContext,
    ResultReport,
    WorkflowResult,
    WorkOrder,
)
from kratt.providers.base import CommandRunner, HostingService, LocalGit

log = structlog.get_logger(__name__)

AUTOMATED_COMMIT_MESSAGE = "Apply automated changes from kratt worker"


@dataclass
class ProcessState:
    """State threaded through the ProcessExisting stages."""

    pull_request: PullRequestContext
    deadline: float
    worktree_path: str | None = None
    prompt: str | None = None
    checks: list[CheckResult] = field(default_factory=list)
    report: ResultReport | None = None
    comment: str | None = None
    committed: bool = False


@dataclass
class StartState:
    """State threaded through the StartNew stages."""

    order: WorkOrder
    committed: bool = False
    pull_request_number: int | None = None


class Worker:
    """Automated pull request processing.

    Attributes:
        config: Agent/lint/test commands, instructions and deadline
        git: Local version control capability
        hosting: Hosting service capability
        runner: Command execution capability
    """

    def __init__(
        self,
        config: WorkerConfig,
        git: LocalGit,
        hosting: HostingService,
        runner: CommandRunner,
    ) -> None:
        self.config = config
        self.git = git
        self.hosting = hosting
        self.runner = runner

    # ------------------------------------------------------------------
    # ProcessExisting
    # ------------------------------------------------------------------

    def process_pipeline(self) -> Pipeline[ProcessState]:
        return Pipeline(
            "process",
            [
                Stage("fetch", self._fetch, FetchError),
                Stage("resolve_branch", self._resolve_branch, BranchResolutionError),
                Stage("prepare_worktree", self._prepare_worktree, WorktreeError),
                Stage("build_prompt", self._build_prompt, WorkflowError, "failed to build prompt"),
                Stage("run_agent", self._run_agent, AgentExecutionError),
                Stage("run_lint", self._run_lint, CheckExecutionError, "failed to run lint"),
                Stage("run_test", self._run_test, CheckExecutionError, "failed to run tests"),
                Stage("post_report", self._post_report, ReportingError),
                Stage("commit_and_push", self._commit_and_push, CommitError),
            ],
        )

    async def process_pull_request(self, number: int) -> WorkflowResult:
        """Run the agent against pull request ``number`` and report the results.

        The deadline is fixed here, once, and bounds the agent, lint and
        test runs together.

        Raises:
            WorkflowError: Subclass identifying the stage that aborted.
        """
        deadline = asyncio.get_running_loop().time() + self.config.timeout_seconds
        state = ProcessState(pull_request=PullRequestContext(number=number, info=""), deadline=deadline)

        log.info("process_pull_request_started", pr_number=number, timeout=self.config.timeout_seconds)
        completed = await self.process_pipeline().run(state)
        log.info("process_pull_request_complete", pr_number=number, committed=state.committed)

        return WorkflowResult(
            workflow="process",
            completed_stages=completed,
            report=state.report,
            committed=state.committed,
            details={"branch": state.pull_request.branch, "worktree": state.worktree_path},
        )

    async def _fetch(self, state: ProcessState) -> None:
        state.pull_request.info = await self.hosting.fetch_pull_request(state.pull_request.number)

    async def _resolve_branch(self, state: ProcessState) -> None:
        state.pull_request.branch = resolve_source_branch(state.pull_request.info)
        log.info("branch_resolved", pr_number=state.pull_request.number, branch=state.pull_request.branch)

    async def _prepare_worktree(self, state: ProcessState) -> None:
        branch = state.pull_request.branch
        assert branch is not None

        if not await self.git.worktree_exists(branch):
            path = await self.git.worktree_path(branch)
            await self.git.create_worktree(branch, path)
        else:
            log.info("worktree_reused", branch=branch)

        state.worktree_path = await self.git.worktree_path(branch)
        await self.git.change_working_directory(state.worktree_path)

    async def _build_prompt(self, state: ProcessState) -> None:
        state.prompt = build_prompt(self.config.instructions, state.pull_request.info)

    async def _run_agent(self, state: ProcessState) -> None:
        assert state.prompt is not None
        program, *args = self.config.agent_command
        await self.runner.run_with_input(state.deadline, state.prompt, program, *args)
        log.info("agent_run_complete", pr_number=state.pull_request.number)

    async def _run_check(self, state: ProcessState, name: CheckName, command: list[str]) -> None:
        program, *args = command
        result = await self.runner.run_captured(state.deadline, program, *args)
        state.checks.append(CheckResult(name=name, command=list(command), result=result))
        log.info(f"{name.value}_complete", passed=result.succeeded, output_length=len(result.output))

    async def _run_lint(self, state: ProcessState) -> None:
        await self._run_check(state, CheckName.LINT, self.config.lint_command)

    async def _run_test(self, state: ProcessState) -> None:
        await self._run_check(state, CheckName.TEST, self.config.test_command)

    async def _post_report(self, state: ProcessState) -> None:
        state.report = ResultReport(checks=list(state.checks))
        state.comment = render_report(state.report)
        await self.hosting.post_comment(state.pull_request.number, state.comment)

    async def _commit_and_push(self, state: ProcessState) -> None:
        state.committed = await self.git.stage_commit_and_push(AUTOMATED_COMMIT_MESSAGE)

    # ------------------------------------------------------------------
    # StartNew
    # ------------------------------------------------------------------

    def start_pipeline(self) -> Pipeline[StartState]:
        return Pipeline(
            "start",
            [
                Stage("create_branch", self._create_branch, BranchCreationError),
                Stage("write_instructions", self._write_instructions, FileWriteError),
                Stage(
                    "commit_instructions",
                    self._commit_instructions,
                    CommitError,
                    "failed to commit instructions file",
                ),
                Stage("push_branch", self._push_branch, PushError),
                Stage("open_pull_request", self._open_pull_request, PullRequestCreationError),
            ],
        )

    async def start(self, branch: str, instructions: str) -> WorkflowResult:
        """Create ``branch`` with an instructions file and open a pull request for it.

        The caller is responsible for checking that the branch does not exist.

        Raises:
            WorkflowError: Subclass identifying the stage that aborted.
        """
        state = StartState(order=WorkOrder(branch=branch, instructions=instructions))

        log.info("start_branch_started", branch=branch)
        completed = await self.start_pipeline().run(state)
        log.info("start_branch_complete", branch=branch, pull_request=state.pull_request_number)

        return WorkflowResult(
            workflow="start",
            completed_stages=completed,
            committed=state.committed,
            pull_request_number=state.pull_request_number,
            details={"instructions_path": state.order.instructions_path},
        )

    async def _create_branch(self, state: StartState) -> None:
        await self.git.create_branch(state.order.branch)

    async def _write_instructions(self, state: StartState) -> None:
        await self.git.write_text_file(state.order.instructions_path, state.order.instructions)

    async def _commit_instructions(self, state: StartState) -> None:
        state.committed = await self.git.stage_commit_and_push(state.order.commit_message)

    async def _push_branch(self, state: StartState) -> None:
        await self.git.push_new_branch_upstream(state.order.branch)

    async def _open_pull_request(self, state: StartState) -> None:
        state.pull_request_number = await self.hosting.open_pull_request(
            state.order.title, state.order.description
        )
