"""CLI commands for running the pull request worker.

Both commands operate on the git repository in the current directory and the
GitHub repository its remote points at.

Examples:

    # Run the agent against PR #42, then lint, test and report
    kratt worker run 42

    # Same, with a different toolchain and a 10 minute budget
    kratt --timeout 10m --lint ruff,check,. --test pytest worker run 42

    # Start new work: branch, instructions file, pull request
    kratt worker start feature/auth "Add JWT based login"
"""

import asyncio
import sys

import click
import structlog

from kratt.cli.options import BRANCH_NAME, POSITIVE_INT
from kratt.config.settings import KrattSettings
from kratt.engine.worker import Worker
from kratt.exceptions import ConfigurationError, KrattError
from kratt.git.exceptions import NotGitRepositoryError
from kratt.models.domain import WorkflowResult
from kratt.providers.base import LocalGit
from kratt.providers.command_runner import AsyncCommandRunner
from kratt.providers.github_rest import GitHubRestProvider
from kratt.providers.local_git import GitCliRepository

log = structlog.get_logger(__name__)


@click.group(name="worker")
def worker_group() -> None:
    """Automated pull request processing."""
    pass


async def _open_repository(settings: KrattSettings) -> tuple[LocalGit, str, str]:
    git = GitCliRepository(expected_host=settings.github.host)
    if not await git.is_repository():
        raise NotGitRepositoryError("current directory")

    try:
        owner, repo = await git.repository_owner_and_name()
    except KrattError as e:
        raise ConfigurationError(f"no GitHub remote found in current repository: {e}") from e

    log.info("repository_resolved", owner=owner, repo=repo)
    return git, owner, repo


async def _run_pull_request(settings: KrattSettings, number: int, verbose: bool) -> WorkflowResult:
    git, owner, repo = await _open_repository(settings)
    if verbose:
        click.echo(f"Processing PR #{number} in repository {owner}/{repo}")

    hosting = GitHubRestProvider(
        token=settings.require_token(), owner=owner, repo=repo, base_url=settings.github.api_url
    )
    worker = Worker(settings.worker, git, hosting, AsyncCommandRunner())
    try:
        return await worker.process_pull_request(number)
    finally:
        await hosting.disconnect()


async def _start_branch(settings: KrattSettings, branch: str, instructions: str, verbose: bool) -> WorkflowResult:
    git, owner, repo = await _open_repository(settings)
    if verbose:
        click.echo(f"Creating branch {branch} in repository {owner}/{repo}")

    if await git.branch_exists(branch):
        raise ConfigurationError(f"branch already exists: {branch}")

    hosting = GitHubRestProvider(
        token=settings.require_token(), owner=owner, repo=repo, base_url=settings.github.api_url
    )
    worker = Worker(settings.worker, git, hosting, AsyncCommandRunner())
    try:
        return await worker.start(branch, instructions)
    finally:
        await hosting.disconnect()


def _report_process_result(number: int, result: WorkflowResult) -> None:
    click.echo(f"Processed pull request #{number} on branch {result.details.get('branch')}")
    if result.report is not None:
        for check in result.report.checks:
            click.echo(f"  {check.name.value}: {'passed' if check.passed else 'failed'}")
    click.echo("Changes committed" if result.committed else "No changes to commit")


@worker_group.command(name="run")
@click.argument("pr_number", metavar="PR_NUMBER", type=POSITIVE_INT)
@click.pass_context
def run_command(ctx: click.Context, pr_number: int) -> None:
    """Process pull request PR_NUMBER in the current repository.

    Checks out the PR branch in a worktree, runs the agent with the PR data,
    runs lint and tests, posts the results as a PR comment and commits any
    changes.
    """
    settings: KrattSettings = ctx.obj["settings"]
    verbose: bool = ctx.obj["verbose"]

    try:
        result = asyncio.run(_run_pull_request(settings, pr_number, verbose))
    except KrattError as e:
        click.echo(f"Error: failed to process PR #{pr_number}: {e}", err=True)
        log.debug("worker_run_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    _report_process_result(pr_number, result)


@worker_group.command(name="start")
@click.argument("branch_name", metavar="BRANCH_NAME", type=BRANCH_NAME)
@click.argument("instructions")
@click.pass_context
def start_command(ctx: click.Context, branch_name: str, instructions: str) -> None:
    """Create BRANCH_NAME with INSTRUCTIONS and open a pull request for it.

    The instructions are committed to docs/<branch>-instructions.md and the
    pull request asks for an implementation plan.
    """
    settings: KrattSettings = ctx.obj["settings"]
    verbose: bool = ctx.obj["verbose"]

    try:
        result = asyncio.run(_start_branch(settings, branch_name, instructions, verbose))
    except KrattError as e:
        click.echo(f"Error: failed to start branch {branch_name}: {e}", err=True)
        log.debug("worker_start_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    click.echo(f"Opened pull request #{result.pull_request_number} for branch {branch_name}")
