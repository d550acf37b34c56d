"""CLI entry point for the kratt worker."""

import sys
from pathlib import Path

import click
import structlog

from kratt import __version__
from kratt.cli.options import COMMAND, DURATION
from kratt.cli.worker import worker_group
from kratt.config.settings import KrattSettings
from kratt.exceptions import ConfigurationError
from kratt.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


def _read_instructions(path: Path | None) -> str | None:
    if path is None:
        return None
    try:
        return path.read_text()
    except OSError as e:
        raise ConfigurationError(f"failed to read instructions file: {e}") from e


@click.group()
@click.version_option(__version__, prog_name="kratt")
@click.option("--config", type=click.Path(dir_okay=False), default=None, help="Path to a YAML configuration file")
@click.option("--log-level", default="INFO", help="Logging level")
@click.option("--json-logs", is_flag=True, help="Emit log lines as JSON")
@click.option(
    "--timeout",
    type=DURATION,
    default=None,
    help="Deadline for the agent, lint and test steps together (e.g. 30m, 90s, 1h30m)",
)
@click.option(
    "--instructions",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to file containing agent instructions",
)
@click.option("--agent", type=COMMAND, default=None, help="Command to run the AI agent (comma separated)")
@click.option("--lint", type=COMMAND, default=None, help="Command to run linting (comma separated)")
@click.option("--test", type=COMMAND, default=None, help="Command to run tests (comma separated)")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(
    ctx: click.Context,
    config: str | None,
    log_level: str,
    json_logs: bool,
    timeout: float | None,
    instructions: Path | None,
    agent: list[str] | None,
    lint: list[str] | None,
    test: list[str] | None,
    verbose: bool,
) -> None:
    """kratt: Automated PR processing worker.

    Runs an AI agent against pull requests of the GitHub repository in the
    current directory and reports lint and test results back to the PR.
    """
    configure_logging("DEBUG" if verbose else log_level, json_output=json_logs)

    try:
        settings = KrattSettings.load(config).with_overrides(
            timeout_seconds=timeout,
            instructions=_read_instructions(instructions),
            agent_command=agent,
            lint_command=lint,
            test_command=test,
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)

    ctx.obj = {"settings": settings, "verbose": verbose}


cli.add_command(worker_group)


if __name__ == "__main__":
    cli()
