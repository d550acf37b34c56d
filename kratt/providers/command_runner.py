"""Command execution with asyncio subprocesses."""

import asyncio
import shlex

import structlog

from kratt.exceptions import CommandExecutionError, CommandTimeoutError
from kratt.models.domain import ExecutionResult
from kratt.providers.base import CommandRunner
from kratt.utils.async_subprocess import communicate_or_kill

log = structlog.get_logger(__name__)


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return deadline - asyncio.get_running_loop().time()


class AsyncCommandRunner(CommandRunner):
    """Runs programs as asyncio subprocesses.

    Args:
        stream_output: If True (default), the agent's stdout/stderr go
            straight to the terminal. If False they are captured and the
            output is attached to any CommandExecutionError.
    """

    def __init__(self, stream_output: bool = True) -> None:
        self.stream_output = stream_output

    async def run_with_input(self, deadline: float | None, input_text: str, program: str, *args: str) -> None:
        command = [program, *args]
        timeout = _remaining(deadline)
        if timeout is not None and timeout <= 0:
            raise CommandTimeoutError("deadline elapsed before launch", command=command, timeout_seconds=0.0)

        log.debug("run_with_input", command=shlex.join(command), input_length=len(input_text), timeout=timeout)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=None if self.stream_output else asyncio.subprocess.PIPE,
                stderr=None if self.stream_output else asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise CommandExecutionError(f"failed to launch {program}: {e}", command=command) from e

        try:
            stdout, _ = await communicate_or_kill(process, input_text.encode("utf-8"), timeout)
        except TimeoutError as e:
            log.warning("command_timed_out", command=shlex.join(command), timeout=timeout)
            raise CommandTimeoutError(
                f"{program} did not finish before the deadline", command=command, timeout_seconds=timeout
            ) from e

        if process.returncode != 0:
            raise CommandExecutionError(
                f"{program} failed",
                command=command,
                returncode=process.returncode,
                output=(stdout or b"").decode("utf-8", errors="replace"),
            )

    async def run_captured(self, deadline: float | None, program: str, *args: str) -> ExecutionResult:
        command = [program, *args]
        timeout = _remaining(deadline)
        if timeout is not None and timeout <= 0:
            raise CommandTimeoutError("deadline elapsed before launch", command=command, timeout_seconds=0.0)

        log.debug("run_captured", command=shlex.join(command), timeout=timeout)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            return ExecutionResult(output=b"", returncode=None, error=f"failed to launch {program}: {e}")

        try:
            stdout, _ = await communicate_or_kill(process, None, timeout)
        except TimeoutError as e:
            log.warning("command_timed_out", command=shlex.join(command), timeout=timeout)
            raise CommandTimeoutError(
                f"{program} did not finish before the deadline", command=command, timeout_seconds=timeout
            ) from e

        output = stdout or b""
        if process.returncode != 0:
            return ExecutionResult(
                output=output,
                returncode=process.returncode,
                error=f"{program} exited with status {process.returncode}",
            )
        return ExecutionResult(output=output, returncode=0)
