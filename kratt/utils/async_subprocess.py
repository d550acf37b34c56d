"""Async subprocess utilities.

Provides non-blocking subprocess execution for use in async contexts.

This module offers:
    - run_command: Execute a command with list arguments (no shell) and
      return its decoded stdout/stderr and exit code
    - communicate_or_kill: Wait for a started process, killing and reaping
      it if the wait times out or the calling task is cancelled

Key Features:
    - Non-blocking execution compatible with asyncio
    - Configurable timeout with automatic process cleanup
    - Cancellation (e.g. Ctrl-C) never leaves a child process running
    - Optional check mode that raises on non-zero exit codes

Example:
    >>> from kratt.utils.async_subprocess import run_command
    >>> stdout, stderr, code = await run_command("git", "status", cwd="/repo")
    >>> if code == 0:
    ...     print(stdout)
"""

import asyncio
import subprocess
from pathlib import Path


async def communicate_or_kill(
    process: asyncio.subprocess.Process,
    input_bytes: bytes | None = None,
    timeout: float | None = None,
) -> tuple[bytes | None, bytes | None]:
    """Feed input to a process and wait for it to exit.

    If the timeout elapses or the awaiting task is cancelled, the process is
    killed and reaped before the exception propagates.

    Args:
        process: A process started with asyncio.create_subprocess_exec.
        input_bytes: Data for stdin (the process must have been started
            with stdin=PIPE), or None.
        timeout: Maximum seconds to wait, None for no limit.

    Returns:
        Tuple of (stdout, stderr) bytes as returned by communicate().

    Raises:
        TimeoutError: If the timeout was exceeded.
        asyncio.CancelledError: If the calling task was cancelled.
    """
    try:
        return await asyncio.wait_for(process.communicate(input_bytes), timeout=timeout)
    except BaseException:
        await _kill(process)
        raise


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        pass
    await process.wait()


async def run_command(
    *args: str,
    cwd: Path | str | None = None,
    check: bool = True,
    timeout: float | None = None,
    input_text: str | None = None,
) -> tuple[str, str, int]:
    """Run a command asynchronously without shell interpolation.

    Args:
        *args: Command and arguments as separate strings.
            Example: "git", "commit", "-m", "message"
        cwd: Working directory for command execution. If None, uses the
            current working directory of the parent process.
        check: If True (default), raise CalledProcessError when the command
            returns a non-zero exit code.
        timeout: Maximum seconds to wait for command completion. If exceeded,
            the process is killed and TimeoutError is raised.
        input_text: Text to write to the command's stdin, or None to give
            it no input.

    Returns:
        Tuple of (stdout, stderr, return_code) where stdout and stderr are
        decoded UTF-8 strings (with replacement for invalid bytes).

    Raises:
        subprocess.CalledProcessError: If check=True and command returns
            non-zero.
        TimeoutError: If timeout is exceeded.
        FileNotFoundError: If the command executable is not found.
        PermissionError: If the executable cannot be executed.

    Example:
        >>> stdout, stderr, code = await run_command(
        ...     "git", "status", "--porcelain",
        ...     cwd="/path/to/repo",
        ... )
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        stdin=asyncio.subprocess.PIPE if input_text is not None else asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    input_bytes = input_text.encode("utf-8") if input_text is not None else None
    stdout_bytes, stderr_bytes = await communicate_or_kill(process, input_bytes, timeout)

    stdout = (stdout_bytes or b"").decode("utf-8", errors="replace")
    stderr = (stderr_bytes or b"").decode("utf-8", errors="replace")

    if check and process.returncode != 0:
        raise subprocess.CalledProcessError(
            process.returncode,
            args,
            stdout,
            stderr,
        )

    return stdout, stderr, process.returncode or 0
