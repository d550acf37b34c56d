"""CLI commands for the kratt worker.

The CLI is built using Click. The entry point ``kratt`` (kratt.main) holds
the global options; commands live here.

Key Commands:
    worker run (kratt.cli.worker):
        Process an existing pull request: agent, lint, test, report, commit.

    worker start (kratt.cli.worker):
        Create a branch with an instructions file and open a pull request.

Module Structure:
    - worker.py: The ``worker`` command group
    - options.py: Click parameter types (durations, commands, branch names)
"""

from kratt.cli.worker import worker_group

__all__ = ["worker_group"]
