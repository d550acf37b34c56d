"""
Ordered stage execution.

A workflow is a fixed list of named stages that run strictly one after the
other against a shared state object. The first stage that raises aborts the
run: its exception is wrapped in the stage's WorkflowError subclass (stage
name plus chained cause) and nothing after it executes.

Example:
    >>> pipeline = Pipeline(
    ...     "start",
    ...     [
    ...         Stage("create_branch", create_branch, BranchCreationError),
    ...         Stage("write_instructions", write_file, FileWriteError),
    ...     ],
    ... )
    >>> completed = await pipeline.run(state)
"""

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from kratt.exceptions import WorkflowError

log = structlog.get_logger(__name__)

S = TypeVar("S")


@dataclass(frozen=True)
class Stage(Generic[S]):
    """One named step of a workflow.

    Attributes:
        name: Stage name reported in errors and logs
        run: Coroutine function that reads and updates the shared state
        error: WorkflowError subclass raised when ``run`` fails
        message: Overrides the error class description
    """

    name: str
    run: Callable[[S], Awaitable[None]]
    error: type[WorkflowError]
    message: str | None = None


class Pipeline(Generic[S]):
    """Runs stages in order with abort-on-first-error semantics."""

    def __init__(self, name: str, stages: list[Stage[S]]) -> None:
        self.name = name
        self.stages = stages

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages]

    async def run(self, state: S) -> list[str]:
        """Run every stage against ``state``.

        Returns:
            Names of the completed stages, in order.

        Raises:
            WorkflowError: The failing stage's error, with the original
                exception chained. A WorkflowError raised by a stage itself
                is propagated unchanged.
            asyncio.CancelledError: Cancellation is never wrapped.
        """
        completed: list[str] = []

        for stage in self.stages:
            log.info("stage_started", workflow=self.name, stage=stage.name)
            started = time.monotonic()

            try:
                await stage.run(state)
            except WorkflowError as e:
                log.error("stage_failed", workflow=self.name, stage=stage.name, error=str(e))
                raise
            except Exception as e:
                log.error("stage_failed", workflow=self.name, stage=stage.name, error=str(e))
                raise stage.error(stage.name, e, message=stage.message) from e

            completed.append(stage.name)
            log.info(
                "stage_completed",
                workflow=self.name,
                stage=stage.name,
                duration=round(time.monotonic() - started, 3),
            )

        return completed
