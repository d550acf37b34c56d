"""Workflow engine for the kratt worker.

Key Components:
    - Worker: Runs the ProcessExisting and StartNew workflows
    - Pipeline / Stage: Ordered stage execution with abort-on-first-error
    - build_prompt / render_report: Agent prompt and PR comment text
    - resolve_source_branch: Source branch lookup in fetched PR data

Example:
    >>> from kratt.engine import Worker
    >>> worker = Worker(settings.worker, git, hosting, runner)
    >>> result = await worker.process_pull_request(42)
    >>> result.report.all_passed
    True
"""

from kratt.engine.pipeline import Pipeline, Stage
from kratt.engine.prompt import build_prompt, render_report
from kratt.engine.pull_request import resolve_source_branch
from kratt.engine.worker import Worker

__all__ = [
    "Pipeline",
    "Stage",
    "Worker",
    "build_prompt",
    "render_report",
    "resolve_source_branch",
]
