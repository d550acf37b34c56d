"""Pytest configuration and shared fixtures."""

import json
import subprocess
from pathlib import Path

import pytest
import structlog

from kratt.config.settings import WorkerConfig
from kratt.engine.worker import Worker
from kratt.providers.memory import InMemoryHostingService, InMemoryLocalGit, ScriptedCommandRunner


def pull_request_info(number: int = 42, branch: str = "fix-typo", **extra) -> str:
    """Serialized pull request document shaped like the GitHub adapter's output."""
    data = {
        "number": number,
        "title": "Fix typo in README",
        "body": "Please fix the typo.",
        "url": f"https://github.com/owner/repo/pull/{number}",
        "author": "octocat",
        "state": "open",
        "headRefName": branch,
        "baseRefName": "main",
        "comments": [{"author": "reviewer", "body": "Looks close", "createdAt": "2024-01-01T00:00:00"}],
    }
    data.update(extra)
    return json.dumps(data, indent=2)


@pytest.fixture
def worker_config() -> WorkerConfig:
    """Worker configuration with short, recognizable commands."""
    return WorkerConfig(
        agent_command=["agent", "--stdin"],
        lint_command=["make", "lint"],
        test_command=["make", "test"],
        instructions="Review the pull request.",
        timeout_seconds=5.0,
    )


@pytest.fixture
def local_git() -> InMemoryLocalGit:
    return InMemoryLocalGit()


@pytest.fixture
def hosting() -> InMemoryHostingService:
    service = InMemoryHostingService()
    service.set_pull_request(42, pull_request_info())
    return service


@pytest.fixture
def runner() -> ScriptedCommandRunner:
    return ScriptedCommandRunner()


@pytest.fixture
def worker(
    worker_config: WorkerConfig,
    local_git: InMemoryLocalGit,
    hosting: InMemoryHostingService,
    runner: ScriptedCommandRunner,
) -> Worker:
    """Worker wired to in-memory capabilities."""
    return Worker(worker_config, local_git, hosting, runner)


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)
    return result.stdout


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A real repository with one commit, cloned from a local bare remote.

    Layout::

        tmp_path/remote.git    bare "origin"
        tmp_path/work/widgets  clone, branch main, upstream origin/main
    """
    remote = tmp_path / "remote.git"
    _git(tmp_path, "init", "--bare", "--initial-branch=main", str(remote))

    work = tmp_path / "work"
    work.mkdir()
    _git(work, "clone", str(remote), "widgets")
    repo = work / "widgets"

    _git(repo, "config", "user.email", "worker@example.com")
    _git(repo, "config", "user.name", "Kratt Worker")
    _git(repo, "config", "commit.gpgsign", "false")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    (repo / "README.md").write_text("# widgets\n")
    _git(repo, "add", "README.md")
    _git(repo, "commit", "-m", "Initial commit")
    _git(repo, "push", "-u", "origin", "main")

    return repo


@pytest.fixture
def run_git():
    """Run git synchronously in a directory and return stdout."""
    return _git


@pytest.fixture
def pr_info():
    """Factory for serialized pull request documents."""
    return pull_request_info


@pytest.fixture(autouse=True)
def reset_structlog():
    """Drop logging configuration made by CLI invocations."""
    yield
    structlog.reset_defaults()
