"""Capability implementations used by the workflow engine.

Key Components:
    - CommandRunner / LocalGit / HostingService: Abstract capabilities
    - AsyncCommandRunner: asyncio subprocesses with deadline enforcement
    - GitCliRepository: git CLI plus GitPython discovery
    - GitHubRestProvider: GitHub REST API through PyGithub
    - ScriptedCommandRunner / InMemoryLocalGit / InMemoryHostingService:
      Recording in-memory implementations for tests

Example:
    >>> from kratt.providers import AsyncCommandRunner, GitCliRepository
    >>> git = GitCliRepository()
    >>> await git.is_repository()
    True
"""

from kratt.providers.base import CommandRunner, HostingService, LocalGit
from kratt.providers.command_runner import AsyncCommandRunner
from kratt.providers.github_rest import GitHubRestProvider
from kratt.providers.local_git import GitCliRepository
from kratt.providers.memory import InMemoryHostingService, InMemoryLocalGit, ScriptedCommandRunner

__all__ = [
    "AsyncCommandRunner",
    "CommandRunner",
    "GitCliRepository",
    "GitHubRestProvider",
    "HostingService",
    "InMemoryHostingService",
    "InMemoryLocalGit",
    "LocalGit",
    "ScriptedCommandRunner",
]
