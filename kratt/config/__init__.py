"""Configuration system for the kratt worker.

This package provides type-safe configuration management using Pydantic.

Key Components:
    - KrattSettings: Main configuration container with YAML/env loading
    - WorkerConfig: Agent, lint and test commands, instructions, deadline
    - GitHubConfig: GitHub API URL and expected remote host

Example:
    >>> from kratt.config import KrattSettings
    >>> settings = KrattSettings.load("kratt.yaml")
    >>> settings.worker.agent_command
    ['amp', '--stdin']
"""

from kratt.config.settings import DEFAULT_INSTRUCTIONS, GitHubConfig, KrattSettings, WorkerConfig

__all__ = ["DEFAULT_INSTRUCTIONS", "GitHubConfig", "KrattSettings", "WorkerConfig"]
