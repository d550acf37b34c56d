"""
Configuration system using Pydantic for type-safe settings management.

Settings come from three layers, lowest precedence first:
    1. Field defaults below
    2. Environment variables (``KRATT_`` prefix, ``__`` for nesting)
    3. An optional YAML file (``--config``) with ``${VAR}`` interpolation

Command-line flags are applied on top by the CLI via ``with_overrides``.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kratt.exceptions import ConfigurationError

DEFAULT_INSTRUCTIONS = (
    "You are an AI assistant helping with code review. "
    "Please analyze the pull request and make any necessary improvements to the code."
)

DEFAULT_TIMEOUT_SECONDS = 30 * 60.0


class WorkerConfig(BaseModel):
    """Workflow configuration shared read-only by one workflow run."""

    model_config = ConfigDict(frozen=True)

    agent_command: list[str] = Field(
        default_factory=lambda: ["amp", "--stdin"],
        description="Agent invocation; the prompt is written to its stdin",
    )
    lint_command: list[str] = Field(
        default_factory=lambda: ["go", "fmt", "./..."],
        description="Lint invocation run after the agent",
    )
    test_command: list[str] = Field(
        default_factory=lambda: ["go", "test", "./..."],
        description="Test invocation run after lint",
    )
    instructions: str = Field(default=DEFAULT_INSTRUCTIONS, description="Preamble placed before the PR data")
    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Deadline covering the agent, lint and test steps together",
    )

    @field_validator("agent_command", "lint_command", "test_command")
    @classmethod
    def validate_command(cls, v: list[str]) -> list[str]:
        """Reject empty argument vectors and blank program names."""
        if not v or not v[0].strip():
            raise ValueError("command must name a program")
        return v


class GitHubConfig(BaseModel):
    """GitHub connection settings."""

    api_url: str = Field(default="https://api.github.com", description="GitHub REST API base URL")
    host: str = Field(default="github.com", description="Host the git remote must point at")


class KrattSettings(BaseSettings):
    """Main worker settings.

    Combines the workflow configuration with hosting-service settings and
    provides loading from YAML files with environment variable interpolation.
    """

    model_config = SettingsConfigDict(
        env_prefix="KRATT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        populate_by_name=True,
    )

    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    github_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("github_token", "KRATT_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN"),
        description="GitHub token used for API calls",
    )

    def require_token(self) -> str:
        """Return the GitHub token or raise ConfigurationError."""
        if self.github_token is None or not self.github_token.get_secret_value().strip():
            raise ConfigurationError("GitHub token not configured: set GITHUB_TOKEN or KRATT_GITHUB_TOKEN")
        return self.github_token.get_secret_value().strip()

    def with_overrides(self, **worker_fields: Any) -> KrattSettings:
        """Return a copy whose worker config has the given non-None fields replaced.

        Raises:
            ConfigurationError: If an override fails validation
        """
        updates = {key: value for key, value in worker_fields.items() if value is not None}
        if not updates:
            return self
        try:
            worker = WorkerConfig(**{**self.worker.model_dump(), **updates})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid worker option: {e}") from e
        return self.model_copy(update={"worker": worker})

    @classmethod
    def load(cls, config_path: str | None = None) -> KrattSettings:
        """Load settings from an optional YAML file plus the environment.

        Raises:
            ConfigurationError: If the file or the environment is invalid
        """
        if config_path:
            return cls.from_yaml(config_path)
        try:
            return cls()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in environment: {e}") from e

    @classmethod
    def from_yaml(cls, config_path: str) -> KrattSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} syntax for environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            KrattSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing required fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        Supports two syntaxes:
        - ${VAR_NAME} - Required environment variable (raises if not set)
        - ${VAR_NAME:-default} - Optional with default value

        YAML comment lines (starting with #) are left unchanged.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
