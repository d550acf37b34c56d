"""Git repository data models.

Example:
    >>> from kratt.git.models import RepositoryInfo
    >>> info = RepositoryInfo(
    ...     owner="acme",
    ...     repo="widgets",
    ...     host="github.com",
    ...     remote_name="origin",
    ... )
    >>> info.full_name
    'acme/widgets'
"""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, field_validator


@dataclass(frozen=True)
class GitRemote:
    """Represents a Git remote configuration.

    Attributes:
        name: Remote name (e.g., 'origin', 'upstream')
        url: Raw URL from git config
        url_type: Whether SSH or HTTPS format
    """

    name: str
    url: str
    url_type: Literal["ssh", "https", "unknown"]


@dataclass(frozen=True)
class WorktreeEntry:
    """One entry of ``git worktree list --porcelain``.

    Attributes:
        path: Absolute path of the worktree
        branch: Short branch name, or None for detached/bare entries
    """

    path: str
    branch: str | None


class RepositoryInfo(BaseModel):
    """Owner/name of the hosted repository behind a local remote.

    Attributes:
        owner: Repository owner/organization
        repo: Repository name (without .git suffix)
        host: Hostname the remote points at
        remote_name: Which remote was used (origin/upstream/etc)
    """

    owner: str
    repo: str
    host: str
    remote_name: str

    @field_validator("owner", "repo")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Ensure owner and repo are not empty."""
        if not v or not v.strip():
            raise ValueError("Owner and repo must not be empty")
        return v.strip()

    @field_validator("repo")
    @classmethod
    def validate_no_git_suffix(cls, v: str) -> str:
        """Ensure .git suffix is removed."""
        return v.removesuffix(".git")

    @property
    def full_name(self) -> str:
        """Return owner/repo format."""
        return f"{self.owner}/{self.repo}"
