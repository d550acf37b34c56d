"""Git discovery exceptions.

This module defines the exception hierarchy for repository discovery and
remote URL parsing. All exceptions inherit from GitDiscoveryError and include
helpful error messages with hints for resolution.

Example:
    >>> from kratt.git.exceptions import NotGitRepositoryError
    >>> raise NotGitRepositoryError("/tmp/not-a-repo")
    Traceback (most recent call last):
        ...
    NotGitRepositoryError: Not a Git repository: /tmp/not-a-repo

    Hint: Run 'git init' or navigate to a Git repository directory.
"""

from kratt.exceptions import GitOperationError


class GitDiscoveryError(GitOperationError):
    """Base exception for Git discovery errors.

    Attributes:
        message: Error message
        hint: Optional hint for resolution
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            hint: Optional hint for resolution
        """
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        """Format error message with hint."""
        if self.hint:
            return f"{self.message}\n\nHint: {self.hint}"
        return self.message


class NotGitRepositoryError(GitDiscoveryError):
    """Raised when directory is not a Git repository.

    Attributes:
        path: Path to the directory that is not a Git repository
    """

    def __init__(self, path: str) -> None:
        super().__init__(
            message=f"Not a Git repository: {path}",
            hint="Run 'git init' or navigate to a Git repository directory.",
        )
        self.path = path


class NoRemotesError(GitDiscoveryError):
    """Raised when the repository has no usable remote configured."""

    def __init__(self, remote_name: str | None = None) -> None:
        if remote_name:
            message = f"Remote '{remote_name}' is not configured in this repository"
        else:
            message = "No Git remotes configured in this repository"
        super().__init__(
            message=message,
            hint="Add a remote with: git remote add origin <url>",
        )
        self.remote_name = remote_name


class InvalidGitUrlError(GitDiscoveryError):
    """Raised when a remote URL format is not recognized.

    Attributes:
        url: The invalid URL
    """

    def __init__(self, url: str, reason: str | None = None) -> None:
        msg = f"Invalid Git URL format: {url}"
        if reason:
            msg += f" ({reason})"

        super().__init__(
            message=msg,
            hint=(
                "Expected formats:\n"
                "  - git@github.com:owner/repo.git\n"
                "  - https://github.com/owner/repo.git"
            ),
        )
        self.url = url


class UnsupportedHostError(GitDiscoveryError):
    """Raised when the remote does not point at the expected hosting service.

    Attributes:
        host: The unsupported host
        url: The full URL
    """

    def __init__(self, host: str, url: str, expected_host: str = "github.com") -> None:
        super().__init__(
            message=f"Unsupported Git host: {host}",
            hint=f"Only {expected_host} repositories are supported.\nRemote URL: {url}",
        )
        self.host = host
        self.url = url
        self.expected_host = expected_host
