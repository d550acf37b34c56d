"""Git repository discovery and remote URL parsing.

The main entry point is the GitDiscovery class, which answers questions about
the local repository (is this a repository, what is checked out, which hosted
repository does the remote point at) using GitPython.

Example:
    >>> from kratt.git import GitDiscovery
    >>> info = GitDiscovery().parse_repository(expected_host="github.com")
    >>> print(info.full_name)
    acme/widgets
"""

from kratt.git.discovery import GitDiscovery
from kratt.git.exceptions import (
    GitDiscoveryError,
    InvalidGitUrlError,
    NoRemotesError,
    NotGitRepositoryError,
    UnsupportedHostError,
)
from kratt.git.models import GitRemote, RepositoryInfo, WorktreeEntry
from kratt.git.parser import GitUrlParser

__all__ = [
    # Main API
    "GitDiscovery",
    # Parser
    "GitUrlParser",
    # Models
    "GitRemote",
    "RepositoryInfo",
    "WorktreeEntry",
    # Exceptions
    "GitDiscoveryError",
    "NotGitRepositoryError",
    "NoRemotesError",
    "InvalidGitUrlError",
    "UnsupportedHostError",
]
