"""Git repository discovery.

This module inspects a local repository with GitPython: whether a path is
inside a repository at all, which remotes it has, which hosted repository
(owner/name) the remote points at, and which branch is checked out.

Key Exports:
    GitDiscovery: Main class for repository discovery operations.

Example:
    >>> from kratt.git.discovery import GitDiscovery
    >>> discovery = GitDiscovery()
    >>> info = discovery.parse_repository()
    >>> print(info.full_name)
    acme/widgets

Thread Safety:
    GitDiscovery instances cache the git.Repo object internally. Each
    instance should be used from a single thread.

Dependencies:
    Requires GitPython (gitpython) package for repository access.
"""

from pathlib import Path
from typing import Literal

import git
from git.exc import InvalidGitRepositoryError, NoSuchPathError

from kratt.git.exceptions import NoRemotesError, NotGitRepositoryError, UnsupportedHostError
from kratt.git.models import GitRemote, RepositoryInfo
from kratt.git.parser import GitUrlParser


class GitDiscovery:
    """Discovers Git repository configuration from local repositories.

    The git.Repo object is created lazily, so a GitDiscovery can be built for
    any path and asked ``is_repository()`` without raising.

    Attributes:
        repo_path: Resolved absolute path to start searching from.
        PREFERRED_REMOTES: Remote names tried in order when none is requested.
    """

    PREFERRED_REMOTES = ["origin", "upstream"]

    def __init__(self, repo_path: str | Path = ".") -> None:
        """Initialize Git discovery for a repository path.

        Args:
            repo_path: Any path within the repository; parent directories are
                searched automatically. Default is the current directory.
        """
        self.repo_path = Path(repo_path).resolve()
        self._repo: git.Repo | None = None

    def _get_repo(self) -> git.Repo:
        if self._repo is None:
            try:
                self._repo = git.Repo(self.repo_path, search_parent_directories=True)
            except (InvalidGitRepositoryError, NoSuchPathError) as e:
                raise NotGitRepositoryError(str(self.repo_path)) from e

        return self._repo

    def is_repository(self) -> bool:
        """Return True if ``repo_path`` lies inside a Git working tree.

        "Not a repository" is an answer, not an error.
        """
        try:
            self._get_repo()
        except NotGitRepositoryError:
            return False
        return True

    def working_tree_root(self) -> Path:
        """Return the top-level directory of the working tree."""
        repo = self._get_repo()
        if repo.working_tree_dir is None:
            raise NotGitRepositoryError(str(self.repo_path))
        return Path(repo.working_tree_dir)

    def active_branch(self) -> str:
        """Return the name of the checked-out branch.

        Raises:
            NotGitRepositoryError: If not within a Git repository.
            TypeError: If HEAD is detached (raised by GitPython).
        """
        return self._get_repo().active_branch.name

    def list_remotes(self) -> list[GitRemote]:
        """List all configured Git remotes."""
        repo = self._get_repo()

        remotes = []
        for remote in repo.remotes:
            url = remote.url

            url_type: Literal["ssh", "https", "unknown"] = "unknown"
            if "://" not in url and "@" in url:
                url_type = "ssh"
            elif url.startswith(("http://", "https://", "ssh://")):
                url_type = "https"

            remotes.append(GitRemote(name=remote.name, url=url, url_type=url_type))

        return remotes

    def get_remote(self, remote_name: str | None = None) -> GitRemote:
        """Get a Git remote by name, or the preferred one.

        Selection logic (when remote_name is None):
            1. 'origin', then 'upstream'
            2. otherwise the first configured remote

        Raises:
            NotGitRepositoryError: If not within a Git repository.
            NoRemotesError: If no (matching) remote is configured.
        """
        remotes = self.list_remotes()

        if not remotes:
            raise NoRemotesError()

        if remote_name:
            for remote in remotes:
                if remote.name == remote_name:
                    return remote
            raise NoRemotesError(remote_name)

        for preferred in self.PREFERRED_REMOTES:
            for remote in remotes:
                if remote.name == preferred:
                    return remote

        return remotes[0]

    def parse_repository(
        self,
        remote_name: str | None = None,
        expected_host: str | None = None,
    ) -> RepositoryInfo:
        """Parse owner and repository name from a Git remote.

        Args:
            remote_name: Specific remote name (optional).
            expected_host: If given, the remote must point at this host.

        Returns:
            RepositoryInfo with owner, repo, host and remote name.

        Raises:
            NotGitRepositoryError: If not within a Git repository.
            NoRemotesError: If no remotes are configured.
            InvalidGitUrlError: If the remote URL format is invalid.
            UnsupportedHostError: If the remote points somewhere else.
        """
        remote = self.get_remote(remote_name)
        parser = GitUrlParser(remote.url)

        if expected_host and not parser.is_host(expected_host):
            raise UnsupportedHostError(parser.host, remote.url, expected_host=expected_host)

        return RepositoryInfo(
            owner=parser.owner,
            repo=parser.repo,
            host=parser.host,
            remote_name=remote.name,
        )
