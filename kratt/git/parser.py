"""Git remote URL parsing.

Supported URL formats:
    SSH:
        - git@github.com:owner/repo.git
        - git@github.com:owner/repo

    HTTPS:
        - https://github.com/owner/repo.git
        - https://github.com/owner/repo
        - https://user@github.com/owner/repo.git
        - ssh://git@github.com/owner/repo.git

Example:
    >>> from kratt.git.parser import GitUrlParser
    >>> parser = GitUrlParser("git@github.com:acme/widgets.git")
    >>> parser.owner, parser.repo
    ('acme', 'widgets')
"""

import re
from typing import Literal

from kratt.git.exceptions import InvalidGitUrlError


class GitUrlParser:
    """Parser for Git remote URLs in SSH (scp-like) and URL formats.

    Parsing happens in the constructor; an unrecognized URL raises
    InvalidGitUrlError, so every property is valid on a constructed parser.

    Attributes:
        url: Original URL that was parsed (whitespace stripped).
        url_type: 'ssh' for scp-like URLs, 'https' for http(s)/ssh URLs.
        host: Hostname of the Git server.
        port: Port number, if the URL names one.
        owner: Repository owner/organization name.
        repo: Repository name (without .git suffix).
    """

    # scp-like syntax: user@host:path
    SSH_PATTERN = re.compile(r"^(?P<user>[\w.-]+)@(?P<host>[a-zA-Z0-9._-]+):(?!//)(?P<path>.+?)/?$")

    # URL syntax: scheme://[user@]host[:port]/path
    URL_PATTERN = re.compile(
        r"^(?P<scheme>https?|ssh|git)://(?:[^@/]+@)?(?P<host>[a-zA-Z0-9._-]+)(?::(?P<port>\d+))?/(?P<path>.+?)/?$"
    )

    def __init__(self, url: str) -> None:
        self.url = url.strip()
        self._url_type: Literal["ssh", "https", "unknown"] = "unknown"
        self._host: str | None = None
        self._port: int | None = None
        self._owner: str | None = None
        self._repo: str | None = None

        self._parse()

    def _parse(self) -> None:
        match = self.SSH_PATTERN.match(self.url)
        if match:
            self._url_type = "ssh"
            self._host = match.group("host")
            self._extract_owner_repo(match.group("path"))
            return

        match = self.URL_PATTERN.match(self.url)
        if match:
            self._url_type = "https"
            self._host = match.group("host")
            port = match.group("port")
            self._port = int(port) if port else None
            self._extract_owner_repo(match.group("path"))
            return

        raise InvalidGitUrlError(
            self.url,
            reason="Must be SSH (git@host:owner/repo) or HTTPS (https://host/owner/repo)",
        )

    def _extract_owner_repo(self, path: str) -> None:
        """Take the last two path components as owner and repo."""
        path = path.strip("/").removesuffix(".git")
        parts = [part for part in path.split("/") if part]

        if len(parts) < 2:
            raise InvalidGitUrlError(self.url, reason=f"Path must contain owner/repo (got: {path})")

        self._owner = parts[-2]
        self._repo = parts[-1]

    @property
    def url_type(self) -> Literal["ssh", "https", "unknown"]:
        return self._url_type

    @property
    def host(self) -> str:
        if self._host is None:
            raise ValueError("URL not parsed")
        return self._host

    @property
    def port(self) -> int | None:
        return self._port

    @property
    def owner(self) -> str:
        if self._owner is None:
            raise ValueError("URL not parsed")
        return self._owner

    @property
    def repo(self) -> str:
        if self._repo is None:
            raise ValueError("URL not parsed")
        return self._repo

    def is_host(self, expected_host: str) -> bool:
        """Return True if the URL points at ``expected_host`` (case-insensitive)."""
        return self.host.lower() == expected_host.lower()
