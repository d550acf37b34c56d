"""GitHub hosting service implementation using PyGithub."""

import asyncio
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import structlog
from github import Github, GithubException  # type: ignore[import-not-found]
from github.PullRequest import PullRequest as GHPullRequest  # type: ignore[import-not-found]
from github.Repository import Repository as GHRepository  # type: ignore[import-not-found]

from kratt.exceptions import ExternalServiceError, NotFoundError
from kratt.git.discovery import GitDiscovery
from kratt.providers.base import HostingService

log = structlog.get_logger(__name__)

T = TypeVar("T")


async def _run_sync(func: Callable[[], T]) -> T:
    """Run a synchronous function in a thread pool.

    This prevents blocking the event loop when calling synchronous
    PyGithub methods.
    """
    return await asyncio.to_thread(func)


def _isoformat(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


def _login(user: Any) -> str | None:
    return user.login if user is not None else None


class GitHubRestProvider(HostingService):
    """GitHub implementation using PyGithub library.

    Args:
        token: GitHub personal access token or App token
        owner: Repository owner (user or organization)
        repo: Repository name
        base_url: GitHub API base URL (for GitHub Enterprise)
        head_branch: Returns the local branch new pull requests are opened
            from. Defaults to the branch checked out in the current directory.
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
        head_branch: Callable[[], str] | None = None,
    ):
        self.token = token.strip() if token else token
        self.owner = owner
        self.repo = repo
        self.base_url = base_url.rstrip("/")
        self.head_branch = head_branch or (lambda: GitDiscovery(Path.cwd()).active_branch())
        self._client: Github | None = None
        self._repo: GHRepository | None = None

    async def connect(self) -> None:
        """Initialize GitHub client and resolve the repository."""

        def _connect() -> tuple[Github, GHRepository]:
            client = Github(self.token, base_url=self.base_url)
            repo = client.get_repo(f"{self.owner}/{self.repo}")
            return client, repo

        try:
            self._client, self._repo = await _run_sync(_connect)
        except GithubException as e:
            raise ExternalServiceError(
                f"Cannot access GitHub repository {self.owner}/{self.repo}", status_code=e.status
            ) from e
        log.info("github_connected", base_url=self.base_url, owner=self.owner, repo=self.repo)

    async def disconnect(self) -> None:
        """Close GitHub client."""
        if self._client:
            await _run_sync(self._client.close)
            self._client = None
            self._repo = None

    async def _get_repo(self) -> GHRepository:
        if self._repo is None:
            await self.connect()
        assert self._repo is not None
        return self._repo

    async def fetch_pull_request(self, number: int) -> str:
        """Return the pull request, its issue comments and review comments as JSON."""
        log.info("fetch_pull_request", number=number)
        repo = await self._get_repo()

        try:
            data = await _run_sync(lambda: self._pull_request_document(repo.get_pull(number)))
        except GithubException as e:
            log.error("github_fetch_pull_request_failed", number=number, status=e.status)
            if e.status == 404:
                raise NotFoundError(f"Pull request #{number} not found", status_code=404) from e
            raise ExternalServiceError(f"Failed to fetch pull request #{number}", status_code=e.status) from e

        return json.dumps(data, indent=2)

    @staticmethod
    def _pull_request_document(pr: GHPullRequest) -> dict[str, Any]:
        comments: list[dict[str, Any]] = [
            {
                "author": _login(comment.user),
                "body": comment.body,
                "createdAt": _isoformat(comment.created_at),
            }
            for comment in pr.get_issue_comments()
        ]
        comments.extend(
            {
                "author": _login(comment.user),
                "body": comment.body,
                "createdAt": _isoformat(comment.created_at),
                "path": comment.path,
                "line": comment.line,
            }
            for comment in pr.get_review_comments()
        )

        return {
            "number": pr.number,
            "title": pr.title,
            "body": pr.body or "",
            "url": pr.html_url,
            "author": _login(pr.user),
            "state": pr.state,
            "headRefName": pr.head.ref,
            "baseRefName": pr.base.ref,
            "comments": comments,
        }

    async def post_comment(self, number: int, body: str) -> None:
        log.info("post_comment", number=number, length=len(body))
        repo = await self._get_repo()

        try:
            await _run_sync(lambda: repo.get_issue(number).create_comment(body))
        except GithubException as e:
            log.error("github_post_comment_failed", number=number, status=e.status)
            if e.status == 404:
                raise NotFoundError(f"Pull request #{number} not found", status_code=404) from e
            raise ExternalServiceError(f"Failed to comment on #{number}", status_code=e.status) from e

    async def open_pull_request(self, title: str, description: str) -> int:
        repo = await self._get_repo()
        head = await _run_sync(self.head_branch)
        log.info("open_pull_request", title=title, head=head)

        try:
            pr = await _run_sync(
                lambda: repo.create_pull(title=title, body=description, head=head, base=repo.default_branch)
            )
        except GithubException as e:
            log.error("github_create_pull_failed", head=head, status=e.status)
            raise ExternalServiceError(f"Failed to open pull request from {head}", status_code=e.status) from e

        log.info("pull_request_opened", number=pr.number, url=pr.html_url)
        return pr.number
