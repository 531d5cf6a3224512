"""GitHub git-data client used by the sync engine.

The engine only needs a narrow slice of the GitHub REST API: reading and
moving branch references, reading and creating commit objects, merging
branches and listing commits or repositories by recency.
:class:`GitHubGitClient` captures that capability so the whole engine can
run against an in-memory fake, while :class:`GitHubRestClient` implements it
over ``httpx``.

Branch references are always addressed by bare branch name (``main``), never
by ``heads/main`` or ``refs/heads/main``.
"""

from __future__ import annotations

import dataclasses
import os
import typing as typ
from urllib.parse import quote

import httpx
import msgspec

from repopin.logging import get_logger, log_warning

from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError
from .models import (
    BranchRef,
    CommitIdentity,
    CommitRecord,
    RepositoryListing,
    RepositoryReference,
)

logger = get_logger(__name__)

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_NO_CONTENT = 204
_MAX_PAGE_SIZE = 100
_LOW_RATE_LIMIT_THRESHOLD = 100


class GitHubGitClient(typ.Protocol):
    """Capability interface over the hosting provider's git data API."""

    async def get_ref(self, repo: RepositoryReference, branch: str) -> BranchRef:
        """Return the branch reference, raising ``GitHubAPIError`` if absent."""
        ...

    async def get_commit(self, repo: RepositoryReference, sha: str) -> CommitRecord:
        """Return the full commit object for ``sha``."""
        ...

    async def create_commit(  # noqa: PLR0913
        self,
        repo: RepositoryReference,
        *,
        message: str,
        tree_sha: str,
        parent_shas: typ.Sequence[str],
        author: CommitIdentity | None = None,
        committer: CommitIdentity | None = None,
    ) -> CommitRecord:
        """Create a new commit object; no reference is moved."""
        ...

    async def update_ref(
        self,
        repo: RepositoryReference,
        branch: str,
        sha: str,
        *,
        force: bool = False,
    ) -> BranchRef:
        """Point ``branch`` at ``sha``; ``force`` allows non fast-forwards."""
        ...

    async def create_ref(
        self, repo: RepositoryReference, branch: str, sha: str
    ) -> BranchRef:
        """Create a new branch pointing at ``sha``."""
        ...

    async def delete_ref(self, repo: RepositoryReference, branch: str) -> None:
        """Delete ``branch``."""
        ...

    async def merge(
        self,
        repo: RepositoryReference,
        *,
        base: str,
        head: str,
        message: str,
    ) -> CommitRecord | None:
        """Merge ``head`` into ``base``; ``None`` when nothing was merged."""
        ...

    async def list_commits(
        self,
        repo: RepositoryReference,
        branch: str,
        *,
        limit: int = _MAX_PAGE_SIZE,
    ) -> list[CommitRecord]:
        """Return up to ``limit`` commits reachable from ``branch``, newest first."""
        ...

    async def list_repos(
        self,
        owner_login: str,
        *,
        limit: int = _MAX_PAGE_SIZE,
    ) -> list[RepositoryListing]:
        """Return the user's repositories sorted by most recently updated."""
        ...

    async def aclose(self) -> None:
        """Release any held HTTP resources."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubRestConfig:
    """Configuration for the GitHub REST API client."""

    token: str
    api_url: str = "https://api.github.com"
    timeout_s: float = 20.0
    user_agent: str = "repopin/0.1"

    @classmethod
    def from_env(cls) -> GitHubRestConfig:
        """Build configuration using the ``REPOPIN_GITHUB_TOKEN`` env var.

        ``REPOPIN_GITHUB_API_URL`` optionally overrides the API base URL,
        for GitHub Enterprise Server installations.
        """
        token = os.environ.get("REPOPIN_GITHUB_TOKEN", "").strip()
        if not token:
            raise GitHubConfigError.missing_token()
        api_url = os.environ.get("REPOPIN_GITHUB_API_URL", "").strip()
        if api_url:
            return cls(token=token, api_url=api_url.rstrip("/"))
        return cls(token=token)

    def with_token(self, token: str) -> GitHubRestConfig:
        """Return a copy of this configuration bound to ``token``."""
        return dataclasses.replace(self, token=token)


class _SignaturePayload(msgspec.Struct):
    name: str
    email: str
    date: str | None = None


class _ShaPayload(msgspec.Struct):
    sha: str


class _RefObjectPayload(msgspec.Struct):
    sha: str


class _RefPayload(msgspec.Struct, kw_only=True):
    ref: str
    object: _RefObjectPayload


class _GitCommitPayload(msgspec.Struct, kw_only=True):
    sha: str
    message: str
    tree: _ShaPayload
    parents: list[_ShaPayload] = msgspec.field(default_factory=list)
    author: _SignaturePayload | None = None
    committer: _SignaturePayload | None = None


class _RestCommitDetail(msgspec.Struct, kw_only=True):
    message: str
    tree: _ShaPayload
    author: _SignaturePayload | None = None
    committer: _SignaturePayload | None = None


class _RestCommitPayload(msgspec.Struct, kw_only=True):
    sha: str
    commit: _RestCommitDetail
    parents: list[_ShaPayload] = msgspec.field(default_factory=list)


class _RepositoryPayload(msgspec.Struct, kw_only=True):
    full_name: str
    updated_at: str | None = None
    pushed_at: str | None = None


def _identity(payload: _SignaturePayload | None) -> CommitIdentity | None:
    if payload is None:
        return None
    return CommitIdentity(name=payload.name, email=payload.email, date=payload.date)


def _record_from_git_commit(payload: _GitCommitPayload) -> CommitRecord:
    return CommitRecord(
        sha=payload.sha,
        message=payload.message,
        tree_sha=payload.tree.sha,
        parent_shas=tuple(parent.sha for parent in payload.parents),
        author=_identity(payload.author),
        committer=_identity(payload.committer),
    )


def _record_from_rest_commit(payload: _RestCommitPayload) -> CommitRecord:
    return CommitRecord(
        sha=payload.sha,
        message=payload.commit.message,
        tree_sha=payload.commit.tree.sha,
        parent_shas=tuple(parent.sha for parent in payload.parents),
        author=_identity(payload.commit.author),
        committer=_identity(payload.commit.committer),
    )


def _branch_from_ref(payload: _RefPayload) -> BranchRef:
    return BranchRef(
        name=payload.ref.removeprefix("refs/heads/"), sha=payload.object.sha
    )


def _decode[T](response: httpx.Response, path: str, type_: type[T]) -> T:
    try:
        return msgspec.json.decode(response.content, type=type_)
    except msgspec.DecodeError as exc:
        raise GitHubResponseShapeError.invalid(path, str(exc)) from exc


def _repo_path(repo: RepositoryReference) -> str:
    return f"/repos/{quote(repo.owner, safe='')}/{quote(repo.name, safe='')}"


def _branch_path(branch: str) -> str:
    return quote(branch, safe="/")


class GitHubRestClient:
    """``httpx`` implementation of :class:`GitHubGitClient`."""

    def __init__(
        self,
        config: GitHubRestConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=config.api_url,
            timeout=config.timeout_s,
            headers={
                "Authorization": f"Bearer {config.token}",
                "User-Agent": config.user_agent,
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def get_ref(self, repo: RepositoryReference, branch: str) -> BranchRef:
        """Return the branch reference for ``branch``."""
        path = f"{_repo_path(repo)}/git/ref/heads/{_branch_path(branch)}"
        response = await self._request("GET", path)
        return _branch_from_ref(_decode(response, path, _RefPayload))

    async def get_commit(self, repo: RepositoryReference, sha: str) -> CommitRecord:
        """Return the git commit object for ``sha``."""
        path = f"{_repo_path(repo)}/git/commits/{sha}"
        response = await self._request("GET", path)
        return _record_from_git_commit(_decode(response, path, _GitCommitPayload))

    async def create_commit(  # noqa: PLR0913
        self,
        repo: RepositoryReference,
        *,
        message: str,
        tree_sha: str,
        parent_shas: typ.Sequence[str],
        author: CommitIdentity | None = None,
        committer: CommitIdentity | None = None,
    ) -> CommitRecord:
        """Create a commit object with the given tree and parents."""
        path = f"{_repo_path(repo)}/git/commits"
        body: dict[str, typ.Any] = {
            "message": message,
            "tree": tree_sha,
            "parents": list(parent_shas),
        }
        if author is not None:
            body["author"] = author.as_payload()
        if committer is not None:
            body["committer"] = committer.as_payload()
        response = await self._request("POST", path, json=body)
        return _record_from_git_commit(_decode(response, path, _GitCommitPayload))

    async def update_ref(
        self,
        repo: RepositoryReference,
        branch: str,
        sha: str,
        *,
        force: bool = False,
    ) -> BranchRef:
        """Move ``branch`` to ``sha``."""
        path = f"{_repo_path(repo)}/git/refs/heads/{_branch_path(branch)}"
        response = await self._request("PATCH", path, json={"sha": sha, "force": force})
        return _branch_from_ref(_decode(response, path, _RefPayload))

    async def create_ref(
        self, repo: RepositoryReference, branch: str, sha: str
    ) -> BranchRef:
        """Create ``refs/heads/<branch>`` at ``sha``."""
        path = f"{_repo_path(repo)}/git/refs"
        response = await self._request(
            "POST", path, json={"ref": f"refs/heads/{branch}", "sha": sha}
        )
        return _branch_from_ref(_decode(response, path, _RefPayload))

    async def delete_ref(self, repo: RepositoryReference, branch: str) -> None:
        """Delete ``refs/heads/<branch>``."""
        path = f"{_repo_path(repo)}/git/refs/heads/{_branch_path(branch)}"
        await self._request("DELETE", path)

    async def merge(
        self,
        repo: RepositoryReference,
        *,
        base: str,
        head: str,
        message: str,
    ) -> CommitRecord | None:
        """Merge ``head`` into ``base`` with a merge commit."""
        path = f"{_repo_path(repo)}/merges"
        response = await self._request(
            "POST",
            path,
            json={"base": base, "head": head, "commit_message": message},
        )
        if response.status_code == _HTTP_NO_CONTENT:
            return None
        return _record_from_rest_commit(_decode(response, path, _RestCommitPayload))

    async def list_commits(
        self,
        repo: RepositoryReference,
        branch: str,
        *,
        limit: int = _MAX_PAGE_SIZE,
    ) -> list[CommitRecord]:
        """Return up to ``limit`` commits from ``branch``, newest first.

        The page size stays fixed across requests since GitHub derives the
        page offset from it.

        """
        path = f"{_repo_path(repo)}/commits"
        per_page = min(_MAX_PAGE_SIZE, limit)
        commits: list[CommitRecord] = []
        seen: set[str] = set()
        page = 1
        while len(commits) < limit:
            response = await self._request(
                "GET",
                path,
                params={"sha": branch, "per_page": per_page, "page": page},
            )
            batch = _decode(response, path, list[_RestCommitPayload])
            for item in batch:
                record = _record_from_rest_commit(item)
                if record.sha not in seen:
                    seen.add(record.sha)
                    commits.append(record)
            if len(batch) < per_page:
                break
            page += 1
        return commits[:limit]

    async def list_repos(
        self,
        owner_login: str,
        *,
        limit: int = _MAX_PAGE_SIZE,
    ) -> list[RepositoryListing]:
        """Return the user's repositories sorted by ``updated`` descending."""
        path = f"/users/{quote(owner_login, safe='')}/repos"
        response = await self._request(
            "GET",
            path,
            params={
                "sort": "updated",
                "direction": "desc",
                "per_page": min(limit, _MAX_PAGE_SIZE),
            },
        )
        batch = _decode(response, path, list[_RepositoryPayload])
        return [
            RepositoryListing(
                full_name=item.full_name,
                updated_at=item.updated_at,
                pushed_at=item.pushed_at,
            )
            for item in batch[:limit]
        ]

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, typ.Any] | None = None,
        params: dict[str, typ.Any] | None = None,
    ) -> httpx.Response:
        """Issue a request and raise ``GitHubAPIError`` for error statuses."""
        response = await self._client.request(method, path, json=json, params=params)
        self._warn_on_low_rate_limit(response)
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(method, path, response.status_code)
        return response

    def _warn_on_low_rate_limit(self, response: httpx.Response) -> None:
        raw = response.headers.get("X-RateLimit-Remaining")
        if raw is None:
            return
        try:
            remaining = int(raw)
        except ValueError:
            return
        if remaining < _LOW_RATE_LIMIT_THRESHOLD:
            log_warning(
                logger,
                "GitHub API rate limit low: %d requests remaining (reset=%s)",
                remaining,
                response.headers.get("X-RateLimit-Reset", "unknown"),
            )
