"""On-demand inspection and cleanup of synthetic commits.

Runs interrupted between a bump and its cleanup leave marked commits
behind. :class:`MarkerScanner` reports how many remain per repository and
:func:`cleanup_repositories` removes them, one repository at a time.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from repopin.logging import get_logger, log_warning

from .branches import resolve_default_branch
from .constants import DEFAULT_CLEANUP_WINDOW, MARKER
from .orchestrator import REPOSITORY_ERRORS

if typ.TYPE_CHECKING:
    from repopin.github.client import GitHubGitClient
    from repopin.github.models import RepositoryReference

    from .models import CleanupResult
    from .rewriter import HistoryRewriter

logger = get_logger(__name__)


@dc.dataclass(frozen=True, slots=True)
class MarkerScanReport:
    """Synthetic commit count for one repository."""

    repository: str
    marker_commits: int
    total_commits: int
    last_marker_message: str | None = None


@dc.dataclass(frozen=True, slots=True)
class MaintenanceCleanupResult:
    """Outcome of an on-demand cleanup for one repository."""

    repository: str
    result: CleanupResult | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Return whether the cleanup completed."""
        return self.error is None


class MarkerScanner:
    """Count marked commits in recent history."""

    def __init__(
        self,
        client: GitHubGitClient,
        *,
        window: int = DEFAULT_CLEANUP_WINDOW,
        marker: str = MARKER,
    ) -> None:
        """Bind the scanner to a client."""
        self._client = client
        self._window = window
        self._marker = marker

    async def scan_one(self, repository: RepositoryReference) -> MarkerScanReport:
        """Scan one repository; failures report zero counts."""
        try:
            head = await resolve_default_branch(self._client, repository)
            commits = await self._client.list_commits(
                repository, head.name, limit=self._window
            )
        except REPOSITORY_ERRORS as exc:
            log_warning(logger, "Could not scan %s: %s", repository.slug, exc)
            return MarkerScanReport(
                repository=repository.slug, marker_commits=0, total_commits=0
            )

        marked = [commit for commit in commits if commit.has_marker(self._marker)]
        return MarkerScanReport(
            repository=repository.slug,
            marker_commits=len(marked),
            total_commits=len(commits),
            last_marker_message=marked[0].message if marked else None,
        )

    async def scan(
        self, repositories: typ.Iterable[RepositoryReference]
    ) -> list[MarkerScanReport]:
        """Scan each repository in turn."""
        return [await self.scan_one(repository) for repository in repositories]


async def cleanup_repositories(
    rewriter: HistoryRewriter,
    repositories: typ.Iterable[RepositoryReference],
) -> list[MaintenanceCleanupResult]:
    """Run a history rewrite on each repository, isolating failures."""
    outcomes: list[MaintenanceCleanupResult] = []
    for repository in repositories:
        try:
            result = await rewriter.cleanup(repository)
        except REPOSITORY_ERRORS as exc:
            log_warning(logger, "Cleanup failed for %s: %s", repository.slug, exc)
            outcomes.append(
                MaintenanceCleanupResult(repository=repository.slug, error=str(exc))
            )
            continue
        outcomes.append(MaintenanceCleanupResult(repository=repository.slug, result=result))
    return outcomes
