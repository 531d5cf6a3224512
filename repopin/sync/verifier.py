"""Compare the remote recency order with the desired order.

The hosting platform sorts a user's repositories by last update. A run is
unnecessary when the leading ``top_n`` managed repositories already appear
in the desired positions, so the orchestrator checks this before touching
any repository.
"""

from __future__ import annotations

import typing as typ

import httpx

from repopin.github.errors import GitHubAPIError, GitHubResponseShapeError
from repopin.logging import get_logger, log_warning

from .models import VerificationResult

if typ.TYPE_CHECKING:
    from repopin.github.client import GitHubGitClient

    from .models import DesiredOrder

logger = get_logger(__name__)

_LISTING_LIMIT = 100


def is_already_ordered(
    current_order: typ.Sequence[str],
    desired_order: typ.Sequence[str],
    top_n: int,
) -> bool:
    """Return whether the first ``top_n`` entries match positionally.

    Returns ``False`` when the current order is shorter than the desired top
    slice, since a missing repository cannot be in position.

    Examples
    --------
    >>> is_already_ordered(["a/x", "a/y"], ["a/x", "a/y", "a/z"], 2)
    True
    >>> is_already_ordered(["a/y", "a/x"], ["a/x", "a/y"], 2)
    False

    """
    desired_top = list(desired_order[:top_n]) if top_n > 0 else list(desired_order)
    if len(current_order) < len(desired_top):
        return False
    return all(
        current == desired
        for current, desired in zip(current_order, desired_top, strict=False)
    )


class OrderVerifier:
    """Fetch the remote order and decide whether a run can be skipped."""

    def __init__(self, client: GitHubGitClient) -> None:
        """Bind the verifier to a client."""
        self._client = client

    async def fetch_current_order(
        self, owner_login: str, managed_slugs: typ.Collection[str]
    ) -> list[str]:
        """Return managed repositories in remote recency order.

        A remote failure yields an empty list so that the run proceeds.
        """
        try:
            listing = await self._client.list_repos(owner_login, limit=_LISTING_LIMIT)
        except (GitHubAPIError, GitHubResponseShapeError, httpx.HTTPError) as exc:
            log_warning(
                logger,
                "Could not read repository order for %s: %s",
                owner_login,
                exc,
            )
            return []
        managed = set(managed_slugs)
        return [repo.full_name for repo in listing if repo.full_name in managed]

    async def verify(self, owner_login: str, order: DesiredOrder) -> VerificationResult:
        """Compare the remote order with ``order``'s active slice."""
        desired = [repo.slug for repo in order.active]
        current = await self.fetch_current_order(owner_login, order.slugs)
        already_ordered = is_already_ordered(current, desired, len(desired))
        return VerificationResult(
            current_order=tuple(current[: len(desired)]),
            desired_order=tuple(desired),
            already_ordered=already_ordered,
        )
