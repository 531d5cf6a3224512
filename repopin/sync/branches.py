"""Default branch resolution."""

from __future__ import annotations

import typing as typ

from repopin.github.errors import GitHubAPIError

from .constants import DEFAULT_BRANCH_CANDIDATES
from .errors import DefaultBranchNotFoundError, InvalidRepositoryNameError

if typ.TYPE_CHECKING:
    from repopin.github.client import GitHubGitClient
    from repopin.github.models import BranchRef, RepositoryReference


async def resolve_default_branch(
    client: GitHubGitClient,
    repository: RepositoryReference,
    candidates: tuple[str, ...] = DEFAULT_BRANCH_CANDIDATES,
) -> BranchRef:
    """Return the first existing branch among ``candidates``.

    Any API error while reading a candidate moves on to the next one.

    Raises
    ------
    InvalidRepositoryNameError
        If ``repository`` fails name validation; nothing is requested.
    DefaultBranchNotFoundError
        If none of the candidates can be read.

    """
    if not repository.is_valid:
        raise InvalidRepositoryNameError(repository)
    for branch in candidates:
        try:
            return await client.get_ref(repository, branch)
        except GitHubAPIError:
            continue
    raise DefaultBranchNotFoundError(repository)
