"""GitHub git-data client, credentials and error types."""

from __future__ import annotations

from .auth import (
    GitClientFactory,
    GitHubClientFactory,
    InstallationTokenProvider,
    StaticTokenProvider,
)
from .client import GitHubGitClient, GitHubRestClient, GitHubRestConfig
from .errors import (
    GitHubAPIError,
    GitHubAuthError,
    GitHubConfigError,
    GitHubResponseShapeError,
)
from .models import (
    BranchRef,
    CommitIdentity,
    CommitRecord,
    RepositoryListing,
    RepositoryReference,
)

__all__ = [
    "BranchRef",
    "CommitIdentity",
    "CommitRecord",
    "GitClientFactory",
    "GitHubAPIError",
    "GitHubAuthError",
    "GitHubClientFactory",
    "GitHubConfigError",
    "GitHubGitClient",
    "GitHubResponseShapeError",
    "GitHubRestClient",
    "GitHubRestConfig",
    "InstallationTokenProvider",
    "RepositoryListing",
    "RepositoryReference",
    "StaticTokenProvider",
]
