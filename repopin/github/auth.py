"""Installation credentials and per-installation client construction.

The sync engine never handles long-lived credentials itself. It asks an
:class:`InstallationTokenProvider` for a short-lived token scoped to one
GitHub App installation and builds a fresh client around it for the
duration of a run. Tokens are never logged or persisted.
"""

from __future__ import annotations

import typing as typ

import httpx

from repopin.logging import get_logger, log_warning

from .client import GitHubRestClient, GitHubRestConfig
from .errors import GitHubAPIError, GitHubAuthError, GitHubConfigError

if typ.TYPE_CHECKING:
    from .client import GitHubGitClient

logger = get_logger(__name__)


class InstallationTokenProvider(typ.Protocol):
    """Supplies short-lived installation access tokens."""

    async def get_token(self, installation_id: int) -> str:
        """Return a token for ``installation_id`` or raise on failure."""
        ...


class GitClientFactory(typ.Protocol):
    """Builds a :class:`GitHubGitClient` bound to one installation."""

    async def for_installation(self, installation_id: int) -> GitHubGitClient:
        """Return a client authorised for ``installation_id``."""
        ...


class StaticTokenProvider:
    """Token provider returning one pre-issued token for every installation.

    Suitable for personal access tokens and for tests.
    """

    def __init__(self, token: str) -> None:
        """Store the token; empty values are rejected."""
        if not token.strip():
            raise GitHubConfigError.empty_token()
        self._token = token

    async def get_token(self, installation_id: int) -> str:
        """Return the configured token."""
        del installation_id
        return self._token


class GitHubClientFactory:
    """Build REST clients authorised through an installation token provider.

    Parameters
    ----------
    config
        Base REST configuration; its token is replaced per installation.
    token_provider
        Source of installation tokens.

    """

    def __init__(
        self,
        config: GitHubRestConfig,
        token_provider: InstallationTokenProvider,
    ) -> None:
        """Bind the factory to its configuration and token provider."""
        self._config = config
        self._token_provider = token_provider

    async def for_installation(self, installation_id: int) -> GitHubGitClient:
        """Return a client for ``installation_id``.

        Raises
        ------
        GitHubAuthError
            If no token could be obtained for the installation.

        """
        try:
            token = await self._token_provider.get_token(installation_id)
        except GitHubAuthError:
            raise
        except (GitHubAPIError, GitHubConfigError, httpx.HTTPError) as exc:
            log_warning(
                logger,
                "Installation token request failed for installation %s: %s",
                installation_id,
                type(exc).__name__,
            )
            raise GitHubAuthError(installation_id, str(exc)) from exc
        if not token.strip():
            raise GitHubAuthError(installation_id, "empty installation token")
        return GitHubRestClient(self._config.with_token(token))
