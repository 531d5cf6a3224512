"""Front door for sync triggers.

``SyncService.trigger`` turns an opaque per-user secret into a run. The
checks happen in a fixed order: secret shape, rate limit, settings lookup,
installation, switches, stored order, credentials and finally the
per-credential lock. The rate limit comes before the lookup so that unknown
secrets are throttled too.

Usage
-----
>>> service = SyncService(dependencies, config=SyncConfig.from_env())
>>> outcome = await service.trigger("3f0c...")

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
import uuid

from sqlalchemy.exc import SQLAlchemyError

from repopin.audit.service import AuditAction
from repopin.github.errors import GitHubAuthError
from repopin.logging import get_logger, log_exception, log_info, log_warning
from repopin.settings.errors import InvalidOrderError

from .config import SyncConfig
from .errors import (
    ConfigurationError,
    InvalidSecretError,
    RateLimitExceededError,
    ReauthorizationRequiredError,
    UnknownSecretError,
)
from .governor import FixedDelayGovernor
from .locks import CredentialLockRegistry
from .models import OutcomeKind, SyncOutcome
from .orchestrator import SyncOrchestrator, SyncOrchestratorDependencies
from .rewriter import HistoryRewriter
from .strategies import build_strategy
from .verifier import OrderVerifier

if typ.TYPE_CHECKING:
    from repopin.audit.service import AuditLogger
    from repopin.github.auth import GitClientFactory
    from repopin.github.client import GitHubGitClient
    from repopin.ratelimit.limiter import Clock, RateLimiter
    from repopin.settings.service import SettingsService

    from .governor import BackoffGovernor
    from .observability import SyncEventLogger

logger = get_logger(__name__)


def is_valid_secret(secret: str) -> bool:
    """Return whether ``secret`` is a canonical UUID string.

    Examples
    --------
    >>> is_valid_secret("not-a-uuid")
    False

    """
    try:
        parsed = uuid.UUID(secret)
    except ValueError:
        return False
    return str(parsed) == secret.lower()


@dc.dataclass(frozen=True, slots=True)
class SyncServiceDependencies:
    """Collaborators of :class:`SyncService`.

    Attributes
    ----------
    settings
        Source of per-user settings.
    audit
        Audit log shared with the orchestrator.
    client_factory
        Builds installation-scoped GitHub clients.
    rate_limiter
        Gate applied per secret.
    locks
        Per-credential run exclusion.

    """

    settings: SettingsService
    audit: AuditLogger
    client_factory: GitClientFactory
    rate_limiter: RateLimiter
    locks: CredentialLockRegistry = dc.field(default_factory=CredentialLockRegistry)


class SyncService:
    """Validate a trigger and run the orchestrator for its owner."""

    def __init__(
        self,
        dependencies: SyncServiceDependencies,
        *,
        config: SyncConfig | None = None,
        governor: BackoffGovernor | None = None,
        event_logger: SyncEventLogger | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Configure the service.

        ``governor`` defaults to a :class:`FixedDelayGovernor` using the
        configured delays; ``clock`` names temporary and backup branches.
        """
        self._deps = dependencies
        self._config = config or SyncConfig()
        self._governor = governor or FixedDelayGovernor(
            settle_delay_s=self._config.settle_delay_s,
            repository_delay_s=self._config.repository_delay_s,
        )
        self._event_logger = event_logger
        self._clock = clock or dependencies.rate_limiter.now

    async def trigger(self, secret: str) -> SyncOutcome:
        """Run a sync for the owner of ``secret``.

        Raises
        ------
        InvalidSecretError
            If ``secret`` is not a UUID.
        RateLimitExceededError
            If the secret exceeded its trigger budget.
        UnknownSecretError
            If no settings own the secret.
        ConfigurationError
            If the settings lack an installation or hold a malformed order.
        ReauthorizationRequiredError
            If no installation token could be obtained.
        SyncInProgressError
            If a run for the same secret is already active.

        """
        if not is_valid_secret(secret):
            raise InvalidSecretError()

        limiter = self._deps.rate_limiter
        check = limiter.check_config(f"sync:{secret}", self._config.rate_limit)
        if not check.allowed:
            raise RateLimitExceededError(check, limiter.now())

        settings = await self._deps.settings.get_by_sync_secret(secret)
        if settings is None:
            raise UnknownSecretError()
        if settings.installation_id is None:
            raise ConfigurationError.missing_installation()
        if not settings.auto_enabled:
            return SyncOutcome(kind=OutcomeKind.DISABLED)

        try:
            order = settings.desired_order()
        except InvalidOrderError as exc:
            raise ConfigurationError.malformed_order(exc.reason) from exc
        if not order.active:
            return SyncOutcome(kind=OutcomeKind.EMPTY)

        client = await self._build_client(settings.user_id, settings.installation_id)
        try:
            async with self._deps.locks.hold(secret):
                log_info(
                    logger,
                    "Starting sync for %s (repositories=%d strategy=%s)",
                    settings.user_id,
                    len(order.active),
                    settings.strategy,
                )
                orchestrator = self._build_orchestrator(client)
                strategy = build_strategy(settings.strategy, client, clock=self._clock)
                return await orchestrator.run(
                    order,
                    strategy,
                    owner_login=settings.username,
                    user_id=settings.user_id,
                )
        finally:
            await client.aclose()

    async def _build_client(self, user_id: str, installation_id: int) -> GitHubGitClient:
        try:
            return await self._deps.client_factory.for_installation(installation_id)
        except GitHubAuthError as exc:
            log_warning(
                logger,
                "GitHub App authentication failed for %s: %s",
                user_id,
                exc.reason,
            )
            await self._record_auth_failure(user_id)
            raise ReauthorizationRequiredError() from exc

    async def _record_auth_failure(self, user_id: str) -> None:
        try:
            await self._deps.audit.record_failure(
                user_id,
                action=AuditAction.AUTO_SYNC,
                message="GitHub App authentication failed",
            )
        except SQLAlchemyError as exc:
            log_exception(logger, f"Failed to write audit record for {user_id}", exc)

    def _build_orchestrator(self, client: GitHubGitClient) -> SyncOrchestrator:
        return SyncOrchestrator(
            SyncOrchestratorDependencies(
                verifier=OrderVerifier(client),
                rewriter=HistoryRewriter(
                    client, window=self._config.cleanup_window, clock=self._clock
                ),
                audit=self._deps.audit,
                governor=self._governor,
            ),
            event_logger=self._event_logger,
        )
