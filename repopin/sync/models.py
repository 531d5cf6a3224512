"""Value types shared by the sync engine.

Everything here is immutable except :class:`StepLog`, which accumulates
human-readable progress lines for the duration of one run.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

from repopin.github.models import CommitRecord, RepositoryReference


class CommitStrategyKind(enum.StrEnum):
    """Graph mutation used to bump a repository's update timestamp."""

    REVERT = "revert"
    BRANCH_MERGE = "branch"

    @classmethod
    def parse(cls, value: str | None) -> CommitStrategyKind:
        """Return the strategy for ``value``, defaulting to :attr:`REVERT`."""
        try:
            return cls(value) if value is not None else cls.REVERT
        except ValueError:
            return cls.REVERT


class RepositoryStatus(enum.StrEnum):
    """Outcome of one repository within a run."""

    SUCCESS = "success"
    ERROR = "error"


class RunStatus(enum.StrEnum):
    """Aggregate run status written to the audit log."""

    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


class OutcomeKind(enum.StrEnum):
    """What a trigger did."""

    SYNCED = "synced"
    SKIPPED = "skipped"
    DISABLED = "disabled"
    EMPTY = "empty"


class RewriteAction(enum.StrEnum):
    """Whether a real commit is reused or recreated during a rewrite."""

    KEEP = "keep"
    RECREATE = "recreate"


@dc.dataclass(frozen=True, slots=True)
class DesiredOrder:
    """Desired ordering of repositories, most prominent first.

    Attributes
    ----------
    repositories
        Every managed repository in desired order.
    top_n
        How many leading entries are kept on top. ``0`` or less means all.

    """

    repositories: tuple[RepositoryReference, ...]
    top_n: int

    @classmethod
    def from_slugs(cls, slugs: typ.Iterable[str], top_n: int) -> DesiredOrder:
        """Build an order from ``owner/name`` strings without validating them."""
        return cls(
            repositories=tuple(RepositoryReference.from_slug(slug) for slug in slugs),
            top_n=top_n,
        )

    @property
    def active(self) -> tuple[RepositoryReference, ...]:
        """Return the entries a run processes."""
        if self.top_n <= 0:
            return self.repositories
        return self.repositories[: self.top_n]

    @property
    def slugs(self) -> tuple[str, ...]:
        """Return every entry as an ``owner/name`` string."""
        return tuple(repo.slug for repo in self.repositories)


@dc.dataclass(frozen=True, slots=True)
class VerificationResult:
    """Comparison of the remote recency order with the desired order."""

    current_order: tuple[str, ...]
    desired_order: tuple[str, ...]
    already_ordered: bool


@dc.dataclass(frozen=True, slots=True)
class ParentLink:
    """One parent of a rewritten commit.

    ``remapped`` parents point at a commit that is itself recreated, so the
    executor substitutes the new object id.
    """

    sha: str
    remapped: bool = False


@dc.dataclass(frozen=True, slots=True)
class RewriteStep:
    """Planned handling of one real commit."""

    commit: CommitRecord
    action: RewriteAction
    parents: tuple[ParentLink, ...]


@dc.dataclass(frozen=True, slots=True)
class RewritePlan:
    """Pure description of a history rewrite.

    Attributes
    ----------
    steps
        Real commits, oldest first.
    removed_shas
        Marked commits dropped from the history.
    head_original_sha
        The newest real commit, whose resolved id becomes the branch head.

    """

    steps: tuple[RewriteStep, ...]
    removed_shas: tuple[str, ...]
    head_original_sha: str | None

    @property
    def removed_count(self) -> int:
        """Return how many marked commits the rewrite drops."""
        return len(self.removed_shas)

    @property
    def recreate_count(self) -> int:
        """Return how many commits must be recreated."""
        return sum(1 for step in self.steps if step.action is RewriteAction.RECREATE)


@dc.dataclass(frozen=True, slots=True)
class CleanupResult:
    """Outcome of a history rewrite for one repository."""

    removed_count: int
    new_head: str | None = None
    backup_ref: str | None = None


@dc.dataclass(frozen=True, slots=True)
class RepositorySyncResult:
    """Outcome of bumping and cleaning one repository."""

    repository: str
    status: RepositoryStatus
    error: str | None = None
    cleaned: bool = False

    @property
    def succeeded(self) -> bool:
        """Return whether the bump succeeded."""
        return self.status is RepositoryStatus.SUCCESS

    def as_payload(self) -> dict[str, object]:
        """Return a JSON-ready mapping."""
        payload: dict[str, object] = {
            "repo": self.repository,
            "status": str(self.status),
            "cleaned": self.cleaned,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dc.dataclass(frozen=True, slots=True)
class SyncRunSummary:
    """Aggregate of one run across all processed repositories."""

    results: tuple[RepositorySyncResult, ...]
    step_logs: tuple[str, ...] = ()

    @property
    def total(self) -> int:
        """Return how many repositories were processed."""
        return len(self.results)

    @property
    def successful(self) -> int:
        """Return how many repositories were bumped."""
        return sum(1 for result in self.results if result.succeeded)

    @property
    def failed(self) -> int:
        """Return how many repositories failed."""
        return self.total - self.successful

    @property
    def cleaned(self) -> int:
        """Return how many repositories had their history cleaned."""
        return sum(1 for result in self.results if result.cleaned)

    @property
    def status(self) -> RunStatus:
        """Return ``success`` when nothing failed, otherwise ``partial``."""
        return RunStatus.SUCCESS if self.failed == 0 else RunStatus.PARTIAL

    def counts(self) -> dict[str, int]:
        """Return the summary counters as a mapping."""
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "cleaned": self.cleaned,
        }


@dc.dataclass(frozen=True, slots=True)
class SyncOutcome:
    """Result returned by the trigger front door."""

    kind: OutcomeKind
    summary: SyncRunSummary | None = None
    verification: VerificationResult | None = None

    @classmethod
    def synced(cls, summary: SyncRunSummary) -> SyncOutcome:
        """Return an outcome for a completed run."""
        return cls(kind=OutcomeKind.SYNCED, summary=summary)

    @classmethod
    def skipped(cls, verification: VerificationResult) -> SyncOutcome:
        """Return an outcome for a run short-circuited by verification."""
        return cls(kind=OutcomeKind.SKIPPED, verification=verification)


class StepLog:
    """Append-only list of human-readable progress lines for one run."""

    def __init__(self) -> None:
        """Start with no lines."""
        self._lines: list[str] = []

    def add(self, line: str) -> None:
        """Append ``line``."""
        self._lines.append(line)

    @property
    def lines(self) -> tuple[str, ...]:
        """Return a snapshot of the recorded lines."""
        return tuple(self._lines)

    def __len__(self) -> int:
        """Return the number of recorded lines."""
        return len(self._lines)
