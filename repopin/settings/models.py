"""Read views of stored settings."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from repopin.common.slug import is_valid_repo_slug
from repopin.settings.errors import InvalidOrderError
from repopin.sync.constants import MAX_ORDER_LENGTH
from repopin.sync.models import CommitStrategyKind, DesiredOrder

if typ.TYPE_CHECKING:
    import datetime as dt


def validate_order(value: object) -> tuple[str, ...]:
    """Return ``value`` as a tuple of slugs or raise ``InvalidOrderError``.

    Examples
    --------
    >>> validate_order(["octo/reef"])
    ('octo/reef',)

    """
    if not isinstance(value, list | tuple):
        raise InvalidOrderError.not_a_list(value)
    if len(value) > MAX_ORDER_LENGTH:
        raise InvalidOrderError.too_long(len(value), MAX_ORDER_LENGTH)
    for slug in value:
        if not isinstance(slug, str) or not is_valid_repo_slug(slug):
            raise InvalidOrderError.invalid_slug(slug)
    return tuple(value)


@dc.dataclass(frozen=True, slots=True)
class SyncSettingsInfo:
    """Snapshot of one user's sync settings.

    ``raw_order`` is kept as stored so that a malformed value surfaces when
    a run tries to use it rather than when settings are read.
    """

    user_id: str
    username: str
    installation_id: int | None
    raw_order: object
    top_n: int
    strategy: CommitStrategyKind
    auto_enabled: bool
    sync_secret: str | None

    def desired_order(self) -> DesiredOrder:
        """Return the validated desired order.

        Raises
        ------
        InvalidOrderError
            If the stored order is not a list of valid slugs.

        """
        return DesiredOrder.from_slugs(validate_order(self.raw_order), self.top_n)


@dc.dataclass(frozen=True, slots=True)
class OrderSnapshotInfo:
    """One entry of a user's order history."""

    id: int
    desired_order: tuple[str, ...]
    top_n: int
    change_type: str
    created_at: dt.datetime
