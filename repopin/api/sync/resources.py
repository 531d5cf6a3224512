"""Resource for ``POST /sync/{secret}``.

The secret in the path is the only credential; the resource delegates every
check to :class:`~repopin.sync.service.SyncService` and renders its outcome.
Failures are rendered by the handlers in :mod:`repopin.api.errors`.

Usage
-----
Register the resource on the Falcon app::

    app.add_route("/sync/{secret}", SyncResource(sync_service))

"""

from __future__ import annotations

import typing as typ

import falcon

from repopin.sync.models import OutcomeKind

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from repopin.sync.models import SyncOutcome
    from repopin.sync.service import SyncService

__all__ = ["SyncResource", "serialize_outcome"]

_MESSAGES: dict[OutcomeKind, str] = {
    OutcomeKind.DISABLED: "Sync disabled",
    OutcomeKind.EMPTY: "No repos to sync",
}


def serialize_outcome(outcome: SyncOutcome) -> dict[str, typ.Any]:
    """Return the JSON body for a trigger outcome.

    Parameters
    ----------
    outcome
        Result returned by :meth:`SyncService.trigger`.

    Returns
    -------
    dict[str, Any]
        ``{"success", "synced", "failed", "results"}`` after a run,
        ``{"success", "skipped", "message", "currentOrder", "desiredOrder"}``
        when verification skipped it, otherwise ``{"message"}``.

    """
    if outcome.kind is OutcomeKind.SYNCED and outcome.summary is not None:
        summary = outcome.summary
        return {
            "success": True,
            "synced": summary.successful,
            "failed": summary.failed,
            "results": [result.as_payload() for result in summary.results],
        }
    if outcome.kind is OutcomeKind.SKIPPED and outcome.verification is not None:
        verification = outcome.verification
        return {
            "success": True,
            "skipped": True,
            "message": "Order already correct",
            "currentOrder": list(verification.current_order),
            "desiredOrder": list(verification.desired_order),
        }
    return {"message": _MESSAGES.get(outcome.kind, str(outcome.kind))}


class SyncResource:
    """Trigger a sync for the owner of a secret."""

    def __init__(self, sync_service: SyncService) -> None:
        """Configure the resource with the trigger service."""
        self._sync_service = sync_service

    async def on_post(self, _req: Request, resp: Response, *, secret: str) -> None:
        """Handle ``POST /sync/{secret}``."""
        outcome = await self._sync_service.trigger(secret)
        resp.media = serialize_outcome(outcome)
        resp.status = falcon.HTTP_200
