import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from core.errors import ForbiddenException
from models.post import Post
from models.store import BILLING_EXPIRED, BILLING_TRIAL, Store
from repositories.base import Repository
from schemas.store import StorePatch
from services.entitlement import evaluate_entitlement, trial_end_from

logger = logging.getLogger(__name__)

REASON_BANNED = "banned"
REASON_TRIAL_EXPIRED = "trial_expired"
REASON_HIDDEN = "hidden"

BANNED_MESSAGE = "This store has been suspended. Contact support to restore access."
TRIAL_EXPIRED_MESSAGE = "Your free trial has ended. Contact us to activate a subscription."


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    details: dict = field(default_factory=dict)

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str, message: str, **details) -> "Decision":
        return cls(allowed=False, reason=reason, message=message, details=details)

    def raise_for_denial(self) -> None:
        if not self.allowed:
            raise ForbiddenException(self.message, code=self.reason, details=self.details or None)


def ensure_trial_started(repo: Repository, store: Store, now: datetime) -> Store:
    """Start the trial on first authenticated access; a no-op once it exists."""
    if store.trial_ends_at is not None or store.billing_status == BILLING_EXPIRED:
        return store
    patch = StorePatch(
        trial_ends_at=trial_end_from(now),
        billing_status=store.billing_status or BILLING_TRIAL,
    )
    updated = repo.update_store(store.id, patch)
    if updated is None:
        return store
    logger.info("Trial started for store %s, ends %s", store.id, updated.trial_ends_at.isoformat())
    return updated


def can_create_post(repo: Repository, store: Store, now: datetime) -> Decision:
    """Entitlement gate for new posts. Runs before the quota check.

    Side effects: starts a missing trial, and moves a lapsed trial to
    ``expired`` (one way; only an explicit billing change brings it back).
    """
    if store.is_banned:
        return Decision.deny(REASON_BANNED, BANNED_MESSAGE)

    store = ensure_trial_started(repo, store, now)

    entitlement = evaluate_entitlement(store, now)
    if entitlement.is_expired:
        if store.billing_status != BILLING_EXPIRED:
            repo.update_store(store.id, StorePatch(billing_status=BILLING_EXPIRED))
            logger.info("Store %s trial lapsed; billing marked expired", store.id)
        return Decision.deny(REASON_TRIAL_EXPIRED, TRIAL_EXPIRED_MESSAGE)

    return Decision.allow()


def can_view_post(post: Post, store: Optional[Store]) -> Decision:
    """Banned stores' posts are hidden everywhere, whatever their billing."""
    if store is None or store.is_banned:
        return Decision.deny(REASON_HIDDEN, "Post not found")
    return Decision.allow()
