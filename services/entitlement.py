"""Trial and billing state of a store.

Everything here is a pure function of a store record and a timestamp: no
database access, no clock reads. Callers that need a trial to exist must start
it first (``services.access.ensure_trial_started``).

Rules:
- billing ``active`` is never expired, whatever ``trial_ends_at`` says;
- a store with no ``trial_ends_at`` has not started its trial and is not
  expired;
- a started trial is expired once ``now`` passes its end.

Expiry looks at the trial date only. A stored ``expired`` billing status
shows up as the status but does not change ``is_expired``.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from core.config import settings
from models.store import BILLING_ACTIVE, BILLING_EXPIRED, BILLING_TRIAL, Store

SECONDS_PER_DAY = 24 * 60 * 60

ACTION_ACTIVATE_TRIAL = "activate_trial"
ACTION_ACTIVATE_SUBSCRIPTION = "activate_subscription"
ACTION_UPGRADE = "upgrade"


@dataclass(frozen=True)
class Entitlement:
    status: str
    trial_ends_at: Optional[datetime]
    days_left: Optional[int]
    is_expired: bool


def trial_length() -> timedelta:
    return timedelta(days=settings.TRIAL_DAYS)


def trial_end_from(now: datetime) -> datetime:
    return now + trial_length()


def days_left(trial_ends_at: Optional[datetime], now: datetime) -> Optional[int]:
    if trial_ends_at is None:
        return None
    return math.ceil((trial_ends_at - now).total_seconds() / SECONDS_PER_DAY)


def is_trial_expired(store: Store, now: datetime) -> bool:
    if store.billing_status == BILLING_ACTIVE:
        return False
    if store.trial_ends_at is None:
        return False
    return now > store.trial_ends_at


def evaluate_entitlement(store: Store, now: datetime) -> Entitlement:
    expired = is_trial_expired(store, now)
    if store.billing_status == BILLING_ACTIVE:
        status = BILLING_ACTIVE
    elif expired or store.billing_status == BILLING_EXPIRED:
        status = BILLING_EXPIRED
    else:
        status = BILLING_TRIAL
    return Entitlement(
        status=status,
        trial_ends_at=store.trial_ends_at,
        days_left=days_left(store.trial_ends_at, now),
        is_expired=expired,
    )


def activation_action(before: Entitlement) -> str:
    """Label for a plan activation, decided by what was true before it."""
    if before.status == BILLING_ACTIVE:
        return ACTION_UPGRADE
    if before.is_expired:
        return ACTION_ACTIVATE_SUBSCRIPTION
    if before.trial_ends_at is None:
        return ACTION_ACTIVATE_TRIAL
    return ACTION_UPGRADE
