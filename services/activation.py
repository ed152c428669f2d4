import logging
from dataclasses import dataclass
from datetime import datetime

from core.errors import NotFoundException, ValidationException
from core.locks import store_locks
from models.store import BILLING_TRIAL, PLANS, Store
from repositories.base import Repository
from schemas.store import ActivatePlanResponse, StoreAccountOut, StorePatch
from services.entitlement import (
    Entitlement,
    activation_action,
    evaluate_entitlement,
    trial_end_from,
)
from services.plans import is_valid_plan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivationResult:
    store: Store
    entitlement: Entitlement
    action: str

    def to_response(self) -> ActivatePlanResponse:
        account = StoreAccountOut.model_validate(self.store)
        return ActivatePlanResponse(
            **account.model_dump(),
            days_left=self.entitlement.days_left,
            is_expired=self.entitlement.is_expired,
            action=self.action,
        )


def activate_plan(repo: Repository, store_id: str, requested_plan: str, now: datetime) -> ActivationResult:
    """Switch a store's plan.

    Starts the trial whenever it has no end date, whatever the billing status.
    A running trial is left as it is and a lapsed one stays lapsed: this call
    never sets billing to active or expired, which only the admin billing
    confirmation does.
    """
    if not is_valid_plan(requested_plan):
        raise ValidationException(f"Plan must be one of: {', '.join(PLANS)}")

    with store_locks.hold(store_id):
        store = repo.get_store(store_id, for_update=True)
        if store is None:
            raise NotFoundException("Store not found")

        previous_plan = store.plan
        action = activation_action(evaluate_entitlement(store, now))

        changes = {"plan": requested_plan}
        if store.trial_ends_at is None:
            changes["trial_ends_at"] = trial_end_from(now)
        if not store.billing_status:
            changes["billing_status"] = BILLING_TRIAL

        updated = repo.update_store(store.id, StorePatch(**changes))

    logger.info("Store %s plan %s -> %s (%s)", store_id, previous_plan, requested_plan, action)
    return ActivationResult(
        store=updated,
        entitlement=evaluate_entitlement(updated, now),
        action=action,
    )
