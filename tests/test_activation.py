from datetime import timedelta

import pytest

from conftest import START, make_store
from core.errors import NotFoundException, ValidationException
from services.activation import activate_plan


class TestActivatePlan:
    """Test cases for the plan activation workflow"""

    def test_upgrade_keeps_running_trial(self, repo, db_session_override):
        store = make_store(db_session_override)

        result = activate_plan(repo, store.id, "pro", START + timedelta(days=1))

        assert result.action == "upgrade"
        assert result.store.plan == "pro"
        assert result.store.trial_ends_at == START + timedelta(days=7)
        assert result.store.billing_status == "trial"
        assert result.entitlement.days_left == 6

    def test_first_activation_starts_trial(self, repo, db_session_override):
        store = make_store(db_session_override, trial_ends_at=None)

        result = activate_plan(repo, store.id, "premium", START)

        assert result.action == "activate_trial"
        assert result.store.trial_ends_at == START + timedelta(days=7)
        assert result.store.billing_status == "trial"
        assert result.entitlement.is_expired is False

    def test_expired_trial_stays_expired(self, repo, db_session_override):
        store = make_store(db_session_override, trial_ends_at=START - timedelta(days=2))

        result = activate_plan(repo, store.id, "pro", START)

        assert result.action == "activate_subscription"
        assert result.store.plan == "pro"
        assert result.store.trial_ends_at == START - timedelta(days=2)
        assert result.store.billing_status == "trial"
        assert result.entitlement.is_expired is True

    def test_expired_billing_without_trial_date_starts_trial(self, repo, db_session_override):
        store = make_store(db_session_override, billing_status="expired", trial_ends_at=None)

        result = activate_plan(repo, store.id, "basic", START)

        assert result.action == "activate_trial"
        assert result.store.trial_ends_at == START + timedelta(days=7)
        assert result.store.billing_status == "expired"
        assert result.entitlement.is_expired is False

    def test_active_billing_is_upgrade(self, repo, db_session_override):
        store = make_store(db_session_override, billing_status="active", trial_ends_at=START - timedelta(days=40))

        result = activate_plan(repo, store.id, "premium", START)

        assert result.action == "upgrade"
        assert result.store.billing_status == "active"
        assert result.entitlement.is_expired is False

    def test_invalid_plan(self, repo, db_session_override):
        store = make_store(db_session_override)

        with pytest.raises(ValidationException):
            activate_plan(repo, store.id, "gold", START)

        assert repo.get_store(store.id).plan == "basic"

    def test_missing_store(self, repo):
        with pytest.raises(NotFoundException):
            activate_plan(repo, "no-such-store", "pro", START)

    def test_response_shape(self, repo, db_session_override):
        store = make_store(db_session_override)

        data = activate_plan(repo, store.id, "pro", START).to_response().model_dump(by_alias=True)

        assert data["plan"] == "pro"
        assert data["billingStatus"] == "trial"
        assert data["action"] == "upgrade"
        assert data["daysLeft"] == 7
        assert data["isExpired"] is False
