import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from core.config import settings
from core.errors import NotFoundException, UnauthorizedException, ValidationException
from core.locks import store_locks
from models.store import BILLING_ACTIVE, BILLING_EXPIRED, BILLING_TRIAL, DEFAULT_PLAN, Store
from models.user import ROLE_ADMIN, ROLE_STORE, User
from repositories.base import Repository
from schemas.auth import RegisterStoreRequest
from schemas.store import AdminStoreOut, BillingView, StoreAccountOut, StorePatch, StoreUpdate
from security.password import hash_password, verify_password
from services.access import ensure_trial_started
from services.entitlement import evaluate_entitlement, trial_end_from
from services.plans import post_limit
from services.quota import count_active_posts

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def register_store(repo: Repository, data: RegisterStoreRequest, now: datetime) -> Tuple[Store, User]:
    email = normalize_email(data.email)
    if repo.get_user_by_email(email):
        raise ValidationException("Email already registered")

    store_fields = {
        "name": data.store_name.strip(),
        "owner_email": email,
        "address": data.address,
        "phone": data.phone,
        "website": data.website,
        "categories": data.categories,
        "subcategories": data.subcategories,
        "plan": DEFAULT_PLAN,
        "billing_status": BILLING_TRIAL,
        "trial_ends_at": trial_end_from(now),
        "is_banned": False,
        "created_at": now,
    }
    user_fields = {
        "email": email,
        "password_hash": hash_password(data.password),
        "role": ROLE_STORE,
        "created_at": now,
    }
    store, user = repo.create_store_with_owner(store_fields, user_fields)
    logger.info("Registered store %s for %s", store.id, email)
    return store, user


def authenticate(repo: Repository, email: str, password: str) -> User:
    user = repo.get_user_by_email(normalize_email(email))
    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedException("Invalid email or password")
    return user


def store_for_user(repo: Repository, user: User, now: datetime) -> Optional[Store]:
    """The user's store with its trial started, or None for users without one."""
    if not user.store_id:
        return None
    with store_locks.hold(user.store_id):
        store = repo.get_store(user.store_id, for_update=True)
        if store is None:
            return None
        return ensure_trial_started(repo, store, now)


def get_public_store(repo: Repository, store_id: str) -> Store:
    store = repo.get_store(store_id)
    if not store or store.is_banned:
        raise NotFoundException("Store not found")
    return store


def update_profile(repo: Repository, store_id: str, data: StoreUpdate) -> Store:
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes:
        if not (changes["name"] or "").strip():
            raise ValidationException("Store name cannot be empty")
        changes["name"] = changes["name"].strip()
    for field in ("categories", "subcategories"):
        if field in changes and changes[field] is None:
            changes[field] = []
    store = repo.update_store(store_id, StorePatch(**changes))
    if store is None:
        raise NotFoundException("Store not found")
    return store


def _require_store(repo: Repository, store_id: str, for_update: bool = False) -> Store:
    store = repo.get_store(store_id, for_update=for_update)
    if not store:
        raise NotFoundException("Store not found")
    return store


def set_ban(repo: Repository, store_id: str, is_banned: bool) -> Store:
    _require_store(repo, store_id)
    store = repo.update_store(store_id, StorePatch(is_banned=is_banned))
    logger.info("Store %s %s", store_id, "banned" if is_banned else "unbanned")
    return store


def confirm_billing(repo: Repository, store_id: str, billing_status: str) -> Store:
    """Manual billing confirmation (or revocation) by an admin."""
    if billing_status not in (BILLING_ACTIVE, BILLING_EXPIRED):
        raise ValidationException("Billing status must be active or expired")
    with store_locks.hold(store_id):
        store = _require_store(repo, store_id, for_update=True)
        previous = store.billing_status
        store = repo.update_store(store_id, StorePatch(billing_status=billing_status))
    logger.info("Store %s billing %s -> %s by admin", store_id, previous, billing_status)
    return store


def extend_trial(repo: Repository, store_id: str, days: int, now: datetime) -> Store:
    """Push the trial end out by ``days`` from whichever is later, its end or now."""
    with store_locks.hold(store_id):
        store = _require_store(repo, store_id, for_update=True)
        base = max(store.trial_ends_at or now, now)
        changes = {"trial_ends_at": base + timedelta(days=days)}
        if store.billing_status == BILLING_EXPIRED:
            changes["billing_status"] = BILLING_TRIAL
        store = repo.update_store(store_id, StorePatch(**changes))
    logger.info("Store %s trial extended by %d days to %s", store_id, days, store.trial_ends_at.isoformat())
    return store


def delete_store(repo: Repository, store_id: str) -> None:
    with store_locks.hold(store_id):
        if not repo.delete_store(store_id):
            raise NotFoundException("Store not found")
    store_locks.discard(store_id)
    logger.info("Deleted store %s with its posts and users", store_id)


def billing_view(store: Store, now: datetime) -> BillingView:
    entitlement = evaluate_entitlement(store, now)
    return BillingView(
        plan=store.plan,
        trial_ends_at=store.trial_ends_at,
        billing_status=store.billing_status,
        trial_expired=entitlement.is_expired,
        days_left=entitlement.days_left,
        created_at=store.created_at,
    )


def admin_view(repo: Repository, store: Store, now: datetime) -> AdminStoreOut:
    entitlement = evaluate_entitlement(store, now)
    account = StoreAccountOut.model_validate(store)
    return AdminStoreOut(
        **account.model_dump(),
        owner_email=store.owner_email,
        trial_expired=entitlement.is_expired,
        days_left=entitlement.days_left,
        active_post_count=count_active_posts(repo.list_posts_for_store(store.id), now),
        post_limit=post_limit(store.plan),
    )


def list_admin_views(repo: Repository, now: datetime) -> List[AdminStoreOut]:
    return [admin_view(repo, store, now) for store in repo.list_stores()]


def ensure_admin_user(repo: Repository, now: datetime) -> Optional[User]:
    """Seed the bootstrap admin from settings if it does not exist yet."""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        return None
    email = normalize_email(settings.ADMIN_EMAIL)
    existing = repo.get_user_by_email(email)
    if existing:
        return existing
    user = repo.create_user(
        email=email,
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        role=ROLE_ADMIN,
        created_at=now,
    )
    logger.info("Seeded admin user %s", email)
    return user
