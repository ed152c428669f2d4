from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query

from core.clock import get_now
from core.tenancy import get_current_store
from models.store import Store
from repositories.base import Repository
from repositories.sql import get_repository
from schemas.post import PostOut
from schemas.store import (
    ActivatePlanRequest,
    ActivatePlanResponse,
    BillingView,
    StoreAccountOut,
    StoreOut,
    StoreUpdate,
)
from services.activation import activate_plan
from services.ranking import list_store_posts
from services.stores import billing_view, get_public_store, update_profile

router = APIRouter(prefix="/stores", tags=["stores"])


@router.get("", response_model=List[StoreOut])
def list_stores(repo: Repository = Depends(get_repository)):
    return [store for store in repo.list_stores() if not store.is_banned]


@router.get("/me", response_model=StoreAccountOut)
def get_my_store(store: Store = Depends(get_current_store)):
    return store


@router.patch("/me", response_model=StoreAccountOut)
def update_my_store(
    data: StoreUpdate,
    store: Store = Depends(get_current_store),
    repo: Repository = Depends(get_repository),
):
    return update_profile(repo, store.id, data)


@router.get("/me/billing", response_model=BillingView)
def get_my_billing(
    store: Store = Depends(get_current_store),
    now: datetime = Depends(get_now),
):
    return billing_view(store, now)


@router.post("/activate-plan", response_model=ActivatePlanResponse)
def activate(
    data: ActivatePlanRequest,
    store: Store = Depends(get_current_store),
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    return activate_plan(repo, store.id, data.plan, now).to_response()


@router.get("/{store_id}", response_model=StoreOut)
def get_store(store_id: str, repo: Repository = Depends(get_repository)):
    return get_public_store(repo, store_id)


@router.get("/{store_id}/posts", response_model=List[PostOut])
def get_store_posts(
    store_id: str,
    active_only: bool = Query(False, alias="activeOnly"),
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    store = get_public_store(repo, store_id)
    return list_store_posts(store, repo.list_posts_for_store(store.id), now, active_only=active_only)
