from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Response, status

from core.clock import get_now
from core.errors import NotFoundException
from core.tenancy import require_admin
from repositories.base import Repository
from repositories.sql import get_repository
from schemas.store import AdminStoreOut, BanRequest, BillingStatusRequest, ExtendTrialRequest
from services import posts as post_service
from services import stores as store_service

# Every route here requires an admin token
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/stores", response_model=List[AdminStoreOut])
def list_stores(repo: Repository = Depends(get_repository), now: datetime = Depends(get_now)):
    return store_service.list_admin_views(repo, now)


@router.get("/stores/{store_id}", response_model=AdminStoreOut)
def get_store(store_id: str, repo: Repository = Depends(get_repository), now: datetime = Depends(get_now)):
    store = repo.get_store(store_id)
    if not store:
        raise NotFoundException("Store not found")
    return store_service.admin_view(repo, store, now)


@router.post("/stores/{store_id}/ban", response_model=AdminStoreOut)
def ban_store(
    store_id: str,
    data: BanRequest,
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    store = store_service.set_ban(repo, store_id, data.is_banned)
    return store_service.admin_view(repo, store, now)


@router.post("/stores/{store_id}/billing", response_model=AdminStoreOut)
def confirm_billing(
    store_id: str,
    data: BillingStatusRequest,
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    store = store_service.confirm_billing(repo, store_id, data.billing_status)
    return store_service.admin_view(repo, store, now)


@router.post("/stores/{store_id}/extend-trial", response_model=AdminStoreOut)
def extend_trial(
    store_id: str,
    data: ExtendTrialRequest,
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    store = store_service.extend_trial(repo, store_id, data.days, now)
    return store_service.admin_view(repo, store, now)


@router.delete("/stores/{store_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_store(store_id: str, repo: Repository = Depends(get_repository)):
    store_service.delete_store(repo, store_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(post_id: str, repo: Repository = Depends(get_repository)):
    post_service.delete_post(repo, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
