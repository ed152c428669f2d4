from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response, status

from core.clock import get_now
from core.tenancy import get_current_store
from models.store import Store
from repositories.base import Repository
from repositories.sql import get_repository
from schemas.post import PostCreate, PostOut, PostUpdate
from services import posts as post_service
from services.ranking import list_posts, to_post_view
from services.view_dedup import ViewDeduplicator, client_ip, get_view_deduplicator

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=List[PostOut])
def search_posts(
    q: Optional[str] = None,
    category: Optional[str] = None,
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    return list_posts(repo.list_posts(), repo.list_stores(), query=q, category=category, now=now)


@router.post("", response_model=PostOut, status_code=201)
def create_post(
    data: PostCreate,
    store: Store = Depends(get_current_store),
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    post = post_service.create_post(repo, store.id, data, now)
    return to_post_view(post, repo.get_store(store.id), now)


@router.get("/{post_id}", response_model=PostOut)
def get_post(
    post_id: str,
    request: Request,
    repo: Repository = Depends(get_repository),
    dedup: ViewDeduplicator = Depends(get_view_deduplicator),
    now: datetime = Depends(get_now),
):
    return post_service.view_post(repo, dedup, post_id, client_ip(request), now)


@router.put("/{post_id}", response_model=PostOut)
def update_post(
    post_id: str,
    data: PostUpdate,
    store: Store = Depends(get_current_store),
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    post = post_service.update_post(repo, post_id, store.id, data)
    return to_post_view(post, store, now)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    post_id: str,
    store: Store = Depends(get_current_store),
    repo: Repository = Depends(get_repository),
):
    post_service.delete_post(repo, post_id, store_id=store.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
