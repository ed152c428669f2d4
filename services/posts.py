import logging
from datetime import datetime
from typing import List, Optional

from core.errors import ForbiddenException, NotFoundException, ValidationException
from core.locks import store_locks
from models.post import Post
from repositories.base import Repository
from schemas.post import PostCreate, PostOut, PostPatch, PostUpdate
from services.access import can_create_post, can_view_post
from services.quota import can_add_post
from services.ranking import to_post_view
from services.view_dedup import ViewDeduplicator

logger = logging.getLogger(__name__)


def _reconcile_categories(category: Optional[str], categories: Optional[List[str]]):
    """The first category is the canonical one; both fields always agree."""
    names = [name.strip() for name in (categories or []) if name and name.strip()]
    if category and category.strip():
        primary = category.strip()
        if primary not in names:
            names.insert(0, primary)
    else:
        primary = names[0] if names else None
    return primary, names


def _check_window(starts_at: Optional[datetime], ends_at: Optional[datetime]) -> None:
    if starts_at and ends_at and ends_at < starts_at:
        raise ValidationException("End date must be after start date")


def build_post_fields(data: PostCreate, store_id: str, now: datetime) -> dict:
    category, categories = _reconcile_categories(data.category, data.categories)
    if not category:
        raise ValidationException("At least one category is required")
    _check_window(data.starts_at, data.ends_at)

    return {
        "store_id": store_id,
        "title": data.title.strip(),
        "description": data.description,
        "category": category,
        "categories": categories,
        "price_original": data.price_original,
        "price_sale": data.price_sale,
        "images": [{"url": image.url, "alt": image.alt or data.title} for image in data.images],
        "buy_url": data.buy_url,
        "starts_at": data.starts_at,
        "ends_at": data.ends_at,
        "view_count": 0,
        "created_at": now,
    }


def create_post(repo: Repository, store_id: str, data: PostCreate, now: datetime) -> Post:
    """Entitlement first, then quota, then insert, all under the store's lock.

    The whole sequence is one transaction, so the store row stays locked from
    the first read to the insert. A denial still commits what the entitlement
    check wrote (a started trial, the expired ratchet).
    """
    fields = build_post_fields(data, store_id, now)
    post = None
    with store_locks.hold(store_id), repo.transaction("create post"):
        store = repo.get_store(store_id, for_update=True)
        if store is None:
            raise NotFoundException("Store not found")

        decision = can_create_post(repo, store, now)
        if decision.allowed:
            decision = can_add_post(store, repo.list_posts_for_store(store_id), now)
        if decision.allowed:
            post = repo.create_post(**fields)

    if post is None:
        logger.warning("Post creation denied for store %s: %s %s", store_id, decision.reason, decision.details)
        decision.raise_for_denial()

    logger.info("Store %s created post %s", store_id, post.id)
    return post


def _owned_post(repo: Repository, post_id: str, store_id: str) -> Post:
    post = repo.get_post(post_id)
    if not post:
        raise NotFoundException("Post not found")
    if post.store_id != store_id:
        raise ForbiddenException("You can only change your own posts", code="not_owner")
    return post


def update_post(repo: Repository, post_id: str, store_id: str, data: PostUpdate) -> Post:
    post = _owned_post(repo, post_id, store_id)
    changes = data.model_dump(exclude_unset=True)

    for field in ("title", "price_original", "price_sale"):
        if field in changes and changes[field] is None:
            raise ValidationException(f"{field} cannot be empty")

    if "category" in changes or "categories" in changes:
        category, categories = _reconcile_categories(
            changes.get("category", post.category),
            changes.get("categories", post.categories),
        )
        if not category:
            raise ValidationException("At least one category is required")
        changes["category"] = category
        changes["categories"] = categories
    if "images" in changes:
        title = changes.get("title") or post.title
        changes["images"] = [
            {"url": image["url"], "alt": image.get("alt") or title} for image in changes["images"] or []
        ]
    _check_window(changes.get("starts_at", post.starts_at), changes.get("ends_at", post.ends_at))

    return repo.update_post(post.id, PostPatch(**changes))


def delete_post(repo: Repository, post_id: str, store_id: Optional[str] = None) -> None:
    """Delete a post; without ``store_id`` (admin) ownership is not checked."""
    if store_id is None:
        if not repo.delete_post(post_id):
            raise NotFoundException("Post not found")
        logger.info("Admin deleted post %s", post_id)
        return
    post = _owned_post(repo, post_id, store_id)
    repo.delete_post(post.id)


def view_post(
    repo: Repository,
    dedup: ViewDeduplicator,
    post_id: str,
    viewer_ip: str,
    now: datetime,
) -> PostOut:
    post = repo.get_post(post_id)
    if not post:
        raise NotFoundException("Post not found")
    store = repo.get_store(post.store_id)
    # Hidden posts read as missing
    if not can_view_post(post, store).allowed:
        raise NotFoundException("Post not found")

    if dedup.record_view(viewer_ip, post.id, now):
        post = repo.increment_view_count(post.id) or post

    return to_post_view(post, store, now)
