"""Public post listing: filter, hide banned stores, rank, and shape the view model."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from models.post import Post
from models.store import Store
from schemas.post import PostOut
from schemas.store import StoreSummary
from services.plans import plan_rank

EPOCH = datetime(1970, 1, 1)


def calculate_discount(price_original: float, price_sale: float) -> int:
    """Percent off the original price, rounded half up and clamped to 0..100."""
    if not price_original or price_original <= 0:
        return 0
    ratio = (1 - Decimal(str(price_sale)) / Decimal(str(price_original))) * 100
    percent = int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(100, percent))


def is_post_active(post: Post, now: datetime) -> bool:
    """Display window: [starts_at, ends_at] when both are set, else ends_at in the future."""
    if post.ends_at is None:
        return True
    if post.starts_at is not None:
        return post.starts_at <= now <= post.ends_at
    return post.ends_at > now


def _images(post: Post) -> List[dict]:
    return [
        {"url": image.get("url"), "alt": image.get("alt") or post.title}
        for image in (post.images or [])
        if image.get("url")
    ]


def to_post_view(post: Post, store: Optional[Store], now: datetime) -> PostOut:
    return PostOut(
        id=post.id,
        store_id=post.store_id,
        title=post.title,
        description=post.description,
        category=post.category,
        categories=post.categories or ([post.category] if post.category else []),
        price_original=post.price_original,
        price_sale=post.price_sale,
        discount=calculate_discount(post.price_original, post.price_sale),
        images=_images(post),
        starts_at=post.starts_at,
        ends_at=post.ends_at,
        buy_url=post.buy_url,
        view_count=post.view_count or 0,
        is_active=is_post_active(post, now),
        created_at=post.created_at,
        store=StoreSummary.model_validate(store) if store is not None else None,
    )


def matches_query(post: Post, query: Optional[str]) -> bool:
    if not query:
        return True
    return query.lower() in (post.title or "").lower()


def matches_category(post: Post, category: Optional[str]) -> bool:
    if not category:
        return True
    wanted = category.lower()
    names = [post.category] + list(post.categories or [])
    return any(name and name.lower() == wanted for name in names)


def _rank_key(post: Post, stores: Dict[str, Store]):
    store = stores.get(post.store_id)
    return (plan_rank(store.plan if store else None), post.created_at or EPOCH)


def list_posts(
    posts: Iterable[Post],
    stores: Iterable[Store],
    query: Optional[str] = None,
    category: Optional[str] = None,
    *,
    now: datetime,
) -> List[PostOut]:
    by_id = {store.id: store for store in stores}

    visible = [
        post for post in posts
        if matches_query(post, query) and matches_category(post, category)
    ]
    # Posts of banned (or vanished) stores never reach the public listing
    visible = [
        post for post in visible
        if post.store_id in by_id and not by_id[post.store_id].is_banned
    ]
    visible.sort(key=lambda post: _rank_key(post, by_id), reverse=True)

    return [to_post_view(post, by_id[post.store_id], now) for post in visible]


def list_store_posts(store: Store, posts: Iterable[Post], now: datetime, active_only: bool = False) -> List[PostOut]:
    """One store's posts, newest first."""
    selected = [post for post in posts if not active_only or is_post_active(post, now)]
    selected.sort(key=lambda post: post.created_at or EPOCH, reverse=True)
    return [to_post_view(post, store, now) for post in selected]
