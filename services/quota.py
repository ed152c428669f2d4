from datetime import datetime
from typing import Iterable

from models.post import Post
from models.store import Store
from services.access import Decision
from services.plans import normalize_plan, post_limit

REASON_QUOTA = "quota_exceeded"


def counts_against_quota(post: Post, now: datetime) -> bool:
    """Posts without an end date, or ending in the future, use up quota."""
    return post.ends_at is None or post.ends_at > now


def count_active_posts(posts: Iterable[Post], now: datetime) -> int:
    return sum(1 for post in posts if counts_against_quota(post, now))


def can_add_post(store: Store, existing_posts: Iterable[Post], now: datetime) -> Decision:
    plan = normalize_plan(store.plan)
    limit = post_limit(plan)
    active = count_active_posts(existing_posts, now)
    if active >= limit:
        return Decision.deny(
            REASON_QUOTA,
            f"The {plan} plan allows up to {limit} active posts. "
            f"Remove a post or upgrade your plan to add more.",
            plan=plan,
            limit=limit,
            active=active,
        )
    return Decision.allow()
