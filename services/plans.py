from typing import Optional

from models.store import DEFAULT_PLAN, PLANS

# Maximum number of active posts per plan
PLAN_POST_LIMITS = {
    "basic": 3,
    "pro": 10,
    "premium": 20,
}

# Listing rank; higher sorts first
PLAN_RANKS = {
    "premium": 3,
    "pro": 2,
    "basic": 1,
}


def is_valid_plan(plan: Optional[str]) -> bool:
    return plan in PLANS


def normalize_plan(plan: Optional[str]) -> str:
    """Unknown or missing plans are treated as basic."""
    return plan if plan in PLANS else DEFAULT_PLAN


def post_limit(plan: Optional[str]) -> int:
    return PLAN_POST_LIMITS[normalize_plan(plan)]


def plan_rank(plan: Optional[str]) -> int:
    return PLAN_RANKS[normalize_plan(plan)]
