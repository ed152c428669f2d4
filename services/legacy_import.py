"""
One-time import of the old flat-file JSON document ``{users, stores, posts}``.

The old document carried several generations of field names side by side
(``planType``/``plan``, ``billingActive``/``billingStatus``, ``price``/``oldPrice``,
a single ``imageUrl``). They are mapped onto the current schema here and
nowhere else; the rest of the code only knows the canonical fields.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.clock import utcnow
from models.store import BILLING_ACTIVE, BILLING_STATUSES, BILLING_TRIAL, Store
from models.user import ROLE_STORE
from repositories.base import Repository
from schemas.base import to_naive_utc
from services.plans import normalize_plan

logger = logging.getLogger(__name__)


def parse_datetime(value: Any) -> Optional[datetime]:
    """ISO-8601 string or epoch milliseconds; anything else is None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_naive_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _strings(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item and str(item).strip()]


def normalize_store(raw: Dict[str, Any]) -> Dict[str, Any]:
    plan = raw.get("plan")
    if plan is None:
        plan = raw.get("planType")

    billing = raw.get("billingStatus")
    if billing not in BILLING_STATUSES:
        billing = BILLING_ACTIVE if raw.get("billingActive") is True else BILLING_TRIAL

    fields = {
        "name": (raw.get("name") or "").strip() or "Unnamed store",
        "owner_email": (raw.get("ownerEmail") or raw.get("email") or "").strip().lower() or None,
        "address": raw.get("address"),
        "phone": raw.get("phone"),
        "website": raw.get("website"),
        "logo_url": raw.get("logoUrl") or raw.get("logo"),
        "categories": _strings(raw.get("categories")),
        "subcategories": _strings(raw.get("subcategories")),
        "plan": normalize_plan(plan),
        "trial_ends_at": parse_datetime(raw.get("trialEndsAt")),
        "billing_status": billing,
        "is_banned": bool(raw.get("isBanned", False)),
        "created_at": parse_datetime(raw.get("createdAt")),
    }
    if raw.get("id"):
        fields["id"] = str(raw["id"])
    return fields


def normalize_post(raw: Dict[str, Any]) -> Dict[str, Any]:
    title = (raw.get("title") or "").strip()

    price_sale = raw.get("priceSale")
    if price_sale is None:
        price_sale = raw.get("price")
    price_original = raw.get("priceOriginal")
    if price_original is None:
        price_original = raw.get("oldPrice")

    images = raw.get("images")
    if isinstance(images, list):
        images = [
            {"url": image.get("url"), "alt": image.get("alt") or title}
            if isinstance(image, dict) else {"url": str(image), "alt": title}
            for image in images
        ]
        images = [image for image in images if image["url"]]
    elif raw.get("imageUrl"):
        images = [{"url": raw["imageUrl"], "alt": title}]
    else:
        images = []

    categories = _strings(raw.get("categories"))
    category = (raw.get("category") or "").strip() or None
    if category and category not in categories:
        categories.insert(0, category)
    if not category and categories:
        category = categories[0]

    fields = {
        "store_id": str(raw.get("storeId") or ""),
        "title": title,
        "description": raw.get("description"),
        "category": category,
        "categories": categories,
        "price_original": _number(price_original),
        "price_sale": _number(price_sale),
        "images": images,
        "buy_url": raw.get("buyUrl"),
        "starts_at": parse_datetime(raw.get("startsAt")),
        "ends_at": parse_datetime(raw.get("endsAt")),
        "view_count": int(_number(raw.get("viewCount"))),
        "created_at": parse_datetime(raw.get("createdAt")),
    }
    if raw.get("id"):
        fields["id"] = str(raw["id"])
    return fields


def normalize_user(raw: Dict[str, Any]) -> Dict[str, Any]:
    fields = {
        "email": (raw.get("email") or "").strip().lower(),
        "password_hash": raw.get("passwordHash") or raw.get("password_hash") or "",
        "role": raw.get("role") or ROLE_STORE,
        "store_id": str(raw["storeId"]) if raw.get("storeId") else None,
        "created_at": parse_datetime(raw.get("createdAt")) or utcnow(),
    }
    if raw.get("id"):
        fields["id"] = str(raw["id"])
    return fields


def import_document(repo: Repository, document: Dict[str, Any]) -> Dict[str, int]:
    """Insert every record of the document. Returns counts per kind."""
    counts = {"stores": 0, "users": 0, "posts": 0, "skipped": 0}
    known_stores: Dict[str, Store] = {}

    for raw in document.get("stores") or []:
        store = repo.create_store(**normalize_store(raw))
        known_stores[store.id] = store
        counts["stores"] += 1

    seen_emails = set()
    for raw in document.get("users") or []:
        fields = normalize_user(raw)
        if not fields["email"] or fields["email"] in seen_emails:
            counts["skipped"] += 1
            continue
        if fields["store_id"] and fields["store_id"] not in known_stores:
            logger.warning("Skipping legacy user %s: unknown store %s", fields["email"], fields["store_id"])
            counts["skipped"] += 1
            continue
        repo.create_user(**fields)
        seen_emails.add(fields["email"])
        counts["users"] += 1

    for raw in document.get("posts") or []:
        fields = normalize_post(raw)
        if fields["store_id"] not in known_stores or not fields["title"]:
            counts["skipped"] += 1
            continue
        repo.create_post(**fields)
        counts["posts"] += 1

    return counts


def import_legacy_file(repo: Repository, path: str) -> Optional[Dict[str, int]]:
    """Import ``path`` once: only into an empty database."""
    if not path:
        return None
    file_path = Path(path)
    if not file_path.exists():
        logger.warning("Legacy database file %s not found; skipping import", path)
        return None
    if repo.list_stores():
        logger.info("Stores already present; legacy import skipped")
        return None

    with file_path.open("r", encoding="utf-8") as fh:
        document = json.load(fh)

    counts = import_document(repo, document)
    logger.info(
        "Imported legacy data: %d stores, %d users, %d posts (%d skipped)",
        counts["stores"], counts["users"], counts["posts"], counts["skipped"],
    )
    return counts
