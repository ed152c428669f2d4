from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_now() -> datetime:
    """FastAPI dependency for the request's notion of "now". Tests override it."""
    return utcnow()
