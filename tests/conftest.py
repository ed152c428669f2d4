import os
from datetime import datetime, timedelta

# Set testing environment before importing app
os.environ["TESTING"] = "True"
os.environ["DEBUG"] = "False"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from core.clock import get_now
from core.config import settings
from core.db import Base, get_db
from models.post import Post
from models.store import BILLING_TRIAL, Store
from models.user import ROLE_ADMIN, ROLE_STORE, User
from repositories.sql import SqlRepository
from security import jwt as jwt_utils
from security.password import hash_password
from services.view_dedup import InMemoryViewCache, ViewDeduplicator

START = datetime(2025, 3, 1, 12, 0, 0)


class FrozenClock:
    """Deterministic "now" for a test; advance it explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session", autouse=True)
def test_settings():
    settings.JWT_SECRET = "test-secret"
    settings.TESTING = True
    settings.TRIAL_DAYS = 7
    settings.VIEW_DEDUP_WINDOW_MS = 5000
    settings.ADMIN_EMAIL = ""
    settings.ADMIN_PASSWORD = ""
    settings.LEGACY_DATABASE_FILE = ""
    yield


@pytest.fixture()
def db_session_override():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()

    def _get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db
    try:
        yield db
    finally:
        db.close()
        app.dependency_overrides.clear()


@pytest.fixture()
def repo(db_session_override):
    return SqlRepository(db_session_override)


@pytest.fixture()
def clock():
    frozen = FrozenClock(START)
    app.dependency_overrides[get_now] = frozen
    yield frozen
    app.dependency_overrides.pop(get_now, None)


@pytest.fixture(autouse=True)
def view_deduplicator():
    dedup = ViewDeduplicator(InMemoryViewCache(timedelta(seconds=10)), window_ms=5000)
    previous = app.state.view_deduplicator
    app.state.view_deduplicator = dedup
    yield dedup
    app.state.view_deduplicator = previous


@pytest.fixture()
def client(db_session_override, clock):
    with TestClient(app) as c:
        yield c


def make_store(db, name="Test Store", plan="basic", **fields) -> Store:
    store = Store(
        name=name,
        owner_email=fields.pop("owner_email", f"{name.lower().replace(' ', '')}@example.com"),
        plan=plan,
        billing_status=fields.pop("billing_status", BILLING_TRIAL),
        trial_ends_at=fields.pop("trial_ends_at", START + timedelta(days=7)),
        created_at=fields.pop("created_at", START),
        **fields,
    )
    db.add(store)
    db.commit()
    db.refresh(store)
    return store


def make_post(db, store: Store, title="Half price shoes", **fields) -> Post:
    post = Post(
        store_id=store.id,
        title=title,
        category=fields.pop("category", "Shoes"),
        categories=fields.pop("categories", ["Shoes"]),
        price_original=fields.pop("price_original", 100.0),
        price_sale=fields.pop("price_sale", 50.0),
        images=fields.pop("images", [{"url": "https://img.example.com/1.jpg", "alt": title}]),
        created_at=fields.pop("created_at", START),
        view_count=fields.pop("view_count", 0),
        **fields,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


def make_user(db, email, role=ROLE_STORE, store: Store = None, password="testpass123") -> User:
    user = User(
        email=email,
        password_hash=hash_password(password),
        role=role,
        store_id=store.id if store else None,
        created_at=START,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def headers_for(user: User) -> dict:
    token = jwt_utils.create_access_token(user.id, user.role, user.store_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_store(db_session_override):
    """A basic-plan store inside its trial."""
    return make_store(db_session_override)


@pytest.fixture
def store_user(db_session_override, test_store):
    return make_user(db_session_override, "owner@example.com", store=test_store)


@pytest.fixture
def store_headers(store_user):
    return headers_for(store_user)


@pytest.fixture
def admin_user(db_session_override):
    return make_user(db_session_override, "admin@example.com", role=ROLE_ADMIN)


@pytest.fixture
def admin_headers(admin_user):
    return headers_for(admin_user)


def post_body(**overrides) -> dict:
    body = {
        "title": "Winter jackets",
        "description": "All jackets on sale",
        "category": "Clothing",
        "priceOriginal": 200,
        "priceSale": 150,
        "images": [{"url": "https://img.example.com/jacket.jpg"}],
    }
    body.update(overrides)
    return body
