import pytest
from datetime import datetime
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from core.db import Base, build_engine
from models.post import Post
from models.store import Store
from models.user import User


@pytest.fixture
def db_session():
    """Create a test database session"""
    engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


class TestStore:
    """Test cases for Store model"""

    def test_store_default_values(self, db_session):
        """A new store starts on the basic plan, in trial, not banned"""
        store = Store(name="Corner Shop")
        db_session.add(store)
        db_session.commit()
        db_session.refresh(store)

        assert len(store.id) == 36
        assert store.plan == "basic"
        assert store.billing_status == "trial"
        assert store.is_banned is False
        assert store.trial_ends_at is None
        assert store.categories == []
        assert isinstance(store.created_at, datetime)

    def test_store_json_lists(self, db_session):
        """Categories round-trip through the JSON column"""
        store = Store(name="Shop", categories=["Food", "Drinks"], subcategories=["Pizza"])
        db_session.add(store)
        db_session.commit()
        db_session.expire_all()

        loaded = db_session.get(Store, store.id)
        assert loaded.categories == ["Food", "Drinks"]
        assert loaded.subcategories == ["Pizza"]

    def test_store_delete_cascades(self, db_session):
        """Deleting a store removes its posts and users"""
        store = Store(name="Shop")
        db_session.add(store)
        db_session.flush()
        db_session.add(Post(store_id=store.id, title="Deal", price_original=10, price_sale=5))
        db_session.add(User(email="o@example.com", password_hash="x", store_id=store.id))
        db_session.commit()

        db_session.delete(store)
        db_session.commit()

        assert db_session.query(Post).count() == 0
        assert db_session.query(User).count() == 0


class TestPost:
    """Test cases for Post model"""

    def test_post_defaults(self, db_session):
        store = Store(name="Shop")
        db_session.add(store)
        db_session.flush()
        post = Post(store_id=store.id, title="Deal", price_original=10, price_sale=5)
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)

        assert post.view_count == 0
        assert post.images == []
        assert post.categories == []
        assert post.starts_at is None
        assert post.ends_at is None
        assert post.store.name == "Shop"

    def test_store_posts_relationship(self, db_session):
        store = Store(name="Shop")
        store.posts.append(Post(title="A", price_original=2, price_sale=1))
        store.posts.append(Post(title="B", price_original=2, price_sale=1))
        db_session.add(store)
        db_session.commit()

        assert {p.title for p in store.posts} == {"A", "B"}
        assert all(p.store_id == store.id for p in store.posts)


class TestUser:
    """Test cases for User model"""

    def test_user_default_role(self, db_session):
        user = User(email="a@example.com", password_hash="x")
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)

        assert user.role == "store"
        assert user.store_id is None
        assert user.created_at is not None

    def test_user_email_uniqueness(self, db_session):
        db_session.add(User(email="same@example.com", password_hash="x"))
        db_session.commit()

        db_session.add(User(email="same@example.com", password_hash="y"))
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestEngine:
    """Test cases for engine construction"""

    def test_sqlite_enforces_foreign_keys(self, db_session):
        assert db_session.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_memory_database_is_shared_between_sessions(self):
        engine = build_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=engine)
        SessionLocal = sessionmaker(bind=engine)

        with SessionLocal() as first:
            first.add(Store(name="Shared"))
            first.commit()
        with SessionLocal() as second:
            assert second.query(Store).count() == 1
