import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import PersistenceError
from models.post import Post
from models.store import Store
from models.user import User
from repositories.base import Repository
from schemas.post import PostPatch
from schemas.store import StorePatch

logger = logging.getLogger(__name__)


class SqlRepository(Repository):
    """Repository on a SQLAlchemy session.

    A mutating call commits on its own, unless it runs inside ``transaction()``:
    then it only flushes, and the outermost block commits. Row locks taken by
    ``get_store(for_update=True)`` are held until that commit.
    """

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

    @contextmanager
    def transaction(self, action: str = "save changes") -> Iterator[None]:
        outermost = self._depth == 0
        self._depth += 1
        try:
            yield
            if outermost:
                self.db.commit()
            else:
                self.db.flush()
        except SQLAlchemyError as exc:
            if outermost:
                self.db.rollback()
            logger.exception("Database write failed: %s", action)
            raise PersistenceError(f"Could not {action}") from exc
        except Exception:
            if outermost:
                self.db.rollback()
            raise
        finally:
            self._depth -= 1

    def _writing(self, action: str):
        return self.transaction(action)

    # ---------- Users ----------

    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == str(user_id)).one_or_none()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).one_or_none()

    def create_user(self, **fields) -> User:
        user = User(**fields)
        with self._writing("create user"):
            self.db.add(user)
        self.db.refresh(user)
        return user

    # ---------- Stores ----------

    def get_store(self, store_id: str, for_update: bool = False) -> Optional[Store]:
        query = self.db.query(Store).filter(Store.id == str(store_id))
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.one_or_none()

    def list_stores(self) -> List[Store]:
        return self.db.query(Store).order_by(Store.created_at.desc()).all()

    def create_store(self, **fields) -> Store:
        store = Store(**fields)
        with self._writing("create store"):
            self.db.add(store)
        self.db.refresh(store)
        return store

    def create_store_with_owner(self, store_fields: dict, user_fields: dict) -> Tuple[Store, User]:
        store = Store(**store_fields)
        with self._writing("register store"):
            self.db.add(store)
            self.db.flush()
            user = User(store_id=store.id, **user_fields)
            self.db.add(user)
        self.db.refresh(store)
        self.db.refresh(user)
        return store, user

    def update_store(self, store_id: str, patch: StorePatch) -> Optional[Store]:
        store = self.get_store(store_id)
        if not store:
            return None
        with self._writing("update store"):
            for field, value in patch.model_dump(exclude_unset=True).items():
                setattr(store, field, value)
        self.db.refresh(store)
        return store

    def delete_store(self, store_id: str) -> bool:
        store = self.get_store(store_id)
        if not store:
            return False
        # Store.posts and Store.users cascade on delete
        with self._writing("delete store"):
            self.db.delete(store)
        return True

    # ---------- Posts ----------

    def get_post(self, post_id: str) -> Optional[Post]:
        return self.db.query(Post).filter(Post.id == str(post_id)).one_or_none()

    def list_posts(self) -> List[Post]:
        return self.db.query(Post).all()

    def list_posts_for_store(self, store_id: str) -> List[Post]:
        return (
            self.db.query(Post)
            .filter(Post.store_id == str(store_id))
            .order_by(Post.created_at.desc())
            .all()
        )

    def create_post(self, **fields) -> Post:
        post = Post(**fields)
        with self._writing("create post"):
            self.db.add(post)
        self.db.refresh(post)
        return post

    def update_post(self, post_id: str, patch: PostPatch) -> Optional[Post]:
        post = self.get_post(post_id)
        if not post:
            return None
        with self._writing("update post"):
            for field, value in patch.model_dump(exclude_unset=True).items():
                setattr(post, field, value)
        self.db.refresh(post)
        return post

    def delete_post(self, post_id: str) -> bool:
        post = self.get_post(post_id)
        if not post:
            return False
        with self._writing("delete post"):
            self.db.delete(post)
        return True

    def increment_view_count(self, post_id: str) -> Optional[Post]:
        with self._writing("count post view"):
            updated = (
                self.db.query(Post)
                .filter(Post.id == str(post_id))
                .update({Post.view_count: Post.view_count + 1}, synchronize_session=False)
            )
        if not updated:
            return None
        return self.db.query(Post).filter(Post.id == str(post_id)).populate_existing().one_or_none()


def get_repository(db: Session = Depends(get_db)) -> Repository:
    return SqlRepository(db)
