"""Persistence contract for users, stores and posts.

The lifecycle services only talk to this interface; how records are stored is
the implementation's business (see ``repositories.sql``).
"""

from abc import ABC, abstractmethod
from typing import ContextManager, List, Optional, Tuple

from models.post import Post
from models.store import Store
from models.user import User
from schemas.post import PostPatch
from schemas.store import StorePatch


class Repository(ABC):

    @abstractmethod
    def transaction(self) -> ContextManager[None]:
        """Group the writes made inside the block into one unit.

        Nothing is persisted until the outermost block exits cleanly; an
        exception discards every write made inside it. Blocks nest.
        """

    # ---------- Users ----------

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]:
        """Look up by normalized (trimmed, lowercased) email."""

    @abstractmethod
    def create_user(self, **fields) -> User:
        ...

    # ---------- Stores ----------

    @abstractmethod
    def get_store(self, store_id: str, for_update: bool = False) -> Optional[Store]:
        """Fetch a store; ``for_update`` re-reads it and locks the row where supported."""

    @abstractmethod
    def list_stores(self) -> List[Store]:
        ...

    @abstractmethod
    def create_store(self, **fields) -> Store:
        ...

    @abstractmethod
    def create_store_with_owner(self, store_fields: dict, user_fields: dict) -> Tuple[Store, User]:
        """Create a store and its owning user in one transaction."""

    @abstractmethod
    def update_store(self, store_id: str, patch: StorePatch) -> Optional[Store]:
        ...

    @abstractmethod
    def delete_store(self, store_id: str) -> bool:
        """Delete a store together with its posts and users."""

    # ---------- Posts ----------

    @abstractmethod
    def get_post(self, post_id: str) -> Optional[Post]:
        ...

    @abstractmethod
    def list_posts(self) -> List[Post]:
        ...

    @abstractmethod
    def list_posts_for_store(self, store_id: str) -> List[Post]:
        ...

    @abstractmethod
    def create_post(self, **fields) -> Post:
        ...

    @abstractmethod
    def update_post(self, post_id: str, patch: PostPatch) -> Optional[Post]:
        ...

    @abstractmethod
    def delete_post(self, post_id: str) -> bool:
        ...

    @abstractmethod
    def increment_view_count(self, post_id: str) -> Optional[Post]:
        """Atomically add one to the post's view counter."""
