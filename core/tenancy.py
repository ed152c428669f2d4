from datetime import datetime
from typing import Optional

import jwt
from fastapi import Depends, Header

from core.clock import get_now
from core.errors import ForbiddenException, NotFoundException, UnauthorizedException
from models.store import Store
from models.user import ROLE_ADMIN, ROLE_STORE, User
from repositories.base import Repository
from repositories.sql import get_repository
from security import jwt as jwt_utils
from services.stores import store_for_user


def get_current_user(
    repo: Repository = Depends(get_repository),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> User:
    """FastAPI dependency that returns the user behind the bearer token."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise UnauthorizedException("Not authenticated")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt_utils.decode_access(token)
    except jwt.InvalidTokenError:
        raise UnauthorizedException("Invalid token")
    user = repo.get_user(payload.get("sub"))
    if not user:
        raise UnauthorizedException("User not found")
    return user


def require_role(role: str):
    """Dependency factory: the current user, if it has ``role``."""
    def _check_role(user: User = Depends(get_current_user)) -> User:
        if user.role != role:
            raise ForbiddenException(f"Requires {role} role")
        return user
    return _check_role


require_store_user = require_role(ROLE_STORE)
require_admin = require_role(ROLE_ADMIN)


def get_current_store(
    user: User = Depends(require_store_user),
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
) -> Store:
    """The caller's own store, with its trial started on first access."""
    store = store_for_user(repo, user, now)
    if not store:
        raise NotFoundException("Store not found")
    return store
