from datetime import datetime

from fastapi import APIRouter, Depends

from core.clock import get_now
from core.tenancy import get_current_user
from models.user import User
from repositories.base import Repository
from repositories.sql import get_repository
from schemas.auth import AuthResponse, LoginRequest, MeResponse, RegisterStoreRequest
from schemas.store import StoreAccountOut
from schemas.users import UserOut
from security import jwt as jwt_utils
from services.stores import authenticate, register_store, store_for_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: User, store) -> AuthResponse:
    token = jwt_utils.create_access_token(user.id, user.role, user.store_id)
    return AuthResponse(
        user=UserOut.model_validate(user),
        store=StoreAccountOut.model_validate(store) if store else None,
        token=token,
    )


@router.post("/register-store", response_model=AuthResponse, status_code=201)
def register(
    data: RegisterStoreRequest,
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    store, user = register_store(repo, data, now)
    return _auth_response(user, store)


@router.post("/login", response_model=AuthResponse)
def login(
    data: LoginRequest,
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    user = authenticate(repo, data.email, data.password)
    return _auth_response(user, store_for_user(repo, user, now))


@router.get("/me", response_model=MeResponse)
def me(
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    store = store_for_user(repo, current_user, now)
    return MeResponse(
        user=UserOut.model_validate(current_user),
        store=StoreAccountOut.model_validate(store) if store else None,
    )
