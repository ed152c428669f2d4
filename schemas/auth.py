from typing import List, Optional

from pydantic import EmailStr, Field

from schemas.base import CamelModel
from schemas.store import StoreAccountOut
from schemas.users import UserOut


class RegisterStoreRequest(CamelModel):
    store_name: str = Field(min_length=1, max_length=150)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=500)
    categories: List[str] = []
    subcategories: List[str] = []


class LoginRequest(CamelModel):
    email: str
    password: str


class MeResponse(CamelModel):
    user: UserOut
    store: Optional[StoreAccountOut] = None


class AuthResponse(MeResponse):
    token: str
    token_type: str = "bearer"
