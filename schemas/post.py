from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from schemas.base import CamelModel, to_naive_utc
from schemas.store import StoreSummary


class Image(CamelModel):
    url: str = Field(min_length=1, max_length=500)
    alt: Optional[str] = None


class PostCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    categories: List[str] = []
    price_original: float = Field(ge=0)
    price_sale: float = Field(ge=0)
    images: List[Image] = []
    buy_url: Optional[str] = Field(None, max_length=500)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _as_utc(cls, v):
        return to_naive_utc(v)


class PostUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    categories: Optional[List[str]] = None
    price_original: Optional[float] = Field(None, ge=0)
    price_sale: Optional[float] = Field(None, ge=0)
    images: Optional[List[Image]] = None
    buy_url: Optional[str] = Field(None, max_length=500)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _as_utc(cls, v):
        return to_naive_utc(v)


class PostPatch(CamelModel):
    """Explicit partial update of a post; unset fields are left untouched."""

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    categories: Optional[List[str]] = None
    price_original: Optional[float] = None
    price_sale: Optional[float] = None
    images: Optional[List[dict]] = None
    buy_url: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None


class PostOut(CamelModel):
    id: str
    store_id: str
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    categories: List[str] = []
    price_original: float
    price_sale: float
    discount: int
    images: List[Image] = []
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    buy_url: Optional[str] = None
    view_count: int = 0
    is_active: bool
    created_at: Optional[datetime] = None
    store: Optional[StoreSummary] = None
