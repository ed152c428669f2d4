from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from schemas.base import CamelModel


class StoreSummary(CamelModel):
    """Store fields denormalized into every public post."""

    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    plan: str
    billing_status: str
    created_at: Optional[datetime] = None
    is_banned: bool = False
    categories: List[str] = []


class StoreOut(CamelModel):
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    categories: List[str] = []
    subcategories: List[str] = []
    plan: str
    created_at: Optional[datetime] = None


class StoreAccountOut(StoreOut):
    """What the owning account sees about its own store."""

    trial_ends_at: Optional[datetime] = None
    billing_status: str
    is_banned: bool = False


class StoreUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = Field(None, max_length=500)
    categories: Optional[List[str]] = None
    subcategories: Optional[List[str]] = None


class StorePatch(CamelModel):
    """Explicit partial update of a store; unset fields are left untouched."""

    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    categories: Optional[List[str]] = None
    subcategories: Optional[List[str]] = None
    plan: Optional[str] = None
    trial_ends_at: Optional[datetime] = None
    billing_status: Optional[str] = None
    is_banned: Optional[bool] = None


class BillingView(CamelModel):
    plan: str
    trial_ends_at: Optional[datetime] = None
    billing_status: str
    trial_expired: bool
    days_left: Optional[int] = None
    created_at: Optional[datetime] = None


class ActivatePlanRequest(CamelModel):
    plan: Optional[str] = None
    # Older clients send planType
    plan_type: Optional[str] = None

    @model_validator(mode="after")
    def _merge_plan_type(self):
        if not self.plan and self.plan_type:
            self.plan = self.plan_type
        return self


class ActivatePlanResponse(StoreAccountOut):
    days_left: Optional[int] = None
    is_expired: bool
    action: Literal["activate_trial", "activate_subscription", "upgrade"]


class BanRequest(CamelModel):
    is_banned: bool


class BillingStatusRequest(CamelModel):
    billing_status: Literal["active", "expired"]


class ExtendTrialRequest(CamelModel):
    days: int = Field(ge=1, le=365)


class AdminStoreOut(StoreAccountOut):
    owner_email: Optional[str] = None
    trial_expired: bool
    days_left: Optional[int] = None
    active_post_count: int
    post_limit: int
