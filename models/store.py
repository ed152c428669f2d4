import uuid
from datetime import datetime
from sqlalchemy import String, Boolean, DateTime, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base


PLANS = ("basic", "pro", "premium")
DEFAULT_PLAN = "basic"

BILLING_TRIAL = "trial"
BILLING_ACTIVE = "active"
BILLING_EXPIRED = "expired"
BILLING_STATUSES = (BILLING_TRIAL, BILLING_ACTIVE, BILLING_EXPIRED)


def _new_id() -> str:
    return str(uuid.uuid4())


class Store(Base):
    __tablename__ = "stores"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(150), index=True)
    owner_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Contact & display info
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Up to 3 of each in the UI; not enforced here
    categories: Mapped[list] = mapped_column(JSON, default=list)
    subcategories: Mapped[list] = mapped_column(JSON, default=list)

    # Subscription
    plan: Mapped[str] = mapped_column(String(20), default=DEFAULT_PLAN)  # basic, pro, premium
    trial_ends_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    billing_status: Mapped[str] = mapped_column(String(20), default=BILLING_TRIAL)  # trial, active, expired

    # Moderation
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False)

    # Timestamps
    created_at: Mapped[datetime | None] = mapped_column(DateTime, default=datetime.utcnow, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    posts = relationship("Post", back_populates="store", cascade="all, delete-orphan")
    users = relationship("User", back_populates="store", cascade="all, delete-orphan")
