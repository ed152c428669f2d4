import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, ForeignKey, Integer, Float, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    store_id: Mapped[str] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # First category is the canonical one
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    categories: Mapped[list] = mapped_column(JSON, default=list)

    price_original: Mapped[float] = mapped_column(Float)
    price_sale: Mapped[float] = mapped_column(Float)

    # Ordered list of {"url": ..., "alt": ...}; the first one is displayed
    images: Mapped[list] = mapped_column(JSON, default=list)
    buy_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    starts_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    ends_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    view_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, default=datetime.utcnow, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    store = relationship("Store", back_populates="posts")
