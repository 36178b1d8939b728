"""
Database models for the mirrored product catalog.
"""
from datetime import datetime, timezone
from typing import Any, Dict
from sqlalchemy import Boolean, String, Numeric, DateTime, Text, JSON, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class Product(Base):
    """
    One catalog item mirrored from a spreadsheet tab.

    The external id is the primary key, so a re-sync of the same row
    updates in place. Rows are soft-deleted through ``is_active``.
    """
    __tablename__ = "products"

    # External identifier, unique across all categories
    id: Mapped[str] = mapped_column(String(255), primary_key=True)

    # Sheet columns
    name: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url_1: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url_2: Mapped[str] = mapped_column(Text, nullable=False, default="")
    original_price: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=False, default=0
    )
    price: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=False, default=0
    )
    stock_status: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Grouping key (sheet tab name)
    category: Mapped[str] = mapped_column(String(255), nullable=False)

    # Sync bookkeeping
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sync_source: Mapped[str] = mapped_column(String(50), nullable=False, default="external_sheet")
    custom_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    last_synced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_products_category", "category"),
        Index("idx_products_is_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, category={self.category}, active={self.is_active})>"
