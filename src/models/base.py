"""
Base model with common fields and mixins.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Integer, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class AdNetwork(str, Enum):
    """Ad networks revenue is pulled from."""
    SEDO = "sedo"
    YANDEX = "yandex"


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )


class RevenueMetricsMixin:
    """
    Revenue columns shared by ledger and overview rows.

    ctr and rpm are derived from the other columns on every write.
    """

    gross_revenue: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    net_revenue: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    impressions: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    clicks: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    ctr: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(8, 2),
        nullable=True,
        comment="clicks / impressions * 100",
    )
    rpm: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        comment="gross_revenue / impressions * 1000",
    )
