"""
Cross-network overview report, materialized from the ledgers.
"""

import datetime
from typing import Optional

from sqlalchemy import Date, ForeignKey, String, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import AdNetwork, Base, RevenueMetricsMixin, TimestampMixin


class OverviewReport(Base, RevenueMetricsMixin, TimestampMixin):
    """
    One row per (date, network, domain, user).

    Rebuilt from the ledger on every sync. Never edit directly.
    """

    __tablename__ = "overview_reports"
    __table_args__ = (
        UniqueConstraint("date", "network", "domain", "user_id", name="uq_overview_key"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[datetime.date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    network: Mapped[AdNetwork] = mapped_column(
        SQLAlchemyEnum(
            AdNetwork,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    domain: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<OverviewReport(date={self.date}, network={self.network}, "
            f"domain='{self.domain}', user_id={self.user_id})>"
        )
