"""
Per-network revenue ledgers.
"""

import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, RevenueMetricsMixin, TimestampMixin


class LedgerStatus(str, Enum):
    """Whether the network still may revise the figures."""
    ESTIMATED = "Estimated"
    FINAL = "Final"


class LedgerEntryMixin(RevenueMetricsMixin, TimestampMixin):
    """
    Columns common to every network ledger.

    Rows are only written by the reconciliation engine. rev_share is the
    percent applied when net_revenue was computed and is never refreshed
    from the domain assignment afterwards.
    """

    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[datetime.date] = mapped_column(
        Date,
        nullable=False,
        index=True,
        comment="Calendar day, UTC",
    )
    domain: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="NULL for network-aggregate rows",
    )
    rev_share: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        comment="Snapshot of the revShare percent used for net_revenue",
    )
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=LedgerStatus.ESTIMATED.value,
    )
    account_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("network_accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )


class SedoLedgerEntry(Base, LedgerEntryMixin):
    """
    Sedo parking revenue, one row per (date, domain, c1, c2, c3, user).

    SECURITY NOTE:
    - gross_revenue is admin only, publishers are served net_revenue
    """

    __tablename__ = "sedo_ledger"
    __table_args__ = (
        UniqueConstraint("date", "domain", "c1", "c2", "c3", "user_id", name="uq_sedo_ledger_key"),
        Index("ix_sedo_ledger_date_domain", "date", "domain"),
    )

    c1: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    c2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    c3: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<SedoLedgerEntry(id={self.id}, date={self.date}, domain='{self.domain}', "
            f"user_id={self.user_id}, gross={self.gross_revenue})>"
        )


class YandexLedgerEntry(Base, LedgerEntryMixin):
    """Yandex Advertising Network revenue, one row per (date, domain, tag_id, user)."""

    __tablename__ = "yandex_ledger"
    __table_args__ = (
        UniqueConstraint("date", "domain", "tag_id", "user_id", name="uq_yandex_ledger_key"),
        Index("ix_yandex_ledger_date_domain", "date", "domain"),
    )

    tag_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    tag_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<YandexLedgerEntry(id={self.id}, date={self.date}, domain='{self.domain}', "
            f"tag_id='{self.tag_id}', user_id={self.user_id})>"
        )
