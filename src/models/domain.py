"""
DomainAssignment model: who owns a parked domain on a given network.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import AdNetwork, Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.network_account import NetworkAccount
    from src.models.user import User


class DomainAssignment(Base, TimestampMixin):
    """
    Ownership claim over a (domain, network) pair.

    The table is unique on (user_id, domain, network) only. Keeping a
    single active row per (domain, network) is done by the service layer
    (find by domain+network, then update or create).
    """

    __tablename__ = "domain_assignments"
    __table_args__ = (
        UniqueConstraint("user_id", "domain", "network", name="uq_domain_assignment_user_domain_network"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        index=True,
        comment="NULL when the domain was released",
    )
    domain: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Lowercased and trimmed",
    )
    network: Mapped[AdNetwork] = mapped_column(
        SQLAlchemyEnum(
            AdNetwork,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    rev_share: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("80"),
        comment="Publisher share of gross revenue, percent 0-100",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    account_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("network_accounts.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    user: Mapped[Optional["User"]] = relationship(
        "User",
        back_populates="domain_assignments",
    )
    account: Mapped[Optional["NetworkAccount"]] = relationship("NetworkAccount")

    def __repr__(self) -> str:
        return (
            f"<DomainAssignment(domain='{self.domain}', network={self.network}, "
            f"user_id={self.user_id}, rev_share={self.rev_share})>"
        )
