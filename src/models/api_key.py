"""
ApiKey model for programmatic report access.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.user import User


class ApiKey(Base, TimestampMixin):
    """
    Personal API key for the /api/v1 report endpoints.

    SECURITY NOTE:
    - Only the SHA-256 hex digest of the key is stored
    - The raw key is returned once, at creation
    """

    __tablename__ = "api_keys"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    key_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    key_prefix: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="First characters of the key, for display",
    )
    scopes: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )
    rate_limit: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=100,
        comment="Requests per hour",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    last_used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    request_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    user: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return f"<ApiKey(id={self.id}, user_id={self.user_id}, prefix='{self.key_prefix}')>"
