"""
NetworkAccount model for multi-account ad network credentials.
"""

from sqlalchemy import Boolean, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import AdNetwork, Base, TimestampMixin


class NetworkAccount(Base, TimestampMixin):
    """
    One set of API credentials for an ad network.

    SECURITY NOTE:
    - credentials holds a Fernet token of the JSON credential object
    - Decrypted credentials are never returned by the API
    """

    __tablename__ = "network_accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    network: Mapped[AdNetwork] = mapped_column(
        SQLAlchemyEnum(
            AdNetwork,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    credentials: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Encrypted JSON credentials",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="At most one default per network",
    )

    def __repr__(self) -> str:
        return f"<NetworkAccount(id={self.id}, network={self.network}, name='{self.name}')>"
