"""Domain assignment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from src.models.base import AdNetwork


class DomainAssignmentUpsert(BaseModel):
    """Assign (or re-assign) a domain on a network."""

    domain: str = Field(..., min_length=1, max_length=255)
    network: AdNetwork
    user_id: Optional[int] = None
    rev_share: Decimal = Field(default=Decimal("80"), ge=0, le=100)
    is_active: bool = True
    notes: Optional[str] = None
    account_id: Optional[int] = None


class DomainAssignmentResponse(BaseModel):
    id: int
    domain: str
    network: AdNetwork
    user_id: Optional[int]
    username: Optional[str] = None
    rev_share: Decimal
    is_active: bool
    notes: Optional[str]
    account_id: Optional[int]
    created_at: datetime

    model_config = {"from_attributes": True}


class PublisherDomainResponse(BaseModel):
    """Domain as listed in the publisher panel."""

    domain: str
    network: AdNetwork
    rev_share: Decimal

    model_config = {"from_attributes": True}


class DomainDiscoveryResponse(BaseModel):
    network: AdNetwork
    discovered: int
    created: int
    existing: int
