"""Network account schemas. Credentials are write-only."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from src.models.base import AdNetwork


class NetworkAccountCreate(BaseModel):
    network: AdNetwork
    name: str = Field(..., min_length=1, max_length=100)
    credentials: Dict[str, str]
    is_default: bool = False
    is_active: bool = True


class NetworkAccountUpdate(BaseModel):
    """Omitted credential keys keep their stored values."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    credentials: Optional[Dict[str, str]] = None
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None


class NetworkAccountResponse(BaseModel):
    id: int
    network: AdNetwork
    name: str
    is_active: bool
    is_default: bool
    config: Dict[str, bool] = Field(default_factory=dict)
    created_at: datetime
