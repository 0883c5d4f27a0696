"""API key and /api/v1 report schemas. Raw keys appear only in ApiKeyCreated."""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ApiKeyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    scopes: Optional[List[str]] = None
    expires_in_days: Optional[int] = Field(None, ge=1, le=3650)


class ApiKeyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    toggle_active: bool = False


class ApiKeyResponse(BaseModel):
    id: int
    name: str
    key_prefix: str
    scopes: List[str]
    rate_limit: int
    is_active: bool
    expires_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    request_count: int
    created_at: datetime


class ApiKeyCreated(ApiKeyResponse):
    """Shown once. The raw key cannot be recovered later."""

    raw_key: str


class ApiKeyListResponse(BaseModel):
    keys: List[ApiKeyResponse]
    available_scopes: Dict[str, str]


class ApiReportRow(BaseModel):
    """One overview row. revenue is the publisher's net share."""

    date: date
    network: str
    domain: Optional[str]
    revenue: Decimal
    impressions: int
    clicks: int
    ctr: Optional[Decimal]
    rpm: Optional[Decimal]
    currency: str


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class ApiReportFilters(BaseModel):
    start_date: date
    end_date: date
    domain: Optional[str] = None


class ApiReportResponse(BaseModel):
    success: bool = True
    data: List[ApiReportRow]
    pagination: Pagination
    filters: ApiReportFilters


class ApiPeriod(BaseModel):
    start_date: date
    end_date: date


class ApiSummaryTotals(BaseModel):
    revenue: Decimal
    impressions: int
    clicks: int
    record_count: int


class ApiSummaryGroup(BaseModel):
    """Totals for one day, domain or network; the other keys are None."""

    date: Optional[date] = None
    domain: Optional[str] = None
    network: Optional[str] = None
    revenue: Decimal
    impressions: int
    clicks: int


class ApiSummaryResponse(BaseModel):
    success: bool = True
    group_by: Literal["none", "day", "domain", "network"] = "none"
    summary: Optional[ApiSummaryTotals] = None
    data: Optional[List[ApiSummaryGroup]] = None
    period: ApiPeriod
