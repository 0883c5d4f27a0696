"""
Raw revenue records produced by the network clients.

Records are not persisted directly: the reconciliation engine consumes
them right after a fetch. Each network has its own record type, tagged
with a ``network`` discriminator.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

from src.models.base import AdNetwork

DateLike = Union[date, datetime, str]


def to_utc_date(value: DateLike) -> date:
    """
    Normalize a record date to its calendar day in UTC.

    Accepts date objects, datetimes (naive ones are taken as UTC) and
    ISO 8601 strings such as "2025-01-01" or "2025-01-01T23:00:00Z".
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        raise ValueError("Record has no date")
    if len(text) == 10:
        return date.fromisoformat(text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_utc_date(datetime.fromisoformat(text))


@dataclass
class SedoRecord:
    """One Sedo statistics row. c1-c3 are Sedo sub-ids."""

    date: DateLike
    domain: Optional[str]
    revenue: Decimal
    impressions: int = 0
    clicks: int = 0
    c1: Optional[str] = None
    c2: Optional[str] = None
    c3: Optional[str] = None
    network: AdNetwork = field(default=AdNetwork.SEDO, init=False)

    def key_fields(self) -> Dict[str, Optional[str]]:
        return {"c1": self.c1, "c2": self.c2, "c3": self.c3}

    def extra_fields(self) -> Dict[str, Optional[str]]:
        return {}


@dataclass
class YandexRecord:
    """One Yandex Partner statistics row, broken down by ad tag."""

    date: DateLike
    domain: Optional[str]
    revenue: Decimal
    impressions: int = 0
    clicks: int = 0
    tag_id: Optional[str] = None
    tag_name: Optional[str] = None
    network: AdNetwork = field(default=AdNetwork.YANDEX, init=False)

    def key_fields(self) -> Dict[str, Optional[str]]:
        return {"tag_id": self.tag_id}

    def extra_fields(self) -> Dict[str, Optional[str]]:
        return {"tag_name": self.tag_name}


RawRevenueRecord = Union[SedoRecord, YandexRecord]


@dataclass
class FetchResult:
    """Outcome of a revenue fetch. ``error`` is set when success is False."""

    success: bool
    records: List[RawRevenueRecord] = field(default_factory=list)
    error: Optional[str] = None
    date_range: Optional[Tuple[date, date]] = None

    @classmethod
    def failed(cls, error: str) -> "FetchResult":
        return cls(success=False, error=error)

    @classmethod
    def from_records(cls, records: List[RawRevenueRecord]) -> "FetchResult":
        records = sorted(records, key=lambda r: to_utc_date(r.date))
        date_range = None
        if records:
            date_range = (to_utc_date(records[0].date), to_utc_date(records[-1].date))
        return cls(success=True, records=records, date_range=date_range)

    @property
    def total_revenue(self) -> Decimal:
        return sum((r.revenue for r in self.records), Decimal("0"))


@dataclass
class DomainStat:
    """Domain summary row used for domain discovery."""

    domain: str
    revenue: Decimal = Decimal("0")
    impressions: int = 0
    clicks: int = 0


@dataclass
class DomainListResult:
    success: bool
    domains: List[DomainStat] = field(default_factory=list)
    error: Optional[str] = None
