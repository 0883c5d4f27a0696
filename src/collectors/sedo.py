"""Sedo domain parking statistics client.

Sedo exposes an XML API authenticated with four credentials (partner ID,
sign key, username, password). Daily rows per domain need two calls: the
31-day domain summary (period=4) lists the domains, then the 31-day
daily report (period=1) is requested once per domain.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from xml.etree import ElementTree

import httpx

from src.collectors.base import NetworkClient, NetworkFetchError
from src.collectors.records import (
    DomainListResult,
    DomainStat,
    FetchResult,
    SedoRecord,
    to_utc_date,
)
from src.models.base import AdNetwork

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.sedo.com/api/v1"
STATISTICS_ENDPOINT = "DomainParkingFinalStatistics"

PERIOD_DAILY_31_DAYS = 1
PERIOD_DOMAIN_SUMMARY_31_DAYS = 4

INTEGER_FIELDS = {"uniques", "clicks", "views", "impressions", "visitors"}
DECIMAL_FIELDS = {"earnings", "revenue", "epc", "rpm", "ctr"}


def _coerce(field_name: str, raw: str) -> Any:
    if field_name in INTEGER_FIELDS:
        try:
            return int(raw)
        except ValueError:
            return 0
    if field_name in DECIMAL_FIELDS:
        try:
            return Decimal(raw)
        except InvalidOperation:
            return Decimal("0")
    return raw


def parse_sedo_xml(text: str) -> List[Dict[str, Any]]:
    """
    Parse a SEDOSTATS document into a list of item dicts.

    Raises:
        NetworkFetchError: malformed XML or a SEDOFAULT response
    """
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as e:
        raise NetworkFetchError(f"Malformed Sedo response: {e}") from e

    fault = root if root.tag == "SEDOFAULT" else root.find(".//SEDOFAULT")
    if fault is not None:
        code = (fault.findtext(".//faultcode") or "Unknown").strip()
        message = (fault.findtext(".//faultstring") or "Unknown error").strip()
        raise NetworkFetchError(f"{code}: {message}")

    items = []
    for item in root.iter("item"):
        row = {
            child.tag: _coerce(child.tag, (child.text or "").strip())
            for child in item
        }
        if row:
            items.append(row)
    return items


def _item_to_record(item: Dict[str, Any], domain: Optional[str] = None) -> SedoRecord:
    visitors = item.get("visitors") or item.get("uniques") or 0
    earnings = item.get("earnings") or item.get("revenue") or Decimal("0")
    row_date = item.get("date")
    return SedoRecord(
        date=to_utc_date(row_date) if row_date else datetime.now(timezone.utc).date(),
        domain=domain or item.get("domain") or None,
        revenue=earnings,
        impressions=visitors,
        clicks=item.get("clicks") or 0,
        c1=item.get("c1") or None,
        c2=item.get("c2") or None,
        c3=item.get("c3") or None,
    )


def _items_to_records(items: List[Dict[str, Any]], domain: Optional[str] = None) -> List[SedoRecord]:
    """
    Raises:
        NetworkFetchError: an item with an unparseable date
    """
    records = []
    for item in items:
        try:
            records.append(_item_to_record(item, domain=domain))
        except ValueError as e:
            raise NetworkFetchError(f"Malformed Sedo item {item!r:.200}: {e}") from e
    return records


class SedoClient(NetworkClient):
    """Client for the Sedo DomainParkingFinalStatistics API."""

    network = AdNetwork.SEDO
    timeout = 30.0
    required_credentials = ("partner_id", "sign_key", "username", "password")

    @property
    def api_url(self) -> str:
        return (self.credentials.get("api_url") or DEFAULT_API_URL).rstrip("/")

    async def _statistics(self, **params) -> List[Dict[str, Any]]:
        request_params = {
            "partnerid": self.credentials["partner_id"],
            "signkey": self.credentials["sign_key"],
            "username": self.credentials["username"],
            "password": self.credentials["password"],
            "output_method": "xml",
            "final": "false",
            "startfrom": 0,
            "results": 0,
        }
        request_params.update({k: v for k, v in params.items() if v is not None})

        logger.debug(f"Sedo request: period={params.get('period')} domain={params.get('domain')}")
        url = f"{self.api_url}/{STATISTICS_ENDPOINT}"
        try:
            response = await self.client.get(
                url,
                params=request_params,
                headers={"Accept": "application/xml, text/xml, */*"},
            )
        except httpx.HTTPError as e:
            logger.error(f"HTTP error fetching {url}: {e}")
            raise NetworkFetchError(str(e) or e.__class__.__name__) from e

        if response.status_code >= 400:
            # Sedo sends SEDOFAULT bodies with error statuses
            parse_sedo_xml(response.text)
            raise NetworkFetchError(f"HTTP {response.status_code}")

        return parse_sedo_xml(response.text)

    async def _fetch_domains(self) -> DomainListResult:
        items = await self._statistics(period=PERIOD_DOMAIN_SUMMARY_31_DAYS)

        stats: Dict[str, DomainStat] = {}
        for item in items:
            name = str(item.get("domain") or "").strip()
            if not name:
                continue
            stat = stats.setdefault(name, DomainStat(domain=name))
            stat.revenue += item.get("earnings") or item.get("revenue") or Decimal("0")
            stat.clicks += item.get("clicks") or 0
            stat.impressions += item.get("visitors") or item.get("uniques") or 0

        domains = sorted(stats.values(), key=lambda s: s.revenue, reverse=True)
        return DomainListResult(success=True, domains=domains)

    async def _fetch_domain_daily(self, domain: str) -> List[SedoRecord]:
        items = await self._statistics(period=PERIOD_DAILY_31_DAYS, domain=domain)
        # period=1 leaves the domain field empty
        return _items_to_records(items, domain=domain)

    async def _fetch_aggregate(self) -> List[SedoRecord]:
        items = await self._statistics(period=PERIOD_DAILY_31_DAYS)
        return _items_to_records(items)

    async def _fetch_revenue(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        domain: Optional[str],
    ) -> FetchResult:
        if domain:
            records = await self._fetch_domain_daily(domain)
        else:
            records = await self._fetch_all_domains_daily()

        if start_date or end_date:
            records = [
                r for r in records
                if (not start_date or to_utc_date(r.date) >= start_date)
                and (not end_date or to_utc_date(r.date) <= end_date)
            ]
        return FetchResult.from_records(records)

    async def _fetch_all_domains_daily(self) -> List[SedoRecord]:
        domains = await self.fetch_domains()
        if not domains.success or not domains.domains:
            logger.warning("No Sedo domains found, falling back to aggregate data")
            return await self._fetch_aggregate()

        logger.info(f"Found {len(domains.domains)} Sedo domains, fetching daily data")
        records: List[SedoRecord] = []
        for stat in domains.domains:
            try:
                records.extend(await self._fetch_domain_daily(stat.domain))
            except NetworkFetchError as e:
                logger.error(f"Sedo daily fetch failed for {stat.domain}: {e}")

        if not records:
            logger.warning("No Sedo daily rows for any domain, falling back to aggregate data")
            return await self._fetch_aggregate()
        return records
