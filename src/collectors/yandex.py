"""Yandex Advertising Network (Partner statistics API) client."""

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from src.collectors.base import NetworkClient, NetworkFetchError
from src.collectors.records import DomainListResult, DomainStat, FetchResult, YandexRecord, to_utc_date
from src.models.base import AdNetwork

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://partner2.yandex.ru/api/statistics2/get.json"
DEFAULT_LOOKBACK_DAYS = 31
METRICS = "shows,clicks,partner_wo_nds"

# int(), Decimal() and date parsing failures, or a row that is not a mapping
PARSE_ERRORS = (ArithmeticError, AttributeError, TypeError, ValueError)


def _decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _rows(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Statistic rows from a response body (``data`` list or ``data.points``)."""
    data = payload.get("data") or []
    if isinstance(data, dict):
        data = data.get("points") or []
    return data


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


def _row_to_record(row: Dict[str, Any]) -> Optional[YandexRecord]:
    """One statistics point as a record, None when it carries no date."""
    dimensions = row.get("dimensions") or {}
    metrics = row.get("metrics") or {}
    row_date = dimensions.get("date")
    if not row_date:
        return None
    tag_id = dimensions.get("tag_id")
    return YandexRecord(
        date=to_utc_date(row_date),
        domain=dimensions.get("domain") or None,
        revenue=_decimal(metrics.get("partner_wo_nds") or metrics.get("money")),
        impressions=int(metrics.get("shows") or metrics.get("hits") or 0),
        clicks=int(metrics.get("clicks") or 0),
        tag_id=str(tag_id) if tag_id not in (None, "") else None,
        tag_name=dimensions.get("tag_name") or None,
    )


class YandexClient(NetworkClient):
    """Client for the Yandex Partner statistics2 endpoint (OAuth token auth)."""

    network = AdNetwork.YANDEX
    timeout = 60.0
    required_credentials = ("oauth_token",)

    @property
    def api_url(self) -> str:
        return self.credentials.get("api_url") or DEFAULT_API_URL

    async def _statistics(self, **params) -> Dict[str, Any]:
        params.update({"currency": "usd", "lang": "en", "pretty": 0})
        response = await self.get(
            self.api_url,
            params=params,
            headers={
                "Accept": "application/json",
                "Authorization": f"OAuth {self.credentials['oauth_token']}",
            },
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise NetworkFetchError(f"Malformed Yandex response: {e}") from e

        if not isinstance(payload, dict):
            raise NetworkFetchError("Unexpected Yandex response shape")
        if payload.get("error"):
            raise NetworkFetchError(_error_message(payload["error"]))
        return payload

    async def _fetch_revenue(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        domain: Optional[str],
    ) -> FetchResult:
        today = datetime.now(timezone.utc).date()
        end_date = end_date or today
        start_date = start_date or today - timedelta(days=DEFAULT_LOOKBACK_DAYS)

        payload = await self._statistics(
            date1=start_date.isoformat(),
            date2=end_date.isoformat(),
            group="day",
            dimensions="date,domain,tag_id,tag_name",
            metrics=METRICS,
        )

        records = []
        for row in _rows(payload):
            try:
                record = _row_to_record(row)
            except PARSE_ERRORS as e:
                raise NetworkFetchError(f"Malformed Yandex row {row!r:.200}: {e}") from e
            if record is None:
                continue
            if domain and record.domain and record.domain.lower() != domain.lower():
                continue
            records.append(record)

        result = FetchResult.from_records(records)
        result.date_range = (start_date, end_date)
        return result

    async def _fetch_domains(self) -> DomainListResult:
        today = datetime.now(timezone.utc).date()
        payload = await self._statistics(
            date1=(today - timedelta(days=DEFAULT_LOOKBACK_DAYS)).isoformat(),
            date2=today.isoformat(),
            group="all",
            dimensions="domain",
            metrics=METRICS,
        )

        domains = []
        for row in _rows(payload):
            try:
                name = str((row.get("dimensions") or {}).get("domain") or "").strip()
                if not name:
                    continue
                metrics = row.get("metrics") or {}
                domains.append(
                    DomainStat(
                        domain=name,
                        revenue=_decimal(metrics.get("partner_wo_nds")),
                        impressions=int(metrics.get("shows") or 0),
                        clicks=int(metrics.get("clicks") or 0),
                    )
                )
            except PARSE_ERRORS as e:
                raise NetworkFetchError(f"Malformed Yandex domain row {row!r:.200}: {e}") from e

        domains.sort(key=lambda s: s.revenue, reverse=True)
        return DomainListResult(success=True, domains=domains)
