"""
Tests for the API key report endpoints (/api/v1/reports).
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select

from src.models import AdNetwork, ApiKey, OverviewReport
from src.services.api_keys import SCOPE_REPORTS_EXPORT, SCOPE_REPORTS_READ, create_api_key
from src.services.reports import api_date_range

PERIOD = {"start_date": "2025-03-01", "end_date": "2025-03-31"}


def row(user, day, network, domain, net, impressions=0, clicks=0):
    return OverviewReport(
        user_id=user.id,
        date=day,
        network=network,
        domain=domain,
        currency="EUR" if network == AdNetwork.SEDO else "USD",
        gross_revenue=Decimal(net) * 2,
        net_revenue=Decimal(net),
        impressions=impressions,
        clicks=clicks,
        ctr=Decimal("1.00") if impressions else None,
        rpm=Decimal("4.00") if impressions else None,
    )


@pytest_asyncio.fixture
async def seeded(db_session, admin_user, publisher):
    db_session.add_all(
        [
            row(publisher, date(2025, 3, 1), AdNetwork.SEDO, "a.com", "8.00", 1000, 10),
            row(publisher, date(2025, 3, 2), AdNetwork.YANDEX, "b.com", "4.00", 500, 5),
            row(publisher, date(2025, 3, 2), AdNetwork.SEDO, "a.com", "2.00", 200, 2),
            row(publisher, date(2025, 1, 15), AdNetwork.SEDO, "a.com", "99.00"),
            row(admin_user, date(2025, 3, 1), AdNetwork.SEDO, "c.com", "50.00"),
        ]
    )
    await db_session.commit()


@pytest_asyncio.fixture
async def issue_key(db_session):
    """issue_key(user, scopes=None, **kwargs) -> (ApiKey, Authorization headers)"""

    async def _issue(user, scopes=None, **kwargs):
        api_key, raw_key = await create_api_key(db_session, user.id, "test", scopes=scopes, **kwargs)
        await db_session.commit()
        return api_key, {"Authorization": f"Bearer {raw_key}"}

    return _issue


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_header(self, client):
        response = await client.get("/api/v1/reports")

        assert response.status_code == 401
        assert "Bearer <api_key>" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_wrong_format(self, client):
        response = await client.get("/api/v1/reports", headers={"Authorization": "Bearer sk_live_123"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid API key format"

    @pytest.mark.asyncio
    async def test_unknown_key(self, client):
        response = await client.get("/api/v1/reports", headers={"Authorization": "Bearer rem_unknown"})

        assert response.status_code == 401
        assert response.json()["detail"] == "API key not found"

    @pytest.mark.asyncio
    async def test_session_token_is_not_an_api_key(self, client, publisher, auth_headers):
        response = await client.get("/api/v1/reports", headers=auth_headers(publisher))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_disabled_key(self, client, db_session, publisher, issue_key):
        api_key, headers = await issue_key(publisher)
        api_key.is_active = False
        await db_session.commit()

        response = await client.get("/api/v1/reports", headers=headers)

        assert response.status_code == 401
        assert response.json()["detail"] == "API key is disabled"

    @pytest.mark.asyncio
    async def test_expired_key(self, client, db_session, publisher, issue_key):
        api_key, headers = await issue_key(publisher)
        api_key.expires_at = datetime.now(timezone.utc) - timedelta(days=1)
        await db_session.commit()

        response = await client.get("/api/v1/reports", headers=headers)

        assert response.status_code == 401
        assert response.json()["detail"] == "API key has expired"

    @pytest.mark.asyncio
    async def test_disabled_owner(self, client, db_session, publisher, issue_key):
        _, headers = await issue_key(publisher)
        publisher.is_active = False
        await db_session.commit()

        response = await client.get("/api/v1/reports", headers=headers)

        assert response.status_code == 401
        assert response.json()["detail"] == "User account is disabled"

    @pytest.mark.asyncio
    async def test_use_is_recorded(self, client, db_session, publisher, issue_key, seeded):
        api_key, headers = await issue_key(publisher)

        await client.get("/api/v1/reports", headers=headers)
        await client.get("/api/v1/reports/summary", headers=headers)

        await db_session.refresh(api_key)
        assert api_key.request_count == 2
        assert api_key.last_used_at is not None


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_budget_per_key(self, client, publisher, issue_key, seeded):
        _, limited = await issue_key(publisher, rate_limit=2)
        _, other = await issue_key(publisher)

        first = await client.get("/api/v1/reports", headers=limited)
        second = await client.get("/api/v1/reports", headers=limited)
        third = await client.get("/api/v1/reports", headers=limited)

        assert first.headers["X-RateLimit-Remaining"] == "1"
        assert second.headers["X-RateLimit-Remaining"] == "0"
        assert third.status_code == 429
        assert third.headers["X-RateLimit-Remaining"] == "0"
        assert "X-RateLimit-Reset" in third.headers

        assert (await client.get("/api/v1/reports", headers=other)).status_code == 200


class TestReports:
    @pytest.mark.asyncio
    async def test_own_rows_newest_first(self, client, publisher, issue_key, seeded):
        _, headers = await issue_key(publisher)

        response = await client.get("/api/v1/reports", params=PERIOD, headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [(r["date"], r["domain"]) for r in body["data"]] == [
            ("2025-03-02", "b.com"),
            ("2025-03-02", "a.com"),
            ("2025-03-01", "a.com"),
        ]
        assert Decimal(body["data"][2]["revenue"]) == Decimal("8.00")
        assert "gross_revenue" not in body["data"][0]
        assert body["pagination"] == {"total": 3, "limit": 100, "offset": 0, "has_more": False}
        assert body["filters"] == {"start_date": "2025-03-01", "end_date": "2025-03-31", "domain": None}

    @pytest.mark.asyncio
    async def test_domain_filter_and_paging(self, client, publisher, issue_key, seeded):
        _, headers = await issue_key(publisher)

        response = await client.get(
            "/api/v1/reports",
            params={**PERIOD, "domain": "A.com", "limit": 1, "offset": 0},
            headers=headers,
        )

        body = response.json()
        assert [r["date"] for r in body["data"]] == ["2025-03-02"]
        assert body["pagination"]["has_more"] is True
        assert body["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, client, publisher, issue_key):
        _, headers = await issue_key(publisher)

        response = await client.get("/api/v1/reports", params={"limit": 1001}, headers=headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_csv_needs_export_scope(self, client, publisher, issue_key, seeded):
        _, headers = await issue_key(publisher, scopes=[SCOPE_REPORTS_READ])

        response = await client.get("/api/v1/reports", params={**PERIOD, "format": "csv"}, headers=headers)

        assert response.status_code == 403
        assert "reports:export" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_csv_export(self, client, publisher, issue_key, seeded):
        _, headers = await issue_key(publisher, scopes=[SCOPE_REPORTS_READ, SCOPE_REPORTS_EXPORT])

        response = await client.get("/api/v1/reports", params={**PERIOD, "format": "csv"}, headers=headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == (
            'attachment; filename="revenue-report-2025-03-01-to-2025-03-31.csv"'
        )
        lines = response.text.strip().split("\n")
        assert lines[0] == "date,network,domain,revenue,impressions,clicks,ctr,rpm,currency"
        assert lines[-1] == "2025-03-01,sedo,a.com,8.00,1000,10,1.00,4.00,EUR"
        assert "X-RateLimit-Remaining" in response.headers

    @pytest.mark.asyncio
    async def test_read_scope_required(self, client, db_session, publisher, issue_key):
        api_key, headers = await issue_key(publisher)
        api_key.scopes = [SCOPE_REPORTS_EXPORT]
        await db_session.commit()

        response = await client.get("/api/v1/reports", headers=headers)
        assert response.status_code == 403


class TestSummary:
    @pytest.mark.asyncio
    async def test_totals(self, client, publisher, issue_key, seeded):
        _, headers = await issue_key(publisher)

        response = await client.get("/api/v1/reports/summary", params=PERIOD, headers=headers)

        body = response.json()
        assert Decimal(body["summary"]["revenue"]) == Decimal("14.00")
        assert body["summary"]["record_count"] == 3
        assert body["summary"]["impressions"] == 1700
        assert body["period"] == {"start_date": "2025-03-01", "end_date": "2025-03-31"}
        assert "data" not in body

    @pytest.mark.asyncio
    async def test_group_by_domain(self, client, publisher, issue_key, seeded):
        _, headers = await issue_key(publisher)

        response = await client.get(
            "/api/v1/reports/summary", params={**PERIOD, "group_by": "domain"}, headers=headers
        )

        data = response.json()["data"]
        assert [(d["domain"], Decimal(d["revenue"])) for d in data] == [
            ("a.com", Decimal("10.00")),
            ("b.com", Decimal("4.00")),
        ]

    @pytest.mark.asyncio
    async def test_group_by_day_and_network(self, client, publisher, issue_key, seeded):
        _, headers = await issue_key(publisher)

        by_day = await client.get("/api/v1/reports/summary", params={**PERIOD, "group_by": "day"}, headers=headers)
        by_network = await client.get(
            "/api/v1/reports/summary", params={**PERIOD, "group_by": "network"}, headers=headers
        )

        assert [d["date"] for d in by_day.json()["data"]] == ["2025-03-01", "2025-03-02"]
        assert [d["network"] for d in by_network.json()["data"]] == ["sedo", "yandex"]

    @pytest.mark.asyncio
    async def test_invalid_group(self, client, publisher, issue_key):
        _, headers = await issue_key(publisher)

        response = await client.get("/api/v1/reports/summary", params={"group_by": "week"}, headers=headers)

        assert response.status_code == 400
        assert "X-RateLimit-Remaining" in response.headers


def test_default_window_is_thirty_days():
    period = api_date_range(None, date(2025, 3, 31))
    assert (period.start, period.end) == (date(2025, 3, 1), date(2025, 3, 31))
