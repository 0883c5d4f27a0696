"""
Tests for the Sedo and Yandex clients against mocked HTTP transports:
- Sedo domain list then per-domain daily rows
- SEDOFAULT and HTTP errors become failed fetches
- Yandex statistics parsing and error bodies
"""

from datetime import date
from decimal import Decimal

import httpx
import pytest

from src.collectors import SedoClient, YandexClient, to_utc_date
from src.collectors.base import NetworkFetchError
from src.collectors.sedo import parse_sedo_xml

SEDO_CREDS = {"partner_id": "1", "sign_key": "k", "username": "u", "password": "p"}

DOMAIN_SUMMARY = """<SEDOSTATS>
  <item><domain>alpha.com</domain><visitors>900</visitors><clicks>9</clicks><earnings>3.00</earnings></item>
  <item><domain>beta.com</domain><visitors>100</visitors><clicks>1</clicks><earnings>0.50</earnings></item>
</SEDOSTATS>"""

DAILY = {
    "alpha.com": """<SEDOSTATS>
  <item><date>2025-01-02</date><domain></domain><visitors>400</visitors><clicks>4</clicks><earnings>1.25</earnings></item>
  <item><date>2025-01-01</date><domain></domain><visitors>500</visitors><clicks>5</clicks><earnings>1.75</earnings></item>
</SEDOSTATS>""",
    "beta.com": """<SEDOSTATS>
  <item><date>2025-01-01</date><visitors>100</visitors><clicks>1</clicks><earnings>0.50</earnings></item>
</SEDOSTATS>""",
}

BAD_DATE_DAILY = """<SEDOSTATS>
  <item><date>01/02/2025</date><visitors>100</visitors><clicks>1</clicks><earnings>0.50</earnings></item>
</SEDOSTATS>"""

FAULT = """<SEDOFAULT><faultcode>E0100</faultcode><faultstring>Invalid sign key</faultstring></SEDOFAULT>"""


def sedo_handler(request: httpx.Request) -> httpx.Response:
    params = request.url.params
    assert params["partnerid"] == "1"
    if params["period"] == "4":
        return httpx.Response(200, text=DOMAIN_SUMMARY)
    return httpx.Response(200, text=DAILY[params["domain"]])


class TestSedoXml:
    def test_parses_items(self):
        items = parse_sedo_xml(DOMAIN_SUMMARY)
        assert items[0]["domain"] == "alpha.com"
        assert items[0]["visitors"] == 900
        assert items[0]["earnings"] == Decimal("3.00")

    def test_fault_raises(self):
        with pytest.raises(NetworkFetchError, match="Invalid sign key"):
            parse_sedo_xml(FAULT)

    def test_malformed_raises(self):
        with pytest.raises(NetworkFetchError):
            parse_sedo_xml("<SEDOSTATS><item>")


class TestSedoClient:
    @pytest.mark.asyncio
    async def test_fetches_daily_rows_per_domain(self):
        async with SedoClient(SEDO_CREDS, transport=httpx.MockTransport(sedo_handler)) as client:
            result = await client.fetch_revenue()

        assert result.success
        assert len(result.records) == 3
        assert {r.domain for r in result.records} == {"alpha.com", "beta.com"}
        assert result.date_range == (date(2025, 1, 1), date(2025, 1, 2))
        assert result.total_revenue == Decimal("3.50")
        alpha_first_day = next(
            r for r in result.records if r.domain == "alpha.com" and to_utc_date(r.date) == date(2025, 1, 1)
        )
        assert (alpha_first_day.impressions, alpha_first_day.clicks) == (500, 5)
        assert alpha_first_day.revenue == Decimal("1.75")

    @pytest.mark.asyncio
    async def test_single_domain(self):
        async with SedoClient(SEDO_CREDS, transport=httpx.MockTransport(sedo_handler)) as client:
            result = await client.fetch_revenue(domain="beta.com")

        assert [r.domain for r in result.records] == ["beta.com"]

    @pytest.mark.asyncio
    async def test_bad_date_skips_only_that_domain(self):
        daily = {**DAILY, "beta.com": BAD_DATE_DAILY}

        def handler(request):
            params = request.url.params
            if params["period"] == "4":
                return httpx.Response(200, text=DOMAIN_SUMMARY)
            return httpx.Response(200, text=daily[params["domain"]])

        async with SedoClient(SEDO_CREDS, transport=httpx.MockTransport(handler)) as client:
            result = await client.fetch_revenue()

        assert result.success
        assert {r.domain for r in result.records} == {"alpha.com"}

    @pytest.mark.asyncio
    async def test_bad_date_fails_single_domain_fetch(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=BAD_DATE_DAILY))
        async with SedoClient(SEDO_CREDS, transport=transport) as client:
            result = await client.fetch_revenue(domain="beta.com")

        assert not result.success
        assert "Malformed Sedo item" in result.error

    @pytest.mark.asyncio
    async def test_fault_is_a_failed_fetch(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text=FAULT))
        async with SedoClient(SEDO_CREDS, transport=transport) as client:
            result = await client.fetch_revenue()

        assert not result.success
        assert "E0100" in result.error

    @pytest.mark.asyncio
    async def test_not_configured(self):
        async with SedoClient({"partner_id": "1"}) as client:
            assert not client.is_configured()
            assert client.config_status() == {
                "has_partner_id": True,
                "has_sign_key": False,
                "has_username": False,
                "has_password": False,
                "configured": False,
            }
            result = await client.fetch_revenue()

        assert result.error == "Sedo API not configured"

    @pytest.mark.asyncio
    async def test_domain_list(self):
        async with SedoClient(SEDO_CREDS, transport=httpx.MockTransport(sedo_handler)) as client:
            result = await client.fetch_domains()

        assert [d.domain for d in result.domains] == ["alpha.com", "beta.com"]


YANDEX_PAYLOAD = {
    "data": {
        "points": [
            {
                "dimensions": {"date": "2025-01-01", "domain": "a.com", "tag_id": 11, "tag_name": "Top"},
                "metrics": {"shows": 1000, "clicks": 10, "partner_wo_nds": 2.5},
            },
            {
                "dimensions": {"date": "2025-01-01", "domain": "b.com", "tag_id": 12},
                "metrics": {"shows": 10, "clicks": 0, "partner_wo_nds": 0.1},
            },
            {"dimensions": {"domain": "no-date.com"}, "metrics": {}},
        ]
    }
}


class TestYandexClient:
    @pytest.mark.asyncio
    async def test_parses_points(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json=YANDEX_PAYLOAD)

        async with YandexClient({"oauth_token": "tok"}, transport=httpx.MockTransport(handler)) as client:
            result = await client.fetch_revenue(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))

        assert seen["auth"] == "OAuth tok"
        assert result.success
        assert len(result.records) == 2
        record = result.records[0]
        assert record.tag_id == "11"
        assert record.tag_name == "Top"
        assert record.revenue == Decimal("2.5")
        assert record.impressions == 1000
        assert result.date_range == (date(2025, 1, 1), date(2025, 1, 31))

    @pytest.mark.asyncio
    async def test_domain_filter(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=YANDEX_PAYLOAD))
        async with YandexClient({"oauth_token": "tok"}, transport=transport) as client:
            result = await client.fetch_revenue(domain="B.com")

        assert [r.domain for r in result.records] == ["b.com"]

    @pytest.mark.asyncio
    async def test_error_body(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"error": {"message": "Invalid token"}})
        )
        async with YandexClient({"oauth_token": "tok"}, transport=transport) as client:
            result = await client.fetch_revenue()

        assert not result.success
        assert result.error == "Invalid token"

    @pytest.mark.asyncio
    async def test_http_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, text="unauthorized"))
        async with YandexClient({"oauth_token": "tok"}, transport=transport) as client:
            result = await client.fetch_revenue()

        assert not result.success
        assert result.error.startswith("HTTP 401")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "dimensions, metrics",
        [
            ({"date": "01/02/2025", "domain": "a.com"}, {"shows": 1}),
            ({"date": "2025-01-01", "domain": "a.com"}, {"shows": "lots"}),
            ({"date": "2025-01-01", "domain": "a.com"}, {"partner_wo_nds": "n/a"}),
        ],
    )
    async def test_malformed_row_is_a_failed_fetch(self, dimensions, metrics):
        payload = {"data": [{"dimensions": dimensions, "metrics": metrics}]}
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
        async with YandexClient({"oauth_token": "tok"}, transport=transport) as client:
            result = await client.fetch_revenue()

        assert not result.success
        assert result.error.startswith("Malformed Yandex row")


def test_to_utc_date():
    assert to_utc_date("2025-03-01") == date(2025, 3, 1)
    assert to_utc_date("2025-03-01T22:00:00-05:00") == date(2025, 3, 2)
    assert to_utc_date("2025-03-01T10:00:00Z") == date(2025, 3, 1)
