"""
Tests for the cron sync endpoints and panel manual sync endpoint.
"""

import pytest

from src.config import settings


@pytest.fixture
def unconfigured(monkeypatch):
    monkeypatch.setattr(settings, "yandex_api_token", "")
    monkeypatch.setattr(settings, "sedo_partner_id", "")


class TestCronAuth:
    @pytest.mark.asyncio
    async def test_open_outside_production(self, client, admin_user, unconfigured):
        response = await client.get("/api/cron/sync-yandex")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Yandex API not configured"

    @pytest.mark.asyncio
    async def test_production_without_secret_configured(self, client, monkeypatch, unconfigured):
        monkeypatch.setattr(settings, "is_production", True)
        monkeypatch.setattr(settings, "cron_secret", "")

        response = await client.get("/api/cron/sync-sedo")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_production_wrong_secret(self, client, monkeypatch, unconfigured):
        monkeypatch.setattr(settings, "is_production", True)
        monkeypatch.setattr(settings, "cron_secret", "s3cret")

        response = await client.get("/api/cron/sync-sedo", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_production_right_secret(self, client, admin_user, monkeypatch, unconfigured):
        monkeypatch.setattr(settings, "is_production", True)
        monkeypatch.setattr(settings, "cron_secret", "s3cret")

        response = await client.get("/api/cron/sync-sedo", headers={"Authorization": "Bearer s3cret"})
        assert response.status_code == 200
        assert response.json()["error"] == "Sedo API not configured"

    @pytest.mark.asyncio
    async def test_unknown_network(self, client):
        response = await client.get("/api/cron/sync-adsense")
        assert response.status_code == 422


class TestPanelSync:
    @pytest.mark.asyncio
    async def test_not_configured_is_bad_request(self, client, publisher, auth_headers, unconfigured):
        response = await client.post("/api/panel/sync/yandex", headers=auth_headers(publisher))

        assert response.status_code == 400
        assert response.json()["detail"] == "Yandex API not configured"

    @pytest.mark.asyncio
    async def test_requires_login(self, client):
        response = await client.post("/api/panel/sync/yandex")
        assert response.status_code == 401
