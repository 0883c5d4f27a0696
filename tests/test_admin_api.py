"""
Tests for admin endpoints: domain assignment, network accounts, users,
settings and data cleanup.
"""

from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from src.collectors import SedoRecord, YandexRecord
from src.models import (
    AdNetwork,
    AuditAction,
    AuditLog,
    OverviewReport,
    SedoLedgerEntry,
    YandexLedgerEntry,
)
from src.services.cache import CacheKeys
from src.services.overview import sync_overview
from src.services.reconciliation import save_revenue


class TestDomainAssignments:
    @pytest.mark.asyncio
    async def test_assign_and_list(self, client, admin_user, publisher, auth_headers):
        headers = auth_headers(admin_user)

        response = await client.put(
            "/api/admin/domains",
            json={"domain": " Example.COM ", "network": "sedo", "user_id": publisher.id, "rev_share": "70"},
            headers=headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["domain"] == "example.com"
        assert body["username"] == "publisher"

        listed = (await client.get("/api/admin/domains", headers=headers)).json()
        assert [d["domain"] for d in listed] == ["example.com"]

    @pytest.mark.asyncio
    async def test_rev_share_out_of_range(self, client, admin_user, publisher, auth_headers):
        response = await client.put(
            "/api/admin/domains",
            json={"domain": "a.com", "network": "sedo", "user_id": publisher.id, "rev_share": "120"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_user(self, client, admin_user, auth_headers):
        response = await client.put(
            "/api/admin/domains",
            json={"domain": "a.com", "network": "sedo", "user_id": 999},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_remove_deactivates(self, client, admin_user, publisher, auth_headers, assign):
        await assign("a.com", AdNetwork.YANDEX, publisher)
        headers = auth_headers(admin_user)

        response = await client.delete("/api/admin/domains/yandex/a.com", headers=headers)
        assert response.status_code == 200

        active = (await client.get("/api/admin/domains", headers=headers)).json()
        everything = (await client.get("/api/admin/domains?include_inactive=true", headers=headers)).json()
        assert active == []
        assert everything[0]["is_active"] is False

        missing = await client.delete("/api/admin/domains/yandex/none.com", headers=headers)
        assert missing.status_code == 404


class TestNetworkAccounts:
    @pytest.mark.asyncio
    async def test_credentials_never_returned(self, client, admin_user, auth_headers, db_session):
        response = await client.post(
            "/api/admin/network-accounts",
            json={"network": "yandex", "name": "Main", "credentials": {"oauth_token": "super-secret"}},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 201
        assert "super-secret" not in response.text
        assert response.json()["config"] == {"has_oauth_token": True, "configured": True}

        audit = (await db_session.execute(select(AuditLog))).scalars().all()
        assert [a.action for a in audit] == [AuditAction.CREATE_NETWORK_ACCOUNT]
        assert "super-secret" not in str(audit[0].action_metadata)

    @pytest.mark.asyncio
    async def test_partial_credential_update(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        created = (
            await client.post(
                "/api/admin/network-accounts",
                json={
                    "network": "sedo",
                    "name": "Sedo",
                    "credentials": {"partner_id": "1", "sign_key": "k", "username": "u"},
                },
                headers=headers,
            )
        ).json()
        assert created["config"]["configured"] is False

        updated = await client.patch(
            f"/api/admin/network-accounts/{created['id']}",
            json={"credentials": {"password": "p"}},
            headers=headers,
        )
        assert updated.json()["config"]["configured"] is True


class TestUsers:
    @pytest.mark.asyncio
    async def test_create_with_generated_password(self, client, admin_user, auth_headers):
        response = await client.post(
            "/api/admin/users",
            json={"username": "newpub", "display_name": "New Publisher"},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["role"] == "publisher"
        assert body["initial_password"]

        login = await client.post(
            "/api/auth/login",
            json={"username": "newpub", "password": body["initial_password"]},
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_duplicate_username(self, client, admin_user, publisher, auth_headers):
        response = await client.post(
            "/api/admin/users",
            json={"username": "publisher", "display_name": "Again", "password": "secret1"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 400


class TestSettings:
    @pytest.mark.asyncio
    async def test_defaults_then_update(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)

        defaults = (await client.get("/api/admin/settings/data", headers=headers)).json()
        assert defaults["default_rev_share"] == 80
        assert defaults["email_on_sync_failure"] is True

        response = await client.put(
            "/api/admin/settings/data",
            json={"default_rev_share": 75, "email_on_sync_failure": False},
            headers=headers,
        )
        assert sorted(response.json()["updated_keys"]) == ["default_rev_share", "email_on_sync_failure"]

        current = (await client.get("/api/admin/settings/data", headers=headers)).json()
        assert current["default_rev_share"] == 75
        assert current["email_on_sync_failure"] is False


@pytest_asyncio.fixture
async def synced_revenue(db_session, admin_user, publisher, assign):
    """Publisher owns a.com (sedo) and pub.com (yandex); b.com (sedo) falls back to the admin."""
    await assign("a.com", AdNetwork.SEDO, publisher)
    await assign("pub.com", AdNetwork.YANDEX, publisher)
    sedo = [
        SedoRecord(date="2025-01-01", domain="a.com", revenue=Decimal("10")),
        SedoRecord(date="2025-01-01", domain="b.com", revenue=Decimal("5")),
    ]
    yandex = [YandexRecord(date="2025-01-01", domain="pub.com", revenue=Decimal("3"), tag_id="1")]
    await save_revenue(db_session, AdNetwork.SEDO, sedo, admin_user.id)
    await save_revenue(db_session, AdNetwork.YANDEX, yandex, admin_user.id)
    await sync_overview(db_session, AdNetwork.SEDO)
    await sync_overview(db_session, AdNetwork.YANDEX)


async def count(db, model, **filters):
    query = select(func.count(model.id))
    for name, value in filters.items():
        query = query.where(getattr(model, name) == value)
    return await db.scalar(query)


class TestCleanup:
    @pytest.mark.asyncio
    async def test_counts_per_user(self, client, admin_user, publisher, auth_headers, synced_revenue):
        response = await client.get("/api/admin/cleanup-data", headers=auth_headers(admin_user))

        assert response.status_code == 200
        body = response.json()
        assert body["totals"] == {"sedo_records": 2, "yandex_records": 1, "overview_records": 3}
        by_user = {u["username"]: u for u in body["data_by_user"]}
        assert by_user["publisher"]["sedo_records"] == 1
        assert by_user["publisher"]["yandex_records"] == 1
        assert by_user["publisher"]["overview_records"] == 2
        assert by_user["admin"]["sedo_records"] == 1

    @pytest.mark.asyncio
    async def test_one_network_for_one_user(
        self, client, db_session, admin_user, publisher, auth_headers, synced_revenue, cache
    ):
        cache.set(CacheKeys.sync_status(), "stale")

        response = await client.request(
            "DELETE",
            "/api/admin/cleanup-data",
            json={"type": "sedo", "user_id": publisher.id},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        assert response.json()["deleted"] == {"sedo": 1, "yandex": 0, "overview": 1}
        assert await count(db_session, SedoLedgerEntry, user_id=publisher.id) == 0
        assert await count(db_session, SedoLedgerEntry, user_id=admin_user.id) == 1
        assert await count(db_session, YandexLedgerEntry, user_id=publisher.id) == 1
        assert await count(db_session, OverviewReport, user_id=publisher.id, network=AdNetwork.SEDO) == 0
        assert await count(db_session, OverviewReport, user_id=publisher.id, network=AdNetwork.YANDEX) == 1
        assert cache.get(CacheKeys.sync_status()) is None

        audit = (await db_session.execute(select(AuditLog))).scalars().all()
        assert [(a.action, a.target_id) for a in audit] == [(AuditAction.CLEANUP_DATA, publisher.id)]

    @pytest.mark.asyncio
    async def test_all_for_everyone(self, client, db_session, admin_user, auth_headers, synced_revenue):
        response = await client.request(
            "DELETE", "/api/admin/cleanup-data", json={"type": "all"}, headers=auth_headers(admin_user)
        )

        assert response.json()["deleted"] == {"sedo": 2, "yandex": 1, "overview": 3}
        for model in (SedoLedgerEntry, YandexLedgerEntry, OverviewReport):
            assert await count(db_session, model) == 0

    @pytest.mark.asyncio
    async def test_yandex_for_everyone_keeps_sedo(self, client, db_session, admin_user, auth_headers, synced_revenue):
        await client.request("DELETE", "/api/admin/cleanup-data", json={"type": "yandex"}, headers=auth_headers(admin_user))

        assert await count(db_session, YandexLedgerEntry) == 0
        assert await count(db_session, SedoLedgerEntry) == 2
        assert await count(db_session, OverviewReport, network=AdNetwork.SEDO) == 2
        assert await count(db_session, OverviewReport, network=AdNetwork.YANDEX) == 0

    @pytest.mark.asyncio
    async def test_rejects_bad_requests(self, client, admin_user, publisher, auth_headers):
        headers = auth_headers(admin_user)

        bad_type = await client.request("DELETE", "/api/admin/cleanup-data", json={"type": "adsense"}, headers=headers)
        unknown_user = await client.request(
            "DELETE", "/api/admin/cleanup-data", json={"type": "all", "user_id": 999}, headers=headers
        )
        not_admin = await client.request(
            "DELETE", "/api/admin/cleanup-data", json={"type": "all"}, headers=auth_headers(publisher)
        )

        assert bad_type.status_code == 422
        assert unknown_user.status_code == 404
        assert not_admin.status_code == 403
