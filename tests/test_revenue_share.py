"""
Tests for domain ownership and revenue share:
- Net revenue rounding
- Exact-match owner lookup, inactive assignments ignored
- Fallback admin selection
- Assignment validation and domain discovery
"""

from decimal import Decimal

import pytest

from src.models import AdNetwork, UserRole
from src.services.revenue_share import (
    calculate_net_revenue,
    deactivate_domain_assignment,
    get_domain_assignment_map,
    get_domain_owner,
    get_fallback_admin,
    get_user_assigned_domains,
    normalize_domain,
    set_domain_assignment,
    sync_domains_to_assignment,
)


class TestNetRevenue:
    def test_default_share(self):
        assert calculate_net_revenue(Decimal("10.00"), Decimal("80")) == Decimal("8.00")

    def test_rounds_to_cents(self):
        assert calculate_net_revenue(Decimal("33.33"), Decimal("70")) == Decimal("23.33")

    def test_rounds_half_up(self):
        assert calculate_net_revenue(Decimal("0.05"), Decimal("50")) == Decimal("0.03")

    def test_zero_share(self):
        assert calculate_net_revenue(Decimal("12.34"), Decimal("0")) == Decimal("0.00")


def test_normalize_domain():
    assert normalize_domain("  Example.COM ") == "example.com"
    assert normalize_domain("   ") is None
    assert normalize_domain(None) is None


class TestOwnerLookup:
    @pytest.mark.asyncio
    async def test_exact_match(self, db_session, publisher, assign):
        await assign("Example.com", AdNetwork.SEDO, publisher, Decimal("70"))

        owner = await get_domain_owner(db_session, "EXAMPLE.COM", AdNetwork.SEDO)
        assert owner.user_id == publisher.id
        assert owner.rev_share == Decimal("70")

    @pytest.mark.asyncio
    async def test_no_partial_match(self, db_session, publisher, assign):
        await assign("example.com", AdNetwork.SEDO, publisher)

        assert await get_domain_owner(db_session, "www.example.com", AdNetwork.SEDO) is None
        assert await get_domain_owner(db_session, "example.com", AdNetwork.YANDEX) is None

    @pytest.mark.asyncio
    async def test_inactive_assignment_ignored(self, db_session, publisher, assign):
        await assign("example.com", AdNetwork.YANDEX, publisher)
        assert await deactivate_domain_assignment(db_session, "example.com", AdNetwork.YANDEX)
        await db_session.commit()

        assert await get_domain_owner(db_session, "example.com", AdNetwork.YANDEX) is None
        assert await get_domain_assignment_map(db_session, AdNetwork.YANDEX) == {}

    @pytest.mark.asyncio
    async def test_reassignment_updates_in_place(self, db_session, admin_user, publisher, assign):
        first = await assign("example.com", AdNetwork.SEDO, admin_user)
        second = await assign("example.com", AdNetwork.SEDO, publisher, Decimal("60"))

        assert first.id == second.id
        owners = await get_domain_assignment_map(db_session, AdNetwork.SEDO)
        assert owners["example.com"].user_id == publisher.id
        assert await get_user_assigned_domains(db_session, publisher.id) == ["example.com"]


class TestAssignmentValidation:
    @pytest.mark.asyncio
    async def test_rejects_out_of_range_share(self, db_session, publisher):
        with pytest.raises(ValueError):
            await set_domain_assignment(db_session, "a.com", AdNetwork.SEDO, publisher.id, Decimal("101"))

    @pytest.mark.asyncio
    async def test_rejects_empty_domain(self, db_session, publisher):
        with pytest.raises(ValueError):
            await set_domain_assignment(db_session, "  ", AdNetwork.SEDO, publisher.id)


class TestFallbackAdmin:
    @pytest.mark.asyncio
    async def test_none_without_admin(self, db_session, publisher):
        assert await get_fallback_admin(db_session) is None

    @pytest.mark.asyncio
    async def test_first_active_admin(self, db_session, admin_user):
        from src.models import User

        db_session.add(
            User(username="second", password_hash="x", role=UserRole.ADMIN, display_name="Second")
        )
        await db_session.commit()

        admin = await get_fallback_admin(db_session)
        assert admin.id == admin_user.id

    @pytest.mark.asyncio
    async def test_skips_inactive_admin(self, db_session, admin_user):
        admin_user.is_active = False
        await db_session.commit()

        assert await get_fallback_admin(db_session) is None


@pytest.mark.asyncio
async def test_domain_discovery_creates_missing_only(db_session, admin_user, publisher, assign):
    await assign("known.com", AdNetwork.SEDO, publisher)

    counts = await sync_domains_to_assignment(
        db_session,
        admin_user.id,
        ["known.com", "New.com", "new.com", ""],
        AdNetwork.SEDO,
    )
    await db_session.commit()

    assert counts == {"created": 1, "existing": 1}
    owner = await get_domain_owner(db_session, "new.com", AdNetwork.SEDO)
    assert owner.user_id == admin_user.id
    assert owner.rev_share == Decimal("80")
