"""
Health check and auth endpoint tests.
"""

import pytest

from src.auth.jwt import create_access_token, verify_token


def test_password_hashing():
    """Test password hashing utility."""
    from src.utils.password import generate_password, hash_password, verify_password

    password = "test_password_123"
    hashed = hash_password(password)

    # Hash should be different from original
    assert hashed != password

    # Verification should work
    assert verify_password(password, hashed)

    # Wrong password should fail
    assert not verify_password("wrong_password", hashed)

    assert generate_password() != generate_password()


def test_token_round_trip():
    token = create_access_token(7, "publisher")
    assert verify_token(token) == {"user_id": 7, "role": "publisher"}
    assert verify_token(token + "x") is None


@pytest.mark.asyncio
async def test_health_endpoint(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "revengine"}


@pytest.mark.asyncio
async def test_ready_endpoint(client):
    response = await client.get("/api/health/ready")
    assert response.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_login_sets_cookie(client, publisher):
    response = await client.post(
        "/api/auth/login",
        json={"username": "publisher", "password": "password"},
    )
    assert response.status_code == 200
    assert response.json()["role"] == "publisher"
    assert "access_token" in response.cookies


@pytest.mark.asyncio
async def test_login_wrong_password(client, publisher):
    response = await client.post(
        "/api/auth/login",
        json={"username": "publisher", "password": "nope"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me(client, publisher, auth_headers):
    response = await client.get("/api/auth/me", headers=auth_headers(publisher))
    assert response.status_code == 200
    assert response.json()["username"] == "publisher"


class TestRouteProtection:
    @pytest.mark.asyncio
    async def test_panel_requires_login(self, client):
        response = await client.get("/api/panel/dashboard/summary")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_rejects_publisher(self, client, publisher, auth_headers):
        response = await client.get("/api/admin/domains", headers=auth_headers(publisher))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_allows_admin(self, client, admin_user, auth_headers):
        response = await client.get("/api/admin/domains", headers=auth_headers(admin_user))
        assert response.status_code == 200
