"""
Integration tests for the admin authentication flow.

Login -> Me -> Logout -> revoked token rejected.
"""

import pytest
from sqlalchemy import select

from tracking_backend.app.models.audit_log import AuditLog
from tracking_backend.app.services.audit import AuditAction


@pytest.mark.asyncio
async def test_login_me_logout(client, admin_user):
    response = await client.post(
        "/v1/auth/login",
        json={"username": "admin", "password": "admin-pass-123"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user_id"] == admin_user.id
    headers = {"Authorization": f"Bearer {data['access_token']}"}

    response = await client.get("/v1/auth/me", headers=headers)
    assert response.status_code == 200
    assert response.json()["email"] == "admin@test.com"

    response = await client.post("/v1/auth/logout", headers=headers)
    assert response.status_code == 204

    response = await client.get("/v1/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["message"] == "Token has been revoked"


@pytest.mark.asyncio
async def test_login_with_email(client, admin_user):
    response = await client.post(
        "/v1/auth/login",
        json={"username": "admin@test.com", "password": "admin-pass-123"}
    )
    assert response.status_code == 200
    assert response.json()["username"] == "admin"


@pytest.mark.asyncio
async def test_login_wrong_password_is_audited(client, admin_user, db_session):
    response = await client.post(
        "/v1/auth/login",
        json={"username": "admin", "password": "wrong"}
    )
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_UNAUTHORIZED"

    result = await db_session.execute(
        select(AuditLog).where(AuditLog.action == AuditAction.LOGIN_FAILED)
    )
    entry = result.scalar_one()
    assert entry.actor_id == admin_user.id
    assert entry.meta_data == {"reason": "Invalid password"}


@pytest.mark.asyncio
async def test_inactive_admin_is_rejected(client, admin_user, auth_headers, db_session):
    admin_user.is_active = False
    db_session.add(admin_user)
    await db_session.commit()

    response = await client.post(
        "/v1/auth/login",
        json={"username": "admin", "password": "admin-pass-123"}
    )
    assert response.status_code == 403

    response = await client.get("/v1/admin/shipments", headers=auth_headers)
    assert response.status_code == 403
