"""Auth test suite — password login, session lifecycle, role gating.

Tests exercise the HTTP API end to end against in-memory SQLite.
"""

from __future__ import annotations

import hashlib
import uuid

from jose import jwt
from sqlalchemy import select

from hrms.auth.models import UserSession
from hrms.auth.service import hash_password, verify_password
from hrms.common.constants import UserRole
from hrms.config import settings
from tests.conftest import create_access_token, headers_for, make_user


# ── Helpers ─────────────────────────────────────────────────────────


async def _user_with_password(db, password="s3cret-pass", **kwargs) -> dict:
    return await make_user(db, password_hash=hash_password(password), **kwargs)


# ═════════════════════════════════════════════════════════════════════
# 1. PASSWORDS
# ═════════════════════════════════════════════════════════════════════


def test_password_hash_roundtrip():
    hashed = hash_password("hunter22")
    assert hashed != "hunter22"
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)


def test_verify_password_with_malformed_hash():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


# ═════════════════════════════════════════════════════════════════════
# 2. LOGIN / LOGOUT
# ═════════════════════════════════════════════════════════════════════


async def test_login_returns_token_with_claims(client, db, department):
    user = await _user_with_password(
        db, username="alice", role=UserRole.manager, department_id=department["id"],
    )

    resp = await client.post("/api/auth/login", json={"username": "alice", "password": "s3cret-pass"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["username"] == "alice"
    assert body["user"]["department"] == "Engineering"

    claims = jwt.decode(body["access_token"], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    assert claims["sub"] == str(user["id"])
    assert claims["role"] == "manager"
    assert claims["type"] == "access"


async def test_login_persists_session(client, db):
    await _user_with_password(db, username="bob")

    resp = await client.post("/api/auth/login", json={"username": "bob", "password": "s3cret-pass"})
    token_hash = hashlib.sha256(resp.json()["access_token"].encode()).hexdigest()

    session = (
        await db.execute(select(UserSession).where(UserSession.token_hash == token_hash))
    ).scalars().first()
    assert session is not None
    assert session.is_revoked is False


async def test_login_wrong_password(client, db):
    await _user_with_password(db, username="carol")

    resp = await client.post("/api/auth/login", json={"username": "carol", "password": "wrong"})

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid username or password"


async def test_login_unknown_user_same_message(client):
    resp = await client.post("/api/auth/login", json={"username": "ghost", "password": "x"})

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid username or password"


async def test_login_inactive_user_refused(client, db):
    await _user_with_password(db, username="dave", is_active=False)

    resp = await client.post("/api/auth/login", json={"username": "dave", "password": "s3cret-pass"})

    assert resp.status_code == 401


async def test_login_missing_fields_is_400(client):
    resp = await client.post("/api/auth/login", json={"username": "x"})

    assert resp.status_code == 400
    assert "password" in resp.json()["errors"]


async def test_logout_revokes_session(client, db, employee, employee_headers):
    resp = await client.post("/api/auth/logout", headers=employee_headers)
    assert resp.status_code == 200

    again = await client.get("/api/auth/me", headers=employee_headers)
    assert again.status_code == 401


async def test_login_rate_limited(client, db):
    await _user_with_password(db, username="erin")
    limit = int(settings.RATE_LIMIT_LOGIN.split("/")[0])

    statuses = [
        (await client.post("/api/auth/login", json={"username": "erin", "password": "bad"})).status_code
        for _ in range(limit + 1)
    ]

    assert statuses[:limit] == [401] * limit
    assert statuses[-1] == 429


# ═════════════════════════════════════════════════════════════════════
# 3. CURRENT USER + TOKEN CHECKS
# ═════════════════════════════════════════════════════════════════════


async def test_me_returns_profile_and_permissions(client, employee, employee_headers):
    resp = await client.get("/api/auth/me", headers=employee_headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == str(employee["id"])
    assert body["role"] == "employee"
    assert "attendance:check_in" in body["permissions"]
    assert "salary:manage" not in body["permissions"]


async def test_missing_token_is_401(client):
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 401


async def test_expired_token_is_401(client, employee):
    token = create_access_token(employee["id"], expired=True)

    resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token has expired."


async def test_token_without_session_is_401(client, employee):
    token = create_access_token(employee["id"])

    resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401


async def test_token_for_unknown_user_is_401(client, db):
    ghost = {"id": uuid.uuid4(), "role": "admin"}
    headers = await headers_for(db, ghost)

    resp = await client.get("/api/auth/me", headers=headers)

    assert resp.status_code == 401


# ═════════════════════════════════════════════════════════════════════
# 4. ROLE GATING
# ═════════════════════════════════════════════════════════════════════


async def test_employee_blocked_from_admin_routes(client, employee_headers):
    resp = await client.get("/api/admin/users", headers=employee_headers)
    assert resp.status_code == 403


async def test_employee_blocked_from_manager_routes(client, employee_headers):
    resp = await client.get("/api/manager/employees", headers=employee_headers)
    assert resp.status_code == 403


async def test_manager_blocked_from_admin_routes(client, manager_headers):
    resp = await client.get("/api/admin/dashboard", headers=manager_headers)
    assert resp.status_code == 403


async def test_admin_inherits_lower_roles(client, admin_headers):
    resp = await client.get("/api/shared/holidays", headers=admin_headers)
    assert resp.status_code == 200


async def test_stored_role_wins_over_token_claim(client, db, employee):
    """A token claiming admin does not elevate an employee."""
    from datetime import datetime, timedelta, timezone

    token = create_access_token(employee["id"], role=UserRole.admin)
    db.add(
        UserSession(
            user_id=employee["id"],
            token_hash=hashlib.sha256(token.encode()).hexdigest(),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )
    )
    await db.commit()

    resp = await client.get("/api/admin/users", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 403
