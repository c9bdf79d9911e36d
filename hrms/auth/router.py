"""Auth router — username/password login, logout, current user profile."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.auth.schemas import LoginRequest, MeResponse, TokenResponse, UserInfo
from hrms.auth.service import authenticate, create_session, hash_token, revoke_session
from hrms.common.audit import create_audit_entry
from hrms.common.constants import PERMISSIONS, UserRole
from hrms.common.rate_limit import limiter
from hrms.config import settings
from hrms.database import get_db
from hrms.users.models import User

router = APIRouter(prefix="", tags=["auth"])


def _user_info(user: User) -> dict:
    return dict(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        employee_code=user.employee_code,
        email=user.email,
        role=user.role,
        department_id=user.department_id,
        department=user.department_name,
    )


# ── POST /login: exchange credentials for a bearer token ──────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(db, body.username, body.password)

    ip = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    access_token, expires_in = await create_session(db, user, ip, user_agent)

    await create_audit_entry(
        db,
        action="login",
        entity_type="user_session",
        entity_id=user.id,
        actor_id=user.id,
        new_values={"ip": ip, "user_agent": user_agent},
        ip_address=ip,
        user_agent=user_agent,
    )
    await db.commit()

    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=UserInfo(**_user_info(user)),
    )


# ── POST /logout: Revoke current session ──────────────────────────

@router.post("/logout")
async def logout(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = request.headers.get("Authorization", "").removeprefix("Bearer ")
    await revoke_session(db, hash_token(token))

    await create_audit_entry(
        db,
        action="logout",
        entity_type="user_session",
        entity_id=user.id,
        actor_id=user.id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    await db.commit()

    return {"message": "Logged out successfully"}


# ── GET /me: Current user profile ─────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(
    request: Request,
    user: User = Depends(get_current_user),
):
    role: UserRole = request.state.user_role
    return MeResponse(
        **_user_info(user),
        job_title=user.job_title,
        permissions=PERMISSIONS.get(role, []),
    )
