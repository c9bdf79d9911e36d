"""Auth service — password hashing, credential check, JWT, session lifecycle."""

from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi.exceptions import HTTPException
from jose import jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import UserSession
from hrms.common.constants import UserRole
from hrms.config import settings
from hrms.users.models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

INVALID_CREDENTIALS = "Invalid username or password"


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Malformed or unknown hash format stored in the row
        return False


# ── Credential check ────────────────────────────────────────────────

async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    """Return the active user for *username*/*password* or raise 401.

    Unknown user, wrong password and inactive account all produce the same
    message so the response does not reveal which usernames exist.
    """
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for username=%s", username)
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)
    if not user.is_active:
        logger.info("Login refused for inactive user %s", user.id)
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)
    return user


# ── JWT helpers ─────────────────────────────────────────────────────

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_access_token(user: User) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    payload = {
        "sub": str(user.id),
        "role": UserRole(user.role).value,
        "department_id": str(user.department_id) if user.department_id else None,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


# ── Session management ──────────────────────────────────────────────

async def create_session(
    db: AsyncSession,
    user: User,
    ip: Optional[str],
    user_agent: Optional[str],
) -> tuple[str, int]:
    """Issue an access token and persist its session.  Returns (token, expires_in)."""
    access_token, expires_in = create_access_token(user)

    session = UserSession(
        user_id=user.id,
        token_hash=hash_token(access_token),
        ip_address=ip,
        user_agent=user_agent,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    )
    db.add(session)
    user.last_login_at = datetime.now(timezone.utc)
    await db.flush()

    logger.info("User %s logged in from %s", user.id, ip)
    return access_token, expires_in


async def revoke_session(db: AsyncSession, token_hash: str) -> None:
    """Mark a session as revoked by its token hash."""
    result = await db.execute(
        select(UserSession).where(UserSession.token_hash == token_hash),
    )
    session = result.scalars().first()
    if session:
        session.is_revoked = True
        await db.flush()


async def revoke_all_user_sessions(db: AsyncSession, user_id: uuid.UUID) -> None:
    """Revoke every active session of a user (deactivation, password reset)."""
    result = await db.execute(
        select(UserSession).where(
            UserSession.user_id == user_id,
            UserSession.is_revoked.is_(False),
        ),
    )
    for session in result.scalars().all():
        session.is_revoked = True
    await db.flush()
