"""Authentication: register, verify, login, logout, get_current_user.

Session-token auth with bcrypt password hashing. Role gates for routes are
built on top of get_current_user.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.config import settings
from gymcoach.dependencies import get_db
from gymcoach.models.session import Session
from gymcoach.models.user import User, UserRole, UserStatus

logger = logging.getLogger("gymcoach.auth")

SESSION_TOKEN_HEADER = "X-Session-Token"


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def _generate_token() -> str:
    """Generate a cryptographically secure token."""
    return secrets.token_hex(32)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def register_user(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
) -> User:
    """Register a new client account, inactive until its email is verified."""
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=UserRole.client,
        status=UserStatus.inactive,
        verification_token=_generate_token(),
        verification_expires_at=datetime.now(timezone.utc)
        + timedelta(hours=settings.verification_token_hours),
    )
    db.add(user)
    await db.flush()

    # Delivery of the token is handled by the mail collaborator.
    logger.info("Registered user %s, verification pending", user.id)
    return user


async def verify_email(db: AsyncSession, *, token: str) -> User:
    """Activate the account that owns a still-valid verification token."""
    result = await db.execute(select(User).where(User.verification_token == token))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid verification token",
        )

    expires_at = user.verification_expires_at
    if expires_at is not None and _as_utc(expires_at) < datetime.now(timezone.utc):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Verification token expired",
        )

    user.status = UserStatus.active
    user.verification_token = None
    user.verification_expires_at = None
    await db.flush()
    logger.info("Verified user %s", user.id)
    return user


async def login_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
) -> tuple[User, str]:
    """Authenticate user, create session, return (user, token).

    Raises HTTPException on invalid credentials or inactive account.
    """
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if user.status != UserStatus.active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active",
        )

    token = _generate_token()
    session = Session(
        user_id=user.id,
        token=token,
        expires_at=datetime.now(timezone.utc)
        + timedelta(hours=settings.session_duration_hours),
    )
    db.add(session)
    await db.flush()

    return user, token


async def logout_user(db: AsyncSession, *, token: str) -> None:
    """Revoke a session token."""
    result = await db.execute(select(Session).where(Session.token == token))
    session = result.scalar_one_or_none()
    if session is None:
        return

    session.revoked = True
    await db.flush()


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """FastAPI dependency: extract and validate the session token, return current user.

    Raises HTTPException 401 if token is missing, invalid, expired, or revoked.
    """
    token = request.headers.get(SESSION_TOKEN_HEADER)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    result = await db.execute(select(Session).where(Session.token == token))
    session = result.scalar_one_or_none()

    if session is None or session.revoked:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or revoked session",
        )

    if _as_utc(session.expires_at) < datetime.now(timezone.utc):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired",
        )

    result = await db.execute(select(User).where(User.id == session.user_id))
    user = result.scalar_one_or_none()

    if user is None or user.status != UserStatus.active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    request.state.user_id = str(user.id)
    return user


def _role_gate(role: UserRole):
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. {role.value.capitalize()} role required",
            )
        return current_user

    return dependency


require_client = _role_gate(UserRole.client)
require_coach = _role_gate(UserRole.coach)
require_admin = _role_gate(UserRole.admin)
