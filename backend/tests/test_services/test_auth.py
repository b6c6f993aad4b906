from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.auth import (
    hash_password,
    login_user,
    logout_user,
    register_user,
    verify_email,
    verify_password,
)
from gymcoach.models.session import Session
from gymcoach.models.user import UserRole, UserStatus


@pytest.mark.asyncio
async def test_hash_and_verify_password():
    """bcrypt hash and verify round-trip."""
    pw = "SecurePass123!"
    hashed = hash_password(pw)
    assert hashed != pw
    assert verify_password(pw, hashed) is True
    assert verify_password("WrongPass", hashed) is False


@pytest.mark.asyncio
async def test_register_creates_inactive_client(db_session: AsyncSession):
    user = await register_user(
        db_session, name="Rita", email="register@example.com", password="SecurePass123!"
    )
    await db_session.commit()

    assert user.role == UserRole.client
    assert user.status == UserStatus.inactive
    assert user.verification_token is not None
    assert user.verification_expires_at is not None
    assert verify_password("SecurePass123!", user.password_hash) is True


@pytest.mark.asyncio
async def test_register_duplicate_email(db_session: AsyncSession):
    """Register with duplicate email raises 409."""
    await register_user(db_session, name="A", email="dup@example.com", password="Pass1234!")
    await db_session.commit()

    with pytest.raises(HTTPException) as exc_info:
        await register_user(db_session, name="B", email="dup@example.com", password="Pass4567!")
    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_login_requires_verified_account(db_session: AsyncSession):
    user = await register_user(
        db_session, name="Vera", email="verify@example.com", password="Pass1234!"
    )

    with pytest.raises(HTTPException) as exc_info:
        await login_user(db_session, email="verify@example.com", password="Pass1234!")
    assert exc_info.value.status_code == 403

    verified = await verify_email(db_session, token=user.verification_token)
    assert verified.status == UserStatus.active
    assert verified.verification_token is None

    logged_in, token = await login_user(
        db_session, email="verify@example.com", password="Pass1234!"
    )
    assert logged_in.id == user.id
    assert len(token) == 64


@pytest.mark.asyncio
async def test_verify_rejects_unknown_and_expired_tokens(db_session: AsyncSession):
    with pytest.raises(HTTPException) as exc_info:
        await verify_email(db_session, token="nope")
    assert exc_info.value.status_code == 400

    user = await register_user(
        db_session, name="Late", email="late@example.com", password="Pass1234!"
    )
    user.verification_expires_at = datetime.now(timezone.utc) - timedelta(hours=1)
    await db_session.flush()

    with pytest.raises(HTTPException) as exc_info:
        await verify_email(db_session, token=user.verification_token)
    assert exc_info.value.detail == "Verification token expired"
    assert user.status == UserStatus.inactive


@pytest.mark.asyncio
async def test_login_wrong_password(db_session: AsyncSession):
    user = await register_user(
        db_session, name="W", email="wrong@example.com", password="Pass1234!"
    )
    await verify_email(db_session, token=user.verification_token)

    with pytest.raises(HTTPException) as exc_info:
        await login_user(db_session, email="wrong@example.com", password="Nope1234!")
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_session(db_session: AsyncSession):
    user = await register_user(
        db_session, name="Out", email="out@example.com", password="Pass1234!"
    )
    await verify_email(db_session, token=user.verification_token)
    _, token = await login_user(db_session, email="out@example.com", password="Pass1234!")

    await logout_user(db_session, token=token)

    result = await db_session.execute(select(Session).where(Session.token == token))
    assert result.scalar_one().revoked is True
