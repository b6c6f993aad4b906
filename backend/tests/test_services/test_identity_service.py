import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.errors import Forbidden, NotFound
from gymcoach.models.coach_profile import CoachProfile
from gymcoach.models.user import User, UserRole, UserStatus
from gymcoach.services import identity_service


async def _create_user(db: AsyncSession, email: str, role: UserRole = UserRole.client) -> User:
    user = User(name=email.split("@")[0], email=email, password_hash="hashed",
                role=role, status=UserStatus.active)
    db.add(user)
    await db.flush()
    return user


@pytest.mark.asyncio
async def test_resolve_client(db_session: AsyncSession):
    user = await _create_user(db_session, "client@test.com")
    identity = await identity_service.resolve(db_session, user.id)
    assert identity.user_id == user.id
    assert identity.role == UserRole.client
    assert identity.coach_profile_id is None


@pytest.mark.asyncio
async def test_resolve_coach_includes_profile(db_session: AsyncSession):
    user = await _create_user(db_session, "coach@test.com", UserRole.coach)
    profile = CoachProfile(user_id=user.id, specialty="Strength")
    db_session.add(profile)
    await db_session.flush()

    identity = await identity_service.resolve_coach(db_session, user.id)
    assert identity.coach_profile_id == profile.id


@pytest.mark.asyncio
async def test_resolve_unknown_user(db_session: AsyncSession):
    with pytest.raises(NotFound) as exc_info:
        await identity_service.resolve(db_session, uuid.uuid4())
    assert exc_info.value.code == "user_not_found"


@pytest.mark.asyncio
async def test_resolve_coach_without_profile(db_session: AsyncSession):
    user = await _create_user(db_session, "bare@test.com", UserRole.coach)
    with pytest.raises(NotFound, match="Coach profile not found"):
        await identity_service.resolve_coach(db_session, user.id)


@pytest.mark.asyncio
async def test_role_mismatch_is_forbidden(db_session: AsyncSession):
    user = await _create_user(db_session, "client2@test.com")
    with pytest.raises(Forbidden) as exc_info:
        await identity_service.resolve_coach(db_session, user.id)
    assert exc_info.value.code == "wrong_role"
    assert exc_info.value.status_code == 403
