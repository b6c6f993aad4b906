"""Identity & role resolver: who is acting, and as what."""

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.errors import Forbidden, NotFound
from gymcoach.models.coach_profile import CoachProfile
from gymcoach.models.user import User, UserRole, UserStatus


@dataclass(frozen=True)
class Identity:
    user_id: uuid.UUID
    role: UserRole
    status: UserStatus
    coach_profile_id: uuid.UUID | None = None


async def resolve(db: AsyncSession, user_id: uuid.UUID) -> Identity:
    """Map a user id to its role and, for coaches, its coach-profile id."""
    result = await db.execute(select(User.role, User.status).where(User.id == user_id))
    row = result.one_or_none()
    if row is None:
        raise NotFound("User not found", code="user_not_found")

    role, status = row
    coach_profile_id = None
    if role == UserRole.coach:
        result = await db.execute(
            select(CoachProfile.id).where(CoachProfile.user_id == user_id)
        )
        coach_profile_id = result.scalar_one_or_none()

    return Identity(
        user_id=user_id,
        role=role,
        status=status,
        coach_profile_id=coach_profile_id,
    )


def require_role(identity: Identity, *roles: UserRole) -> Identity:
    if identity.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise Forbidden(f"This action requires role: {allowed}", code="wrong_role")
    return identity


async def resolve_client(db: AsyncSession, user_id: uuid.UUID) -> Identity:
    return require_role(await resolve(db, user_id), UserRole.client)


async def resolve_coach(db: AsyncSession, user_id: uuid.UUID) -> Identity:
    """Resolve a coach and insist on an existing coach profile."""
    identity = require_role(await resolve(db, user_id), UserRole.coach)
    if identity.coach_profile_id is None:
        raise NotFound("Coach profile not found", code="coach_profile_not_found")
    return identity
