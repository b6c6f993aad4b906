"""Coach accounts and profiles."""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.auth import hash_password
from gymcoach.core.errors import Conflict, ValidationFailed
from gymcoach.dependencies import atomic
from gymcoach.models.coach_profile import CoachProfile
from gymcoach.models.user import User, UserRole, UserStatus
from gymcoach.services import identity_service

logger = logging.getLogger("gymcoach.services.coach")


@dataclass
class CoachAccount:
    name: str
    email: str
    password: str
    specialty: str
    certifications: str | None = None
    bio: str | None = None
    schedule: str | None = None


@dataclass
class CoachProfileUpdate:
    """Fields left as None are not touched."""

    name: str | None = None
    specialty: str | None = None
    certifications: str | None = None
    bio: str | None = None
    schedule: str | None = None


PROFILE_FIELDS = ("specialty", "certifications", "bio", "schedule")


async def create_coach(
    db: AsyncSession,
    *,
    admin_user_id: uuid.UUID,
    account: CoachAccount,
) -> tuple[User, CoachProfile]:
    """Admin creates an active coach user together with its profile."""
    identity_service.require_role(
        await identity_service.resolve(db, admin_user_id), UserRole.admin
    )
    if not account.name.strip() or not account.specialty.strip():
        raise ValidationFailed("Name and specialty are required")

    result = await db.execute(select(User.id).where(User.email == account.email))
    if result.scalar_one_or_none() is not None:
        raise Conflict("Email already registered", code="email_taken")

    async with atomic(db, conflict_detail="Email already registered"):
        user = User(
            name=account.name.strip(),
            email=account.email,
            password_hash=hash_password(account.password),
            role=UserRole.coach,
            status=UserStatus.active,
        )
        db.add(user)
        await db.flush()

        profile = CoachProfile(
            user_id=user.id,
            specialty=account.specialty,
            certifications=account.certifications,
            bio=account.bio,
            schedule=account.schedule,
        )
        db.add(profile)

    logger.info("Admin %s created coach %s", admin_user_id, user.id)
    return user, profile


async def update_profile(
    db: AsyncSession,
    *,
    coach_user_id: uuid.UUID,
    changes: CoachProfileUpdate,
) -> CoachProfile:
    """Apply the provided fields; creates the profile on first use."""
    identity = identity_service.require_role(
        await identity_service.resolve(db, coach_user_id), UserRole.coach
    )
    if changes.name is not None and not changes.name.strip():
        raise ValidationFailed("Name must not be blank")

    async with atomic(db, conflict_detail="Coach profile was created concurrently, retry"):
        if identity.coach_profile_id is None:
            profile = CoachProfile(user_id=coach_user_id)
            db.add(profile)
        else:
            profile = await db.get(CoachProfile, identity.coach_profile_id)

        for field in PROFILE_FIELDS:
            value = getattr(changes, field)
            if value is not None:
                setattr(profile, field, value)

        if changes.name is not None:
            user = await db.get(User, coach_user_id)
            user.name = changes.name.strip()

    return profile


async def list_available_coaches(db: AsyncSession) -> list[dict]:
    """Coaches whose account is active, by name."""
    result = await db.execute(
        select(CoachProfile, User)
        .join(User, User.id == CoachProfile.user_id)
        .where(User.status == UserStatus.active, User.role == UserRole.coach)
        .order_by(User.name.asc())
    )
    return [
        {
            "id": profile.id,
            "user_id": user.id,
            "name": user.name,
            "specialty": profile.specialty,
            "certifications": profile.certifications,
            "bio": profile.bio,
            "schedule": profile.schedule,
        }
        for profile, user in result.all()
    ]
