"""Routine models: a coach-authored routine and its ordered exercises."""

import enum
import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gymcoach.models.base import Base, TimestampMixin, generate_uuid


class RoutineDifficulty(str, enum.Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class Routine(TimestampMixin, Base):
    __tablename__ = "routines"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    coach_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("coach_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    goal: Mapped[str | None] = mapped_column(String(255), nullable=True)
    difficulty: Mapped[RoutineDifficulty] = mapped_column(
        Enum(RoutineDifficulty, native_enum=False),
        default=RoutineDifficulty.intermediate,
        nullable=False,
    )
    estimated_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    is_personalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Set only when the routine was created for a specific client
    target_client_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


class RoutineExercise(Base):
    """One exercise slot of a routine. position is dense: 1..n per routine."""

    __tablename__ = "routine_exercises"
    __table_args__ = (
        UniqueConstraint("routine_id", "position", name="uq_routine_exercise_position"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    routine_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("routines.id", ondelete="CASCADE"), nullable=False, index=True
    )
    exercise_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("exercises.id"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    sets: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    reps: Mapped[str] = mapped_column(String(50), nullable=False, default="12")
    rest_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
