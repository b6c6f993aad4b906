"""Routine <-> client relationship rows and their weekday schedule.

A client has at most one active routine assignment. Superseded assignments
become completed; assignments of a deleted routine become cancelled and keep
the routine name as a snapshot.
"""

import enum
import uuid
from datetime import datetime, time

from sqlalchemy import (
    DateTime, Enum, ForeignKey, Index, String, Time, UniqueConstraint, func, text,
)
from sqlalchemy.orm import Mapped, mapped_column

from gymcoach.models.base import Base, generate_uuid, utcnow


class RoutineAssignmentState(str, enum.Enum):
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


class Weekday(str, enum.Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"


WEEKDAY_ORDER = list(Weekday)


class RoutineAssignment(Base):
    __tablename__ = "routine_assignments"
    __table_args__ = (
        # One active routine per client
        Index(
            "uq_routine_assignment_active_client",
            "client_id",
            unique=True,
            postgresql_where=text("state = 'active'"),
            sqlite_where=text("state = 'active'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    routine_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("routines.id", ondelete="SET NULL"), nullable=True, index=True
    )
    routine_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    state: Mapped[RoutineAssignmentState] = mapped_column(
        Enum(RoutineAssignmentState, native_enum=False),
        default=RoutineAssignmentState.active,
        nullable=False,
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    coach_notes: Mapped[str | None] = mapped_column(String(500), nullable=True)


class TrainingDay(Base):
    """Weekday slot on which an assignment's routine is trained."""

    __tablename__ = "training_days"
    __table_args__ = (
        UniqueConstraint("assignment_id", "weekday", name="uq_training_day_weekday"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    assignment_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("routine_assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    weekday: Mapped[Weekday] = mapped_column(
        Enum(Weekday, native_enum=False), nullable=False
    )
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
