"""Coach <-> client relationship rows.

A client may hold at most one row in {pending, active}. Rejected rows are
kept as history; a new request after a rejection inserts a fresh row.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from gymcoach.models.base import Base, generate_uuid, utcnow


class AssignmentState(str, enum.Enum):
    pending = "pending"
    active = "active"
    rejected = "rejected"


OPEN_ASSIGNMENT_STATES = (AssignmentState.pending, AssignmentState.active)


class CoachClientAssignment(Base):
    __tablename__ = "coach_client_assignments"
    __table_args__ = (
        # One open (pending or active) assignment per client
        Index(
            "uq_coach_assignment_open_client",
            "client_id",
            unique=True,
            postgresql_where=text("state IN ('pending', 'active')"),
            sqlite_where=text("state IN ('pending', 'active')"),
        ),
        Index("idx_coach_assignment_coach_state", "coach_id", "state"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    coach_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("coach_profiles.id", ondelete="CASCADE"), nullable=False
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    state: Mapped[AssignmentState] = mapped_column(
        Enum(AssignmentState, native_enum=False),
        default=AssignmentState.pending,
        nullable=False,
    )
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
