"""Routine assignment engine: who trains which routine, and on which days.

Lifecycle per row: active -> completed | cancelled, both terminal. A client
has at most one active assignment; assigning a new routine completes the
previous one in the same unit of work.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, time, timezone

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from gymcoach.core.errors import Forbidden, NotFound, ValidationFailed
from gymcoach.core.state_machine import ROUTINE_ASSIGNMENT
from gymcoach.dependencies import atomic
from gymcoach.models.coach_profile import CoachProfile
from gymcoach.models.notification import NotificationType
from gymcoach.models.routine import Routine, RoutineExercise
from gymcoach.models.routine_assignment import (
    WEEKDAY_ORDER,
    RoutineAssignment,
    RoutineAssignmentState,
    TrainingDay,
    Weekday,
)
from gymcoach.models.user import User
from gymcoach.services import (
    coach_assignment_service,
    exercise_service,
    identity_service,
    notification_service,
)

logger = logging.getLogger("gymcoach.services.routine_assignment")

CONCURRENT_ASSIGNMENT = "Another routine assignment for this client is in progress, retry"

# Client listing order: active first, then completed, then cancelled
_STATE_RANK = case(
    (RoutineAssignment.state == RoutineAssignmentState.active, 0),
    (RoutineAssignment.state == RoutineAssignmentState.completed, 1),
    else_=2,
)


@dataclass
class TrainingDaySpec:
    weekday: str
    start_time: time | None = None
    end_time: time | None = None
    notes: str | None = None


def parse_weekday(value: str) -> Weekday:
    """Canonical lowercase weekday token, or ValidationFailed."""
    try:
        return Weekday(value.strip().lower())
    except ValueError:
        valid = ", ".join(d.value for d in Weekday)
        raise ValidationFailed(
            f"Invalid weekday: {value}. Valid days are: {valid}", code="invalid_weekday"
        )


def parse_training_days(entries: list[TrainingDaySpec]) -> list[tuple[Weekday, TrainingDaySpec]]:
    """Validate a weekday schedule. Reports every bad token at once."""
    invalid = []
    parsed = []
    seen = set()
    for entry in entries:
        token = entry.weekday.strip().lower()
        try:
            weekday = Weekday(token)
        except ValueError:
            invalid.append(entry.weekday)
            continue
        if weekday in seen:
            raise ValidationFailed(
                f"Weekday listed more than once: {weekday.value}", code="duplicate_weekday"
            )
        if entry.start_time and entry.end_time and entry.start_time >= entry.end_time:
            raise ValidationFailed(
                f"Training window on {weekday.value} must end after it starts",
                code="invalid_time_window",
            )
        seen.add(weekday)
        parsed.append((weekday, entry))

    if invalid:
        valid = ", ".join(d.value for d in Weekday)
        raise ValidationFailed(
            f"Invalid weekdays: {', '.join(invalid)}. Valid days are: {valid}",
            code="invalid_weekday",
        )
    return sorted(parsed, key=lambda item: WEEKDAY_ORDER.index(item[0]))


async def get_owned_routine(
    db: AsyncSession,
    *,
    coach_profile_id: uuid.UUID,
    routine_id: uuid.UUID,
    lock: bool = False,
) -> Routine:
    """The routine if this coach owns it. Foreign and missing routines look the same.

    With `lock`, the row is selected FOR UPDATE so writers of one routine
    serialize on it. A writer that waited on a deletion finds the routine gone.
    """
    stmt = select(Routine).where(Routine.id == routine_id, Routine.coach_id == coach_profile_id)
    if lock:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    routine = result.scalar_one_or_none()
    if routine is None:
        raise NotFound("Routine not found", code="routine_not_found")
    return routine


async def require_active_client(
    db: AsyncSession,
    *,
    coach_profile_id: uuid.UUID,
    client_id: uuid.UUID,
) -> None:
    """Lock the coach-client link; Forbidden unless it is active."""
    link = await coach_assignment_service.get_active_assignment(
        db, coach_profile_id=coach_profile_id, client_id=client_id, lock=True
    )
    if link is None:
        raise Forbidden(
            "Client is not assigned to this coach", code="client_not_assigned"
        )


async def activate(
    db: AsyncSession,
    *,
    routine: Routine,
    client_id: uuid.UUID,
    coach_user_id: uuid.UUID,
    days: list[tuple[Weekday, TrainingDaySpec]] | None = None,
    started_at: datetime | None = None,
    ended_at: datetime | None = None,
    coach_notes: str | None = None,
    notification_type: NotificationType = NotificationType.routine_assigned,
) -> tuple[RoutineAssignment, list[TrainingDay]]:
    """Complete the client's current assignment and insert the new active one.

    Must run inside the caller's `atomic` block; preconditions are the
    caller's job.
    """
    now = datetime.now(timezone.utc)

    result = await db.execute(
        select(RoutineAssignment).where(
            RoutineAssignment.client_id == client_id,
            RoutineAssignment.state == RoutineAssignmentState.active,
        )
    )
    superseded = list(result.scalars().all())
    for prior in superseded:
        ROUTINE_ASSIGNMENT.transition(prior.state, RoutineAssignmentState.completed)
        prior.state = RoutineAssignmentState.completed
        prior.ended_at = now
    # Demotions reach the database before the insert so the
    # one-active-per-client index never sees two active rows.
    await db.flush()

    assignment = RoutineAssignment(
        routine_id=routine.id,
        routine_name=routine.name,
        client_id=client_id,
        state=RoutineAssignmentState.active,
        assigned_at=now,
        started_at=started_at or now,
        ended_at=ended_at,
        coach_notes=coach_notes,
    )
    db.add(assignment)
    await db.flush()

    training_days = []
    for weekday, entry in days or []:
        day = TrainingDay(
            assignment_id=assignment.id,
            weekday=weekday,
            start_time=entry.start_time,
            end_time=entry.end_time,
            notes=entry.notes,
        )
        db.add(day)
        training_days.append(day)
    await db.flush()

    if notification_type == NotificationType.new_personalized_routine:
        title = "New personalized routine"
        message = f"Your coach created a routine just for you: {routine.name}"
    else:
        title = "New routine assigned"
        message = f"Your coach assigned you the routine {routine.name}"
    if training_days:
        message += " (" + ", ".join(d.weekday.value for d in training_days) + ")"

    await notification_service.emit(
        db,
        recipient_id=client_id,
        type=notification_type,
        title=title,
        message=message,
        origin_user_id=coach_user_id,
    )

    logger.info(
        "Routine %s assigned to client %s (assignment %s, superseded %d)",
        routine.id,
        client_id,
        assignment.id,
        len(superseded),
    )
    return assignment, training_days


async def assign_routine(
    db: AsyncSession,
    *,
    coach_user_id: uuid.UUID,
    routine_id: uuid.UUID,
    client_id: uuid.UUID,
    training_days: list[TrainingDaySpec] | None = None,
    started_at: datetime | None = None,
    ended_at: datetime | None = None,
    coach_notes: str | None = None,
) -> tuple[RoutineAssignment, list[TrainingDay]]:
    """Make `routine_id` the client's single active routine.

    The newest assignment always wins: any active assignment of the client is
    completed first. Weekday schedules are never merged across routines.
    """
    identity = await identity_service.resolve_coach(db, coach_user_id)
    routine = await get_owned_routine(
        db, coach_profile_id=identity.coach_profile_id, routine_id=routine_id, lock=True
    )
    await require_active_client(
        db, coach_profile_id=identity.coach_profile_id, client_id=client_id
    )
    days = parse_training_days(training_days or [])
    if started_at and ended_at and ended_at < started_at:
        raise ValidationFailed("ended_at must not be before started_at", code="invalid_dates")

    async with atomic(db, conflict_detail=CONCURRENT_ASSIGNMENT):
        assignment, created_days = await activate(
            db,
            routine=routine,
            client_id=client_id,
            coach_user_id=coach_user_id,
            days=days,
            started_at=started_at,
            ended_at=ended_at,
            coach_notes=coach_notes or "Assigned from the coach panel",
        )
    return assignment, created_days


async def complete_routine(
    db: AsyncSession,
    *,
    client_user_id: uuid.UUID,
    routine_id: uuid.UUID,
) -> RoutineAssignment:
    """Client marks their active assignment of `routine_id` as done."""
    await identity_service.resolve_client(db, client_user_id)
    result = await db.execute(
        select(RoutineAssignment)
        .where(
            RoutineAssignment.client_id == client_user_id,
            RoutineAssignment.routine_id == routine_id,
            RoutineAssignment.state == RoutineAssignmentState.active,
        )
        .with_for_update()
    )
    assignment = result.scalar_one_or_none()
    if assignment is None:
        raise NotFound("No active assignment for this routine", code="assignment_not_found")

    ROUTINE_ASSIGNMENT.transition(assignment.state, RoutineAssignmentState.completed)
    async with atomic(db):
        assignment.state = RoutineAssignmentState.completed
        assignment.ended_at = datetime.now(timezone.utc)

    logger.info("Client %s completed assignment %s", client_user_id, assignment.id)
    return assignment


async def cancel_for_routine(
    db: AsyncSession,
    *,
    routine: Routine,
    coach_user_id: uuid.UUID,
) -> list[RoutineAssignment]:
    """Cancel every active assignment of a routine that is going away.

    Must run inside the caller's `atomic` block.
    """
    now = datetime.now(timezone.utc)
    result = await db.execute(
        select(RoutineAssignment).where(
            RoutineAssignment.routine_id == routine.id,
            RoutineAssignment.state == RoutineAssignmentState.active,
        )
    )
    cancelled = list(result.scalars().all())
    for assignment in cancelled:
        ROUTINE_ASSIGNMENT.transition(assignment.state, RoutineAssignmentState.cancelled)
        assignment.state = RoutineAssignmentState.cancelled
        assignment.ended_at = now
        await notification_service.emit(
            db,
            recipient_id=assignment.client_id,
            type=NotificationType.routine_cancelled,
            title="Routine cancelled",
            message=f"Your coach removed the routine {routine.name}",
            origin_user_id=coach_user_id,
        )
    await db.flush()
    return cancelled


# ── Client views ──


async def list_client_routines(db: AsyncSession, client_user_id: uuid.UUID) -> list[dict]:
    """Every assignment of the client: active first, then by newest."""
    await identity_service.resolve_client(db, client_user_id)
    coach_user = aliased(User)
    exercise_count = (
        select(func.count(RoutineExercise.id))
        .where(RoutineExercise.routine_id == RoutineAssignment.routine_id)
        .correlate(RoutineAssignment)
        .scalar_subquery()
    )
    result = await db.execute(
        select(RoutineAssignment, Routine, coach_user.name, exercise_count)
        .outerjoin(Routine, Routine.id == RoutineAssignment.routine_id)
        .outerjoin(CoachProfile, CoachProfile.id == Routine.coach_id)
        .outerjoin(coach_user, coach_user.id == CoachProfile.user_id)
        .where(RoutineAssignment.client_id == client_user_id)
        .order_by(_STATE_RANK, RoutineAssignment.assigned_at.desc())
    )
    return [
        {
            **_assignment_summary(assignment, routine),
            "coach_name": coach_name,
            "exercise_count": count or 0,
        }
        for assignment, routine, coach_name, count in result.all()
    ]


async def get_client_routine(
    db: AsyncSession,
    *,
    client_user_id: uuid.UUID,
    routine_id: uuid.UUID,
) -> dict:
    """Detail of a routine that was assigned to the client at some point."""
    await identity_service.resolve_client(db, client_user_id)
    result = await db.execute(
        select(RoutineAssignment, Routine)
        .join(Routine, Routine.id == RoutineAssignment.routine_id)
        .where(
            RoutineAssignment.client_id == client_user_id,
            RoutineAssignment.routine_id == routine_id,
        )
        .order_by(_STATE_RANK, RoutineAssignment.assigned_at.desc())
        .limit(1)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFound("Routine not found", code="routine_not_found")

    assignment, routine = row
    return {
        **_assignment_summary(assignment, routine),
        "description": routine.description,
        "exercises": await exercise_service.get_routine_exercises(db, routine.id),
    }


async def get_active_routine(
    db: AsyncSession,
    *,
    client_user_id: uuid.UUID,
    weekday: str | None = None,
) -> dict | None:
    """The client's active assignment with its schedule.

    With `weekday`, returns None unless the assignment trains on that day.
    """
    await identity_service.resolve_client(db, client_user_id)
    day = parse_weekday(weekday) if weekday is not None else None

    result = await db.execute(
        select(RoutineAssignment, Routine)
        .join(Routine, Routine.id == RoutineAssignment.routine_id)
        .where(
            RoutineAssignment.client_id == client_user_id,
            RoutineAssignment.state == RoutineAssignmentState.active,
        )
    )
    row = result.one_or_none()
    if row is None:
        return None

    assignment, routine = row
    training_days = await _load_training_days(db, assignment.id)
    if day is not None and day not in {d.weekday for d in training_days}:
        return None

    return {
        **_assignment_summary(assignment, routine),
        "description": routine.description,
        "training_days": training_days,
        "exercises": await exercise_service.get_routine_exercises(db, routine.id),
    }


async def get_training_days(
    db: AsyncSession,
    *,
    client_user_id: uuid.UUID,
    assignment_id: uuid.UUID,
) -> list[TrainingDay]:
    """Schedule of one of the client's assignments, monday first."""
    await identity_service.resolve_client(db, client_user_id)
    result = await db.execute(
        select(RoutineAssignment.id).where(
            RoutineAssignment.id == assignment_id,
            RoutineAssignment.client_id == client_user_id,
        )
    )
    if result.scalar_one_or_none() is None:
        raise NotFound("Assignment not found", code="assignment_not_found")
    return await _load_training_days(db, assignment_id)


async def _load_training_days(db: AsyncSession, assignment_id: uuid.UUID) -> list[TrainingDay]:
    result = await db.execute(
        select(TrainingDay).where(TrainingDay.assignment_id == assignment_id)
    )
    days = list(result.scalars().all())
    return sorted(days, key=lambda d: WEEKDAY_ORDER.index(d.weekday))


def _assignment_summary(assignment: RoutineAssignment, routine: Routine | None) -> dict:
    return {
        "assignment_id": assignment.id,
        "routine_id": assignment.routine_id,
        "routine_name": routine.name if routine is not None else assignment.routine_name,
        "goal": routine.goal if routine is not None else None,
        "difficulty": routine.difficulty.value if routine is not None else None,
        "estimated_minutes": routine.estimated_minutes if routine is not None else None,
        "state": assignment.state.value,
        "assigned_at": assignment.assigned_at,
        "started_at": assignment.started_at,
        "ended_at": assignment.ended_at,
        "coach_notes": assignment.coach_notes,
    }
