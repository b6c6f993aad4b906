"""Routine service: coach-authored routines and their exercise lists.

Routine creation, exercise replacement and deletion each run as one unit of
work. Creating a routine for a specific client also assigns it to them.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.errors import ValidationFailed
from gymcoach.dependencies import atomic
from gymcoach.models.notification import NotificationType
from gymcoach.models.routine import Routine, RoutineDifficulty, RoutineExercise
from gymcoach.models.routine_assignment import RoutineAssignment
from gymcoach.models.user import User
from gymcoach.services import exercise_service, identity_service, routine_assignment_service

logger = logging.getLogger("gymcoach.services.routine")


@dataclass
class RoutineDraft:
    """Editable routine metadata with the defaults applied on creation."""

    name: str
    description: str | None = None
    goal: str | None = None
    difficulty: RoutineDifficulty = RoutineDifficulty.intermediate
    estimated_minutes: int = 60


@dataclass
class ExerciseSlot:
    exercise_id: uuid.UUID
    position: int | None = None
    sets: int = 3
    reps: str = "12"
    rest_seconds: int = 60
    notes: str | None = None


def _validate_draft(draft: RoutineDraft) -> str:
    name = (draft.name or "").strip()
    if not name:
        raise ValidationFailed("Routine name is required", code="missing_name")
    if draft.estimated_minutes <= 0:
        raise ValidationFailed("estimated_minutes must be positive")
    return name


async def _validate_slots(db: AsyncSession, slots: list[ExerciseSlot]) -> list[ExerciseSlot]:
    """Check a non-empty exercise list and return it in display order."""
    if not slots:
        raise ValidationFailed(
            "A routine needs at least one exercise", code="empty_exercise_list"
        )
    for slot in slots:
        if slot.sets <= 0:
            raise ValidationFailed("sets must be positive")
        if slot.rest_seconds < 0:
            raise ValidationFailed("rest_seconds must not be negative")

    missing = await exercise_service.find_missing(db, [s.exercise_id for s in slots])
    if missing:
        raise ValidationFailed(
            "Unknown exercises: " + ", ".join(str(m) for m in missing),
            code="unknown_exercise",
        )

    # Explicit positions first, then list order for the rest
    indexed = list(enumerate(slots))
    indexed.sort(
        key=lambda item: (item[1].position if item[1].position is not None else item[0] + 1, item[0])
    )
    return [slot for _, slot in indexed]


async def _insert_exercises(
    db: AsyncSession,
    routine_id: uuid.UUID,
    slots: list[ExerciseSlot],
) -> list[RoutineExercise]:
    """Insert slots with positions renumbered 1..n."""
    rows = []
    for position, slot in enumerate(slots, start=1):
        row = RoutineExercise(
            routine_id=routine_id,
            exercise_id=slot.exercise_id,
            position=position,
            sets=slot.sets,
            reps=slot.reps,
            rest_seconds=slot.rest_seconds,
            notes=slot.notes,
        )
        db.add(row)
        rows.append(row)
    await db.flush()
    return rows


async def create_routine(
    db: AsyncSession,
    *,
    coach_user_id: uuid.UUID,
    draft: RoutineDraft,
    exercises: list[ExerciseSlot],
    target_client_id: uuid.UUID | None = None,
) -> tuple[Routine, bool]:
    """Create a routine with its exercises. Returns (routine, assigned).

    With `target_client_id` the routine is personalized and becomes the
    client's active routine in the same unit of work.
    """
    identity = await identity_service.resolve_coach(db, coach_user_id)
    name = _validate_draft(draft)
    slots = await _validate_slots(db, exercises)
    if target_client_id is not None:
        await routine_assignment_service.require_active_client(
            db, coach_profile_id=identity.coach_profile_id, client_id=target_client_id
        )

    async with atomic(db, conflict_detail=routine_assignment_service.CONCURRENT_ASSIGNMENT):
        routine = Routine(
            coach_id=identity.coach_profile_id,
            name=name,
            description=draft.description,
            goal=draft.goal,
            difficulty=draft.difficulty,
            estimated_minutes=draft.estimated_minutes,
            is_personalized=target_client_id is not None,
            target_client_id=target_client_id,
        )
        db.add(routine)
        await db.flush()

        await _insert_exercises(db, routine.id, slots)

        if target_client_id is not None:
            await routine_assignment_service.activate(
                db,
                routine=routine,
                client_id=target_client_id,
                coach_user_id=coach_user_id,
                coach_notes="Personalized routine assigned on creation",
                notification_type=NotificationType.new_personalized_routine,
            )

    logger.info(
        "Coach %s created routine %s with %d exercises", coach_user_id, routine.id, len(slots)
    )
    return routine, target_client_id is not None


async def update_routine(
    db: AsyncSession,
    *,
    coach_user_id: uuid.UUID,
    routine_id: uuid.UUID,
    draft: RoutineDraft,
) -> Routine:
    """Replace the routine's metadata."""
    identity = await identity_service.resolve_coach(db, coach_user_id)
    routine = await routine_assignment_service.get_owned_routine(
        db, coach_profile_id=identity.coach_profile_id, routine_id=routine_id
    )
    name = _validate_draft(draft)

    async with atomic(db):
        routine.name = name
        routine.description = draft.description
        routine.goal = draft.goal
        routine.difficulty = draft.difficulty
        routine.estimated_minutes = draft.estimated_minutes
    return routine


async def replace_routine_exercises(
    db: AsyncSession,
    *,
    coach_user_id: uuid.UUID,
    routine_id: uuid.UUID,
    exercises: list[ExerciseSlot],
) -> list[RoutineExercise]:
    """Full replace of the routine's exercise list."""
    identity = await identity_service.resolve_coach(db, coach_user_id)
    routine = await routine_assignment_service.get_owned_routine(
        db, coach_profile_id=identity.coach_profile_id, routine_id=routine_id, lock=True
    )
    slots = await _validate_slots(db, exercises)

    async with atomic(db):
        await db.execute(delete(RoutineExercise).where(RoutineExercise.routine_id == routine.id))
        rows = await _insert_exercises(db, routine.id, slots)

    logger.info("Routine %s exercises replaced (%d)", routine.id, len(rows))
    return rows


async def delete_routine(
    db: AsyncSession,
    *,
    coach_user_id: uuid.UUID,
    routine_id: uuid.UUID,
) -> None:
    """Delete a routine: cancel its active assignments, drop its exercises and the row."""
    identity = await identity_service.resolve_coach(db, coach_user_id)
    routine = await routine_assignment_service.get_owned_routine(
        db, coach_profile_id=identity.coach_profile_id, routine_id=routine_id, lock=True
    )

    async with atomic(db):
        cancelled = await routine_assignment_service.cancel_for_routine(
            db, routine=routine, coach_user_id=coach_user_id
        )
        # Assignment history outlives the routine; routine_name keeps the label.
        await db.execute(
            update(RoutineAssignment)
            .where(RoutineAssignment.routine_id == routine.id)
            .values(routine_id=None)
            .execution_options(synchronize_session="fetch")
        )
        await db.execute(delete(RoutineExercise).where(RoutineExercise.routine_id == routine.id))
        await db.delete(routine)

    logger.info("Routine %s deleted, %d assignments cancelled", routine_id, len(cancelled))


async def list_routines(db: AsyncSession, coach_user_id: uuid.UUID) -> list[Routine]:
    """The coach's routines, newest first."""
    identity = await identity_service.resolve_coach(db, coach_user_id)
    result = await db.execute(
        select(Routine)
        .where(Routine.coach_id == identity.coach_profile_id)
        .order_by(Routine.created_at.desc())
    )
    return list(result.scalars().all())


async def get_routine(
    db: AsyncSession,
    *,
    coach_user_id: uuid.UUID,
    routine_id: uuid.UUID,
) -> dict:
    """A routine of this coach with its ordered exercises."""
    identity = await identity_service.resolve_coach(db, coach_user_id)
    routine = await routine_assignment_service.get_owned_routine(
        db, coach_profile_id=identity.coach_profile_id, routine_id=routine_id
    )
    return {
        "id": routine.id,
        "name": routine.name,
        "description": routine.description,
        "goal": routine.goal,
        "difficulty": routine.difficulty.value,
        "estimated_minutes": routine.estimated_minutes,
        "is_personalized": routine.is_personalized,
        "target_client_id": routine.target_client_id,
        "created_at": routine.created_at,
        "exercises": await exercise_service.get_routine_exercises(db, routine.id),
    }


async def list_routine_assignments(
    db: AsyncSession,
    *,
    coach_user_id: uuid.UUID,
    routine_id: uuid.UUID,
) -> list[dict]:
    """Every assignment of one of the coach's routines, newest first."""
    identity = await identity_service.resolve_coach(db, coach_user_id)
    routine = await routine_assignment_service.get_owned_routine(
        db, coach_profile_id=identity.coach_profile_id, routine_id=routine_id
    )
    result = await db.execute(
        select(RoutineAssignment, User)
        .join(User, User.id == RoutineAssignment.client_id)
        .where(RoutineAssignment.routine_id == routine.id)
        .order_by(RoutineAssignment.assigned_at.desc())
    )
    return [
        {
            "assignment_id": assignment.id,
            "client_id": user.id,
            "name": user.name,
            "email": user.email,
            "state": assignment.state.value,
            "assigned_at": assignment.assigned_at,
            "ended_at": assignment.ended_at,
        }
        for assignment, user in result.all()
    ]
