"""Exercise catalog lookups."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.models.exercise import Exercise
from gymcoach.models.routine import RoutineExercise


async def get_exercises(db: AsyncSession) -> list[Exercise]:
    """All catalog exercises ordered by name."""
    result = await db.execute(select(Exercise).order_by(Exercise.name.asc()))
    return list(result.scalars().all())


async def find_missing(db: AsyncSession, exercise_ids: list[uuid.UUID]) -> list[uuid.UUID]:
    """Return the ids in `exercise_ids` that are not in the catalog, in input order."""
    wanted = set(exercise_ids)
    if not wanted:
        return []
    result = await db.execute(select(Exercise.id).where(Exercise.id.in_(wanted)))
    found = set(result.scalars().all())
    missing = []
    for exercise_id in exercise_ids:
        if exercise_id not in found and exercise_id not in missing:
            missing.append(exercise_id)
    return missing


async def get_routine_exercises(db: AsyncSession, routine_id: uuid.UUID) -> list[dict]:
    """A routine's exercises joined with their catalog entries, in position order."""
    result = await db.execute(
        select(RoutineExercise, Exercise)
        .join(Exercise, Exercise.id == RoutineExercise.exercise_id)
        .where(RoutineExercise.routine_id == routine_id)
        .order_by(RoutineExercise.position.asc())
    )
    return [
        {
            "id": slot.id,
            "exercise_id": exercise.id,
            "name": exercise.name,
            "muscle_groups": exercise.muscle_groups,
            "equipment": exercise.equipment,
            "position": slot.position,
            "sets": slot.sets,
            "reps": slot.reps,
            "rest_seconds": slot.rest_seconds,
            "notes": slot.notes,
        }
        for slot, exercise in result.all()
    ]
