"""Seed data: the starter exercise catalog."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.models.exercise import Exercise

EXERCISES = [
    {
        "name": "Barbell Back Squat",
        "description": "Bar on the upper back, sit down between the heels and drive back up.",
        "muscle_groups": "quadriceps, glutes, hamstrings",
        "equipment": "barbell, rack",
    },
    {
        "name": "Bench Press",
        "description": "Lower the bar to mid-chest under control and press to lockout.",
        "muscle_groups": "chest, triceps, front deltoids",
        "equipment": "barbell, bench",
    },
    {
        "name": "Deadlift",
        "description": "Hinge at the hips, keep the bar close and stand tall.",
        "muscle_groups": "hamstrings, glutes, lower back",
        "equipment": "barbell",
    },
    {
        "name": "Overhead Press",
        "description": "Press the bar from the front rack to overhead without leaning back.",
        "muscle_groups": "shoulders, triceps",
        "equipment": "barbell",
    },
    {
        "name": "Pull-Up",
        "description": "Hang from the bar and pull until the chin clears it.",
        "muscle_groups": "lats, biceps, upper back",
        "equipment": "pull-up bar",
    },
    {
        "name": "Bent-Over Row",
        "description": "Hinge forward and row the bar to the lower ribs.",
        "muscle_groups": "upper back, lats, biceps",
        "equipment": "barbell",
    },
    {
        "name": "Dumbbell Lunge",
        "description": "Step forward, lower the back knee towards the floor, push back.",
        "muscle_groups": "quadriceps, glutes",
        "equipment": "dumbbells",
    },
    {
        "name": "Plank",
        "description": "Hold a straight line from shoulders to heels on the forearms.",
        "muscle_groups": "core",
        "equipment": None,
    },
    {
        "name": "Triceps Dip",
        "description": "Lower between parallel bars until the elbows reach 90 degrees.",
        "muscle_groups": "triceps, chest",
        "equipment": "parallel bars",
    },
    {
        "name": "Biceps Curl",
        "description": "Curl the dumbbells without swinging the torso.",
        "muscle_groups": "biceps",
        "equipment": "dumbbells",
    },
]


async def seed_exercises(db: AsyncSession) -> int:
    """Insert catalog exercises that are not present yet. Returns how many were created."""
    result = await db.execute(select(Exercise.name))
    existing = set(result.scalars().all())

    created = 0
    for data in EXERCISES:
        if data["name"] in existing:
            continue
        db.add(Exercise(**data))
        created += 1

    await db.flush()
    return created
