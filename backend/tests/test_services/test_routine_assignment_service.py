"""Routine assignment: supersession, schedules, completion and client views."""

import uuid
from datetime import time

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from gymcoach.core.state_machine import ROUTINE_ASSIGNMENT
from gymcoach.models.coach_assignment import AssignmentState, CoachClientAssignment
from gymcoach.models.coach_profile import CoachProfile
from gymcoach.models.exercise import Exercise
from gymcoach.models.notification import Notification, NotificationType
from gymcoach.models.routine_assignment import RoutineAssignment, RoutineAssignmentState, Weekday
from gymcoach.models.user import User, UserRole, UserStatus
from gymcoach.services import routine_assignment_service, routine_service
from gymcoach.services.routine_assignment_service import TrainingDaySpec
from gymcoach.services.routine_service import ExerciseSlot, RoutineDraft


async def _setup(db: AsyncSession):
    coach = User(name="Coach Carla", email="carla@test.com", password_hash="hashed",
                 role=UserRole.coach, status=UserStatus.active)
    client = User(name="Client Chris", email="chris@test.com", password_hash="hashed",
                  status=UserStatus.active)
    db.add_all([coach, client])
    await db.flush()

    profile = CoachProfile(user_id=coach.id)
    db.add(profile)
    await db.flush()
    db.add(CoachClientAssignment(
        coach_id=profile.id, client_id=client.id, state=AssignmentState.active,
    ))

    squat = Exercise(name="Squat")
    press = Exercise(name="Press")
    db.add_all([squat, press])
    await db.flush()

    push, _ = await routine_service.create_routine(
        db, coach_user_id=coach.id, draft=RoutineDraft(name="Push Day"),
        exercises=[ExerciseSlot(exercise_id=press.id), ExerciseSlot(exercise_id=squat.id)],
    )
    pull, _ = await routine_service.create_routine(
        db, coach_user_id=coach.id, draft=RoutineDraft(name="Pull Day"),
        exercises=[ExerciseSlot(exercise_id=squat.id)],
    )
    return coach, client, push, pull


async def _active_rows(db: AsyncSession, client_id: uuid.UUID) -> list[RoutineAssignment]:
    result = await db.execute(
        select(RoutineAssignment).where(
            RoutineAssignment.client_id == client_id,
            RoutineAssignment.state == RoutineAssignmentState.active,
        )
    )
    return list(result.scalars().all())


def test_parse_weekday_normalizes():
    assert routine_assignment_service.parse_weekday(" Monday ") == Weekday.monday
    with pytest.raises(ValidationFailed) as exc_info:
        routine_assignment_service.parse_weekday("lunes")
    assert exc_info.value.code == "invalid_weekday"
    assert "monday" in exc_info.value.detail


def test_parse_training_days_reports_all_invalid_tokens():
    with pytest.raises(ValidationFailed) as exc_info:
        routine_assignment_service.parse_training_days([
            TrainingDaySpec(weekday="funday"),
            TrainingDaySpec(weekday="monday"),
            TrainingDaySpec(weekday="Caturday"),
        ])
    assert "funday" in exc_info.value.detail
    assert "Caturday" in exc_info.value.detail


def test_parse_training_days_sorted_and_unique():
    days = routine_assignment_service.parse_training_days([
        TrainingDaySpec(weekday="friday"),
        TrainingDaySpec(weekday="MONDAY"),
        TrainingDaySpec(weekday="wednesday", start_time=time(7, 0), end_time=time(8, 0)),
    ])
    assert [d for d, _ in days] == [Weekday.monday, Weekday.wednesday, Weekday.friday]

    with pytest.raises(ValidationFailed) as exc_info:
        routine_assignment_service.parse_training_days([
            TrainingDaySpec(weekday="monday"), TrainingDaySpec(weekday="Monday"),
        ])
    assert exc_info.value.code == "duplicate_weekday"

    with pytest.raises(ValidationFailed) as exc_info:
        routine_assignment_service.parse_training_days([
            TrainingDaySpec(weekday="monday", start_time=time(9, 0), end_time=time(8, 0)),
        ])
    assert exc_info.value.code == "invalid_time_window"


@pytest.mark.asyncio
async def test_assign_with_training_days(db_session: AsyncSession):
    coach, client, push, _ = await _setup(db_session)

    assignment, days = await routine_assignment_service.assign_routine(
        db_session,
        coach_user_id=coach.id,
        routine_id=push.id,
        client_id=client.id,
        training_days=[
            TrainingDaySpec(weekday="thursday", start_time=time(18, 0), end_time=time(19, 0)),
            TrainingDaySpec(weekday="monday"),
        ],
    )
    assert assignment.state == RoutineAssignmentState.active
    assert assignment.routine_name == "Push Day"
    assert assignment.started_at is not None
    assert [d.weekday for d in days] == [Weekday.monday, Weekday.thursday]
    assert days[1].start_time == time(18, 0)

    result = await db_session.execute(
        select(Notification).where(Notification.recipient_id == client.id)
    )
    notes = result.scalars().all()
    assert [n.type for n in notes] == [NotificationType.routine_assigned]
    assert "monday, thursday" in notes[0].message


@pytest.mark.asyncio
async def test_newest_assignment_supersedes(db_session: AsyncSession):
    coach, client, push, pull = await _setup(db_session)

    first, _ = await routine_assignment_service.assign_routine(
        db_session, coach_user_id=coach.id, routine_id=push.id, client_id=client.id,
        training_days=[TrainingDaySpec(weekday="monday")],
    )
    second, days = await routine_assignment_service.assign_routine(
        db_session, coach_user_id=coach.id, routine_id=pull.id, client_id=client.id,
    )

    assert first.state == RoutineAssignmentState.completed
    assert first.ended_at is not None
    assert second.state == RoutineAssignmentState.active
    assert days == []

    active = await _active_rows(db_session, client.id)
    assert [a.id for a in active] == [second.id]


@pytest.mark.asyncio
async def test_assign_requires_ownership_and_link(db_session: AsyncSession):
    coach, client, push, _ = await _setup(db_session)
    stranger = User(name="Stranger", email="stranger@test.com", password_hash="hashed",
                    status=UserStatus.active)
    db_session.add(stranger)
    await db_session.flush()

    with pytest.raises(Forbidden, match="not assigned"):
        await routine_assignment_service.assign_routine(
            db_session, coach_user_id=coach.id, routine_id=push.id, client_id=stranger.id
        )
    with pytest.raises(NotFound, match="Routine not found"):
        await routine_assignment_service.assign_routine(
            db_session, coach_user_id=coach.id, routine_id=uuid.uuid4(), client_id=client.id
        )
    with pytest.raises(ValidationFailed):
        await routine_assignment_service.assign_routine(
            db_session, coach_user_id=coach.id, routine_id=push.id, client_id=client.id,
            training_days=[TrainingDaySpec(weekday="someday")],
        )
    assert await _active_rows(db_session, client.id) == []


class _InterleavedAssignment:
    """Demotes like the real machine while another assignment for the client lands."""

    def __init__(self, db: AsyncSession, row: RoutineAssignment):
        self.db = db
        self.row = row

    def transition(self, current, target):
        self.db.add(self.row)
        return ROUTINE_ASSIGNMENT.transition(current, target)


@pytest.mark.asyncio
async def test_concurrent_assignment_rolls_back_as_conflict(
    db_session: AsyncSession, monkeypatch
):
    coach, client, push, pull = await _setup(db_session)
    first, _ = await routine_assignment_service.assign_routine(
        db_session, coach_user_id=coach.id, routine_id=push.id, client_id=client.id
    )
    await db_session.commit()
    coach_id, client_id, push_id, pull_id, first_id = (
        coach.id, client.id, push.id, pull.id, first.id
    )

    competing = RoutineAssignment(
        routine_id=push_id,
        routine_name="Push Day",
        client_id=client_id,
        state=RoutineAssignmentState.active,
    )
    monkeypatch.setattr(
        routine_assignment_service,
        "ROUTINE_ASSIGNMENT",
        _InterleavedAssignment(db_session, competing),
    )

    with pytest.raises(Conflict) as exc_info:
        await routine_assignment_service.assign_routine(
            db_session, coach_user_id=coach_id, routine_id=pull_id, client_id=client_id,
            training_days=[TrainingDaySpec(weekday="friday")],
        )
    assert exc_info.value.code == "concurrent_update"
    assert exc_info.value.detail == routine_assignment_service.CONCURRENT_ASSIGNMENT

    active = await _active_rows(db_session, client_id)
    assert [a.id for a in active] == [first_id]
    result = await db_session.execute(
        select(RoutineAssignment).where(RoutineAssignment.routine_id == pull_id)
    )
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_complete_routine(db_session: AsyncSession):
    coach, client, push, pull = await _setup(db_session)
    await routine_assignment_service.assign_routine(
        db_session, coach_user_id=coach.id, routine_id=push.id, client_id=client.id
    )

    done = await routine_assignment_service.complete_routine(
        db_session, client_user_id=client.id, routine_id=push.id
    )
    assert done.state == RoutineAssignmentState.completed
    assert done.ended_at is not None

    with pytest.raises(NotFound, match="No active assignment"):
        await routine_assignment_service.complete_routine(
            db_session, client_user_id=client.id, routine_id=push.id
        )
    with pytest.raises(NotFound):
        await routine_assignment_service.complete_routine(
            db_session, client_user_id=client.id, routine_id=pull.id
        )


@pytest.mark.asyncio
async def test_client_views(db_session: AsyncSession):
    coach, client, push, pull = await _setup(db_session)
    first, _ = await routine_assignment_service.assign_routine(
        db_session, coach_user_id=coach.id, routine_id=push.id, client_id=client.id
    )
    second, _ = await routine_assignment_service.assign_routine(
        db_session, coach_user_id=coach.id, routine_id=pull.id, client_id=client.id,
        training_days=[TrainingDaySpec(weekday="sunday"), TrainingDaySpec(weekday="tuesday")],
    )

    listing = await routine_assignment_service.list_client_routines(db_session, client.id)
    assert [r["routine_name"] for r in listing] == ["Pull Day", "Push Day"]
    assert listing[0]["state"] == "active"
    assert listing[0]["coach_name"] == "Coach Carla"
    assert listing[1]["exercise_count"] == 2

    detail = await routine_assignment_service.get_client_routine(
        db_session, client_user_id=client.id, routine_id=push.id
    )
    assert detail["state"] == "completed"
    assert len(detail["exercises"]) == 2

    active = await routine_assignment_service.get_active_routine(
        db_session, client_user_id=client.id
    )
    assert active["assignment_id"] == second.id
    assert [d.weekday for d in active["training_days"]] == [Weekday.tuesday, Weekday.sunday]

    on_sunday = await routine_assignment_service.get_active_routine(
        db_session, client_user_id=client.id, weekday="Sunday"
    )
    assert on_sunday["routine_name"] == "Pull Day"
    assert await routine_assignment_service.get_active_routine(
        db_session, client_user_id=client.id, weekday="monday"
    ) is None

    days = await routine_assignment_service.get_training_days(
        db_session, client_user_id=client.id, assignment_id=second.id
    )
    assert len(days) == 2
    assert await routine_assignment_service.get_training_days(
        db_session, client_user_id=client.id, assignment_id=first.id
    ) == []


@pytest.mark.asyncio
async def test_client_cannot_read_other_schedules(db_session: AsyncSession):
    coach, client, push, _ = await _setup(db_session)
    assignment, _ = await routine_assignment_service.assign_routine(
        db_session, coach_user_id=coach.id, routine_id=push.id, client_id=client.id,
        training_days=[TrainingDaySpec(weekday="monday")],
    )
    other = User(name="Other", email="other@test.com", password_hash="hashed",
                 status=UserStatus.active)
    db_session.add(other)
    await db_session.flush()

    with pytest.raises(NotFound):
        await routine_assignment_service.get_training_days(
            db_session, client_user_id=other.id, assignment_id=assignment.id
        )
    with pytest.raises(NotFound):
        await routine_assignment_service.get_client_routine(
            db_session, client_user_id=other.id, routine_id=push.id
        )
    assert await routine_assignment_service.get_active_routine(
        db_session, client_user_id=other.id
    ) is None
