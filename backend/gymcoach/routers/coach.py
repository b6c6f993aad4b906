"""Coach routes: client requests, clients, routines and routine assignment."""

import uuid as uuid_mod

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.auth import require_coach
from gymcoach.dependencies import get_db
from gymcoach.models.routine import RoutineDifficulty
from gymcoach.models.user import User
from gymcoach.schemas.coach import (
    AssignmentRead,
    ClientSummary,
    CoachProfileRead,
    CoachProfileUpdateRequest,
)
from gymcoach.schemas.routine import (
    AssignRoutineRequest,
    AssignRoutineResponse,
    ExerciseRead,
    ReplaceExercisesRequest,
    RoutineAssigneeRead,
    RoutineAssignmentRead,
    RoutineCreate,
    RoutineCreated,
    RoutineDetail,
    RoutineExerciseIn,
    RoutineRead,
    RoutineUpdate,
    TrainingDayRead,
)
from gymcoach.services import (
    coach_assignment_service,
    coach_service,
    exercise_service,
    routine_assignment_service,
    routine_service,
)
from gymcoach.services.coach_service import CoachProfileUpdate
from gymcoach.services.routine_assignment_service import TrainingDaySpec
from gymcoach.services.routine_service import ExerciseSlot, RoutineDraft

router = APIRouter(prefix="/coach", tags=["coach"])


def _parse_id(value: str, field: str) -> uuid_mod.UUID:
    try:
        return uuid_mod.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field}")


def _parse_difficulty(value: str) -> RoutineDifficulty:
    try:
        return RoutineDifficulty(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid difficulty: {value}")


def _slots(exercises: list[RoutineExerciseIn]) -> list[ExerciseSlot]:
    return [ExerciseSlot(**e.model_dump()) for e in exercises]


def _draft(body: RoutineCreate | RoutineUpdate) -> RoutineDraft:
    return RoutineDraft(
        name=body.name,
        description=body.description,
        goal=body.goal,
        difficulty=_parse_difficulty(body.difficulty),
        estimated_minutes=body.estimated_minutes,
    )


# ── Profile ──


@router.put("/profile", response_model=CoachProfileRead)
async def update_profile(
    body: CoachProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    profile = await coach_service.update_profile(
        db,
        coach_user_id=current_user.id,
        changes=CoachProfileUpdate(**body.model_dump()),
    )
    return CoachProfileRead.model_validate(profile)


# ── Requests & clients ──


@router.get("/pending-requests", response_model=list[ClientSummary])
async def pending_requests(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    requests = await coach_assignment_service.list_pending_requests(db, current_user.id)
    return [ClientSummary(**r) for r in requests]


@router.post("/requests/{assignment_id}/accept", response_model=AssignmentRead)
async def accept_request(
    assignment_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    assignment = await coach_assignment_service.accept_request(
        db,
        assignment_id=_parse_id(assignment_id, "assignment_id"),
        coach_user_id=current_user.id,
    )
    return AssignmentRead.model_validate(assignment)


@router.post("/requests/{assignment_id}/reject", response_model=AssignmentRead)
async def reject_request(
    assignment_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    assignment = await coach_assignment_service.reject_request(
        db,
        assignment_id=_parse_id(assignment_id, "assignment_id"),
        coach_user_id=current_user.id,
    )
    return AssignmentRead.model_validate(assignment)


@router.get("/clients", response_model=list[ClientSummary])
async def list_clients(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    clients = await coach_assignment_service.list_clients(db, current_user.id)
    return [ClientSummary(**c) for c in clients]


@router.get("/clients/{client_id}", response_model=ClientSummary)
async def get_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    client = await coach_assignment_service.get_client(
        db, coach_user_id=current_user.id, client_id=_parse_id(client_id, "client_id")
    )
    return ClientSummary(**client)


# ── Exercises & routines ──


@router.get("/exercises", response_model=list[ExerciseRead])
async def list_exercises(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    exercises = await exercise_service.get_exercises(db)
    return [ExerciseRead.model_validate(e) for e in exercises]


@router.get("/routines", response_model=list[RoutineRead])
async def list_routines(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    routines = await routine_service.list_routines(db, current_user.id)
    return [RoutineRead.model_validate(r) for r in routines]


@router.post("/routines", status_code=201, response_model=RoutineCreated)
async def create_routine(
    body: RoutineCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    """Create a routine; with target_client_id it is also assigned to that client."""
    routine, assigned = await routine_service.create_routine(
        db,
        coach_user_id=current_user.id,
        draft=_draft(body),
        exercises=_slots(body.exercises),
        target_client_id=body.target_client_id,
    )
    return RoutineCreated(routine_id=routine.id, name=routine.name, assigned=assigned)


@router.get("/routines/{routine_id}", response_model=RoutineDetail)
async def get_routine(
    routine_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    detail = await routine_service.get_routine(
        db, coach_user_id=current_user.id, routine_id=_parse_id(routine_id, "routine_id")
    )
    return RoutineDetail(**detail)


@router.put("/routines/{routine_id}", response_model=RoutineRead)
async def update_routine(
    routine_id: str,
    body: RoutineUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    routine = await routine_service.update_routine(
        db,
        coach_user_id=current_user.id,
        routine_id=_parse_id(routine_id, "routine_id"),
        draft=_draft(body),
    )
    return RoutineRead.model_validate(routine)


@router.delete("/routines/{routine_id}")
async def delete_routine(
    routine_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    await routine_service.delete_routine(
        db, coach_user_id=current_user.id, routine_id=_parse_id(routine_id, "routine_id")
    )
    return {"status": "deleted"}


@router.put("/routines/{routine_id}/exercises")
async def replace_exercises(
    routine_id: str,
    body: ReplaceExercisesRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    rows = await routine_service.replace_routine_exercises(
        db,
        coach_user_id=current_user.id,
        routine_id=_parse_id(routine_id, "routine_id"),
        exercises=_slots(body.exercises),
    )
    return {"status": "replaced", "count": len(rows)}


@router.get("/routines/{routine_id}/assignments", response_model=list[RoutineAssigneeRead])
async def routine_assignments(
    routine_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    rows = await routine_service.list_routine_assignments(
        db, coach_user_id=current_user.id, routine_id=_parse_id(routine_id, "routine_id")
    )
    return [RoutineAssigneeRead(**r) for r in rows]


@router.post("/assign-routine", response_model=AssignRoutineResponse)
async def assign_routine(
    body: AssignRoutineRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_coach),
):
    """Make a routine the client's single active routine, optionally on given weekdays."""
    assignment, days = await routine_assignment_service.assign_routine(
        db,
        coach_user_id=current_user.id,
        routine_id=body.routine_id,
        client_id=body.client_id,
        training_days=[TrainingDaySpec(**d.model_dump()) for d in body.training_days],
        started_at=body.started_at,
        ended_at=body.ended_at,
        coach_notes=body.coach_notes,
    )
    return AssignRoutineResponse(
        assignment=RoutineAssignmentRead.model_validate(assignment),
        training_days=[TrainingDayRead.model_validate(d) for d in days],
    )
