"""Client routes: find and request a coach, follow assigned routines."""

import uuid as uuid_mod

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.auth import require_client
from gymcoach.dependencies import get_db
from gymcoach.models.user import User
from gymcoach.schemas.coach import AssignmentRead, CoachStatusRead, CoachSummary
from gymcoach.schemas.routine import (
    ActiveRoutineRead,
    ClientRoutineDetail,
    ClientRoutineRead,
    RoutineAssignmentRead,
    TrainingDayRead,
)
from gymcoach.services import coach_assignment_service, coach_service, routine_assignment_service

router = APIRouter(prefix="/client", tags=["client"])


def _parse_id(value: str, field: str) -> uuid_mod.UUID:
    try:
        return uuid_mod.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field}")


@router.get("/coaches", response_model=list[CoachSummary])
async def list_coaches(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_client),
):
    coaches = await coach_service.list_available_coaches(db)
    return [CoachSummary(**c) for c in coaches]


@router.get("/coach-status", response_model=CoachStatusRead)
async def coach_status(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_client),
):
    status = await coach_assignment_service.get_coach_status(db, current_user.id)
    return CoachStatusRead(**status)


@router.post("/request-coach/{coach_id}", status_code=201, response_model=AssignmentRead)
async def request_coach(
    coach_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_client),
):
    """Ask a coach to take you on. 409 says whether a coach or a request already exists."""
    assignment = await coach_assignment_service.request_coach(
        db, client_user_id=current_user.id, coach_id=_parse_id(coach_id, "coach_id")
    )
    return AssignmentRead.model_validate(assignment)


@router.get("/routines", response_model=list[ClientRoutineRead])
async def list_routines(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_client),
):
    routines = await routine_assignment_service.list_client_routines(db, current_user.id)
    return [ClientRoutineRead(**r) for r in routines]


@router.get("/routines/{routine_id}", response_model=ClientRoutineDetail)
async def get_routine(
    routine_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_client),
):
    detail = await routine_assignment_service.get_client_routine(
        db, client_user_id=current_user.id, routine_id=_parse_id(routine_id, "routine_id")
    )
    return ClientRoutineDetail(**detail)


@router.put("/routines/{routine_id}/complete", response_model=RoutineAssignmentRead)
async def complete_routine(
    routine_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_client),
):
    assignment = await routine_assignment_service.complete_routine(
        db, client_user_id=current_user.id, routine_id=_parse_id(routine_id, "routine_id")
    )
    return RoutineAssignmentRead.model_validate(assignment)


@router.get("/active-routine", response_model=ActiveRoutineRead | None)
async def active_routine(
    day: str | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_client),
):
    """The active routine, or null. With ?day=, only if it is scheduled that day."""
    active = await routine_assignment_service.get_active_routine(
        db, client_user_id=current_user.id, weekday=day
    )
    if active is None:
        return None
    return ActiveRoutineRead(
        **{
            **active,
            "training_days": [
                TrainingDayRead.model_validate(d) for d in active["training_days"]
            ],
        }
    )


@router.get("/routine-days/{assignment_id}", response_model=list[TrainingDayRead])
async def routine_days(
    assignment_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_client),
):
    days = await routine_assignment_service.get_training_days(
        db,
        client_user_id=current_user.id,
        assignment_id=_parse_id(assignment_id, "assignment_id"),
    )
    return [TrainingDayRead.model_validate(d) for d in days]
