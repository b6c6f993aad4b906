"""Admin routes for coach accounts."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.auth import require_admin
from gymcoach.dependencies import get_db
from gymcoach.models.user import User
from gymcoach.schemas.coach import CoachCreate, CoachCreated, CoachSummary
from gymcoach.services import coach_service
from gymcoach.services.coach_service import CoachAccount

router = APIRouter(prefix="/coaches", tags=["coaches"])


@router.get("", response_model=list[CoachSummary])
async def list_coaches(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    coaches = await coach_service.list_available_coaches(db)
    return [CoachSummary(**c) for c in coaches]


@router.post("", status_code=201, response_model=CoachCreated)
async def create_coach(
    body: CoachCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user, profile = await coach_service.create_coach(
        db,
        admin_user_id=current_user.id,
        account=CoachAccount(**body.model_dump()),
    )
    return CoachCreated(coach_id=profile.id, user_id=user.id)
