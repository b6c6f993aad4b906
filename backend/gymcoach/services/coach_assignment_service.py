"""Coach-client assignment state machine.

Lifecycle per row: pending -> active | rejected. Both outcomes are terminal
for that row; a client who was rejected files a new request. A client holds
at most one pending-or-active row at a time.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.errors import Conflict, NotFound
from gymcoach.core.state_machine import COACH_ASSIGNMENT
from gymcoach.dependencies import atomic
from gymcoach.models.coach_assignment import (
    OPEN_ASSIGNMENT_STATES,
    AssignmentState,
    CoachClientAssignment,
)
from gymcoach.models.coach_profile import CoachProfile
from gymcoach.models.notification import NotificationType
from gymcoach.models.user import User, UserStatus
from gymcoach.services import identity_service, notification_service

logger = logging.getLogger("gymcoach.services.coach_assignment")

ACTIVE_COACH_EXISTS = "active_coach_exists"
PENDING_REQUEST_EXISTS = "pending_request_exists"


async def _get_active_coach(db: AsyncSession, coach_id: uuid.UUID) -> tuple[CoachProfile, User]:
    result = await db.execute(
        select(CoachProfile, User)
        .join(User, User.id == CoachProfile.user_id)
        .where(CoachProfile.id == coach_id, User.status == UserStatus.active)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFound("Coach not found", code="coach_not_found")
    return row[0], row[1]


async def _ensure_no_open_assignment(db: AsyncSession, client_id: uuid.UUID) -> None:
    existing = await get_open_assignment(db, client_id)
    if existing is None:
        return
    if existing.state == AssignmentState.active:
        raise Conflict("Client already has an active coach", code=ACTIVE_COACH_EXISTS)
    raise Conflict("Client already has a pending coach request", code=PENDING_REQUEST_EXISTS)


async def get_open_assignment(
    db: AsyncSession,
    client_id: uuid.UUID,
) -> CoachClientAssignment | None:
    """The client's pending or active row, if any."""
    result = await db.execute(
        select(CoachClientAssignment)
        .where(
            CoachClientAssignment.client_id == client_id,
            CoachClientAssignment.state.in_(OPEN_ASSIGNMENT_STATES),
        )
        .order_by(CoachClientAssignment.requested_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_active_assignment(
    db: AsyncSession,
    *,
    coach_profile_id: uuid.UUID,
    client_id: uuid.UUID,
    lock: bool = False,
) -> CoachClientAssignment | None:
    """The active row linking this coach and client.

    With `lock`, the row is selected FOR UPDATE so concurrent writers for the
    same client serialize on it.
    """
    stmt = select(CoachClientAssignment).where(
        CoachClientAssignment.coach_id == coach_profile_id,
        CoachClientAssignment.client_id == client_id,
        CoachClientAssignment.state == AssignmentState.active,
    )
    if lock:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def request_coach(
    db: AsyncSession,
    *,
    client_user_id: uuid.UUID,
    coach_id: uuid.UUID,
) -> CoachClientAssignment:
    """Client asks a coach to take them on. Creates a pending row."""
    await identity_service.resolve_client(db, client_user_id)
    coach, coach_user = await _get_active_coach(db, coach_id)

    await _ensure_no_open_assignment(db, client_user_id)
    client = await db.get(User, client_user_id)

    try:
        async with atomic(
            db,
            conflict_detail="Client already has a pending coach request",
            conflict_code=PENDING_REQUEST_EXISTS,
        ):
            assignment = CoachClientAssignment(
                coach_id=coach.id,
                client_id=client_user_id,
                state=AssignmentState.pending,
                notes="Awaiting coach approval",
            )
            db.add(assignment)
            await db.flush()

            await notification_service.emit(
                db,
                recipient_id=coach_user.id,
                type=NotificationType.coach_request,
                title="New client request",
                message=f"{client.name} has asked you to be their coach.",
                origin_user_id=client_user_id,
            )
    except Conflict:
        # Lost the race to a concurrent request. Report the row that won.
        await _ensure_no_open_assignment(db, client_user_id)
        raise

    logger.info(
        "Client %s requested coach %s (assignment %s)", client_user_id, coach.id, assignment.id
    )
    return assignment


async def _respond(
    db: AsyncSession,
    *,
    assignment_id: uuid.UUID,
    coach_user_id: uuid.UUID,
    target: AssignmentState,
) -> CoachClientAssignment:
    identity = await identity_service.resolve_coach(db, coach_user_id)

    # Rows of other coaches are reported exactly like missing rows.
    result = await db.execute(
        select(CoachClientAssignment)
        .where(
            CoachClientAssignment.id == assignment_id,
            CoachClientAssignment.coach_id == identity.coach_profile_id,
        )
        .with_for_update()
    )
    assignment = result.scalar_one_or_none()
    if assignment is None:
        raise NotFound("Coach request not found", code="request_not_found")

    if not COACH_ASSIGNMENT.transition(assignment.state, target):
        logger.info("Assignment %s already %s, nothing to do", assignment.id, target.value)
        return assignment

    coach_user = await db.get(User, coach_user_id)
    if target == AssignmentState.active:
        notification_type = NotificationType.coach_request_accepted
        title = "Coach request accepted"
        message = f"Coach {coach_user.name} accepted your request. Time to start training!"
    else:
        notification_type = NotificationType.coach_request_rejected
        title = "Coach request declined"
        message = (
            f"Coach {coach_user.name} declined your request. "
            "You can ask another coach."
        )

    async with atomic(db):
        assignment.state = target
        assignment.responded_at = datetime.now(timezone.utc)
        await db.flush()

        await notification_service.emit(
            db,
            recipient_id=assignment.client_id,
            type=notification_type,
            title=title,
            message=message,
            origin_user_id=coach_user_id,
        )

    logger.info("Assignment %s moved to %s", assignment.id, target.value)
    return assignment


async def accept_request(
    db: AsyncSession,
    *,
    assignment_id: uuid.UUID,
    coach_user_id: uuid.UUID,
) -> CoachClientAssignment:
    """pending -> active. Accepting an already-active row is a no-op."""
    return await _respond(
        db,
        assignment_id=assignment_id,
        coach_user_id=coach_user_id,
        target=AssignmentState.active,
    )


async def reject_request(
    db: AsyncSession,
    *,
    assignment_id: uuid.UUID,
    coach_user_id: uuid.UUID,
) -> CoachClientAssignment:
    """pending -> rejected. Rejecting an already-rejected row is a no-op."""
    return await _respond(
        db,
        assignment_id=assignment_id,
        coach_user_id=coach_user_id,
        target=AssignmentState.rejected,
    )


async def list_clients(db: AsyncSession, coach_user_id: uuid.UUID) -> list[dict]:
    """Clients whose assignment with this coach is active."""
    identity = await identity_service.resolve_coach(db, coach_user_id)
    result = await db.execute(
        select(CoachClientAssignment, User)
        .join(User, User.id == CoachClientAssignment.client_id)
        .where(
            CoachClientAssignment.coach_id == identity.coach_profile_id,
            CoachClientAssignment.state == AssignmentState.active,
        )
        .order_by(User.name.asc())
    )
    return [_client_summary(assignment, user) for assignment, user in result.all()]


async def list_pending_requests(db: AsyncSession, coach_user_id: uuid.UUID) -> list[dict]:
    """Pending requests for this coach, newest first."""
    identity = await identity_service.resolve_coach(db, coach_user_id)
    result = await db.execute(
        select(CoachClientAssignment, User)
        .join(User, User.id == CoachClientAssignment.client_id)
        .where(
            CoachClientAssignment.coach_id == identity.coach_profile_id,
            CoachClientAssignment.state == AssignmentState.pending,
        )
        .order_by(CoachClientAssignment.requested_at.desc())
    )
    return [_client_summary(assignment, user) for assignment, user in result.all()]


async def get_client(
    db: AsyncSession,
    *,
    coach_user_id: uuid.UUID,
    client_id: uuid.UUID,
) -> dict:
    """One active client of this coach."""
    identity = await identity_service.resolve_coach(db, coach_user_id)
    result = await db.execute(
        select(CoachClientAssignment, User)
        .join(User, User.id == CoachClientAssignment.client_id)
        .where(
            CoachClientAssignment.coach_id == identity.coach_profile_id,
            CoachClientAssignment.client_id == client_id,
            CoachClientAssignment.state == AssignmentState.active,
        )
    )
    row = result.one_or_none()
    if row is None:
        raise NotFound("Client not found or not assigned to this coach", code="client_not_found")
    return _client_summary(*row)


async def get_coach_status(db: AsyncSession, client_user_id: uuid.UUID) -> dict:
    """Whether the client has an active coach or a pending request, and with whom."""
    await identity_service.resolve_client(db, client_user_id)
    assignment = await get_open_assignment(db, client_user_id)
    if assignment is None:
        return {"has_coach": False, "pending_request": False, "coach": None}

    result = await db.execute(
        select(CoachProfile, User)
        .join(User, User.id == CoachProfile.user_id)
        .where(CoachProfile.id == assignment.coach_id)
    )
    coach, coach_user = result.one()
    return {
        "has_coach": assignment.state == AssignmentState.active,
        "pending_request": assignment.state == AssignmentState.pending,
        "coach": {
            "id": coach.id,
            "name": coach_user.name,
            "specialty": coach.specialty,
            "schedule": coach.schedule,
            "requested_at": assignment.requested_at,
        },
    }


def _client_summary(assignment: CoachClientAssignment, user: User) -> dict:
    return {
        "assignment_id": assignment.id,
        "client_id": user.id,
        "name": user.name,
        "email": user.email,
        "state": assignment.state.value,
        "requested_at": assignment.requested_at,
        "responded_at": assignment.responded_at,
    }
