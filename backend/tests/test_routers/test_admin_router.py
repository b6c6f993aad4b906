import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.auth import hash_password
from gymcoach.models.user import User, UserRole, UserStatus

PASSWORD = "SecurePass123!"

COACH_BODY = {
    "name": "Nora",
    "email": "nora@test.com",
    "password": "CoachPass123!",
    "specialty": "Powerlifting",
    "schedule": "Mon-Fri 7-15",
}


async def _login_as(client: AsyncClient, db: AsyncSession, email: str, role: UserRole) -> dict:
    db.add(User(name=email, email=email, password_hash=hash_password(PASSWORD),
                role=role, status=UserStatus.active))
    await db.flush()
    resp = await client.post("/auth/login", json={"email": email, "password": PASSWORD})
    return {"X-Session-Token": resp.json()["token"]}


@pytest.mark.asyncio
async def test_admin_creates_coach_who_can_log_in(client: AsyncClient, db_session: AsyncSession):
    headers = await _login_as(client, db_session, "admin@test.com", UserRole.admin)

    response = await client.post("/coaches", json=COACH_BODY, headers=headers)
    assert response.status_code == 201
    created = response.json()

    login = await client.post(
        "/auth/login", json={"email": "nora@test.com", "password": "CoachPass123!"}
    )
    assert login.status_code == 200
    assert login.json()["role"] == "coach"
    assert login.json()["user_id"] == created["user_id"]

    coaches = (await client.get("/coaches", headers=headers)).json()
    assert [c["id"] for c in coaches] == [created["coach_id"]]

    duplicate = await client.post("/coaches", json=COACH_BODY, headers=headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "email_taken"


@pytest.mark.asyncio
async def test_non_admin_cannot_create_coach(client: AsyncClient, db_session: AsyncSession):
    headers = await _login_as(client, db_session, "client@test.com", UserRole.client)
    response = await client.post("/coaches", json=COACH_BODY, headers=headers)
    assert response.status_code == 403
