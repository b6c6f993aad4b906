"""Auth routes: register, verify, login, logout, me."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.auth import (
    SESSION_TOKEN_HEADER,
    get_current_user,
    login_user,
    logout_user,
    register_user,
    verify_email,
)
from gymcoach.dependencies import get_db
from gymcoach.models.user import User
from gymcoach.schemas.user import LoginRequest, UserCreate, UserRead

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRead, status_code=201)
async def register(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    return await register_user(db, name=body.name, email=body.email, password=body.password)


@router.post("/verify/{token}", response_model=UserRead)
async def verify(
    token: str,
    db: AsyncSession = Depends(get_db),
):
    return await verify_email(db, token=token)


@router.post("/login")
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user, token = await login_user(db, email=body.email, password=body.password)
    return {"token": token, "user_id": str(user.id), "role": user.role.value}


@router.post("/logout", status_code=204)
async def logout(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    token = request.headers.get(SESSION_TOKEN_HEADER)
    await logout_user(db, token=token)


@router.get("/me", response_model=UserRead)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
