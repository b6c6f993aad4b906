import logging
import warnings
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gymcoach.config import settings
from gymcoach.core.errors import register_error_handlers
from gymcoach.core.middleware import AccessLogMiddleware, RequestIDMiddleware
from gymcoach.dependencies import async_session_factory, engine
from gymcoach.routers import auth, client, coach, coaches, notifications

if settings.is_production and settings.secret_key == "change-me-in-production":
    raise RuntimeError(
        "SECRET_KEY must be set to a secure random value in production. "
        "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
    )

if not settings.is_production and settings.secret_key == "change-me-in-production":
    warnings.warn("SECRET_KEY is using default value. Set it for production.", stacklevel=1)

logger = logging.getLogger("gymcoach")


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Create tables and load the exercise catalog on startup."""
    from gymcoach.models.base import Base
    from gymcoach.services.exercise_seed import seed_exercises

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified/created")

    if settings.seed_exercises:
        async with async_session_factory() as session:
            added = await seed_exercises(session)
            await session.commit()
        logger.info("Exercise catalog seeded (%d new)", added)

    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Last added runs first: CORS outermost so error responses carry its headers too
cors_kwargs = {
    "allow_origins": settings.cors_origins_list,
    "allow_credentials": True,
    "allow_methods": ["*"],
    "allow_headers": ["*"],
    "expose_headers": ["x-request-id"],
}
if settings.cors_allow_origin_regex:
    cors_kwargs["allow_origin_regex"] = settings.cors_allow_origin_regex
app.add_middleware(AccessLogMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(CORSMiddleware, **cors_kwargs)

register_error_handlers(app)

app.include_router(auth.router)
app.include_router(client.router)
app.include_router(coach.router)
app.include_router(coaches.router)
app.include_router(notifications.router)


@app.get("/health")
async def health_check():
    return {"status": "ok", "app": settings.app_name, "version": "0.1.0"}
