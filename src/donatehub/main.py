"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from donatehub.campaigns.router import router as campaigns_router
from donatehub.config import get_settings
from donatehub.dashboard.router import router as dashboard_router
from donatehub.database import close_db, init_db
from donatehub.donations.router import router as donations_router
from donatehub.health.router import router as health_router
from donatehub.middleware import setup_middleware
from donatehub.redis_client import close_redis, init_redis
from donatehub.users.router import router as users_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="DonateHub API",
        description="Donation ledger and fundraising reports for NGOs and donors",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(campaigns_router)
    app.include_router(donations_router)
    app.include_router(dashboard_router)

    return app


app = create_app()
