"""
RevEngine - Domain Parking Revenue Reporting

Main FastAPI application with:
- Role-based authentication (admin/publisher)
- Sedo and Yandex revenue sync (cron endpoints and manual sync)
- Admin API for domains, network accounts, users and settings
- Publisher panel API for dashboards and reports
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import select

from src.api import api_router
from src.auth.middleware import AuthMiddleware
from src.config import settings
from src.db import get_db_context
from src.models import SystemSetting, User, UserRole
from src.scheduler.jobs import scheduler, setup_scheduler
from src.services.api_keys import ApiRateLimiter
from src.services.cache import RevenueCache
from src.services.system_settings import DEFAULT_SETTINGS
from src.utils.password import hash_password

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_initial_data() -> None:
    """Create the first admin and any missing default settings."""
    async with get_db_context() as db:
        result = await db.execute(
            select(User).where(User.role == UserRole.ADMIN).limit(1)
        )
        admin = result.scalar_one_or_none()

        if not admin:
            logger.info("Creating admin account...")
            db.add(
                User(
                    username=settings.admin_username,
                    password_hash=hash_password(settings.admin_password),
                    role=UserRole.ADMIN,
                    display_name="Admin",
                    email=settings.admin_email or None,
                    is_active=True,
                )
            )
            logger.info(f"Admin account created: {settings.admin_username}")

        for key, value in DEFAULT_SETTINGS.items():
            existing = await db.get(SystemSetting, key)
            if not existing:
                db.add(SystemSetting(key=key, value={"v": value}))
                logger.info(f"Created default setting: {key}")

        await db.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the admin account if none exists
    - Initializes default system settings
    - Starts the scheduler with the shared revenue cache
    - Creates the per-key API rate limiter

    Shutdown:
    - Stops the scheduler
    """
    logger.info("Starting RevEngine...")

    await seed_initial_data()

    app.state.cache = RevenueCache()
    app.state.api_rate_limiter = ApiRateLimiter()
    setup_scheduler(app.state.cache)
    scheduler.start()

    logger.info("RevEngine started successfully!")

    yield

    # Shutdown
    logger.info("Shutting down RevEngine...")
    scheduler.shutdown(wait=False)


# Create FastAPI application
app = FastAPI(
    title="RevEngine",
    description="Domain parking revenue reporting",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# Add authentication middleware
app.add_middleware(AuthMiddleware)

# Include routers
app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
