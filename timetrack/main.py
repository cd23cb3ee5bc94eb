"""
Application entry point.
Run with:  uvicorn timetrack.main:app --reload

⚠️  DEVELOPMENT NOTE:
    While SEED_DEV_DATA is true a default admin, two employees and the sample
    WBS catalog are seeded on startup (see timetrack/db/seeder.py and
    timetrack/db/mock_seeder.py). Set SEED_DEV_DATA=false in production.
"""
import logging

from fastapi import FastAPI

from timetrack.core.logging_config import configure_logging
from fastapi.middleware.cors import CORSMiddleware

from timetrack.core.config import settings
from timetrack.api.v1.router import api_router
from timetrack.db.database import init_db
from timetrack.db.seeder import seed_admin
from timetrack.db.mock_seeder import seed_mock_data

configure_logging()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    logger = logging.getLogger(__name__)
    logger.info("Starting FastAPI application setup")
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "Backend API for engineering timesheets: time entries against a "
            "WBS budget catalog, admin review and budget utilization reports."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # ── Middleware ──────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ─────────────────────────────────────────────────────────────
    app.include_router(api_router)

    # ── Startup / shutdown events ───────────────────────────────────────────
    @app.on_event("startup")
    def on_startup() -> None:
        """Initialize the database and development seed data."""
        logger.info("Initializing database and seed data")
        init_db()
        if settings.SEED_DEV_DATA:
            seed_admin()
            seed_mock_data()

    return app


app = create_app()
