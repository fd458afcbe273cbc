"""Certificate Numbering API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CertnumError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, sequence row and services initialized on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Sequence row provisioned at startup; tables come from alembic migrations
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from certnum.api.error_handlers import register_error_handlers
from certnum.api.routes import elements, health, issues, sequence
from certnum.config import get_settings
from certnum.infrastructure.database import init_db
from certnum.infrastructure.observability import setup_logging
from certnum.services.registry import init_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    await manager.ensure_sequence(settings.sequence_key)
    init_services(manager, settings)
    logger.info("Certificate numbering API started")
    yield
    await manager.engine.dispose()
    logger.info("Certificate numbering API shutting down")


app = FastAPI(
    title="Certificate Numbering API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(issues.router)
app.include_router(sequence.router)
app.include_router(elements.router)

register_error_handlers(app)
