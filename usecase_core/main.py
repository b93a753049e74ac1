"""Use-Case Core API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Handler registry frozen and dispatcher wired before the app accepts requests
    - Every response carries the correlation header
    - CORS configured from settings (not hardcoded)

Design Decisions:
    - Lifespan over @app.on_event: database, logging, and dispatcher share one
      startup/shutdown path
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from usecase_core.api.correlation import CorrelationIdMiddleware
from usecase_core.api.error_handlers import register_error_handlers
from usecase_core.api.routes import health, use_cases
from usecase_core.bootstrap import build_dispatcher
from usecase_core.config import get_settings
from usecase_core.infrastructure.database import init_db
from usecase_core.infrastructure.observability import setup_logging

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
    if settings.database_create_schema:
        await manager.create_schema()
    app.state.dispatcher = build_dispatcher(
        manager.session_factory,
        record_delivery_failures=settings.record_delivery_failures,
    )
    logger.info("Use-case core API started")
    yield
    logger.info("Use-case core API shutting down")
    app.state.dispatcher = None
    await manager.dispose()


app = FastAPI(
    title="Use-Case Core API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.correlation_header],
)
app.add_middleware(
    CorrelationIdMiddleware, header_name=settings.correlation_header,
)

app.include_router(health.router)
app.include_router(use_cases.router)

register_error_handlers(app, correlation_header=settings.correlation_header)
