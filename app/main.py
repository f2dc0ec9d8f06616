"""
FastAPI Application Entry Point
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.errors import (
    AppError,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from app.core.logging import get_logger, setup_logging, RequestIDMiddleware
from app.infra.db import close_db_connection
from app.infra.redis import init_redis_pool, close_redis_pool
from app.workers.dispatcher import get_pipeline_dispatcher
from app.workers.jobs.reconcile_meetings import run_reconcile_loop

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    await init_redis_pool()
    dispatcher = get_pipeline_dispatcher()
    reconcile_task = asyncio.create_task(run_reconcile_loop(), name="reconcile-stuck-meetings")
    logger.info(f"Started with {settings.pipeline_backend} pipeline backend")

    yield

    # Shutdown
    reconcile_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await reconcile_task
    await dispatcher.shutdown()
    await close_redis_pool()
    await close_db_connection()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Meeting Recorder Backend",
        description="Meeting recording upload, transcription and summarization service",
        version="0.1.0",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_credentials,
        allow_methods=settings.cors_methods,
        allow_headers=settings.cors_headers,
    )

    # Routes
    app.include_router(api_router, prefix=settings.api_prefix)

    # Exception Handlers
    app.add_exception_handler(AppError, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    return app


app = create_app()
