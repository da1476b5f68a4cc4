"""
Recruitment platform backend

Builds the FastAPI app: REST routes under /api/v1, websockets at /ws,
and the in-process job scheduler when SCHEDULER_ENABLED is set.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.routing import APIRoute
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.core.config import settings
from app.core.database import init_db, close_db, AsyncSessionLocal
from app.core.realtime import connection_manager
from app.core.response import success_response, DictResponse
from app.core.exceptions import register_exception_handlers
from app.api import api_router, ws_router
from app.services.jobs import scheduler

APP_VERSION = "1.0.0"

API_DESCRIPTION = (
    "Employers, candidates and job applications; candidate engagement scoring; "
    "email templates, campaigns, tracking and domain warmup; A/B testing; "
    "Nitaqat (Saudization) compliance with MHRSD reporting; real-time notifications."
)


def operation_id(route: APIRoute) -> str:
    return route.name


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("{} v{} starting ({} mode)", settings.app_name, APP_VERSION, settings.app_env)
    await init_db()

    if settings.scheduler_enabled:
        scheduler.start(AsyncSessionLocal)
    else:
        logger.info("Scheduler disabled; jobs can be run through /api/v1/analytics/jobs")

    yield

    await scheduler.stop()
    await close_db()
    logger.info("{} stopped", settings.app_name)


def create_app() -> FastAPI:
    docs_enabled = settings.debug
    app = FastAPI(
        title=settings.app_name,
        description=API_DESCRIPTION,
        version=APP_VERSION,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
        generate_unique_id_function=operation_id,
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")
    app.include_router(ws_router)

    @app.get("/", tags=["System"], response_model=DictResponse)
    async def service_info():
        return success_response(data={
            "name": settings.app_name,
            "version": APP_VERSION,
            "environment": settings.app_env,
            "docs": "/docs" if docs_enabled else None,
        })

    @app.get("/health", tags=["System"], response_model=DictResponse)
    async def health_check():
        return success_response(data={
            "status": "healthy",
            "scheduler_running": scheduler.is_running,
            "online_users": connection_manager.online_count(),
            "mhrsd_mock": settings.mhrsd_mock,
        })

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()
