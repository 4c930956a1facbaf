"""
repobridge.api.app

FastAPI app factory.

Responsibilities:
- Build the FastAPI application and register health + caller-supplied routers.
- Initialize and dispose shared infrastructure (SQL engine/sessionmaker, Motor client).
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from repobridge import __version__
from repobridge.api.routers.health import router as health_router
from repobridge.db.init_db import init_db
from repobridge.db.session import create_engine, create_sessionmaker
from repobridge.documents.client import create_mongo_client
from repobridge.observability.logging import configure_logging, get_logger
from repobridge.observability.middleware import RequestContextMiddleware
from repobridge.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings, routers: Sequence[APIRouter] = ()) -> FastAPI:
    configure_logging(
        service_name=settings.service_name, level=settings.log_level, json_logs=settings.log_json
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        app.state.mongo_client = create_mongo_client(settings)
        if settings.env in ("dev", "test"):
            await init_db(engine)
        try:
            yield
        finally:
            app.state.mongo_client.close()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="repobridge",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    for router in routers:
        app.include_router(router)

    return app


# --- Module Notes -----------------------------------------------------------
# Models must be imported before startup so `init_db` sees them on Base.metadata.
