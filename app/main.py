"""
Main FastAPI Application
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, settings as default_settings
from app.core.context import build_context
from app.core.database import Database, init_schema
from app.core.logging_config import setup_logging
from app.middleware.error_handlers import register_error_handlers
from app.middleware.request_logging import RequestLoggingMiddleware
from app.routers import users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables before serving, release the database after"""
    context = app.state.context
    await init_schema(context.db)
    logger.info("[STARTUP] %s ready (database: %s)", context.settings.APP_NAME, context.db.name)
    yield
    context.db.close()
    logger.info("[SHUTDOWN] %s stopped", context.settings.APP_NAME)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings)

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)
    app.state.context = build_context(settings, database)

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_error_handlers(app)

    # Routers
    app.include_router(users_router)

    @app.get("/")
    async def root():
        return {"message": f"{settings.APP_NAME} is running", "version": settings.APP_VERSION, "status": "running"}

    @app.get("/health")
    async def health():
        return {"status": "healthy", "database": app.state.context.db.name}

    return app


app = create_app()


def run():
    """Serve the application with uvicorn"""
    uvicorn.run(
        "app.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        log_level=default_settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
