from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import logging

from plantia.config import Settings, settings as default_settings
from plantia.database import create_engine, create_session_factory, init_db
from plantia.dependencies import get_store
from plantia.exceptions import StoreError
from plantia.routers import plants, categories, photos, tasks, history
from plantia.services import EntityStore

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: connect to the remote store and create tables
        engine = create_engine(settings.database_url, echo=settings.sql_echo)
        await init_db(engine)
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        logger.info("Remote store ready")

        yield

        await engine.dispose()

    app = FastAPI(
        title="Plantia API",
        description="Plant collection store with recurring care tasks",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Include routers
    app.include_router(plants.router)
    app.include_router(categories.router)
    app.include_router(photos.router)
    app.include_router(tasks.router)
    app.include_router(history.router)

    @app.delete("/api/v1/data", status_code=204)
    async def clear_all_data(store: EntityStore = Depends(get_store)):
        """Delete every entity of the calling account"""
        await store.clear_all_data()

    @app.get("/api/v1/health")
    async def health_check():
        """API health check endpoint"""
        return {
            "status": "healthy",
            "service": "plantia-api",
            "version": "1.0.0"
        }

    return app


app = create_app()
