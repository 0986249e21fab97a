"""
Cloud Variables API

Multi-tenant JSON variable store with subscription-tier quotas.
Run with: uvicorn cloud_variables.main:app
"""
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from cloud_variables import __version__
from cloud_variables.api.errors import app_error_handler, database_error_handler, validation_error_handler
from cloud_variables.api.routes import admin, api_keys, auth, users, variables
from cloud_variables.core.config import Settings
from cloud_variables.core.errors import AppError
from cloud_variables.core.logging_config import configure_logging
from cloud_variables.db.base import Base
from cloud_variables.db.session import create_db_engine, create_session_factory
from cloud_variables.services.tier_service import TierService
from cloud_variables.storage import build_blob_store
from cloud_variables.utils.auth import CredentialIssuer

# Import all models to ensure they're registered with Base
from cloud_variables import models  # noqa: F401

logger = logging.getLogger(__name__)


def run_migrations(database_url: str) -> None:
    """Run Alembic migrations to head. Fails startup if migrations fail,
    so the DB is never left out of sync."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_ini = project_root / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found, skipping Alembic migrations")
        return
    try:
        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
        alembic_cfg.attributes["database_url"] = database_url
        command.upgrade(alembic_cfg, "head")
        logger.info("Alembic migrations completed successfully")
    except Exception as e:
        logger.exception("Alembic migration failed: %s", e)
        raise


def init_storage(app: FastAPI) -> None:
    """Create (or migrate) the schema, seed the tier catalogue and prepare the blob store."""
    settings: Settings = app.state.settings

    if settings.run_migrations:
        run_migrations(settings.database_url)
    else:
        Base.metadata.create_all(bind=app.state.engine)
    logger.info("Database schema ready")

    if settings.seed_default_tiers:
        db = app.state.session_factory()
        try:
            TierService(db, settings.default_tier_name).seed_default_tiers()
        finally:
            db.close()

    app.state.blob_store.init()
    logger.info("Blob store ready (%s)", settings.storage_backend)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_storage(app)
    yield
    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="Cloud Variables", version=__version__, lifespan=lifespan)

    engine = create_db_engine(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.issuer = CredentialIssuer.from_settings(settings)
    app.state.blob_store = build_blob_store(settings)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method, request.url.path, response.status_code, duration_ms,
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    app.include_router(auth.router, prefix="/auth", tags=["Auth"])
    app.include_router(users.router, prefix="/api", tags=["Profile"])
    app.include_router(variables.router, prefix="/api/variables", tags=["Variables"])
    app.include_router(api_keys.router, prefix="/api/api-keys", tags=["API Keys"])
    app.include_router(admin.router, prefix="/admin", tags=["Admin"])

    @app.get("/health")
    def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
