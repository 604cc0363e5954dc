"""
Application bootstrap for YarnStash.

Wires configuration, logging, the database, Drive credentials, the API and
the backup scheduler into one FastAPI application.
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api import create_api_router
from .api import routes
from .api.models import HealthResponse
from .backup import BackupAssembler, RetentionManager
from .config import ConfigManager
from .config.settings import AppConfig
from .data import initialize_repositories, run_migrations
from .exceptions import YarnStashException, handle_unexpected_error
from .scheduling import BackupScheduler
from .storage import DriveCredentialStore, GoogleOAuthFlow, StoreProvider, TokenCipher

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure root logging. The file handler is optional."""
    log_handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            log_handlers.append(logging.FileHandler(str(log_path)))
        except OSError as e:
            print(f"File logging disabled: {e}", file=sys.stderr)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=log_handlers,
    )


def create_app(config: AppConfig) -> FastAPI:
    """Build the FastAPI application for a configuration."""

    state = {"scheduler": None}

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("YarnStash starting up")
        applied = await run_migrations(config.database.path)
        if applied:
            logger.info(f"Applied {applied} database migrations")

        factory = initialize_repositories(
            backend="sqlite",
            db_path=config.database.path,
            pool_size=config.database.pool_size,
        )
        credential_store = DriveCredentialStore(
            await factory.get_drive_token_repository(),
            TokenCipher(config.drive.token_encryption_key),
        )
        provider = StoreProvider(
            config.drive,
            credential_store,
            await factory.get_sync_log_repository(),
        )
        routes.set_services(
            repository_factory=factory,
            config=config,
            oauth_flow=GoogleOAuthFlow(config.drive, credential_store),
            store_provider=provider,
        )

        if config.backup.schedule_enabled:
            scheduler = BackupScheduler(
                provider,
                BackupAssembler(
                    await factory.get_yarn_repository(),
                    await factory.get_pattern_repository(),
                    await factory.get_project_repository(),
                ),
                RetentionManager(),
                keep_count=config.backup.keep_count,
                hour=config.backup.schedule_hour,
            )
            await scheduler.start()
            state["scheduler"] = scheduler

        yield

        if state["scheduler"] is not None:
            await state["scheduler"].stop()
            state["scheduler"] = None
        await factory.close()
        logger.info("YarnStash shut down")

    app = FastAPI(
        title="YarnStash API",
        description="Craft inventory activity, exports and Google Drive backups",
        version=__version__,
        lifespan=lifespan,
    )

    if config.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.api.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=["Content-Disposition"],
        )

    @app.exception_handler(YarnStashException)
    async def yarnstash_error_handler(request: Request, exc: YarnStashException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.to_log_string()}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: [{exc.error_code}] {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_response()})

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        error = handle_unexpected_error(exc)
        logger.error(f"Unhandled error in {request.url.path}: {error.to_log_string()}", exc_info=True)
        return JSONResponse(status_code=500, content={"detail": error.to_response()})

    app.include_router(create_api_router(config))

    @app.get("/health", response_model=HealthResponse)
    async def health():
        scheduler = state["scheduler"]
        return HealthResponse(
            status="healthy",
            version=__version__,
            storage_backend=config.drive.backend.value,
            scheduler_running=scheduler is not None and scheduler.is_running,
        )

    return app


async def main():
    """Load configuration and serve the API until interrupted."""
    config = await ConfigManager().load_config()
    setup_logging(config.log_level.value, config.log_file)
    logger.info(f"Starting YarnStash {__version__} on {config.api.host}:{config.api.port}")

    server = uvicorn.Server(uvicorn.Config(
        create_app(config),
        host=config.api.host,
        port=config.api.port,
        log_level=config.log_level.value.lower(),
    ))
    await server.serve()
