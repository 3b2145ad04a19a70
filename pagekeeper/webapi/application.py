"""Application factory for the FastAPI backend."""

from __future__ import annotations

import logging
import re

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import config_manager as cfg
from .. import load_environment
from .. import logging_manager as log_mgr
from ..database import dispose_engine
from ..graphql import create_graphql_router
from .auth_routes import router as auth_router

load_environment()

LOGGER = logging.getLogger(__name__)

# Default origins considered safe for local development convenience.
DEFAULT_LOCAL_ORIGINS = (
    "http://localhost",
    "http://127.0.0.1",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
)


def _parse_cors_origins(raw_value: str | None) -> tuple[list[str], bool]:
    """Return the allowed origins and whether credentials are supported."""

    if raw_value is None:
        return list(DEFAULT_LOCAL_ORIGINS), True

    tokens = [token.strip() for token in re.split(r"[\s,]+", raw_value) if token.strip()]
    if not tokens:
        return [], False
    if "*" in tokens:
        return ["*"], False
    return tokens, True


def _configure_cors(app: FastAPI) -> None:
    allowed_origins, allow_credentials = _parse_cors_origins(cfg.get_settings().cors_origins)
    if not allowed_origins:
        LOGGER.info("CORS middleware disabled; no allowed origins configured.")
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _normalise_mount_path(value: str | None) -> str:
    candidate = (value or "").strip() or cfg.DEFAULT_GRAPHQL_PATH
    if not candidate.startswith("/"):
        candidate = f"/{candidate}"
    return candidate.rstrip("/") or cfg.DEFAULT_GRAPHQL_PATH


def create_app() -> FastAPI:
    """Instantiate and configure the FastAPI application."""

    settings = cfg.get_settings()
    log_mgr.configure_logging_level(log_level=settings.log_level_value)

    app = FastAPI(title="pagekeeper API", version="0.1.0")

    @app.on_event("shutdown")
    async def _cleanup_runtime() -> None:
        dispose_engine()

    _configure_cors(app)

    @app.get("/_health", tags=["health"])
    def healthcheck() -> dict[str, str]:
        """Simple healthcheck endpoint for smoke-testing the server."""

        return {"status": "ok"}

    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(
        create_graphql_router(graphiql=settings.debug),
        prefix=_normalise_mount_path(settings.graphql_path),
        tags=["graphql"],
    )

    log_mgr.logger.info(
        "API application created",
        extra={"event": "webapi.startup", "attributes": {"graphql_path": settings.graphql_path}},
    )
    return app
