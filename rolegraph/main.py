from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from rolegraph.db.init_db import init_db
from rolegraph.logging_config import configure_app_logging
from rolegraph.routers import admin, reports, system
from rolegraph.security.config import load_security_config
from rolegraph.security.dependencies import enforce_security
from rolegraph.settings import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info("Loaded security config: %s", settings.resolved_security_config_path())
        init_db()
        logger.info("Database initialized (tables ensured + seed if needed)")

        yield

    # Global dependency: every route goes through the guard rules.
    app = FastAPI(dependencies=[Depends(enforce_security)], lifespan=lifespan)

    app.include_router(system.router)
    app.include_router(reports.router)
    app.include_router(admin.router)

    return app


app = create_app()
