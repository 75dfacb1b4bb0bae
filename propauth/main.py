from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from propauth.db import filters as _filters  # noqa: F401  (register the scope filter listener)
from propauth.db.init_db import init_db
from propauth.errors import register_error_handlers
from propauth.logging_config import configure_app_logging
from propauth.routers import (
    assignments,
    buildings,
    floors,
    health,
    permissions,
    roles,
    sidebar,
    tenants,
    transactions,
    units,
    users,
    villas,
)
from propauth.security.config import load_security_config
from propauth.security.defaults import load_defaults
from propauth.security.dependencies import enforce_security
from propauth.settings import get_settings

logger = logging.getLogger(__name__)


def create_app(provision: bool = True) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info("Loaded security config: %s", settings.resolved_security_config_path())

        app.state.defaults = load_defaults(settings.resolved_defaults_path())
        logger.info("Loaded default configuration v%s", app.state.defaults.version)

        if provision:
            init_db(app.state.defaults)
            logger.info("Database initialized (tables ensured + defaults provisioned)")

        yield

    # Global dependency: every route is checked without touching its handler.
    app = FastAPI(title="propauth", dependencies=[Depends(enforce_security)], lifespan=lifespan)
    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(permissions.router)
    app.include_router(roles.router)
    app.include_router(users.router)
    app.include_router(sidebar.router)
    app.include_router(buildings.router)
    app.include_router(floors.router)
    app.include_router(villas.router)
    app.include_router(tenants.router)
    app.include_router(transactions.router)
    app.include_router(assignments.router)
    app.include_router(units.router)

    return app


app = create_app()
