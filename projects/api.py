"""
FastAPI app entry point aggregating routers under projects/routes.
Run with `uvicorn projects.api:app`.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI

from . import __version__
from .db import init_schema
from .logs import ensure_log_schema

logger = logging.getLogger(__name__)

app = FastAPI(title="projects-api", version=__version__)


@app.on_event("startup")
def on_startup():
    init_schema()
    ensure_log_schema()
    logger.info("schema ready")


from .routes import base as base_routes
from .routes import projects as project_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(project_routes.router)
app.include_router(logs_routes.router)
