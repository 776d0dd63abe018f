"""
Zeilumara API Server - REST API for clocks, events and integrations.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
import os

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.time_router import time_router
from zeilumara import config
from zeilumara.notifier import InMemoryNotificationCenter
from zeilumara.service import EventService
from zeilumara.store import EventStore
from zeilumara.units import load_unit_table

logger = logging.getLogger(__name__)


def build_service() -> EventService:
    """Service over the default data directory and unit table config."""
    return EventService(
        store=EventStore(),
        center=InMemoryNotificationCenter(),
        units=load_unit_table(),
    )


def create_app(service: EventService | None = None) -> FastAPI:
    """
    Build the FastAPI app around ``service``.

    The service is built from the default store when omitted. Handlers
    receive it through the ``get_service`` dependency.
    """
    app = FastAPI(
        title="Zeilumara Time API",
        description="Zeilumara clock, conversion and reminder scheduling",
        version="1.0.0",
    )

    # CORS middleware - configurable via CORS_ORIGINS env var
    cors_origins_env = os.getenv("CORS_ORIGINS", "*")
    cors_origins = (
        ["*"] if cors_origins_env == "*" else [o.strip() for o in cors_origins_env.split(",")]
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = service or build_service()
    app.include_router(time_router)
    return app


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    port = int(os.getenv("PORT", "8420"))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)
