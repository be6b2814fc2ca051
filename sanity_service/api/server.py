"""FastAPI server for the sanity service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from sanity_service import __version__
from sanity_service.api.routes import router
from sanity_service.config import settings
from sanity_service.probes.battery import load_battery
from sanity_service.service import RunService
from sanity_service.store import create_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the battery and open the result store for the app's lifetime."""
    battery = load_battery(settings.battery_path, settings.validator_connect_timeout)
    store = create_store(settings)
    app.state.run_service = RunService(
        battery, store, timeout=settings.probe_timeout_seconds,
    )
    logger.info("Sanity service ready: %d probe(s), store=%s", len(battery), settings.result_store)

    yield

    store.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Sanity Service",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()
