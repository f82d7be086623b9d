"""FastAPI application with a lifespan-managed Etsy client."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.router import api_router
from .config import settings
from .database import run_migrations

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Shared state accessible by API endpoints
app_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Running database migrations...")
    run_migrations()

    # Etsy Open API (graceful degradation: pricing works, push and sync return 503)
    if settings.etsy_enabled:
        from .etsy.client import EtsyClient

        app_state["etsy"] = EtsyClient()
        logger.info("Etsy API integration enabled")
    else:
        logger.info("Etsy API not configured, push and sync disabled")

    logger.info("pricestage started")

    yield

    # Shutdown
    if "etsy" in app_state:
        await app_state["etsy"].close()
    app_state.clear()
    logger.info("pricestage stopped")


app = FastAPI(
    title="pricestage",
    description="Staged pricing for Etsy listings: calculate, review, approve, push",
    version="0.1.0",
    lifespan=lifespan,
)
if settings.api_key:
    from .auth import ApiKeyMiddleware
    app.add_middleware(ApiKeyMiddleware)

app.include_router(api_router)
