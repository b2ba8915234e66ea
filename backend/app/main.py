"""
Usage Insights - Backend Layer

Entry point for the backend server.

"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.config import get_settings
from backend.app.llm.query_refiner import shared_client
from backend.app.routes.insights import cart_router, dashboard_router, pins_router, query_router
from backend.app.routes.insights.query_route import get_engine

settings = get_settings()

# Logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


# Application lifespan (startup / shutdown)
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run startup and shutdown logic for the FastAPI application."""
    # --- Startup ---
    logger.info("Starting Usage Insights for %s...", settings.organization)
    engine = get_engine()
    logger.info(
        "Dataset ready: %d schools, %d intents.",
        engine.store.summary.school_count,
        len(engine.capabilities),
    )
    if settings.refiner_enabled:
        try:
            shared_client(settings).check_ready()
        except RuntimeError as exc:
            logger.warning("Query refinement unavailable: %s", exc)

    yield  # Application runs here.

    # --- Shutdown ---
    logger.info("Shutting down Usage Insights.")


# Application
app = FastAPI(
    title="Usage Insights",
    description=(
        "Natural-language analytics over school-district usage data"
    ),
    version="0.1.0",
    lifespan=lifespan,
)

# Allow browser clients on other origins to call the API.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(query_router)
app.include_router(pins_router)
app.include_router(dashboard_router)
app.include_router(cart_router)


# Health check
@app.get("/health")
async def health_check():
    """Liveness probe: dataset state and refiner availability."""
    engine = get_engine()
    refiner_ready = settings.refiner_enabled and shared_client(settings).is_available()

    return {
        "status": "healthy" if engine.store.is_loaded else "degraded",
        "schools": len(engine.store.schools),
        "refiner_enabled": settings.refiner_enabled,
        "refiner_connected": refiner_ready,
        "model": settings.ollama_model if settings.refiner_enabled else None,
    }
