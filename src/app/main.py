"""Solar Fleet Simulator - synthetic plant telemetry over REST and SSE.

Main FastAPI application.  Run with ``uvicorn app.main:app``.
"""

import random
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.config import Settings, settings
from app.routers import plants_router, simulation_router, stream_router
from fleetsim import __version__
from fleetsim.comms.broadcaster import Broadcaster
from fleetsim.simulation.clock import TickClock
from fleetsim.simulation.snapshot import SnapshotProducer


def create_broadcaster(config: Settings | None = None) -> Broadcaster:
    """Wire a fresh clock, producer and registry into a Broadcaster."""
    config = config or settings
    rng = random.Random(config.random_seed)
    return Broadcaster(
        clock=TickClock(),
        producer=SnapshotProducer(rng=rng),
        interval=config.broadcast_interval,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("=" * 60)
    logger.info(f"  {settings.app_name.upper()} v{__version__} - INITIALIZING")
    logger.info("=" * 60)

    broadcaster = create_broadcaster()
    app.state.broadcaster = broadcaster
    logger.info(f"Plant catalog: {len(broadcaster.producer.catalog)} plants")

    if settings.broadcast_enabled:
        broadcaster.start()
    else:
        logger.info("Auto-simulation disabled (BROADCAST_ENABLED=false)")

    logger.info("=" * 60)
    logger.info(f"  {settings.app_name.upper()} ONLINE on {settings.host}:{settings.port}")
    logger.info("=" * 60)

    yield

    broadcaster.stop()
    logger.info(f"{settings.app_name} shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Solar Fleet Simulator",
    description="Synthetic solar plant telemetry with live SSE updates",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(plants_router)
app.include_router(simulation_router)
app.include_router(stream_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": __version__,
        "system": settings.app_name,
    }
