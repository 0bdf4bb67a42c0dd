"""API routers for the solar fleet simulator."""

from app.routers.plants import router as plants_router
from app.routers.simulation import router as simulation_router
from app.routers.stream import router as stream_router

__all__ = ["plants_router", "simulation_router", "stream_router"]
