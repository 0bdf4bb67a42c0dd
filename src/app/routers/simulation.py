"""Simulation control API — advance, reset and inspect the tick clock."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from fleetsim.comms.broadcaster import Broadcaster

router = APIRouter(prefix="/api/simulation", tags=["simulation"])


def get_broadcaster(request: Request) -> Broadcaster:
    """Retrieve the Broadcaster from app state."""
    broadcaster = getattr(request.app.state, "broadcaster", None)
    if broadcaster is None:
        raise HTTPException(503, "Simulation not available")
    return broadcaster


@router.post("/advance")
async def advance_simulation(request: Request):
    """Advance the tick by one without waiting for the next broadcast."""
    tick = get_broadcaster(request).advance_tick()
    return {"tick": tick, "message": "Simulation advanced"}


@router.post("/reset")
async def reset_simulation(request: Request):
    tick = get_broadcaster(request).reset_tick()
    return {"tick": tick, "message": "Simulation reset"}


@router.get("/status")
async def simulation_status(request: Request):
    """Current tick, connected stream clients and broadcaster state."""
    return get_broadcaster(request).status()
