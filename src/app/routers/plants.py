"""Plant telemetry REST API — point-in-time reads of the simulated fleet.

Endpoints:
    GET /api/plants                      — All plants
    GET /api/plants/{id}                 — Single plant
    GET /api/plants/{id}/kpis            — Plant KPIs
    GET /api/kpis                        — Company KPIs
    GET /api/charts/power                — Actual vs expected power
    GET /api/charts/performance-ratio    — PR trend
    GET /api/charts/soiling              — Soiling trend + stats
    GET /api/cleaning-events             — Cleaning history
    GET /api/dashboard                   — Plants + KPIs + tick
    GET /api/plant-overview/{id}         — Everything the plant page shows

Every read samples fresh jitter at the current tick; nothing is cached.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from app.routers.simulation import get_broadcaster
from fleetsim.simulation.snapshot import UnknownPlantError

router = APIRouter(prefix="/api", tags=["plants"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Plant not found")


@router.get("/plants")
async def list_plants(request: Request):
    b = get_broadcaster(request)
    return [p.to_dict() for p in b.producer.plant_views(b.current_tick())]


@router.get("/plants/{plant_id}")
async def get_plant(plant_id: str, request: Request):
    b = get_broadcaster(request)
    try:
        return b.producer.plant_view(b.current_tick(), plant_id).to_dict()
    except UnknownPlantError:
        raise _not_found()


@router.get("/plants/{plant_id}/kpis")
async def get_plant_kpis(plant_id: str, request: Request):
    b = get_broadcaster(request)
    try:
        return b.producer.plant_kpis(b.current_tick(), plant_id).to_dict()
    except UnknownPlantError:
        raise _not_found()


@router.get("/kpis")
async def get_company_kpis(request: Request):
    b = get_broadcaster(request)
    return b.producer.fleet_snapshot(b.current_tick()).kpis.to_dict()


@router.get("/charts/power")
async def get_power_chart(request: Request):
    b = get_broadcaster(request)
    return [p.to_dict() for p in b.producer.power_chart(b.current_tick())]


@router.get("/charts/performance-ratio")
async def get_performance_ratio_chart(request: Request):
    b = get_broadcaster(request)
    return b.producer.performance_ratio_chart(b.current_tick())


@router.get("/charts/soiling")
async def get_soiling_chart(request: Request):
    b = get_broadcaster(request)
    tick = b.current_tick()
    return {
        "chartData": b.producer.soiling_chart(tick),
        "stats": b.producer.soiling_stats(tick),
    }


@router.get("/cleaning-events")
async def get_cleaning_events(request: Request):
    return get_broadcaster(request).producer.cleaning_events()


@router.get("/dashboard")
async def get_dashboard(request: Request):
    """Plants, company KPIs and tick in one call, same shape as the stream."""
    b = get_broadcaster(request)
    return b.producer.fleet_snapshot(b.current_tick()).to_dict()


@router.get("/plant-overview/{plant_id}")
async def get_plant_overview(plant_id: str, request: Request):
    """Plant, KPIs, all charts and cleaning history for the plant page."""
    b = get_broadcaster(request)
    producer = b.producer
    tick = b.current_tick()
    try:
        snapshot = producer.entity_snapshot(tick, plant_id)
    except UnknownPlantError:
        raise _not_found()
    return {
        **snapshot.to_dict(),
        "prChart": producer.performance_ratio_chart(tick),
        "soilingChart": {
            "chartData": producer.soiling_chart(tick),
            "stats": producer.soiling_stats(tick),
        },
        "cleaningEvents": producer.cleaning_events(),
        "tick": tick,
    }
