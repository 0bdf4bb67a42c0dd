"""Simulation subsystem — tick clock, plant catalog, snapshot producer."""
from .catalog import CleaningEvent, CleaningSchedule, Plant, PlantCatalog
from .clock import TickClock
from .snapshot import (
    FleetKPIs,
    FleetSnapshot,
    PlantKPIs,
    PlantSnapshot,
    PlantView,
    PowerPoint,
    SnapshotProducer,
    UnknownPlantError,
)
