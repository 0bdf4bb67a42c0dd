"""Static plant catalog — the fleet the simulator pretends to monitor.

PLANTS            -- the ten plants with nameplate capacity and base output
CLEANING_SCHEDULE -- last/next panel cleaning date per plant id
CLEANING_EVENTS   -- historical cleaning outcomes shown on the plant page
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Plant:
    """One solar plant in the fleet."""
    id: int
    name: str
    location: str
    capacity_mwp: float
    base_production: float  # kWh per 30-minute step at solar noon
    base_revenue: float     # K $USD per step at base production


@dataclass(frozen=True)
class CleaningSchedule:
    plant_id: int
    next_cleaning: date
    last_cleaned: date


@dataclass(frozen=True)
class CleaningEvent:
    """A past cleaning and the money it saved (negative = cleaned too early)."""
    date: date
    money_saved: float
    soiling_on_date: float       # percent
    cleaning_effectiveness: float  # percent

    @property
    def is_positive(self) -> bool:
        return self.money_saved >= 0


PLANTS: tuple[Plant, ...] = (
    Plant(1, "Sunfield Alpha", "Arizona, USA", 75.2, 45, 120),
    Plant(2, "Desert Sun Beta", "Nevada, USA", 62.8, 38, 95),
    Plant(3, "Solar Peak Gamma", "California, USA", 89.4, 52, 145),
    Plant(4, "Helios Delta", "Texas, USA", 54.1, 32, 88),
    Plant(5, "Radiant Epsilon", "New Mexico, USA", 71.6, 42, 112),
    Plant(6, "Solstice Zeta", "Utah, USA", 48.3, 28, 75),
    Plant(7, "Aurora Eta", "Colorado, USA", 66.9, 39, 105),
    Plant(8, "Phoenix Theta", "Florida, USA", 82.5, 48, 130),
    Plant(9, "Lumina Iota", "Georgia, USA", 57.2, 34, 92),
    Plant(10, "Zenith Kappa", "North Carolina, USA", 73.8, 44, 118),
)

CLEANING_SCHEDULE: dict[int, CleaningSchedule] = {
    s.plant_id: s
    for s in (
        CleaningSchedule(1, date(2025, 10, 21), date(2025, 10, 13)),
        CleaningSchedule(2, date(2025, 10, 23), date(2025, 10, 10)),
        CleaningSchedule(3, date(2025, 10, 19), date(2025, 10, 8)),
        CleaningSchedule(4, date(2025, 10, 25), date(2025, 10, 15)),
        CleaningSchedule(5, date(2025, 10, 22), date(2025, 10, 12)),
        CleaningSchedule(6, date(2025, 10, 28), date(2025, 10, 18)),
        CleaningSchedule(7, date(2025, 10, 20), date(2025, 10, 9)),
        CleaningSchedule(8, date(2025, 10, 24), date(2025, 10, 14)),
        CleaningSchedule(9, date(2025, 10, 26), date(2025, 10, 16)),
        CleaningSchedule(10, date(2025, 10, 27), date(2025, 10, 17)),
    )
}

CLEANING_EVENTS: tuple[CleaningEvent, ...] = (
    CleaningEvent(date(2025, 10, 15), 1512.8, 22.6, 99.0),
    CleaningEvent(date(2025, 10, 8), 1245.3, 18.4, 97.0),
    CleaningEvent(date(2025, 10, 1), -234.5, 8.2, 95.0),
    CleaningEvent(date(2025, 9, 24), 987.6, 15.8, 98.0),
    CleaningEvent(date(2025, 9, 17), 1876.2, 24.1, 99.0),
    CleaningEvent(date(2025, 9, 10), -156.8, 6.5, 94.0),
    CleaningEvent(date(2025, 9, 3), 2134.7, 28.3, 99.0),
)


class PlantCatalog:
    """Lookup over a fixed set of plants and their cleaning schedules."""

    def __init__(
        self,
        plants: tuple[Plant, ...] = PLANTS,
        schedule: dict[int, CleaningSchedule] | None = None,
        events: tuple[CleaningEvent, ...] = CLEANING_EVENTS,
    ) -> None:
        self._plants = {p.id: p for p in plants}
        self._schedule = dict(CLEANING_SCHEDULE if schedule is None else schedule)
        self.events = events

    def __len__(self) -> int:
        return len(self._plants)

    def __iter__(self):
        return iter(self._plants.values())

    def __contains__(self, plant_id: object) -> bool:
        return plant_id in self._plants

    def get(self, plant_id: int) -> Plant | None:
        return self._plants.get(plant_id)

    def schedule_for(self, plant_id: int) -> CleaningSchedule:
        return self._schedule[plant_id]

    def next_cleaning(self) -> date | None:
        """Earliest upcoming cleaning across the fleet."""
        return min((s.next_cleaning for s in self._schedule.values()), default=None)

    def last_cleaned(self) -> date | None:
        """Most recent completed cleaning across the fleet."""
        return max((s.last_cleaned for s in self._schedule.values()), default=None)
