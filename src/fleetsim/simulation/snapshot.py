"""SnapshotProducer — synthetic plant telemetry as a function of the tick.

Every value is a deterministic function of the tick plus fresh random
jitter, so calling twice with the same tick gives two differently-noised
readings.  That is what the dashboard expects from "live" telemetry; the
producer is not a cache.

Time model:
  48 ticks per simulated day (30-minute steps).  Soiling builds up by
  0.8 % per day since the tick clock last started, capped at 35 %.
  Performance ratio drops 0.3 points per soiling percent from a 92 % base.
  Production follows a half-sine between 06:00 and 18:00.

Snapshots are frozen dataclasses.  ``to_dict()`` emits the camelCase keys
the dashboard reads off the wire.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from datetime import date
from typing import Callable

from .catalog import Plant, PlantCatalog

TICKS_PER_DAY = 48

SOILING_BASE = 1.5
SOILING_DAILY_INCREASE = 0.8
SOILING_CAP = 35.0

PR_BASE = 92.0
PR_SOILING_IMPACT = 0.3

# Expected output per hour of day (index = hour), percent of nameplate
_EXPECTED_POWER = (
    0, 0, 0, 0, 0, 0, 12, 35, 58, 78, 92, 102,
    108, 106, 98, 85, 68, 48, 25, 8, 0, 0, 0, 0,
)

_PR_TREND_BASE = (
    86.0, 85.5, 84.8, 85.2, 84.5, 83.8, 84.2, 85.1,
    84.7, 83.9, 84.5, 85.3, 84.8, 85.0, 84.6,
)

# (offset from base, noise half-width) for each PR trend line
_PR_TREND_LINES = ((0.0, 1.0), (-2.0, 0.75), (1.0, 0.9), (-1.0, 0.6))

_SOILING_DATES = (
    "1/15", "2/1", "2/15", "3/1", "3/15", "4/1", "4/15", "5/1", "5/15",
    "6/1", "6/15", "7/1", "7/15", "8/1", "8/15", "9/1", "9/15", "10/1",
    "10/15", "10/21", "11/1", "11/15", "12/1",
)
_SOILING_CLEANING_DATES = frozenset({"3/1", "5/15", "8/1", "10/21"})
_SOILING_MARKER = "10/21"


class UnknownPlantError(KeyError):
    """Raised when a plant id is not in the catalog."""

    def __init__(self, plant_id: object) -> None:
        super().__init__(plant_id)
        self.plant_id = plant_id

    def __str__(self) -> str:
        return f"Unknown plant: {self.plant_id!r}"


def format_date(d: date | None) -> str | None:
    """Format a date the way the dashboard prints it, e.g. ``Oct 21, 2025``."""
    if d is None:
        return None
    return f"{d:%b} {d.day}, {d.year}"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlantView:
    """Live reading for one plant."""
    id: int
    name: str
    location: str
    capacity: str
    avg_pr: float        # percent, 0-100
    production: int      # kWh
    production_unit: str
    revenue: int         # K $USD
    revenue_unit: str
    soiling: float       # percent, 0-35
    next_cleaning: str
    days_left: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "capacity": self.capacity,
            "avgPR": self.avg_pr,
            "production": self.production,
            "productionUnit": self.production_unit,
            "revenue": self.revenue,
            "revenueUnit": self.revenue_unit,
            "soiling": self.soiling,
            "nextCleaning": self.next_cleaning,
            "daysLeft": self.days_left,
        }


@dataclass(frozen=True)
class FleetKPIs:
    """Company-wide aggregate figures."""
    total_production: float
    total_revenue: float
    next_cleaning: str | None
    last_cleaned: str | None
    active_plants: int
    avg_system_efficiency: float  # percent, 0-100
    total_production_unit: str = "kWh"
    total_revenue_unit: str = "M $USD"

    def to_dict(self) -> dict:
        return {
            "totalProduction": self.total_production,
            "totalProductionUnit": self.total_production_unit,
            "totalRevenue": self.total_revenue,
            "totalRevenueUnit": self.total_revenue_unit,
            "nextCleaning": self.next_cleaning,
            "lastCleaned": self.last_cleaned,
            "activePlants": self.active_plants,
            "avgSystemEfficiency": self.avg_system_efficiency,
        }


@dataclass(frozen=True)
class PlantKPIs:
    """Per-plant KPI card figures."""
    avg_pr: float
    total_production: float
    total_revenue: float
    avg_soiling: float
    next_cleaning: str | None
    latest_soiling_update: str | None
    actual_power: int
    expected_power: int
    total_production_unit: str = "kWh"
    total_revenue_unit: str = "M $USD"

    def to_dict(self) -> dict:
        return {
            "avgPR": self.avg_pr,
            "totalProduction": self.total_production,
            "totalProductionUnit": self.total_production_unit,
            "totalRevenue": self.total_revenue,
            "totalRevenueUnit": self.total_revenue_unit,
            "avgSoiling": self.avg_soiling,
            "nextCleaning": self.next_cleaning,
            "latestSoilingUpdate": self.latest_soiling_update,
            "actualPower": self.actual_power,
            "expectedPower": self.expected_power,
        }


@dataclass(frozen=True)
class PowerPoint:
    time: str
    actual: int
    expected: int

    def to_dict(self) -> dict:
        return {"time": self.time, "actual": self.actual, "expected": self.expected}


@dataclass(frozen=True)
class FleetSnapshot:
    """State of every plant plus fleet KPIs at one tick."""
    tick: int
    plants: tuple[PlantView, ...]
    kpis: FleetKPIs

    def to_dict(self) -> dict:
        return {
            "plants": [p.to_dict() for p in self.plants],
            "kpis": self.kpis.to_dict(),
            "tick": self.tick,
        }


@dataclass(frozen=True)
class PlantSnapshot:
    """State of a single plant at one tick."""
    tick: int
    plant: PlantView
    kpis: PlantKPIs
    power_chart: tuple[PowerPoint, ...]

    def to_dict(self) -> dict:
        return {
            "plant": self.plant.to_dict(),
            "kpis": self.kpis.to_dict(),
            "powerChart": [p.to_dict() for p in self.power_chart],
        }


# ---------------------------------------------------------------------------
# Producer
# ---------------------------------------------------------------------------


class SnapshotProducer:
    """Computes fleet and per-plant snapshots from the tick.

    Args:
        catalog: Plants and cleaning schedules to simulate.
        rng: Random source for jitter.  Pass a seeded ``random.Random`` in
            tests; defaults to a fresh unseeded instance.
        today: Callable returning the current date, used for "days left".
    """

    def __init__(
        self,
        catalog: PlantCatalog | None = None,
        rng: random.Random | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.catalog = catalog if catalog is not None else PlantCatalog()
        self._rng = rng if rng is not None else random.Random()
        self._today = today

    # -- helpers ------------------------------------------------------------

    def _jitter(self, base: float, fraction: float = 0.1) -> float:
        """Return ``base`` +/- ``base * fraction``, uniformly."""
        spread = base * fraction
        return base + self._rng.uniform(-spread, spread)

    def _soiling(self, tick: int) -> float:
        days = tick // TICKS_PER_DAY
        soiling = SOILING_BASE + days * SOILING_DAILY_INCREASE + self._jitter(0.5, 0.5)
        return round(_clamp(soiling, 0.0, SOILING_CAP), 1)

    def _performance_ratio(self, soiling: float) -> float:
        pr = PR_BASE - soiling * PR_SOILING_IMPACT + self._jitter(2.0, 0.5)
        return round(_clamp(pr, 0.0, 100.0), 1)

    @staticmethod
    def daylight_factor(tick: int) -> float:
        """Fraction of peak irradiance for the tick's hour of day."""
        hour = (tick % TICKS_PER_DAY) / 2
        if 6 <= hour <= 18:
            return math.sin((hour - 6) / 12 * math.pi)
        return 0.0

    def _days_left(self, target: date) -> str:
        diff = (target - self._today()).days
        return f"{diff} Days left" if diff > 0 else "Due"

    def resolve(self, plant_id: int | str) -> Plant:
        """Look up a plant by int or numeric string id.

        Raises:
            UnknownPlantError: if the id is malformed or not in the catalog.
        """
        if isinstance(plant_id, bool):
            raise UnknownPlantError(plant_id)
        try:
            key = int(plant_id)
        except (TypeError, ValueError):
            raise UnknownPlantError(plant_id) from None
        plant = self.catalog.get(key)
        if plant is None:
            raise UnknownPlantError(plant_id)
        return plant

    def _plant_view(self, plant: Plant, tick: int, soiling: float, pr: float) -> PlantView:
        schedule = self.catalog.schedule_for(plant.id)
        production = round(
            plant.base_production * self.daylight_factor(tick) * (pr / 100)
            * self._jitter(1.0, 0.05)
        )
        revenue = round(
            plant.base_revenue * (production / plant.base_production)
            * self._jitter(1.0, 0.03)
        )
        return PlantView(
            id=plant.id,
            name=plant.name,
            location=plant.location,
            capacity=f"{plant.capacity_mwp:.1f} MWp",
            avg_pr=pr,
            production=max(0, production),
            production_unit=f"{self._jitter(plant.capacity_mwp, 0.1):.1f} MWp",
            revenue=max(0, revenue),
            revenue_unit="K $USD",
            soiling=soiling,
            next_cleaning=format_date(schedule.next_cleaning),
            days_left=self._days_left(schedule.next_cleaning),
        )

    def _plant_kpis(self, plant: Plant, soiling: float, pr: float) -> PlantKPIs:
        schedule = self.catalog.schedule_for(plant.id)
        return PlantKPIs(
            avg_pr=pr,
            total_production=round(plant.base_production * 425 + self._jitter(1000, 0.1), 1),
            total_revenue=round(plant.base_revenue / 100 * self._jitter(1.2, 0.05), 1),
            avg_soiling=soiling,
            next_cleaning=format_date(schedule.next_cleaning),
            latest_soiling_update=format_date(schedule.last_cleaned),
            actual_power=round(98 + self._jitter(10, 0.3)),
            expected_power=round(106 + self._jitter(5, 0.2)),
        )

    # -- snapshots ----------------------------------------------------------

    def plant_views(self, tick: int) -> list[PlantView]:
        views = []
        for plant in self.catalog:
            soiling = self._soiling(tick)
            views.append(self._plant_view(plant, tick, soiling, self._performance_ratio(soiling)))
        return views

    def fleet_snapshot(self, tick: int) -> FleetSnapshot:
        """All plants plus company KPIs aggregated from those same readings."""
        plants = tuple(self.plant_views(tick))
        total_production = sum(p.production for p in plants)
        total_revenue = sum(p.revenue for p in plants)
        kpis = FleetKPIs(
            total_production=round(total_production * self._jitter(47, 0.02), 1),
            total_revenue=round(total_revenue / 1000 * self._jitter(1.2, 0.05), 1),
            next_cleaning=format_date(self.catalog.next_cleaning()),
            last_cleaned=format_date(self.catalog.last_cleaned()),
            active_plants=len(self.catalog),
            avg_system_efficiency=round(_clamp(88 + self._jitter(4, 0.3), 0.0, 100.0), 1),
        )
        return FleetSnapshot(tick=tick, plants=plants, kpis=kpis)

    def entity_snapshot(self, tick: int, plant_id: int | str) -> PlantSnapshot:
        """One plant's reading, KPIs and power curve.

        Raises:
            UnknownPlantError: if ``plant_id`` is not in the catalog.
        """
        plant = self.resolve(plant_id)
        soiling = self._soiling(tick)
        pr = self._performance_ratio(soiling)
        return PlantSnapshot(
            tick=tick,
            plant=self._plant_view(plant, tick, soiling, pr),
            kpis=self._plant_kpis(plant, soiling, pr),
            power_chart=tuple(self.power_chart(tick)),
        )

    def plant_view(self, tick: int, plant_id: int | str) -> PlantView:
        plant = self.resolve(plant_id)
        soiling = self._soiling(tick)
        return self._plant_view(plant, tick, soiling, self._performance_ratio(soiling))

    def plant_kpis(self, tick: int, plant_id: int | str) -> PlantKPIs:
        plant = self.resolve(plant_id)
        soiling = self._soiling(tick)
        return self._plant_kpis(plant, soiling, self._performance_ratio(soiling))

    # -- charts -------------------------------------------------------------

    def power_chart(self, tick: int) -> list[PowerPoint]:
        """Actual vs expected output in 30-minute steps from 05:00 to 19:30."""
        points = []
        for hour in range(5, 20):
            expected = _EXPECTED_POWER[hour]
            for minute in (0, 30):
                weather = self._rng.uniform(0.85, 1.05)
                soiling_loss = self._rng.uniform(0.92, 0.97)
                points.append(PowerPoint(
                    time=f"{hour}:{minute:02d}",
                    actual=max(0, round(expected * weather * soiling_loss)),
                    expected=expected,
                ))
        return points

    def performance_ratio_chart(self, tick: int) -> list[dict]:
        """Fifteen-day PR trend for four inverter groups."""
        data = []
        for day, base in enumerate(_PR_TREND_BASE, start=1):
            drift = ((tick + day) % 10) / 10
            row = {"date": str(day)}
            for index, (offset, noise) in enumerate(_PR_TREND_LINES, start=1):
                value = base + offset + self._rng.uniform(-noise, noise) + drift
                row[f"line{index}"] = round(value, 1)
            data.append(row)
        return data

    def soiling_chart(self, tick: int) -> list[dict]:
        """Seasonal soiling build-up, reset on each cleaning date."""
        data = []
        soiling = 2.0
        for label in _SOILING_DATES:
            if label in _SOILING_CLEANING_DATES:
                soiling = 2.0 + self._rng.uniform(0.0, 1.0)
            else:
                soiling += 0.8 + self._rng.uniform(0.0, 0.6)
            data.append({
                "date": label,
                "soiling": round(soiling, 1),
                "selected": round(soiling, 1) if label == _SOILING_MARKER else None,
                "production": round(100 - soiling * 0.4, 1),
            })
        return data

    def soiling_stats(self, tick: int) -> dict:
        return {
            "todaySoiling": round(2.3 + (tick % 100) * 0.05, 1),
            "selectedDate": "Nov 1, 2025",
            "selectedDateCost": round(7904 + self._jitter(500, 0.3)),
            "optimizedCleaningCost": round(5881 + self._jitter(300, 0.2)),
            "cleaningDateMarker": _SOILING_MARKER,
        }

    def cleaning_events(self) -> list[dict]:
        """Cleaning history with a little live noise on the savings."""
        events = []
        for event in self.catalog.events:
            if event.is_positive:
                saved = event.money_saved + self._jitter(50, 0.5)
            else:
                saved = -(abs(event.money_saved) + self._jitter(20, 0.3))
            events.append({
                "date": format_date(event.date),
                "moneySaved": round(saved, 1),
                "soilingOnDate": event.soiling_on_date,
                "cleaningEffectiveness": event.cleaning_effectiveness,
                "isPositive": event.is_positive,
            })
        return events
