"""Unit tests for SnapshotProducer — fleet/plant snapshots, ranges, charts.

Tests cover:
  - Fleet snapshot shape, KPIs aggregated from the carried plant views
  - Plant snapshot for int and numeric-string ids, UnknownPlantError otherwise
  - Fresh jitter on every call (same tick, different values, same shape)
  - Documented numeric ranges across many ticks
  - Daylight curve, soiling cap, date formatting, days-left countdown
  - Chart helpers (power, performance ratio, soiling, cleaning events)
"""

from __future__ import annotations

import dataclasses
import math
import random
from datetime import date

import pytest

from fleetsim.simulation.catalog import PLANTS, Plant, PlantCatalog, CleaningSchedule
from fleetsim.simulation.snapshot import (
    SOILING_CAP,
    TICKS_PER_DAY,
    FleetSnapshot,
    PlantSnapshot,
    SnapshotProducer,
    UnknownPlantError,
    format_date,
)


pytestmark = pytest.mark.unit

NOON = 24  # tick for 12:00 on day 0


def _producer(seed: int = 7, today: date = date(2025, 10, 16)) -> SnapshotProducer:
    return SnapshotProducer(rng=random.Random(seed), today=lambda: today)


class TestFleetSnapshot:

    def test_contains_every_plant_in_catalog_order(self):
        snap = _producer().fleet_snapshot(0)
        assert isinstance(snap, FleetSnapshot)
        assert [p.id for p in snap.plants] == [p.id for p in PLANTS]

    def test_carries_tick(self):
        assert _producer().fleet_snapshot(17).tick == 17

    def test_to_dict_wire_keys(self):
        data = _producer().fleet_snapshot(5).to_dict()
        assert set(data) == {"plants", "kpis", "tick"}
        assert data["tick"] == 5
        plant = data["plants"][0]
        for key in ("id", "name", "location", "capacity", "avgPR", "production",
                    "productionUnit", "revenue", "revenueUnit", "soiling",
                    "nextCleaning", "daysLeft"):
            assert key in plant
        for key in ("totalProduction", "totalRevenue", "nextCleaning", "lastCleaned",
                    "activePlants", "avgSystemEfficiency"):
            assert key in data["kpis"]

    def test_active_plants_matches_catalog(self):
        assert _producer().fleet_snapshot(0).kpis.active_plants == len(PLANTS)

    def test_kpis_zero_production_at_night(self):
        snap = _producer().fleet_snapshot(0)
        assert all(p.production == 0 for p in snap.plants)
        assert snap.kpis.total_production == 0

    def test_kpis_positive_production_at_noon(self):
        snap = _producer().fleet_snapshot(NOON)
        assert all(p.production > 0 for p in snap.plants)
        assert snap.kpis.total_production > 0

    def test_fleet_cleaning_dates(self):
        kpis = _producer().fleet_snapshot(0).kpis
        assert kpis.next_cleaning == "Oct 19, 2025"
        assert kpis.last_cleaned == "Oct 18, 2025"

    def test_snapshot_is_frozen(self):
        snap = _producer().fleet_snapshot(0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            snap.tick = 99
        with pytest.raises(dataclasses.FrozenInstanceError):
            snap.plants[0].production = 1

    def test_same_tick_gives_fresh_jitter(self):
        producer = _producer()
        a = producer.fleet_snapshot(NOON).to_dict()
        b = producer.fleet_snapshot(NOON).to_dict()
        assert a != b
        assert set(a) == set(b)


class TestEntitySnapshot:

    def test_known_plant(self):
        snap = _producer().entity_snapshot(NOON, 3)
        assert isinstance(snap, PlantSnapshot)
        assert snap.tick == NOON
        assert snap.plant.id == 3
        assert snap.plant.name == "Solar Peak Gamma"

    def test_numeric_string_id(self):
        assert _producer().entity_snapshot(0, "5").plant.id == 5

    @pytest.mark.parametrize("plant_id", [0, 11, 999, -1, "abc", "", None, "3.5", True])
    def test_unknown_plant_raises(self, plant_id):
        with pytest.raises(UnknownPlantError) as exc:
            _producer().entity_snapshot(0, plant_id)
        assert exc.value.plant_id == plant_id

    def test_unknown_plant_error_is_key_error(self):
        with pytest.raises(KeyError):
            _producer().entity_snapshot(0, 42)

    def test_kpis_share_soiling_and_pr_with_plant(self):
        snap = _producer().entity_snapshot(NOON, 1)
        assert snap.kpis.avg_soiling == snap.plant.soiling
        assert snap.kpis.avg_pr == snap.plant.avg_pr

    def test_to_dict_wire_keys(self):
        data = _producer().entity_snapshot(NOON, 2).to_dict()
        assert set(data) == {"plant", "kpis", "powerChart"}
        assert data["plant"]["id"] == 2
        assert "actualPower" in data["kpis"]
        assert len(data["powerChart"]) == 30

    def test_two_calls_same_shape_independent_values(self):
        producer = _producer()
        a = producer.entity_snapshot(5, "1").to_dict()
        b = producer.entity_snapshot(5, "1").to_dict()
        assert a != b
        assert set(a) == set(b)
        assert set(a["plant"]) == set(b["plant"])
        assert set(a["kpis"]) == set(b["kpis"])
        for snap in (a, b):
            assert 0 <= snap["plant"]["avgPR"] <= 100
            assert 0 <= snap["plant"]["soiling"] <= SOILING_CAP


class TestRanges:

    @pytest.mark.parametrize("tick", [0, 1, NOON, 47, 48, 500, TICKS_PER_DAY * 60])
    def test_plant_fields_in_range(self, tick):
        producer = _producer(seed=tick)
        for plant in producer.fleet_snapshot(tick).plants:
            assert 0 <= plant.avg_pr <= 100
            assert 0 <= plant.soiling <= SOILING_CAP
            assert plant.production >= 0
            assert plant.revenue >= 0

    @pytest.mark.parametrize("tick", [0, NOON, 1000])
    def test_fleet_efficiency_in_range(self, tick):
        for seed in range(20):
            kpis = _producer(seed=seed).fleet_snapshot(tick).kpis
            assert 0 <= kpis.avg_system_efficiency <= 100
            assert kpis.total_production >= 0
            assert kpis.total_revenue >= 0

    def test_soiling_grows_with_days(self):
        producer = _producer()
        early = producer.entity_snapshot(0, 1).plant.soiling
        later = producer.entity_snapshot(TICKS_PER_DAY * 10, 1).plant.soiling
        assert later > early

    def test_soiling_capped(self):
        producer = _producer()
        snap = producer.entity_snapshot(TICKS_PER_DAY * 365, 1)
        assert snap.plant.soiling == SOILING_CAP

    def test_pr_drops_as_soiling_builds(self):
        producer = _producer()
        clean = producer.entity_snapshot(0, 1).plant.avg_pr
        dirty = producer.entity_snapshot(TICKS_PER_DAY * 365, 1).plant.avg_pr
        assert dirty < clean


class TestDaylight:

    @pytest.mark.parametrize("tick", [0, 5, 11, 37, 40, 47])
    def test_dark_hours(self, tick):
        assert SnapshotProducer.daylight_factor(tick) == 0.0

    def test_noon_is_peak(self):
        assert SnapshotProducer.daylight_factor(NOON) == pytest.approx(1.0)

    def test_wraps_each_day(self):
        assert SnapshotProducer.daylight_factor(NOON + TICKS_PER_DAY) == pytest.approx(1.0)

    def test_morning_is_partial(self):
        factor = SnapshotProducer.daylight_factor(18)  # 09:00
        assert factor == pytest.approx(math.sin(math.pi / 4))


class TestFormatting:

    def test_format_date(self):
        assert format_date(date(2025, 10, 21)) == "Oct 21, 2025"
        assert format_date(date(2025, 9, 3)) == "Sep 3, 2025"

    def test_format_none(self):
        assert format_date(None) is None

    def test_days_left_countdown(self):
        producer = _producer(today=date(2025, 10, 16))
        view = producer.entity_snapshot(0, 1).plant  # next cleaning Oct 21
        assert view.days_left == "5 Days left"

    def test_days_left_due(self):
        producer = _producer(today=date(2025, 12, 1))
        assert producer.entity_snapshot(0, 1).plant.days_left == "Due"

    def test_capacity_label(self):
        assert _producer().entity_snapshot(0, 1).plant.capacity == "75.2 MWp"


class TestCharts:

    def test_power_chart_steps(self):
        points = _producer().power_chart(0)
        assert len(points) == 30
        assert points[0].time == "5:00"
        assert points[1].time == "5:30"
        assert points[-1].time == "19:30"

    def test_power_chart_actual_below_peak_expected(self):
        for point in _producer().power_chart(0):
            assert 0 <= point.actual <= point.expected * 1.05 * 0.97 + 1

    def test_performance_ratio_chart(self):
        rows = _producer().performance_ratio_chart(3)
        assert len(rows) == 15
        assert rows[0]["date"] == "1"
        assert set(rows[0]) == {"date", "line1", "line2", "line3", "line4"}

    def test_soiling_chart_resets_on_cleaning_dates(self):
        rows = _producer().soiling_chart(0)
        by_date = {r["date"]: r for r in rows}
        assert len(rows) == 23
        assert 2.0 <= by_date["3/1"]["soiling"] <= 3.0
        assert by_date["10/21"]["selected"] == by_date["10/21"]["soiling"]
        assert by_date["10/15"]["selected"] is None

    def test_soiling_stats(self):
        stats = _producer().soiling_stats(10)
        assert stats["todaySoiling"] == pytest.approx(2.8)
        assert stats["cleaningDateMarker"] == "10/21"

    def test_cleaning_events_keep_sign(self):
        events = _producer().cleaning_events()
        assert len(events) == 7
        for event in events:
            assert (event["moneySaved"] >= 0) == event["isPositive"]
        assert events[0]["date"] == "Oct 15, 2025"


class TestCustomCatalog:

    def test_single_plant_catalog(self):
        plant = Plant(42, "Test Array", "Nowhere", 10.0, 5, 10)
        catalog = PlantCatalog(
            plants=(plant,),
            schedule={42: CleaningSchedule(42, date(2025, 1, 2), date(2025, 1, 1))},
            events=(),
        )
        producer = SnapshotProducer(catalog=catalog, rng=random.Random(1))
        snap = producer.fleet_snapshot(NOON)
        assert [p.id for p in snap.plants] == [42]
        assert producer.entity_snapshot(NOON, 42).plant.name == "Test Array"
        with pytest.raises(UnknownPlantError):
            producer.entity_snapshot(NOON, 1)
        assert producer.cleaning_events() == []
