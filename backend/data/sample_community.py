"""Sample energy community for development and tests."""

import math

import numpy as np

from core.models import (
    HOURS_IN_WINDOW,
    Battery,
    Building,
    ChargePoint,
    CommunityDataset,
    Connection,
    GridConnection,
    SolarArray,
)


def _solar_profile(peak_kwh: float, rng: np.random.Generator) -> list[float]:
    """Bell-shaped daytime production, sunrise 06:00, sunset 20:00."""
    values: list[float] = []
    for h in range(HOURS_IN_WINDOW):
        hour = h % 24
        if 6 <= hour <= 20:
            base = peak_kwh * math.sin(math.pi * (hour - 6) / 14)
            values.append(round(max(0.0, base * rng.uniform(0.8, 1.0)), 2))
        else:
            values.append(0.0)
    return values


def _demand_profile(base_kwh: float, rng: np.random.Generator) -> list[float]:
    """Office-style demand: low at night, peaks mid-morning and afternoon."""
    values: list[float] = []
    for h in range(HOURS_IN_WINDOW):
        hour = h % 24
        shape = 0.3 + 0.7 * max(0.0, math.sin(math.pi * (hour - 6) / 12)) if 6 <= hour <= 18 else 0.3
        values.append(round(base_kwh * shape * rng.uniform(0.9, 1.1), 2))
    return values


def _battery_profile(power_kwh: float) -> list[float]:
    """Charge around midday (negative = into battery), discharge in the evening."""
    values: list[float] = []
    for h in range(HOURS_IN_WINDOW):
        hour = h % 24
        if 10 <= hour <= 14:
            values.append(-power_kwh)
        elif 17 <= hour <= 21:
            values.append(power_kwh)
        else:
            values.append(0.0)
    return values


def _charging_profile(power_kwh: float, v2g: bool) -> list[float]:
    values: list[float] = []
    for h in range(HOURS_IN_WINDOW):
        hour = h % 24
        if 8 <= hour <= 16:
            values.append(power_kwh)
        elif v2g and 18 <= hour <= 20:
            values.append(-power_kwh * 0.5)
        else:
            values.append(0.0)
    return values


def create_sample_community(seed: int = 7) -> CommunityDataset:
    """Hardcoded campus community: pinned buildings plus free generation and storage assets."""
    rng = np.random.default_rng(seed)

    entities = [
        Building(id="SB1", name="SB1", owner="Chalmersfastigheter", area=5200.0, total_energy_demand=410_000.0,
                 total_pv_capacity=45.0, building_type="Education"),
        Building(id="HA", name="HA", owner="Chalmersfastigheter", area=3100.0, total_energy_demand=260_000.0,
                 building_type="Lecture halls"),
        Building(id="HB", name="HB", owner="Chalmersfastigheter", area=2900.0, total_energy_demand=240_000.0,
                 building_type="Lecture halls"),
        Building(id="MC2", name="MC2", owner="Akademiska Hus", area=8800.0, total_energy_demand=950_000.0,
                 total_pv_capacity=30.0, building_type="Laboratory"),
        Building(id="Kårhus", name="Kårhus", owner="Chalmers Studentkår", area=4100.0, total_energy_demand=330_000.0,
                 building_type="Student union"),
        SolarArray(id="PV-Plant", name="PV Plant", owner="Chalmersfastigheter", installed_capacity=120.0,
                   annual_production=110_000.0, total_embodied_co2=54_000.0),
        SolarArray(id="pv-sb1-roof", name="SB1 Roof PV", owner="Chalmersfastigheter", installed_capacity=45.0,
                   annual_production=41_000.0, total_embodied_co2=20_000.0),
        SolarArray(id="pv-mc2-roof", name="MC2 Roof PV", owner="Akademiska Hus", installed_capacity=30.0,
                   annual_production=27_000.0, total_embodied_co2=13_500.0),
        Battery(id="battery-ha", name="HA Battery", owner="Chalmersfastigheter", capacity=200.0,
                total_cost=1_400_000.0, total_embodied_co2=16_000.0),
        GridConnection(id="grid", name="Grid"),
        ChargePoint(id="cp-1", name="Charge Point 1", owner="Chalmersfastigheter", capacity=22.0, is_v2g=True,
                    total_connected_evs=2),
        ChargePoint(id="cp-2", name="Charge Point 2", owner="Chalmers Studentkår", capacity=11.0, is_v2g=False,
                    total_connected_evs=1),
    ]

    connections = [
        Connection(source="PV-Plant", target="grid", flow=_solar_profile(90.0, rng)),
        Connection(source="pv-sb1-roof", target="SB1", flow=_solar_profile(35.0, rng)),
        Connection(source="pv-mc2-roof", target="MC2", flow=_solar_profile(24.0, rng)),
        Connection(source="grid", target="SB1", flow=_demand_profile(40.0, rng)),
        Connection(source="grid", target="HA", flow=_demand_profile(25.0, rng)),
        Connection(source="grid", target="HB", flow=_demand_profile(22.0, rng)),
        Connection(source="grid", target="MC2", flow=_demand_profile(95.0, rng)),
        Connection(source="grid", target="Kårhus", flow=_demand_profile(30.0, rng)),
        Connection(source="battery-ha", target="HA", flow=_battery_profile(15.0)),
        Connection(source="HA", target="cp-1", flow=_charging_profile(11.0, v2g=True)),
        Connection(source="Kårhus", target="cp-2", flow=_charging_profile(7.0, v2g=False)),
    ]

    return CommunityDataset(entities=entities, connections=connections)


SAMPLE_COMMUNITY = create_sample_community()


def create_minimal_community() -> CommunityDataset:
    """Five-entity community with a single solar -> building link.

    Flow is +5 at hour 0, -3 at hour 1 and zero afterwards.
    """
    flow = [5.0, -3.0] + [0.0] * (HOURS_IN_WINDOW - 2)
    return CommunityDataset(
        entities=[
            SolarArray(id="solar_A", name="Solar A", installed_capacity=10.0),
            SolarArray(id="solar_B", name="Solar B", installed_capacity=20.0),
            Battery(id="battery", name="Battery", capacity=50.0),
            GridConnection(id="grid", name="Grid"),
            Building(id="building", name="Building"),
        ],
        connections=[Connection(source="solar_A", target="building", flow=flow)],
    )
