import pytest

from agritwin.core.crops import CropType
from agritwin.core.data_containers import CropState, SoilHealthCard, SoilState, StressState
from agritwin.core.stress import (
    compute,
    nutrient_stress,
    update_health,
    water_demand,
    water_stress,
)

RICE = CropState(type=CropType.RICE)


def _soil(water, n_pool=280.0, card=None):
    return SoilState(
        n_pool=n_pool, moisture=0.0, card=card or SoilHealthCard(), water_available=water
    )


def test_water_demand_curve(rice_def):
    assert water_demand(rice_def, 0.0) == rice_def.water_demand_min
    assert water_demand(rice_def, 1.0) == rice_def.water_demand_peak
    assert water_demand(rice_def, 2.0) == rice_def.water_demand_late
    assert water_demand(rice_def, 0.5) == pytest.approx(6.0)
    assert water_demand(rice_def, 5.0) == rice_def.water_demand_late


def test_water_stress_shortfall(rice_def, settings):
    # demand at sowing is 4 mm, the buffer asks for 3 days of it
    assert water_stress(RICE, _soil(12.0), rice_def, settings) == 0.0
    assert water_stress(RICE, _soil(6.0), rice_def, settings) == pytest.approx(0.5)
    assert water_stress(RICE, _soil(0.0), rice_def, settings) == 1.0
    assert water_stress(RICE, _soil(500.0), rice_def, settings) == 0.0


def test_weeds_and_salinity_raise_water_stress(rice_def, settings):
    base = water_stress(RICE, _soil(10.0), rice_def, settings)
    weedy = CropState(type=CropType.RICE, weed_density=0.8)
    assert water_stress(weedy, _soil(10.0), rice_def, settings) > base
    saline = _soil(10.0, card=SoilHealthCard(ec=8.0))
    assert water_stress(RICE, saline, rice_def, settings) > base


def test_nutrient_stress(rice_def, settings):
    card = SoilHealthCard(ph=6.5)
    assert nutrient_stress(RICE, _soil(10.0, n_pool=80.0, card=card), rice_def, settings) == 0.0
    assert nutrient_stress(
        RICE, _soil(10.0, n_pool=20.0, card=card), rice_def, settings
    ) == pytest.approx(0.5)
    assert nutrient_stress(RICE, _soil(10.0, n_pool=0.0, card=card), rice_def, settings) == 1.0


def test_low_stress_streak(rice_def, settings):
    calm = compute(RICE, _soil(50.0), rice_def, StressState(low_stress_days=2), settings)
    assert calm.water == 0.0 and calm.nutrient == 0.0
    assert calm.low_stress_days == 3

    dry = compute(RICE, _soil(0.0), rice_def, calm, settings)
    assert dry.water == 1.0
    assert dry.low_stress_days == 0


def test_health_drops_with_stress(settings):
    s = StressState(water=0.6, nutrient=0.2)
    assert update_health(100.0, s, settings) == pytest.approx(94.0)


def test_health_unchanged_at_baseline(settings):
    s = StressState(water=settings.stress_baseline, low_stress_days=1)
    assert update_health(80.0, s, settings) == 80.0


def test_single_calm_day_does_not_recover(settings):
    health = 50.0
    for streak in range(1, settings.recovery_days):
        health = update_health(health, StressState(low_stress_days=streak), settings)
        assert health == 50.0
    health = update_health(
        health, StressState(low_stress_days=settings.recovery_days), settings
    )
    assert health == 50.0 + settings.recovery_rate


def test_health_is_clamped_and_failure_is_terminal(settings):
    assert update_health(3.0, StressState(water=1.0), settings) == 0.0
    assert update_health(0.0, StressState(low_stress_days=10), settings) == 0.0
    assert update_health(99.5, StressState(low_stress_days=10), settings) == 100.0
