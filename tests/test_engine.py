from __future__ import annotations

import numpy as np
import pytest

from agritwin.core.actions import Fertilize, Harvest, Irrigate, Weed
from agritwin.core.crops import CropType, get_crop_definition
from agritwin.core.data_containers import (
    MATURITY_DVS,
    CropPhase,
    SoilHealthCard,
    Trajectory,
)
from agritwin.core.engine import SimulationEngine, new_engine
from agritwin.core.errors import InvalidAction, UnknownCropType
from agritwin.core.phenology import potential_development_rate
from agritwin.core.settings import WeatherParams

N_DAYS = 150


def _mixed_actions(n):
    """A plausible schedule: irrigate, fertilize and weed now and then."""
    actions = []
    for day in range(n):
        if day % 10 == 3:
            actions.append(Irrigate(25.0))
        elif day % 30 == 7:
            actions.append(Fertilize(20.0))
        elif day % 21 == 5:
            actions.append(Weed())
        else:
            actions.append(None)
    return actions


# -------------------------
# Construction
# -------------------------


def test_initial_state(card):
    engine = new_engine(card, "rice", seed=42)
    s = engine.state
    assert s.day == 0
    assert s.crop.type is CropType.RICE
    assert s.crop.dvs == 0.0 and s.crop.health == 100.0
    assert s.soil.n_pool == card.nitrogen
    assert s.yield_forecast == 0.0
    assert s.event_log == ("Day 0: Sowed RICE",)
    assert s.seed == 42
    assert s.phase is CropPhase.GROWING


def test_unknown_initial_crop_raises():
    with pytest.raises(UnknownCropType):
        new_engine(initial_crop="barley")


def test_negative_seed_is_normalized():
    assert new_engine(seed=-7).state.seed == 7


# -------------------------
# Properties
# -------------------------


def test_day_increments_and_ranges_hold():
    engine = new_engine(SoilHealthCard(), CropType.MAIZE, seed=3)
    prev = engine.state
    for action in _mixed_actions(N_DAYS):
        s = engine.advance_day(action)
        assert s.day == prev.day + 1
        assert s.crop.dvs >= prev.crop.dvs
        assert 0.0 <= s.crop.dvs <= MATURITY_DVS
        assert 0.0 <= s.crop.health <= 100.0
        assert 0.0 <= s.crop.weed_density <= 1.0
        assert s.soil.n_pool >= 0.0
        assert 0.0 <= s.stress.water <= 1.0
        assert 0.0 <= s.stress.nutrient <= 1.0
        assert s.weather.rain >= 0.0
        assert s.yield_forecast >= 0.0
        prev = s


def test_same_seed_and_actions_are_bit_identical():
    actions = _mixed_actions(N_DAYS)
    a = new_engine(seed=2024)
    b = new_engine(seed=2024)
    a.run(actions)
    b.run(actions)
    assert a.history == b.history


def test_different_seeds_diverge():
    a = new_engine(seed=1)
    b = new_engine(seed=2)
    a.run([None] * 30)
    b.run([None] * 30)
    assert [s.weather for s in a.history] != [s.weather for s in b.history]


def test_reading_state_does_not_advance(dry_engine):
    dry_engine.run([None] * 5)
    first = dry_engine.state
    assert dry_engine.state == first
    assert dry_engine.state.day == 5
    assert len(dry_engine.history) == 6


def test_states_are_immutable(dry_engine):
    s = dry_engine.advance_day()
    with pytest.raises(AttributeError):
        s.day = 99
    with pytest.raises(AttributeError):
        s.crop.dvs = 1.5


# -------------------------
# Scenarios
# -------------------------


def test_dry_spell_builds_water_stress(dry_engine):
    states = dry_engine.run([None] * 10)
    water = [s.stress.water for s in states]
    assert all(b >= a for a, b in zip(water, water[1:]))
    assert water[-1] > 0.4
    assert states[-1].is_wilting


def test_fertilization_recovers_depleted_pool():
    engine = new_engine(
        SoilHealthCard(nitrogen=0.5), CropType.RICE, seed=8, weather_params=WeatherParams.dry()
    )
    for _ in range(30):
        if engine.advance_day().soil.n_pool == 0.0:
            break
    before = engine.state
    assert before.soil.n_pool == 0.0
    assert any("nitrogen pool depleted" in e for e in before.event_log)

    after = engine.advance_day(Fertilize(15.0))
    assert after.soil.n_pool == pytest.approx(
        before.soil.n_pool + 15.0 - after.soil.n_uptake - after.soil.n_leached
    )
    assert after.soil.n_pool > 0.0
    assert after.stress.nutrient < before.stress.nutrient


def test_uptake_follows_stressed_development():
    engine = new_engine(
        SoilHealthCard(nitrogen=2000.0),
        CropType.RICE,
        seed=8,
        weather_params=WeatherParams.dry(),
    )
    rice = get_crop_definition(CropType.RICE)
    states = engine.run([None] * 11)
    last, before = states[-1], states[-2]
    assert before.is_wilting and last.crop.health > 0.0
    assert 0.0 < last.crop.dvs < 1.0

    unstressed = rice.n_per_dvs * potential_development_rate(before.crop, rice, last.weather)
    assert 0.0 < last.soil.n_uptake < 0.8 * unstressed

    uptake = sum(s.soil.n_uptake for s in states)
    assert uptake == pytest.approx(rice.n_per_dvs * last.crop.dvs, rel=1e-9)


def test_forced_early_harvest_keeps_soil_pool():
    engine = new_engine(seed=5)
    while engine.state.crop.dvs < 0.3:
        engine.advance_day(Irrigate(10.0))
    pool = engine.state.soil.n_pool

    s = engine.advance_day(Harvest(CropType.WHEAT))
    assert s.crop.type is CropType.WHEAT
    assert s.crop.dvs == 0.0
    assert s.soil.n_pool == pool
    assert s.crop.health == 100.0
    assert f"Day {s.day}: Harvested RICE; sowed WHEAT" in s.event_log

    # the new crop develops from the next day on
    nxt = engine.advance_day(Irrigate(10.0))
    assert nxt.crop.dvs > 0.0


def test_terminal_failure(dry_engine):
    for _ in range(120):
        if dry_engine.advance_day().crop.health <= 0.0:
            break
    failed = dry_engine.state
    assert failed.crop.health == 0.0
    assert failed.phase is CropPhase.FAILED
    assert failed.should_pause

    tail = dry_engine.run([Irrigate(30.0)] * 10)
    assert all(s.crop.health == 0.0 for s in tail)
    assert all(s.yield_forecast == 0.0 for s in tail)
    assert all(s.crop.dvs == failed.crop.dvs for s in tail)
    assert sum("crop failed" in e for e in tail[-1].event_log) == 1


def test_invalid_action_leaves_state_unchanged(dry_engine):
    dry_engine.run([None] * 3)
    before = dry_engine.state
    n_history = len(dry_engine.history)

    with pytest.raises(InvalidAction):
        dry_engine.advance_day(Irrigate(-5.0))
    with pytest.raises(InvalidAction):
        dry_engine.advance_day(Fertilize(float("nan")))
    with pytest.raises(UnknownCropType):
        dry_engine.advance_day(Harvest("barley"))

    assert dry_engine.state is before
    assert len(dry_engine.history) == n_history
    assert dry_engine.advance_day().day == before.day + 1


def test_maturity_stops_growth_until_harvest(constant_weather):
    engine = SimulationEngine(initial_crop=CropType.RICE, weather=constant_weather)
    day = 0
    while not engine.state.should_pause and day < 300:
        day += 1
        engine.advance_day(Weed() if day % 7 == 0 else Irrigate(10.0))
    mature = engine.state
    assert mature.phase is CropPhase.MATURE
    assert mature.is_reproductive
    assert mature.yield_forecast > 0.0

    tail = engine.run([Irrigate(10.0)] * 5)
    assert all(s.crop.dvs == MATURITY_DVS for s in tail)
    assert all(s.crop.height == mature.crop.height for s in tail)
    assert sum("reached maturity" in e for e in tail[-1].event_log) == 1

    replanted = engine.advance_day(Harvest("chilli"))
    assert replanted.crop.type is CropType.CHILLI
    assert replanted.phase is CropPhase.GROWING


def test_events_are_not_repeated_during_a_drought(dry_engine):
    dry_engine.run([None] * 30)
    log = dry_engine.state.event_log
    assert sum("Water stress onset" in e for e in log) == 1
    assert sum("Weed infestation" in e for e in log) == 1
    assert log[-1] == "Day 0: Sowed RICE"


def test_crop_sown_into_drought_gets_its_own_onset(dry_engine):
    dry_engine.run([None] * 10)
    assert dry_engine.state.is_wilting

    sown = dry_engine.advance_day(Harvest("wheat"))
    assert sown.is_wilting
    assert f"Day {sown.day}: Water stress onset ({sown.stress.water:.2f})" in sown.event_log

    dry_engine.run([None] * 10)
    log = dry_engine.state.event_log
    assert sum("Water stress onset" in e for e in log) == 2


def test_action_notice_is_logged(dry_engine):
    s = dry_engine.advance_day(Irrigate(20.0))
    assert "Day 1: Irrigated 20.0 mm" in s.event_log


def test_trajectory_covers_history():
    engine = new_engine(seed=4)
    engine.run(_mixed_actions(40))
    traj = engine.trajectory()
    assert isinstance(traj, Trajectory)
    assert len(traj) == 41
    np.testing.assert_array_equal(traj.day, np.arange(41))
    assert traj.events[0] == "Day 0: Sowed RICE"

    df = traj.to_frame()
    assert df.index.name == "day"
    assert list(df["crop"].unique()) == ["RICE"]
    assert df["n_pool"].iloc[-1] == pytest.approx(engine.state.soil.n_pool)


def test_history_can_be_turned_off():
    engine = new_engine(seed=4, keep_history=False)
    states = engine.run(_mixed_actions(20))
    assert engine.history == [engine.state]
    assert engine.state is states[-1]
    assert len(engine.trajectory()) == 1

    full = new_engine(seed=4)
    full.run(_mixed_actions(20))
    assert full.state == engine.state


def test_trajectory_needs_states():
    with pytest.raises(ValueError):
        Trajectory.from_states([])


@pytest.mark.slow
def test_rotation_over_several_seasons():
    rotation = [CropType.WHEAT, CropType.MAIZE, CropType.RICE]
    engine = new_engine(seed=99)
    harvests = 0
    for _ in range(700):
        prev = engine.state
        if prev.should_pause:
            action = Harvest(rotation[harvests % len(rotation)])
            harvests += 1
        else:
            action = Irrigate(8.0)
        s = engine.advance_day(action)
        if isinstance(action, Harvest):
            assert s.crop.dvs == 0.0
            assert s.soil.n_pool == prev.soil.n_pool
        else:
            assert s.crop.dvs >= prev.crop.dvs
        assert s.soil.n_pool >= 0.0
    assert harvests >= 2
    assert sum("Harvested" in e for e in engine.state.event_log) == harvests
