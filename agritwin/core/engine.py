"""
Day-stepped simulation engine of a single plot.

The public entry point is :class:`SimulationEngine`, which owns the current
:class:`~.data_containers.SimulationState` and advances it one day per call
to :meth:`SimulationEngine.advance_day`. The engine is a pure transition
function wrapped around a state holder: it performs no I/O and keeps no
timer, so pacing (a UI loop, a batch run, a test) is left to the caller.

One step runs, in order:

1. validate and apply the farmer action (crop-side effects, resources);
2. sample the weather of the new day;
3. update the nitrogen pool and the soil water buffer;
4. advance phenology (DVS, height, weeds) under yesterday's water stress and
   the nitrogen stress of the start-of-day pool; uptake in step 3 uses the
   same stressed development rate;
5. compute today's stress and adjust health;
6. recompute the yield forecast;
7. record edge-triggered events.

Design Principles
-----------------
- **Deterministic & reproducible**: all randomness comes from the weather
  process, seeded explicitly; the normalized seed is stored in every state.
- **Atomic steps**: an invalid action raises before anything changes.
- **Immutable snapshots**: returned states are frozen; reading
  :attr:`SimulationEngine.state` never advances the simulation.

See Also
--------
agritwin.core.data_containers : ``SimulationState`` and its sub-states.
agritwin.core.actions : action variants and the action processor.
agritwin.core.weather : ``StochasticWeather`` and ``HistoricalWeather``.

Examples
--------
>>> from agritwin.core.engine import new_engine
>>> from agritwin.core.actions import Irrigate
>>> engine = new_engine(initial_crop="rice", seed=42)
>>> state = engine.advance_day(Irrigate(20.0))
>>> state.day
1
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from agritwin.core import phenology, stress
from agritwin.core.actions import Action, ActionEffect, apply_action, validate_action
from agritwin.core.crops import CropDefinition, CropType, get_crop_definition
from agritwin.core.data_containers import (
    CropState,
    SimulationState,
    SoilHealthCard,
    StressState,
    Trajectory,
    WeatherSample,
)
from agritwin.core.events import format_entry, prepend, record
from agritwin.core.settings import ModelSettings, Settings, WeatherParams
from agritwin.core.soil import initial_soil_state, update_pools
from agritwin.core.weather import StochasticWeather, WeatherProcess
from agritwin.core.yield_forecast import forecast

logger = logging.getLogger(__name__)


class SimulationEngine:
    """
    Digital twin of one plot, advanced one day at a time.

    Parameters
    ----------
    soil_card : SoilHealthCard, optional
        Static soil profile. Defaults to :class:`SoilHealthCard` defaults.
    initial_crop : CropType or str, default=CropType.RICE
        Crop sown at day 0 (strings are matched case-insensitively).
    seed : int, default=0
        Seed of the default weather process. Ignored when ``weather`` is
        given.
    weather : WeatherProcess, optional
        Weather process; defaults to :class:`StochasticWeather` with
        ``seed`` and ``weather_params``.
    settings : ModelSettings, optional
        Model constants.
    weather_params : WeatherParams, optional
        Parameters of the default weather process.
    keep_history : bool, default=True
        Keep every produced state in :attr:`history`. The list grows by one
        snapshot per day; pass ``False`` for long-running engines to keep
        only the current state.

    Raises
    ------
    UnknownCropType
        If ``initial_crop`` has no crop definition.

    Attributes
    ----------
    history : list of SimulationState
        Every state produced so far, starting with day 0, or only the
        current state when ``keep_history`` is False.
    """

    def __init__(
        self,
        soil_card: SoilHealthCard | None = None,
        initial_crop: CropType | str = CropType.RICE,
        *,
        seed: int = 0,
        weather: WeatherProcess | None = None,
        settings: ModelSettings | None = None,
        weather_params: WeatherParams | None = None,
        keep_history: bool = True,
    ):
        crop_type = CropType.parse(initial_crop)
        crop_def = get_crop_definition(crop_type)

        self.settings = settings if settings is not None else ModelSettings()
        if weather is None:
            weather = StochasticWeather(
                seed=seed,
                params=weather_params if weather_params is not None else WeatherParams(),
            )
        self.weather = weather

        card = soil_card if soil_card is not None else SoilHealthCard()
        crop = CropState(type=crop_type)
        soil = initial_soil_state(card, self.settings)
        self._state = SimulationState(
            day=0,
            crop=crop,
            soil=soil,
            weather=self.weather.sample(0),
            stress=StressState(),
            yield_forecast=forecast(crop, soil, crop_def, self.settings),
            event_log=(format_entry(0, f"Sowed {crop_type.value}"),),
            seed=int(self.weather.seed),
        )
        self.keep_history = keep_history
        self.history: list[SimulationState] = [self._state]
        logger.debug(
            "Engine created: crop=%s soil=%s seed=%d",
            crop_type.value,
            card.card_id,
            self._state.seed,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "SimulationEngine":
        """Build an engine from a :class:`~agritwin.core.settings.Settings` bundle."""
        return cls(
            soil_card=settings.soil_card,
            initial_crop=settings.crop,
            seed=settings.seed,
            settings=settings.model,
            weather_params=settings.weather,
        )

    # ---------------------------
    # Public API
    # ---------------------------
    @property
    def state(self) -> SimulationState:
        """Current state (read-only; does not advance the simulation)."""
        return self._state

    def advance_day(self, action: Action | None = None) -> SimulationState:
        """
        Advance the simulation by one day.

        Parameters
        ----------
        action : Action or None, default=None
            Farmer action of the day, applied before the biophysical update.

        Returns
        -------
        SimulationState
            State of the new day.

        Raises
        ------
        InvalidAction
            If the action carries a malformed amount or is not an action.
            The engine state is left unchanged.
        UnknownCropType
            If a harvest names an unknown crop. The engine state is left
            unchanged.
        """
        action = validate_action(action)
        previous = self._state

        state, effect = apply_action(previous, action, self.settings)
        crop_def = get_crop_definition(state.crop.type)
        day = previous.day + 1
        weather = self.weather.sample(day, previous.weather)

        current = self._biophysical_step(state, crop_def, weather, effect, day)
        entries = record(state, current, effect)
        current = replace(current, event_log=prepend(previous.event_log, entries))

        self._state = current
        if self.keep_history:
            self.history.append(current)
        else:
            self.history = [current]

        logger.debug(
            "Day %d: dvs=%.3f health=%.1f n_pool=%.1f water_stress=%.2f",
            day,
            current.crop.dvs,
            current.crop.health,
            current.soil.n_pool,
            current.stress.water,
        )
        for entry in entries:
            logger.info(entry)
        return current

    def run(self, actions: Iterable[Action | None]) -> list[SimulationState]:
        """Advance once per action and return the produced states."""
        return [self.advance_day(a) for a in actions]

    def trajectory(self) -> Trajectory:
        """States in :attr:`history`, as a :class:`Trajectory`."""
        return Trajectory.from_states(self.history)

    # ---------------------------
    # Private substeps
    # ---------------------------
    def _biophysical_step(
        self,
        state: SimulationState,
        crop_def: CropDefinition,
        weather: WeatherSample,
        effect: ActionEffect,
        day: int,
    ) -> SimulationState:
        s = self.settings
        crop = state.crop

        # A crop sown today neither develops nor draws nitrogen
        limiting = 0.0
        rate = 0.0
        if not effect.sown:
            start = replace(state.soil, n_pool=state.soil.n_pool + effect.fertilizer_n)
            limiting = max(
                state.stress.water,
                stress.nutrient_stress(crop, start, crop_def, s),
            )
            rate = phenology.development_rate(
                crop, crop_def, weather, stress=limiting, settings=s
            )
        soil = update_pools(
            state.soil,
            crop_def,
            weather,
            development_rate=rate,
            water_demand=stress.water_demand(crop_def, crop.dvs),
            fertilizer_n=effect.fertilizer_n,
            irrigation_mm=effect.irrigation_mm,
            hold_nitrogen=effect.sown,
            settings=s,
        )

        if not effect.sown:
            crop = phenology.advance(
                crop, crop_def, weather, stress=limiting, weeded=effect.weeded, settings=s
            )

        day_stress = stress.compute(crop, soil, crop_def, state.stress, s)
        if not effect.sown:
            crop = replace(crop, health=stress.update_health(crop.health, day_stress, s))

        return SimulationState(
            day=day,
            crop=crop,
            soil=soil,
            weather=weather,
            stress=day_stress,
            yield_forecast=forecast(crop, soil, crop_def, s),
            event_log=state.event_log,
            seed=state.seed,
        )


def new_engine(
    soil_card: SoilHealthCard | None = None,
    initial_crop: CropType | str = CropType.RICE,
    *,
    seed: int = 0,
    weather: WeatherProcess | None = None,
    settings: ModelSettings | None = None,
    weather_params: WeatherParams | None = None,
    keep_history: bool = True,
) -> SimulationEngine:
    """
    Create an engine at day 0.

    See :class:`SimulationEngine` for the parameters.

    Raises
    ------
    UnknownCropType
        If ``initial_crop`` has no crop definition.
    """
    return SimulationEngine(
        soil_card,
        initial_crop,
        seed=seed,
        weather=weather,
        settings=settings,
        weather_params=weather_params,
        keep_history=keep_history,
    )
