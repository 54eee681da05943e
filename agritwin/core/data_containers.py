"""
Core containers for soil cards, daily weather, simulation state and outputs.

This module defines the immutable data structures exchanged between the
components of the engine. Every per-step structure is a frozen dataclass so a
returned :class:`SimulationState` is a snapshot that callers cannot mutate;
the engine produces a new one on each step with :func:`dataclasses.replace`.

Classes
-------
SoilHealthCard
    Static soil test profile (N/P/K indices, pH, EC, organic carbon).
WeatherSample
    Weather of a single simulated day.
CropState
    Crop sub-state (type, development stage, height, health, weeds).
SoilState
    Soil sub-state (nitrogen pool, water buffer, daily fluxes).
StressState
    Water and nutrient stress of the current day.
CropPhase
    Engine phase derived from the crop sub-state.
SimulationState
    Full snapshot of one simulated day.
Trajectory
    Container for a sequence of states as 1-D arrays (one per variable).

Notes
-----
- The thresholds exported here (``RAIN_THRESHOLD_MM``, ``WILTING_STRESS``,
  ``REPRODUCTIVE_DVS``, ``MATURITY_DVS``, ``WEED_INFESTATION``) are consumed by
  presentation code and must keep their exact values and comparison
  operators.
- ``SoilHealthCard`` validates its ranges on construction; the other
  containers are produced by the engine from clamped quantities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence

import numpy as np
import pandas as pd

from agritwin.core.crops import CropType

Array = np.ndarray

# Display thresholds
RAIN_THRESHOLD_MM = 5.0
WILTING_STRESS = 0.4
REPRODUCTIVE_DVS = 1.0
MATURITY_DVS = 2.0
WEED_INFESTATION = 0.1


# -------------------------
# Static inputs
# -------------------------


@dataclass(frozen=True, slots=True)
class SoilHealthCard:
    """
    Soil test profile of the plot.

    The card is created once when a simulation starts, from a stored profile
    or from the defaults below, and is never mutated afterwards. The
    nitrogen index seeds the depletable nitrogen pool; the remaining
    attributes only modulate derived rates.

    Parameters
    ----------
    nitrogen : float, default=280.0
        Available nitrogen index [kg/ha].
    phosphorus : float, default=22.0
        Available phosphorus index [kg/ha].
    potassium : float, default=150.0
        Available potassium index [kg/ha].
    ph : float, default=7.2
        Soil reaction [-], in [0, 14].
    ec : float, default=0.5
        Electrical conductivity of the saturation extract [dS/m].
    organic_carbon : float, default=0.6
        Organic carbon content [%].
    card_id : str, default="default"
        Identifier of the stored profile.

    Raises
    ------
    ValueError
        If a nutrient index, EC or organic carbon is negative, or if ``ph``
        is outside [0, 14].
    """

    nitrogen: float = 280.0
    phosphorus: float = 22.0
    potassium: float = 150.0
    ph: float = 7.2
    ec: float = 0.5
    organic_carbon: float = 0.6
    card_id: str = "default"

    def __post_init__(self):
        for name in ("nitrogen", "phosphorus", "potassium", "ec"):
            if not float(getattr(self, name)) >= 0.0:
                raise ValueError(f"{name} must be non-negative.")
        if not float(self.organic_carbon) >= 0.0:
            raise ValueError("organic_carbon must be non-negative.")
        if not (0.0 <= float(self.ph) <= 14.0):
            raise ValueError("ph must be in [0, 14].")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SoilHealthCard":
        """
        Build a card from a stored profile.

        Accepts either the field names of this class or the short laboratory
        keys ``N``, ``P``, ``K``, ``pH``, ``EC``, ``OC`` and ``id``. Missing
        attributes fall back to the default profile.

        Raises
        ------
        ValueError
            If a key is not recognised.
        """
        aliases = {
            "N": "nitrogen",
            "P": "phosphorus",
            "K": "potassium",
            "pH": "ph",
            "EC": "ec",
            "OC": "organic_carbon",
            "id": "card_id",
        }
        known = set(cls.__dataclass_fields__)
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown soil card attribute '{key}'.")
            kwargs[name] = str(value) if name == "card_id" else float(value)
        return cls(**kwargs)


@dataclass(frozen=True, slots=True)
class WeatherSample:
    """
    Weather of the current simulated day.

    Attributes
    ----------
    temp_max : float
        Daily maximum air temperature [°C].
    temp_min : float
        Daily minimum air temperature [°C].
    rain : float
        Daily rainfall [mm], non-negative.
    temp_anomaly : float
        Departure of ``temp_max`` from the seasonal curve [°C]; carried so
        that the next day's anomaly can persist from it.
    """

    temp_max: float
    temp_min: float
    rain: float
    temp_anomaly: float = 0.0

    def __post_init__(self):
        if not self.rain >= 0.0:
            raise ValueError("rain must be non-negative.")


# -------------------------
# Per-step state
# -------------------------


@dataclass(frozen=True, slots=True)
class CropState:
    """
    Crop sub-state.

    Attributes
    ----------
    type : CropType
        Crop currently growing on the plot.
    dvs : float
        Development stage in [0, 2]; 1 is anthesis, 2 is maturity.
    height : float
        Plant height [cm].
    health : float
        Crop health in [0, 100]; 0 means the crop has failed.
    weed_density : float
        Weed cover fraction in [0, 1].
    """

    type: CropType
    dvs: float = 0.0
    height: float = 0.0
    health: float = 100.0
    weed_density: float = 0.0


@dataclass(frozen=True, slots=True)
class SoilState:
    """
    Soil sub-state.

    Attributes
    ----------
    n_pool : float
        Plant-available nitrogen pool [kg/ha], never negative.
    moisture : float
        Soil water buffer [mm] carried to the next day.
    card : SoilHealthCard
        Read-only reference to the static soil profile.
    n_uptake : float
        Nitrogen taken up by the crop on this day [kg/ha].
    n_leached : float
        Nitrogen lost to leaching on this day [kg/ha].
    water_available : float
        Water available to the crop on this day [mm], before competition
        and salinity losses.
    """

    n_pool: float
    moisture: float
    card: SoilHealthCard
    n_uptake: float = 0.0
    n_leached: float = 0.0
    water_available: float = 0.0


@dataclass(frozen=True, slots=True)
class StressState:
    """
    Stress of the current day.

    Attributes
    ----------
    water : float
        Water stress in [0, 1].
    nutrient : float
        Nitrogen stress in [0, 1].
    low_stress_days : int
        Consecutive days (including this one) with stress at or below the
        baseline; drives health recovery.
    """

    water: float = 0.0
    nutrient: float = 0.0
    low_stress_days: int = 0

    @property
    def combined(self) -> float:
        """Dominant stress of the day (the most limiting factor)."""
        return max(self.water, self.nutrient)


class CropPhase(str, Enum):
    """Engine phase derived from the crop sub-state."""

    GROWING = "GROWING"
    MATURE = "MATURE"
    FAILED = "FAILED"


@dataclass(frozen=True, slots=True)
class SimulationState:
    """
    Snapshot of one simulated day.

    Attributes
    ----------
    day : int
        Simulated day, 0 at construction, +1 per step.
    crop : CropState
    soil : SoilState
    weather : WeatherSample
        Weather of this day only.
    stress : StressState
    yield_forecast : float
        Projected end-of-season yield [t/ha].
    event_log : tuple of str
        Notices, most recent first.
    seed : int
        Normalized seed of the weather process; with ``day`` it fully
        determines the weather draw.
    """

    day: int
    crop: CropState
    soil: SoilState
    weather: WeatherSample
    stress: StressState
    yield_forecast: float
    event_log: tuple[str, ...]
    seed: int

    @property
    def phase(self) -> CropPhase:
        if self.crop.health <= 0.0:
            return CropPhase.FAILED
        if self.crop.dvs >= MATURITY_DVS:
            return CropPhase.MATURE
        return CropPhase.GROWING

    @property
    def is_raining(self) -> bool:
        return self.weather.rain > RAIN_THRESHOLD_MM

    @property
    def is_wilting(self) -> bool:
        return self.stress.water > WILTING_STRESS

    @property
    def is_reproductive(self) -> bool:
        return self.crop.dvs > REPRODUCTIVE_DVS

    @property
    def should_pause(self) -> bool:
        """True when a driving loop should stop advancing the simulation."""
        return self.crop.dvs >= MATURITY_DVS or self.crop.health <= 0.0

    @property
    def has_weed_infestation(self) -> bool:
        return self.crop.weed_density > WEED_INFESTATION


# -------------------------
# Outputs
# -------------------------

TRAJECTORY_FIELDS = [
    "day",
    "dvs",
    "height",
    "health",
    "weed_density",
    "n_pool",
    "n_uptake",
    "n_leached",
    "moisture",
    "water_available",
    "temp_max",
    "temp_min",
    "rain",
    "water_stress",
    "nutrient_stress",
    "yield_forecast",
]


@dataclass
class Trajectory:
    """Simulated trajectory, one 1-D array of length T per variable."""

    day: Array  # (T,), int
    crop: Array  # (T,), str
    dvs: Array  # (T,)
    height: Array  # (T,)
    health: Array  # (T,)
    weed_density: Array  # (T,)
    n_pool: Array  # (T,)
    n_uptake: Array  # (T,)
    n_leached: Array  # (T,)
    moisture: Array  # (T,)
    water_available: Array  # (T,)
    temp_max: Array  # (T,)
    temp_min: Array  # (T,)
    rain: Array  # (T,)
    water_stress: Array  # (T,)
    nutrient_stress: Array  # (T,)
    yield_forecast: Array  # (T,)
    events: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return int(self.day.shape[0])

    @classmethod
    def from_states(cls, states: Sequence[SimulationState]) -> "Trajectory":
        """
        Stack a sequence of snapshots into arrays.

        Parameters
        ----------
        states : sequence of SimulationState
            Snapshots in simulation order.

        Returns
        -------
        Trajectory
            Arrays of shape ``(len(states),)``. ``events`` holds the event log
            of the last state in chronological order.

        Raises
        ------
        ValueError
            If ``states`` is empty.
        """
        if not states:
            raise ValueError("Cannot build a Trajectory from no states.")

        def col(getter, dtype=float) -> Array:
            return np.array([getter(s) for s in states], dtype=dtype)

        return cls(
            day=col(lambda s: s.day, dtype=np.int64),
            crop=col(lambda s: s.crop.type.value, dtype=str),
            dvs=col(lambda s: s.crop.dvs),
            height=col(lambda s: s.crop.height),
            health=col(lambda s: s.crop.health),
            weed_density=col(lambda s: s.crop.weed_density),
            n_pool=col(lambda s: s.soil.n_pool),
            n_uptake=col(lambda s: s.soil.n_uptake),
            n_leached=col(lambda s: s.soil.n_leached),
            moisture=col(lambda s: s.soil.moisture),
            water_available=col(lambda s: s.soil.water_available),
            temp_max=col(lambda s: s.weather.temp_max),
            temp_min=col(lambda s: s.weather.temp_min),
            rain=col(lambda s: s.weather.rain),
            water_stress=col(lambda s: s.stress.water),
            nutrient_stress=col(lambda s: s.stress.nutrient),
            yield_forecast=col(lambda s: s.yield_forecast),
            events=list(reversed(states[-1].event_log)),
        )

    def to_frame(self) -> pd.DataFrame:
        """Return the trajectory as a DataFrame indexed by day."""
        data = {name: getattr(self, name) for name in TRAJECTORY_FIELDS}
        data["crop"] = self.crop
        return pd.DataFrame(data).set_index("day")
