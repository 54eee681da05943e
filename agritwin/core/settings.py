"""
Model constants, weather generator parameters and the YAML settings loader.

The numeric constants of the soil, stress and health rules are grouped in
:class:`ModelSettings`; those of the stochastic weather process in
:class:`WeatherParams`. Both are frozen dataclasses validated on
construction, so an engine can never run with an inconsistent parameter set.
:func:`load_settings` reads a YAML scenario file into a :class:`Settings`
bundle.

Classes
-------
ModelSettings
    Constants of the soil water buffer, leaching, stress and health rules.
WeatherParams
    Seasonal curve and noise parameters of the weather generator.
Settings
    Scenario bundle (seed, crop, soil card, model and weather parameters).

Functions
---------
load_settings
    Parse a YAML file (``agritwin/settings/default.yaml`` by default).

Examples
--------
>>> from agritwin.core.settings import load_settings
>>> settings = load_settings()
>>> settings.model.stress_baseline
0.1
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from agritwin.core.crops import CropType
from agritwin.core.data_containers import SoilHealthCard

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).parent.parent / "settings" / "default.yaml"


@dataclass(frozen=True, slots=True)
class ModelSettings:
    """
    Constants of the soil, stress and health rules.

    Parameters
    ----------
    initial_moisture_mm : float, default=40.0
        Soil water buffer at day 0 [mm].
    moisture_capacity_mm : float, default=120.0
        Largest water buffer the root zone can hold [mm]; the excess drains.
    evaporation_fraction : float, default=0.05
        Fraction of yesterday's buffer lost to soil evaporation each day.
    buffer_days : float, default=3.0
        Days of crop demand the available water must cover for zero water
        stress.
    salinity_threshold_ec : float, default=4.0
        EC [dS/m] above which salinity reduces plant-available water.
    salinity_slope : float, default=0.1
        Fractional loss of available water per dS/m above the threshold.
    weed_competition : float, default=0.5
        Fraction of water and nitrogen lost to weeds at full weed cover.
    weed_residual : float, default=0.1
        Fraction of weed density remaining after a weeding action.
    growth_stress_sensitivity : float, default=0.8
        Reduction of the development rate at full stress.
    leach_max_fraction : float, default=0.08
        Largest fraction of the nitrogen pool leached in one day.
    leach_half_rain_mm : float, default=25.0
        Rainfall [mm] at which half of ``leach_max_fraction`` is reached.
    stress_baseline : float, default=0.1
        Stress at or below which a day counts as low-stress.
    health_loss_rate : float, default=10.0
        Health points lost per day at full stress.
    recovery_days : int, default=3
        Consecutive low-stress days needed before health recovers.
    recovery_rate : float, default=2.0
        Health points regained per day once recovery has started.
    n_yield_penalty : float, default=0.5
        Largest relative yield loss caused by an empty nitrogen pool.

    Raises
    ------
    ValueError
        If any constant is outside its admissible range.
    """

    initial_moisture_mm: float = 40.0
    moisture_capacity_mm: float = 120.0
    evaporation_fraction: float = 0.05
    buffer_days: float = 3.0
    salinity_threshold_ec: float = 4.0
    salinity_slope: float = 0.1
    weed_competition: float = 0.5
    weed_residual: float = 0.1
    growth_stress_sensitivity: float = 0.8
    leach_max_fraction: float = 0.08
    leach_half_rain_mm: float = 25.0
    stress_baseline: float = 0.1
    health_loss_rate: float = 10.0
    recovery_days: int = 3
    recovery_rate: float = 2.0
    n_yield_penalty: float = 0.5

    def __post_init__(self):
        if self.moisture_capacity_mm <= 0.0:
            raise ValueError("moisture_capacity_mm must be positive.")
        if not (0.0 <= self.initial_moisture_mm <= self.moisture_capacity_mm):
            raise ValueError(
                "initial_moisture_mm must be in [0, moisture_capacity_mm]."
            )
        for name in (
            "evaporation_fraction",
            "weed_competition",
            "weed_residual",
            "growth_stress_sensitivity",
            "leach_max_fraction",
            "stress_baseline",
            "n_yield_penalty",
            "salinity_slope",
        ):
            if not (0.0 <= getattr(self, name) <= 1.0):
                raise ValueError(f"{name} must be in [0, 1].")
        for name in ("buffer_days", "leach_half_rain_mm"):
            if getattr(self, name) <= 0.0:
                raise ValueError(f"{name} must be positive.")
        if self.health_loss_rate < 0.0 or self.recovery_rate < 0.0:
            raise ValueError(
                "health_loss_rate and recovery_rate must be non-negative."
            )
        if self.recovery_days < 1:
            raise ValueError("recovery_days must be at least 1.")
        if self.salinity_threshold_ec < 0.0:
            raise ValueError("salinity_threshold_ec must be non-negative.")


@dataclass(frozen=True, slots=True)
class WeatherParams:
    """
    Parameters of the stochastic weather process.

    Parameters
    ----------
    season_start_doy : int, default=152
        Day of year of simulated day 0 (1 June, start of the kharif season).
    temp_mean : float, default=30.0
        Annual mean of the daily maximum temperature [°C].
    temp_amplitude : float, default=5.0
        Seasonal amplitude of the daily maximum temperature [°C].
    temp_peak_doy : int, default=135
        Day of year of the warmest point of the seasonal curve.
    diurnal_range : float, default=10.0
        Mean difference between daily maximum and minimum [°C].
    anomaly_persistence : float, default=0.6
        AR(1) coefficient of the temperature anomaly, in [0, 1).
    anomaly_sd : float, default=1.5
        Standard deviation of the daily anomaly innovation [°C].
    anomaly_bound : float, default=4.0
        Absolute bound applied to the anomaly [°C].
    rain_prob_dry : float, default=0.08
        Wet-day probability outside the rainy season.
    rain_prob_wet : float, default=0.55
        Wet-day probability at the peak of the rainy season.
    wet_season_peak_doy : int, default=200
        Day of year of the rainy-season peak.
    wet_season_width_days : float, default=45.0
        Width (standard deviation, days) of the rainy season.
    rain_mean_mm : float, default=9.0
        Mean rainfall on a wet day [mm] (exponential amounts).

    Raises
    ------
    ValueError
        If probabilities are outside [0, 1] or scales are not positive.
    """

    season_start_doy: int = 152
    temp_mean: float = 30.0
    temp_amplitude: float = 5.0
    temp_peak_doy: int = 135
    diurnal_range: float = 10.0
    anomaly_persistence: float = 0.6
    anomaly_sd: float = 1.5
    anomaly_bound: float = 4.0
    rain_prob_dry: float = 0.08
    rain_prob_wet: float = 0.55
    wet_season_peak_doy: int = 200
    wet_season_width_days: float = 45.0
    rain_mean_mm: float = 9.0

    def __post_init__(self):
        if not (0.0 <= self.rain_prob_dry <= 1.0 and 0.0 <= self.rain_prob_wet <= 1.0):
            raise ValueError("Rain probabilities must be in [0, 1].")
        if not (0.0 <= self.anomaly_persistence < 1.0):
            raise ValueError("anomaly_persistence must be in [0, 1).")
        if self.anomaly_sd < 0.0 or self.anomaly_bound < 0.0:
            raise ValueError("anomaly_sd and anomaly_bound must be non-negative.")
        if self.diurnal_range < 0.0 or self.temp_amplitude < 0.0:
            raise ValueError("diurnal_range and temp_amplitude must be non-negative.")
        if self.wet_season_width_days <= 0.0 or self.rain_mean_mm <= 0.0:
            raise ValueError(
                "wet_season_width_days and rain_mean_mm must be positive."
            )

    @classmethod
    def dry(cls, **overrides: Any) -> "WeatherParams":
        """Return parameters of a rainless season (useful for drought runs)."""
        overrides.setdefault("rain_prob_dry", 0.0)
        overrides.setdefault("rain_prob_wet", 0.0)
        return cls(**overrides)


@dataclass(frozen=True)
class Settings:
    """Scenario bundle read from a settings file."""

    seed: int = 0
    crop: CropType = CropType.RICE
    soil_card: SoilHealthCard = field(default_factory=SoilHealthCard)
    model: ModelSettings = field(default_factory=ModelSettings)
    weather: WeatherParams = field(default_factory=WeatherParams)


def _build(cls, section: str, data: Mapping[str, Any] | None):
    """Instantiate ``cls`` from a mapping, rejecting unknown keys."""
    data = dict(data or {})
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown keys in '{section}' settings: {unknown}")
    return cls(**data)


def load_settings(path: str | Path | None = None) -> Settings:
    """
    Load a YAML scenario file into a :class:`Settings` bundle.

    Parameters
    ----------
    path : str or pathlib.Path, optional
        Settings file. Defaults to the packaged ``default.yaml``.

    Returns
    -------
    Settings
        Parsed and validated settings. Sections missing from the file fall
        back to their defaults.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file has unknown sections or keys, or if validation fails.
    UnknownCropType
        If ``crop`` does not name a supported crop.
    """
    p = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    if not p.exists():
        raise FileNotFoundError(f"Settings file not found: {p}")
    with open(p, "r") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, Mapping):
        raise ValueError(f"Settings file must hold a mapping: {p}")

    unknown = sorted(set(cfg) - {"seed", "crop", "soil_card", "model", "weather"})
    if unknown:
        raise ValueError(f"Unknown settings sections: {unknown}")

    settings = Settings(
        seed=int(cfg.get("seed", 0)),
        crop=CropType.parse(cfg.get("crop", CropType.RICE)),
        soil_card=SoilHealthCard.from_mapping(cfg.get("soil_card") or {}),
        model=_build(ModelSettings, "model", cfg.get("model")),
        weather=_build(WeatherParams, "weather", cfg.get("weather")),
    )
    logger.info("Loaded settings from %s (crop=%s, seed=%d)", p, settings.crop.value, settings.seed)
    return settings
