"""
Water and nutrient stress, and the health rule they drive.

Stress is a normalized shortfall between what the crop needs and what the
soil can supply on the day:

- **water**: ``1 - W_eff / (buffer_days * demand(dvs))``, where ``W_eff`` is
  the day's available water after weed competition and salinity losses;
- **nutrient**: ``1 - N_eff / n_requirement``, where ``N_eff`` is the
  pH-available nitrogen pool after weed competition.

Both are clipped to [0, 1].

Health loses ``health_loss_rate * max(water, nutrient)`` points on every day
the dominant stress exceeds ``stress_baseline``. A single calm day does not
restore anything: health is regained only once ``recovery_days`` consecutive
low-stress days have passed. A crop at health 0 has failed and stays at 0
until it is harvested.
"""

from __future__ import annotations

import numpy as np

from agritwin.core.crops import CropDefinition
from agritwin.core.data_containers import (
    MATURITY_DVS,
    REPRODUCTIVE_DVS,
    CropState,
    SoilState,
    StressState,
)
from agritwin.core.settings import ModelSettings
from agritwin.core.soil import available_nitrogen, salinity_factor


def water_demand(crop_def: CropDefinition, dvs: float) -> float:
    """
    Crop water demand [mm/day] at development stage ``dvs``.

    Piecewise linear: ``water_demand_min`` at sowing, ``water_demand_peak``
    at anthesis, ``water_demand_late`` at maturity.
    """
    dvs = float(np.clip(dvs, 0.0, MATURITY_DVS))
    if dvs <= REPRODUCTIVE_DVS:
        lo, hi, frac = crop_def.water_demand_min, crop_def.water_demand_peak, dvs
    else:
        lo, hi, frac = (
            crop_def.water_demand_peak,
            crop_def.water_demand_late,
            dvs - REPRODUCTIVE_DVS,
        )
    return lo + (hi - lo) * frac


def _shortfall(supply: float, demand: float) -> float:
    if demand <= 0.0:
        return 0.0
    return float(np.clip(1.0 - supply / demand, 0.0, 1.0))


def water_stress(
    crop: CropState,
    soil: SoilState,
    crop_def: CropDefinition,
    settings: ModelSettings,
) -> float:
    """Water stress of the day, in [0, 1]."""
    supply = (
        soil.water_available
        * (1.0 - settings.weed_competition * crop.weed_density)
        * salinity_factor(soil.card.ec, settings)
    )
    return _shortfall(supply, settings.buffer_days * water_demand(crop_def, crop.dvs))


def nutrient_stress(
    crop: CropState,
    soil: SoilState,
    crop_def: CropDefinition,
    settings: ModelSettings,
) -> float:
    """Nitrogen stress of the day, in [0, 1]."""
    supply = available_nitrogen(soil) * (
        1.0 - settings.weed_competition * crop.weed_density
    )
    return _shortfall(supply, crop_def.n_requirement)


def compute(
    crop: CropState,
    soil: SoilState,
    crop_def: CropDefinition,
    previous: StressState,
    settings: ModelSettings,
) -> StressState:
    """
    Stress state of the day.

    Parameters
    ----------
    crop : CropState
        Crop at the end of the day.
    soil : SoilState
        Soil at the end of the day (uses ``water_available``, ``n_pool``).
    crop_def : CropDefinition
        Definition of ``crop.type``.
    previous : StressState
        Stress of the previous day (for the low-stress streak).
    settings : ModelSettings
        Model constants.

    Returns
    -------
    StressState
    """
    water = water_stress(crop, soil, crop_def, settings)
    nutrient = nutrient_stress(crop, soil, crop_def, settings)
    if max(water, nutrient) <= settings.stress_baseline:
        low_stress_days = previous.low_stress_days + 1
    else:
        low_stress_days = 0
    return StressState(water=water, nutrient=nutrient, low_stress_days=low_stress_days)


def update_health(health: float, stress: StressState, settings: ModelSettings) -> float:
    """
    Apply the day's stress to crop health.

    Returns the new health in [0, 100]. Health 0 is terminal.
    """
    if health <= 0.0:
        return 0.0
    level = stress.combined
    if level > settings.stress_baseline:
        health -= settings.health_loss_rate * level
    elif stress.low_stress_days >= settings.recovery_days:
        health += settings.recovery_rate
    return float(np.clip(health, 0.0, 100.0))
