"""
Crop phenology: development stage, plant height and weed cover.

Development follows a thermal-time scheme. The daily thermal time is the
maximum temperature above the crop's base temperature, capped at
``t_cap - t_base``. The development stage (DVS) advances by thermal time
over ``tsum1`` before anthesis and over ``tsum2`` after it, slowed by stress
but never reversed.

Stages::

    0 ── vegetative ── 1 (anthesis) ── reproductive ── 2 (maturity)

At DVS 2 growth is over: :func:`advance` leaves DVS and height unchanged
until the crop is harvested. A failed crop (health 0) does not develop
either. Weed cover is updated in every case.
"""

from __future__ import annotations

from dataclasses import replace

import numpy as np

from agritwin.core.crops import CropDefinition
from agritwin.core.data_containers import (
    MATURITY_DVS,
    REPRODUCTIVE_DVS,
    CropState,
    WeatherSample,
)
from agritwin.core.settings import ModelSettings

# DVS at which the crop reaches its final height
DVS_FULL_HEIGHT = 1.2


def thermal_time(temp_max: float, crop_def: CropDefinition) -> float:
    """Daily thermal time [°C day] above the crop's base temperature."""
    return float(
        np.clip(temp_max - crop_def.t_base, 0.0, crop_def.t_cap - crop_def.t_base)
    )


def is_developing(crop: CropState) -> bool:
    """False once the crop is mature or has failed."""
    return crop.dvs < MATURITY_DVS and crop.health > 0.0


def potential_development_rate(
    crop: CropState, crop_def: CropDefinition, weather: WeatherSample
) -> float:
    """
    Unstressed DVS increment of the day.

    Returns 0 for a mature or failed crop.
    """
    if not is_developing(crop):
        return 0.0
    tsum = crop_def.tsum1 if crop.dvs < REPRODUCTIVE_DVS else crop_def.tsum2
    return thermal_time(weather.temp_max, crop_def) / tsum


def growth_factor(stress: float, settings: ModelSettings) -> float:
    """Development slowdown ``1 - sensitivity * stress``, floored at zero."""
    return max(1.0 - settings.growth_stress_sensitivity * float(stress), 0.0)


def development_rate(
    crop: CropState,
    crop_def: CropDefinition,
    weather: WeatherSample,
    *,
    stress: float,
    settings: ModelSettings,
) -> float:
    """
    Actual DVS increment of the day under the limiting ``stress``.

    :func:`advance` applies the same rate; nitrogen uptake is proportional
    to it.
    """
    return potential_development_rate(crop, crop_def, weather) * growth_factor(
        stress, settings
    )


def target_height(dvs: float, crop_def: CropDefinition) -> float:
    """Unstressed height [cm] at development stage ``dvs``."""
    return crop_def.h_max * min(dvs / DVS_FULL_HEIGHT, 1.0)


def next_weed_density(
    weed_density: float, crop_def: CropDefinition, *, weeded: bool
) -> float:
    """Weeds spread by a fixed daily increment, except on a weeding day."""
    if weeded:
        return weed_density
    return float(min(weed_density + crop_def.weed_increment, 1.0))


def advance(
    crop: CropState,
    crop_def: CropDefinition,
    weather: WeatherSample,
    *,
    stress: float,
    weeded: bool = False,
    settings: ModelSettings,
) -> CropState:
    """
    Advance the crop by one day.

    Parameters
    ----------
    crop : CropState
        Crop at the end of the previous day (after today's action).
    crop_def : CropDefinition
        Definition of ``crop.type``.
    weather : WeatherSample
        Weather of the day.
    stress : float
        Limiting stress in [0, 1] acting on growth today.
    weeded : bool, default=False
        Whether today's action was a weeding (no weed increment).
    settings : ModelSettings
        Model constants (uses ``growth_stress_sensitivity``).

    Returns
    -------
    CropState
        Crop at the end of the day. ``health`` is carried unchanged; the
        stress model updates it afterwards.

    Notes
    -----
    The stress factor ``1 - sensitivity * stress`` is floored at zero, so
    DVS and height are non-decreasing whatever the stress.
    """
    weed_density = next_weed_density(crop.weed_density, crop_def, weeded=weeded)
    if not is_developing(crop):
        return replace(crop, weed_density=weed_density)

    factor = growth_factor(stress, settings)
    rate = development_rate(crop, crop_def, weather, stress=stress, settings=settings)
    dvs = min(crop.dvs + rate, MATURITY_DVS)

    gap = max(target_height(dvs, crop_def) - crop.height, 0.0)
    height = crop.height + gap * factor

    return replace(
        crop,
        dvs=float(dvs),
        height=float(height),
        weed_density=weed_density,
    )
