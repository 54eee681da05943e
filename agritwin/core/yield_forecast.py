"""Projected end-of-season yield."""

from __future__ import annotations

import numpy as np

from agritwin.core.crops import CropDefinition
from agritwin.core.data_containers import REPRODUCTIVE_DVS, CropState, SoilState
from agritwin.core.settings import ModelSettings
from agritwin.core.soil import available_nitrogen, fertility_factor


def grain_fill_progress(dvs: float) -> float:
    """Fraction of grain filling completed: 0 until anthesis, 1 at maturity."""
    return float(np.clip(dvs - REPRODUCTIVE_DVS, 0.0, 1.0))


def nitrogen_factor(
    soil: SoilState, crop_def: CropDefinition, settings: ModelSettings
) -> float:
    """Yield multiplier from nitrogen sufficiency, in [1 - n_yield_penalty, 1]."""
    sufficiency = np.clip(available_nitrogen(soil) / crop_def.n_requirement, 0.0, 1.0)
    return float(1.0 - settings.n_yield_penalty * (1.0 - sufficiency))


def forecast(
    crop: CropState,
    soil: SoilState,
    crop_def: CropDefinition,
    settings: ModelSettings,
) -> float:
    """
    Projected yield [t/ha] of the standing crop.

    Parameters
    ----------
    crop : CropState
        Crop at the end of the day.
    soil : SoilState
        Soil at the end of the day.
    crop_def : CropDefinition
        Definition of ``crop.type``.
    settings : ModelSettings
        Model constants (uses ``n_yield_penalty``).

    Returns
    -------
    float
        ``potential_yield * health/100 * progress * n_factor * fertility``.
        Zero before anthesis and for a failed crop.

    Notes
    -----
    Every factor is continuous in the state, so the forecast does not jump
    between consecutive days except on a harvest.
    """
    return float(
        crop_def.potential_yield
        * (crop.health / 100.0)
        * grain_fill_progress(crop.dvs)
        * nitrogen_factor(soil, crop_def, settings)
        * fertility_factor(soil.card)
    )
