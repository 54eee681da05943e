"""
Soil nutrient model and soil water buffer.

The soil carries two depletable quantities: the nitrogen pool and the water
buffer of the root zone. Phosphorus, potassium, pH, EC and organic carbon are
read from the immutable :class:`~agritwin.core.data_containers.SoilHealthCard`
and only modulate derived rates; they are never depleted.

Functions
---------
initial_soil_state
    Soil sub-state at day 0.
update_pools
    One-day update of the nitrogen pool and the water buffer.
ph_availability
    Fraction of the nitrogen pool that is plant-available at a given pH.
available_nitrogen
    Plant-available nitrogen of a soil state.
salinity_factor
    Fraction of soil water the crop can extract at a given EC.
leaching_fraction
    Fraction of the nitrogen pool leached by a day's rainfall.
fertility_factor
    Yield multiplier from the phosphorus and potassium indices.

Notes
-----
Nitrogen balance of one day, in order::

    pool  = n_pool + fertilizer
    uptake = min(n_per_dvs * development_rate, pool)
    leach = leaching_fraction(rain) * (pool - uptake)
    n_pool' = max(pool - uptake - leach, 0)

A pool of zero is a normal state: it raises nutrient stress and lowers the
yield forecast, it is not an error.
"""

from __future__ import annotations

import numpy as np

from agritwin.core.crops import CropDefinition
from agritwin.core.data_containers import SoilHealthCard, SoilState, WeatherSample
from agritwin.core.settings import ModelSettings
from agritwin.library.hydrology import bucket_balance, effective_precipitation

# pH at which nitrogen is most available, and the width of the response
PH_OPTIMUM = 6.5
PH_WIDTH = 1.2

# Indices [kg/ha] at or above which P and K are not limiting
P_SUFFICIENT = 25.0
K_SUFFICIENT = 140.0


def initial_soil_state(card: SoilHealthCard, settings: ModelSettings) -> SoilState:
    """Day-0 soil: the pool starts at the card's nitrogen index."""
    return SoilState(
        n_pool=float(card.nitrogen),
        moisture=float(settings.initial_moisture_mm),
        card=card,
    )


def ph_availability(ph: float) -> float:
    """Gaussian availability of nitrogen around pH 6.5 (1 at the optimum)."""
    return float(np.exp(-((ph - PH_OPTIMUM) ** 2) / (2 * PH_WIDTH**2)))


def available_nitrogen(soil: SoilState) -> float:
    """Nitrogen the crop can use today [kg/ha]."""
    return soil.n_pool * ph_availability(soil.card.ph)


def salinity_factor(ec: float, settings: ModelSettings) -> float:
    """Linear loss of extractable water above the EC threshold, in [0, 1]."""
    excess = max(ec - settings.salinity_threshold_ec, 0.0)
    return float(np.clip(1.0 - settings.salinity_slope * excess, 0.0, 1.0))


def leaching_fraction(rain: float, card: SoilHealthCard, settings: ModelSettings) -> float:
    """
    Fraction of the nitrogen pool lost to leaching on a day with ``rain`` mm.

    Saturating in rainfall intensity; organic matter retains nitrate, so the
    fraction is divided by ``1 + 0.5 * organic_carbon``.
    """
    if rain <= 0.0:
        return 0.0
    intensity = rain / (rain + settings.leach_half_rain_mm)
    retention = 1.0 + 0.5 * card.organic_carbon
    return float(settings.leach_max_fraction * intensity / retention)


def fertility_factor(card: SoilHealthCard) -> float:
    """Yield multiplier from P and K sufficiency, in [0.68, 1]."""
    p = 0.8 + 0.2 * min(card.phosphorus / P_SUFFICIENT, 1.0)
    k = 0.85 + 0.15 * min(card.potassium / K_SUFFICIENT, 1.0)
    return float(p * k)


def update_pools(
    soil: SoilState,
    crop_def: CropDefinition,
    weather: WeatherSample,
    *,
    development_rate: float,
    water_demand: float,
    fertilizer_n: float = 0.0,
    irrigation_mm: float = 0.0,
    hold_nitrogen: bool = False,
    settings: ModelSettings,
) -> SoilState:
    """
    Advance the nitrogen pool and the water buffer by one day.

    Parameters
    ----------
    soil : SoilState
        Soil at the end of the previous day.
    crop_def : CropDefinition
        Definition of the crop on the plot (uses ``n_per_dvs``).
    weather : WeatherSample
        Weather of the day (uses ``rain``).
    development_rate : float
        DVS increment the crop makes today, after stress; uptake is
        proportional to it.
    water_demand : float
        Crop water demand of the day [mm].
    fertilizer_n : float, default=0.0
        Nitrogen applied today [kg/ha].
    irrigation_mm : float, default=0.0
        Irrigation applied today [mm].
    hold_nitrogen : bool, default=False
        Leave the nitrogen pool untouched (sowing day after a harvest).
    settings : ModelSettings
        Model constants.

    Returns
    -------
    SoilState
        Soil at the end of the day, with the day's fluxes recorded.
    """
    inflow = float(effective_precipitation(weather.rain)) + irrigation_mm
    available, _, moisture, _ = bucket_balance(
        soil.moisture,
        inflow,
        water_demand,
        evaporation_fraction=settings.evaporation_fraction,
        capacity=settings.moisture_capacity_mm,
    )

    if hold_nitrogen:
        return SoilState(
            n_pool=soil.n_pool,
            moisture=moisture,
            card=soil.card,
            water_available=available,
        )

    pool = soil.n_pool + fertilizer_n
    uptake = min(crop_def.n_per_dvs * max(development_rate, 0.0), pool)
    leached = leaching_fraction(weather.rain, soil.card, settings) * (pool - uptake)
    n_pool = max(pool - uptake - leached, 0.0)

    return SoilState(
        n_pool=float(n_pool),
        moisture=moisture,
        card=soil.card,
        n_uptake=float(uptake),
        n_leached=float(leached),
        water_available=available,
    )
