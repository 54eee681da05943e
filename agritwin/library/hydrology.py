from __future__ import annotations

import numpy as np

Array = np.ndarray


def effective_precipitation(pp: Array | float) -> Array:
    """
    Piecewise-linear effective precipitation (mm/day).

    Given daily precipitation `pp` (mm), returns the part that enters the
    root zone. Light rain infiltrates almost entirely (95 %); the share lost
    to runoff grows with intensity following the breakpoint table below.

    Parameters
    ----------
    pp : ndarray or scalar
        Daily precipitation [mm].

    Returns
    -------
    ndarray
        Effective precipitation [mm/day], per the breakpoint mapping.
    """
    pp = np.asarray(pp, dtype=float)
    xp = np.array([0, 25, 50, 75, 100, 125, 150], dtype=float)
    yp = np.array([0, 23.75, 46.25, 66.75, 83.0, 94.25, 100.25], dtype=float)
    ppef = np.interp(np.maximum(pp, 0.0), xp, yp)
    # above the last breakpoint only 5 % of the extra rain infiltrates
    return np.where(pp > 150.0, 100.25 + 0.05 * (pp - 150.0), ppef)


def bucket_balance(
    moisture: float,
    inflow: float,
    demand: float,
    *,
    evaporation_fraction: float,
    capacity: float,
) -> tuple[float, float, float, float]:
    """
    Single-layer daily water balance of the root zone.

    Yesterday's store first loses a fixed fraction to soil evaporation; the
    day's inflow (effective rain plus irrigation) is then added, the crop
    draws up to its demand, and whatever exceeds the capacity drains below
    the root zone.

    Parameters
    ----------
    moisture : float
        Water store at the end of the previous day [mm].
    inflow : float
        Effective rain plus irrigation of the day [mm].
    demand : float
        Crop water demand of the day [mm].
    evaporation_fraction : float
        Fraction of ``moisture`` lost to evaporation, in [0, 1].
    capacity : float
        Largest store the root zone can hold [mm].

    Returns
    -------
    available : float
        Water available to the crop during the day [mm].
    uptake : float
        Water actually drawn by the crop, ``min(demand, available)`` [mm].
    moisture_next : float
        Store carried to the next day, in ``[0, capacity]`` [mm].
    drainage : float
        Water lost below the root zone [mm].
    """
    available = max(moisture, 0.0) * (1.0 - evaporation_fraction) + max(inflow, 0.0)
    uptake = min(max(demand, 0.0), available)
    remaining = available - uptake
    moisture_next = float(np.clip(remaining, 0.0, capacity))
    drainage = max(remaining - capacity, 0.0)
    return available, uptake, moisture_next, drainage
