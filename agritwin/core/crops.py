"""
Crop types, crop parameter presets and the crop definition table.

This module provides the closed enumeration :class:`CropType` and a single,
concrete dataclass :class:`CropDefinition` that encapsulates every
crop-specific constant used by the phenology, stress and yield components.
The class is **frozen** (immutable) and uses **slots**. One definition per
crop type is stored in :data:`CROP_LIBRARY`; lookups go through
:func:`get_crop_definition`, which raises
:class:`~agritwin.core.errors.UnknownCropType` for anything it cannot
resolve.

Classes
-------
CropType
    Closed enumeration of the supported crops.
CropDefinition
    Immutable container for crop parameters, with :meth:`from_preset`.

Functions
---------
get_crop_definition
    Resolve a crop type (enum member or case-insensitive name) to its
    definition.

Notes
-----
- **Phenology** follows the thermal-time scheme of WOFOST-type models: the
  development stage (DVS) advances by daily thermal time divided by
  ``tsum1`` before anthesis (DVS < 1) and by ``tsum2`` after it.
- **Demand curves** are piecewise linear in DVS: water demand rises from
  ``water_demand_min`` at sowing to ``water_demand_peak`` at anthesis and
  falls to ``water_demand_late`` at maturity. Nitrogen demand is expressed
  per unit of development (``n_per_dvs``), so uptake follows the daily
  development rate.
- **Validation**: the constructor checks ``t_base < t_cap``, positive
  thermal sums, non-negative demands, ``h_max > 0``, ``potential_yield > 0``
  and ``0 ≤ weed_increment ≤ 1``.

Examples
--------
>>> from agritwin.core.crops import CropType, get_crop_definition
>>> rice = get_crop_definition(CropType.RICE)
>>> wheat = get_crop_definition("wheat")
>>> rice.tsum1
1500.0
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from agritwin.core.errors import UnknownCropType


class CropType(str, Enum):
    """Supported crop types."""

    RICE = "RICE"
    WHEAT = "WHEAT"
    MAIZE = "MAIZE"
    COTTON = "COTTON"
    CHILLI = "CHILLI"

    @classmethod
    def parse(cls, value: "CropType | str") -> "CropType":
        """
        Resolve an enum member or a case-insensitive name.

        Raises
        ------
        UnknownCropType
            If ``value`` does not name a member.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise UnknownCropType(
            f"Unknown crop type {value!r}. Known: {[c.value for c in cls]}"
        )


@dataclass(frozen=True, slots=True)
class CropDefinition:
    """
    Concrete crop parameter set.

    Parameters
    ----------
    crop_type : CropType
        Enumeration member this definition belongs to.
    name : str
        Human-readable crop name used in event notices.
    t_base : float
        Base temperature [°C] below which no thermal time accrues.
    t_cap : float
        Temperature [°C] above which thermal time stops increasing.
    tsum1 : float
        Thermal time from sowing to anthesis (DVS 0 → 1) [°C day].
    tsum2 : float
        Thermal time from anthesis to maturity (DVS 1 → 2) [°C day].
    h_max : float
        Maximum plant height [cm].
    water_demand_min, water_demand_peak, water_demand_late : float
        Daily crop water demand [mm/day] at sowing, anthesis and maturity.
    n_per_dvs : float
        Nitrogen taken up per unit of development [kg N/ha per DVS].
    n_requirement : float
        Nitrogen pool [kg/ha] at or above which yield carries no nitrogen
        penalty.
    potential_yield : float
        Attainable yield under no stress [t/ha].
    weed_increment : float
        Daily increase of weed density in the absence of weeding [-].
    """

    crop_type: CropType
    name: str

    # --- Phenology ---
    t_base: float
    t_cap: float
    tsum1: float
    tsum2: float
    h_max: float

    # --- Water demand curve (mm/day) ---
    water_demand_min: float
    water_demand_peak: float
    water_demand_late: float

    # --- Nitrogen ---
    n_per_dvs: float
    n_requirement: float

    # --- Yield & competition ---
    potential_yield: float
    weed_increment: float

    def __post_init__(self):
        """
        Run validations.

        Raises
        ------
        ValueError
            If any parameter is outside its admissible range.
        """
        if not self.t_base < self.t_cap:
            raise ValueError("Thermal range must satisfy t_base < t_cap.")
        if self.tsum1 <= 0.0 or self.tsum2 <= 0.0:
            raise ValueError("Thermal sums tsum1 and tsum2 must be positive.")
        if self.h_max <= 0.0:
            raise ValueError("h_max must be positive.")
        for v in (
            self.water_demand_min,
            self.water_demand_peak,
            self.water_demand_late,
        ):
            if v <= 0.0:
                raise ValueError("Water demands must be positive.")
        if self.n_per_dvs < 0.0 or self.n_requirement <= 0.0:
            raise ValueError(
                "Nitrogen parameters must have n_per_dvs ≥ 0 and "
                "n_requirement > 0."
            )
        if self.potential_yield <= 0.0:
            raise ValueError("potential_yield must be positive.")
        if not (0.0 <= self.weed_increment <= 1.0):
            raise ValueError("weed_increment must be in [0, 1].")

    # -------------------------
    # Presets
    # -------------------------
    @classmethod
    def from_preset(cls, crop: "CropType | str") -> "CropDefinition":
        """
        Instantiate from the built-in preset of a crop type.

        Parameters
        ----------
        crop : CropType or str
            Crop identifier (enum member or case-insensitive name).

        Returns
        -------
        CropDefinition
            Parameter set for the given crop.

        Raises
        ------
        UnknownCropType
            If ``crop`` is not a known crop type.
        """
        crop_type = CropType.parse(crop)
        return cls(crop_type=crop_type, **_PRESETS[crop_type])


_PRESETS: Mapping[CropType, dict] = {
    CropType.RICE: dict(
        name="Rice",
        t_base=10.0,
        t_cap=35.0,
        tsum1=1500.0,
        tsum2=900.0,
        h_max=100.0,
        water_demand_min=4.0,
        water_demand_peak=8.0,
        water_demand_late=5.0,
        n_per_dvs=55.0,
        n_requirement=40.0,
        potential_yield=6.0,
        weed_increment=0.008,
    ),
    CropType.WHEAT: dict(
        name="Wheat",
        t_base=0.0,
        t_cap=30.0,
        tsum1=1100.0,
        tsum2=800.0,
        h_max=90.0,
        water_demand_min=2.5,
        water_demand_peak=5.5,
        water_demand_late=3.0,
        n_per_dvs=60.0,
        n_requirement=35.0,
        potential_yield=4.5,
        weed_increment=0.006,
    ),
    CropType.MAIZE: dict(
        name="Maize",
        t_base=8.0,
        t_cap=34.0,
        tsum1=1200.0,
        tsum2=900.0,
        h_max=220.0,
        water_demand_min=3.0,
        water_demand_peak=7.5,
        water_demand_late=4.0,
        n_per_dvs=75.0,
        n_requirement=50.0,
        potential_yield=8.0,
        weed_increment=0.010,
    ),
    CropType.COTTON: dict(
        name="Cotton",
        t_base=12.0,
        t_cap=36.0,
        tsum1=1400.0,
        tsum2=1100.0,
        h_max=150.0,
        water_demand_min=3.0,
        water_demand_peak=7.0,
        water_demand_late=4.0,
        n_per_dvs=60.0,
        n_requirement=45.0,
        potential_yield=2.5,
        weed_increment=0.009,
    ),
    CropType.CHILLI: dict(
        name="Chilli",
        t_base=10.0,
        t_cap=33.0,
        tsum1=1100.0,
        tsum2=1000.0,
        h_max=75.0,
        water_demand_min=3.0,
        water_demand_peak=6.0,
        water_demand_late=4.0,
        n_per_dvs=50.0,
        n_requirement=40.0,
        potential_yield=3.0,
        weed_increment=0.012,
    ),
}

CROP_LIBRARY: Mapping[CropType, CropDefinition] = {
    crop_type: CropDefinition.from_preset(crop_type) for crop_type in CropType
}


def get_crop_definition(crop: "CropType | str") -> CropDefinition:
    """Return the library definition for ``crop`` (raises UnknownCropType)."""
    return CROP_LIBRARY[CropType.parse(crop)]
