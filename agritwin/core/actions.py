"""
Farmer actions and the action processor.

An action is one of five small frozen dataclasses: :class:`Irrigate`,
:class:`Fertilize`, :class:`Weed`, :class:`Harvest` and :class:`NoAction`.
Each carries only the field its variant needs. Constructing an action does
not validate it; :func:`validate_action` does, and the engine calls it
before touching any state, so a rejected action leaves the simulation
exactly where it was.

Examples
--------
>>> from agritwin.core.actions import Irrigate, validate_action
>>> validate_action(Irrigate(20.0))
Irrigate(amount_mm=20.0)
>>> validate_action(Irrigate(-5.0))
Traceback (most recent call last):
    ...
agritwin.core.errors.InvalidAction: Irrigate amount_mm must be a finite number >= 0, got -5.0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from numbers import Real
from typing import Union

from agritwin.core.crops import CropType
from agritwin.core.data_containers import CropState, SimulationState, StressState
from agritwin.core.errors import InvalidAction
from agritwin.core.settings import ModelSettings


@dataclass(frozen=True, slots=True)
class Irrigate:
    """Apply ``amount_mm`` of irrigation water [mm]."""

    amount_mm: float


@dataclass(frozen=True, slots=True)
class Fertilize:
    """Apply ``amount_n`` of nitrogen [kg/ha]."""

    amount_n: float


@dataclass(frozen=True, slots=True)
class Weed:
    """Remove weeds from the plot."""


@dataclass(frozen=True, slots=True)
class Harvest:
    """Harvest the standing crop, at any stage, and sow ``next_crop``."""

    next_crop: CropType | str


@dataclass(frozen=True, slots=True)
class NoAction:
    """Let the day pass without intervention."""


Action = Union[Irrigate, Fertilize, Weed, Harvest, NoAction]


@dataclass(frozen=True, slots=True)
class ActionEffect:
    """
    What an applied action changes in the day's biophysical step.

    Attributes
    ----------
    irrigation_mm : float
        Water added to the soil buffer today [mm].
    fertilizer_n : float
        Nitrogen added to the pool today [kg/ha].
    weeded : bool
        Weeds were removed; no weed increment today.
    sown : bool
        A new crop was sown today (harvest day).
    harvested_from : CropType or None
        Crop that was harvested, if any.
    """

    irrigation_mm: float = 0.0
    fertilizer_n: float = 0.0
    weeded: bool = False
    sown: bool = False
    harvested_from: CropType | None = None


def _check_amount(action, name: str) -> float:
    value = getattr(action, name)
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidAction(
            f"{type(action).__name__} {name} must be a number, got {value!r}."
        )
    value = float(value)
    if not math.isfinite(value) or value < 0.0:
        raise InvalidAction(
            f"{type(action).__name__} {name} must be a finite number >= 0, "
            f"got {value!r}."
        )
    return value


def validate_action(action: Action | None) -> Action:
    """
    Check an action and return its normalized form.

    Parameters
    ----------
    action : Action or None
        Action of the day. ``None`` means no intervention.

    Returns
    -------
    Action
        The action with numeric amounts as ``float`` and a harvest target
        resolved to a :class:`CropType`.

    Raises
    ------
    InvalidAction
        If an amount is negative, NaN, infinite or not a number, or if
        ``action`` is not one of the action variants.
    UnknownCropType
        If a harvest names a crop without a definition.
    """
    if action is None:
        return NoAction()
    if isinstance(action, Irrigate):
        return Irrigate(_check_amount(action, "amount_mm"))
    if isinstance(action, Fertilize):
        return Fertilize(_check_amount(action, "amount_n"))
    if isinstance(action, Harvest):
        return Harvest(CropType.parse(action.next_crop))
    if isinstance(action, (Weed, NoAction)):
        return action
    raise InvalidAction(f"Unsupported action: {action!r}")


def apply_action(
    state: SimulationState, action: Action, settings: ModelSettings
) -> tuple[SimulationState, ActionEffect]:
    """
    Apply a validated action to the current state.

    Weeding and harvesting act on the crop sub-state immediately; water and
    nitrogen are returned in the :class:`ActionEffect` and enter the soil
    balance of the same day.

    Parameters
    ----------
    state : SimulationState
        State at the end of the previous day.
    action : Action
        Output of :func:`validate_action`.
    settings : ModelSettings
        Model constants (uses ``weed_residual``).

    Returns
    -------
    state : SimulationState
        State with the crop sub-state updated by the action.
    effect : ActionEffect
        Resources and flags for the day's biophysical step.
    """
    if isinstance(action, Irrigate):
        return state, ActionEffect(irrigation_mm=action.amount_mm)
    if isinstance(action, Fertilize):
        return state, ActionEffect(fertilizer_n=action.amount_n)
    if isinstance(action, Weed):
        crop = replace(
            state.crop, weed_density=state.crop.weed_density * settings.weed_residual
        )
        return replace(state, crop=crop), ActionEffect(weeded=True)
    if isinstance(action, Harvest):
        previous = state.crop.type
        state = replace(state, crop=CropState(type=action.next_crop), stress=StressState())
        return state, ActionEffect(sown=True, harvested_from=previous)
    return state, ActionEffect()
