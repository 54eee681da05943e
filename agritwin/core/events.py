"""
Event log entries.

Entries are edge-triggered: a condition is reported on the step where it
becomes true, not on every step while it holds. Each category produces at
most one entry per step. The log is kept most-recent-first.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from agritwin.core.actions import ActionEffect
from agritwin.core.data_containers import (
    MATURITY_DVS,
    WEED_INFESTATION,
    WILTING_STRESS,
    SimulationState,
)


class EventKind(str, Enum):
    """Categories of log entries."""

    ACTION = "action"
    HARVEST = "harvest"
    WATER_STRESS = "water_stress"
    NUTRIENT_DEPLETION = "nutrient_depletion"
    WEED_INFESTATION = "weed_infestation"
    MATURITY = "maturity"
    CROP_FAILURE = "crop_failure"


def format_entry(day: int, message: str) -> str:
    """Prefix ``message`` with its day, as in ``"Day 12: Weeding done"``."""
    return f"Day {day}: {message}"


def _action_notice(effect: ActionEffect) -> str | None:
    if effect.irrigation_mm > 0.0:
        return f"Irrigated {effect.irrigation_mm:.1f} mm"
    if effect.fertilizer_n > 0.0:
        return f"Applied {effect.fertilizer_n:.1f} kg/ha nitrogen"
    if effect.weeded:
        return "Weeding done"
    return None


def detect(
    previous: SimulationState, current: SimulationState, effect: ActionEffect
) -> list[tuple[EventKind, str]]:
    """
    Conditions that became true between two consecutive states.

    Parameters
    ----------
    previous : SimulationState
        State before the step, after the day's action was applied. After a
        harvest this is the freshly sown crop with zeroed stress.
    current : SimulationState
        State after the step.
    effect : ActionEffect
        Effect of the step's action.

    Returns
    -------
    list of (EventKind, str)
        One message per triggered category, in pipeline order.
    """
    found: list[tuple[EventKind, str]] = []

    notice = _action_notice(effect)
    if notice is not None:
        found.append((EventKind.ACTION, notice))
    if effect.harvested_from is not None:
        found.append(
            (
                EventKind.HARVEST,
                f"Harvested {effect.harvested_from.value}; "
                f"sowed {current.crop.type.value}",
            )
        )

    if previous.soil.n_pool > 0.0 and current.soil.n_pool <= 0.0:
        found.append((EventKind.NUTRIENT_DEPLETION, "Soil nitrogen pool depleted"))
    if previous.stress.water <= WILTING_STRESS < current.stress.water:
        found.append(
            (
                EventKind.WATER_STRESS,
                f"Water stress onset ({current.stress.water:.2f})",
            )
        )
    if previous.crop.weed_density <= WEED_INFESTATION < current.crop.weed_density:
        found.append((EventKind.WEED_INFESTATION, "Weed infestation detected"))
    if previous.crop.dvs < MATURITY_DVS <= current.crop.dvs:
        found.append(
            (
                EventKind.MATURITY,
                f"{current.crop.type.value} reached maturity; ready for harvest",
            )
        )
    if previous.crop.health > 0.0 and current.crop.health <= 0.0:
        found.append((EventKind.CROP_FAILURE, f"{current.crop.type.value} crop failed"))
    return found


def record(
    previous: SimulationState, current: SimulationState, effect: ActionEffect
) -> tuple[str, ...]:
    """Formatted entries of the step, in pipeline order."""
    return tuple(
        format_entry(current.day, message)
        for _, message in detect(previous, current, effect)
    )


def prepend(log: tuple[str, ...], entries: Sequence[str]) -> tuple[str, ...]:
    """Return ``log`` with ``entries`` added at the head, newest first."""
    return tuple(reversed(entries)) + log
