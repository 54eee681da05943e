"""
Exceptions raised at the boundary of the simulation engine.

Classes
-------
AgriTwinError
    Base class for every error raised by :mod:`agritwin`.
InvalidAction
    A farmer action carried a malformed amount (negative, NaN, infinite) or
    was not one of the known action variants.
UnknownCropType
    A crop type has no entry in the crop definition table.

Notes
-----
Biophysical quantities derived during a step (pools, stresses, health) are
clamped, never rejected, so they do not have an exception of their own.
"""

from __future__ import annotations


class AgriTwinError(Exception):
    """Base class for all agritwin errors."""


class InvalidAction(AgriTwinError, ValueError):
    """Raised when an action is rejected before any state is touched."""


class UnknownCropType(AgriTwinError, KeyError):
    """Raised when a crop type cannot be resolved to a CropDefinition."""

    def __str__(self) -> str:
        # KeyError would otherwise wrap the message in quotes
        return str(self.args[0]) if self.args else ""
