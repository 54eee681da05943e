"""Quick-look plots of simulated trajectories."""

from __future__ import annotations

from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np

from agritwin.core.data_containers import (
    MATURITY_DVS,
    REPRODUCTIVE_DVS,
    TRAJECTORY_FIELDS,
    WILTING_STRESS,
    Trajectory,
)

# Horizontal reference lines drawn for variables with a display threshold
THRESHOLDS = {
    "dvs": (REPRODUCTIVE_DVS, MATURITY_DVS),
    "water_stress": (WILTING_STRESS,),
}


def plot_trajectory(
    trajectory: Trajectory,
    keys: Sequence[str] = ("dvs", "health", "n_pool", "water_stress"),
    axes=None,
):
    """
    Plot selected variables of a trajectory against the simulated day.

    Parameters
    ----------
    trajectory : Trajectory
        Simulated trajectory.
    keys : sequence of str
        Variables to plot, one panel each.
    axes : sequence of matplotlib.axes.Axes, optional
        Axes to draw on (one per key). A new figure is created otherwise.

    Returns
    -------
    matplotlib.figure.Figure
        Figure holding the panels.

    Raises
    ------
    KeyError
        If a key is not a trajectory variable.
    """
    for key in keys:
        if key not in TRAJECTORY_FIELDS or key == "day":
            raise KeyError(f"Unknown trajectory variable '{key}'.")

    if axes is None:
        fig, axes = plt.subplots(
            len(keys), 1, figsize=(10, 2.5 * len(keys)), sharex=True, squeeze=False
        )
        axes = axes[:, 0]
    else:
        axes = np.atleast_1d(axes)
        if len(axes) != len(keys):
            raise ValueError("axes must hold one Axes per key.")
        fig = axes[0].figure

    t = trajectory.day
    for ax, key in zip(axes, keys):
        ax.plot(t, getattr(trajectory, key))
        for level in THRESHOLDS.get(key, ()):
            ax.axhline(level, color="grey", linestyle="--", linewidth=0.8)
        ax.set_ylabel(key)
    axes[-1].set_xlabel("Day")
    return fig
