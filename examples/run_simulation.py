"""
Run one season on the default scenario and store the trajectory.

The management policy is deliberately simple: irrigate when the crop is
wilting, top up nitrogen when the pool runs low, weed on infestation and
harvest when the simulation asks to pause. The trajectory is written to
``outputs/season.h5`` and plotted to ``outputs/season.png``.

Usage::

    python examples/run_simulation.py [settings.yaml]
"""

import logging
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

from agritwin.core.actions import Fertilize, Irrigate, NoAction, Weed
from agritwin.core.data_containers import SimulationState
from agritwin.core.engine import SimulationEngine
from agritwin.core.settings import load_settings
from agritwin.library.io_hdf5 import save_trajectory_hdf5
from agritwin.library.plots import plot_trajectory

OUT_DIR = Path(Path(__file__).parent.parent, "outputs")
MAX_DAYS = 250
LOW_N_POOL = 40.0

logger = logging.getLogger("run_simulation")


def choose_action(state: SimulationState):
    if state.is_wilting:
        return Irrigate(20.0)
    if state.soil.n_pool < LOW_N_POOL:
        return Fertilize(15.0)
    if state.has_weed_infestation:
        return Weed()
    return NoAction()


def main(settings_path=None):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = load_settings(settings_path)
    engine = SimulationEngine.from_settings(settings)

    while not engine.state.should_pause and engine.state.day < MAX_DAYS:
        engine.advance_day(choose_action(engine.state))

    s = engine.state
    logger.info(
        "Stopped on day %d: phase=%s dvs=%.2f health=%.1f yield=%.2f t/ha",
        s.day,
        s.phase.value,
        s.crop.dvs,
        s.crop.health,
        s.yield_forecast,
    )
    for entry in s.event_log[:3]:
        logger.info("  %s", entry)

    traj = engine.trajectory()
    save_trajectory_hdf5(
        traj,
        OUT_DIR / "season.h5",
        extra_meta={
            "seed": s.seed,
            "crop": settings.crop.value,
            "soil_card": settings.soil_card.card_id,
        },
    )
    fig = plot_trajectory(traj, keys=("dvs", "health", "n_pool", "water_stress", "yield_forecast"))
    fig.savefig(OUT_DIR / "season.png", dpi=120)
    logger.info("Wrote %s", OUT_DIR / "season.png")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
