"""Module to save/load Trajectory objects to/from HDF5 files."""

from __future__ import annotations

import json
import logging
import platform
import subprocess
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import h5py

import numpy as np

from agritwin.core.data_containers import TRAJECTORY_FIELDS, Trajectory

logger = logging.getLogger(__name__)

# Arrays persisted under the "trajectory" group
TRAJECTORY_ARRAY_FIELDS = TRAJECTORY_FIELDS + ["crop"]


def _git_commit_or_none() -> Optional[str]:
    try:
        return subprocess.check_output(
            ["git", "rev-parse", "HEAD"], text=True, stderr=subprocess.DEVNULL
        ).strip()
    except (OSError, subprocess.CalledProcessError):
        return None


def _suggest_chunks(shape: tuple[int, ...]) -> Optional[tuple[int, ...]]:
    """
    Choose chunk sizes for a daily series.

    For 1D (T,): ``(min(T, 365),)`` so a season is read in one chunk.
    Empty arrays are stored contiguous (``None``).
    """
    if len(shape) == 1 and shape[0] > 0:
        return (min(shape[0], 365),)
    return None


def _write_dataset(g: h5py.Group, name: str, arr: np.ndarray) -> None:
    arr = np.asarray(arr)
    logical = None
    # HDF5 has no native unicode arrays; store UTF-8 bytes
    if arr.dtype.kind == "U":
        logical = "str"
        arr = np.char.encode(arr, "utf-8")

    dset = g.create_dataset(
        name,
        data=arr,
        compression="gzip",
        compression_opts=4,
        shuffle=True,
        chunks=_suggest_chunks(arr.shape),
    )
    dset.attrs["shape"] = arr.shape
    dset.attrs["dtype"] = str(arr.dtype)
    if logical is not None:
        dset.attrs["logical_dtype"] = logical


def _read_dataset(dset: h5py.Dataset) -> np.ndarray:
    arr = dset[...]
    if dset.attrs.get("logical_dtype", "") == "str":
        arr = np.char.decode(arr, "utf-8")
    return arr


def save_trajectory_hdf5(
    trajectory: Trajectory,
    path: Path,
    extra_meta: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Persist a trajectory to HDF5 with metadata.

    Parameters
    ----------
    trajectory : Trajectory
        Arrays to store, one dataset per variable.
    path : pathlib.Path
        Output file; parent directories are created.
    extra_meta : dict, optional
        Additional file-level attributes (e.g. seed, crop, soil card id).
        Dicts and lists are stored as JSON strings.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    meta = {
        "schema_version": 1,
        "python": platform.python_version(),
        "numpy": np.__version__,
        "git_commit": _git_commit_or_none(),
        "notes": "Simulated plot trajectory from agritwin",
    }
    if extra_meta:
        meta.update(extra_meta)

    with h5py.File(path, "w") as f:
        for k, v in meta.items():
            f.attrs[k] = (
                json.dumps(v)
                if isinstance(v, (dict, list))
                else ("" if v is None else v)
            )

        g = f.create_group("trajectory")
        for name in TRAJECTORY_ARRAY_FIELDS:
            _write_dataset(g, name, getattr(trajectory, name))
        g.attrs["events"] = json.dumps(list(trajectory.events))

    logger.info("Wrote HDF5 trajectory: %s", path.resolve())


def load_trajectory_vars_hdf5(
    path: Path, names: Iterable[str]
) -> Dict[str, np.ndarray]:
    """
    Load only selected variables from an HDF5 trajectory.

    Returns
    -------
    dict
        Mapping of variable name to array.

    Raises
    ------
    KeyError
        If a variable is not present in the file.
    """
    out: Dict[str, np.ndarray] = {}
    with h5py.File(path, "r") as f:
        g = f["trajectory"]
        for name in names:
            if name not in g:
                raise KeyError(f"Variable '{name}' not found in HDF5 file.")
            out[name] = _read_dataset(g[name])
    return out


def load_trajectory_hdf5(path: Path) -> Trajectory:
    """
    Load a full :class:`Trajectory` from HDF5.

    Parameters
    ----------
    path : pathlib.Path
        File written by :func:`save_trajectory_hdf5`.

    Returns
    -------
    Trajectory
        Arrays and event list as stored.
    """
    with h5py.File(path, "r") as f:
        g = f["trajectory"]
        kwargs = {
            name: _read_dataset(g[name])
            for name in TRAJECTORY_ARRAY_FIELDS
            if name in g
        }
        kwargs["events"] = json.loads(g.attrs.get("events", "[]"))
    return Trajectory(**kwargs)
