"""
CSV loaders for soil health cards and observed weather series.

Soil cards use the laboratory column names ``id, N, P, K, pH, EC, OC`` (the
long field names of :class:`~agritwin.core.data_containers.SoilHealthCard`
are accepted too). Weather files need ``temp_max``, ``temp_min`` and
``rain`` columns; an optional ``date`` column is parsed and used to sort the
rows. Other columns are ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from agritwin.core.data_containers import SoilHealthCard
from agritwin.core.weather import HistoricalWeather

logger = logging.getLogger(__name__)

WEATHER_COLUMNS = ["temp_max", "temp_min", "rain"]


def load_soil_cards_csv(path: str | Path, sep: str = ",") -> dict[str, SoilHealthCard]:
    """
    Read one soil health card per row.

    Parameters
    ----------
    path : str or pathlib.Path
        CSV file with an ``id`` (or ``card_id``) column.
    sep : str, default=","
        Column separator.

    Returns
    -------
    dict of str to SoilHealthCard
        Cards keyed by their id, in file order.

    Raises
    ------
    ValueError
        If the id column is missing, ids repeat, a column is unknown, or a
        card fails validation.
    """
    df = pd.read_csv(path, sep=sep)
    if "card_id" in df.columns:
        df = df.rename(columns={"card_id": "id"})
    if "id" not in df.columns:
        raise ValueError(f"Soil card file has no 'id' column: {path}")
    df["id"] = df["id"].astype(str)
    if df["id"].duplicated().any():
        dupes = sorted(df.loc[df["id"].duplicated(), "id"].unique())
        raise ValueError(f"Duplicate soil card ids: {dupes}")

    cards = {
        row["id"]: SoilHealthCard.from_mapping(row)
        for row in df.to_dict(orient="records")
    }
    logger.info("Loaded %d soil cards from %s", len(cards), path)
    return cards


def load_weather_csv(path: str | Path, sep: str = ",", seed: int = 0) -> HistoricalWeather:
    """
    Read an observed daily series.

    Parameters
    ----------
    path : str or pathlib.Path
        CSV file with ``temp_max``, ``temp_min`` and ``rain`` columns.
    sep : str, default=","
        Column separator.
    seed : int, default=0
        Seed recorded in the simulation states (replay is deterministic).

    Returns
    -------
    HistoricalWeather

    Raises
    ------
    ValueError
        If a required column is missing or holds missing values, or if the
        series fails validation (e.g. negative rainfall).
    """
    df = pd.read_csv(path, sep=sep)
    missing = [c for c in WEATHER_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Weather file is missing columns {missing}: {path}")
    if "date" in df.columns:
        df["date"] = pd.to_datetime(df["date"])
        df = df.sort_values("date")
    if df[WEATHER_COLUMNS].isna().any().any():
        raise ValueError(f"Weather file has missing values: {path}")

    weather = HistoricalWeather(
        temp_max=df["temp_max"].to_numpy(dtype=float),
        temp_min=df["temp_min"].to_numpy(dtype=float),
        rain=df["rain"].to_numpy(dtype=float),
        seed=seed,
    )
    logger.info("Loaded %d weather days from %s", len(weather), path)
    return weather
