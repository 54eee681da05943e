from __future__ import annotations

import matplotlib
import numpy as np
import pytest

from agritwin.core.crops import CropType, get_crop_definition
from agritwin.core.data_containers import SoilHealthCard
from agritwin.core.engine import SimulationEngine
from agritwin.core.settings import ModelSettings, WeatherParams
from agritwin.core.weather import HistoricalWeather

matplotlib.use("Agg")


@pytest.fixture
def settings() -> ModelSettings:
    return ModelSettings()


@pytest.fixture
def rice_def():
    return get_crop_definition(CropType.RICE)


@pytest.fixture
def card() -> SoilHealthCard:
    return SoilHealthCard(card_id="demo-1")


@pytest.fixture
def dry_engine(card) -> SimulationEngine:
    """Rice on the demo card under a rainless season."""
    return SimulationEngine(card, CropType.RICE, seed=11, weather_params=WeatherParams.dry())


@pytest.fixture
def constant_weather() -> HistoricalWeather:
    """One rainless day at 32/22 °C, replayed forever."""
    return HistoricalWeather(
        temp_max=np.array([32.0]), temp_min=np.array([22.0]), rain=np.array([0.0])
    )
