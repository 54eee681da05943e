import pytest

from agritwin.core.crops import CropType
from agritwin.core.engine import SimulationEngine
from agritwin.core.errors import UnknownCropType
from agritwin.core.settings import (
    DEFAULT_SETTINGS_PATH,
    ModelSettings,
    WeatherParams,
    load_settings,
)


def test_default_file_loads():
    assert DEFAULT_SETTINGS_PATH.exists()
    s = load_settings()
    assert s.seed == 42
    assert s.crop is CropType.RICE
    assert s.soil_card.card_id == "demo-1"
    assert s.soil_card.nitrogen == 280.0
    assert s.model == ModelSettings()
    assert s.weather == WeatherParams()


def test_file_overrides_defaults(tmp_path):
    p = tmp_path / "scenario.yaml"
    p.write_text(
        "seed: 7\n"
        "crop: wheat\n"
        "soil_card: {N: 150, pH: 6.4}\n"
        "model: {buffer_days: 2.0, recovery_days: 5}\n"
        "weather: {rain_prob_wet: 0.0, rain_prob_dry: 0.0}\n"
    )
    s = load_settings(p)
    assert s.seed == 7
    assert s.crop is CropType.WHEAT
    assert s.soil_card.nitrogen == 150.0
    assert s.soil_card.ph == 6.4
    assert s.soil_card.potassium == 150.0
    assert s.model.buffer_days == 2.0
    assert s.model.recovery_days == 5
    assert s.model.health_loss_rate == ModelSettings().health_loss_rate
    assert s.weather == WeatherParams.dry()


def test_empty_file_gives_defaults(tmp_path):
    p = tmp_path / "empty.yaml"
    p.write_text("")
    s = load_settings(p)
    assert s.seed == 0
    assert s.crop is CropType.RICE


@pytest.mark.parametrize(
    "text",
    [
        "model: {not_a_key: 1}\n",
        "weather: {rain_mean: 3}\n",
        "irrigation: {}\n",
        "model: {stress_baseline: 2.0}\n",
        "soil_card: {Zn: 3}\n",
        "- a\n- b\n",
    ],
)
def test_invalid_files_raise(tmp_path, text):
    p = tmp_path / "bad.yaml"
    p.write_text(text)
    with pytest.raises(ValueError):
        load_settings(p)


def test_unknown_crop_in_file(tmp_path):
    p = tmp_path / "bad_crop.yaml"
    p.write_text("crop: barley\n")
    with pytest.raises(UnknownCropType):
        load_settings(p)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "nope.yaml")


def test_engine_from_settings():
    s = load_settings()
    engine = SimulationEngine.from_settings(s)
    assert engine.state.seed == 42
    assert engine.state.soil.card == s.soil_card
    assert engine.settings is s.model


def test_model_settings_validate():
    with pytest.raises(ValueError):
        ModelSettings(initial_moisture_mm=200.0)
    with pytest.raises(ValueError):
        ModelSettings(recovery_days=0)
    with pytest.raises(ValueError):
        ModelSettings(buffer_days=0.0)
