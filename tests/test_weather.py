import numpy as np
import numpy.testing as npt
import pytest

from agritwin.core.data_containers import WeatherSample
from agritwin.core.settings import WeatherParams
from agritwin.core.weather import HistoricalWeather, StochasticWeather, normalize_seed

N_DAYS = 365


def _series(weather, n=N_DAYS):
    out, prev = [], None
    for day in range(n):
        prev = weather.sample(day, prev)
        out.append(prev)
    return out


def test_same_seed_gives_identical_series():
    a = _series(StochasticWeather(seed=123))
    b = _series(StochasticWeather(seed=123))
    assert a == b


def test_different_seeds_give_different_series():
    a = _series(StochasticWeather(seed=1), n=60)
    b = _series(StochasticWeather(seed=2), n=60)
    assert [s.temp_max for s in a] != [s.temp_max for s in b]


def test_sample_does_not_depend_on_call_order():
    w = StochasticWeather(seed=5)
    late = w.sample(40)
    w.sample(3)
    w.sample(100)
    assert w.sample(40) == late


def test_rain_is_never_negative_and_some_days_are_wet():
    rain = np.array([s.rain for s in _series(StochasticWeather(seed=9))])
    assert np.all(rain >= 0.0)
    assert np.any(rain > 0.0)


def test_dry_params_never_rain():
    rain = [s.rain for s in _series(StochasticWeather(seed=9, params=WeatherParams.dry()))]
    assert max(rain) == 0.0


def test_anomaly_is_bounded_and_min_below_max():
    w = StochasticWeather(seed=77)
    for day, s in enumerate(_series(w)):
        assert abs(s.temp_max - w.seasonal_temp_max(day)) <= w.params.anomaly_bound + 1e-9
        assert s.temp_min <= s.temp_max


def test_rainy_season_is_wetter_than_dry_season():
    w = StochasticWeather()
    # day 0 is 1 June; the default rainy season peaks mid-July
    assert w.rain_probability(48) > w.rain_probability(200)
    assert w.rain_probability(48) == pytest.approx(w.params.rain_prob_wet, abs=1e-3)


@pytest.mark.parametrize(
    "seed, expected", [(0, 0), (-5, 5), (2**32 + 3, 3), (-(2**40), 0)]
)
def test_normalize_seed(seed, expected):
    assert normalize_seed(seed) == expected
    assert StochasticWeather(seed=seed).seed == expected


def test_historical_weather_replays_and_wraps():
    w = HistoricalWeather(temp_max=[30.0, 31.0], temp_min=[20.0, 21.0], rain=[0.0, 7.5])
    assert len(w) == 2
    assert w.sample(1) == WeatherSample(temp_max=31.0, temp_min=21.0, rain=7.5)
    assert w.sample(3) == w.sample(1)
    npt.assert_array_equal(w.rain, [0.0, 7.5])


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(temp_max=[30.0], temp_min=[20.0], rain=[-1.0]),
        dict(temp_max=[30.0, 31.0], temp_min=[20.0], rain=[0.0]),
        dict(temp_max=[], temp_min=[], rain=[]),
        dict(temp_max=[[30.0]], temp_min=[[20.0]], rain=[[0.0]]),
        dict(temp_max=[30.0], temp_min=[20.0], rain=[np.nan]),
    ],
)
def test_historical_weather_validates(kwargs):
    with pytest.raises(ValueError):
        HistoricalWeather(**kwargs)


def test_weather_params_validate():
    with pytest.raises(ValueError):
        WeatherParams(rain_prob_wet=1.5)
    with pytest.raises(ValueError):
        WeatherParams(anomaly_persistence=1.0)
    with pytest.raises(ValueError):
        WeatherParams(rain_mean_mm=0.0)
