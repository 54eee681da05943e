"""
Daily weather processes.

Two processes share the same contract, ``sample(day, previous=None)``:

- :class:`StochasticWeather` draws temperature and rainfall from a seasonal
  climatology. Each draw comes from a generator seeded with the pair
  ``(seed, day)``, so a sample is a pure function of the seed, the day and
  the optional previous sample. There is no hidden global state: two
  processes with the same seed produce bit-identical series, in any call
  order.
- :class:`HistoricalWeather` replays an observed series.

Notes
-----
- Temperature: smooth annual cosine plus an AR(1) anomaly. The anomaly
  persists from the previous sample (``previous.temp_anomaly``) and is
  clipped to ``±anomaly_bound`` so noise is bounded.
- Rainfall: a wet-day occurrence draw whose probability follows a Gaussian
  rainy season, then an exponentially distributed amount. Rain is never
  negative.
- Seeds are normalized to ``abs(seed) % 2**32`` rather than rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import numpy as np

from agritwin.core.data_containers import WeatherSample
from agritwin.core.settings import WeatherParams

Array = np.ndarray

DAYS_PER_YEAR = 365
SEED_MODULUS = 2**32


def normalize_seed(seed: int) -> int:
    """Map any integer onto the admissible seed range ``[0, 2**32)``."""
    return abs(int(seed)) % SEED_MODULUS


class WeatherProcess(Protocol):
    """Anything that can produce the weather of a simulated day."""

    seed: int

    def sample(
        self, day: int, previous: WeatherSample | None = None
    ) -> WeatherSample: ...


def _circular_distance(a: float, b: float, period: int = DAYS_PER_YEAR) -> float:
    d = abs(a - b) % period
    return min(d, period - d)


@dataclass(frozen=True)
class StochasticWeather:
    """
    Seeded seasonal weather generator.

    Parameters
    ----------
    seed : int, default=0
        Seed of the process (normalized on construction).
    params : WeatherParams, optional
        Climatology and noise parameters.

    Examples
    --------
    >>> w = StochasticWeather(seed=7)
    >>> w.sample(3) == StochasticWeather(seed=7).sample(3)
    True
    """

    seed: int = 0
    params: WeatherParams = field(default_factory=WeatherParams)

    def __post_init__(self):
        object.__setattr__(self, "seed", normalize_seed(self.seed))

    def day_of_year(self, day: int) -> int:
        """Calendar day of year (1..365) of simulated ``day``."""
        return (self.params.season_start_doy - 1 + int(day)) % DAYS_PER_YEAR + 1

    def seasonal_temp_max(self, day: int) -> float:
        """Climatological daily maximum temperature [°C] of ``day``."""
        p = self.params
        phase = 2.0 * np.pi * (self.day_of_year(day) - p.temp_peak_doy) / DAYS_PER_YEAR
        return float(p.temp_mean + p.temp_amplitude * np.cos(phase))

    def rain_probability(self, day: int) -> float:
        """Wet-day probability of ``day`` (Gaussian rainy season)."""
        p = self.params
        d = _circular_distance(self.day_of_year(day), p.wet_season_peak_doy)
        bump = np.exp(-0.5 * (d / p.wet_season_width_days) ** 2)
        return float(p.rain_prob_dry + (p.rain_prob_wet - p.rain_prob_dry) * bump)

    def _rng(self, day: int) -> np.random.Generator:
        return np.random.default_rng(np.random.SeedSequence([self.seed, abs(int(day))]))

    def sample(
        self, day: int, previous: WeatherSample | None = None
    ) -> WeatherSample:
        """
        Draw the weather of ``day``.

        Parameters
        ----------
        day : int
            Simulated day.
        previous : WeatherSample, optional
            Sample of the previous day; its anomaly persists into this one.

        Returns
        -------
        WeatherSample
            Weather of the day.
        """
        p = self.params
        rng = self._rng(day)
        # all four draws are taken every day, wet or dry
        innovation = rng.normal(0.0, 1.0)
        diurnal_noise = rng.normal(0.0, 1.0)
        u_wet = rng.random()
        amount = rng.exponential(p.rain_mean_mm)

        prev_anomaly = previous.temp_anomaly if previous is not None else 0.0
        anomaly = float(
            np.clip(
                p.anomaly_persistence * prev_anomaly + p.anomaly_sd * innovation,
                -p.anomaly_bound,
                p.anomaly_bound,
            )
        )
        temp_max = self.seasonal_temp_max(day) + anomaly
        temp_min = temp_max - p.diurnal_range + float(np.clip(diurnal_noise, -2.0, 2.0))
        temp_min = min(temp_min, temp_max)

        rain = float(amount) if u_wet < self.rain_probability(day) else 0.0
        return WeatherSample(
            temp_max=float(temp_max),
            temp_min=float(temp_min),
            rain=rain,
            temp_anomaly=anomaly,
        )


@dataclass(frozen=True, eq=False)
class HistoricalWeather:
    """
    Replay of an observed daily series.

    The series are coerced to 1-D float arrays and checked for consistent
    length. Days beyond the series wrap around, so the process always
    produces a sample.

    Attributes
    ----------
    temp_max : ndarray, shape (T,)
        Daily maximum temperature [°C].
    temp_min : ndarray, shape (T,)
        Daily minimum temperature [°C].
    rain : ndarray, shape (T,)
        Daily rainfall [mm].

    Raises
    ------
    ValueError
        If the series are not 1-D, are empty, differ in length, or contain
        negative rainfall.
    """

    temp_max: Array
    temp_min: Array
    rain: Array
    seed: int = 0

    def __post_init__(self):
        temp_max = np.asarray(self.temp_max, dtype=float)
        temp_min = np.asarray(self.temp_min, dtype=float)
        rain = np.asarray(self.rain, dtype=float)

        if temp_max.ndim != 1 or temp_min.ndim != 1 or rain.ndim != 1:
            raise ValueError("All weather series must be 1-D.")
        T = temp_max.shape[0]
        if T == 0:
            raise ValueError("Weather series must not be empty.")
        if not (temp_min.shape[0] == rain.shape[0] == T):
            raise ValueError("All weather series must have the same length T.")
        if np.any(rain < 0.0) or np.any(np.isnan(rain)):
            raise ValueError("Rainfall must be non-negative.")

        object.__setattr__(self, "temp_max", temp_max)
        object.__setattr__(self, "temp_min", temp_min)
        object.__setattr__(self, "rain", rain)
        object.__setattr__(self, "seed", normalize_seed(self.seed))

    def __len__(self) -> int:
        return int(self.temp_max.shape[0])

    def sample(
        self, day: int, previous: WeatherSample | None = None
    ) -> WeatherSample:
        """Return the observed weather of ``day`` (wrapping around)."""
        t = int(day) % len(self)
        return WeatherSample(
            temp_max=float(self.temp_max[t]),
            temp_min=float(self.temp_min[t]),
            rain=float(self.rain[t]),
        )
