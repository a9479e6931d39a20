"""
Forecast algorithms over a series of per-period utilization samples.

All four methods take the samples oldest-first and return a predicted
utilization percent for one future period. Moving average and exponential
smoothing are flat across the horizon; linear regression extrapolates; the
seasonal method scales the moving average by the month of the target week.
"""

from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Sequence

import numpy as np
from sklearn.linear_model import LinearRegression

from distillery_capacity.enums import ForecastMethod
from distillery_capacity.errors import InvalidArgument
from distillery_capacity.utils.config import CapacitySettings, resolve_settings


def _as_array(samples: Sequence[float]) -> np.ndarray:
    values = np.asarray(samples, dtype=float)
    if values.size == 0:
        raise InvalidArgument("At least one sample is required to forecast")
    return values


def moving_average(samples: Sequence[float], window: int = 4) -> float:
    """Mean of the last min(window, N) samples."""
    values = _as_array(samples)
    return float(values[-min(window, values.size):].mean())


def exponential_smoothing(samples: Sequence[float], alpha: float = 0.3) -> float:
    values = _as_array(samples)
    smoothed = values[0]
    for value in values[1:]:
        smoothed = alpha * value + (1 - alpha) * smoothed
    return float(smoothed)


def linear_regression(samples: Sequence[float], periods_ahead: int = 0) -> float:
    """
    OLS of sample value against its 1-based index, evaluated at
    N + 1 + periods_ahead (periods_ahead=0 is the next period).
    """
    values = _as_array(samples)
    n = values.size
    if n == 1:
        return float(values[0])

    X = np.arange(1, n + 1, dtype=float).reshape(-1, 1)
    model = LinearRegression()
    model.fit(X, values)
    return float(model.predict(np.array([[n + 1 + periods_ahead]], dtype=float))[0])


def seasonal_adjusted(
    samples: Sequence[float],
    month: int,
    factors: Mapping[int, float],
    window: int = 4,
) -> float:
    return moving_average(samples, window) * factors.get(month, 1.0)


def predict(
    method: ForecastMethod,
    samples: Sequence[float],
    periods_ahead: int,
    week_start: date,
    settings: Optional[CapacitySettings] = None,
) -> float:
    cfg = resolve_settings(settings)

    if method == ForecastMethod.MOVING_AVERAGE:
        return moving_average(samples, cfg.moving_average_window)
    if method == ForecastMethod.EXPONENTIAL_SMOOTHING:
        return exponential_smoothing(samples, cfg.smoothing_alpha)
    if method == ForecastMethod.LINEAR_REGRESSION:
        return linear_regression(samples, periods_ahead)
    if method == ForecastMethod.SEASONAL_ADJUSTED:
        return seasonal_adjusted(
            samples, week_start.month, cfg.seasonal_factors, cfg.moving_average_window
        )
    raise InvalidArgument(f"Unsupported forecast method: {method!r}", method)
