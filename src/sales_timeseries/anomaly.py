"""Seasonal hybrid ESD anomaly detection.

The seasonal component (robust STL) and the median are removed from the
series, then a generalized extreme studentized deviate test is run on what is
left, using the median and MAD in place of the mean and standard deviation.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np
import pandas as pd
from scipy.stats import median_abs_deviation
from scipy.stats import t as student_t
from statsmodels.tsa.seasonal import STL

from .data import infer_frequency

logger = logging.getLogger(__name__)

DIRECTIONS = ("pos", "neg", "both")


def _seasonal_residual(values: np.ndarray, period: int) -> np.ndarray:
    # A window spanning the whole series approximates a periodic seasonal fit.
    window = max(7, len(values) if len(values) % 2 else len(values) + 1)
    seasonal = STL(values, period=period, seasonal=window, robust=True).fit().seasonal
    return values - np.asarray(seasonal) - np.median(values)


def _esd_critical_value(n_obs: int, step: int, alpha: float, one_tail: bool) -> float:
    if one_tail:
        p = 1 - alpha / (n_obs - step + 1)
    else:
        p = 1 - alpha / (2 * (n_obs - step + 1))
    t_value = student_t.ppf(p, n_obs - step - 1)
    return t_value * (n_obs - step) / np.sqrt((n_obs - step - 1 + t_value**2) * (n_obs - step + 1))


def _generalized_esd(
    residual: np.ndarray,
    max_outliers: int,
    direction: str,
    alpha: float,
) -> List[int]:
    n_obs = len(residual)
    remaining = pd.Series(residual)
    candidates: List[int] = []
    n_anoms = 0

    for step in range(1, max_outliers + 1):
        center = remaining.median()
        if direction == "pos":
            deviation = remaining - center
        elif direction == "neg":
            deviation = center - remaining
        else:
            deviation = (remaining - center).abs()

        scale = median_abs_deviation(remaining.to_numpy(), scale="normal")
        if scale == 0:
            break

        scores = deviation / scale
        worst = scores.idxmax()
        candidates.append(int(worst))
        statistic = float(scores.loc[worst])
        remaining = remaining.drop(index=worst)

        critical = _esd_critical_value(n_obs, step, alpha, one_tail=direction != "both")
        if statistic > critical:
            n_anoms = step

    return candidates[:n_anoms]


def check_anomaly_settings(max_anoms: float, direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown direction {direction!r}; expected one of {DIRECTIONS}")
    if not 0 < max_anoms <= 0.49:
        raise ValueError(f"max_anoms must lie in (0, 0.49], got {max_anoms}")


def detect_anomalies(
    series: pd.Series,
    max_anoms: float = 0.1,
    direction: str = "pos",
    alpha: float = 0.05,
    period: Optional[int] = None,
) -> pd.DataFrame:
    check_anomaly_settings(max_anoms, direction)
    if series.isna().any():
        raise ValueError("Series contains missing values; regularize it before anomaly detection.")
    if period is None:
        period = infer_frequency(series)

    values = series.to_numpy(dtype=float)
    n_obs = len(values)
    if n_obs < 2 * period:
        raise ValueError(f"Anomaly detection needs at least two full periods ({2 * period} observations), got {n_obs}")

    # Short series still get one candidate.
    max_outliers = max(1, int(np.floor(n_obs * max_anoms)))

    residual = _seasonal_residual(values, period)
    positions = np.array(sorted(_generalized_esd(residual, max_outliers, direction, alpha)), dtype=int)
    logger.info("Detected %d anomalies (max_anoms=%s, direction=%s)", len(positions), max_anoms, direction)

    return pd.DataFrame(
        {
            "timestamp": series.index[positions],
            "anoms": values[positions],
        }
    )
