from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from statsmodels.tsa.seasonal import STL, seasonal_decompose

from .data import infer_frequency

logger = logging.getLogger(__name__)

METHODS = ("stl", "classical")
MODELS = ("additive", "multiplicative")


@dataclass
class DecompositionResult:
    observed: pd.Series
    trend: pd.Series
    seasonal: pd.Series
    remainder: pd.Series
    model: str
    method: str
    period: int

    def reconstruct(self) -> pd.Series:
        if self.model == "multiplicative":
            return self.trend * self.seasonal * self.remainder
        return self.trend + self.seasonal + self.remainder

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "observed": self.observed,
                "trend": self.trend,
                "seasonal": self.seasonal,
                "remainder": self.remainder,
            }
        )


def _validate(series: pd.Series, method: str, model: str, period: int) -> None:
    if method not in METHODS:
        raise ValueError(f"Unknown decomposition method {method!r}; expected one of {METHODS}")
    if model not in MODELS:
        raise ValueError(f"Unknown decomposition model {model!r}; expected one of {MODELS}")
    if period < 2:
        raise ValueError(f"Seasonal period must be at least 2, got {period}")
    if len(series) < 2 * period:
        raise ValueError(
            f"Decomposition needs at least two full periods ({2 * period} observations), got {len(series)}"
        )
    if series.isna().any():
        raise ValueError("Series contains missing values; regularize it before decomposing.")
    if model == "multiplicative" and (series <= 0).any():
        raise ValueError("Multiplicative decomposition requires strictly positive values.")


def decompose_series(
    series: pd.Series,
    method: str = "stl",
    model: str = "additive",
    period: Optional[int] = None,
    seasonal: int = 13,
    robust: bool = False,
) -> DecompositionResult:
    if period is None:
        period = infer_frequency(series)
    _validate(series, method, model, period)

    values = series.to_numpy(dtype=float)
    logger.info("Decomposing %d observations: method=%s, model=%s, period=%d", len(values), method, model, period)

    if method == "stl":
        # STL is additive only; multiplicative runs on the log scale.
        endog = np.log(values) if model == "multiplicative" else values
        fitted = STL(endog, period=period, seasonal=seasonal, robust=robust).fit()
        trend, season, resid = (
            np.asarray(fitted.trend),
            np.asarray(fitted.seasonal),
            np.asarray(fitted.resid),
        )
        if model == "multiplicative":
            trend, season, resid = np.exp(trend), np.exp(season), np.exp(resid)
    else:
        fitted = seasonal_decompose(values, model=model, period=period, extrapolate_trend="freq")
        trend, season, resid = (
            np.asarray(fitted.trend),
            np.asarray(fitted.seasonal),
            np.asarray(fitted.resid),
        )

    def wrap(component: np.ndarray, name: str) -> pd.Series:
        return pd.Series(component, index=series.index, name=name)

    return DecompositionResult(
        observed=series.astype(float),
        trend=wrap(trend, "trend"),
        seasonal=wrap(season, "seasonal"),
        remainder=wrap(resid, "remainder"),
        model=model,
        method=method,
        period=period,
    )
