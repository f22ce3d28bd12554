from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from statsmodels.tsa.statespace.sarimax import SARIMAX

logger = logging.getLogger(__name__)

Order = Tuple[int, int, int]
SeasonalOrder = Tuple[int, int, int, int]


@dataclass
class ArimaConfig:
    max_p: int = 2
    max_d: int = 1
    max_q: int = 2
    seasonal: bool = True
    max_P: int = 1
    max_D: int = 1
    max_Q: int = 1
    seasonal_period: int = 12


@dataclass
class ForecastResult:
    order: Order
    seasonal_order: SeasonalOrder
    aic: float
    observed: pd.Series
    fitted: pd.Series
    mean: pd.Series
    lower: pd.DataFrame
    upper: pd.DataFrame

    @property
    def levels(self) -> Tuple[int, ...]:
        return tuple(self.lower.columns)

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame({"forecast": self.mean})
        for level in self.levels:
            frame[f"lower_{level}"] = self.lower[level]
            frame[f"upper_{level}"] = self.upper[level]
        return frame


def _build_model(endog: np.ndarray, order: Order, seasonal_order: SeasonalOrder) -> SARIMAX:
    return SARIMAX(
        endog,
        order=order,
        seasonal_order=seasonal_order,
        enforce_stationarity=False,
        enforce_invertibility=False,
        initialization="approximate_diffuse",
    )


def select_sarima_order(series: pd.Series, config: ArimaConfig) -> Tuple[Order, SeasonalOrder]:
    endog = np.asarray(series, dtype=float)
    best_aic = np.inf
    best_order = (1, 0, 0)
    best_seasonal = (0, 0, 0, 0)

    p_values = range(0, config.max_p + 1)
    d_values = range(0, config.max_d + 1)
    q_values = range(0, config.max_q + 1)

    seasonal_orders = [(0, 0, 0, 0)]
    if config.seasonal and config.seasonal_period > 1:
        seasonal_orders.extend(
            (
                P,
                D,
                Q,
                config.seasonal_period,
            )
            for P in range(0, config.max_P + 1)
            for D in range(0, config.max_D + 1)
            for Q in range(0, config.max_Q + 1)
            if (P, D, Q) != (0, 0, 0)
        )

    for order in [(p, d, q) for p in p_values for d in d_values for q in q_values]:
        for seasonal_order in seasonal_orders:
            if order == (0, 0, 0) and seasonal_order == (0, 0, 0, 0):
                continue
            try:
                with warnings.catch_warnings():
                    warnings.simplefilter("ignore")
                    fitted = _build_model(endog, order, seasonal_order).fit(disp=False)
            except (ValueError, np.linalg.LinAlgError) as exc:
                logger.debug("Skipping SARIMA%s%s: %s", order, seasonal_order, exc)
                continue
            if fitted.aic < best_aic:
                best_aic = fitted.aic
                best_order = order
                best_seasonal = seasonal_order

    logger.info("Selected SARIMA%s%s with AIC=%.3f", best_order, best_seasonal, best_aic)
    return best_order, best_seasonal


def _future_index(index: pd.Index, horizon: int) -> pd.Index:
    if isinstance(index, pd.PeriodIndex):
        return pd.period_range(start=index[-1] + 1, periods=horizon, freq=index.freq)
    if isinstance(index, pd.DatetimeIndex) and index.freq is not None:
        return pd.date_range(start=index[-1] + index.freq, periods=horizon, freq=index.freq)
    return pd.RangeIndex(len(index), len(index) + horizon)


def forecast_with_arima(
    series: pd.Series,
    horizon: int,
    config: Optional[ArimaConfig] = None,
    levels: Sequence[int] = (80, 95),
) -> ForecastResult:
    if horizon < 1:
        raise ValueError(f"Forecast horizon must be positive, got {horizon}")
    invalid = [level for level in levels if not 0 < level < 100]
    if invalid:
        raise ValueError(f"Prediction interval levels must lie in (0, 100): {invalid}")
    if config is None:
        config = ArimaConfig()

    observed = series.astype(float)
    order, seasonal_order = select_sarima_order(observed, config)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        fitted = _build_model(observed.to_numpy(), order, seasonal_order).fit(disp=False)

    forecast = fitted.get_forecast(steps=horizon)
    future = _future_index(observed.index, horizon)
    lower = pd.DataFrame(index=future)
    upper = pd.DataFrame(index=future)
    for level in levels:
        interval = np.asarray(forecast.conf_int(alpha=1 - level / 100.0))
        lower[level] = interval[:, 0]
        upper[level] = interval[:, 1]

    # Burn-in: the prior-only first step plus the differencing span.
    burn_in = max(1, order[1] + seasonal_order[1] * seasonal_order[3])
    in_sample = np.asarray(fitted.fittedvalues, dtype=float).copy()
    in_sample[:burn_in] = np.nan

    return ForecastResult(
        order=order,
        seasonal_order=seasonal_order,
        aic=float(fitted.aic),
        observed=observed,
        fitted=pd.Series(in_sample, index=observed.index, name="fitted"),
        mean=pd.Series(np.asarray(forecast.predicted_mean), index=future, name="forecast"),
        lower=lower,
        upper=upper,
    )
