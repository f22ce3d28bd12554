from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import pandas as pd
from statsmodels.stats.diagnostic import acorr_ljungbox
from statsmodels.tools.sm_exceptions import InterpolationWarning
from statsmodels.tsa.stattools import adfuller, kpss

logger = logging.getLogger(__name__)


@dataclass
class HypothesisTestResult:
    test: str
    statistic: float
    p_value: float
    lags: Optional[int]
    null_hypothesis: str
    critical_values: Dict[str, float] = field(default_factory=dict)

    def rejects(self, alpha: float = 0.05) -> bool:
        return self.p_value < alpha


def _clean(series: pd.Series) -> pd.Series:
    values = pd.Series(series, dtype=float).dropna()
    if values.empty:
        raise ValueError("Cannot run a hypothesis test on an empty series.")
    return values


def _portmanteau(series: pd.Series, lags: int) -> pd.DataFrame:
    if lags < 1:
        raise ValueError(f"Number of lags must be positive, got {lags}")
    return acorr_ljungbox(_clean(series), lags=[lags], boxpierce=True)


def box_pierce_test(series: pd.Series, lags: int = 1) -> HypothesisTestResult:
    table = _portmanteau(series, lags)
    return HypothesisTestResult(
        test="Box-Pierce",
        statistic=float(table["bp_stat"].iloc[0]),
        p_value=float(table["bp_pvalue"].iloc[0]),
        lags=lags,
        null_hypothesis="no autocorrelation",
    )


def ljung_box_test(series: pd.Series, lags: int = 1) -> HypothesisTestResult:
    table = _portmanteau(series, lags)
    return HypothesisTestResult(
        test="Ljung-Box",
        statistic=float(table["lb_stat"].iloc[0]),
        p_value=float(table["lb_pvalue"].iloc[0]),
        lags=lags,
        null_hypothesis="no autocorrelation",
    )


def adf_test(series: pd.Series, regression: str = "c", autolag: Optional[str] = "AIC") -> HypothesisTestResult:
    statistic, p_value, used_lag, _, critical_values, *_ = adfuller(
        _clean(series), regression=regression, autolag=autolag
    )
    return HypothesisTestResult(
        test="Augmented Dickey-Fuller",
        statistic=float(statistic),
        p_value=float(p_value),
        lags=int(used_lag),
        null_hypothesis="unit root (non-stationary)",
        critical_values={key: float(value) for key, value in critical_values.items()},
    )


def kpss_test(series: pd.Series, regression: str = "c", nlags: Union[str, int] = "auto") -> HypothesisTestResult:
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", InterpolationWarning)
        statistic, p_value, used_lag, critical_values = kpss(_clean(series), regression=regression, nlags=nlags)
    for warning in caught:
        if issubclass(warning.category, InterpolationWarning):
            logger.info("KPSS p-value is a table bound: %s", warning.message)
        else:
            warnings.warn_explicit(warning.message, warning.category, warning.filename, warning.lineno)

    return HypothesisTestResult(
        test="KPSS",
        statistic=float(statistic),
        p_value=float(p_value),
        lags=int(used_lag),
        null_hypothesis="level stationary" if regression == "c" else "trend stationary",
        critical_values={key: float(value) for key, value in critical_values.items()},
    )


def run_stationarity_tests(series: pd.Series, lags: int = 1) -> pd.DataFrame:
    results = [
        box_pierce_test(series, lags),
        ljung_box_test(series, lags),
        adf_test(series),
        kpss_test(series),
    ]
    for result in results:
        logger.info("%s: statistic=%.4f, p-value=%.4f", result.test, result.statistic, result.p_value)

    return pd.DataFrame(
        {
            "test": [result.test for result in results],
            "statistic": [result.statistic for result in results],
            "p_value": [result.p_value for result in results],
            "lags": [result.lags for result in results],
            "null_hypothesis": [result.null_hypothesis for result in results],
        }
    )
