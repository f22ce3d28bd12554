from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd
from matplotlib.figure import Figure

from .anomaly import check_anomaly_settings, detect_anomalies
from .data import (
    drop_rows,
    load_sales_data,
    regularize_monthly,
    sales_to_irregular_series,
    sales_to_regular_series,
    to_period_series,
)
from .decomposition import DecompositionResult, decompose_series
from .metrics import accuracy_summary
from .models import ArimaConfig, ForecastResult, forecast_with_arima
from .plotting import plot_anomalies, plot_decomposition, plot_forecast, plot_series, save_report
from .stationarity import run_stationarity_tests

logger = logging.getLogger(__name__)


@dataclass
class WalkthroughConfig:
    horizon: int = 24
    drop_positions: Tuple[int, ...] = (5, 17)
    decomposition_method: str = "stl"
    decomposition_model: str = "additive"
    max_anoms: float = 0.02
    anomaly_direction: str = "pos"
    test_lags: int = 1
    arima: ArimaConfig = field(default_factory=ArimaConfig)


@dataclass
class WalkthroughResult:
    records: pd.DataFrame
    series: pd.Series
    decomposition: DecompositionResult
    forecast: ForecastResult
    gapped_records: pd.DataFrame
    irregular: pd.Series
    regularized: pd.Series
    redecomposition: DecompositionResult
    reforecast: ForecastResult
    anomalies: pd.DataFrame
    stationarity: pd.DataFrame
    accuracy: Dict[str, Dict[str, float]]
    report_path: Optional[Path] = None


def run_walkthrough(
    sales_path: Path,
    config: Optional[WalkthroughConfig] = None,
    report_path: Optional[Path] = None,
) -> WalkthroughResult:
    if config is None:
        config = WalkthroughConfig()
    check_anomaly_settings(config.max_anoms, config.anomaly_direction)
    season_length = config.arima.seasonal_period
    figures: List[Figure] = []

    logger.info("Step 1: loading sales records from %s", sales_path)
    records = load_sales_data(sales_path)

    logger.info("Step 2: building the regular monthly series")
    series = sales_to_regular_series(records)

    logger.info("Step 3: decomposing the regular series")
    decomposition = decompose_series(
        series, method=config.decomposition_method, model=config.decomposition_model
    )

    logger.info("Step 4: forecasting %d months ahead", config.horizon)
    forecast = forecast_with_arima(series, config.horizon, config.arima)

    logger.info("Step 5: removing rows at positions %s", list(config.drop_positions))
    gapped_records = drop_rows(records, config.drop_positions)

    logger.info("Step 6: building the irregular date-indexed series")
    irregular = sales_to_irregular_series(gapped_records)

    logger.info("Step 7: carrying observations forward onto the full monthly grid")
    expected = sales_to_irregular_series(records).index
    regularized = regularize_monthly(irregular, start=expected[0], end=expected[-1])
    regular_again = to_period_series(regularized)

    logger.info("Step 8: decomposing the regularized series")
    redecomposition = decompose_series(
        regular_again, method=config.decomposition_method, model=config.decomposition_model
    )

    logger.info("Step 9: forecasting the regularized series")
    reforecast = forecast_with_arima(regular_again, config.horizon, config.arima)

    logger.info("Step 10: checking for anomalies")
    anomalies = detect_anomalies(
        regularized, max_anoms=config.max_anoms, direction=config.anomaly_direction
    )

    logger.info("Step 11: running white-noise and stationarity tests")
    stationarity = run_stationarity_tests(regular_again, lags=config.test_lags)

    accuracy = {
        "original": accuracy_summary(series, forecast.fitted, season_length),
        "regularized": accuracy_summary(regular_again, reforecast.fitted, season_length),
    }

    if report_path is not None:
        figures.extend(
            [
                plot_series(series, "Monthly sales"),
                plot_decomposition(decomposition, "Monthly sales decomposition"),
                plot_forecast(forecast, "Monthly sales forecast"),
                plot_series(regularized, "Monthly sales with gaps carried forward"),
                plot_decomposition(redecomposition, "Regularized sales decomposition"),
                plot_forecast(reforecast, "Regularized sales forecast"),
                plot_anomalies(regularized, anomalies, "Anomalies in regularized sales"),
            ]
        )
        report_path = save_report(figures, report_path)

    return WalkthroughResult(
        records=records,
        series=series,
        decomposition=decomposition,
        forecast=forecast,
        gapped_records=gapped_records,
        irregular=irregular,
        regularized=regularized,
        redecomposition=redecomposition,
        reforecast=reforecast,
        anomalies=anomalies,
        stationarity=stationarity,
        accuracy=accuracy,
        report_path=report_path,
    )
