"""Monthly sales time-series walkthrough: decomposition, ARIMA forecasting, gap filling, anomalies and stationarity tests."""

from .anomaly import detect_anomalies
from .data import (
    load_sales_data,
    make_regular_series,
    parse_sales_amount,
    regularize_monthly,
    sales_to_irregular_series,
    sales_to_regular_series,
)
from .decomposition import DecompositionResult, decompose_series
from .models import ArimaConfig, ForecastResult, forecast_with_arima
from .pipeline import WalkthroughConfig, WalkthroughResult, run_walkthrough
from .stationarity import run_stationarity_tests

__all__ = [
    "ArimaConfig",
    "DecompositionResult",
    "ForecastResult",
    "WalkthroughConfig",
    "WalkthroughResult",
    "decompose_series",
    "detect_anomalies",
    "forecast_with_arima",
    "load_sales_data",
    "make_regular_series",
    "parse_sales_amount",
    "regularize_monthly",
    "run_stationarity_tests",
    "run_walkthrough",
    "sales_to_irregular_series",
    "sales_to_regular_series",
]

__version__ = "0.1.0"
