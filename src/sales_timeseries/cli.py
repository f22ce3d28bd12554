from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

import pandas as pd

from .anomaly import DIRECTIONS
from .decomposition import METHODS, MODELS
from .models import ArimaConfig, ForecastResult
from .pipeline import WalkthroughConfig, WalkthroughResult, run_walkthrough


def parse_positions(raw: Optional[str]) -> Tuple[int, ...]:
    if raw is None:
        return ()
    return tuple(int(token.strip()) for token in raw.split(",") if token.strip())


def describe_model(result: ForecastResult) -> str:
    p, d, q = result.order
    P, D, Q, s = result.seasonal_order
    return f"ARIMA({p},{d},{q})({P},{D},{Q})[{s}]  AIC={result.aic:.2f}"


def summarize_accuracy(accuracy: Dict[str, Dict[str, float]]) -> str:
    table = pd.DataFrame(accuracy).T
    return table.to_string(float_format=lambda x: f"{x:.4f}")


def summarize_anomalies(anomalies: pd.DataFrame) -> str:
    if anomalies.empty:
        return "No anomalies detected."
    return anomalies.to_string(index=False, float_format=lambda x: f"{x:.2f}")


def summarize_walkthrough(result: WalkthroughResult) -> str:
    lines: list[str] = []
    lines.append(f"Loaded {len(result.records)} monthly records.")
    lines.append("\nSelected models:")
    lines.append(f"- original:    {describe_model(result.forecast)}")
    lines.append(f"- regularized: {describe_model(result.reforecast)}")

    lines.append("\nIn-sample accuracy (lower is better):")
    lines.append(summarize_accuracy(result.accuracy))

    lines.append("\nForecast (first 12 periods):")
    lines.append(result.forecast.to_frame().head(12).to_string(float_format=lambda x: f"{x:.2f}"))

    carried = result.regularized[~result.regularized.index.isin(result.irregular.index)]
    lines.append(f"\nMonths filled by carrying the last observation forward: {len(carried)}")
    if not carried.empty:
        lines.append(carried.to_string(float_format=lambda x: f"{x:.2f}"))

    lines.append("\nRegularized forecast (first 12 periods):")
    lines.append(result.reforecast.to_frame().head(12).to_string(float_format=lambda x: f"{x:.2f}"))

    lines.append("\nAnomalies:")
    lines.append(summarize_anomalies(result.anomalies))

    lines.append("\nWhite-noise and stationarity tests:")
    lines.append(result.stationarity.to_string(index=False, float_format=lambda x: f"{x:.4f}"))
    return "\n".join(lines)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Monthly sales walkthrough: decomposition, ARIMA forecasting, gap filling, anomalies, and stationarity tests.",
    )
    parser.add_argument(
        "--sales-path",
        type=Path,
        required=True,
        help="Path to the input sales CSV (columns: Year, Month, Sales).",
    )
    parser.add_argument(
        "--horizon",
        type=int,
        default=24,
        help="Number of future months to forecast (default: 24).",
    )
    parser.add_argument(
        "--drop-rows",
        type=str,
        default="5,17",
        help="Comma-separated row positions removed before gap filling (default: 5,17).",
    )
    parser.add_argument(
        "--decomposition",
        choices=METHODS,
        default="stl",
        help="Decomposition method (default: stl).",
    )
    parser.add_argument(
        "--model",
        choices=MODELS,
        default="additive",
        help="Decomposition model (default: additive).",
    )
    parser.add_argument(
        "--max-anoms",
        type=float,
        default=0.02,
        help="Maximum fraction of observations reported as anomalies (default: 0.02).",
    )
    parser.add_argument(
        "--direction",
        choices=DIRECTIONS,
        default="pos",
        help="Anomaly direction (default: pos).",
    )
    parser.add_argument(
        "--test-lags",
        type=int,
        default=1,
        help="Lag used by the Box-Pierce and Ljung-Box tests (default: 1).",
    )
    parser.add_argument(
        "--max-p",
        type=int,
        default=2,
        help="Largest non-seasonal AR order searched (default: 2).",
    )
    parser.add_argument(
        "--max-d",
        type=int,
        default=1,
        help="Largest non-seasonal differencing order searched (default: 1).",
    )
    parser.add_argument(
        "--max-q",
        type=int,
        default=2,
        help="Largest non-seasonal MA order searched (default: 2).",
    )
    parser.add_argument(
        "--no-seasonal",
        action="store_true",
        help="Search non-seasonal ARIMA models only.",
    )
    parser.add_argument(
        "--report-path",
        type=Path,
        help="Optional path to write all plots as a multi-page PDF.",
    )
    parser.add_argument(
        "--forecast-output",
        type=Path,
        help="Optional path to write the forecast of the original series as CSV.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (default: INFO).",
    )
    return parser


def main() -> None:
    parser = build_argument_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = WalkthroughConfig(
        horizon=args.horizon,
        drop_positions=parse_positions(args.drop_rows),
        decomposition_method=args.decomposition,
        decomposition_model=args.model,
        max_anoms=args.max_anoms,
        anomaly_direction=args.direction,
        test_lags=args.test_lags,
        arima=ArimaConfig(
            max_p=args.max_p,
            max_d=args.max_d,
            max_q=args.max_q,
            seasonal=not args.no_seasonal,
        ),
    )
    result = run_walkthrough(args.sales_path, config, report_path=args.report_path)

    print(summarize_walkthrough(result))

    if result.report_path:
        print(f"\nSaved plots to {result.report_path}")

    if args.forecast_output:
        result.forecast.to_frame().to_csv(args.forecast_output, index_label="period")
        print(f"Saved forecast to {args.forecast_output}")


if __name__ == "__main__":
    main()
