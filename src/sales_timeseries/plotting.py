from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure

from .decomposition import DecompositionResult
from .models import ForecastResult

logger = logging.getLogger(__name__)


def _dates(index: pd.Index) -> pd.Index:
    if isinstance(index, pd.PeriodIndex):
        return index.to_timestamp()
    return index


def plot_series(series: pd.Series, title: str) -> Figure:
    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(_dates(series.index), series.to_numpy(), marker="o", linestyle="-", color="skyblue", label=series.name)
    ax.set_title(title)
    ax.set_xlabel("Date")
    ax.set_ylabel("Sales")
    ax.legend()
    ax.grid(True)
    fig.tight_layout()
    return fig


def plot_decomposition(result: DecompositionResult, title: str) -> Figure:
    frame = result.to_frame()
    dates = _dates(frame.index)
    fig, axes = plt.subplots(4, 1, figsize=(10, 9), sharex=True)
    for ax, column in zip(axes, frame.columns):
        if column == "remainder":
            baseline = 1.0 if result.model == "multiplicative" else 0.0
            ax.vlines(dates, baseline, frame[column], color="gray")
            ax.axhline(baseline, color="black", linewidth=0.8)
        else:
            ax.plot(dates, frame[column], color="steelblue")
        ax.set_ylabel(column)
        ax.grid(True)
    axes[0].set_title(f"{title} ({result.method}, {result.model})")
    axes[-1].set_xlabel("Date")
    fig.tight_layout()
    return fig


def plot_forecast(result: ForecastResult, title: str) -> Figure:
    history_dates = _dates(result.observed.index)
    future_dates = _dates(result.mean.index)

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(history_dates, result.observed, color="black", label="Observed")
    ax.plot(history_dates, result.fitted, color="red", linestyle="--", linewidth=0.8, label="Fitted")
    # Widest interval first so narrower bands stay visible.
    for level, alpha in zip(sorted(result.levels, reverse=True), (0.2, 0.35, 0.5)):
        ax.fill_between(
            future_dates,
            result.lower[level],
            result.upper[level],
            color="blue",
            alpha=alpha,
            label=f"{level}% interval",
        )
    ax.plot(future_dates, result.mean, color="blue", label="Forecast")

    order = ",".join(str(part) for part in result.order)
    seasonal = ",".join(str(part) for part in result.seasonal_order[:3])
    ax.set_title(f"{title}: ARIMA({order})({seasonal})[{result.seasonal_order[3]}]")
    ax.set_xlabel("Date")
    ax.set_ylabel("Sales")
    ax.legend()
    ax.grid(True)
    fig.tight_layout()
    return fig


def plot_anomalies(series: pd.Series, anomalies: pd.DataFrame, title: str) -> Figure:
    fig = plot_series(series, title)
    ax = fig.axes[0]
    if not anomalies.empty:
        ax.scatter(
            _dates(pd.Index(anomalies["timestamp"])),
            anomalies["anoms"],
            color="red",
            zorder=3,
            label="Anomaly",
        )
        ax.legend()
    else:
        ax.text(0.5, 0.95, "No anomalies detected", transform=ax.transAxes, ha="center", va="top")
    return fig


def save_report(figures: Iterable[Figure], report_path: Path) -> Path:
    report_path = Path(report_path)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    pages = 0
    with PdfPages(report_path) as pdf:
        for fig in figures:
            pdf.savefig(fig)
            plt.close(fig)
            pages += 1
    logger.info("Saved %d-page report to %s", pages, report_path)
    return report_path
