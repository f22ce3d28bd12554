from typing import Dict

import numpy as np
import pandas as pd


def wmape(actual: pd.Series | np.ndarray, predicted: pd.Series | np.ndarray) -> float:
    actual_arr = np.asarray(actual, dtype=float)
    predicted_arr = np.asarray(predicted, dtype=float)
    denom = np.abs(actual_arr).sum()
    if denom == 0:
        return np.nan
    return float(np.abs(actual_arr - predicted_arr).sum() / denom)


def mase(
    actual: pd.Series | np.ndarray,
    predicted: pd.Series | np.ndarray,
    insample: pd.Series | np.ndarray,
    season_length: int,
) -> float:
    insample_arr = np.asarray(insample, dtype=float)
    if season_length < 1:
        season_length = 1
    if insample_arr.size <= season_length:
        return np.nan
    denom = np.mean(np.abs(insample_arr[season_length:] - insample_arr[:-season_length]))
    if denom == 0:
        return np.nan
    actual_arr = np.asarray(actual, dtype=float)
    predicted_arr = np.asarray(predicted, dtype=float)
    mae = np.mean(np.abs(actual_arr - predicted_arr))
    return float(mae / denom)


def accuracy_summary(
    actual: pd.Series | np.ndarray,
    fitted: pd.Series | np.ndarray,
    season_length: int = 12,
) -> Dict[str, float]:
    """In-sample error measures of a fitted model (ME, RMSE, MAE, MAPE, MASE, WMAPE).

    Positions where either value is missing (e.g. model burn-in) are skipped.
    """
    actual_arr = np.asarray(actual, dtype=float)
    fitted_arr = np.asarray(fitted, dtype=float)
    paired = ~(np.isnan(actual_arr) | np.isnan(fitted_arr))
    actual_arr = actual_arr[paired]
    fitted_arr = fitted_arr[paired]
    if actual_arr.size == 0:
        raise ValueError("No overlapping actual and fitted values to score.")
    errors = actual_arr - fitted_arr

    nonzero = actual_arr != 0
    mape = float(np.mean(np.abs(errors[nonzero] / actual_arr[nonzero])) * 100) if nonzero.any() else np.nan

    return {
        "ME": float(np.mean(errors)),
        "RMSE": float(np.sqrt(np.mean(errors**2))),
        "MAE": float(np.mean(np.abs(errors))),
        "MAPE": mape,
        "MASE": mase(actual_arr, fitted_arr, actual_arr, season_length),
        "WMAPE": wmape(actual_arr, fitted_arr),
    }
