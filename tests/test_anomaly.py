import numpy as np
import pandas as pd
import pytest

from sales_timeseries.anomaly import detect_anomalies


def make_monthly_series(n=72, spikes=None):
    t = np.arange(n)
    # Bounded deterministic wiggle instead of random noise.
    values = 100.0 + 10.0 * np.sin(2 * np.pi * t / 12) + 0.3 * np.sin(2.3 * t)
    for position, size in (spikes or {}).items():
        values[position] += size
    index = pd.date_range("2012-01-01", periods=n, freq="MS")
    return pd.Series(values, index=index, name="Sales")


def test_positive_direction_reports_only_spikes():
    series = make_monthly_series(spikes={30: 40.0, 50: -40.0})
    anomalies = detect_anomalies(series, max_anoms=0.1, direction="pos")

    assert anomalies.columns.tolist() == ["timestamp", "anoms"]
    assert anomalies["timestamp"].tolist() == [series.index[30]]
    assert np.isclose(anomalies["anoms"].iloc[0], series.iloc[30])


def test_both_directions_report_spike_and_dip():
    series = make_monthly_series(spikes={30: 40.0, 50: -40.0})
    anomalies = detect_anomalies(series, max_anoms=0.1, direction="both")

    assert anomalies["timestamp"].tolist() == [series.index[30], series.index[50]]


def test_negative_direction_reports_only_dips():
    series = make_monthly_series(spikes={30: 40.0, 50: -40.0})
    anomalies = detect_anomalies(series, max_anoms=0.1, direction="neg")

    assert anomalies["timestamp"].tolist() == [series.index[50]]


def test_clean_series_returns_empty_frame():
    anomalies = detect_anomalies(make_monthly_series(), max_anoms=0.1, direction="pos")

    assert anomalies.empty
    assert anomalies.columns.tolist() == ["timestamp", "anoms"]


def test_small_max_anoms_still_allows_one_anomaly():
    # 48 * 0.02 rounds down to zero candidates; the cap is raised to one.
    series = make_monthly_series(n=48, spikes={20: 40.0})
    anomalies = detect_anomalies(series, max_anoms=0.02, direction="pos")

    assert anomalies["timestamp"].tolist() == [series.index[20]]


def test_small_max_anoms_on_clean_series_is_empty():
    anomalies = detect_anomalies(make_monthly_series(n=48), max_anoms=0.02, direction="pos")

    assert anomalies.empty


def test_max_anoms_range_checked():
    with pytest.raises(ValueError, match="max_anoms"):
        detect_anomalies(make_monthly_series(), max_anoms=0.5)
    with pytest.raises(ValueError, match="max_anoms"):
        detect_anomalies(make_monthly_series(), max_anoms=0.0)


def test_rejects_unknown_direction_and_short_series():
    with pytest.raises(ValueError, match="direction"):
        detect_anomalies(make_monthly_series(), direction="up")
    with pytest.raises(ValueError, match="two full periods"):
        detect_anomalies(make_monthly_series(n=20), max_anoms=0.2)
