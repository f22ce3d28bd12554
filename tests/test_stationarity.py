import warnings

import numpy as np
import pandas as pd
import pytest
from statsmodels.tools.sm_exceptions import InterpolationWarning

from sales_timeseries import stationarity
from sales_timeseries.stationarity import (
    HypothesisTestResult,
    adf_test,
    box_pierce_test,
    kpss_test,
    ljung_box_test,
    run_stationarity_tests,
)


def white_noise(seed, n=240):
    return pd.Series(np.random.default_rng(seed).normal(size=n))


def drifting_walk(seed=11, n=240):
    steps = 1.0 + np.random.default_rng(seed).normal(size=n)
    return pd.Series(np.cumsum(steps))


def test_adf_separates_noise_from_random_walk():
    assert adf_test(white_noise(0)).p_value < 0.05
    assert adf_test(drifting_walk()).p_value > 0.05


def test_kpss_rejects_random_walk():
    result = kpss_test(drifting_walk())
    assert result.p_value < 0.05
    assert result.rejects()


def test_kpss_accepts_white_noise():
    # Each draw falsely rejects about 5% of the time; require a clear majority.
    accepted = [kpss_test(white_noise(seed)).p_value > 0.05 for seed in range(5)]
    assert sum(accepted) >= 3


def test_portmanteau_tests_on_noise_and_walk():
    walk = drifting_walk()
    assert box_pierce_test(walk).p_value < 0.05
    assert ljung_box_test(walk, lags=5).p_value < 0.05

    accepted = [ljung_box_test(white_noise(seed)).p_value > 0.05 for seed in range(5)]
    assert sum(accepted) >= 3


def test_ljung_box_statistic_exceeds_box_pierce():
    series = white_noise(1)
    assert ljung_box_test(series, lags=3).statistic >= box_pierce_test(series, lags=3).statistic


def test_run_stationarity_tests_table():
    table = run_stationarity_tests(white_noise(2), lags=2)

    assert table["test"].tolist() == ["Box-Pierce", "Ljung-Box", "Augmented Dickey-Fuller", "KPSS"]
    assert table.columns.tolist() == ["test", "statistic", "p_value", "lags", "null_hypothesis"]
    assert table["p_value"].between(0, 1).all()


def test_rejects_bad_lags():
    with pytest.raises(ValueError, match="lags"):
        box_pierce_test(white_noise(0), lags=0)


def test_kpss_logs_table_bound_and_reemits_other_warnings(monkeypatch, caplog):
    def noisy_kpss(values, regression, nlags):
        warnings.warn("p-value is greater than the indicated p-value", InterpolationWarning)
        warnings.warn("something else went sideways", RuntimeWarning)
        return 0.1, 0.1, 3, {"10%": 0.347, "5%": 0.463, "2.5%": 0.574, "1%": 0.739}

    monkeypatch.setattr(stationarity, "kpss", noisy_kpss)

    with caplog.at_level("INFO", logger="sales_timeseries.stationarity"):
        with pytest.warns(RuntimeWarning, match="sideways"):
            result = stationarity.kpss_test(white_noise(0))

    assert "table bound" in caplog.text
    assert isinstance(result, HypothesisTestResult)
    assert result.p_value == 0.1 and result.lags == 3


def test_hypothesis_test_result_rejects():
    result = HypothesisTestResult(test="ADF", statistic=-4.0, p_value=0.01, lags=2, null_hypothesis="unit root")
    assert result.rejects()
    assert not result.rejects(alpha=0.005)
