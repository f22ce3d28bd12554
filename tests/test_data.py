import numpy as np
import pandas as pd
import pytest

from sales_timeseries.data import (
    coerce_sales_column,
    drop_rows,
    infer_frequency,
    load_sales_data,
    make_regular_series,
    parse_sales_amount,
    period_at,
    regularize_monthly,
    sales_to_irregular_series,
    sales_to_regular_series,
    to_period_series,
)


def make_records(n_months=36, start_year=2010):
    months = np.arange(n_months)
    return pd.DataFrame(
        {
            "Year": start_year + months // 12,
            "Month": 1 + months % 12,
            "Sales": 1000.0 + 10.0 * months,
        }
    )


def write_sales_csv(path, records):
    raw = records.copy()
    raw["Sales"] = raw["Sales"].map(lambda value: f"{value:,.0f}")
    raw.to_csv(path, index=False)
    return path


def test_parse_sales_amount_strips_thousands_separator():
    assert parse_sales_amount("1,234") == 1234.0
    assert parse_sales_amount(" 12,345.50 ") == 12345.5
    assert parse_sales_amount(42) == 42.0


def test_parse_sales_amount_rejects_text():
    with pytest.raises(ValueError, match="Unparseable"):
        parse_sales_amount("n/a")


def test_coerce_sales_column_reports_bad_rows():
    values = pd.Series(["1,000", "oops", "2,500"])
    with pytest.raises(ValueError, match="oops"):
        coerce_sales_column(values)


def test_load_sales_data_parses_and_sorts(tmp_path):
    records = make_records(24)
    shuffled = records.sample(frac=1.0, random_state=0)
    path = write_sales_csv(tmp_path / "sales.csv", shuffled)

    loaded = load_sales_data(path)

    assert loaded.columns.tolist() == ["Year", "Month", "Sales"]
    assert len(loaded) == 24
    assert loaded["Year"].iloc[0] == 2010 and loaded["Month"].iloc[0] == 1
    assert np.allclose(loaded["Sales"].to_numpy(), records["Sales"].to_numpy())


def test_load_sales_data_requires_columns(tmp_path):
    path = tmp_path / "bad.csv"
    pd.DataFrame({"Year": [2010], "Sales": ["1,000"]}).to_csv(path, index=False)
    with pytest.raises(ValueError, match="Month"):
        load_sales_data(path)


def test_period_at_monthly_offsets():
    for k in range(40):
        assert period_at((2010, 1), 12, k) == (2010 + k // 12, 1 + k % 12)


def test_period_at_quarterly_and_annual():
    assert period_at((2010, 3), 4, 2) == (2011, 1)
    assert period_at((2010, 1), 1, 5) == (2015, 1)


def test_make_regular_series_index_matches_calendar():
    series = make_regular_series(np.arange(30.0), start=(2010, 1), frequency=12)

    assert series.index[0] == pd.Period("2010-01", freq="M")
    for k, period in enumerate(series.index):
        assert (period.year, period.month) == period_at((2010, 1), 12, k)
    assert infer_frequency(series) == 12


def test_make_regular_series_rejects_unknown_frequency():
    with pytest.raises(ValueError, match="frequency"):
        make_regular_series([1.0, 2.0], start=(2010, 1), frequency=7)


def test_sales_to_regular_series_rejects_gaps():
    records = drop_rows(make_records(24), [5])
    with pytest.raises(ValueError, match="not contiguous"):
        sales_to_regular_series(records)


def test_drop_rows_out_of_range():
    with pytest.raises(IndexError):
        drop_rows(make_records(12), [12])


def test_regularize_carries_last_observation_forward():
    records = make_records(36)
    original = sales_to_regular_series(records)
    irregular = sales_to_irregular_series(drop_rows(records, [5, 17]))
    assert len(irregular) == 34

    regularized = regularize_monthly(irregular)

    assert len(regularized) == 36
    assert regularized.index.freqstr == "MS"
    assert regularized.iloc[5] == original.iloc[4]
    assert regularized.iloc[17] == original.iloc[16]
    untouched = [k for k in range(36) if k not in (5, 17)]
    assert np.allclose(regularized.iloc[untouched].to_numpy(), original.iloc[untouched].to_numpy())

    as_periods = to_period_series(regularized)
    assert as_periods.index[0] == pd.Period("2010-01", freq="M")
    assert infer_frequency(as_periods) == 12


def test_regularize_drops_leading_gap():
    irregular = sales_to_irregular_series(make_records(12))
    regularized = regularize_monthly(irregular, start="2009-11-01")

    assert regularized.index[0] == pd.Timestamp("2010-01-01")
    assert len(regularized) == 12
