import logging
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: Sequence[str] = ("Year", "Month", "Sales")

# Positions per year -> pandas period alias.
FREQUENCY_CODES = {12: "M", 4: "Q", 1: "Y"}


def parse_sales_amount(raw: Union[str, int, float]) -> float:
    """Parse one comma-grouped sales figure such as ``"1,234"``."""
    if isinstance(raw, (int, float, np.integer, np.floating)):
        return float(raw)
    text = str(raw).replace(",", "").strip()
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"Unparseable sales amount: {raw!r}") from None


def coerce_sales_column(values: pd.Series) -> pd.Series:
    cleaned = values.astype(str).str.replace(",", "", regex=False).str.strip()
    numeric = pd.to_numeric(cleaned, errors="coerce")
    invalid = numeric.isna()
    if invalid.any():
        offending = {label: values.loc[label] for label in values.index[invalid]}
        raise ValueError(f"Sales column contains unparseable entries: {offending}")
    return numeric.astype(float)


def load_sales_data(sales_path: Path) -> pd.DataFrame:
    df = pd.read_csv(sales_path, dtype={"Sales": str})
    missing = set(REQUIRED_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"Sales data missing required columns: {sorted(missing)}")

    records = df[list(REQUIRED_COLUMNS)].copy()
    records["Year"] = pd.to_numeric(records["Year"], errors="coerce")
    records["Month"] = pd.to_numeric(records["Month"], errors="coerce")
    records = records.dropna(subset=["Year", "Month"])
    if records.empty:
        raise ValueError("No rows left after dropping missing Year/Month values. Check the source data.")

    records["Year"] = records["Year"].astype(int)
    records["Month"] = records["Month"].astype(int)
    out_of_range = records[~records["Month"].between(1, 12)]
    if not out_of_range.empty:
        raise ValueError(f"Month values outside 1-12: {sorted(out_of_range['Month'].unique().tolist())}")

    records["Sales"] = coerce_sales_column(records["Sales"])
    records = records.sort_values(["Year", "Month"]).reset_index(drop=True)

    logger.info(
        "Loaded %d sales records from %s (%d-%02d to %d-%02d)",
        len(records),
        sales_path,
        records["Year"].iloc[0],
        records["Month"].iloc[0],
        records["Year"].iloc[-1],
        records["Month"].iloc[-1],
    )
    return records


def _check_frequency(frequency: int) -> str:
    if frequency not in FREQUENCY_CODES:
        raise ValueError(f"Unsupported frequency {frequency}; expected one of {sorted(FREQUENCY_CODES)}")
    return FREQUENCY_CODES[frequency]


def infer_frequency(series: pd.Series) -> int:
    """Number of observations per year implied by the series index."""
    index = series.index
    if isinstance(index, (pd.PeriodIndex, pd.DatetimeIndex)) and index.freq is not None:
        code = index.freqstr.upper()
    else:
        raise ValueError("Series index has no fixed frequency; build it with make_regular_series.")

    if code.startswith("M"):
        return 12
    if code.startswith("Q"):
        return 4
    if code.startswith(("Y", "A")):
        return 1
    raise ValueError(f"Unsupported series frequency: {index.freqstr}")


def period_at(start: Tuple[int, int], frequency: int, offset: int) -> Tuple[int, int]:
    """Return the (year, position) label ``offset`` steps after ``start``."""
    _check_frequency(frequency)
    year, position = start
    if not 1 <= position <= frequency:
        raise ValueError(f"Start position {position} is outside 1-{frequency}")
    step = 12 // frequency
    anchor = date(year, 1 + (position - 1) * step, 1) + relativedelta(months=offset * step)
    return anchor.year, (anchor.month - 1) // step + 1


def make_regular_series(
    values: Iterable[float],
    start: Tuple[int, int],
    frequency: int = 12,
    name: str = "Sales",
) -> pd.Series:
    code = _check_frequency(frequency)
    data = np.asarray(list(values), dtype=float)
    if data.size == 0:
        raise ValueError("Cannot build a time series from an empty sequence.")

    year, position = period_at(start, frequency, 0)
    first = pd.Period(pd.Timestamp(year, 1 + (position - 1) * (12 // frequency), 1), freq=code)
    index = pd.period_range(start=first, periods=data.size, freq=code)
    return pd.Series(data, index=index, name=name)


def _month_numbers(df: pd.DataFrame) -> np.ndarray:
    return df["Year"].to_numpy(dtype=int) * 12 + df["Month"].to_numpy(dtype=int) - 1


def sales_to_regular_series(df: pd.DataFrame) -> pd.Series:
    if df.empty:
        raise ValueError("Cannot build a time series from an empty record set.")

    steps = np.diff(_month_numbers(df))
    if (steps != 1).any():
        broken = [
            f"{df['Year'].iloc[i]}-{df['Month'].iloc[i]:02d} -> {df['Year'].iloc[i + 1]}-{df['Month'].iloc[i + 1]:02d}"
            for i in np.flatnonzero(steps != 1)
        ]
        raise ValueError(f"Monthly records are not contiguous: {broken}")

    start = (int(df["Year"].iloc[0]), int(df["Month"].iloc[0]))
    return make_regular_series(df["Sales"], start=start, frequency=12, name="Sales")


def drop_rows(df: pd.DataFrame, positions: Iterable[int]) -> pd.DataFrame:
    positions = list(positions)
    n_rows = len(df)
    invalid = [pos for pos in positions if not -n_rows <= pos < n_rows]
    if invalid:
        raise IndexError(f"Row positions out of range for {n_rows} rows: {invalid}")

    dropped = df.drop(index=df.index[positions])
    logger.info("Dropped %d rows at positions %s", n_rows - len(dropped), positions)
    return dropped.reset_index(drop=True)


def sales_to_irregular_series(df: pd.DataFrame) -> pd.Series:
    dates = pd.to_datetime(
        pd.DataFrame({"year": df["Year"], "month": df["Month"], "day": 1})
    )
    series = pd.Series(
        df["Sales"].to_numpy(dtype=float),
        index=pd.DatetimeIndex(dates, name="ds"),
        name="Sales",
    )
    if not (series.index.is_monotonic_increasing and series.index.is_unique):
        raise ValueError("Observation dates must be strictly increasing.")
    return series


def regularize_monthly(
    series: pd.Series,
    start: Optional[Union[str, pd.Timestamp]] = None,
    end: Optional[Union[str, pd.Timestamp]] = None,
) -> pd.Series:
    """Place ``series`` on a complete month-start grid, carrying the last observation forward."""
    if series.empty:
        raise ValueError("Cannot regularize an empty series.")
    if not isinstance(series.index, pd.DatetimeIndex):
        raise ValueError("Irregular series must be indexed by dates.")
    if not (series.index == series.index.to_period("M").to_timestamp()).all():
        raise ValueError("Observation dates must fall on the first day of a month.")

    start = pd.Timestamp(start) if start is not None else series.index[0]
    end = pd.Timestamp(end) if end is not None else series.index[-1]
    grid = pd.date_range(start=start, end=end, freq="MS", name=series.index.name)

    carried = series.reindex(series.index.union(grid)).ffill().reindex(grid)
    leading = int(carried.isna().sum())
    if leading:
        logger.warning("Dropping %d leading months with no prior observation", leading)
        carried = carried.dropna()

    filled = int((~carried.index.isin(series.index)).sum())
    logger.info("Filled %d missing months by carrying the last observation forward", filled)
    return carried.asfreq("MS")


def to_period_series(series: pd.Series) -> pd.Series:
    return series.to_period("M")
