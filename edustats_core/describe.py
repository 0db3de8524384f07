"""
Descriptive Statistics Module
=============================

Central tendency, dispersion and shape statistics for score variables,
overall and by group.
"""

import pandas as pd
import numpy as np

from . import config


DESCRIPTIVE_COLUMNS = [
    'n', 'n_missing', 'mean', 'median', 'mode', 'n_modes', 'min', 'max',
    'range', 'variance', 'std', 'q1', 'q3', 'iqr', 'skewness', 'kurtosis',
]


def describe_series(values) -> dict:
    """
    Compute descriptive statistics for one numeric variable.

    Missing values are excluded; any other non-numeric entry raises
    ValueError. Variance and standard deviation are sample
    statistics (ddof=1). Quartiles use linear interpolation. Skewness and
    kurtosis are the bias-corrected G1 and excess G2 estimators; they are NaN
    below 3 and 4 observations respectively. When several values tie for most
    frequent, mode is the smallest of them and n_modes says how many tied.

    Parameters:
        values: Series, array or list of numbers

    Returns:
        Dictionary keyed by DESCRIPTIVE_COLUMNS
    """
    raw = pd.Series(values)
    s = pd.to_numeric(raw, errors='coerce')
    invalid = raw[s.isna() & raw.notna()]
    if len(invalid):
        raise ValueError(f"Non-numeric values: {invalid.unique().tolist()[:5]}")
    n_missing = int(s.isna().sum())
    s = s.dropna()
    n = len(s)

    if n == 0:
        result = {key: np.nan for key in DESCRIPTIVE_COLUMNS}
        result.update({'n': 0, 'n_missing': n_missing, 'n_modes': 0})
        return result

    modes = s.mode()
    q1, q3 = s.quantile([0.25, 0.75])

    return {
        'n': n,
        'n_missing': n_missing,
        'mean': s.mean(),
        'median': s.median(),
        'mode': modes.iloc[0],
        'n_modes': len(modes),
        'min': s.min(),
        'max': s.max(),
        'range': s.max() - s.min(),
        'variance': s.var(ddof=1),
        'std': s.std(ddof=1),
        'q1': q1,
        'q3': q3,
        'iqr': q3 - q1,
        'skewness': s.skew(),
        'kurtosis': s.kurt(),
    }


def describe_frame(df: pd.DataFrame, columns: list[str] = None) -> pd.DataFrame:
    """
    Descriptive statistics for several columns.

    Parameters:
        df: Input DataFrame
        columns: Columns to describe. Defaults to config.SCORE_COLUMNS present in df

    Returns:
        DataFrame with one row per column
    """
    if columns is None:
        columns = [c for c in config.SCORE_COLUMNS if c in df.columns]

    rows = {col: describe_series(df[col]) for col in columns}
    desc = pd.DataFrame.from_dict(rows, orient='index', columns=DESCRIPTIVE_COLUMNS)
    desc.index.name = 'variable'
    return desc


def describe_by_group(df: pd.DataFrame, value_col: str, group_col: str) -> pd.DataFrame:
    """
    Descriptive statistics of value_col within each level of group_col.

    Rows with a missing group are left out.
    """
    rows = {
        name: describe_series(group[value_col])
        for name, group in df.groupby(group_col, observed=True)
    }
    desc = pd.DataFrame.from_dict(rows, orient='index', columns=DESCRIPTIVE_COLUMNS)
    desc.index.name = group_col
    return desc


def frequency_table(series: pd.Series) -> pd.DataFrame:
    """
    Counts and percentages of a categorical variable.

    Missing values are counted as their own row.
    """
    counts = series.value_counts(dropna=False, sort=False)
    table = pd.DataFrame({
        'count': counts.astype(int),
        'percent': (counts / len(series) * 100).round(2) if len(series) else counts * np.nan,
    })
    table.index.name = series.name
    return table


def print_descriptives(desc_df: pd.DataFrame) -> None:
    """Print descriptive statistics in readable format."""
    print("\n" + "-" * 60)
    print("DESCRIPTIVE STATISTICS")
    print("-" * 60)

    for name, row in desc_df.iterrows():
        print(f"\n{name} (n={int(row['n'])}, missing={int(row['n_missing'])}):")
        print(f"  Mean: {row['mean']:.2f}  Median: {row['median']:.2f}  Mode: {row['mode']:.2f}")
        print(f"  Range: {row['range']:.2f} ({row['min']:.2f} to {row['max']:.2f})")
        print(f"  SD: {row['std']:.2f}  Variance: {row['variance']:.2f}  IQR: {row['iqr']:.2f}")
        print(f"  Skewness: {row['skewness']:.3f}  Kurtosis: {row['kurtosis']:.3f}")
