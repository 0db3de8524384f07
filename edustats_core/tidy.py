"""
Data Tidying Module
===================

Missing-data handling, threshold recoding, reshaping between wide and long
formats, and left joins for student-record tables.
"""

import pandas as pd
import numpy as np
from sklearn.impute import SimpleImputer
from sklearn.preprocessing import StandardScaler
from typing import Union

from . import config


# =============================================================================
# MISSING DATA
# =============================================================================
def missing_summary(df: pd.DataFrame) -> pd.DataFrame:
    """
    Count missing values per column.

    Parameters:
        df: Input DataFrame

    Returns:
        DataFrame indexed by column with n_missing and pct_missing
    """
    n_missing = df.isna().sum()
    pct = (n_missing / len(df) * 100) if len(df) else n_missing * np.nan
    return pd.DataFrame({
        'n_missing': n_missing.astype(int),
        'pct_missing': pct.round(2),
    })


def drop_missing(df: pd.DataFrame, subset: list[str] = None) -> pd.DataFrame:
    """
    Listwise deletion of rows with any missing value in subset.

    Parameters:
        df: Input DataFrame
        subset: Columns to consider. Defaults to all columns

    Returns:
        DataFrame with incomplete rows removed
    """
    df_clean = df.dropna(subset=subset)
    removed = len(df) - len(df_clean)
    print(f"Dropped {removed:,} incomplete records ({len(df_clean):,} remaining)")
    return df_clean


def impute_mean(df: pd.DataFrame, columns: list[str] = None) -> pd.DataFrame:
    """
    Replace missing values with the column mean of the observed values.

    Parameters:
        df: Input DataFrame
        columns: Numeric columns to impute. Defaults to config.SCORE_COLUMNS

    Returns:
        Copy of df with imputed columns
    """
    if columns is None:
        columns = [c for c in config.SCORE_COLUMNS if c in df.columns]

    empty = [c for c in columns if df[c].notna().sum() == 0]
    if empty:
        raise ValueError(f"Cannot impute columns with no observed values: {empty}")

    df = df.copy()
    n_filled = int(df[columns].isna().sum().sum())

    imputer = SimpleImputer(strategy='mean')
    df[columns] = imputer.fit_transform(df[columns])

    print(f"Mean-imputed {n_filled:,} values across {len(columns)} columns")
    return df


def standardize_scores(df: pd.DataFrame, columns: list[str] = None) -> pd.DataFrame:
    """
    Add z-score columns ({col}_z) for the selected score columns.

    Missing values stay missing and are ignored when fitting.
    """
    if columns is None:
        columns = [c for c in config.SCORE_COLUMNS if c in df.columns]

    df = df.copy()
    scaler = StandardScaler()
    scaled = scaler.fit_transform(df[columns])
    for i, col in enumerate(columns):
        df[f'{col}_z'] = scaled[:, i]
    return df


# =============================================================================
# RECODING
# =============================================================================
def recode_by_thresholds(
    series: pd.Series,
    thresholds: list[float] = None,
    labels: list[str] = None,
    right: bool = False
) -> pd.Series:
    """
    Recode a numeric variable into ordered categories using cut points.

    With the default right=False, bands are closed on the left, so a value
    equal to a cut point falls into the upper band.

    Parameters:
        series: Numeric Series
        thresholds: Ascending inner cut points. Defaults to config.DEFAULT_SCORE_THRESHOLDS
        labels: Band labels, one more than thresholds. Defaults to config.DEFAULT_SCORE_LABELS
        right: Close bands on the right instead

    Returns:
        Ordered categorical Series (missing input stays missing)
    """
    if thresholds is None:
        thresholds = config.DEFAULT_SCORE_THRESHOLDS
    if labels is None:
        labels = config.DEFAULT_SCORE_LABELS

    thresholds = list(thresholds)
    if len(labels) != len(thresholds) + 1:
        raise ValueError(
            f"Need {len(thresholds) + 1} labels for {len(thresholds)} thresholds, got {len(labels)}"
        )
    if np.any(np.diff(thresholds) <= 0):
        raise ValueError(f"Thresholds must be strictly ascending: {thresholds}")

    bins = [-np.inf] + thresholds + [np.inf]
    return pd.cut(series, bins=bins, labels=labels, right=right, ordered=True)


def recode_frame(
    df: pd.DataFrame,
    column: str,
    output_col: str = None,
    **kwargs
) -> pd.DataFrame:
    """Apply recode_by_thresholds to one column; output defaults to {column}_level."""
    if output_col is None:
        output_col = f'{column}_level'

    df = df.copy()
    df[output_col] = recode_by_thresholds(df[column], **kwargs)
    print(f"Recoded {column} -> {output_col}: {df[output_col].value_counts(sort=False).to_dict()}")
    return df


# =============================================================================
# RESHAPING
# =============================================================================
def pivot_longer(
    df: pd.DataFrame,
    id_cols: Union[str, list[str]],
    value_cols: list[str] = None,
    names_to: str = 'subject',
    values_to: str = 'score'
) -> pd.DataFrame:
    """
    Reshape wide to long: one row per id and variable.

    Parameters:
        df: Wide DataFrame
        id_cols: Identifier column(s) kept on every row
        value_cols: Columns to stack. Defaults to every non-id column
        names_to: Name of the new variable-name column
        values_to: Name of the new value column

    Returns:
        Long DataFrame
    """
    if isinstance(id_cols, str):
        id_cols = [id_cols]
    if value_cols is None:
        value_cols = [c for c in df.columns if c not in id_cols]

    return df.melt(
        id_vars=id_cols,
        value_vars=value_cols,
        var_name=names_to,
        value_name=values_to,
    )


def pivot_wider(
    df: pd.DataFrame,
    id_cols: Union[str, list[str]],
    names_from: str = 'subject',
    values_from: str = 'score'
) -> pd.DataFrame:
    """
    Reshape long to wide: one column per distinct value of names_from.

    Parameters:
        df: Long DataFrame
        id_cols: Identifier column(s)
        names_from: Column whose values become column names
        values_from: Column holding the values

    Returns:
        Wide DataFrame
    """
    if isinstance(id_cols, str):
        id_cols = [id_cols]

    dupes = df.duplicated(subset=id_cols + [names_from])
    if dupes.any():
        raise ValueError(
            f"{int(dupes.sum())} duplicate {id_cols + [names_from]} pairs; cannot pivot wider"
        )

    wide = df.pivot(index=id_cols, columns=names_from, values=values_from).reset_index()
    wide.columns.name = None
    return wide


# =============================================================================
# JOINING
# =============================================================================
def left_join(
    left: pd.DataFrame,
    right: pd.DataFrame,
    on: Union[str, list[str]],
    report: bool = True
) -> pd.DataFrame:
    """
    Left outer join.

    Every left row is kept in its original order. Left keys without a match
    get missing right-side columns; right keys without a left partner are
    dropped.

    Parameters:
        left: Left table
        right: Right table (keys must be unique)
        on: Join key column(s)
        report: Print matched / unmatched / dropped counts

    Returns:
        Joined DataFrame
    """
    keys = [on] if isinstance(on, str) else list(on)

    if right.duplicated(subset=keys).any():
        raise ValueError(f"Right table has duplicate keys on {keys}")

    merged = left.merge(right, on=keys, how='left', indicator=True)

    if report:
        n_matched = int((merged['_merge'] == 'both').sum())
        n_unmatched = int((merged['_merge'] == 'left_only').sum())
        right_keys = right.set_index(keys).index
        n_dropped = int((~right_keys.isin(left.set_index(keys).index)).sum())
        print(f"Left join on {keys}: {n_matched:,} matched, "
              f"{n_unmatched:,} unmatched left, {n_dropped:,} right dropped")

    return merged.drop(columns='_merge')


def tidy_check(df: pd.DataFrame, id_col: str = None) -> dict:
    """
    Check the tidy-data conventions that can be verified mechanically.

    Parameters:
        df: Input DataFrame
        id_col: Observation identifier. Defaults to config.ID_COL

    Returns:
        Dictionary with duplicate ids, duplicate columns and overall verdict
    """
    if id_col is None:
        id_col = config.ID_COL

    dup_ids = df.loc[df[id_col].duplicated(keep=False), id_col].unique().tolist()
    dup_cols = df.columns[df.columns.duplicated()].unique().tolist()

    return {
        'n_rows': len(df),
        'unique_ids': not dup_ids,
        'duplicate_ids': dup_ids,
        'unique_columns': not dup_cols,
        'duplicate_columns': dup_cols,
        'is_tidy': not dup_ids and not dup_cols,
    }
