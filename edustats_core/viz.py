"""
Visualization Utilities Module
==============================

Style setup and the diagnostic plots used when checking assumptions:
score distributions, normal Q-Q plots, group boxplots and missing-data maps.
"""

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for saving plots

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from scipy import stats as scipy_stats


def setup_style() -> None:
    """Configure matplotlib and seaborn style settings."""
    sns.set_theme(style='whitegrid')
    plt.rcParams.update({
        'figure.figsize': (10, 6),
        'font.size': 10,
        'axes.titlesize': 12,
        'axes.labelsize': 11,
        'legend.fontsize': 10,
    })


def get_colors() -> dict:
    """
    Return consistent color palette for plots.

    Returns:
        Dictionary with named colors
    """
    return {
        'primary': '#3498db',      # Blue
        'secondary': '#2ecc71',    # Green
        'accent': '#e74c3c',       # Red
        'neutral': '#95a5a6',      # Gray
        'highlight': '#f39c12',    # Orange
        'significant': '#2ecc71',
        'not_significant': '#95a5a6',
    }


def plot_distribution(values: pd.Series, title: str = None) -> plt.Figure:
    """Histogram with KDE overlay and mean/median reference lines."""
    colors = get_colors()
    data = pd.Series(values).dropna()

    fig, ax = plt.subplots(figsize=(8, 5))
    sns.histplot(data, kde=True, color=colors['primary'], ax=ax)
    ax.axvline(data.mean(), color=colors['accent'], linestyle='--', label=f'Mean ({data.mean():.1f})')
    ax.axvline(data.median(), color=colors['highlight'], linestyle='-', label=f'Median ({data.median():.1f})')

    ax.set_title(title or f'Distribution of {data.name}')
    ax.set_xlabel(data.name)
    ax.legend()
    fig.tight_layout()
    return fig


def plot_qq(values: pd.Series, title: str = None) -> plt.Figure:
    """Normal Q-Q plot."""
    data = np.asarray(pd.Series(values).dropna(), dtype=float)

    fig, ax = plt.subplots(figsize=(6, 6))
    scipy_stats.probplot(data, dist='norm', plot=ax)
    ax.set_title(title or 'Normal Q-Q Plot')
    fig.tight_layout()
    return fig


def plot_group_boxplot(df: pd.DataFrame, value_col: str, group_col: str) -> plt.Figure:
    """Boxplot of value_col by group with individual points."""
    fig, ax = plt.subplots(figsize=(8, 5))
    sns.boxplot(data=df, x=group_col, y=value_col, color=get_colors()['primary'], ax=ax)
    sns.stripplot(data=df, x=group_col, y=value_col, color='black', alpha=0.5, size=4, ax=ax)
    ax.set_title(f'{value_col} by {group_col}')
    fig.tight_layout()
    return fig


def plot_missing(df: pd.DataFrame) -> plt.Figure:
    """Heatmap of missing cells (rows = records, columns = variables)."""
    fig, ax = plt.subplots(figsize=(max(6, len(df.columns)), 6))
    sns.heatmap(df.isna().astype(int), cbar=False, cmap=['#ecf0f1', '#e74c3c'], yticklabels=False, ax=ax)
    ax.set_title('Missing Values (red = missing)')
    fig.tight_layout()
    return fig
