"""
Output Naming and Saving Module
===============================

Dated output directories, and tables, figures and reports saved into them
under one naming convention.

Naming Pattern: {DATE}-{ANALYSIS}-{SUFFIX}.{EXT}
Example: 2026-10-18-descriptives-by-gender.csv

Files take their DATE from the directory they are saved into when that
directory was made by get_output_dir, so a run started before midnight
keeps one date stamp throughout.
"""

import os
from datetime import date
from pathlib import Path

import pandas as pd
import matplotlib.pyplot as plt

from . import config


def get_output_dir(analysis_name: str, base: str = None, run_date: date = None) -> Path:
    """
    Create and return dated output directory.

    Creates directory: {base}/{DATE}-{analysis_name}/
    Example: outputs/2026-10-18-descriptives/

    Parameters:
        analysis_name: Name of the analysis (lowercase-hyphen)
        base: Base output directory. Defaults to config.DEFAULT_OUTPUT_BASE
        run_date: Date stamp. Defaults to today

    Returns:
        Path to created output directory
    """
    if base is None:
        base = config.DEFAULT_OUTPUT_BASE
    if run_date is None:
        run_date = date.today()

    output_dir = Path(base) / f"{run_date.isoformat()}-{analysis_name}"
    os.makedirs(output_dir, exist_ok=True)

    print(f"Output directory: {output_dir}")
    return output_dir


def directory_date(output_dir: Path):
    """Return the date prefix of a dated output directory, or None."""
    try:
        return date.fromisoformat(Path(output_dir).name[:10])
    except ValueError:
        return None


def resolve_run_date(output_dir: Path, run_date: date = None) -> date:
    """Explicit run_date, else the directory's date, else today."""
    if run_date is not None:
        return run_date
    return directory_date(output_dir) or date.today()


def build_filename(
    output_dir: Path,
    analysis_name: str,
    suffix: str,
    ext: str,
    run_date: date = None
) -> Path:
    """Build dated filename with pattern: {DATE}-{ANALYSIS}-{SUFFIX}.{EXT}"""
    stamp = resolve_run_date(output_dir, run_date).isoformat()
    return Path(output_dir) / f"{stamp}-{analysis_name}-{suffix}.{ext}"


def save_csv(
    df: pd.DataFrame,
    output_dir: Path,
    analysis_name: str,
    suffix: str,
    index: bool = False,
    run_date: date = None
) -> Path:
    """
    Save a results table to CSV.

    Parameters:
        df: DataFrame to save
        output_dir: Output directory path
        analysis_name: Analysis name for filename
        suffix: Descriptive suffix (e.g., 'results', 'by-gender')
        index: Whether to include index in output
        run_date: Date stamp. Defaults to the directory's date

    Returns:
        Path to saved file
    """
    filepath = build_filename(output_dir, analysis_name, suffix, 'csv', run_date)
    df.to_csv(filepath, index=index)
    print(f"Saved: {filepath}")
    return filepath


def save_figure(
    fig: plt.Figure,
    output_dir: Path,
    analysis_name: str,
    suffix: str,
    dpi: int = None,
    run_date: date = None
) -> Path:
    """
    Save a diagnostic plot as PNG and close it.

    Parameters:
        fig: Matplotlib figure to save
        output_dir: Output directory path
        analysis_name: Analysis name for filename
        suffix: Descriptive suffix (e.g., 'qq-math')
        dpi: Resolution. Defaults to config.DEFAULT_DPI
        run_date: Date stamp. Defaults to the directory's date

    Returns:
        Path to saved file
    """
    if dpi is None:
        dpi = config.DEFAULT_DPI

    filepath = build_filename(output_dir, analysis_name, suffix, 'png', run_date)
    fig.savefig(filepath, dpi=dpi, bbox_inches='tight', facecolor='white')
    plt.close(fig)
    print(f"Saved: {filepath}")
    return filepath


def save_report(
    text: str,
    output_dir: Path,
    analysis_name: str,
    suffix: str = 'report',
    run_date: date = None
) -> Path:
    """Write a plain-text analysis report (UTF-8)."""
    filepath = build_filename(output_dir, analysis_name, suffix, 'txt', run_date)
    filepath.write_text(text, encoding='utf-8')
    print(f"Saved: {filepath}")
    return filepath


def list_outputs(output_dir: Path) -> list[str]:
    """Sorted file names in an output directory; empty if it does not exist."""
    output_dir = Path(output_dir)
    if not output_dir.is_dir():
        return []
    return sorted(p.name for p in output_dir.iterdir() if p.is_file())


def print_summary(output_dir: Path) -> None:
    """Print the files an analysis wrote."""
    files = list_outputs(output_dir)
    if not files:
        print(f"\nNo files generated in {output_dir}")
        return

    print(f"\nFiles generated in {output_dir} ({len(files)}):")
    for name in files:
        print(f"  - {name}")
