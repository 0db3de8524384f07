#!/usr/bin/env python3
"""
Descriptive Statistics Script
=============================

Summarises student scores overall and by group: central tendency,
dispersion and shape, plus frequency tables for the categorical variables.

Parameters:
    data_file     - Path to input file (None = simulated sample)
    n_students    - Sample size when simulating
    seed          - Random seed when simulating
    score_cols    - Score columns to describe
    group_cols    - Grouping columns for by-group tables

Outputs:
    - Overall descriptives (CSV)
    - Descriptives by group, one per group column (CSV)
    - Frequency tables (CSV)
    - Distribution and Q-Q plots per score (PNG)
    - Text report (TXT)
"""

import sys
from pathlib import Path

# Hybrid import: works both when pip-installed and when run directly
try:
    from edustats_core import data, describe, viz, output, config
except ImportError:
    sys.path.insert(0, str(Path(__file__).parent.parent))
    from edustats_core import data, describe, viz, output, config

import warnings
warnings.filterwarnings('ignore')

# =============================================================================
# PARAMETERS
# =============================================================================
DEFAULTS = {
    'data_file': None,
    'n_students': 60,
    'seed': 42,
    'score_cols': config.SCORE_COLUMNS + [config.AVG_SCORE_COL],
    'group_cols': ['gender_label', 'ses'],
    'output_base': config.DEFAULT_OUTPUT_BASE,
}

ANALYSIS_NAME = 'descriptives'


# =============================================================================
# MAIN ANALYSIS
# =============================================================================
def run_analysis(params: dict) -> dict:
    """Run descriptive statistics pipeline."""
    print("=" * 70)
    print("DESCRIPTIVE STATISTICS")
    print("=" * 70)

    output_dir = output.get_output_dir(ANALYSIS_NAME, params['output_base'])
    viz.setup_style()

    if params['data_file']:
        df = data.load_data(params['data_file'])
    else:
        df = data.make_sample_students(params['n_students'], params['seed'])
        print(f"Simulated {len(df):,} students (seed={params['seed']})")

    if config.AVG_SCORE_COL not in df.columns:
        df = data.add_average_score(df)
    if 'gender_label' not in df.columns and 'gender' in df.columns:
        df = data.label_gender(df)

    score_cols = [c for c in params['score_cols'] if c in df.columns]

    # Overall
    overall = describe.describe_frame(df, score_cols)
    describe.print_descriptives(overall)
    output.save_csv(overall.round(3), output_dir, ANALYSIS_NAME, 'overall', index=True)

    # By group
    by_group = {}
    for group_col in params['group_cols']:
        if group_col not in df.columns:
            print(f"Skipping missing group column: {group_col}")
            continue
        table = describe.describe_by_group(df, config.AVG_SCORE_COL, group_col)
        by_group[group_col] = table
        output.save_csv(table.round(3), output_dir, ANALYSIS_NAME,
                        f"by-{group_col.replace('_', '-')}", index=True)

        freq = describe.frequency_table(df[group_col])
        output.save_csv(freq, output_dir, ANALYSIS_NAME,
                        f"freq-{group_col.replace('_', '-')}", index=True)

    # Plots
    for col in score_cols:
        output.save_figure(viz.plot_distribution(df[col]), output_dir, ANALYSIS_NAME, f'dist-{col}')
        output.save_figure(viz.plot_qq(df[col], f'Normal Q-Q: {col}'),
                           output_dir, ANALYSIS_NAME, f'qq-{col}')

    report = generate_report(overall, by_group, params)
    output.save_report(report, output_dir, ANALYSIS_NAME)

    print("\n" + "=" * 70)
    print("ANALYSIS COMPLETE")
    print("=" * 70)
    output.print_summary(output_dir)

    return {
        'overall': overall,
        'by_group': by_group,
        'output_dir': output_dir,
    }


def generate_report(overall, by_group, params):
    """Generate text report."""
    lines = [
        "=" * 70,
        "DESCRIPTIVE STATISTICS REPORT",
        "=" * 70,
        "",
        "CONFIGURATION",
        "-" * 50,
        f"Data file: {params['data_file'] or 'simulated'}",
        f"Variables: {', '.join(overall.index)}",
        "",
        "OVERALL",
        "-" * 50,
        overall[['n', 'mean', 'median', 'std', 'iqr', 'skewness', 'kurtosis']].round(2).to_string(),
    ]

    for group_col, table in by_group.items():
        lines.extend([
            "",
            f"{config.AVG_SCORE_COL.upper()} BY {group_col.upper()}",
            "-" * 50,
            table[['n', 'mean', 'median', 'std']].round(2).to_string(),
        ])

    lines.extend(["", "=" * 70])
    return "\n".join(lines)


# =============================================================================
# ENTRY POINT
# =============================================================================
if __name__ == '__main__':
    params = {**DEFAULTS}
    results = run_analysis(params)
