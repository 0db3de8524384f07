#!/usr/bin/env python3
"""
Tidy Workflow Script
====================

Walks a student-records table through the tidying steps: missing-data
summary, listwise deletion vs mean imputation, composite score, score-band
recoding, wide-to-long reshaping and a left join onto a demographics table.

Parameters:
    data_file     - Path to input file (None = simulated sample)
    n_students    - Sample size when simulating
    seed          - Random seed when simulating
    missing_rate  - Share of score cells blanked when simulating
    score_cols    - Subject score columns
    thresholds    - Cut points for score bands
    labels        - Score band labels

Outputs:
    - Missing-data summary (CSV)
    - Missing-data map (PNG)
    - Imputed wide table (CSV)
    - Long table (CSV)
    - Joined table (CSV)
    - Text report (TXT)
"""

import sys
from pathlib import Path

# Hybrid import: works both when pip-installed and when run directly
try:
    from edustats_core import data, tidy, viz, output, config
except ImportError:
    sys.path.insert(0, str(Path(__file__).parent.parent))
    from edustats_core import data, tidy, viz, output, config

import warnings
warnings.filterwarnings('ignore')

import pandas as pd

# =============================================================================
# PARAMETERS
# =============================================================================
DEFAULTS = {
    'data_file': None,
    'n_students': 40,
    'seed': 42,
    'missing_rate': 0.1,
    'score_cols': config.SCORE_COLUMNS,
    'thresholds': config.DEFAULT_SCORE_THRESHOLDS,
    'labels': config.DEFAULT_SCORE_LABELS,
    'output_base': config.DEFAULT_OUTPUT_BASE,
}

ANALYSIS_NAME = 'tidy-workflow'


# =============================================================================
# MAIN ANALYSIS
# =============================================================================
def run_analysis(params: dict) -> dict:
    """Run tidy workflow pipeline."""
    print("=" * 70)
    print("TIDY WORKFLOW")
    print("=" * 70)

    output_dir = output.get_output_dir(ANALYSIS_NAME, params['output_base'])
    viz.setup_style()

    # Load or simulate data
    print("\n" + "=" * 70)
    print("LOADING DATA")
    print("=" * 70)

    if params['data_file']:
        df = data.load_data(params['data_file'])
    else:
        df = data.make_sample_students(params['n_students'], params['seed'], params['missing_rate'])
        print(f"Simulated {len(df):,} students (seed={params['seed']})")

    score_cols = params['score_cols']

    # Missing data
    print("\n" + "=" * 70)
    print("MISSING DATA")
    print("=" * 70)

    missing = tidy.missing_summary(df)
    print(missing.to_string())
    output.save_csv(missing, output_dir, ANALYSIS_NAME, 'missing-summary', index=True)
    output.save_figure(viz.plot_missing(df), output_dir, ANALYSIS_NAME, 'missing-map')

    complete = tidy.drop_missing(df, subset=score_cols)
    imputed = tidy.impute_mean(df, score_cols)

    # Composite and recode
    print("\n" + "=" * 70)
    print("COMPOSITE AND RECODING")
    print("=" * 70)

    imputed = data.add_average_score(imputed, score_cols)
    imputed = tidy.recode_frame(imputed, config.AVG_SCORE_COL, 'performance',
                                thresholds=params['thresholds'], labels=params['labels'])
    imputed = data.label_gender(imputed)
    output.save_csv(imputed, output_dir, ANALYSIS_NAME, 'imputed')

    # Reshape
    print("\n" + "=" * 70)
    print("RESHAPING")
    print("=" * 70)

    long_df = tidy.pivot_longer(imputed, config.ID_COL, score_cols)
    print(f"Wide {imputed.shape} -> long {long_df.shape}")
    output.save_csv(long_df, output_dir, ANALYSIS_NAME, 'long')

    # Join: demographics table missing the last student, plus one unknown id
    print("\n" + "=" * 70)
    print("JOINING")
    print("=" * 70)

    scores = imputed[[config.ID_COL] + score_cols]
    demographics = df[[config.ID_COL, 'gender', 'ses']].iloc[:-1]
    extra = pd.DataFrame({config.ID_COL: [df[config.ID_COL].max() + 1], 'gender': [1], 'ses': ['High']})
    demographics = pd.concat([demographics, extra], ignore_index=True)

    joined = tidy.left_join(scores, demographics, on=config.ID_COL)
    output.save_csv(joined, output_dir, ANALYSIS_NAME, 'joined')

    report = generate_report(df, missing, complete, imputed, joined, params)
    output.save_report(report, output_dir, ANALYSIS_NAME)

    print("\n" + "=" * 70)
    print("ANALYSIS COMPLETE")
    print("=" * 70)
    output.print_summary(output_dir)

    return {
        'raw': df,
        'missing': missing,
        'complete': complete,
        'imputed': imputed,
        'long': long_df,
        'joined': joined,
        'output_dir': output_dir,
    }


def generate_report(df, missing, complete, imputed, joined, params):
    """Generate text report."""
    lines = [
        "=" * 70,
        "TIDY WORKFLOW REPORT",
        "=" * 70,
        "",
        "CONFIGURATION",
        "-" * 50,
        f"Data file: {params['data_file'] or 'simulated'}",
        f"Score columns: {', '.join(params['score_cols'])}",
        f"Score bands: {params['labels']} at {params['thresholds']}",
        "",
        "MISSING DATA",
        "-" * 50,
        missing.to_string(),
        "",
        f"Records: {len(df):,}",
        f"Complete cases (listwise): {len(complete):,}",
        f"After mean imputation: {len(imputed):,}",
        "",
        "SCORE MEANS: COMPLETE CASES vs IMPUTED",
        "-" * 50,
    ]
    for col in params['score_cols']:
        lines.append(f"  {col}: {complete[col].mean():.2f} vs {imputed[col].mean():.2f}")

    lines.extend([
        "",
        "PERFORMANCE BANDS",
        "-" * 50,
        imputed['performance'].value_counts(sort=False).to_string(),
        "",
        "JOIN",
        "-" * 50,
        f"Rows after left join: {len(joined):,}",
        f"Rows without demographics: {int(joined['ses'].isna().sum()):,}",
        "",
        "=" * 70,
    ])
    return "\n".join(lines)


# =============================================================================
# ENTRY POINT
# =============================================================================
if __name__ == '__main__':
    params = {**DEFAULTS}
    results = run_analysis(params)
