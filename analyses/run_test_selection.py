#!/usr/bin/env python3
"""
Test Selection Script
=====================

Runs the assumption checks and the matching parametric or non-parametric
test for each standard question asked of a student-records table.

Comparisons:
    - math by gender                 (t-test / Mann-Whitney)
    - average score by SES           (ANOVA / Kruskal-Wallis)
    - math vs science, same students (paired t-test / Wilcoxon)
    - math vs reading                (Pearson / Spearman)
    - gender x SES                   (Chi-square / Fisher's exact)
    - gender x performance band      (Chi-square / Fisher's exact)

Parameters:
    data_file     - Path to input file (None = simulated sample)
    n_students    - Sample size when simulating
    seed          - Random seed when simulating
    alpha         - Significance level
    comparisons   - List of select_test keyword dicts

Outputs:
    - Results table (CSV)
    - Post-hoc comparisons when an ANOVA is significant (CSV)
    - Boxplots for group comparisons (PNG)
    - Text report (TXT)
"""

import sys
from pathlib import Path

# Hybrid import: works both when pip-installed and when run directly
try:
    from edustats_core import data, tidy, stats, viz, output, config
except ImportError:
    sys.path.insert(0, str(Path(__file__).parent.parent))
    from edustats_core import data, tidy, stats, viz, output, config

import warnings
warnings.filterwarnings('ignore')

import pandas as pd

# =============================================================================
# PARAMETERS
# =============================================================================
DEFAULTS = {
    'data_file': None,
    'n_students': 80,
    'seed': 42,
    'alpha': config.ALPHA,
    'comparisons': [
        {'outcome': 'math', 'group': 'gender_label', 'design': 'independent'},
        {'outcome': config.AVG_SCORE_COL, 'group': 'ses', 'design': 'independent'},
        {'outcome': 'math', 'by': 'science', 'design': 'paired'},
        {'outcome': 'math', 'by': 'reading', 'design': 'correlation'},
        {'outcome': 'gender_label', 'group': 'ses', 'design': 'association'},
        {'outcome': 'gender_label', 'group': 'performance', 'design': 'association'},
    ],
    'output_base': config.DEFAULT_OUTPUT_BASE,
}

ANALYSIS_NAME = 'test-selection'


# =============================================================================
# MAIN ANALYSIS
# =============================================================================
def run_analysis(params: dict) -> dict:
    """Run test selection pipeline."""
    print("=" * 70)
    print("INFERENTIAL TEST SELECTION")
    print("=" * 70)

    output_dir = output.get_output_dir(ANALYSIS_NAME, params['output_base'])
    viz.setup_style()

    if params['data_file']:
        df = data.load_data(params['data_file'])
    else:
        df = data.make_sample_students(params['n_students'], params['seed'])
        print(f"Simulated {len(df):,} students (seed={params['seed']})")

    df = data.add_average_score(df)
    df = data.label_gender(df)
    df = tidy.recode_frame(df, config.AVG_SCORE_COL, 'performance')

    results = []
    posthoc = {}
    for spec in params['comparisons']:
        result = stats.select_test(df, alpha=params['alpha'], **spec)
        stats.print_test_result(result)
        results.append(result)

        if 'posthoc' in result:
            key = f"{result['outcome']}-by-{result['group']}"
            posthoc[key] = result['posthoc']
            output.save_csv(result['posthoc'], output_dir, ANALYSIS_NAME,
                            f"posthoc-{key.replace('_', '-')}")

        if spec['design'] == 'independent':
            fig = viz.plot_group_boxplot(df, spec['outcome'], spec['group'])
            output.save_figure(fig, output_dir, ANALYSIS_NAME,
                               f"box-{spec['outcome']}-{spec['group']}".replace('_', '-'))

    table = stats.results_table(results)
    output.save_csv(table, output_dir, ANALYSIS_NAME, 'results')

    report = generate_report(table, posthoc, params)
    output.save_report(report, output_dir, ANALYSIS_NAME)

    print("\n" + "=" * 70)
    print("ANALYSIS COMPLETE")
    print("=" * 70)
    output.print_summary(output_dir)

    return {
        'results': results,
        'table': table,
        'posthoc': posthoc,
        'output_dir': output_dir,
    }


def generate_report(table, posthoc, params):
    """Generate text report."""
    lines = [
        "=" * 70,
        "TEST SELECTION REPORT",
        "=" * 70,
        "",
        "CONFIGURATION",
        "-" * 50,
        f"Data file: {params['data_file'] or 'simulated'}",
        f"Alpha: {params['alpha']}",
        f"Comparisons: {len(params['comparisons'])}",
        "",
        "RESULTS",
        "-" * 50,
    ]

    for _, row in table.iterrows():
        second = row['group'] if pd.notna(row['group']) else row['by']
        kind = 'parametric' if row['parametric'] else 'non-parametric'
        lines.append(f"\n{row['outcome']} ~ {second} [{row['design']}]")
        lines.append(f"  {row['test']} ({kind}): statistic={row['statistic']:.3f}, "
                     f"p={row['p_value']:.4f} {row['sig_marker']}")
        lines.append(f"  {row['effect_measure']} = {row['effect_size']:.3f} ({row['effect_label']})")

    for key, comparisons in posthoc.items():
        lines.extend(["", f"TUKEY HSD: {key}", "-" * 50, comparisons.to_string(index=False)])

    lines.extend(["", "=" * 70])
    return "\n".join(lines)


# =============================================================================
# ENTRY POINT
# =============================================================================
if __name__ == '__main__':
    params = {**DEFAULTS}
    results = run_analysis(params)
