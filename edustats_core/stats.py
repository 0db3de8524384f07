"""
Statistical Tests Module
========================

Assumption diagnostics (normality, variance homogeneity, independence) and
inferential tests that choose between a parametric test and its
non-parametric counterpart based on those diagnostics:

    t-test          -> Mann-Whitney U
    paired t-test   -> Wilcoxon signed-rank
    one-way ANOVA   -> Kruskal-Wallis
    Pearson r       -> Spearman rho
    Chi-square      -> Fisher's exact

Every test returns a result dictionary with the same core keys, so results
can be stacked with results_table().
"""

import pandas as pd
import numpy as np
from scipy import stats as scipy_stats
from scipy.stats.contingency import expected_freq
from statsmodels.stats.multicomp import pairwise_tukeyhsd
from statsmodels.stats.stattools import durbin_watson

from . import config


FORCE_OPTIONS = (None, 'parametric', 'nonparametric')
DESIGNS = ('independent', 'paired', 'correlation', 'association')


def _clean(values) -> np.ndarray:
    arr = np.asarray(pd.to_numeric(pd.Series(values), errors='coerce'), dtype=float)
    return arr[~np.isnan(arr)]


def _check_force(force):
    if force not in FORCE_OPTIONS:
        raise ValueError(f"force must be one of {FORCE_OPTIONS}, got {force!r}")


def _all_normal(checks) -> bool:
    # Untestable (None) counts as not normal
    return all(c['normal'] is True for c in checks)


def _result(
    test: str,
    statistic: float,
    p_value: float,
    effect_size: float,
    effect_measure: str,
    parametric: bool,
    assumptions: dict,
    n: int,
    alpha: float,
    **extra
) -> dict:
    significant = bool(p_value < alpha) if not np.isnan(p_value) else False
    result = {
        'test': test,
        'statistic': float(statistic),
        'p_value': float(p_value),
        'significant': significant,
        'sig_marker': config.get_sig_marker(p_value) if not np.isnan(p_value) else '',
        'effect_size': float(effect_size),
        'effect_measure': effect_measure,
        'effect_label': (config.get_effect_label(effect_size, effect_measure)
                         if not np.isnan(effect_size) else 'n/a'),
        'parametric': parametric,
        'assumptions': assumptions,
        'n': int(n),
        'alpha': alpha,
    }
    result.update(extra)
    return result


# =============================================================================
# ASSUMPTION CHECKS
# =============================================================================
def check_normality(values, alpha: float = None) -> dict:
    """
    Shapiro-Wilk test of normality.

    Parameters:
        values: Sample (missing values are dropped)
        alpha: Significance level. Defaults to config.ALPHA

    Returns:
        Dictionary with W statistic, p-value and normal flag
        (normal is None when n < 3 and the test cannot run)
    """
    if alpha is None:
        alpha = config.ALPHA

    x = _clean(values)
    if len(x) < 3:
        return {
            'test': 'Shapiro-Wilk',
            'statistic': np.nan,
            'p_value': np.nan,
            'normal': None,
            'n': len(x),
            'note': 'Shapiro-Wilk needs at least 3 observations',
        }

    w_stat, p_value = scipy_stats.shapiro(x)
    return {
        'test': 'Shapiro-Wilk',
        'statistic': float(w_stat),
        'p_value': float(p_value),
        'normal': bool(p_value >= alpha),
        'n': len(x),
    }


def check_variance_homogeneity(*groups, alpha: float = None) -> dict:
    """
    Levene's test (median-centred, Brown-Forsythe variant) for equal variances.

    Parameters:
        *groups: Two or more samples
        alpha: Significance level. Defaults to config.ALPHA

    Returns:
        Dictionary with statistic, p-value and homogeneous flag
    """
    if alpha is None:
        alpha = config.ALPHA
    if len(groups) < 2:
        raise ValueError("Variance homogeneity needs at least 2 groups")

    cleaned = [_clean(g) for g in groups]
    stat, p_value = scipy_stats.levene(*cleaned, center='median')

    homogeneous = None if np.isnan(p_value) else bool(p_value >= alpha)
    return {
        'test': 'Levene (median)',
        'statistic': float(stat),
        'p_value': float(p_value),
        'homogeneous': homogeneous,
    }


def check_independence(values, lower: float = None, upper: float = None) -> dict:
    """
    Durbin-Watson statistic on the mean-centred series in collection order.

    Values near 2 indicate no first-order autocorrelation. Independence of
    observations is mainly a property of the study design; this only catches
    serial dependence introduced by the order of data collection.
    """
    if lower is None:
        lower = config.DW_LOWER
    if upper is None:
        upper = config.DW_UPPER

    x = _clean(values)
    resid = x - x.mean() if len(x) else x

    if len(x) < 2 or np.allclose(resid, 0):
        return {
            'test': 'Durbin-Watson',
            'statistic': np.nan,
            'independent': None,
            'note': 'Needs at least 2 observations with non-zero spread',
        }

    dw = float(durbin_watson(resid))
    return {
        'test': 'Durbin-Watson',
        'statistic': dw,
        'independent': bool(lower <= dw <= upper),
    }


# =============================================================================
# EFFECT SIZES
# =============================================================================
def cohens_d(a, b) -> float:
    """Cohen's d with pooled standard deviation."""
    a, b = _clean(a), _clean(b)
    na, nb = len(a), len(b)
    pooled = np.sqrt(((na - 1) * a.var(ddof=1) + (nb - 1) * b.var(ddof=1)) / (na + nb - 2))
    if pooled == 0:
        return np.nan
    return (a.mean() - b.mean()) / pooled


def _paired_rank_biserial(diff: np.ndarray) -> float:
    nonzero = diff[diff != 0]
    if len(nonzero) == 0:
        return np.nan
    ranks = scipy_stats.rankdata(np.abs(nonzero))
    total = ranks.sum()
    return (ranks[nonzero > 0].sum() - ranks[nonzero < 0].sum()) / total


def _cramers_v(observed: np.ndarray) -> float:
    chi2 = scipy_stats.chi2_contingency(observed, correction=False)[0]
    n = observed.sum()
    k = min(observed.shape) - 1
    return np.sqrt(chi2 / (n * k))


# =============================================================================
# TESTS
# =============================================================================
def compare_two_groups(
    a,
    b,
    labels: tuple = ('group_1', 'group_2'),
    alpha: float = None,
    force: str = None
) -> dict:
    """
    Compare two independent groups.

    Student's t-test when both groups are normal with homogeneous variances,
    Welch's t-test when both are normal but variances differ, Mann-Whitney U
    otherwise.

    Parameters:
        a, b: Samples (missing values dropped)
        labels: Names used in the assumption report
        alpha: Significance level. Defaults to config.ALPHA
        force: 'parametric' or 'nonparametric' to bypass the selection

    Returns:
        Result dictionary (see _result) with per-group summaries
    """
    if alpha is None:
        alpha = config.ALPHA
    _check_force(force)

    a, b = _clean(a), _clean(b)
    if len(a) < 2 or len(b) < 2:
        raise ValueError("Each group needs at least 2 observations")

    norm_a, norm_b = check_normality(a, alpha), check_normality(b, alpha)
    variance = check_variance_homogeneity(a, b, alpha=alpha)
    assumptions = {
        'normality': {labels[0]: norm_a, labels[1]: norm_b},
        'variance': variance,
    }

    group_stats = {
        labels[0]: {'n': len(a), 'mean': a.mean(), 'median': np.median(a), 'std': a.std(ddof=1)},
        labels[1]: {'n': len(b), 'mean': b.mean(), 'median': np.median(b), 'std': b.std(ddof=1)},
    }

    parametric = force == 'parametric' or (force is None and _all_normal([norm_a, norm_b]))
    if parametric:
        equal_var = variance['homogeneous'] is True
        t_stat, p_value = scipy_stats.ttest_ind(a, b, equal_var=equal_var)
        na, nb = len(a), len(b)
        if equal_var:
            test = "Student's t-test"
            dof = na + nb - 2
        else:
            test = "Welch's t-test"
            va, vb = a.var(ddof=1) / na, b.var(ddof=1) / nb
            with np.errstate(divide='ignore', invalid='ignore'):
                dof = (va + vb) ** 2 / (va ** 2 / (na - 1) + vb ** 2 / (nb - 1))
        return _result(test, t_stat, p_value, cohens_d(a, b), 'cohens_d', True,
                       assumptions, len(a) + len(b), alpha,
                       df=float(dof), group_stats=group_stats)

    u_stat, p_value = scipy_stats.mannwhitneyu(a, b, alternative='two-sided')
    r = 2 * u_stat / (len(a) * len(b)) - 1
    return _result('Mann-Whitney U', u_stat, p_value, r, 'r', False,
                   assumptions, len(a) + len(b), alpha, group_stats=group_stats)


def compare_paired(before, after, alpha: float = None, force: str = None) -> dict:
    """
    Compare two related measurements on the same students.

    Paired t-test when the differences (after - before) are normal,
    Wilcoxon signed-rank otherwise. Pairs with a missing value are dropped.

    Parameters:
        before, after: Equal-length samples, aligned by position
        alpha: Significance level. Defaults to config.ALPHA
        force: 'parametric' or 'nonparametric' to bypass the selection

    Returns:
        Result dictionary with the mean and median difference
    """
    if alpha is None:
        alpha = config.ALPHA
    _check_force(force)

    x = np.asarray(pd.to_numeric(pd.Series(before), errors='coerce'), dtype=float)
    y = np.asarray(pd.to_numeric(pd.Series(after), errors='coerce'), dtype=float)
    if len(x) != len(y):
        raise ValueError(f"Paired samples differ in length ({len(x)} vs {len(y)})")

    complete = ~(np.isnan(x) | np.isnan(y))
    x, y = x[complete], y[complete]
    if len(x) < 2:
        raise ValueError("Paired comparison needs at least 2 complete pairs")

    diff = y - x
    if np.all(diff == 0):
        raise ValueError("All paired differences are zero")

    norm_diff = check_normality(diff, alpha)
    assumptions = {
        'normality': {'difference': norm_diff},
        'independence': check_independence(diff),
    }
    extra = {
        'n_pairs': len(diff),
        'mean_difference': float(diff.mean()),
        'median_difference': float(np.median(diff)),
    }

    parametric = force == 'parametric' or (force is None and _all_normal([norm_diff]))
    if parametric:
        t_stat, p_value = scipy_stats.ttest_rel(y, x)
        sd = diff.std(ddof=1)
        d_z = diff.mean() / sd if sd > 0 else np.nan
        return _result('Paired t-test', t_stat, p_value, d_z, 'cohens_d', True,
                       assumptions, len(diff), alpha, df=float(len(diff) - 1), **extra)

    w_stat, p_value = scipy_stats.wilcoxon(diff)
    return _result('Wilcoxon signed-rank', w_stat, p_value, _paired_rank_biserial(diff), 'r',
                   False, assumptions, len(diff), alpha, **extra)


def compare_groups(*groups, labels: list = None, alpha: float = None, force: str = None) -> dict:
    """
    Compare two or more independent groups.

    One-way ANOVA when every group is normal and variances are homogeneous,
    Kruskal-Wallis H otherwise.

    Parameters:
        *groups: Samples (missing values dropped)
        labels: Group names. Defaults to group_1..group_k
        alpha: Significance level. Defaults to config.ALPHA
        force: 'parametric' or 'nonparametric' to bypass the selection

    Returns:
        Result dictionary; effect is eta-squared (ANOVA) or epsilon-squared
    """
    if alpha is None:
        alpha = config.ALPHA
    _check_force(force)

    if len(groups) < 2:
        raise ValueError("Group comparison needs at least 2 groups")
    if labels is None:
        labels = [f'group_{i + 1}' for i in range(len(groups))]
    if len(labels) != len(groups):
        raise ValueError(f"Got {len(labels)} labels for {len(groups)} groups")

    cleaned = [_clean(g) for g in groups]
    if any(len(g) < 2 for g in cleaned):
        raise ValueError("Each group needs at least 2 observations")

    normality = {label: check_normality(g, alpha) for label, g in zip(labels, cleaned)}
    variance = check_variance_homogeneity(*cleaned, alpha=alpha)
    assumptions = {'normality': normality, 'variance': variance}

    n_total = sum(len(g) for g in cleaned)
    k = len(cleaned)
    group_stats = {
        label: {'n': len(g), 'mean': g.mean(), 'median': np.median(g), 'std': g.std(ddof=1)}
        for label, g in zip(labels, cleaned)
    }

    parametric = force == 'parametric' or (
        force is None and _all_normal(normality.values()) and variance['homogeneous'] is True
    )
    if parametric:
        f_stat, p_value = scipy_stats.f_oneway(*cleaned)

        # Calculate eta-squared (effect size)
        pooled = np.concatenate(cleaned)
        grand_mean = pooled.mean()
        ss_between = sum(len(g) * (g.mean() - grand_mean) ** 2 for g in cleaned)
        ss_total = ((pooled - grand_mean) ** 2).sum()
        eta_squared = ss_between / ss_total if ss_total > 0 else np.nan

        return _result('One-way ANOVA', f_stat, p_value, eta_squared, 'eta_squared', True,
                       assumptions, n_total, alpha,
                       df_between=k - 1, df_within=n_total - k, group_stats=group_stats)

    h_stat, p_value = scipy_stats.kruskal(*cleaned)
    epsilon_squared = h_stat / (n_total - 1)
    return _result('Kruskal-Wallis H', h_stat, p_value, epsilon_squared, 'epsilon_squared', False,
                   assumptions, n_total, alpha, df=k - 1, group_stats=group_stats)


def correlate(x, y, labels: tuple = ('x', 'y'), alpha: float = None, force: str = None) -> dict:
    """
    Correlation between two numeric variables.

    Pearson r when both variables are normal, Spearman rho otherwise.
    Only pairwise-complete observations are used.
    """
    if alpha is None:
        alpha = config.ALPHA
    _check_force(force)

    x = np.asarray(pd.to_numeric(pd.Series(x), errors='coerce'), dtype=float)
    y = np.asarray(pd.to_numeric(pd.Series(y), errors='coerce'), dtype=float)
    if len(x) != len(y):
        raise ValueError(f"Variables differ in length ({len(x)} vs {len(y)})")

    complete = ~(np.isnan(x) | np.isnan(y))
    x, y = x[complete], y[complete]
    if len(x) < 3:
        raise ValueError("Correlation needs at least 3 complete pairs")

    norm_x, norm_y = check_normality(x, alpha), check_normality(y, alpha)
    assumptions = {'normality': {labels[0]: norm_x, labels[1]: norm_y}}

    parametric = force == 'parametric' or (force is None and _all_normal([norm_x, norm_y]))
    if parametric:
        r, p_value = scipy_stats.pearsonr(x, y)
        return _result('Pearson r', r, p_value, r, 'r', True,
                       assumptions, len(x), alpha, df=len(x) - 2)

    rho, p_value = scipy_stats.spearmanr(x, y)
    return _result('Spearman rho', rho, p_value, rho, 'r', False,
                   assumptions, len(x), alpha)


def test_association(table, alpha: float = None, force: str = None) -> dict:
    """
    Association between two categorical variables from a contingency table.

    Chi-square test of independence when every expected count is at least
    config.MIN_EXPECTED_COUNT. Otherwise Fisher's exact test for a 2x2 table;
    larger tables fall back to chi-square with a warning recorded in the
    assumptions.

    Parameters:
        table: Contingency table (DataFrame or 2-D array of counts)
        alpha: Significance level. Defaults to config.ALPHA
        force: 'parametric' (always chi-square) or 'nonparametric' (Fisher, 2x2 only)

    Returns:
        Result dictionary; effect is Cramer's V
    """
    if alpha is None:
        alpha = config.ALPHA
    _check_force(force)

    observed = np.asarray(table, dtype=float)
    if observed.ndim != 2 or min(observed.shape) < 2:
        raise ValueError(f"Contingency table must be at least 2x2, got shape {observed.shape}")

    expected = expected_freq(observed)
    min_expected = float(expected.min())
    expected_ok = min_expected >= config.MIN_EXPECTED_COUNT
    is_2x2 = observed.shape == (2, 2)
    zero_margin = bool((observed.sum(axis=0) == 0).any() or (observed.sum(axis=1) == 0).any())

    assumptions = {
        'expected_counts': {
            'min_expected': min_expected,
            'threshold': config.MIN_EXPECTED_COUNT,
            'satisfied': expected_ok,
        },
    }
    n = observed.sum()
    v = np.nan if zero_margin else _cramers_v(observed)

    if force == 'nonparametric' and not is_2x2:
        raise ValueError("Fisher's exact test requires a 2x2 table")

    use_fisher = force == 'nonparametric' or (force is None and not expected_ok and is_2x2)
    if use_fisher:
        odds_ratio, p_value = scipy_stats.fisher_exact(observed)
        return _result("Fisher's exact test", odds_ratio, p_value, v, 'cramers_v', False,
                       assumptions, n, alpha, odds_ratio=float(odds_ratio))

    if zero_margin:
        raise ValueError("Chi-square needs every row and column total to be non-zero")

    chi2, p_value, dof, _ = scipy_stats.chi2_contingency(observed)
    if not expected_ok:
        assumptions['warning'] = (
            f"{min_expected:.2f} < {config.MIN_EXPECTED_COUNT} expected count in a "
            f"{observed.shape[0]}x{observed.shape[1]} table; chi-square approximation may be unreliable"
        )
    return _result('Chi-square', chi2, p_value, v, 'cramers_v', True,
                   assumptions, n, alpha, df=int(dof))


# Not a pytest test despite the name
test_association.__test__ = False


def run_tukey_hsd(df: pd.DataFrame, value_col: str, group_col: str, alpha: float = None) -> pd.DataFrame:
    """
    Perform Tukey's HSD post-hoc test.

    Parameters:
        df: Input DataFrame
        value_col: Column with values to compare
        group_col: Column with group labels
        alpha: Family-wise significance level. Defaults to config.ALPHA

    Returns:
        DataFrame with pairwise comparisons
    """
    if alpha is None:
        alpha = config.ALPHA

    data = df[[value_col, group_col]].dropna()
    result = pairwise_tukeyhsd(data[value_col].astype(float), data[group_col].astype(str), alpha=alpha)

    summary = result.summary().data
    comparisons = pd.DataFrame(summary[1:], columns=summary[0])
    comparisons = comparisons.rename(columns={
        'meandiff': 'mean_diff',
        'p-adj': 'p_value',
        'reject': 'significant',
    })
    comparisons['significant'] = comparisons['significant'].astype(bool)
    return comparisons


def select_test(
    df: pd.DataFrame,
    outcome: str,
    group: str = None,
    design: str = 'independent',
    by: str = None,
    alpha: float = None,
    force: str = None
) -> dict:
    """
    Pick and run the appropriate test for a question about a DataFrame.

    Designs:
        independent  - outcome compared across levels of group
                       (2 levels: compare_two_groups, 3+: compare_groups)
        paired       - outcome vs by, two measurements per row (compare_paired)
        correlation  - outcome vs by, two numeric columns (correlate)
        association  - outcome vs group, two categorical columns (test_association)

    A significant one-way ANOVA also carries Tukey HSD comparisons under 'posthoc'.

    Returns:
        Result dictionary with outcome, group/by and design added
    """
    if design not in DESIGNS:
        raise ValueError(f"design must be one of {DESIGNS}, got {design!r}")

    needs_group = design in ('independent', 'association')
    second = group if needs_group else by
    if second is None:
        raise ValueError(f"design {design!r} needs {'group' if needs_group else 'by'}")

    missing = [c for c in (outcome, second) if c not in df.columns]
    if missing:
        raise KeyError(f"Columns not found: {missing}")

    if design == 'independent':
        data = df[[outcome, group]].dropna()
        grouped = data.groupby(group, observed=True, sort=True)[outcome]
        labels = [name for name, _ in grouped]
        samples = [values for _, values in grouped]

        if len(samples) < 2:
            raise ValueError(f"{group!r} has fewer than 2 non-missing levels")
        if len(samples) == 2:
            result = compare_two_groups(samples[0], samples[1], labels=tuple(labels),
                                        alpha=alpha, force=force)
        else:
            result = compare_groups(*samples, labels=labels, alpha=alpha, force=force)
            if result['parametric'] and result['significant']:
                result['posthoc'] = run_tukey_hsd(data, outcome, group, alpha=alpha)
    elif design == 'paired':
        result = compare_paired(df[outcome], df[by], alpha=alpha, force=force)
    elif design == 'correlation':
        result = correlate(df[outcome], df[by], labels=(outcome, by), alpha=alpha, force=force)
    else:
        table = pd.crosstab(df[outcome], df[group])
        # Unobserved categorical levels show up as empty rows/columns
        table = table.loc[table.sum(axis=1) > 0, table.sum(axis=0) > 0]
        result = test_association(table, alpha=alpha, force=force)

    result['design'] = design
    result['outcome'] = outcome
    if needs_group:
        result['group'] = group
    else:
        result['by'] = by
    return result


def results_table(results: list[dict]) -> pd.DataFrame:
    """Flatten test results into one row each."""
    columns = ['outcome', 'group', 'by', 'design', 'test', 'statistic', 'p_value',
               'sig_marker', 'significant', 'effect_measure', 'effect_size',
               'effect_label', 'parametric', 'n']
    rows = [{col: r.get(col) for col in columns} for r in results]
    return pd.DataFrame(rows, columns=columns)


def print_test_result(result: dict) -> None:
    """Print a test result with its assumption diagnostics."""
    print("\n" + "-" * 60)
    title = result['test']
    if 'outcome' in result:
        title += f": {result['outcome']} ~ {result.get('group') or result.get('by')}"
    print(title)
    print("-" * 60)

    assumptions = result['assumptions']
    for name, check in assumptions.get('normality', {}).items():
        if check['normal'] is None:
            print(f"  Normality [{name}]: not tested ({check['note']})")
        else:
            print(f"  Normality [{name}]: W={check['statistic']:.3f}, p={check['p_value']:.3f} "
                  f"({'normal' if check['normal'] else 'non-normal'})")
    if 'variance' in assumptions:
        var = assumptions['variance']
        verdict = {True: 'yes', False: 'no', None: 'not tested'}[var['homogeneous']]
        print(f"  Equal variances: F={var['statistic']:.3f}, p={var['p_value']:.3f} ({verdict})")
    if 'independence' in assumptions and assumptions['independence']['independent'] is not None:
        print(f"  Durbin-Watson: {assumptions['independence']['statistic']:.3f}")
    if 'expected_counts' in assumptions:
        exp = assumptions['expected_counts']
        print(f"  Min expected count: {exp['min_expected']:.2f} (threshold {exp['threshold']})")
    if 'warning' in assumptions:
        print(f"  WARNING: {assumptions['warning']}")

    print(f"\n  Statistic: {result['statistic']:.3f}")
    print(f"  p-value: {result['p_value']:.2e} {result['sig_marker']}")
    print(f"  Effect size ({result['effect_measure']}): {result['effect_size']:.3f} ({result['effect_label']})")
