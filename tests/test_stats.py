"""Tests for assumption checks and test selection."""

import numpy as np
import pandas as pd
import pytest

from edustats_core import stats


class TestAssumptionChecks:
    """Tests for normality, variance and independence checks."""

    def test_normal_sample_passes(self, normal_quantiles):
        """Exact normal quantiles are judged normal."""
        result = stats.check_normality(normal_quantiles)
        assert result['normal'] is True
        assert result['n'] == 30

    def test_skewed_sample_fails(self, skewed_values):
        """A lognormal sample is judged non-normal."""
        assert stats.check_normality(skewed_values)['normal'] is False

    def test_normality_needs_three(self):
        """Fewer than three observations cannot be tested."""
        result = stats.check_normality([1.0, np.nan, 2.0])
        assert result['normal'] is None
        assert result['n'] == 2
        assert 'note' in result

    def test_equal_variances(self, normal_quantiles):
        """Shifted copies of one sample have equal variances."""
        result = stats.check_variance_homogeneity(normal_quantiles, normal_quantiles + 10)
        assert result['homogeneous'] is True

    def test_unequal_variances(self, normal_quantiles):
        """A tenfold spread difference is detected."""
        result = stats.check_variance_homogeneity(normal_quantiles, normal_quantiles * 10)
        assert result['homogeneous'] is False

    def test_variance_needs_two_groups(self, normal_quantiles):
        """A single group is rejected."""
        with pytest.raises(ValueError):
            stats.check_variance_homogeneity(normal_quantiles)

    def test_alternating_series_dependent(self):
        """Alternating values give Durbin-Watson near 4."""
        result = stats.check_independence([1, -1] * 10)
        assert result['statistic'] > 3.5
        assert result['independent'] is False

    def test_trending_series_dependent(self):
        """A steady trend gives Durbin-Watson near 0."""
        result = stats.check_independence(np.arange(20))
        assert result['statistic'] < 0.5
        assert result['independent'] is False

    def test_in_band_series_independent(self):
        """Runs of two give Durbin-Watson inside the 1.5-2.5 band."""
        result = stats.check_independence([1, 1, -1, -1] * 5)
        assert result['statistic'] == pytest.approx(1.8)
        assert result['independent'] is True

    def test_constant_series_untestable(self):
        """No spread means no verdict."""
        assert stats.check_independence([3, 3, 3])['independent'] is None


class TestCompareTwoGroups:
    """Tests for compare_two_groups."""

    def test_student_t(self, normal_quantiles):
        """Normal groups with equal variances use Student's t-test."""
        a = normal_quantiles * 5 + 70
        b = normal_quantiles * 5 + 80
        result = stats.compare_two_groups(a, b)

        assert result['test'] == "Student's t-test"
        assert result['parametric'] is True
        assert result['df'] == 58
        assert result['significant'] is True
        assert result['effect_measure'] == 'cohens_d'
        assert result['effect_size'] == pytest.approx(-10 / np.std(a, ddof=1))
        assert result['effect_label'] == 'Large'

    def test_welch_t(self, normal_quantiles):
        """Normal groups with unequal variances use Welch's t-test."""
        result = stats.compare_two_groups(normal_quantiles * 2 + 70, normal_quantiles * 20 + 70)
        assert result['test'] == "Welch's t-test"
        assert result['significant'] is False

    def test_mann_whitney(self, skewed_values):
        """Non-normal groups fall back to Mann-Whitney U."""
        result = stats.compare_two_groups(skewed_values, skewed_values + 5)

        assert result['test'] == 'Mann-Whitney U'
        assert result['parametric'] is False
        assert result['effect_measure'] == 'r'
        assert -1 < result['effect_size'] < 0

    def test_force_nonparametric(self, normal_quantiles):
        """force overrides the assumption-based choice."""
        result = stats.compare_two_groups(normal_quantiles, normal_quantiles + 1, force='nonparametric')
        assert result['test'] == 'Mann-Whitney U'

    def test_invalid_force(self, normal_quantiles):
        """Unknown force values are rejected."""
        with pytest.raises(ValueError, match="force"):
            stats.compare_two_groups(normal_quantiles, normal_quantiles, force='robust')

    def test_too_small_group(self, normal_quantiles):
        """Each group needs two observations."""
        with pytest.raises(ValueError):
            stats.compare_two_groups(normal_quantiles, [1.0])

    def test_assumptions_reported(self, normal_quantiles):
        """Diagnostics are attached under the group labels."""
        result = stats.compare_two_groups(normal_quantiles, normal_quantiles + 1, labels=('Male', 'Female'))
        assert set(result['assumptions']['normality']) == {'Male', 'Female'}
        assert 'variance' in result['assumptions']
        assert result['group_stats']['Female']['n'] == 30


class TestComparePaired:
    """Tests for compare_paired."""

    def test_paired_t(self, normal_quantiles):
        """Normal differences use the paired t-test."""
        rng = np.random.default_rng(0)
        before = normal_quantiles * 10 + 70
        after = before + rng.permutation(normal_quantiles) * 2 + 5
        result = stats.compare_paired(before, after)

        assert result['test'] == 'Paired t-test'
        assert result['mean_difference'] == pytest.approx(5.0)
        assert result['statistic'] > 0
        assert result['significant'] is True
        assert result['df'] == 29

    def test_wilcoxon(self, normal_quantiles, skewed_values):
        """Non-normal differences use Wilcoxon signed-rank."""
        before = normal_quantiles * 10 + 70
        after = before + skewed_values
        result = stats.compare_paired(before, after)

        assert result['test'] == 'Wilcoxon signed-rank'
        assert result['effect_size'] == pytest.approx(1.0)
        assert result['significant'] is True

    def test_incomplete_pairs_dropped(self):
        """Pairs with a missing value are left out."""
        result = stats.compare_paired([1, 2, 3, np.nan, 5], [2, 4, np.nan, 5, 9])
        assert result['n_pairs'] == 3

    def test_length_mismatch(self):
        """Paired samples must align."""
        with pytest.raises(ValueError, match="length"):
            stats.compare_paired([1, 2, 3], [1, 2])

    def test_all_zero_differences(self):
        """Identical measurements cannot be compared."""
        with pytest.raises(ValueError, match="zero"):
            stats.compare_paired([1, 2, 3], [1, 2, 3])


class TestCompareGroups:
    """Tests for compare_groups."""

    def test_anova(self, three_group_frame):
        """Normal groups with equal variances use one-way ANOVA."""
        groups = [g['score'] for _, g in three_group_frame.groupby('school')]
        result = stats.compare_groups(*groups, labels=['A', 'B', 'C'])

        scores = three_group_frame['score']
        ss_total = ((scores - scores.mean()) ** 2).sum()
        ss_between = 30 * (10 ** 2 + 0 + 10 ** 2)

        assert result['test'] == 'One-way ANOVA'
        assert result['df_between'] == 2
        assert result['df_within'] == 87
        assert result['effect_size'] == pytest.approx(ss_between / ss_total)
        assert result['significant'] is True

    def test_kruskal(self, normal_quantiles, skewed_values):
        """A non-normal group switches to Kruskal-Wallis."""
        result = stats.compare_groups(normal_quantiles, normal_quantiles + 1, skewed_values)
        assert result['test'] == 'Kruskal-Wallis H'
        assert result['effect_measure'] == 'epsilon_squared'
        assert result['df'] == 2

    def test_needs_two_groups(self, normal_quantiles):
        """A single group is rejected."""
        with pytest.raises(ValueError):
            stats.compare_groups(normal_quantiles)

    def test_label_count(self, normal_quantiles):
        """Labels must match the groups."""
        with pytest.raises(ValueError, match="labels"):
            stats.compare_groups(normal_quantiles, normal_quantiles, labels=['only'])


class TestCorrelate:
    """Tests for correlate."""

    def test_pearson(self, normal_quantiles):
        """Two normal variables use Pearson r."""
        result = stats.correlate(normal_quantiles, 2 * normal_quantiles + 1)
        assert result['test'] == 'Pearson r'
        assert result['statistic'] == pytest.approx(1.0)
        assert result['df'] == 28

    def test_spearman(self, normal_quantiles, skewed_values):
        """A non-normal variable switches to Spearman rho."""
        result = stats.correlate(normal_quantiles, skewed_values)
        assert result['test'] == 'Spearman rho'
        assert result['statistic'] == pytest.approx(1.0)
        assert result['effect_label'] == 'Large'

    def test_pairwise_complete(self, normal_quantiles):
        """Incomplete pairs are dropped."""
        y = (2 * normal_quantiles).copy()
        y[0] = np.nan
        result = stats.correlate(normal_quantiles, y)
        assert result['n'] == 29

    def test_too_few_pairs(self):
        """At least three pairs are needed."""
        with pytest.raises(ValueError):
            stats.correlate([1, 2], [3, 4])


class TestAssociation:
    """Tests for the chi-square / Fisher choice."""

    def test_chi_square(self):
        """Adequate expected counts use chi-square."""
        result = stats.test_association([[30, 20], [20, 30]])
        assert result['test'] == 'Chi-square'
        assert result['df'] == 1
        assert result['effect_size'] == pytest.approx(0.2)
        assert result['assumptions']['expected_counts']['satisfied'] is True

    def test_fisher_for_sparse_2x2(self):
        """Expected counts below 5 in a 2x2 table use Fisher's exact test."""
        result = stats.test_association(pd.DataFrame([[3, 1], [1, 3]]))
        assert result['test'] == "Fisher's exact test"
        assert result['odds_ratio'] == pytest.approx(9.0)
        assert result['parametric'] is False

    def test_sparse_larger_table_warns(self):
        """Sparse tables larger than 2x2 stay on chi-square with a warning."""
        result = stats.test_association([[2, 1], [1, 2], [3, 3]])
        assert result['test'] == 'Chi-square'
        assert 'warning' in result['assumptions']

    def test_fisher_forced_on_large_table(self):
        """Fisher's exact test is only available for 2x2 tables."""
        with pytest.raises(ValueError, match="2x2"):
            stats.test_association([[5, 5], [5, 5], [5, 5]], force='nonparametric')

    def test_empty_column_uses_fisher(self):
        """A 2x2 table with an all-zero column goes to Fisher with no Cramer's V."""
        result = stats.test_association([[0, 3], [0, 4]])
        assert result['test'] == "Fisher's exact test"
        assert result['p_value'] == pytest.approx(1.0)
        assert np.isnan(result['effect_size'])
        assert result['effect_label'] == 'n/a'
        assert result['assumptions']['expected_counts']['min_expected'] == 0

    def test_empty_row_rejected_for_chi_square(self):
        """Chi-square cannot run when a margin is zero."""
        with pytest.raises(ValueError, match="non-zero"):
            stats.test_association([[0, 0], [3, 4]], force='parametric')

    def test_forced_chi_square_still_warns(self):
        """Sparse tables keep their warning when chi-square is forced."""
        result = stats.test_association([[3, 1], [1, 3]], force='parametric')
        assert result['test'] == 'Chi-square'
        assert 'warning' in result['assumptions']

    def test_bad_shape(self):
        """One-dimensional input is rejected."""
        with pytest.raises(ValueError):
            stats.test_association([1, 2, 3])


class TestSelectTest:
    """Tests for the select_test dispatcher."""

    def test_two_levels_use_two_group_test(self, normal_quantiles):
        """Two group levels route to compare_two_groups."""
        df = pd.DataFrame({
            'math': np.concatenate([normal_quantiles * 5 + 70, normal_quantiles * 5 + 72]),
            'gender': ['Male'] * 30 + ['Female'] * 30,
        })
        result = stats.select_test(df, 'math', group='gender')
        assert result['test'] == "Student's t-test"
        assert result['outcome'] == 'math'
        assert result['group'] == 'gender'
        assert set(result['group_stats']) == {'Female', 'Male'}

    def test_anova_with_posthoc(self, three_group_frame):
        """A significant ANOVA carries Tukey comparisons."""
        result = stats.select_test(three_group_frame, 'score', group='school')
        assert result['test'] == 'One-way ANOVA'
        posthoc = result['posthoc']
        assert len(posthoc) == 3
        assert posthoc['significant'].all()

    def test_paired_design(self):
        """Paired design compares two columns row by row."""
        df = pd.DataFrame({'pre': [60, 62, 65, 70, 71], 'post': [64, 65, 70, 72, 78]})
        result = stats.select_test(df, 'pre', design='paired', by='post')
        assert result['n_pairs'] == 5
        assert result['by'] == 'post'

    def test_correlation_design(self, normal_quantiles):
        """Correlation design labels the normality checks by column."""
        df = pd.DataFrame({'math': normal_quantiles, 'reading': normal_quantiles * 3})
        result = stats.select_test(df, 'math', design='correlation', by='reading')
        assert set(result['assumptions']['normality']) == {'math', 'reading'}

    def test_association_design(self):
        """Association design cross-tabulates two categorical columns."""
        df = pd.DataFrame({
            'gender': ['M'] * 50 + ['F'] * 50,
            'passed': ['yes'] * 30 + ['no'] * 20 + ['yes'] * 20 + ['no'] * 30,
        })
        result = stats.select_test(df, 'gender', group='passed', design='association')
        assert result['test'] == 'Chi-square'
        assert result['n'] == 100

    def test_unknown_design(self, book_example):
        """Unknown designs are rejected."""
        with pytest.raises(ValueError, match="design"):
            stats.select_test(book_example, 'math', group='gender', design='mixed')

    def test_missing_column(self, book_example):
        """Unknown columns raise KeyError."""
        with pytest.raises(KeyError):
            stats.select_test(book_example, 'history', group='gender')

    def test_missing_second_variable(self, book_example):
        """Paired design needs by."""
        with pytest.raises(ValueError, match="by"):
            stats.select_test(book_example, 'math', design='paired')


class TestReporting:
    """Tests for run_tukey_hsd, results_table and print_test_result."""

    def test_tukey_columns(self, three_group_frame):
        """Tukey output has one row per pair."""
        posthoc = stats.run_tukey_hsd(three_group_frame, 'score', 'school')
        assert list(posthoc.columns) == [
            'group1', 'group2', 'mean_diff', 'p_value', 'lower', 'upper', 'significant'
        ]
        row = posthoc[(posthoc['group1'] == 'A') & (posthoc['group2'] == 'C')]
        assert row['mean_diff'].iloc[0] == pytest.approx(20.0, abs=0.01)

    def test_results_table(self, three_group_frame):
        """Results flatten into one row each."""
        results = [
            stats.select_test(three_group_frame, 'score', group='school'),
            stats.test_association([[30, 20], [20, 30]]),
        ]
        table = stats.results_table(results)
        assert len(table) == 2
        assert table.loc[0, 'outcome'] == 'score'
        assert table.loc[1, 'test'] == 'Chi-square'

    def test_print_test_result(self, three_group_frame, capsys):
        """Console output includes diagnostics and the effect size."""
        result = stats.select_test(three_group_frame, 'score', group='school')
        stats.print_test_result(result)
        out = capsys.readouterr().out
        assert "One-way ANOVA: score ~ school" in out
        assert "Normality [A]" in out
        assert "eta_squared" in out

    def test_print_untested_variance(self, normal_quantiles, capsys):
        """An equal-variance check that could not run is shown as not tested."""
        result = stats.compare_two_groups(normal_quantiles, normal_quantiles + 1)
        result['assumptions']['variance']['homogeneous'] = None
        stats.print_test_result(result)
        out = capsys.readouterr().out
        assert "(not tested)" in out
        assert "(no)" not in out
