"""Shared fixtures for edustats tests."""

import numpy as np
import pandas as pd
import pytest
from scipy import stats as scipy_stats

from edustats_core import data


@pytest.fixture
def book_example():
    """The fixed four-student table."""
    return data.make_book_example()


@pytest.fixture
def sample_students():
    """Reproducible 50-student table without missing values."""
    return data.make_sample_students(n=50, seed=123)


@pytest.fixture
def normal_quantiles():
    """Exact standard-normal quantiles (n=30): as normal as a sample gets."""
    return scipy_stats.norm.ppf(np.linspace(0.02, 0.98, 30))


@pytest.fixture
def skewed_values(normal_quantiles):
    """Strongly right-skewed (lognormal) sample."""
    return np.exp(1.5 * normal_quantiles)


@pytest.fixture
def three_group_frame(normal_quantiles):
    """Three normal groups with equal spread and well-separated means."""
    q = normal_quantiles * 5
    return pd.DataFrame({
        'score': np.concatenate([q + 60, q + 70, q + 80]),
        'school': ['A'] * 30 + ['B'] * 30 + ['C'] * 30,
    })
