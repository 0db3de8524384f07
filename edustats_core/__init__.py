"""
EduStats Core Library
=====================

Student-records workflow for educational research: import, tidying,
descriptive statistics and assumption-driven test selection.

Modules:
    config   - Global configuration parameters
    data     - Data loading and sample data
    tidy     - Missing data, recoding, reshaping, joining
    describe - Descriptive statistics
    stats    - Assumption checks and inferential tests
    viz      - Visualization utilities
    output   - Output naming and saving
"""

from . import config
from . import data
from . import tidy
from . import describe
from . import stats
from . import viz
from . import output

__version__ = '1.0.0'

__all__ = [
    'config',
    'data',
    'tidy',
    'describe',
    'stats',
    'viz',
    'output',
]
