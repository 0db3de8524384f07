"""
Global Configuration for the EduStats Framework
===============================================

Central location for default parameters used across all analysis scripts.
Override these in individual analysis scripts as needed.
"""

# =============================================================================
# DATA CONFIGURATION
# =============================================================================
DEFAULT_DATA_FILE = 'Data/student_scores.csv'

ID_COL = 'student_id'
SCORE_COLUMNS = ['math', 'reading', 'science']
AVG_SCORE_COL = 'avg_score'

GENDER_LABELS = {
    1: 'Male',
    2: 'Female',
}

SES_LEVELS = ['Low', 'Middle', 'High']

# Extensions understood by data.load_data
DELIMITED_EXTENSIONS = {
    '.csv': ',',
    '.tsv': '\t',
    '.tab': '\t',
    '.txt': None,    # sniffed
}
SPREADSHEET_EXTENSIONS = ('.xlsx', '.xls')
SPSS_EXTENSIONS = ('.sav',)
STATA_EXTENSIONS = ('.dta',)

# =============================================================================
# RECODING CONFIGURATION
# =============================================================================
# Inner cut points; x >= cut moves to the next band
DEFAULT_SCORE_THRESHOLDS = [70, 85]
DEFAULT_SCORE_LABELS = ['Low', 'Medium', 'High']

# =============================================================================
# INFERENCE CONFIGURATION
# =============================================================================
ALPHA = 0.05
MIN_EXPECTED_COUNT = 5          # chi-square validity rule
DW_LOWER = 1.5                  # Durbin-Watson band for "no autocorrelation"
DW_UPPER = 2.5

# Magnitude thresholds (lower bounds) per effect-size measure
EFFECT_THRESHOLDS = {
    'cohens_d': {0.8: 'Large', 0.5: 'Medium', 0.2: 'Small'},
    'eta_squared': {0.14: 'Large', 0.06: 'Medium', 0.01: 'Small'},
    'epsilon_squared': {0.14: 'Large', 0.06: 'Medium', 0.01: 'Small'},
    'r': {0.5: 'Large', 0.3: 'Medium', 0.1: 'Small'},
    'cramers_v': {0.5: 'Large', 0.3: 'Medium', 0.1: 'Small'},
}

# =============================================================================
# OUTPUT CONFIGURATION
# =============================================================================
DEFAULT_OUTPUT_BASE = 'outputs'
DEFAULT_DPI = 150


def get_effect_label(value: float, measure: str) -> str:
    """Return human-readable magnitude for an effect size."""
    if measure not in EFFECT_THRESHOLDS:
        raise ValueError(f"Unknown effect size measure: {measure!r}")
    magnitude = abs(value)
    for threshold, label in sorted(EFFECT_THRESHOLDS[measure].items(), reverse=True):
        if magnitude >= threshold:
            return label
    return "Negligible"


def get_sig_marker(p_value: float) -> str:
    """Return APA-style significance stars."""
    if p_value < 0.001:
        return "***"
    elif p_value < 0.01:
        return "**"
    elif p_value < 0.05:
        return "*"
    return ""
