"""
WHO Child Growth Standards percentile engine.

Converts height, weight, BMI and head circumference measurements of children
aged 0-60 months into LMS z-scores, percentiles and attention bands.
"""

from .age import age_in_months
from .calculations import bmi, classify, format_percentile, get_percentile_status
from .engine import (
    calculate_age_in_months,
    calculate_bmi,
    calculate_percentile,
    compute,
    generate_growth_chart_data,
    get_percentile_bands,
    score,
    score_measurements,
)
from .exceptions import (
    GrowthEngineError,
    OutOfRange,
    ReferenceDataError,
    ValidationError,
)
from .interpolation import interpolate_lms, lookup
from .models import LMS, Measurement, Metric, ReferenceRow, ScoreResult, Sex, Status
from .reference import ReferenceDataStore, ReferenceTable, load_reference_data
from .zscores import lms_value, lms_zscore, to_percentile, z_score

__all__ = [
    "age_in_months",
    "bmi",
    "calculate_age_in_months",
    "calculate_bmi",
    "calculate_percentile",
    "classify",
    "compute",
    "format_percentile",
    "generate_growth_chart_data",
    "get_percentile_bands",
    "get_percentile_status",
    "interpolate_lms",
    "lms_value",
    "lms_zscore",
    "load_reference_data",
    "lookup",
    "score",
    "score_measurements",
    "to_percentile",
    "z_score",
    "GrowthEngineError",
    "LMS",
    "Measurement",
    "Metric",
    "OutOfRange",
    "ReferenceDataError",
    "ReferenceDataStore",
    "ReferenceRow",
    "ReferenceTable",
    "ScoreResult",
    "Sex",
    "Status",
    "ValidationError",
]
