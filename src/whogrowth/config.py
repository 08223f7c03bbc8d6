"""
Constants for the WHO growth percentile engine.
"""

# Reference data resource
REFERENCE_DATA_PACKAGE = "whogrowth.data"
REFERENCE_DATA_FILE = "who_lms.csv"
REFERENCE_COLUMNS = ["metric", "sex", "age_months", "L", "M", "S"]

# WHO Child Growth Standards coverage (months, inclusive)
MIN_AGE_MONTHS = 0.0
MAX_AGE_MONTHS = 60.0

# |L| below this takes the log branch of the LMS transform
L_ZERO_THRESHOLD = 1e-6

# Percentile cut-offs for the attention bands
DANGER_LOW = 3.0
WARNING_LOW = 15.0
WARNING_HIGH = 85.0
DANGER_HIGH = 97.0

# Percentiles drawn as reference curves on growth charts
BAND_PERCENTILES = {
    "p3": 3.0,
    "p15": 15.0,
    "p50": 50.0,
    "p85": 85.0,
    "p97": 97.0,
}

# WHO restricted cut-offs for biologically implausible z-scores: (low, high)
IMPLAUSIBLE_Z_LIMITS = {
    "height": (-6.0, 6.0),
    "weight": (-6.0, 5.0),
    "bmi": (-5.0, 5.0),
    "head_circumference": (-5.0, 5.0),
}
