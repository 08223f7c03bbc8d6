"""
Biologically implausible value flags.

Uses the WHO restricted cut-offs (WHO Anthro): a z-score beyond them usually
means a measurement or data-entry error. Flags are advisory; z-scores and
percentiles are reported unchanged.
"""

import logging

import numpy as np

from .config import IMPLAUSIBLE_Z_LIMITS
from .models import Metric, parse_metric


def implausible_limits(metric: Metric) -> tuple:
    """(low, high) z-score cut-offs for a metric."""
    return IMPLAUSIBLE_Z_LIMITS[parse_metric(metric).value]


def is_implausible(z: float, metric: Metric) -> bool:
    """True if z falls outside the WHO plausibility window for the metric."""
    low, high = implausible_limits(metric)
    flagged = z < low or z > high
    if flagged:
        logging.warning(
            f"Implausible {parse_metric(metric).value} z-score {z:.2f} "
            f"(outside [{low:g}, {high:g}]) - check units and data entry"
        )
    return flagged


def implausible_flags(z: np.ndarray, metric: Metric) -> np.ndarray:
    """Vectorised ``is_implausible``; NaN z-scores are never flagged."""
    low, high = implausible_limits(metric)
    z = np.asarray(z, dtype=np.float64)
    flags = (z < low) | (z > high)
    return np.where(np.isnan(z), False, flags)
