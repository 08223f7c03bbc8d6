"""
LMS parameter lookup and interpolation.

Reference tables are tabulated at whole months with uneven spacing (monthly
in infancy, quarterly later), so bracketing rows are located by binary search
and L, M and S are each interpolated linearly between them.
"""

import math
from typing import Optional, Tuple

import numpy as np

from .config import MAX_AGE_MONTHS, MIN_AGE_MONTHS
from .exceptions import OutOfRange
from .models import LMS, Metric, Sex, parse_metric, parse_sex
from .reference import ReferenceDataStore, load_reference_data


def _resolve_store(store: Optional[ReferenceDataStore]) -> ReferenceDataStore:
    return load_reference_data() if store is None else store


def in_reference_range(age_months: float) -> bool:
    """True when the age is covered by the WHO 0-60 month standard."""
    return not math.isnan(age_months) and MIN_AGE_MONTHS <= age_months <= MAX_AGE_MONTHS


def lookup(
    metric: Metric,
    sex: Sex,
    age_months: float,
    store: Optional[ReferenceDataStore] = None,
) -> LMS:
    """
    Get the (L, M, S) triplet for a continuous age.

    Tabulated ages return the stored row unchanged; other ages interpolate
    each parameter linearly between the bracketing rows.

    Args:
        metric: Growth metric
        sex: Sex of the child
        age_months: Age in months, may be fractional
        store: Reference store; the bundled WHO store when omitted

    Returns:
        LMS triplet

    Raises:
        OutOfRange: If age_months is outside [0, 60] or NaN.
        ValidationError: If metric or sex is unsupported.
    """
    metric, sex = parse_metric(metric), parse_sex(sex)
    age = float(age_months)
    if not in_reference_range(age):
        raise OutOfRange(age)

    table = _resolve_store(store).table(metric, sex)
    ages = table.ages
    idx = int(np.searchsorted(ages, age, side="left"))
    if idx < len(ages) and ages[idx] == age:
        return table.lms_at(idx)
    if idx == 0 or idx == len(ages):
        # Table does not bracket this age
        raise OutOfRange(age)

    lower, upper = idx - 1, idx
    ratio = (age - ages[lower]) / (ages[upper] - ages[lower])
    return LMS(
        float(table.L[lower] + ratio * (table.L[upper] - table.L[lower])),
        float(table.M[lower] + ratio * (table.M[upper] - table.M[lower])),
        float(table.S[lower] + ratio * (table.S[upper] - table.S[lower])),
    )


def interpolate_lms(
    agemos: np.ndarray,
    sex: Sex,
    metric: Metric,
    store: Optional[ReferenceDataStore] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorised LMS interpolation for many ages of one (metric, sex) pair.

    Ages outside [0, 60] months (and NaN ages) yield NaN parameters.

    Args:
        agemos: Ages in months
        sex: Sex shared by all ages
        metric: Growth metric

    Returns:
        Tuple of (L, M, S) arrays matching the input shape
    """
    metric, sex = parse_metric(metric), parse_sex(sex)
    table = _resolve_store(store).table(metric, sex)

    agemos = np.asarray(agemos, dtype=np.float64)
    in_range = (
        np.isfinite(agemos)
        & (agemos >= max(MIN_AGE_MONTHS, table.ages[0]))
        & (agemos <= min(MAX_AGE_MONTHS, table.ages[-1]))
    )

    L_out = np.full(agemos.shape, np.nan, dtype=np.float64)
    M_out = np.full(agemos.shape, np.nan, dtype=np.float64)
    S_out = np.full(agemos.shape, np.nan, dtype=np.float64)
    if np.any(in_range):
        ages_in = agemos[in_range]
        L_out[in_range] = np.interp(ages_in, table.ages, table.L)
        M_out[in_range] = np.interp(ages_in, table.ages, table.M)
        S_out[in_range] = np.interp(ages_in, table.ages, table.S)

    return L_out, M_out, S_out
