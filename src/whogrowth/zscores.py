"""
LMS z-score and percentile utilities.

Implements the LMS method (Cole, 1990) used by the WHO Child Growth Standards:
a measurement is Box-Cox transformed with age/sex-specific L (power), M
(median) and S (coefficient of variation) into a standard-normal z-score, and
the z-score is mapped to a percentile through the normal CDF.

References:
- Cole, T.J. (1990). "The LMS method for constructing normalized growth standards."
  European Journal of Clinical Nutrition, 44(1), 45-60.
- WHO Multicentre Growth Reference Study Group (2006). WHO Child Growth
  Standards: Methods and development.
"""

import math

import numpy as np
from numba import jit
from scipy import stats

from .config import L_ZERO_THRESHOLD
from .exceptions import ValidationError


@jit(nopython=True, cache=True)
def lms_zscore(
    X: np.ndarray, L: np.ndarray, M: np.ndarray, S: np.ndarray
) -> np.ndarray:
    """
    Calculate LMS z-scores for 1-D arrays of values and LMS parameters.

    For L ≠ 0: z = ((X/M)^L - 1) / (L * S)
    For L ≈ 0: z = ln(X/M) / S

    Entries with non-finite inputs, X <= 0, M <= 0 or S <= 0 come back as NaN
    so a batch never fails on a single bad row.

    Args:
        X: Observed values (cm, kg or kg/m²)
        L: Lambda (Box-Cox power)
        M: Mu (median)
        S: Sigma (coefficient of variation)

    Returns:
        Z-scores, same length as X
    """
    n = X.size
    z = np.full(n, np.nan)
    for i in range(n):
        x, lam, mu, sigma = X[i], L[i], M[i], S[i]
        if not (
            np.isfinite(x)
            and np.isfinite(lam)
            and np.isfinite(mu)
            and np.isfinite(sigma)
        ):
            continue
        if x <= 0 or mu <= 0 or sigma <= 0:
            continue
        if abs(lam) < L_ZERO_THRESHOLD:
            z[i] = np.log(x / mu) / sigma
        else:
            z[i] = ((x / mu) ** lam - 1.0) / (lam * sigma)
    return z


def z_score(value: float, L: float, M: float, S: float) -> float:
    """
    Box-Cox transform a single measurement to a z-score.

    No clamping is applied; |z| > 5 is a valid result.

    Raises:
        ValidationError: If value, M or S is not a positive finite number.
    """
    if not math.isfinite(value) or value <= 0:
        raise ValidationError(f"Measurement value must be positive, got {value}")
    if not (math.isfinite(M) and M > 0 and math.isfinite(S) and S > 0):
        raise ValidationError(f"Invalid LMS parameters M={M}, S={S}")

    if abs(L) < L_ZERO_THRESHOLD:
        return math.log(value / M) / S
    return ((value / M) ** L - 1.0) / (L * S)


def lms_value(z: float, L: float, M: float, S: float) -> float:
    """
    Inverse LMS transform: the measurement that sits at z-score ``z``.

    Formula: M * (1 + L*S*z)^(1/L), or M * exp(S*z) when L ≈ 0.
    Returns NaN where 1 + L*S*z <= 0, as the curve has no real value there.
    """
    if abs(L) < L_ZERO_THRESHOLD:
        return M * math.exp(S * z)
    base = 1.0 + L * S * z
    if base <= 0:
        return math.nan
    return M * base ** (1.0 / L)


def to_percentile(z: float) -> float:
    """
    Convert a z-score to a percentile via the standard normal CDF.

    In double precision the CDF saturates: beyond roughly |z| > 8.3 the result
    is exactly 100.0 (and underflows towards 0.0 far below), so extreme
    z-scores can return the closed bounds of the 0-100 range.

    Raises:
        ValidationError: If z is NaN.
    """
    if math.isnan(z):
        raise ValidationError("Cannot convert a NaN z-score to a percentile")
    return float(stats.norm.cdf(z)) * 100.0


def percentile_to_zscore(percentile: float) -> float:
    """Z-score at a percentile strictly between 0 and 100."""
    if not 0.0 < percentile < 100.0:
        raise ValidationError(
            f"Percentile must be strictly between 0 and 100, got {percentile}"
        )
    return float(stats.norm.ppf(percentile / 100.0))
