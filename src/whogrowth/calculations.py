"""
BMI derivation and percentile status classification.
"""

import math
import numbers
from typing import Dict, Union

import numpy as np

from .config import DANGER_HIGH, DANGER_LOW, WARNING_HIGH, WARNING_LOW
from .exceptions import ValidationError
from .models import Status


def bmi(weight_kg: float, height_cm: float) -> float:
    """
    Body mass index in kg/m² from weight (kg) and height (cm).

    Returned at full precision; round only for display.

    Raises:
        ValidationError: If either input is not a positive finite number.
    """
    for name, v in (("weight_kg", weight_kg), ("height_cm", height_cm)):
        if not isinstance(v, numbers.Real) or isinstance(v, bool):
            raise ValidationError(f"{name} must be a number, got {type(v).__name__}")
        if not math.isfinite(v) or v <= 0:
            raise ValidationError(f"{name} must be positive, got {v}")
    height_m = height_cm / 100.0
    return weight_kg / (height_m * height_m)


def classify(percentile: float) -> Status:
    """
    Map a percentile in [0, 100] to an attention band.

    [15, 85] is normal, [3, 15) and (85, 97] are warning, the tails below 3
    and above 97 are danger. Boundaries belong to the band nearer normal.

    Raises:
        ValidationError: If percentile is NaN or outside [0, 100].
    """
    if math.isnan(percentile) or not 0.0 <= percentile <= 100.0:
        raise ValidationError(f"Percentile must be within [0, 100], got {percentile}")

    if percentile < DANGER_LOW:
        return Status.DANGER
    if percentile < WARNING_LOW:
        return Status.WARNING
    if percentile <= WARNING_HIGH:
        return Status.NORMAL
    if percentile <= DANGER_HIGH:
        return Status.WARNING
    return Status.DANGER


def classify_array(percentiles: np.ndarray) -> np.ndarray:
    """Vectorised ``classify``; NaN percentiles map to None."""
    p = np.asarray(percentiles, dtype=np.float64)
    out = np.full(p.shape, None, dtype=object)
    for i in np.flatnonzero(~np.isnan(p)):
        out.flat[i] = classify(float(p.flat[i]))
    return out


def get_percentile_status(percentile: float) -> Dict[str, Union[Status, str]]:
    """
    Status band plus a display label and description for a percentile.

    Returns:
        Dict with 'status', 'label' and 'description'
    """
    status = classify(percentile)
    if percentile < DANGER_LOW:
        label, description = "Very low", "Below the 3rd percentile"
    elif percentile < WARNING_LOW:
        label, description = "Low", "3rd to 15th percentile"
    elif percentile <= WARNING_HIGH:
        label, description = "Normal", "15th to 85th percentile"
    elif percentile <= DANGER_HIGH:
        label, description = "High", "85th to 97th percentile"
    else:
        label, description = "Very high", "Above the 97th percentile"
    return {"status": status, "label": label, "description": description}


def format_percentile(percentile: float) -> str:
    """Round a percentile for display, halves up: 49.6 -> '50%', 48.5 -> '49%'."""
    return f"{math.floor(percentile + 0.5):d}%"
