"""
Growth percentile engine entry points.

Sequences age lookup, LMS interpolation, the Box-Cox z-score transform, the
normal-CDF percentile conversion and status classification. Ages outside the
WHO 0-60 month standard give an empty ``ScoreResult`` instead of an error;
malformed input raises ``ValidationError``.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
from scipy import stats

from .age import DateLike, age_in_months
from .calculations import bmi, classify, classify_array
from .config import BAND_PERCENTILES, L_ZERO_THRESHOLD, MAX_AGE_MONTHS
from .exceptions import OutOfRange, ValidationError
from .flags import implausible_flags, is_implausible
from .interpolation import interpolate_lms, lookup
from .models import Measurement, Metric, ScoreResult, Sex, parse_metric, parse_sex
from .reference import ReferenceDataStore
from .zscores import lms_value, lms_zscore, percentile_to_zscore, to_percentile, z_score

ValueOrComponents = Union[float, Sequence[float], Mapping[str, float]]

SCORE_COLUMNS = ["metric", "sex", "age_months", "value"]


def _resolve_value(metric: Metric, value_or_components: ValueOrComponents) -> Any:
    """Return the value to score, deriving BMI from (weight_kg, height_cm) if given."""
    if isinstance(value_or_components, Mapping):
        components = value_or_components
        if metric is not Metric.BMI:
            raise ValidationError(
                f"Weight/height components are only accepted for 'bmi', not '{metric.value}'"
            )
        missing = [k for k in ("weight_kg", "height_cm") if k not in components]
        if missing:
            raise ValidationError(f"BMI components missing keys: {missing}")
        return bmi(components["weight_kg"], components["height_cm"])

    if isinstance(value_or_components, (tuple, list)):
        if metric is not Metric.BMI:
            raise ValidationError(
                f"Weight/height components are only accepted for 'bmi', not '{metric.value}'"
            )
        if len(value_or_components) != 2:
            raise ValidationError(
                "BMI components must be a (weight_kg, height_cm) pair"
            )
        weight_kg, height_cm = value_or_components
        return bmi(weight_kg, height_cm)

    return value_or_components


def score(
    measurement: Measurement, store: Optional[ReferenceDataStore] = None
) -> ScoreResult:
    """Score an already-validated Measurement."""
    try:
        L, M, S = lookup(
            measurement.metric, measurement.sex, measurement.age_months, store
        )
    except OutOfRange:
        logging.info(
            f"Age {measurement.age_months:g} months is outside the WHO 0-60 month "
            "standard - no percentile computed"
        )
        return ScoreResult.not_applicable()

    z = z_score(measurement.value, L, M, S)
    percentile = to_percentile(z)
    return ScoreResult(
        z_score=z,
        percentile=percentile,
        status=classify(percentile),
        implausible=is_implausible(z, measurement.metric),
    )


def compute(
    metric: Union[Metric, str],
    value_or_components: ValueOrComponents,
    age_months: float,
    sex: Union[Sex, str],
    store: Optional[ReferenceDataStore] = None,
) -> ScoreResult:
    """
    Compute z-score, percentile and status for one measurement.

    Args:
        metric: 'height', 'weight', 'bmi' or 'head_circumference'
        value_or_components: The measured value; for 'bmi' either a BMI value,
            a (weight_kg, height_cm) pair or a mapping with those keys
        age_months: Age at measurement in months
        sex: 'male' or 'female' ('M'/'F' accepted)
        store: Reference store; the bundled WHO store when omitted

    Returns:
        ScoreResult; all scores None if the age is outside 0-60 months

    Raises:
        ValidationError: For non-positive values, unsupported metric or sex,
            negative age, or misplaced BMI components.
    """
    metric = parse_metric(metric)
    value = _resolve_value(metric, value_or_components)
    measurement = Measurement.create(
        value=value, metric=metric, age_months=age_months, sex=sex
    )
    return score(measurement, store)


def calculate_percentile(
    value: float,
    age_months: float,
    sex: Union[Sex, str],
    metric: Union[Metric, str],
) -> Optional[float]:
    """Percentile (0-100) of a measurement, or None when age is out of range."""
    return compute(metric, value, age_months, sex).percentile


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    """BMI in kg/m² from weight in kg and height in cm."""
    return bmi(weight_kg, height_cm)


def calculate_age_in_months(
    birth_date: DateLike, reference_date: Optional[DateLike] = None
) -> int:
    """Completed calendar months between birth and reference date (default today)."""
    return age_in_months(birth_date, reference_date)


def get_percentile_bands(
    metric: Union[Metric, str],
    sex: Union[Sex, str],
    age_months: float,
    store: Optional[ReferenceDataStore] = None,
) -> Optional[Dict[str, float]]:
    """
    Measurement values at the 3rd, 15th, 50th, 85th and 97th percentiles.

    Returns:
        Dict keyed 'p3' ... 'p97', or None if age is out of range
    """
    try:
        L, M, S = lookup(metric, sex, age_months, store)
    except OutOfRange:
        return None
    return {
        name: lms_value(percentile_to_zscore(p), L, M, S)
        for name, p in BAND_PERCENTILES.items()
    }


def _lms_values(z: float, L: np.ndarray, M: np.ndarray, S: np.ndarray) -> np.ndarray:
    """Vectorised inverse LMS transform at a fixed z-score."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(
            np.abs(L) < L_ZERO_THRESHOLD,
            M * np.exp(S * z),
            M * np.power(1 + L * S * z, 1 / L),
        )


def generate_growth_chart_data(
    measurements: Union[pd.DataFrame, Iterable[Mapping[str, Any]]],
    sex: Union[Sex, str],
    metric: Union[Metric, str],
    max_age_months: int = 60,
    store: Optional[ReferenceDataStore] = None,
) -> pd.DataFrame:
    """
    Build monthly percentile curves with a child's measurements overlaid.

    Args:
        measurements: Child data with 'age_months' and 'value' (and optionally
            'percentile') per point
        sex: Sex of the child
        metric: Growth metric
        max_age_months: Last month to include, capped at 60

    Returns:
        DataFrame with one row per month: age_months, p3, p15, p50, p85, p97,
        child_value, child_percentile (NaN where the child has no point)
    """
    metric, sex = parse_metric(metric), parse_sex(sex)
    if max_age_months < 0:
        raise ValidationError(f"max_age_months must be >= 0, got {max_age_months}")

    ages = np.arange(0, int(min(max_age_months, MAX_AGE_MONTHS)) + 1, dtype=np.float64)
    L, M, S = interpolate_lms(ages, sex, metric, store)
    chart = pd.DataFrame({"age_months": ages.astype(int)})
    for name, p in BAND_PERCENTILES.items():
        chart[name] = _lms_values(percentile_to_zscore(p), L, M, S)

    chart["child_value"] = np.nan
    chart["child_percentile"] = np.nan

    child = pd.DataFrame(measurements)
    if child.empty:
        return chart
    for col in ("age_months", "value"):
        if col not in child.columns:
            raise ValidationError(f"Column '{col}' does not exist in measurements")

    child_ages = pd.to_numeric(child["age_months"], errors="coerce").to_numpy(
        dtype=np.float64
    )
    if not np.all(np.isfinite(child_ages)):
        raise ValidationError("Child measurement ages must be finite numbers")

    # Halves round up; later points win when several land in the same month
    child = child.assign(month=np.floor(child_ages + 0.5).astype(int))
    child = child.drop_duplicates(subset="month", keep="last").set_index("month")
    for month, point in child.iterrows():
        if month not in chart.index:
            continue
        percentile = point.get("percentile", np.nan)
        if pd.isna(percentile):
            percentile = compute(
                metric, float(point["value"]), float(point["age_months"]), sex, store
            ).percentile
        chart.loc[month, "child_value"] = point["value"]
        chart.loc[month, "child_percentile"] = (
            np.nan if percentile is None else percentile
        )

    return chart


def score_measurements(
    df: pd.DataFrame, store: Optional[ReferenceDataStore] = None
) -> pd.DataFrame:
    """
    Score a DataFrame of measurements in bulk.

    Expects columns metric, sex, age_months and value. Rows are grouped by
    (metric, sex) and scored with the vectorised LMS path.

    Returns:
        Copy of df with z_score, percentile, status and implausible columns.
        Rows with ages outside 0-60 months get NaN scores and status None.

    Raises:
        ValidationError: If a column is missing or any row has an unsupported
            metric/sex, a non-positive value or a negative/missing age.
    """
    missing = [c for c in SCORE_COLUMNS if c not in df.columns]
    if missing:
        raise ValidationError(f"Missing required columns: {missing}")

    result = df.copy()
    n = len(result)
    z_out = np.full(n, np.nan, dtype=np.float64)
    implausible_out = np.zeros(n, dtype=bool)
    if n == 0:
        result["z_score"] = z_out
        result["percentile"] = z_out
        result["status"] = pd.Series(dtype=object)
        result["implausible"] = implausible_out
        return result

    metrics = np.array([parse_metric(m) for m in result["metric"]], dtype=object)
    sexes = np.array([parse_sex(s) for s in result["sex"]], dtype=object)
    agemos = pd.to_numeric(result["age_months"], errors="coerce").to_numpy(
        dtype=np.float64
    )
    values = pd.to_numeric(result["value"], errors="coerce").to_numpy(dtype=np.float64)

    bad_values = ~np.isfinite(values) | (values <= 0)
    if np.any(bad_values):
        raise ValidationError(
            f"Measurement values must be positive numbers "
            f"({int(bad_values.sum())} invalid rows)"
        )
    bad_ages = ~np.isfinite(agemos) | (agemos < 0)
    if np.any(bad_ages):
        raise ValidationError(
            f"Ages must be non-negative finite numbers "
            f"({int(bad_ages.sum())} invalid rows)"
        )

    out_of_range = agemos > MAX_AGE_MONTHS
    if np.any(out_of_range):
        logging.info(
            f"{int(out_of_range.sum())} measurements older than "
            f"{MAX_AGE_MONTHS:g} months - scores set to NaN"
        )

    for metric in Metric:
        for sex in Sex:
            mask = (metrics == metric) & (sexes == sex)
            if not np.any(mask):
                continue
            L, M, S = interpolate_lms(agemos[mask], sex, metric, store)
            z = lms_zscore(values[mask], L, M, S)
            z_out[mask] = z
            implausible_out[mask] = implausible_flags(z, metric)

    percentile_out = np.where(np.isnan(z_out), np.nan, stats.norm.cdf(z_out) * 100.0)
    result["z_score"] = z_out
    result["percentile"] = percentile_out
    result["status"] = classify_array(percentile_out)
    result["implausible"] = implausible_out
    return result
