"""
Typed inputs and outputs of the growth percentile engine.

Measurements are validated with pydantic at the boundary; everything behind
``Measurement`` can assume a positive finite value, a non-negative age and a
supported metric/sex pair.
"""

from dataclasses import dataclass
from enum import Enum
import math
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError


class Metric(str, Enum):
    HEIGHT = "height"
    WEIGHT = "weight"
    BMI = "bmi"
    HEAD_CIRCUMFERENCE = "head_circumference"


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class Status(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    DANGER = "danger"


_SEX_ALIASES = {"m": Sex.MALE, "f": Sex.FEMALE}


class LMS(NamedTuple):
    """Box-Cox power (L), median (M) and coefficient of variation (S)."""

    L: float
    M: float
    S: float


class ReferenceRow(NamedTuple):
    age_months: int
    L: float
    M: float
    S: float

    @property
    def lms(self) -> LMS:
        return LMS(self.L, self.M, self.S)


def parse_metric(metric: Any) -> Metric:
    """Coerce a metric name to ``Metric``, raising ValidationError if unsupported."""
    if isinstance(metric, Metric):
        return metric
    try:
        return Metric(str(metric).strip().lower())
    except ValueError:
        supported = [m.value for m in Metric]
        raise ValidationError(
            f"Unsupported metric '{metric}'. Supported metrics: {supported}"
        ) from None


def parse_sex(sex: Any) -> Sex:
    """Coerce a sex value ('male'/'female', 'M'/'F') to ``Sex``."""
    if isinstance(sex, Sex):
        return sex
    key = str(sex).strip().lower()
    if key in _SEX_ALIASES:
        return _SEX_ALIASES[key]
    try:
        return Sex(key)
    except ValueError:
        raise ValidationError(
            f"Unsupported sex '{sex}'. Sex values must be 'male' or 'female'"
        ) from None


class Measurement(BaseModel):
    """
    A single anthropometric observation.

    Attributes:
        value: Measured value in the metric's unit (cm, kg or kg/m²)
        metric: Which growth standard the value is scored against
        age_months: Age at the time of measurement, in months
        sex: Sex of the child
    """

    model_config = ConfigDict(frozen=True)

    value: float
    metric: Metric
    age_months: float
    sex: Sex

    @field_validator("metric", mode="before")
    @classmethod
    def normalize_metric(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("sex", mode="before")
    @classmethod
    def normalize_sex(cls, v: Any) -> Any:
        if isinstance(v, str):
            key = v.strip().lower()
            return _SEX_ALIASES.get(key, key)
        return v

    @field_validator("value", "age_months", mode="before")
    @classmethod
    def reject_bool(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("Booleans are not accepted as numbers")
        return v

    @field_validator("value")
    @classmethod
    def value_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("Measurement value must be a positive finite number")
        return v

    @field_validator("age_months")
    @classmethod
    def age_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError("Age in months must be a non-negative finite number")
        return v

    @classmethod
    def create(cls, **kwargs: Any) -> "Measurement":
        """Build a Measurement, re-raising pydantic errors as ValidationError."""
        try:
            return cls(**kwargs)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid measurement: {e}") from e


@dataclass(frozen=True)
class ScoreResult:
    """
    Engine output for one measurement.

    All three scores are None when the age lies outside the standard's
    coverage. ``implausible`` marks z-scores beyond the WHO restricted
    cut-offs; the z-score itself is never capped.
    """

    z_score: Optional[float] = None
    percentile: Optional[float] = None
    status: Optional[Status] = None
    implausible: bool = False

    @property
    def computable(self) -> bool:
        return self.z_score is not None

    @classmethod
    def not_applicable(cls) -> "ScoreResult":
        return cls()
