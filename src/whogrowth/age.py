"""
Calendar-accurate age in completed months.

WHO growth standards are indexed by completed months, so ages are counted on
the calendar (a month is credited once its day-of-month is reached) rather
than by dividing a day count by an average month length.
"""

from datetime import date, datetime
from typing import Optional, Union

import pandas as pd

from .exceptions import ValidationError

DateLike = Union[date, datetime, str, pd.Timestamp]


def _to_date(value: DateLike, name: str) -> date:
    """Resolve a date, datetime, Timestamp or ISO-8601 string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            parsed = pd.Timestamp(value)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Invalid {name} '{value}': {e}") from e
        if pd.isna(parsed):
            raise ValidationError(f"Invalid {name} '{value}'")
        return parsed.date()
    raise ValidationError(
        f"{name} must be a date, datetime or ISO-8601 string, got {type(value).__name__}"
    )


def age_in_months(
    birth_date: DateLike, reference_date: Optional[DateLike] = None
) -> int:
    """
    Count completed calendar months between two dates.

    A month is credited only once the reference day-of-month reaches the birth
    day-of-month: born 2023-01-15, on 2023-03-10 the child is 1 month old.

    Args:
        birth_date: Date of birth
        reference_date: Observation date; defaults to today (display use only,
            percentile scoring should pass the measurement date)

    Returns:
        Whole months elapsed

    Raises:
        ValidationError: If reference_date precedes birth_date or a date
            cannot be parsed.
    """
    birth = _to_date(birth_date, "birth_date")
    reference = (
        date.today()
        if reference_date is None
        else _to_date(reference_date, "reference_date")
    )
    if reference < birth:
        raise ValidationError(
            f"Reference date {reference.isoformat()} is before birth date "
            f"{birth.isoformat()}"
        )

    months = (reference.year - birth.year) * 12 + (reference.month - birth.month)
    if reference.day < birth.day:
        months -= 1
    return months
