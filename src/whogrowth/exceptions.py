"""Exception types raised by the growth percentile engine."""


class GrowthEngineError(Exception):
    """Base class for all engine errors."""


class ValidationError(GrowthEngineError, ValueError):
    """Malformed caller input: non-positive value, unknown metric/sex, bad dates."""


class ReferenceDataError(GrowthEngineError, RuntimeError):
    """Bundled reference data is missing or fails integrity checks."""


class OutOfRange(GrowthEngineError, LookupError):
    """
    Age falls outside the tabulated range of the standard.

    Raised by the LMS lookup and mapped to an empty result by callers; it never
    leaves the public API.
    """

    def __init__(self, age_months: float) -> None:
        self.age_months = age_months
        super().__init__(f"Age {age_months} months is outside the reference range")
