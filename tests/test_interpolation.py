import numpy as np
import pytest
from hypothesis import given, strategies as st

from whogrowth.exceptions import OutOfRange, ValidationError
from whogrowth.interpolation import in_reference_range, interpolate_lms, lookup
from whogrowth.models import LMS, Metric, Sex


def test_tc001_exact_tabulated_age_returns_row(store) -> None:
    """Tabulated ages return the stored triplet unmodified"""
    assert lookup(Metric.HEIGHT, Sex.MALE, 24) == LMS(1.0, 87.8, 0.0334)
    assert lookup("weight", "female", 4.0) == LMS(-0.005, 6.4237, 0.12402)


def test_tc002_every_tabulated_age_round_trips(store) -> None:
    """No interpolation drift at any table point"""
    for (metric, sex), table in store.items():
        for row in table.rows():
            assert lookup(metric, sex, float(row.age_months), store) == row.lms


def test_tc003_linear_interpolation_between_rows() -> None:
    """13 months sits a third of the way between the 12 and 15 month rows"""
    L, M, S = lookup(Metric.HEIGHT, Sex.MALE, 13)
    assert L == pytest.approx(1.0)
    assert M == pytest.approx(75.7 + (79.1 - 75.7) / 3)
    assert S == pytest.approx(0.03137 + (0.03181 - 0.03137) / 3)


def test_tc004_fractional_age_within_monthly_rows() -> None:
    """Half a month interpolates each parameter independently"""
    L, M, S = lookup(Metric.BMI, Sex.FEMALE, 0.5)
    assert L == pytest.approx((0.0631 + -0.1163) / 2)
    assert M == pytest.approx((13.3363 + 14.5679) / 2)
    assert S == pytest.approx((0.09274 + 0.09498) / 2)


def test_tc005_uneven_spacing_uses_bracketing_rows(sparse_store) -> None:
    """Age 4 brackets between rows at 2 and 6, not by index offset"""
    assert tuple(lookup(Metric.HEIGHT, Sex.MALE, 4, sparse_store)) == pytest.approx(
        (1.0, 14.0, 0.1)
    )
    assert lookup(Metric.BMI, Sex.FEMALE, 33, sparse_store).M == pytest.approx(43.0)


@pytest.mark.parametrize("age", [-0.01, 60.01, 61, 72, float("nan")])
def test_tc006_out_of_range_signals(age: float) -> None:
    """Ages outside [0, 60] raise the internal OutOfRange signal"""
    with pytest.raises(OutOfRange):
        lookup(Metric.WEIGHT, Sex.MALE, age)


def test_tc007_range_bounds_are_inclusive() -> None:
    assert in_reference_range(0.0)
    assert in_reference_range(60.0)
    assert not in_reference_range(60.5)
    assert lookup(Metric.WEIGHT, Sex.MALE, 60).M == pytest.approx(17.3069)


def test_tc008_unsupported_metric_or_sex() -> None:
    with pytest.raises(ValidationError, match="Unsupported metric"):
        lookup("arm_circumference", Sex.MALE, 12)
    with pytest.raises(ValidationError, match="Unsupported sex"):
        lookup(Metric.HEIGHT, "unknown", 12)


def test_tc009_vectorised_matches_scalar() -> None:
    """interpolate_lms agrees with lookup and NaNs out-of-range ages"""
    ages = np.array([0.0, 2.5, 13.0, 24.0, 59.9, 60.0, 61.0, np.nan])
    L, M, S = interpolate_lms(ages, Sex.FEMALE, Metric.WEIGHT)
    for i, age in enumerate(ages):
        if np.isnan(age) or age > 60:
            assert np.isnan(L[i]) and np.isnan(M[i]) and np.isnan(S[i])
        else:
            expected = lookup(Metric.WEIGHT, Sex.FEMALE, age)
            assert (L[i], M[i], S[i]) == pytest.approx(tuple(expected))


@given(age=st.floats(min_value=0.0, max_value=60.0))
def test_tc010_hypothesis_median_between_brackets(age: float) -> None:
    """Interpolated M always lies between the bracketing tabulated medians"""
    table_ages = np.array([0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12] + list(range(15, 61, 3)))
    lower = table_ages[table_ages <= age].max()
    upper = table_ages[table_ages >= age].min()
    m = lookup(Metric.HEIGHT, Sex.FEMALE, age).M
    m_lower = lookup(Metric.HEIGHT, Sex.FEMALE, float(lower)).M
    m_upper = lookup(Metric.HEIGHT, Sex.FEMALE, float(upper)).M
    assert m_lower - 1e-9 <= m <= m_upper + 1e-9
