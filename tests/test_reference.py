import logging

import numpy as np
import pandas as pd
import pytest

from whogrowth.exceptions import ReferenceDataError
from whogrowth.models import Metric, ReferenceRow, Sex
from whogrowth.reference import (
    ReferenceDataStore,
    ReferenceTable,
    load_reference_data,
    validate_loaded_data_integrity,
)


def test_tc001_bundled_store_has_every_metric_and_sex(store) -> None:
    """Every supported metric is tabulated for both sexes"""
    assert len(store) == 8
    for metric in Metric:
        for sex in Sex:
            assert (metric, sex) in store


def test_tc002_tables_cover_zero_to_sixty_months(store) -> None:
    """Tables are sorted, unique and span [0, 60]"""
    for table in store.values():
        assert table.ages[0] == 0
        assert table.ages[-1] == 60
        assert np.all(np.diff(table.ages) > 0)
        assert len(table) == 29


def test_tc003_store_is_cached_singleton() -> None:
    """load_reference_data returns the same instance on every call"""
    assert load_reference_data() is load_reference_data()


def test_tc004_table_arrays_are_read_only(store) -> None:
    """Reference arrays cannot be mutated after loading"""
    table = store.table(Metric.HEIGHT, Sex.MALE)
    with pytest.raises(ValueError):
        table.M[0] = 1.0


def test_tc005_store_mapping_is_read_only(store) -> None:
    """Store exposes no item assignment"""
    with pytest.raises(TypeError):
        store[(Metric.HEIGHT, Sex.MALE)] = None  # type: ignore[index]


def test_tc006_known_row_values(store) -> None:
    """Spot-check the WHO height-for-age boys row at 24 months"""
    table = store.table(Metric.HEIGHT, Sex.MALE)
    rows = table.rows()
    assert ReferenceRow(24, 1.0, 87.8, 0.0334) in rows
    girls_weight = store.table(Metric.WEIGHT, Sex.FEMALE)
    assert girls_weight.row(4) == ReferenceRow(4, -0.005, 6.4237, 0.12402)


def test_tc007_missing_table_raises(sparse_frame) -> None:
    """A store without female head circumference is rejected"""
    frame = sparse_frame[
        ~((sparse_frame["metric"] == "head_circumference") & (sparse_frame["sex"] == "female"))
    ]
    with pytest.raises(ReferenceDataError, match="Missing reference tables"):
        ReferenceDataStore.from_frame(frame)


def test_tc008_duplicate_ages_fail_integrity(sparse_frame, caplog) -> None:
    """Duplicate (metric, sex, age) rows fail validation with a warning"""
    caplog.set_level(logging.WARNING)
    frame = pd.concat([sparse_frame, sparse_frame.iloc[[0]]], ignore_index=True)
    assert validate_loaded_data_integrity(frame) is False
    assert "Duplicate ages" in caplog.text
    with pytest.raises(ReferenceDataError):
        ReferenceDataStore.from_frame(frame)


def test_tc009_non_positive_m_fails_integrity(sparse_frame, caplog) -> None:
    """M <= 0 is rejected"""
    caplog.set_level(logging.WARNING)
    frame = sparse_frame.copy()
    frame.loc[0, "M"] = 0.0
    assert validate_loaded_data_integrity(frame) is False
    assert "Non-positive M or S" in caplog.text


def test_tc010_missing_column_fails_integrity(sparse_frame) -> None:
    """Frames missing an LMS column are rejected"""
    assert validate_loaded_data_integrity(sparse_frame.drop(columns=["S"])) is False
    assert validate_loaded_data_integrity(pd.DataFrame()) is False


def test_tc011_unknown_metric_fails_integrity(sparse_frame) -> None:
    """Unknown metric names are rejected"""
    frame = sparse_frame.copy()
    frame.loc[0, "metric"] = "weight_for_length"
    assert validate_loaded_data_integrity(frame) is False


def test_tc012_table_must_cover_standard_range() -> None:
    """A table stopping short of 60 months is rejected"""
    with pytest.raises(ReferenceDataError, match="does not cover"):
        ReferenceTable(
            metric=Metric.BMI,
            sex=Sex.MALE,
            ages=np.array([0.0, 24.0]),
            L=np.array([1.0, 1.0]),
            M=np.array([13.0, 15.0]),
            S=np.array([0.1, 0.1]),
        )


def test_tc013_table_ages_must_increase() -> None:
    """Unsorted ages are rejected"""
    with pytest.raises(ReferenceDataError, match="strictly increasing"):
        ReferenceTable(
            metric=Metric.BMI,
            sex=Sex.MALE,
            ages=np.array([0.0, 60.0, 30.0]),
            L=np.ones(3),
            M=np.ones(3),
            S=np.full(3, 0.1),
        )
