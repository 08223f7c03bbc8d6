import pytest
import pandas as pd

from whogrowth.models import Metric, Sex
from whogrowth.reference import ReferenceDataStore, load_reference_data


@pytest.fixture
def store() -> ReferenceDataStore:
    """The bundled WHO reference store."""
    return load_reference_data()


@pytest.fixture
def sparse_frame() -> pd.DataFrame:
    """Reference frame tabulated at uneven ages: M = 10 + age, L = 1, S = 0.1."""
    ages = [0, 1, 2, 6, 60]
    rows = [
        {
            "metric": metric.value,
            "sex": sex.value,
            "age_months": age,
            "L": 1.0,
            "M": 10.0 + age,
            "S": 0.1,
        }
        for metric in Metric
        for sex in Sex
        for age in ages
    ]
    return pd.DataFrame(rows)


@pytest.fixture
def sparse_store(sparse_frame: pd.DataFrame) -> ReferenceDataStore:
    return ReferenceDataStore.from_frame(sparse_frame)


@pytest.fixture
def sample_measurements() -> pd.DataFrame:
    """Mixed batch of measurements, including one beyond the 60 month standard."""
    return pd.DataFrame(
        {
            "metric": ["height", "weight", "bmi", "head_circumference", "height"],
            "sex": ["male", "female", "M", "F", "female"],
            "age_months": [24.0, 12.0, 30.5, 6.0, 72.0],
            "value": [87.8, 9.2, 15.9, 42.0, 115.0],
        }
    )
