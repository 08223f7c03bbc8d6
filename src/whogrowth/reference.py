"""
WHO Child Growth Standards reference data.

Loads the bundled LMS tables (0-60 months) for height, weight, BMI and head
circumference into an immutable ``ReferenceDataStore``. The store is built
once per process by ``load_reference_data`` and shared by every computation;
its arrays are flagged read-only so no caller can mutate them.
"""

from dataclasses import dataclass
import functools
from importlib import resources
import logging
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Tuple

import numpy as np
import pandas as pd

from .config import (
    MAX_AGE_MONTHS,
    MIN_AGE_MONTHS,
    REFERENCE_COLUMNS,
    REFERENCE_DATA_FILE,
    REFERENCE_DATA_PACKAGE,
)
from .exceptions import ReferenceDataError
from .models import LMS, Metric, ReferenceRow, Sex

TableKey = Tuple[Metric, Sex]


def _frozen(values: np.ndarray) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class ReferenceTable:
    """
    Ordered LMS rows for one (metric, sex) pair.

    Columns are stored as parallel read-only float64 arrays so interpolation
    can run directly on them.
    """

    metric: Metric
    sex: Sex
    ages: np.ndarray
    L: np.ndarray
    M: np.ndarray
    S: np.ndarray

    def __post_init__(self) -> None:
        for name in ("ages", "L", "M", "S"):
            object.__setattr__(self, name, _frozen(getattr(self, name)))

        label = f"{self.metric.value}/{self.sex.value}"
        n = len(self.ages)
        if n == 0:
            raise ReferenceDataError(f"Reference table {label} is empty")
        if not (len(self.L) == len(self.M) == len(self.S) == n):
            raise ReferenceDataError(f"Reference table {label} has ragged columns")
        if not np.all(np.diff(self.ages) > 0):
            raise ReferenceDataError(
                f"Reference table {label} ages must be strictly increasing"
            )
        if np.any(self.ages < 0) or np.any(self.ages != np.floor(self.ages)):
            raise ReferenceDataError(
                f"Reference table {label} ages must be non-negative whole months"
            )
        if np.any(self.M <= 0) or np.any(self.S <= 0):
            raise ReferenceDataError(f"Reference table {label} has non-positive M or S")
        if self.ages[0] > MIN_AGE_MONTHS or self.ages[-1] < MAX_AGE_MONTHS:
            raise ReferenceDataError(
                f"Reference table {label} does not cover "
                f"[{MIN_AGE_MONTHS:g}, {MAX_AGE_MONTHS:g}] months"
            )

    def __len__(self) -> int:
        return len(self.ages)

    def row(self, index: int) -> ReferenceRow:
        return ReferenceRow(
            int(self.ages[index]),
            float(self.L[index]),
            float(self.M[index]),
            float(self.S[index]),
        )

    def rows(self) -> List[ReferenceRow]:
        return [self.row(i) for i in range(len(self))]

    def lms_at(self, index: int) -> LMS:
        return self.row(index).lms


class ReferenceDataStore(Mapping[TableKey, ReferenceTable]):
    """
    Read-only mapping of (metric, sex) to ReferenceTable.

    Every supported metric must be present for both sexes.
    """

    def __init__(self, tables: Mapping[TableKey, ReferenceTable]) -> None:
        missing = [
            f"{metric.value}/{sex.value}"
            for metric in Metric
            for sex in Sex
            if (metric, sex) not in tables
        ]
        if missing:
            raise ReferenceDataError(f"Missing reference tables: {missing}")
        self._tables = MappingProxyType(dict(tables))

    def __getitem__(self, key: TableKey) -> ReferenceTable:
        return self._tables[key]

    def __iter__(self) -> Iterator[TableKey]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def table(self, metric: Metric, sex: Sex) -> ReferenceTable:
        return self._tables[(metric, sex)]

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> "ReferenceDataStore":
        """
        Build a store from a long-format frame with columns
        metric, sex, age_months, L, M, S.

        Raises:
            ReferenceDataError: If the frame fails integrity validation.
        """
        if not validate_loaded_data_integrity(frame):
            raise ReferenceDataError("Reference data failed integrity validation")

        tables: Dict[TableKey, ReferenceTable] = {}
        for (metric_name, sex_name), group in frame.groupby(["metric", "sex"]):
            metric, sex = Metric(metric_name), Sex(sex_name)
            group = group.sort_values("age_months")
            tables[(metric, sex)] = ReferenceTable(
                metric=metric,
                sex=sex,
                ages=group["age_months"].to_numpy(),
                L=group["L"].to_numpy(),
                M=group["M"].to_numpy(),
                S=group["S"].to_numpy(),
            )
        return cls(tables)


def validate_loaded_data_integrity(frame: pd.DataFrame) -> bool:
    """
    Validate structure and value ranges of loaded reference data.

    Logs a warning describing the first problem found rather than raising.

    Args:
        frame: Long-format reference frame

    Returns:
        True if the data passes all checks, False otherwise
    """
    if frame is None or frame.empty:
        logging.warning("Loaded reference data is empty")
        return False

    missing_cols = [c for c in REFERENCE_COLUMNS if c not in frame.columns]
    if missing_cols:
        logging.warning(f"Missing expected reference columns: {missing_cols}")
        return False

    unknown_metrics = set(frame["metric"]) - {m.value for m in Metric}
    unknown_sexes = set(frame["sex"]) - {s.value for s in Sex}
    if unknown_metrics or unknown_sexes:
        logging.warning(
            f"Unexpected reference keys: metrics={sorted(unknown_metrics)}, "
            f"sexes={sorted(unknown_sexes)}"
        )
        return False

    numeric = frame[["age_months", "L", "M", "S"]]
    if numeric.isna().any().any():
        logging.warning("Missing LMS values in reference data")
        return False
    if (numeric["age_months"] < 0).any():
        logging.warning("Negative ages found in reference data")
        return False
    if (numeric["M"] <= 0).any() or (numeric["S"] <= 0).any():
        logging.warning("Non-positive M or S values in reference data")
        return False
    if frame.duplicated(subset=["metric", "sex", "age_months"]).any():
        logging.warning("Duplicate ages found in reference data")
        return False

    return True


def _read_bundled_frame() -> pd.DataFrame:
    try:
        with (
            resources.files(REFERENCE_DATA_PACKAGE)
            .joinpath(REFERENCE_DATA_FILE)
            .open("rb") as f
        ):
            return pd.read_csv(
                f,
                dtype={
                    "metric": str,
                    "sex": str,
                    "age_months": np.float64,
                    "L": np.float64,
                    "M": np.float64,
                    "S": np.float64,
                },
            )
    except FileNotFoundError:
        raise ReferenceDataError(
            f"Growth reference data file '{REFERENCE_DATA_FILE}' not found. "
            "Ensure the whogrowth package is properly installed."
        ) from None
    except Exception as e:
        raise ReferenceDataError(
            f"Failed to load growth reference data: {e}. "
            "The bundled reference file may be corrupted."
        ) from e


@functools.lru_cache(maxsize=None)
def load_reference_data() -> ReferenceDataStore:
    """
    Return the process-wide WHO reference store, loading it on first use.

    Returns:
        The shared, immutable ReferenceDataStore

    Raises:
        ReferenceDataError: If the bundled dataset is missing or invalid.
    """
    store = ReferenceDataStore.from_frame(_read_bundled_frame())
    logging.debug(f"Loaded {len(store)} WHO growth reference tables")
    return store
