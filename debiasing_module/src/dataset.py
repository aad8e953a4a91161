"""
Measurement Dataset - Immutable table of keyed (X, Y) records for one group.

A dataset is built once from a cleaned table and never modified in place.
Removing a record yields a new dataset, so a debiasing run can hold the
"current" dataset as a plain value and swap it wholesale on acceptance.
"""

from typing import Any, FrozenSet, Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from shared.constants import MIN_DATASET_SIZE, UNGROUPED_LABEL
from shared.schemas import RegressionResult
from shared.validation import (
    ValidationError,
    validate_dataframe,
    validate_unique_keys,
    validate_numeric_columns,
    validate_single_group,
)
from debiasing_module.src.exceptions import (
    DatasetValidationError,
    DegenerateInputError,
    EmptyGroupError,
)
from debiasing_module.src.regression import fit_ols


def _readonly(values: np.ndarray) -> np.ndarray:
    values.setflags(write=False)
    return values


class MeasurementDataset:
    """
    Group-homogeneous set of records with a unique key and two measurements.

    Invariants: keys are unique, X and Y are finite, and at least
    ``MIN_DATASET_SIZE`` records are held.

    Example:
        >>> ds = MeasurementDataset.from_frame(
        ...     df, key_column='id', x_column='height_cm', y_column='bmi',
        ...     group_column='gender',
        ... )
        >>> ds.fit().slope
        >>> smaller = ds.without(0)
    """

    def __init__(
        self,
        frame: pd.DataFrame,
        key_column: str,
        x_column: str,
        y_column: str,
        group_column: Optional[str] = None,
        group: Any = UNGROUPED_LABEL,
    ):
        # Callers go through from_frame/from_records; frame is assumed valid here
        self._frame = frame
        self.key_column = key_column
        self.x_column = x_column
        self.y_column = y_column
        self.group_column = group_column
        self.group = group

        self._keys = _readonly(frame[key_column].to_numpy(copy=True))
        self._x = _readonly(frame[x_column].to_numpy(dtype=float, copy=True))
        self._y = _readonly(frame[y_column].to_numpy(dtype=float, copy=True))
        self._key_list = self._keys.tolist()
        self._key_set = frozenset(self._key_list)

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        key_column: str,
        x_column: str,
        y_column: str,
        group_column: Optional[str] = None,
        group: Any = None,
    ) -> 'MeasurementDataset':
        """
        Validate a cleaned table and wrap a copy of it.

        Args:
            df: Table holding one group's records
            key_column: Unique record identifier column
            x_column: Independent variable column
            y_column: Dependent variable column
            group_column: Group label column (optional)
            group: Label to use when there is no group column

        Raises:
            EmptyGroupError: Table has no rows
            DegenerateInputError: Fewer than MIN_DATASET_SIZE rows
            DatasetValidationError: Missing columns, bad keys, missing or
                non-numeric measurements, or mixed group labels
        """
        required = [key_column, x_column, y_column]
        if group_column:
            required.append(group_column)

        try:
            validate_dataframe(df, required_columns=required)
        except ValidationError as e:
            raise DatasetValidationError(str(e)) from e

        if len(df) == 0:
            label = f"'{group}'" if group is not None else "(unnamed)"
            raise EmptyGroupError(
                f"Partition {label} has no usable records",
                group=group,
            )

        try:
            validate_unique_keys(df, key_column)
            validate_numeric_columns(df, [x_column, y_column])
            label = validate_single_group(df, group_column) if group_column else None
        except ValidationError as e:
            raise DatasetValidationError(str(e)) from e

        if len(df) < MIN_DATASET_SIZE:
            raise DegenerateInputError(
                f"Dataset needs at least {MIN_DATASET_SIZE} records, got {len(df)}"
            )

        if group is None:
            group = label if label is not None else UNGROUPED_LABEL

        return cls(
            df.copy(),
            key_column=key_column,
            x_column=x_column,
            y_column=y_column,
            group_column=group_column,
            group=group,
        )

    @classmethod
    def from_records(
        cls,
        records: Iterable[Tuple[Any, float, float]],
        group: Any = UNGROUPED_LABEL,
        key_column: str = "key",
        x_column: str = "x",
        y_column: str = "y",
    ) -> 'MeasurementDataset':
        """
        Build a dataset from (key, x, y) tuples.

        Example:
            >>> ds = MeasurementDataset.from_records(
            ...     [(1, 150, 20), (2, 160, 22), (3, 170, 19)]
            ... )
        """
        df = pd.DataFrame(list(records), columns=[key_column, x_column, y_column])
        return cls.from_frame(df, key_column, x_column, y_column, group=group)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return (
            f"MeasurementDataset(group={self.group!r}, n={len(self)}, "
            f"x='{self.x_column}', y='{self.y_column}')"
        )

    @property
    def keys(self) -> FrozenSet[Any]:
        return self._key_set

    @property
    def x(self) -> np.ndarray:
        return self._x

    @property
    def y(self) -> np.ndarray:
        return self._y

    def key_at(self, position: int) -> Any:
        return self._key_list[position]

    def fit(self) -> RegressionResult:
        """OLS fit of Y on X for the records held."""
        return fit_ols(self._x, self._y)

    def leave_one_out(self, position: int) -> Tuple[np.ndarray, np.ndarray]:
        """X and Y arrays with the record at ``position`` excluded."""
        mask = np.ones(len(self), dtype=bool)
        mask[position] = False
        return self._x[mask], self._y[mask]

    def without(self, position: int) -> 'MeasurementDataset':
        """
        New dataset with the record at ``position`` excluded.

        Raises:
            DegenerateInputError: The result would drop below MIN_DATASET_SIZE
            IndexError: Position out of range
        """
        if not -len(self) <= position < len(self):
            raise IndexError(f"Position {position} out of range for {len(self)} records")
        if len(self) - 1 < MIN_DATASET_SIZE:
            raise DegenerateInputError(
                f"Cannot remove a record: dataset would drop below "
                f"{MIN_DATASET_SIZE} records"
            )

        mask = np.ones(len(self), dtype=bool)
        mask[position] = False
        return self._derive(self._frame.iloc[mask])

    def subset(self, keys: Iterable[Any]) -> 'MeasurementDataset':
        """
        New dataset holding only the given keys.

        Raises:
            DatasetValidationError: Some keys are not in this dataset
            DegenerateInputError: Fewer than MIN_DATASET_SIZE keys remain
        """
        wanted = set(keys)
        unknown = wanted - self._key_set
        if unknown:
            raise DatasetValidationError(
                f"Keys not present in dataset: {sorted(unknown, key=str)[:10]}"
            )
        if len(wanted) < MIN_DATASET_SIZE:
            raise DegenerateInputError(
                f"Dataset needs at least {MIN_DATASET_SIZE} records, got {len(wanted)}"
            )

        mask = np.fromiter((k in wanted for k in self._keys), dtype=bool, count=len(self))
        return self._derive(self._frame.iloc[mask])

    def to_frame(self) -> pd.DataFrame:
        """Copy of the underlying table (same columns as the input)."""
        return self._frame.copy()

    def _derive(self, frame: pd.DataFrame) -> 'MeasurementDataset':
        return MeasurementDataset(
            frame,
            key_column=self.key_column,
            x_column=self.x_column,
            y_column=self.y_column,
            group_column=self.group_column,
            group=self.group,
        )
