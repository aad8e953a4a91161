"""
Base Resampler - Abstract base class for record-removal resamplers.

Provides the common interface shared by resamplers that reduce a
MeasurementDataset and report which records were removed.
"""

from abc import ABC, abstractmethod
from typing import Optional

import pandas as pd
from sklearn.base import BaseEstimator

from shared.schemas import ResamplingOutcome
from debiasing_module.src.dataset import MeasurementDataset


class RecordResampler(BaseEstimator, ABC):
    """
    Abstract base class for record resamplers.

    Subclasses implement ``fit_resample`` on a MeasurementDataset; the
    DataFrame entry point builds the dataset and delegates.
    """

    @abstractmethod
    def fit_resample(self, dataset: MeasurementDataset) -> ResamplingOutcome:
        """
        Reduce the dataset.

        Args:
            dataset: Cleaned, group-homogeneous dataset

        Returns:
            ResamplingOutcome with the surviving dataset and removed keys
        """
        pass

    def fit_resample_frame(
        self,
        df: pd.DataFrame,
        key_column: str,
        x_column: str,
        y_column: str,
        group_column: Optional[str] = None,
    ) -> ResamplingOutcome:
        """
        Build a dataset from a DataFrame and resample it.

        Args:
            df: Table holding one group's records
            key_column: Unique record identifier column
            x_column: Independent variable column
            y_column: Dependent variable column
            group_column: Group label column (optional)

        Returns:
            ResamplingOutcome
        """
        dataset = MeasurementDataset.from_frame(
            df,
            key_column=key_column,
            x_column=x_column,
            y_column=y_column,
            group_column=group_column,
        )
        return self.fit_resample(dataset)

    def _validate_dataset(self, dataset: MeasurementDataset) -> MeasurementDataset:
        """
        Check the input type.

        Raises:
            TypeError: If dataset is not a MeasurementDataset
        """
        if not isinstance(dataset, MeasurementDataset):
            raise TypeError(
                f"Expected MeasurementDataset, got {type(dataset).__name__}. "
                f"Use fit_resample_frame for DataFrames."
            )
        return dataset
