"""
Validation utilities for the debiasing pipeline.
Input validation and data quality checks.
"""

import numpy as np
import pandas as pd
from typing import Any, List, Optional


class ValidationError(Exception):
    """Custom exception for validation failures."""
    pass


def validate_dataframe(
    df: pd.DataFrame,
    required_columns: Optional[List[str]] = None,
    min_rows: int = 0,
) -> None:
    """
    Validate DataFrame structure.

    Args:
        df: DataFrame to validate
        required_columns: List of required column names
        min_rows: Minimum number of rows required

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(df, pd.DataFrame):
        raise ValidationError(f"Expected DataFrame, got {type(df)}")

    if required_columns:
        missing = set(required_columns) - set(df.columns)
        if missing:
            raise ValidationError(f"Missing required columns: {sorted(missing)}")

    if len(df) < min_rows:
        raise ValidationError(
            f"DataFrame has {len(df)} rows, minimum {min_rows} required"
        )


def validate_unique_keys(df: pd.DataFrame, key_column: str) -> None:
    """
    Validate that the key column identifies every row.

    Raises:
        ValidationError: If keys are missing or duplicated
    """
    keys = df[key_column]

    if keys.isna().any():
        raise ValidationError(
            f"Key column '{key_column}' contains {int(keys.isna().sum())} missing values"
        )

    duplicated = keys[keys.duplicated()]
    if len(duplicated) > 0:
        raise ValidationError(
            f"Key column '{key_column}' has duplicate keys: "
            f"{sorted(duplicated.unique().tolist(), key=str)[:10]}"
        )


def validate_numeric_columns(df: pd.DataFrame, columns: List[str]) -> None:
    """
    Validate that measurement columns are numeric, finite and complete.

    Raises:
        ValidationError: If any column is non-numeric or holds NaN/inf
    """
    for col in columns:
        if not pd.api.types.is_numeric_dtype(df[col]):
            raise ValidationError(
                f"Column '{col}' must be numeric, got dtype {df[col].dtype}"
            )

        values = df[col].to_numpy(dtype=float)
        if np.any(np.isnan(values)):
            raise ValidationError(
                f"Column '{col}' contains {int(np.isnan(values).sum())} missing values"
            )
        if np.any(np.isinf(values)):
            raise ValidationError(f"Column '{col}' contains infinite values")


def validate_single_group(df: pd.DataFrame, group_column: str) -> Any:
    """
    Validate that every row shares one group label.

    Returns:
        The shared label (None for an empty frame)

    Raises:
        ValidationError: If rows carry different labels
    """
    labels = df[group_column].dropna().unique()

    if df[group_column].isna().any():
        raise ValidationError(f"Group column '{group_column}' contains missing values")

    if len(labels) > 1:
        raise ValidationError(
            f"Dataset must hold a single group, found {len(labels)} in "
            f"'{group_column}': {sorted(labels.tolist(), key=str)}"
        )

    return labels[0] if len(labels) == 1 else None


def safe_divide(
    numerator: float,
    denominator: float,
    default: float = 0.0,
) -> float:
    """
    Safely divide two numbers, returning default if denominator is zero.

    Args:
        numerator: Numerator
        denominator: Denominator
        default: Value to return if denominator is zero

    Returns:
        Division result or default
    """
    if denominator == 0:
        return default
    return numerator / denominator
