"""
Regression Slope Utility - Ordinary least squares fit of Y on X.

The slope magnitude of this fit is the bias signal driven down by the
debiaser. The fit is computed on centred values so that large offsets
(heights around 170 cm) do not cost precision.
"""

import numpy as np
from typing import Dict, Tuple
from scipy import stats

from shared.constants import MIN_REGRESSION_SAMPLES
from shared.schemas import RegressionResult
from debiasing_module.src.exceptions import DegenerateInputError


def _as_regression_arrays(x, y) -> Tuple[np.ndarray, np.ndarray]:
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)

    if x_arr.ndim != 1 or y_arr.ndim != 1:
        raise DegenerateInputError(
            f"Expected 1-D arrays, got shapes {x_arr.shape} and {y_arr.shape}"
        )
    if len(x_arr) != len(y_arr):
        raise DegenerateInputError(
            f"X and Y have different lengths: {len(x_arr)} vs {len(y_arr)}"
        )
    if len(x_arr) < MIN_REGRESSION_SAMPLES:
        raise DegenerateInputError(
            f"OLS needs at least {MIN_REGRESSION_SAMPLES} records, got {len(x_arr)}"
        )
    if not (np.all(np.isfinite(x_arr)) and np.all(np.isfinite(y_arr))):
        raise DegenerateInputError("X and Y must be finite")
    if np.ptp(x_arr) == 0:
        raise DegenerateInputError(
            f"Independent variable has zero variance (all values {x_arr[0]!r}); "
            f"slope is undefined"
        )

    return x_arr, y_arr


def fit_ols(x, y) -> RegressionResult:
    """
    Fit Y = intercept + slope * X by ordinary least squares.

    Args:
        x: Independent variable values
        y: Dependent variable values

    Returns:
        RegressionResult with slope, intercept and sample count

    Raises:
        DegenerateInputError: Fewer than 2 records, mismatched lengths,
            non-finite values, or zero variance in X

    Example:
        >>> result = fit_ols([150, 160, 170], [20, 22, 24])
        >>> round(result.slope, 3)
        0.2
    """
    x_arr, y_arr = _as_regression_arrays(x, y)

    x_mean = x_arr.mean()
    y_mean = y_arr.mean()
    dx = x_arr - x_mean

    sxx = float(np.dot(dx, dx))
    if sxx == 0.0:
        raise DegenerateInputError("Independent variable has zero variance; slope is undefined")

    slope = float(np.dot(dx, y_arr - y_mean)) / sxx
    intercept = float(y_mean - slope * x_mean)

    return RegressionResult(slope=slope, intercept=intercept, n_samples=len(x_arr))


def regression_slope(x, y) -> float:
    """Return only the OLS slope of Y on X."""
    return fit_ols(x, y).slope


def slope_significance(x, y) -> Dict[str, float]:
    """
    Two-sided significance of the OLS slope, for reporting.

    Returns:
        Dictionary with slope, r_value, p_value and stderr
    """
    x_arr, y_arr = _as_regression_arrays(x, y)
    result = stats.linregress(x_arr, y_arr)

    return {
        "slope": float(result.slope),
        "r_value": float(result.rvalue),
        "p_value": float(result.pvalue),
        "stderr": float(result.stderr),
    }
