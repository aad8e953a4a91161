"""
Custom Exceptions - Error handling for the Debiasing Module.

Provides specific exception types for different failure modes so callers
can tell a malformed table from a run that could not converge.
"""

from typing import Optional, Tuple


class DebiasingError(Exception):
    """Base exception for all debiasing module errors."""
    pass


class DatasetValidationError(DebiasingError):
    """
    Raised when an input table is malformed.

    Covers missing columns, duplicate or missing keys, missing measurement
    values, and datasets mixing several group labels.
    """
    pass


class DegenerateInputError(DebiasingError):
    """
    Raised when an OLS slope is undefined.

    Example:
        >>> if np.ptp(x) == 0:
        ...     raise DegenerateInputError(
        ...         "Independent variable has zero variance"
        ...     )
    """
    pass


class EmptyGroupError(DebiasingError):
    """Raised when a partition has zero usable records after cleaning."""

    def __init__(self, message: str, group: Optional[str] = None):
        super().__init__(message)
        self.group = group


class NonConvergenceError(DebiasingError):
    """
    Raised when the debiasing loop stops before |slope| < tolerance.

    Carries the state reached so the caller can report it:

    - ``best_slope``: best slope reached
    - ``sample_size``: records held at that point
    - ``iterations``: accepted outer iterations
    - ``attempts``: candidate draws spent in total
    - ``reason``: 'size_floor', 'attempt_budget' or 'iteration_budget'
    - ``history``: per-iteration diagnostics accepted so far
    """

    def __init__(
        self,
        message: str,
        best_slope: float,
        sample_size: int,
        iterations: int,
        attempts: int,
        reason: str,
        history: Tuple = (),
    ):
        super().__init__(message)
        self.best_slope = best_slope
        self.sample_size = sample_size
        self.iterations = iterations
        self.attempts = attempts
        self.reason = reason
        self.history = tuple(history)


class ConfigurationError(DebiasingError):
    """
    Raised when configuration is invalid.

    Example:
        >>> if tolerance <= 0:
        ...     raise ConfigurationError("tolerance must be positive")
    """
    pass
