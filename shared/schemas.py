"""
Data schemas for the debiasing pipeline.
Defines dataclasses for structured data exchange between modules.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Any, Tuple
from datetime import datetime

from shared.constants import (
    DEFAULT_TOLERANCE,
    DEFAULT_BATCH_SIZE,
    DEFAULT_N_JOBS,
    DEFAULT_COLUMNS,
)
from shared.validation import safe_divide


@dataclass(frozen=True)
class RegressionResult:
    """Ordinary least squares fit of Y on X."""

    slope: float
    intercept: float
    n_samples: int

    @property
    def slope_magnitude(self) -> float:
        return abs(self.slope)

    def predict(self, x: float) -> float:
        return self.intercept + self.slope * x


@dataclass(frozen=True)
class IterationDiagnostic:
    """Progress record for one accepted outer iteration."""

    iteration: int
    sample_size: int
    best_slope: float
    removed_key: Any
    attempts: int
    reduction_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "sample_size": self.sample_size,
            "best_slope": self.best_slope,
            "removed_key": self.removed_key,
            "attempts": self.attempts,
            "reduction_pct": self.reduction_pct,
        }


@dataclass(frozen=True)
class ResamplingOutcome:
    """
    Terminal artifact of a debiasing run.

    ``dataset`` holds the surviving records; ``removed_keys`` is the
    complement of its keys within ``original_keys``.
    """

    group: Any
    dataset: Any
    removed_keys: FrozenSet[Any]
    original_keys: FrozenSet[Any]
    initial_slope: float
    final_slope: float
    tolerance: float
    history: Tuple[IterationDiagnostic, ...] = ()
    total_attempts: int = 0
    converged: bool = True
    original_dataset: Any = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def surviving_keys(self) -> FrozenSet[Any]:
        return self.dataset.keys

    @property
    def n_original(self) -> int:
        return len(self.original_keys)

    @property
    def n_removed(self) -> int:
        return len(self.removed_keys)

    @property
    def n_iterations(self) -> int:
        return len(self.history)

    @property
    def removed_fraction(self) -> float:
        return safe_divide(self.n_removed, self.n_original)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group": self.group,
            "n_original": self.n_original,
            "n_surviving": len(self.dataset),
            "n_removed": self.n_removed,
            "removed_fraction": self.removed_fraction,
            "removed_keys": sorted(self.removed_keys, key=str),
            "initial_slope": self.initial_slope,
            "final_slope": self.final_slope,
            "tolerance": self.tolerance,
            "converged": self.converged,
            "total_attempts": self.total_attempts,
            "history": [entry.to_dict() for entry in self.history],
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class DebiasingConfig:
    """Configuration for a debiasing run."""

    # Data configuration
    key_column: str = DEFAULT_COLUMNS["key"]
    x_column: str = DEFAULT_COLUMNS["x"]
    y_column: str = DEFAULT_COLUMNS["y"]
    group_column: Optional[str] = DEFAULT_COLUMNS["group"]
    groups: Optional[List[Any]] = None

    # Algorithm configuration
    tolerance: float = DEFAULT_TOLERANCE
    max_attempts_per_iteration: Optional[int] = None
    max_iterations: Optional[int] = None
    random_state: Optional[int] = None
    batch_size: int = DEFAULT_BATCH_SIZE
    n_jobs: int = DEFAULT_N_JOBS
    verbose: bool = True

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        for name in ("key_column", "x_column", "y_column"):
            if not getattr(self, name):
                errors.append(f"{name} is required")

        columns = [self.key_column, self.x_column, self.y_column]
        if self.group_column:
            columns.append(self.group_column)
        if len(set(columns)) != len(columns):
            errors.append(f"Column names must be distinct, got {columns}")

        if not self.tolerance > 0:
            errors.append("tolerance must be positive")
        if self.max_attempts_per_iteration is not None and self.max_attempts_per_iteration < 1:
            errors.append("max_attempts_per_iteration must be at least 1")
        if self.max_iterations is not None and self.max_iterations < 0:
            errors.append("max_iterations must be non-negative")
        if self.batch_size < 1:
            errors.append("batch_size must be at least 1")
        if self.n_jobs < 1:
            errors.append("n_jobs must be at least 1")

        return errors

    def debiaser_params(self) -> Dict[str, Any]:
        """Keyword arguments for SlopeDebiaser."""
        return {
            "tolerance": self.tolerance,
            "max_attempts_per_iteration": self.max_attempts_per_iteration,
            "max_iterations": self.max_iterations,
            "random_state": self.random_state,
            "batch_size": self.batch_size,
            "n_jobs": self.n_jobs,
            "verbose": self.verbose,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key_column": self.key_column,
            "x_column": self.x_column,
            "y_column": self.y_column,
            "group_column": self.group_column,
            "groups": self.groups,
            **self.debiaser_params(),
        }
