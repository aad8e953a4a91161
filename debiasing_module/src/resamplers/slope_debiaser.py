"""
Slope Debiaser - Remove records until the Y-on-X slope is negligible.

Greedy randomized hill-climbing over slope magnitude: each outer iteration
draws leave-one-out candidates from the current dataset until one strictly
reduces |slope|, then swaps it in. The run stops once |slope| < tolerance.
Every outer iteration removes exactly one record.

The inner search is bounded by an attempt budget, and the outer loop by the
minimum dataset size and an optional iteration cap. Exhausting any of them
raises NonConvergenceError.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Union

import numpy as np
from sklearn.utils import check_random_state

from shared.constants import (
    DEFAULT_TOLERANCE,
    DEFAULT_BATCH_SIZE,
    DEFAULT_N_JOBS,
    DEFAULT_MIN_ATTEMPTS,
    ATTEMPTS_PER_RECORD,
    MIN_DATASET_SIZE,
    NON_CONVERGENCE_REASONS,
)
from shared.logging import (
    get_logger,
    log_iteration_progress,
    log_debiasing_result,
)
from shared.schemas import IterationDiagnostic, ResamplingOutcome
from debiasing_module.src.dataset import MeasurementDataset
from debiasing_module.src.exceptions import DegenerateInputError, NonConvergenceError
from debiasing_module.src.regression import regression_slope
from debiasing_module.src.resamplers.base import RecordResampler

logger = get_logger(__name__)


def _leave_one_out_slope(
    dataset: MeasurementDataset,
    position: int,
) -> Union[float, DegenerateInputError]:
    # Degenerate candidates are returned, not raised, so the caller can
    # honour draw order when scanning a batch
    x, y = dataset.leave_one_out(position)
    try:
        return regression_slope(x, y)
    except DegenerateInputError as e:
        return e


class SlopeDebiaser(RecordResampler):
    """
    Debias a dataset by removing the fewest records needed to drive the
    OLS slope of Y on X under a tolerance.

    Example:
        >>> debiaser = SlopeDebiaser(tolerance=1e-3, random_state=42)
        >>> outcome = debiaser.fit_resample(dataset)
        >>> outcome.final_slope, sorted(outcome.removed_keys)
        >>>
        >>> # Straight from a DataFrame
        >>> outcome = debiaser.fit_resample_frame(
        ...     df_female, key_column='id', x_column='height_cm', y_column='bmi'
        ... )
    """

    def __init__(
        self,
        tolerance: float = DEFAULT_TOLERANCE,
        max_attempts_per_iteration: Optional[int] = None,
        max_iterations: Optional[int] = None,
        random_state=None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        n_jobs: int = DEFAULT_N_JOBS,
        verbose: bool = True,
    ):
        """
        Initialize debiaser.

        Args:
            tolerance: Stop once |slope| < tolerance
            max_attempts_per_iteration: Candidate draws allowed per outer
                iteration (None: max(1000, 20 * n))
            max_iterations: Cap on accepted outer iterations (None: bounded
                only by the minimum dataset size)
            random_state: Seed, numpy RandomState, or None
            batch_size: Candidates drawn and evaluated together
            n_jobs: Threads evaluating a batch
            verbose: Log each iteration at INFO (DEBUG otherwise)

        Raises:
            ValueError: If a parameter is out of range
        """
        if not tolerance > 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        if max_attempts_per_iteration is not None and max_attempts_per_iteration < 1:
            raise ValueError(
                f"max_attempts_per_iteration must be at least 1, got {max_attempts_per_iteration}"
            )
        if max_iterations is not None and max_iterations < 0:
            raise ValueError(f"max_iterations must be non-negative, got {max_iterations}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        if n_jobs < 1:
            raise ValueError(f"n_jobs must be at least 1, got {n_jobs}")

        self.tolerance = tolerance
        self.max_attempts_per_iteration = max_attempts_per_iteration
        self.max_iterations = max_iterations
        self.random_state = random_state
        self.batch_size = batch_size
        self.n_jobs = n_jobs
        self.verbose = verbose
        self.fitted_ = False

    def attempt_budget(self, n_records: int) -> int:
        """Candidate draws allowed while the dataset holds n_records."""
        if self.max_attempts_per_iteration is not None:
            return self.max_attempts_per_iteration
        return max(DEFAULT_MIN_ATTEMPTS, ATTEMPTS_PER_RECORD * n_records)

    def fit_resample(self, dataset: MeasurementDataset) -> ResamplingOutcome:
        """
        Run the debiasing loop.

        Args:
            dataset: Cleaned, group-homogeneous dataset

        Returns:
            ResamplingOutcome whose dataset has |slope| < tolerance

        Raises:
            DegenerateInputError: A fit was attempted on zero-variance X
            NonConvergenceError: Size floor, attempt budget or iteration
                cap reached before |slope| < tolerance
        """
        dataset = self._validate_dataset(dataset)
        rng = check_random_state(self.random_state)

        initial_slope = dataset.fit().slope
        n_original = len(dataset)

        logger.info(
            f"Debiasing group '{dataset.group}': n={n_original}, "
            f"initial slope={initial_slope:.6g}, tolerance={self.tolerance:.3g}"
        )

        # Dataset and slope are only ever replaced together
        current, best_slope = dataset, initial_slope
        history: List[IterationDiagnostic] = []
        total_attempts = 0
        self.history_ = history

        executor = ThreadPoolExecutor(max_workers=self.n_jobs) if self.n_jobs > 1 else None
        try:
            while abs(best_slope) >= self.tolerance:
                if self.max_iterations is not None and len(history) >= self.max_iterations:
                    self._raise_non_convergence(
                        "iteration_budget", current, best_slope, history, total_attempts
                    )
                if len(current) - 1 < MIN_DATASET_SIZE:
                    self._raise_non_convergence(
                        "size_floor", current, best_slope, history, total_attempts
                    )

                position, slope, attempts = self._search_improvement(
                    current, best_slope, rng, executor, total_attempts, history
                )
                total_attempts += attempts

                removed_key = current.key_at(position)
                current, best_slope = current.without(position), slope

                entry = IterationDiagnostic(
                    iteration=len(history) + 1,
                    sample_size=len(current),
                    best_slope=best_slope,
                    removed_key=removed_key,
                    attempts=attempts,
                    reduction_pct=100.0 * (n_original - len(current)) / n_original,
                )
                history.append(entry)
                log_iteration_progress(
                    logger,
                    entry.iteration,
                    entry.sample_size,
                    entry.best_slope,
                    entry.reduction_pct,
                    verbose=self.verbose,
                )
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        outcome = ResamplingOutcome(
            group=dataset.group,
            dataset=current,
            removed_keys=dataset.keys - current.keys,
            original_keys=dataset.keys,
            initial_slope=initial_slope,
            final_slope=best_slope,
            tolerance=self.tolerance,
            history=tuple(history),
            total_attempts=total_attempts,
            converged=True,
            original_dataset=dataset,
        )

        log_debiasing_result(
            logger,
            str(dataset.group),
            converged=True,
            final_slope=best_slope,
            tolerance=self.tolerance,
            n_removed=outcome.n_removed,
            n_original=n_original,
        )

        self.outcome_ = outcome
        self.fitted_ = True
        return outcome

    def _search_improvement(
        self,
        current: MeasurementDataset,
        best_slope: float,
        rng: np.random.RandomState,
        executor: Optional[ThreadPoolExecutor],
        total_attempts: int,
        history: Sequence[IterationDiagnostic],
    ):
        """
        Draw leave-one-out candidates until one strictly improves |slope|.

        Draws are with replacement; the same exclusion may come up again.

        Returns:
            Tuple of (position, candidate slope, attempts spent)
        """
        n = len(current)
        budget = self.attempt_budget(n)
        attempts = 0

        while attempts < budget:
            draw = min(self.batch_size, budget - attempts)
            positions = rng.randint(0, n, size=draw)

            if executor is None:
                slopes = [_leave_one_out_slope(current, int(p)) for p in positions]
            else:
                slopes = list(executor.map(lambda p: _leave_one_out_slope(current, int(p)), positions))

            for position, slope in zip(positions, slopes):
                attempts += 1
                if isinstance(slope, DegenerateInputError):
                    raise slope
                # Ties are rejections
                if abs(slope) < abs(best_slope):
                    return int(position), slope, attempts

        self._raise_non_convergence(
            "attempt_budget", current, best_slope, history, total_attempts + attempts
        )

    def _raise_non_convergence(
        self,
        reason: str,
        current: MeasurementDataset,
        best_slope: float,
        history: Sequence[IterationDiagnostic],
        total_attempts: int,
    ) -> None:
        n_original = len(current) + len(history)
        log_debiasing_result(
            logger,
            str(current.group),
            converged=False,
            final_slope=best_slope,
            tolerance=self.tolerance,
            n_removed=len(history),
            n_original=n_original,
        )
        raise NonConvergenceError(
            f"{NON_CONVERGENCE_REASONS[reason]} (group={current.group!r}, "
            f"n={len(current)}, best slope={best_slope:.6g}, "
            f"tolerance={self.tolerance:.3g}, iterations={len(history)}, "
            f"attempts={total_attempts})",
            best_slope=best_slope,
            sample_size=len(current),
            iterations=len(history),
            attempts=total_attempts,
            reason=reason,
            history=history,
        )
