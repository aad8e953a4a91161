"""
Logging utilities for the debiasing pipeline.
Provides structured logging with context for debugging and auditing.
"""

import logging
import sys
from typing import Any, Dict, Optional
from datetime import datetime
from pathlib import Path


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Create a configured logger instance.

    Args:
        name: Logger name (typically __name__)
        level: Logging level
        log_file: Optional file path for logging

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        add_file_handler(logger, log_file, level)

    return logger


def add_file_handler(
    logger: logging.Logger,
    log_file: str,
    level: int = logging.INFO,
) -> logging.FileHandler:
    """
    Attach a file handler using the standard format.

    Returns:
        The handler, so the caller can detach and close it
    """
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)
    return file_handler


def remove_file_handler(logger: logging.Logger, handler: logging.Handler) -> None:
    """Detach a handler added by add_file_handler and close its file."""
    logger.removeHandler(handler)
    handler.close()


def get_logger(name: str) -> logging.Logger:
    """Get or create a logger with standard configuration."""
    return setup_logger(name)


def log_metric(
    logger: logging.Logger,
    metric_name: str,
    value: float,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log a metric with structured context.

    Args:
        logger: Logger instance
        metric_name: Name of the metric
        value: Metric value
        context: Additional context (e.g., group, tolerance)
    """
    context_str = ""
    if context:
        context_items = [f"{k}={v}" for k, v in context.items()]
        context_str = f" [{', '.join(context_items)}]"

    logger.info(f"METRIC: {metric_name}={value:.6g}{context_str}")


def log_pipeline_stage(
    logger: logging.Logger,
    stage: str,
    status: str = "started",
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log pipeline execution stage.

    Args:
        logger: Logger instance
        stage: Stage name (e.g., 'partitioning', 'debiasing')
        status: Status ('started', 'completed', 'failed')
        details: Additional details
    """
    detail_str = ""
    if details:
        detail_items = [f"{k}={v}" for k, v in details.items()]
        detail_str = f" - {', '.join(detail_items)}"

    level = logging.INFO if status != "failed" else logging.ERROR
    logger.log(level, f"STAGE [{status.upper()}]: {stage}{detail_str}")


def log_iteration_progress(
    logger: logging.Logger,
    iteration: int,
    sample_size: int,
    best_slope: float,
    reduction_pct: float,
    verbose: bool = True,
) -> None:
    """
    Log one accepted outer iteration of the debiasing loop.

    Args:
        logger: Logger instance
        iteration: 1-based outer iteration number
        sample_size: Records held after the iteration
        best_slope: Slope of the accepted candidate
        reduction_pct: Cumulative reduction relative to the original size
        verbose: Log at INFO when True, DEBUG otherwise
    """
    level = logging.INFO if verbose else logging.DEBUG
    logger.log(
        level,
        f"ITERATION {iteration}: n={sample_size}, slope={best_slope:.6g}, "
        f"reduction={reduction_pct:.2f}%"
    )


def log_debiasing_result(
    logger: logging.Logger,
    group: str,
    converged: bool,
    final_slope: float,
    tolerance: float,
    n_removed: int,
    n_original: int,
) -> None:
    """
    Log debiasing result with interpretation.

    Args:
        logger: Logger instance
        group: Partition label
        converged: Whether |slope| fell under the tolerance
        final_slope: Best slope reached
        tolerance: Convergence tolerance used
        n_removed: Records removed
        n_original: Records in the original partition
    """
    if converged:
        logger.info(
            f"DEBIASING [CONVERGED]: {group} slope={final_slope:.6g} "
            f"(tolerance={tolerance:.3g}), removed {n_removed}/{n_original}"
        )
    else:
        logger.warning(
            f"DEBIASING [NOT CONVERGED]: {group} slope={final_slope:.6g} "
            f"(tolerance={tolerance:.3g}), removed {n_removed}/{n_original}"
        )


def log_config_validation(
    logger: logging.Logger,
    config_name: str,
    errors: list,
) -> None:
    """
    Log configuration validation results.

    Args:
        logger: Logger instance
        config_name: Name of configuration
        errors: List of validation errors
    """
    if errors:
        logger.error(f"CONFIG VALIDATION FAILED: {config_name}")
        for err in errors:
            logger.error(f"  └─ {err}")
    else:
        logger.info(f"CONFIG VALIDATION PASSED: {config_name}")


class PipelineLogger:
    """
    Context manager for pipeline stage logging.
    Automatically logs start/end and captures exceptions.
    """

    def __init__(self, logger: logging.Logger, stage: str):
        self.logger = logger
        self.stage = stage
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        log_pipeline_stage(self.logger, self.stage, "started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = (datetime.now() - self.start_time).total_seconds()

        if exc_type is None:
            log_pipeline_stage(
                self.logger,
                self.stage,
                "completed",
                {"duration_seconds": f"{duration:.2f}"}
            )
        else:
            log_pipeline_stage(
                self.logger,
                self.stage,
                "failed",
                {"error": str(exc_val), "duration_seconds": f"{duration:.2f}"}
            )

        # Don't suppress exceptions
        return False
