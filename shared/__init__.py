"""
Shared utilities for the debiasing pipeline.

Provides common schemas, constants, logging, and validation
used by the debiasing module and the command-line entry points.
"""

from shared.schemas import (
    RegressionResult,
    IterationDiagnostic,
    ResamplingOutcome,
    DebiasingConfig,
)

from shared.constants import (
    DEFAULT_TOLERANCE,
    MIN_DATASET_SIZE,
    MIN_REGRESSION_SAMPLES,
    DEFAULT_MIN_ATTEMPTS,
    ATTEMPTS_PER_RECORD,
    DEFAULT_COLUMNS,
    UNGROUPED_LABEL,
)

from shared.logging import (
    get_logger,
    log_metric,
    log_pipeline_stage,
    log_iteration_progress,
    log_debiasing_result,
    log_config_validation,
    PipelineLogger,
)

from shared.validation import (
    validate_dataframe,
    validate_unique_keys,
    validate_numeric_columns,
    validate_single_group,
    safe_divide,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    # Schemas
    "RegressionResult",
    "IterationDiagnostic",
    "ResamplingOutcome",
    "DebiasingConfig",
    # Constants
    "DEFAULT_TOLERANCE",
    "MIN_DATASET_SIZE",
    "MIN_REGRESSION_SAMPLES",
    "DEFAULT_MIN_ATTEMPTS",
    "ATTEMPTS_PER_RECORD",
    "DEFAULT_COLUMNS",
    "UNGROUPED_LABEL",
    # Logging
    "get_logger",
    "log_metric",
    "log_pipeline_stage",
    "log_iteration_progress",
    "log_debiasing_result",
    "log_config_validation",
    "PipelineLogger",
    # Validation
    "validate_dataframe",
    "validate_unique_keys",
    "validate_numeric_columns",
    "validate_single_group",
    "safe_divide",
    "ValidationError",
]
