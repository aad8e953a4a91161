"""
Tests for the shared schemas, constants, logging and validation helpers.
Run: pytest test_shared_modules.py -v
"""

import logging

import pytest
import numpy as np
import pandas as pd

from shared.schemas import (
    RegressionResult,
    IterationDiagnostic,
    ResamplingOutcome,
    DebiasingConfig,
)
from shared.constants import (
    DEFAULT_TOLERANCE,
    DEFAULT_COLUMNS,
    MIN_DATASET_SIZE,
    NON_CONVERGENCE_REASONS,
)
from shared.logging import (
    get_logger,
    add_file_handler,
    remove_file_handler,
    log_metric,
    log_iteration_progress,
    log_debiasing_result,
    PipelineLogger,
)
from shared.validation import (
    ValidationError,
    validate_dataframe,
    validate_unique_keys,
    validate_numeric_columns,
    validate_single_group,
    safe_divide,
)
from debiasing_module.src.dataset import MeasurementDataset


# ============================================================================
# Schemas
# ============================================================================

class TestSchemas:

    def test_regression_result(self):
        result = RegressionResult(slope=-0.12, intercept=38.4, n_samples=5)

        assert result.slope_magnitude == pytest.approx(0.12)
        assert result.predict(170) == pytest.approx(18.0)

    def test_iteration_diagnostic_is_frozen(self):
        entry = IterationDiagnostic(1, 4, -0.09, 5, 3, 20.0)

        with pytest.raises(AttributeError):
            entry.best_slope = 0.0
        assert entry.to_dict()['removed_key'] == 5

    def test_resampling_outcome(self):
        original = MeasurementDataset.from_records(
            [(1, 150, 20), (2, 160, 22), (3, 170, 19), (4, 180, 18), (5, 190, 16)]
        )
        kept = original.subset([1, 2, 3, 4])

        outcome = ResamplingOutcome(
            group='all',
            dataset=kept,
            removed_keys=original.keys - kept.keys,
            original_keys=original.keys,
            initial_slope=-0.12,
            final_slope=-0.09,
            tolerance=0.1,
            history=(IterationDiagnostic(1, 4, -0.09, 5, 3, 20.0),),
            total_attempts=3,
            original_dataset=original,
        )

        assert outcome.surviving_keys == frozenset({1, 2, 3, 4})
        assert outcome.n_original == 5
        assert outcome.n_removed == 1
        assert outcome.n_iterations == 1
        assert outcome.removed_fraction == pytest.approx(0.2)

        data = outcome.to_dict()
        assert data['removed_keys'] == [5]
        assert data['n_surviving'] == 4
        assert 'original_dataset' not in data

    def test_removed_fraction_without_records(self):
        ds = MeasurementDataset.from_records([(1, 1, 1), (2, 2, 2), (3, 3, 1)])

        outcome = ResamplingOutcome(
            group='all',
            dataset=ds,
            removed_keys=frozenset(),
            original_keys=frozenset(),
            initial_slope=0.0,
            final_slope=0.0,
            tolerance=0.1,
        )

        assert outcome.removed_fraction == 0.0

    def test_default_config_is_valid(self):
        config = DebiasingConfig()

        assert config.validate() == []
        assert config.tolerance == DEFAULT_TOLERANCE
        assert config.x_column == DEFAULT_COLUMNS['x']

    def test_config_errors(self):
        config = DebiasingConfig(
            x_column='bmi', tolerance=0.0, batch_size=0, max_iterations=-1
        )

        errors = config.validate()

        assert any('distinct' in e for e in errors)
        assert "tolerance must be positive" in errors
        assert "batch_size must be at least 1" in errors
        assert "max_iterations must be non-negative" in errors

    def test_debiaser_params(self):
        config = DebiasingConfig(tolerance=1e-3, random_state=3, n_jobs=2)
        params = config.debiaser_params()

        assert params['tolerance'] == 1e-3
        assert params['random_state'] == 3
        assert params['n_jobs'] == 2
        assert 'x_column' not in params
        assert config.to_dict()['x_column'] == DEFAULT_COLUMNS['x']


# ============================================================================
# Constants
# ============================================================================

class TestConstants:

    def test_values(self):
        assert DEFAULT_TOLERANCE == 1e-5
        assert MIN_DATASET_SIZE == 3
        assert set(NON_CONVERGENCE_REASONS) == {'size_floor', 'attempt_budget', 'iteration_budget'}


# ============================================================================
# Logging
# ============================================================================

class TestLogging:

    def test_get_logger_reuses_handlers(self):
        first = get_logger("shared_test_logger")
        second = get_logger("shared_test_logger")

        assert first is second
        assert len(second.handlers) == 1

    def test_log_metric(self, caplog):
        logger = get_logger("shared_test_metric")
        with caplog.at_level(logging.INFO):
            log_metric(logger, "partition_size", 42, {"group": "F"})

        assert "METRIC: partition_size=42 [group=F]" in caplog.text

    def test_iteration_progress(self, caplog):
        logger = get_logger("shared_test_progress")
        with caplog.at_level(logging.INFO):
            log_iteration_progress(logger, 3, 97, 0.0125, 3.0)

        assert "ITERATION 3: n=97, slope=0.0125, reduction=3.00%" in caplog.text

    def test_quiet_progress_is_debug(self, caplog):
        logger = get_logger("shared_test_quiet")
        with caplog.at_level(logging.INFO):
            log_iteration_progress(logger, 1, 9, 0.5, 10.0, verbose=False)

        assert "ITERATION" not in caplog.text

    def test_non_convergence_is_warning(self, caplog):
        logger = get_logger("shared_test_result")
        with caplog.at_level(logging.INFO):
            log_debiasing_result(logger, "F", False, 0.2, 0.01, 0, 3)

        assert caplog.records[-1].levelno == logging.WARNING
        assert "NOT CONVERGED" in caplog.text

    def test_file_handler_detached(self, tmp_path):
        logger = get_logger("shared_test_file")
        log_file = tmp_path / 'logs' / 'run.log'

        handler = add_file_handler(logger, str(log_file))
        logger.info("while attached")
        remove_file_handler(logger, handler)
        logger.info("after removal")

        assert handler not in logger.handlers
        assert log_file.read_text().count("while attached") == 1
        assert "after removal" not in log_file.read_text()

    def test_pipeline_logger_reraises(self, caplog):
        logger = get_logger("shared_test_stage")
        with caplog.at_level(logging.INFO):
            with pytest.raises(RuntimeError):
                with PipelineLogger(logger, "debiasing[F]"):
                    raise RuntimeError("boom")

        assert "STAGE [STARTED]: debiasing[F]" in caplog.text
        assert "STAGE [FAILED]: debiasing[F]" in caplog.text


# ============================================================================
# Validation
# ============================================================================

class TestValidation:

    @pytest.fixture
    def frame(self):
        return pd.DataFrame({
            'id': [1, 2, 3],
            'gender': ['F', 'F', 'F'],
            'height_cm': [150.0, 160.0, 170.0],
            'bmi': [20.0, 22.0, 19.0],
        })

    def test_validate_dataframe(self, frame):
        validate_dataframe(frame, required_columns=['id', 'bmi'], min_rows=3)

        with pytest.raises(ValidationError, match="Missing required columns"):
            validate_dataframe(frame, required_columns=['weight_kg'])
        with pytest.raises(ValidationError, match="minimum 4"):
            validate_dataframe(frame, min_rows=4)

    def test_validate_unique_keys(self, frame):
        validate_unique_keys(frame, 'id')

        frame.loc[2, 'id'] = 1
        with pytest.raises(ValidationError, match="duplicate"):
            validate_unique_keys(frame, 'id')

    def test_validate_numeric_columns(self, frame):
        validate_numeric_columns(frame, ['height_cm', 'bmi'])

        frame.loc[0, 'bmi'] = np.inf
        with pytest.raises(ValidationError, match="infinite"):
            validate_numeric_columns(frame, ['bmi'])
        with pytest.raises(ValidationError, match="numeric"):
            validate_numeric_columns(frame, ['gender'])

    def test_validate_single_group(self, frame):
        assert validate_single_group(frame, 'gender') == 'F'

        frame.loc[1, 'gender'] = 'M'
        with pytest.raises(ValidationError, match="single group"):
            validate_single_group(frame, 'gender')

    def test_safe_divide(self):
        assert safe_divide(1.0, 4.0) == 0.25
        assert safe_divide(1.0, 0.0) == 0.0
        assert safe_divide(1.0, 0.0, default=np.nan) is np.nan
