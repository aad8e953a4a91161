"""
Debiasing Module - Remove records until a regression slope is negligible.

Provides:
- MeasurementDataset: Immutable keyed (X, Y) table for one group
- fit_ols: OLS slope/intercept of Y on X
- SlopeDebiaser: Greedy randomized leave-one-out debiasing
- partition_by_group / debias_groups: Per-group runs on a cohort table
- DebiasingReportGenerator: Before/after summaries and audit trail

Quick Start:
    from debiasing_module import SlopeDebiaser, MeasurementDataset

    dataset = MeasurementDataset.from_frame(
        df_female, key_column='id', x_column='height_cm', y_column='bmi'
    )
    debiaser = SlopeDebiaser(tolerance=1e-5, random_state=42)
    outcome = debiaser.fit_resample(dataset)
    outcome.dataset.to_frame(), outcome.removed_keys
"""

from .exceptions import (
    DebiasingError,
    DatasetValidationError,
    DegenerateInputError,
    EmptyGroupError,
    NonConvergenceError,
    ConfigurationError,
)
from .regression import fit_ols, regression_slope, slope_significance
from .dataset import MeasurementDataset
from .resamplers import RecordResampler, SlopeDebiaser
from .partitioning import partition_by_group, debias_partitions, debias_groups
from .config_loader import ConfigLoader, load_config
from .debiasing_report import DebiasingReportGenerator, summarize_outcome

__all__ = [
    'DebiasingError',
    'DatasetValidationError',
    'DegenerateInputError',
    'EmptyGroupError',
    'NonConvergenceError',
    'ConfigurationError',
    'fit_ols',
    'regression_slope',
    'slope_significance',
    'MeasurementDataset',
    'RecordResampler',
    'SlopeDebiaser',
    'partition_by_group',
    'debias_partitions',
    'debias_groups',
    'ConfigLoader',
    'load_config',
    'DebiasingReportGenerator',
    'summarize_outcome',
]
