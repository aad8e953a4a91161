"""Debiasing Module"""
from debiasing_module.src.dataset import MeasurementDataset
from debiasing_module.src.resamplers import SlopeDebiaser
from debiasing_module.src.partitioning import partition_by_group, debias_groups
from debiasing_module.src.debiasing_report import DebiasingReportGenerator
from debiasing_module.src.exceptions import (
    DegenerateInputError,
    EmptyGroupError,
    NonConvergenceError,
)
__all__ = [
    'MeasurementDataset',
    'SlopeDebiaser',
    'partition_by_group',
    'debias_groups',
    'DebiasingReportGenerator',
    'DegenerateInputError',
    'EmptyGroupError',
    'NonConvergenceError',
]
