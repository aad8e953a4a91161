"""
Resamplers - record-removal resamplers for debiasing measurement datasets.

Provides the slope debiaser and the abstract base it builds on.
"""

from .base import RecordResampler
from .slope_debiaser import SlopeDebiaser

__all__ = [
    'RecordResampler',
    'SlopeDebiaser',
]
