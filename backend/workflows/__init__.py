"""Workflow layer - target sequence orchestration"""

from .sequence import SequenceResult, SequenceState, TargetSequence, write_results_csv

__all__ = [
    'SequenceResult', 'SequenceState', 'TargetSequence', 'write_results_csv',
]
