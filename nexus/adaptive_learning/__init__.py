"""
Adaptive Learning Module

This module keeps profiles learning in the background:
- Periodic persistence
- Pattern re-analysis into adaptive weights
- Retraining triggers
"""

from .pattern_reanalysis import analyze_recent_patterns
from .retraining import LoggingRetrainingStrategy, RetrainingStrategy, RetrainingTrigger
from .scheduler import ContinuousLearningScheduler, ManualClock, PeriodicTask, SystemClock

__all__ = [
    'analyze_recent_patterns',
    'LoggingRetrainingStrategy',
    'RetrainingStrategy',
    'RetrainingTrigger',
    'ContinuousLearningScheduler',
    'ManualClock',
    'PeriodicTask',
    'SystemClock',
]
