"""
Nexus: real-time content analysis and personalization engine.
"""

from .pipeline_integration import ClearResult, PersonalizationEngine, VisitResult

__version__ = "1.0.0"

__all__ = ['ClearResult', 'PersonalizationEngine', 'VisitResult']
