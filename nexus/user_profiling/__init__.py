"""
User Profiling Module

This module provides the user profile model and the rules that evolve it:
- Interest, behaviour pattern, preference and personality tracking
- Interaction telemetry and mood inference
- Single-writer profile actors
"""

from .models import (
    BehaviorPattern, ContentPreference, EventType, Interest, InteractionEvent, MoodLabel,
    MoodSample, PersonalityEstimate, UserProfile, VisitRecord
)
from .preference_tracker import ProfileChanges, ProfileUpdater
from .behavior_analyzer import BehaviorAnalyzer, BehaviorMetrics
from .mood_inference import MoodInferencer
from .profile_actor import ActorStoppedError, ProfileActor

__all__ = [
    'BehaviorPattern',
    'ContentPreference',
    'EventType',
    'Interest',
    'InteractionEvent',
    'MoodLabel',
    'MoodSample',
    'PersonalityEstimate',
    'UserProfile',
    'VisitRecord',
    'ProfileChanges',
    'ProfileUpdater',
    'BehaviorAnalyzer',
    'BehaviorMetrics',
    'MoodInferencer',
    'ActorStoppedError',
    'ProfileActor',
]
