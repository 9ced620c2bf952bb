"""
Recommendation Engine Modules

Profile-driven recommendations: trending interests, inferred projects,
contextual suggestions and interface adaptation.
"""

from .adaptive import (
    AdaptiveRecommender, InterfaceSettings, PersonalizedContent, Project, RecommendedTopic, Suggestion
)

__all__ = [
    'AdaptiveRecommender',
    'InterfaceSettings',
    'PersonalizedContent',
    'Project',
    'RecommendedTopic',
    'Suggestion',
]
