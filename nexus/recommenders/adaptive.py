"""
Adaptive Recommender

Read-side personalisation computed purely from a profile snapshot:
- Top interests with a trending flag from their recent evolution
- Content preferences ordered by weight
- Interest, project and time-of-day suggestions
- Interface settings adapted to the personality estimate
"""

from collections import Counter
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np
from scipy import stats

from ..user_profiling.models import Interest, UserProfile
from ..utils.config import RecommendationConfig


@dataclass
class RecommendedTopic:
    topic: str
    strength: float
    trending: bool


@dataclass
class Suggestion:
    type: str  # interest_based, project_based, contextual
    category: str
    suggestion: str
    score: float
    topic: Optional[str] = None


@dataclass
class Project:
    type: str  # domain_focus, topic_focus
    name: str
    activity: int


@dataclass
class InterfaceSettings:
    complexity: str = 'medium'
    color_scheme: str = 'balanced'
    information_density: str = 'medium'
    interaction_style: str = 'standard'


@dataclass
class PersonalizedContent:
    recommended_topics: List[RecommendedTopic] = field(default_factory=list)
    content_preferences: Dict[str, str] = field(default_factory=dict)
    suggestions: List[Suggestion] = field(default_factory=list)
    interface_settings: InterfaceSettings = field(default_factory=InterfaceSettings)
    projects: List[Project] = field(default_factory=list)
    current_mood: Optional[str] = None
    work_context: str = 'free_time'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def work_context(now: datetime) -> str:
    hour = now.hour
    if 9 <= hour <= 17 and now.weekday() < 5:
        return 'work_hours'
    if 18 <= hour <= 22:
        return 'evening_leisure'
    if hour >= 22 or hour <= 6:
        return 'late_night'
    return 'free_time'


class AdaptiveRecommender:
    """
    Builds personalised content and interface settings from a profile
    """

    def __init__(self, config: Optional[RecommendationConfig] = None):
        self.config = config or RecommendationConfig()

    def recommend(self, profile: UserProfile, now: Optional[datetime] = None) -> PersonalizedContent:
        now = now or datetime.now()
        interests = profile.top_interests(self.config.top_interests)

        preferences = sorted(profile.preferences.values(), key=lambda item: (-item.weight, item.category))
        projects = self.detect_projects(profile)
        mood = profile.current_mood

        return PersonalizedContent(
            recommended_topics=[
                RecommendedTopic(topic=item.topic, strength=item.strength, trending=self.is_trending(item))
                for item in interests
            ],
            content_preferences={item.category: item.preference for item in preferences},
            suggestions=self.suggestions(interests, projects, now),
            interface_settings=self.interface_settings(profile),
            projects=projects,
            current_mood=mood.mood if mood is not None else None,
            work_context=work_context(now),
        )

    def is_trending(self, interest: Interest) -> bool:
        """
        Positive regression slope over the latest strengths.

        Decay between reinforcements is not recorded in the evolution
        history, so the current strength closes the series whenever it
        has moved since the last recorded point.
        """
        strengths = [point.strength for point in interest.evolution]
        if strengths and not np.isclose(strengths[-1], interest.strength):
            strengths.append(interest.strength)
        window = np.array(strengths[-self.config.trending_window:], dtype=float)
        if len(window) < 2 or np.allclose(window, window[0]):
            return False
        result = stats.linregress(np.arange(len(window), dtype=float), window)
        return bool(result.slope > self.config.trending_min_slope)

    def detect_projects(self, profile: UserProfile) -> List[Project]:
        """Domains and categories concentrated in the most recent visits."""
        recent = profile.recent_visits[-self.config.project_window:]
        domains = Counter(visit.domain for visit in recent if visit.domain)
        categories = Counter(visit.category for visit in recent if visit.category)

        projects = []
        for domain, count in sorted(domains.items(), key=lambda item: (-item[1], item[0])):
            if count < self.config.project_min_visits:
                continue
            if any(ignored in domain for ignored in self.config.ignored_project_domains):
                continue
            projects.append(Project(type='domain_focus', name=domain, activity=count))
        for category, count in sorted(categories.items(), key=lambda item: (-item[1], item[0])):
            if count >= self.config.project_min_visits:
                projects.append(Project(type='topic_focus', name=category, activity=count))

        return projects[:self.config.max_projects]

    def suggestions(self, interests: List[Interest], projects: List[Project], now: datetime) -> List[Suggestion]:
        suggestions = [
            Suggestion(
                type='interest_based',
                category='exploration',
                suggestion=f'Explore more about {interest.topic}',
                score=interest.strength,
                topic=interest.topic,
            )
            for interest in interests[:self.config.interest_suggestions]
        ]

        recent_total = max(1, sum(project.activity for project in projects))
        for project in projects:
            suggestions.append(Suggestion(
                type='project_based',
                category=project.type,
                suggestion=f'Continue your work on {project.name}',
                score=min(1.0, project.activity / recent_total),
                topic=project.name,
            ))

        if 9 <= now.hour <= 17:
            suggestions.append(Suggestion(
                type='contextual', category='productivity',
                suggestion='Work-related productivity content', score=0.8,
            ))
        elif 18 <= now.hour <= 22:
            suggestions.append(Suggestion(
                type='contextual', category='entertainment',
                suggestion='Entertainment and relaxation content', score=0.7,
            ))

        # Stable sort keeps generation order for equal scores
        return sorted(suggestions, key=lambda item: -item.score)

    def interface_settings(self, profile: UserProfile) -> InterfaceSettings:
        def score(trait: str) -> float:
            estimate = profile.personality.get(trait)
            return estimate.score if estimate is not None else 0.5

        settings = InterfaceSettings()
        if score('openness') > 0.7:
            settings.complexity = 'high'
            settings.information_density = 'dense'
        if score('conscientiousness') > 0.7:
            settings.interaction_style = 'organized'
        if score('neuroticism') > 0.6:
            settings.color_scheme = 'calming'
            settings.information_density = 'sparse'
        return settings
