"""
Preference Tracker

Folds one analysed visit into a user profile:
- Interest decay and reinforcement with bounded evolution history
- Behaviour pattern aggregation by signature
- Content preference smoothing with preferred-value switching
- Big Five personality estimate blending

The updater never mutates the profile it is given. It works on a deep
copy and reports which entities changed so the caller can persist them
atomically before swapping the copy in.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional, Set

from ..content_understanding.lexicons import DEFAULT_CATEGORY
from ..content_understanding.models import ContentAnalysis, PageVisit
from ..utils.config import TrackerConfig
from .models import (
    BehaviorPattern, ContentPreference, Interest, PERSONALITY_TRAITS, PersonalityEstimate,
    UserProfile, VisitRecord
)


@dataclass
class ProfileChanges:
    """Entities touched by a single update, keyed the way they are stored"""
    interests: Set[str] = field(default_factory=set)
    # Decayed only; the stored strength is brought forward on load
    decayed_interests: Set[str] = field(default_factory=set)
    evicted_interests: Set[str] = field(default_factory=set)
    behavior_patterns: Set[str] = field(default_factory=set)
    evicted_patterns: Set[str] = field(default_factory=set)
    preferences: Set[str] = field(default_factory=set)
    personality: Set[str] = field(default_factory=set)
    visit: Optional[VisitRecord] = None


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def time_of_day(hour: int) -> str:
    if 5 <= hour < 12:
        return 'morning'
    if 12 <= hour < 17:
        return 'afternoon'
    if 17 <= hour < 22:
        return 'evening'
    return 'night'


def session_length(dwell_time: float) -> str:
    if dwell_time < 30:
        return 'short'
    if dwell_time < 300:
        return 'medium'
    return 'long'


def interaction_style(visit: PageVisit) -> str:
    if visit.scroll_depth >= 0.7 or visit.dwell_time > 300:
        return 'deep'
    if visit.scroll_depth < 0.3 and visit.dwell_time < 30:
        return 'skimming'
    return 'reading'


class ProfileUpdater:
    """
    Applies the per-visit learning rules to a copy of a profile
    """

    def __init__(self, config: Optional[TrackerConfig] = None,
                 record_filter: Optional[Callable[[VisitRecord], VisitRecord]] = None):
        self.config = config or TrackerConfig()
        # Applied to visit records before they are kept or stored
        self.record_filter = record_filter

    def apply_visit(self, profile: UserProfile, visit: PageVisit, analysis: ContentAnalysis,
                    engagement: float, visit_id: str, now: Optional[datetime] = None):
        """
        Fold one visit into a copy of ``profile``.

        Args:
            profile: Current profile, left untouched
            visit: The page visit
            analysis: Content analysis of the visit
            engagement: Predicted engagement score in [0, 1]
            visit_id: Identifier for the stored visit record
            now: Update time, defaults to the visit timestamp

        Returns:
            Tuple of (updated profile copy, ProfileChanges)
        """
        now = now or visit.timestamp
        updated = copy.deepcopy(profile)
        changes = ProfileChanges()
        engagement = _clamp(engagement)

        record = VisitRecord(
            visit_id=visit_id,
            timestamp=visit.timestamp,
            url=visit.url,
            domain=visit.domain,
            category=analysis.category.primary,
            engagement=engagement,
            dwell_time=visit.dwell_time,
            title=visit.title,
        )
        if self.record_filter is not None:
            record = self.record_filter(record)

        self._update_interests(updated, visit, analysis, engagement, now, changes)
        self._update_behavior_patterns(updated, visit, analysis, record, now, changes)
        self._update_preferences(updated, analysis, now, changes)
        self._update_personality(updated, visit, analysis, now, changes)

        updated.recent_visits.append(record)
        if len(updated.recent_visits) > self.config.recent_visits_size:
            del updated.recent_visits[:len(updated.recent_visits) - self.config.recent_visits_size]
        changes.visit = record

        updated.interaction_count += 1
        updated.updated_at = now
        return updated, changes

    def evidence_for(self, analysis: ContentAnalysis) -> Dict[str, tuple]:
        """Map of topic -> (relevance, new-interest factor, source) for one analysis."""
        evidence = {}
        for word in analysis.keyword_terms:
            evidence[word] = (self.config.keyword_relevance, self.config.new_keyword_factor, 'keyword')
        category = analysis.category.primary
        if category and category != DEFAULT_CATEGORY:
            # Category evidence wins over a keyword with the same text
            evidence[category] = (self.config.category_relevance, self.config.new_category_factor, 'category')
        return evidence

    def decay_interests(self, profile: UserProfile, exclude: Set[str] = frozenset()) -> Set[str]:
        decayed = set()
        for topic, interest in profile.interests.items():
            if topic not in exclude:
                interest.strength = _clamp(interest.strength * self.config.decay_factor)
                decayed.add(topic)
        return decayed

    def _update_interests(self, profile: UserProfile, visit: PageVisit, analysis: ContentAnalysis,
                          engagement: float, now: datetime, changes: ProfileChanges):
        evidence = self.evidence_for(analysis)
        changes.decayed_interests |= self.decay_interests(profile, exclude=set(evidence))

        for topic, (relevance, new_factor, source) in evidence.items():
            interest = profile.interests.get(topic)
            if interest is None:
                interest = Interest(topic=topic, strength=_clamp(engagement * new_factor), source=source,
                                    last_updated=now)
                profile.interests[topic] = interest
            else:
                interest.strength = _clamp(
                    interest.strength * self.config.decay_factor
                    + engagement * relevance * self.config.learning_rate
                )
                interest.last_updated = now
            context = {'source': source, 'url': visit.url, 'engagement': engagement}
            interest.record(now, context, self.config.evolution_history_size)
            changes.interests.add(topic)

        overflow = len(profile.interests) - self.config.max_interests
        if overflow > 0:
            weakest = sorted(
                profile.interests.values(),
                key=lambda item: (item.strength, item.last_updated, item.topic)
            )[:overflow]
            for interest in weakest:
                del profile.interests[interest.topic]
                changes.interests.discard(interest.topic)
                changes.decayed_interests.discard(interest.topic)
                changes.evicted_interests.add(interest.topic)

    def pattern_snapshot(self, visit: PageVisit, analysis: ContentAnalysis) -> Dict[str, str]:
        return {
            'time_of_day': time_of_day(visit.timestamp.hour),
            'session_length': session_length(visit.dwell_time),
            'category': analysis.category.primary,
            'complexity': analysis.complexity,
            'format': analysis.content_format,
            'interaction_style': interaction_style(visit),
        }

    def _update_behavior_patterns(self, profile: UserProfile, visit: PageVisit, analysis: ContentAnalysis,
                                  record: VisitRecord, now: datetime, changes: ProfileChanges):
        snapshot = self.pattern_snapshot(visit, analysis)
        signature = '|'.join(f'{key}={snapshot[key]}' for key in sorted(snapshot))
        if not self.config.aggregate_behavior_patterns:
            signature = f'{signature}#{record.visit_id}'

        context = {'timestamp': now.isoformat(), 'url': record.url, 'category': analysis.category.primary}
        pattern = profile.behavior_patterns.get(signature)
        if pattern is None:
            pattern = BehaviorPattern(signature=signature, snapshot=snapshot, frequency=1,
                                      contexts=[context], first_seen=now, last_seen=now)
            profile.behavior_patterns[signature] = pattern
        else:
            pattern.frequency += 1
            pattern.last_seen = now
            pattern.contexts.append(context)
            if len(pattern.contexts) > self.config.max_pattern_contexts:
                del pattern.contexts[:len(pattern.contexts) - self.config.max_pattern_contexts]
        changes.behavior_patterns.add(signature)

        overflow = len(profile.behavior_patterns) - self.config.max_behavior_patterns
        if overflow > 0:
            rarest = sorted(
                (item for item in profile.behavior_patterns.values() if item.signature != signature),
                key=lambda item: (item.frequency, item.last_seen, item.signature)
            )[:overflow]
            for item in rarest:
                del profile.behavior_patterns[item.signature]
                changes.evicted_patterns.add(item.signature)

        # Only the touched pattern is written; shares are recomputed on load
        profile.normalize_pattern_strengths()

    def observed_preferences(self, analysis: ContentAnalysis) -> Dict[str, str]:
        return {
            'format': analysis.content_format,
            'length': analysis.length_bucket,
            'complexity': analysis.complexity,
            'visual_content': str(analysis.structure.images > 0).lower(),
            'interactivity': str(analysis.structure.interactive_elements > 0).lower(),
        }

    def _update_preferences(self, profile: UserProfile, analysis: ContentAnalysis, now: datetime,
                            changes: ProfileChanges):
        for category, observed in self.observed_preferences(analysis).items():
            preference = profile.preferences.get(category)
            if preference is None:
                profile.preferences[category] = ContentPreference(
                    category=category,
                    preference=observed,
                    weight=self.config.preference_initial_weight,
                    confidence=self.config.preference_initial_confidence,
                    last_updated=now,
                )
            else:
                match = 1.0 if observed == preference.preference else 0.0
                smoothing = self.config.preference_smoothing
                preference.weight = _clamp(preference.weight * smoothing + (1.0 - smoothing) * match)
                preference.confidence = min(1.0, preference.confidence + self.config.confidence_step)
                if preference.weight < self.config.preference_switch_threshold:
                    preference.preference = observed
                    preference.weight = self.config.preference_initial_weight
                preference.last_updated = now
            changes.preferences.add(category)

    def infer_traits(self, visit: PageVisit, analysis: ContentAnalysis) -> Dict[str, float]:
        """Big Five scores implied by this single visit, on a 0.5 baseline"""
        traits = {trait: 0.5 for trait in PERSONALITY_TRAITS}
        category = analysis.category.primary
        polarity = analysis.sentiment.polarity

        if category in ('education', 'arts'):
            traits['openness'] += 0.1
        if analysis.complexity == 'high':
            traits['openness'] += 0.05
        if category in ('productivity', 'business'):
            traits['conscientiousness'] += 0.1
        if visit.dwell_time > 300:
            traits['conscientiousness'] += 0.05
        if category == 'social':
            traits['extraversion'] += 0.1
        if polarity == 'positive':
            traits['agreeableness'] += 0.05
        if polarity == 'negative' or category == 'news':
            traits['neuroticism'] += 0.05
        return traits

    def _update_personality(self, profile: UserProfile, visit: PageVisit, analysis: ContentAnalysis,
                            now: datetime, changes: ProfileChanges):
        smoothing = self.config.personality_smoothing
        for trait, inferred in self.infer_traits(visit, analysis).items():
            estimate = profile.personality.get(trait)
            if estimate is None:
                estimate = PersonalityEstimate(trait=trait, last_updated=now)
                profile.personality[trait] = estimate
            estimate.score = _clamp(estimate.score * smoothing + (1.0 - smoothing) * inferred)
            estimate.confidence = min(1.0, estimate.confidence + self.config.confidence_step)
            estimate.last_updated = now
            changes.personality.add(trait)
