"""
User profile data structures

The profile is the aggregate root for everything learned about a user:
interests, behaviour patterns, content preferences, the personality
estimate, mood history and recent visits. Every entity converts to and
from plain dictionaries for storage, with datetimes as ISO-8601 strings.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

PERSONALITY_TRAITS = ('openness', 'conscientiousness', 'extraversion', 'agreeableness', 'neuroticism')


class MoodLabel(str, Enum):
    INSUFFICIENT_DATA = 'insufficient_data'
    IMPATIENT = 'impatient'
    FOCUSED = 'focused'
    EXPLORING = 'exploring'
    DISTRACTED = 'distracted'
    PRODUCTIVE = 'productive'
    RELAXED = 'relaxed'
    NEUTRAL = 'neutral'


class EventType(str, Enum):
    CLICK = 'click'
    SCROLL = 'scroll'
    KEYBOARD = 'keyboard'
    MOUSEMOVE = 'mousemove'


def _iso(value: datetime) -> str:
    return value.isoformat()


def _parse(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class InteractionEvent:
    event_type: EventType
    timestamp: datetime = field(default_factory=datetime.now)
    target: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'event_type': self.event_type.value, 'timestamp': _iso(self.timestamp), 'target': self.target}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InteractionEvent':
        return cls(EventType(data['event_type']), _parse(data['timestamp']), data.get('target'))


@dataclass
class MoodSample:
    timestamp: datetime
    mood: str
    confidence: float
    factors: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': _iso(self.timestamp),
            'mood': self.mood,
            'confidence': self.confidence,
            'factors': dict(self.factors),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MoodSample':
        return cls(_parse(data['timestamp']), data['mood'], data['confidence'], dict(data.get('factors', {})))


@dataclass
class EvolutionPoint:
    """One reinforcement of an interest: the new strength and what caused it"""
    timestamp: datetime
    strength: float
    context: Dict[str, Any] = field(default_factory=dict)  # source, url, engagement

    def to_dict(self) -> Dict[str, Any]:
        return {'timestamp': _iso(self.timestamp), 'strength': self.strength, 'context': dict(self.context)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvolutionPoint':
        return cls(_parse(data['timestamp']), data['strength'], dict(data.get('context', {})))


@dataclass
class Interest:
    """A tracked topic with a strength in [0, 1] and a bounded history"""
    topic: str
    strength: float
    source: str = 'keyword'  # keyword or category
    evolution: List[EvolutionPoint] = field(default_factory=list)
    last_updated: datetime = field(default_factory=datetime.now)

    def record(self, timestamp: datetime, context: Dict[str, Any], history_size: int):
        self.evolution.append(EvolutionPoint(timestamp, self.strength, dict(context)))
        if len(self.evolution) > history_size:
            del self.evolution[:len(self.evolution) - history_size]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'topic': self.topic,
            'strength': self.strength,
            'source': self.source,
            'evolution': [point.to_dict() for point in self.evolution],
            'last_updated': _iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Interest':
        return cls(
            topic=data['topic'],
            strength=data['strength'],
            source=data.get('source', 'keyword'),
            evolution=[EvolutionPoint.from_dict(point) for point in data.get('evolution', [])],
            last_updated=_parse(data['last_updated']),
        )


@dataclass
class BehaviorPattern:
    """A recurring browsing situation, aggregated by signature"""
    signature: str
    snapshot: Dict[str, Any]
    frequency: int = 1
    contexts: List[Dict[str, Any]] = field(default_factory=list)
    strength: float = 0.0
    first_seen: datetime = field(default_factory=datetime.now)
    last_seen: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'signature': self.signature,
            'snapshot': dict(self.snapshot),
            'frequency': self.frequency,
            'contexts': [dict(context) for context in self.contexts],
            'strength': self.strength,
            'first_seen': _iso(self.first_seen),
            'last_seen': _iso(self.last_seen),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BehaviorPattern':
        return cls(
            signature=data['signature'],
            snapshot=dict(data['snapshot']),
            frequency=data.get('frequency', 1),
            contexts=[dict(context) for context in data.get('contexts', [])],
            strength=data.get('strength', 0.0),
            first_seen=_parse(data['first_seen']),
            last_seen=_parse(data['last_seen']),
        )


@dataclass
class ContentPreference:
    category: str  # format, length, complexity, visual_content, interactivity
    preference: str
    weight: float
    confidence: float
    last_updated: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category,
            'preference': self.preference,
            'weight': self.weight,
            'confidence': self.confidence,
            'last_updated': _iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContentPreference':
        return cls(data['category'], data['preference'], data['weight'], data['confidence'],
                   _parse(data['last_updated']))


@dataclass
class PersonalityEstimate:
    trait: str
    score: float = 0.5
    confidence: float = 0.0
    last_updated: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trait': self.trait,
            'score': self.score,
            'confidence': self.confidence,
            'last_updated': _iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PersonalityEstimate':
        return cls(data['trait'], data['score'], data['confidence'], _parse(data['last_updated']))


@dataclass
class VisitRecord:
    visit_id: str
    timestamp: datetime
    url: str
    domain: str
    category: str
    engagement: float
    dwell_time: float = 0.0
    title: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'visit_id': self.visit_id,
            'timestamp': _iso(self.timestamp),
            'url': self.url,
            'domain': self.domain,
            'category': self.category,
            'engagement': self.engagement,
            'dwell_time': self.dwell_time,
            'title': self.title,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VisitRecord':
        return cls(
            visit_id=data['visit_id'],
            timestamp=_parse(data['timestamp']),
            url=data.get('url', ''),
            domain=data.get('domain', ''),
            category=data.get('category', 'general'),
            engagement=data.get('engagement', 0.0),
            dwell_time=data.get('dwell_time', 0.0),
            title=data.get('title', ''),
        )


@dataclass
class UserProfile:
    """Aggregate root for one user's learned state"""
    user_id: str
    interests: Dict[str, Interest] = field(default_factory=dict)
    behavior_patterns: Dict[str, BehaviorPattern] = field(default_factory=dict)
    preferences: Dict[str, ContentPreference] = field(default_factory=dict)
    personality: Dict[str, PersonalityEstimate] = field(default_factory=dict)
    mood_history: List[MoodSample] = field(default_factory=list)
    recent_visits: List[VisitRecord] = field(default_factory=list)
    adaptive_weights: Dict[str, Dict[str, float]] = field(default_factory=dict)
    interaction_count: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create_default(cls, user_id: str, now: Optional[datetime] = None) -> 'UserProfile':
        now = now or datetime.now()
        return cls(
            user_id=user_id,
            personality={trait: PersonalityEstimate(trait, 0.5, 0.0, now) for trait in PERSONALITY_TRAITS},
            created_at=now,
            updated_at=now,
        )

    def top_interests(self, limit: int = 10) -> List[Interest]:
        ranked = sorted(self.interests.values(), key=lambda interest: (-interest.strength, interest.topic))
        return ranked[:limit]

    def interest_strengths(self) -> Dict[str, float]:
        return {topic: interest.strength for topic, interest in self.interests.items()}

    def normalize_pattern_strengths(self):
        """Set every pattern's strength to its share of all pattern observations."""
        total = sum(pattern.frequency for pattern in self.behavior_patterns.values())
        for pattern in self.behavior_patterns.values():
            pattern.strength = pattern.frequency / total if total else 0.0

    @property
    def current_mood(self) -> Optional[MoodSample]:
        return self.mood_history[-1] if self.mood_history else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'interests': [interest.to_dict() for interest in self.interests.values()],
            'behavior_patterns': [pattern.to_dict() for pattern in self.behavior_patterns.values()],
            'preferences': [preference.to_dict() for preference in self.preferences.values()],
            'personality': [estimate.to_dict() for estimate in self.personality.values()],
            'mood_history': [sample.to_dict() for sample in self.mood_history],
            'recent_visits': [visit.to_dict() for visit in self.recent_visits],
            'adaptive_weights': {key: dict(value) for key, value in self.adaptive_weights.items()},
            'interaction_count': self.interaction_count,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserProfile':
        interests = [Interest.from_dict(item) for item in data.get('interests', [])]
        patterns = [BehaviorPattern.from_dict(item) for item in data.get('behavior_patterns', [])]
        preferences = [ContentPreference.from_dict(item) for item in data.get('preferences', [])]
        personality = [PersonalityEstimate.from_dict(item) for item in data.get('personality', [])]
        profile = cls(
            user_id=data['user_id'],
            interests={interest.topic: interest for interest in interests},
            behavior_patterns={pattern.signature: pattern for pattern in patterns},
            preferences={preference.category: preference for preference in preferences},
            personality={estimate.trait: estimate for estimate in personality},
            mood_history=[MoodSample.from_dict(item) for item in data.get('mood_history', [])],
            recent_visits=[VisitRecord.from_dict(item) for item in data.get('recent_visits', [])],
            adaptive_weights={key: dict(value) for key, value in data.get('adaptive_weights', {}).items()},
            interaction_count=data.get('interaction_count', 0),
            created_at=_parse(data['created_at']),
            updated_at=_parse(data['updated_at']),
        )
        # Pattern strengths are shares of the stored frequencies
        profile.normalize_pattern_strengths()
        return profile
