"""
Engagement Predictor

Combines seven weighted factors derived from a content analysis, the
visit telemetry and the user's interest strengths into a single
engagement score in [0, 1].
"""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from ..content_understanding.models import ContentAnalysis, PageVisit
from ..utils.config import EngagementConfig
from ..utils.logging import setup_logger

logger = setup_logger(__name__)

FACTOR_NAMES = (
    'content_quality',
    'readability',
    'media_richness',
    'interactivity',
    'personal_relevance',
    'timeliness',
    'social_signals',
)


@dataclass(frozen=True)
class EngagementPrediction:
    score: float
    bucket: str  # low, medium, high
    factors: Dict[str, float] = field(default_factory=dict)
    confidence: float = 0.0
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class EngagementPredictor:
    """Weighted-factor engagement model"""

    def __init__(self, config: Optional[EngagementConfig] = None):
        self.config = config or EngagementConfig()

    def bucket_for(self, score: float) -> str:
        if score >= self.config.high_threshold:
            return 'high'
        if score >= self.config.medium_threshold:
            return 'medium'
        return 'low'

    def predict(self, analysis: ContentAnalysis, visit: Optional[PageVisit] = None,
                interest_strengths: Optional[Mapping[str, float]] = None) -> EngagementPrediction:
        """
        Predict engagement for an analysed page.

        Args:
            analysis: Output of the content analyzer
            visit: The visit the analysis came from, for telemetry and markup
            interest_strengths: Current interest strengths keyed by topic

        Returns:
            EngagementPrediction; a degraded analysis always scores 0.5
        """
        if analysis.degraded:
            score = self.config.fallback_score
            return EngagementPrediction(
                score=score,
                bucket=self.bucket_for(score),
                factors={name: 0.0 for name in FACTOR_NAMES},
                confidence=0.0,
                degraded=True,
            )

        factors: Dict[str, float] = {}
        observed = 0
        for name in FACTOR_NAMES:
            value = getattr(self, f'_{name}')(analysis, visit, interest_strengths)
            if value is None:
                # Unobservable factors contribute nothing
                factors[name] = 0.0
            else:
                factors[name] = _clamp(value)
                observed += 1

        weights = self.config.factor_weights
        score = _clamp(sum(factors[name] * weights.get(name, 0.0) for name in FACTOR_NAMES))

        return EngagementPrediction(
            score=score,
            bucket=self.bucket_for(score),
            factors=factors,
            confidence=observed / len(FACTOR_NAMES),
        )

    def _content_quality(self, analysis, visit, interests) -> float:
        length = min(1.0, analysis.word_count / 300.0)
        topical = min(1.0, len(analysis.topics) / 5.0)
        return 0.4 * length + 0.3 * topical + 0.3 * analysis.category.confidence

    def _readability(self, analysis, visit, interests) -> float:
        return analysis.readability.flesch_score / 100.0

    def _media_richness(self, analysis, visit, interests) -> Optional[float]:
        if visit is None or not visit.html:
            return None
        return min(1.0, analysis.structure.total_media / float(self.config.media_saturation))

    def _interactivity(self, analysis, visit, interests) -> Optional[float]:
        if visit is None:
            return None
        has_markup = bool(visit.html)
        has_telemetry = visit.dwell_time > 0 or visit.scroll_depth > 0 or visit.total_interactions > 0
        if not has_markup and not has_telemetry:
            return None

        structural = min(1.0, analysis.structure.interactive_elements / 5.0)
        dwell = min(1.0, visit.dwell_time / self.config.dwell_time_saturation_seconds)
        behavioral = 0.5 * _clamp(visit.scroll_depth) + 0.5 * dwell
        return 0.5 * structural + 0.5 * behavioral

    def _personal_relevance(self, analysis, visit, interests) -> Optional[float]:
        if not interests:
            return None
        terms = analysis.keyword_terms + [analysis.category.primary]
        matched = [interests[term] for term in terms if term in interests]
        if not matched:
            return 0.0
        return sum(matched) / len(matched)

    def _timeliness(self, analysis, visit, interests) -> Optional[float]:
        if not analysis.entities.dates:
            return None
        reference = (visit.timestamp if visit is not None else datetime.now()).date()

        ages = []
        for value in analysis.entities.dates:
            try:
                ages.append(abs((reference - date.fromisoformat(value)).days))
            except ValueError:
                logger.debug(f"Ignoring unparseable entity date {value!r}")
        if not ages:
            return None

        age = min(ages)
        if age <= 30:
            return 1.0
        if age <= 365:
            return 0.5
        return 0.2

    def _social_signals(self, analysis, visit, interests) -> Optional[float]:
        if visit is None or not visit.html:
            return None
        return min(1.0, analysis.structure.share_widgets / float(self.config.social_saturation))
