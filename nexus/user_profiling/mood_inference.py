"""
Rule based mood inference from interaction telemetry.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from ..utils.config import MoodConfig
from .behavior_analyzer import BehaviorAnalyzer, BehaviorMetrics
from .models import InteractionEvent, MoodLabel, MoodSample


class MoodInferencer:
    """Classifies the current mood from the latest interaction events"""

    def __init__(self, config: Optional[MoodConfig] = None, analyzer: Optional[BehaviorAnalyzer] = None):
        self.config = config or MoodConfig()
        self.analyzer = analyzer or BehaviorAnalyzer(self.config)

    def infer(self, events: List[InteractionEvent], now: Optional[datetime] = None) -> MoodSample:
        """
        Infer a mood sample from recent events.

        Fewer than ``min_events`` events yields ``insufficient_data`` with
        zero confidence instead of a guess.
        """
        now = now or datetime.now()
        recent = events[-self.config.recent_events:]

        if len(recent) < self.config.min_events:
            return MoodSample(
                timestamp=now,
                mood=MoodLabel.INSUFFICIENT_DATA.value,
                confidence=0.0,
                factors={'event_count': len(recent)},
            )

        metrics = self.analyzer.compute_metrics(recent)
        label, confidence = self.classify(metrics, now)
        return MoodSample(timestamp=now, mood=label.value, confidence=confidence, factors=metrics.to_dict())

    def classify(self, metrics: BehaviorMetrics, now: datetime) -> Tuple[MoodLabel, float]:
        gap = metrics.avg_gap_seconds
        clicks = metrics.click_count
        scrolls = metrics.scroll_count

        if gap < self.config.impatient_gap_seconds and clicks > self.config.impatient_min_clicks:
            return MoodLabel.IMPATIENT, 0.7
        if gap > self.config.focused_gap_seconds and scrolls > clicks:
            return MoodLabel.FOCUSED, 0.8
        if scrolls > clicks * 2:
            return MoodLabel.EXPLORING, 0.6
        if gap > self.config.distracted_gap_seconds:
            return MoodLabel.DISTRACTED, 0.5
        if now.weekday() < 5 and 9 <= now.hour <= 17:
            return MoodLabel.PRODUCTIVE, 0.6
        if 18 <= now.hour <= 22:
            return MoodLabel.RELAXED, 0.6
        return MoodLabel.NEUTRAL, 0.5
