"""
Lexicon based emotion detection.
"""

import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict

from ..content_understanding.lexicons import EMOTION_LEXICONS, EMOTIONAL_TONES
from ..content_understanding.models import ContentAnalysis

EMOTIONS = tuple(name for name, _ in EMOTION_LEXICONS)


@dataclass(frozen=True)
class EmotionProfile:
    intensities: Dict[str, float] = field(default_factory=dict)
    dominant: str = 'neutral'
    dominant_intensity: float = 0.0
    tone: str = 'neutral'
    sentiment: str = 'neutral'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EmotionDetector:
    """Scores the eight basic emotions from fixed word lists"""

    def __init__(self, saturation: int = 3):
        self.saturation = saturation
        self._patterns = {
            emotion: re.compile(r'\b(?:%s)\b' % '|'.join(map(re.escape, words)))
            for emotion, words in EMOTION_LEXICONS
        }

    def detect(self, text: str, analysis: ContentAnalysis = None) -> EmotionProfile:
        lowered = (text or '').lower()
        intensities = {
            emotion: min(1.0, len(self._patterns[emotion].findall(lowered)) / float(self.saturation))
            for emotion in EMOTIONS
        }

        dominant, dominant_intensity = 'neutral', 0.0
        for emotion in EMOTIONS:
            # Strict comparison keeps the earlier emotion on ties
            if intensities[emotion] > dominant_intensity:
                dominant, dominant_intensity = emotion, intensities[emotion]

        polarity = analysis.sentiment.polarity if analysis is not None else 'neutral'
        return EmotionProfile(
            intensities=intensities,
            dominant=dominant,
            dominant_intensity=dominant_intensity,
            tone=self.tone_for(polarity, dominant),
            sentiment=polarity,
        )

    @staticmethod
    def tone_for(polarity: str, dominant: str) -> str:
        return EMOTIONAL_TONES.get((polarity, dominant), f'{polarity}_{dominant}')
