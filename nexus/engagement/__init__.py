"""
Engagement and emotion prediction for analysed content.
"""

from .engagement_predictor import EngagementPredictor, EngagementPrediction, FACTOR_NAMES
from .emotion_detector import EmotionDetector, EmotionProfile, EMOTIONS

__all__ = [
    'EngagementPredictor',
    'EngagementPrediction',
    'FACTOR_NAMES',
    'EmotionDetector',
    'EmotionProfile',
    'EMOTIONS',
]
