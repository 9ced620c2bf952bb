"""
Tests for engagement prediction and emotion detection.
"""

from datetime import datetime

import pytest

from nexus.content_understanding.models import PageVisit
from nexus.engagement.emotion_detector import EMOTIONS, EmotionDetector
from nexus.engagement.engagement_predictor import FACTOR_NAMES, EngagementPredictor


class TestEngagementPredictor:
    """Test the weighted factor engagement model."""

    @pytest.fixture
    def predictor(self):
        return EngagementPredictor()

    def test_degraded_analysis_scores_exactly_half(self, predictor, make_analysis):
        prediction = predictor.predict(make_analysis(degraded=True))

        assert prediction.score == 0.5
        assert prediction.bucket == 'medium'
        assert prediction.confidence == 0.0
        assert prediction.degraded is True
        assert set(prediction.factors) == set(FACTOR_NAMES)

    def test_score_is_bounded(self, predictor, make_analysis):
        visit = PageVisit(
            url='https://example.com/page',
            html='<img src="a.png">' * 20 + '<form><input><button>x</button></form>',
            dwell_time=5000, scroll_depth=1.0, interaction_counts={'click': 50},
        )
        prediction = predictor.predict(make_analysis(images=20, forms=1), visit, {'technology': 1.0})

        assert 0.0 <= prediction.score <= 1.0
        assert all(0.0 <= value <= 1.0 for value in prediction.factors.values())
        assert prediction.bucket == predictor.bucket_for(prediction.score)

    def test_personal_relevance_uses_interests(self, predictor, make_analysis):
        analysis = make_analysis(category='technology', keywords=('python',))

        matched = predictor.predict(analysis, interest_strengths={'technology': 0.9, 'python': 0.5})
        unmatched = predictor.predict(analysis, interest_strengths={'cooking': 0.9})

        assert matched.factors['personal_relevance'] == pytest.approx(0.7)
        assert unmatched.factors['personal_relevance'] == 0.0
        assert matched.score > unmatched.score

    def test_unobservable_factors_lower_confidence(self, predictor, make_analysis):
        prediction = predictor.predict(make_analysis())

        # Only content quality and readability are observable without a visit
        assert prediction.confidence == pytest.approx(2 / 7)
        assert prediction.factors['media_richness'] == 0.0
        assert prediction.factors['social_signals'] == 0.0

    def test_recent_dates_are_timely(self, predictor, make_analysis):
        visit = PageVisit(url='https://example.com', timestamp=datetime(2024, 3, 4))

        fresh = predictor.predict(make_analysis(dates=('2024-03-01',)), visit)
        stale = predictor.predict(make_analysis(dates=('2020-01-01',)), visit)

        assert fresh.factors['timeliness'] == 1.0
        assert stale.factors['timeliness'] == 0.2

    @pytest.mark.parametrize("score,bucket", [(0.0, 'low'), (0.39, 'low'), (0.4, 'medium'),
                                              (0.69, 'medium'), (0.7, 'high'), (1.0, 'high')])
    def test_buckets(self, predictor, score, bucket):
        assert predictor.bucket_for(score) == bucket


class TestEmotionDetector:
    """Test lexicon based emotion detection."""

    @pytest.fixture
    def detector(self):
        return EmotionDetector()

    def test_dominant_emotion_and_tone(self, detector, make_analysis):
        profile = detector.detect("I am so happy and glad, what joy!", make_analysis(polarity='positive'))

        assert profile.intensities['joy'] == 1.0
        assert profile.dominant == 'joy'
        assert profile.tone == 'uplifting'
        assert profile.sentiment == 'positive'

    def test_empty_text_is_neutral(self, detector):
        profile = detector.detect('')

        assert profile.dominant == 'neutral'
        assert profile.dominant_intensity == 0.0
        assert set(profile.intensities) == set(EMOTIONS)
        assert profile.tone == 'neutral'

    def test_ties_keep_table_order(self, detector):
        profile = detector.detect("happy but sad")

        assert profile.intensities['joy'] == profile.intensities['sadness']
        assert profile.dominant == 'joy'

    def test_unknown_tone_combination(self, detector):
        assert detector.tone_for('neutral', 'fear') == 'neutral_fear'
