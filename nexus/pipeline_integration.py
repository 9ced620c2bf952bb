"""
Main pipeline integration for the personalization engine.
Wires content analysis, engagement prediction, mood inference, profile
tracking, recommendations and the continuous learning scheduler behind
one engine object.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Optional

import pandas as pd

from .adaptive_learning.pattern_reanalysis import analyze_recent_patterns
from .adaptive_learning.retraining import RetrainingStrategy, RetrainingTrigger
from .adaptive_learning.scheduler import ContinuousLearningScheduler, SystemClock
from .content_understanding.content_analyzer import ContentAnalyzer
from .content_understanding.models import ContentAnalysis, PageVisit
from .engagement.emotion_detector import EmotionDetector, EmotionProfile
from .engagement.engagement_predictor import EngagementPrediction, EngagementPredictor
from .interfaces.schemas import parse_event, parse_visit
from .recommenders.adaptive import AdaptiveRecommender, PersonalizedContent
from .storage.profile_repository import ProfileRepository
from .storage.profile_store import ProfileStore, StoreError
from .storage.retention import PrivacyFilter
from .user_profiling.behavior_analyzer import BehaviorAnalyzer
from .user_profiling.models import MoodSample, UserProfile
from .user_profiling.mood_inference import MoodInferencer
from .user_profiling.preference_tracker import ProfileUpdater
from .user_profiling.profile_actor import ProfileActor
from .utils.config import ConfigManager, SystemConfig
from .utils.logging import configure_logging, get_data_processing_logger, setup_logger

logger = setup_logger(__name__)


@dataclass
class VisitResult:
    """Outcome of processing one page visit"""
    user_id: str
    visit_id: str
    analysis: ContentAnalysis
    engagement: EngagementPrediction
    emotions: EmotionProfile
    profile_updated: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'visit_id': self.visit_id,
            'analysis': self.analysis.to_dict(),
            'engagement': self.engagement.to_dict(),
            'emotions': self.emotions.to_dict(),
            'profile_updated': self.profile_updated,
            'error': self.error,
        }


@dataclass
class ClearResult:
    """Outcome of a privacy clear"""
    user_id: str
    deleted: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def total_deleted(self) -> int:
        return sum(self.deleted.values())

    def to_dict(self) -> Dict[str, Any]:
        return {'user_id': self.user_id, 'deleted': dict(self.deleted), 'error': self.error}


def activity_pattern(peak_hour: int) -> str:
    if 9 <= peak_hour <= 17:
        return 'business_hours'
    if 18 <= peak_hour <= 22:
        return 'evening'
    if 6 <= peak_hour <= 8:
        return 'morning'
    return 'night_owl'


class PersonalizationEngine:
    """
    Real-time content analysis and personalization engine.

    Each user profile is owned by a ProfileActor so updates for one user
    apply one at a time. Analysis and prediction are pure and run inline.
    """

    def __init__(self, store: Optional[ProfileStore] = None, config: Optional[SystemConfig] = None,
                 clock=None, analyzer: Optional[ContentAnalyzer] = None,
                 predictor: Optional[EngagementPredictor] = None,
                 emotion_detector: Optional[EmotionDetector] = None,
                 retraining_strategy: Optional[RetrainingStrategy] = None):
        """Initialize the engine with injected collaborators."""
        self.config = config or SystemConfig()
        self.clock = clock or SystemClock()
        self._owns_store = store is None
        self.store = store or ProfileStore.from_config(self.config.database)

        self.analyzer = analyzer or ContentAnalyzer(self.config.analyzer)
        self.predictor = predictor or EngagementPredictor(self.config.engagement)
        self.emotion_detector = emotion_detector or EmotionDetector()
        self.behavior = BehaviorAnalyzer(self.config.mood)
        self.mood = MoodInferencer(self.config.mood, self.behavior)
        self.privacy = PrivacyFilter(self.config.privacy)
        self.updater = ProfileUpdater(self.config.tracker, record_filter=self.privacy.scrub_record)
        self.repository = ProfileRepository(
            self.store,
            mood_history_size=self.config.mood.history_size,
            recent_visits_size=self.config.tracker.recent_visits_size,
            decay_factor=self.config.tracker.decay_factor,
        )
        self.recommender = AdaptiveRecommender(self.config.recommendation)
        self.retraining = RetrainingTrigger(retraining_strategy, self.config.scheduler.retrain_every_interactions)
        self.scheduler = ContinuousLearningScheduler(
            persist=self.persist_all,
            reanalyze=self.reanalyze_all,
            check_retraining=self.check_retraining,
            drain=self.drain,
            config=self.config.scheduler,
            clock=self.clock,
        )

        self._actors: Dict[str, ProfileActor] = {}
        self._running = False
        self.processing_logger = get_data_processing_logger("PersonalizationEngine")

    @classmethod
    def from_config_file(cls, config_path: Optional[str] = None, **kwargs) -> 'PersonalizationEngine':
        """Build an engine from a YAML/JSON config file and install its log sinks."""
        manager = ConfigManager(config_path)
        validation = manager.validate_config()
        if not validation['valid']:
            raise ValueError(f"Invalid configuration: {'; '.join(validation['errors'])}")
        for warning in validation['warnings']:
            logger.warning(warning)
        config = manager.get_config()
        configure_logging(config.logging)
        return cls(config=config, **kwargs)

    async def start(self, run_scheduler: bool = True):
        """Start the continuous learning timers."""
        if self._running:
            return
        self._running = True
        if run_scheduler:
            self.scheduler.start()
        logger.info("Personalization engine started")

    async def shutdown(self):
        """Cancel timers, drain every profile actor, persist, then release resources."""
        await self.scheduler.stop()
        for actor in list(self._actors.values()):
            await actor.stop()
        self._running = False
        if self._owns_store:
            self.store.close()
        logger.info("Personalization engine stopped")

    def _actor(self, user_id: str) -> ProfileActor:
        actor = self._actors.get(user_id)
        if actor is None:
            profile = self.repository.load_profile(user_id)
            if profile is None:
                profile = UserProfile.create_default(user_id, self.clock.now())
            actor = ProfileActor(profile, self.repository, self.updater, self.config.mood.history_size)
            self._actors[user_id] = actor
        return actor

    def analyze_visit(self, visit: PageVisit, profile: Optional[UserProfile] = None):
        """
        Analyse a visit without touching any profile.

        Returns:
            Tuple of (ContentAnalysis, EngagementPrediction, EmotionProfile)
        """
        analysis = self.analyzer.analyze(visit)
        interests = profile.interest_strengths() if profile is not None else None
        engagement = self.predictor.predict(analysis, visit, interests)
        emotions = self.emotion_detector.detect(visit.text, analysis)
        return analysis, engagement, emotions

    async def process_visit(self, user_id: str, payload) -> VisitResult:
        """
        Analyse a page visit and fold it into the user's profile.

        Never raises for bad input or store failures: the analysis is
        still returned and the problem is reported in ``error``.
        """
        start_time = time.perf_counter()
        visit, error = parse_visit(payload, self.clock.now())
        visit_id = uuid.uuid4().hex
        self.processing_logger.log_processing_start("process_visit", len(visit.text or ''))

        if error is not None:
            # Rejected payloads are analysed as empty visits but never learned from
            logger.warning(f"Rejected visit for {user_id}: {error}")
            analysis, engagement, emotions = self.analyze_visit(visit)
            return VisitResult(user_id, visit_id, analysis, engagement, emotions, False, error)

        try:
            actor = self._actor(user_id)
        except StoreError as e:
            self.processing_logger.log_error_with_context("process_visit", e, {'user_id': user_id})
            analysis, engagement, emotions = self.analyze_visit(visit)
            return VisitResult(user_id, visit_id, analysis, engagement, emotions, False, str(e))

        analysis, engagement, emotions = self.analyze_visit(visit, actor.profile)
        try:
            updated, store_error = await actor.apply_visit(visit, analysis, engagement.score, visit_id,
                                                           visit.timestamp)
        except Exception as e:
            self.processing_logger.log_error_with_context(
                "process_visit", e, {'user_id': user_id, 'url': visit.url}
            )
            updated, store_error = False, str(e)

        self.processing_logger.log_processing_complete(
            "process_visit", time.perf_counter() - start_time, analysis.degraded
        )
        return VisitResult(
            user_id=user_id,
            visit_id=visit_id,
            analysis=analysis,
            engagement=engagement,
            emotions=emotions,
            profile_updated=updated,
            error=store_error or analysis.error,
        )

    def record_interaction(self, user_id: str, payload) -> bool:
        """Append an interaction event to the user's telemetry window."""
        event, error = parse_event(payload, self.clock.now())
        if event is None:
            logger.warning(f"Ignoring interaction for {user_id}: {error}")
            return False
        self.behavior.record(user_id, event)
        return True

    async def infer_mood(self, user_id: str) -> MoodSample:
        """Infer the current mood and append it to the profile's mood history."""
        sample = self.mood.infer(self.behavior.recent_events(user_id), self.clock.now())
        try:
            await self._actor(user_id).append_mood(sample)
        except StoreError as e:
            logger.error(f"Could not record mood for {user_id}: {e}")
        return sample

    async def get_profile_snapshot(self, user_id: str) -> UserProfile:
        return await self._actor(user_id).snapshot()

    async def get_personalized_content(self, user_id: str) -> PersonalizedContent:
        profile = await self.get_profile_snapshot(user_id)
        return self.recommender.recommend(profile, self.clock.now())

    async def get_recent_activity(self, user_id: str, hours: int = 24) -> Dict[str, Any]:
        """
        Summarise stored visits from the last ``hours`` hours.

        Returns:
            Visit totals, the ten most visited pages, category counts,
            hourly activity and the overall activity pattern
        """
        now = self.clock.now()
        await self._actor(user_id).drain()
        records = self.store.range_query('interactions', user_id, start=now - timedelta(hours=hours))

        summary = {
            'user_id': user_id,
            'hours': hours,
            'total_visits': len(records),
            'total_dwell_time': 0.0,
            'average_engagement': 0.0,
            'most_visited_pages': [],
            'categories': {},
            'hourly_activity': [0] * 24,
            'activity_pattern': 'no_activity',
        }
        if not records:
            return summary

        frame = pd.DataFrame([record['data'] for record in records])
        frame['hour'] = [record['timestamp'].hour for record in records]

        pages = frame.groupby('url').size().reset_index(name='visits')
        pages = pages.sort_values(['visits', 'url'], ascending=[False, True]).head(10)
        hourly = frame.groupby('hour').size().reindex(range(24), fill_value=0)

        summary.update({
            'total_dwell_time': float(frame['dwell_time'].sum()),
            'average_engagement': float(frame['engagement'].mean()),
            'most_visited_pages': [
                {'url': row.url, 'count': int(row.visits)} for row in pages.itertuples(index=False)
            ],
            'categories': {str(k): int(v) for k, v in frame['category'].value_counts().items()},
            'hourly_activity': [int(value) for value in hourly.tolist()],
            'activity_pattern': activity_pattern(int(hourly.idxmax())),
        })
        return summary

    async def clear_user_data(self, user_id: str, retention_days: Optional[int] = None) -> ClearResult:
        """
        Privacy clear.

        ``retention_days=None`` deletes everything stored for the user and
        resets the profile; otherwise only data older than the window goes.
        A negative window or a store failure is reported in ``error``.
        """
        if retention_days is not None and retention_days < 0:
            error = f"retention_days must not be negative, got {retention_days}"
            logger.warning(f"Rejected privacy clear for {user_id}: {error}")
            return ClearResult(user_id, error=error)

        try:
            deleted = await self._actor(user_id).clear(retention_days, self.clock.now())
        except StoreError as e:
            self.processing_logger.log_error_with_context(
                "clear_user_data", e, {'user_id': user_id, 'retention_days': retention_days}
            )
            return ClearResult(user_id, error=str(e))

        if retention_days is None:
            self.behavior.forget(user_id)
            self.retraining.reset(user_id)
        return ClearResult(user_id, deleted)

    async def enforce_retention(self) -> Dict[str, ClearResult]:
        """Apply the configured retention window to every loaded user."""
        days = self.config.privacy.retention_days
        return {user_id: await self.clear_user_data(user_id, days) for user_id in list(self._actors)}

    async def persist_all(self):
        for actor in list(self._actors.values()):
            await actor.persist()

    async def reanalyze_all(self):
        scheduler_config = self.config.scheduler

        def compute(profile: UserProfile):
            return analyze_recent_patterns(
                profile.recent_visits,
                window=scheduler_config.reanalysis_window,
                min_visits=scheduler_config.reanalysis_min_visits,
            )

        now = self.clock.now()
        for actor in list(self._actors.values()):
            await actor.update_adaptive_weights(compute, now)

    async def check_retraining(self):
        for user_id, actor in list(self._actors.items()):
            if self.retraining.is_due(user_id, actor.profile.interaction_count):
                await self.retraining.check(user_id, await actor.snapshot())

    async def drain(self):
        for actor in list(self._actors.values()):
            await actor.drain()

    def get_engine_status(self) -> Dict[str, Any]:
        return {
            'running': self._running,
            'loaded_profiles': len(self._actors),
            'scheduled_tasks': {
                task.name: {'runs': task.runs, 'failures': task.failures, 'interval': task.interval}
                for task in self.scheduler.tasks
            },
        }
