"""
End-to-end tests for the personalization engine.
"""

from datetime import timedelta

import pytest
import yaml
from loguru import logger

from nexus.adaptive_learning.retraining import LoggingRetrainingStrategy
from nexus.pipeline_integration import PersonalizationEngine, activity_pattern
from nexus.storage.profile_store import StoreError, StoreTransaction

TECH_TEXT = (
    "Software developer tools make programming on a computer easier for every developer. "
    "The new release of the compiler improves performance for programming teams."
)


def tech_visit(index=0, **overrides):
    payload = {
        'url': f'https://docs.example.com/guide/{index}',
        'title': 'Developer guide',
        'text': TECH_TEXT,
        'html': '<h1>Guide</h1><img src="a.png" alt="a"><a href="https://twitter.com/share">Share</a>',
        'dwell_time': 120,
        'scroll_depth': 0.8,
        'interaction_counts': {'click': 2, 'scroll': 10},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def strategy():
    return LoggingRetrainingStrategy()


@pytest.fixture
def engine(store, system_config, clock, strategy):
    system_config.scheduler.retrain_every_interactions = 2
    return PersonalizationEngine(store=store, config=system_config, clock=clock, retraining_strategy=strategy)


class TestPersonalizationEngine:
    """Test the full visit pipeline."""

    @pytest.mark.asyncio
    async def test_process_visit(self, engine, store):
        result = await engine.process_visit('user1', tech_visit())

        assert result.error is None
        assert result.profile_updated is True
        assert result.analysis.category.primary == 'technology'
        assert 0.0 <= result.engagement.score <= 1.0
        assert result.to_dict()['user_id'] == 'user1'
        assert store.count('interactions', 'user1') == 1

        profile = await engine.get_profile_snapshot('user1')
        assert profile.interaction_count == 1
        assert 'technology' in profile.interests
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_invalid_payload_degrades(self, engine):
        result = await engine.process_visit('user1', {'url': 'https://example.com', 'dwell_time': -5})

        assert result.error is not None
        assert result.analysis.degraded is True
        assert result.engagement.score == 0.5
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_store_failure_reports_error(self, engine, monkeypatch):
        def failing_upsert(self, *args, **kwargs):
            raise StoreError("database is locked")

        monkeypatch.setattr(StoreTransaction, 'upsert', failing_upsert)
        result = await engine.process_visit('user1', tech_visit())

        assert result.profile_updated is False
        assert 'database is locked' in result.error
        assert result.analysis.category.primary == 'technology'
        monkeypatch.undo()

        profile = await engine.get_profile_snapshot('user1')
        assert profile.interaction_count == 0
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_mood_from_interactions(self, engine, clock):
        sample = await engine.infer_mood('user1')
        assert sample.mood == 'insufficient_data'

        for index in range(6):
            assert engine.record_interaction('user1', {
                'event_type': 'scroll', 'timestamp': clock.now() + timedelta(seconds=6 * index),
            })
        assert engine.record_interaction('user1', {'event_type': 'bogus'}) is False

        sample = await engine.infer_mood('user1')
        assert sample.mood == 'focused'

        profile = await engine.get_profile_snapshot('user1')
        assert [s.mood for s in profile.mood_history] == ['insufficient_data', 'focused']
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_personalized_content(self, engine):
        for index in range(3):
            await engine.process_visit('user1', tech_visit(index))

        content = await engine.get_personalized_content('user1')

        assert 'technology' in [topic.topic for topic in content.recommended_topics]
        assert ('domain_focus', 'docs.example.com') in [(p.type, p.name) for p in content.projects]
        assert content.work_context == 'work_hours'
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_recent_activity(self, engine):
        await engine.process_visit('user1', tech_visit(0))
        await engine.process_visit('user1', tech_visit(0))
        await engine.process_visit('user1', tech_visit(1))

        activity = await engine.get_recent_activity('user1', hours=24)

        assert activity['total_visits'] == 3
        assert activity['most_visited_pages'][0] == {'url': 'https://docs.example.com/guide/0', 'count': 2}
        assert activity['categories'] == {'technology': 3}
        assert activity['hourly_activity'][10] == 3
        assert activity['activity_pattern'] == 'business_hours'
        assert activity['total_dwell_time'] == pytest.approx(360.0)
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_recent_activity_without_visits(self, engine):
        activity = await engine.get_recent_activity('nobody')

        assert activity['total_visits'] == 0
        assert activity['activity_pattern'] == 'no_activity'
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_full_clear(self, engine, store):
        await engine.process_visit('user1', tech_visit())
        engine.record_interaction('user1', {'event_type': 'click'})

        result = await engine.clear_user_data('user1')

        assert result.error is None
        assert result.deleted['interactions'] == 1
        assert result.total_deleted >= 1
        assert store.count('interests', 'user1') == 0
        assert len(engine.behavior.window_for('user1')) == 0
        profile = await engine.get_profile_snapshot('user1')
        assert profile.interests == {}
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_negative_retention_window_is_reported(self, engine, store):
        await engine.process_visit('user1', tech_visit())

        result = await engine.clear_user_data('user1', retention_days=-1)

        assert result.deleted == {}
        assert 'must not be negative' in result.error
        assert store.count('interactions', 'user1') == 1
        profile = await engine.get_profile_snapshot('user1')
        assert 'technology' in profile.interests
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_store_failure_during_clear_is_reported(self, engine, monkeypatch):
        await engine.process_visit('user1', tech_visit())

        def failing_delete_all(self, *args, **kwargs):
            raise StoreError("disk I/O error")

        monkeypatch.setattr(StoreTransaction, 'delete_all', failing_delete_all)
        result = await engine.clear_user_data('user1')
        monkeypatch.undo()

        assert 'disk I/O error' in result.error
        profile = await engine.get_profile_snapshot('user1')
        assert 'technology' in profile.interests
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_scheduled_reanalysis_and_retraining(self, engine, clock, strategy):
        for index in range(6):
            await engine.process_visit('user1', tech_visit(index))

        clock.advance(60)
        ran = await engine.scheduler.run_due_tasks()

        assert ran == ['pattern_reanalysis', 'retraining_check']
        profile = await engine.get_profile_snapshot('user1')
        assert profile.adaptive_weights['technology']['weight'] == pytest.approx(1.0)
        assert strategy.history == [{'user_id': 'user1', 'interaction_count': 6}]
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_persists_and_reloads(self, store, system_config, clock):
        engine = PersonalizationEngine(store=store, config=system_config, clock=clock)
        await engine.start()
        await engine.process_visit('user1', tech_visit())
        await engine.infer_mood('user1')
        await engine.shutdown()

        reloaded = PersonalizationEngine(store=store, config=system_config, clock=clock)
        profile = await reloaded.get_profile_snapshot('user1')

        assert profile.interaction_count == 1
        assert 'technology' in profile.interests
        assert len(profile.mood_history) == 1
        status = reloaded.get_engine_status()
        assert status['loaded_profiles'] == 1
        await reloaded.shutdown()

    @pytest.mark.asyncio
    async def test_users_are_isolated(self, engine):
        await engine.process_visit('user1', tech_visit())

        other = await engine.get_profile_snapshot('user2')
        assert other.interests == {}
        await engine.shutdown()

    @pytest.mark.parametrize("hour,pattern", [(10, 'business_hours'), (20, 'evening'),
                                              (7, 'morning'), (2, 'night_owl')])
    def test_activity_pattern(self, hour, pattern):
        assert activity_pattern(hour) == pattern


class TestEngineConfiguration:
    """Building an engine from a configuration file."""

    def test_from_config_file(self, tmp_path):
        path = tmp_path / 'nexus.yaml'
        path.write_text(yaml.safe_dump({
            'database': {'url': 'sqlite://'},
            'logging': {'log_dir': str(tmp_path / 'logs'), 'enable_console': False},
            'scheduler': {'retrain_every_interactions': 10},
        }))

        engine = PersonalizationEngine.from_config_file(str(path))
        try:
            assert (tmp_path / 'logs').is_dir()
            assert engine.retraining.every == 10
        finally:
            engine.store.close()
            logger.remove()

    def test_invalid_config_is_rejected(self, tmp_path):
        path = tmp_path / 'nexus.yaml'
        path.write_text(yaml.safe_dump({'tracker': {'decay_factor': 1.5}}))

        with pytest.raises(ValueError):
            PersonalizationEngine.from_config_file(str(path))
