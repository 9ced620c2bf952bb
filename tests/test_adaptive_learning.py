"""
Tests for the continuous learning loop: scheduler, retraining trigger
and pattern re-analysis.
"""

import asyncio
from datetime import timedelta

import pytest

from nexus.adaptive_learning.pattern_reanalysis import analyze_recent_patterns
from nexus.adaptive_learning.retraining import LoggingRetrainingStrategy, RetrainingTrigger
from nexus.adaptive_learning.scheduler import ContinuousLearningScheduler, ManualClock
from nexus.user_profiling.models import UserProfile, VisitRecord
from nexus.utils.config import SchedulerConfig


class Recorder:
    """Collects the order in which scheduler hooks run."""

    def __init__(self):
        self.calls = []

    def hook(self, name, fail=False):
        async def action():
            self.calls.append(name)
            if fail:
                raise RuntimeError(f"{name} failed")
        return action


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def scheduler(recorder, clock):
    return ContinuousLearningScheduler(
        persist=recorder.hook('persist'),
        reanalyze=recorder.hook('reanalyze'),
        check_retraining=recorder.hook('retrain'),
        drain=recorder.hook('drain'),
        config=SchedulerConfig(),
        clock=clock,
    )


class TestContinuousLearningScheduler:
    """Test deterministic scheduling with a manual clock."""

    @pytest.mark.asyncio
    async def test_nothing_due_at_start(self, scheduler):
        assert await scheduler.run_due_tasks() == []

    @pytest.mark.asyncio
    async def test_tasks_run_on_their_intervals(self, scheduler, clock, recorder):
        clock.advance(30)
        assert await scheduler.run_due_tasks() == ['retraining_check']

        clock.advance(30)
        assert await scheduler.run_due_tasks() == ['pattern_reanalysis', 'retraining_check']

        clock.advance(240)
        assert await scheduler.run_due_tasks() == ['persistence', 'pattern_reanalysis', 'retraining_check']
        assert recorder.calls == ['retrain', 'reanalyze', 'retrain', 'persist', 'reanalyze', 'retrain']

    @pytest.mark.asyncio
    async def test_failures_are_counted_and_isolated(self, recorder, clock):
        scheduler = ContinuousLearningScheduler(
            persist=recorder.hook('persist'),
            reanalyze=recorder.hook('reanalyze', fail=True),
            check_retraining=recorder.hook('retrain'),
            drain=recorder.hook('drain'),
            clock=clock,
        )
        clock.advance(60)

        ran = await scheduler.run_due_tasks()

        assert ran == ['pattern_reanalysis', 'retraining_check']
        assert scheduler.task('pattern_reanalysis').failures == 1
        assert scheduler.task('retraining_check').runs == 1

    @pytest.mark.asyncio
    async def test_stop_drains_then_persists(self, scheduler, recorder):
        await scheduler.stop()
        assert recorder.calls == ['drain', 'persist']

    @pytest.mark.asyncio
    async def test_timer_loop_follows_clock(self, scheduler, clock, recorder):
        scheduler.start()
        await asyncio.sleep(0)

        clock.advance(30)
        for _ in range(10):
            await asyncio.sleep(0)

        assert scheduler.task('retraining_check').runs == 1
        await scheduler.stop()
        assert scheduler.running is False
        assert recorder.calls[-2:] == ['drain', 'persist']

    def test_unknown_task(self, scheduler):
        with pytest.raises(KeyError):
            scheduler.task('missing')


class TestRetrainingTrigger:
    """Test the retraining hook."""

    def profile_with(self, count):
        profile = UserProfile.create_default('user1')
        profile.interaction_count = count
        return profile

    @pytest.mark.asyncio
    async def test_fires_once_per_batch(self):
        strategy = LoggingRetrainingStrategy()
        trigger = RetrainingTrigger(strategy, every=3)

        assert await trigger.check('user1', self.profile_with(2)) is False
        assert await trigger.check('user1', self.profile_with(3)) is True
        assert await trigger.check('user1', self.profile_with(5)) is False
        assert await trigger.check('user1', self.profile_with(6)) is True

        assert [entry['interaction_count'] for entry in strategy.history] == [3, 6]

    @pytest.mark.asyncio
    async def test_reset(self):
        trigger = RetrainingTrigger(every=3)
        await trigger.check('user1', self.profile_with(3))
        trigger.reset('user1')

        assert trigger.pending('user1', 0) == 0
        assert trigger.is_due('user1', 3) is True

    def test_every_must_be_positive(self):
        with pytest.raises(ValueError):
            RetrainingTrigger(every=0)


class TestPatternReanalysis:
    """Test category re-weighting from recent visits."""

    def visits(self, categories, base_time):
        return [
            VisitRecord(f'v{index}', base_time + timedelta(minutes=index), 'https://example.com',
                        'example.com', category, 0.5)
            for index, category in enumerate(categories)
        ]

    def test_needs_more_than_five_visits(self, base_time):
        assert analyze_recent_patterns(self.visits(['news'] * 5, base_time)) is None

    def test_weights(self, base_time):
        weights = analyze_recent_patterns(self.visits(['technology'] * 4 + ['news'] * 2, base_time))

        assert weights['technology']['weight'] == pytest.approx(4 / 6)
        assert weights['technology']['confidence'] == pytest.approx(0.4)
        assert weights['news']['weight'] == pytest.approx(2 / 6)
        assert weights['news']['mean_engagement'] == pytest.approx(0.5)

    def test_only_latest_window_counts(self, base_time):
        weights = analyze_recent_patterns(self.visits(['food'] * 10 + ['news'] * 20, base_time), window=20)
        assert set(weights) == {'news'}


class TestManualClock:
    """The manual clock only moves when told to."""

    def test_advance(self, clock):
        start = clock.now()
        clock.advance(90)

        assert clock.now() == start + timedelta(seconds=90)
        assert clock.monotonic() == 90
