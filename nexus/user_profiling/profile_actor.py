"""
Single-writer actor owning one user profile.

Every read-modify-write on a profile runs as a command on the actor's
queue, one at a time. Modifications are made to a deep copy which is
swapped in only after the store accepted the change.
"""

import asyncio
import copy
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from ..content_understanding.models import ContentAnalysis, PageVisit
from ..storage.profile_repository import ProfileRepository
from ..storage.profile_store import StoreError
from ..storage.retention import clear_user_data
from ..utils.logging import setup_logger
from .models import MoodSample, UserProfile
from .preference_tracker import ProfileUpdater

logger = setup_logger(__name__)


class ActorStoppedError(RuntimeError):
    """Raised when a command is submitted to a stopped actor"""


@dataclass
class _Command:
    name: str
    fn: Callable[[], Any]
    future: asyncio.Future


class ProfileActor:
    """
    Serialises every change to one user's profile.

    Args:
        profile: Initial profile state
        repository: Persistence for profile entities
        updater: Per-visit learning rules
        mood_history_size: Bound on the in-memory mood history
    """

    def __init__(self, profile: UserProfile, repository: ProfileRepository, updater: ProfileUpdater,
                 mood_history_size: int = 50):
        self.user_id = profile.user_id
        self._profile = profile
        self.repository = repository
        self.updater = updater
        self.mood_history_size = mood_history_size

        self._queue: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def profile(self) -> UserProfile:
        """Current committed profile; treat as read-only."""
        return self._profile

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self):
        if self._worker is None:
            self._worker = asyncio.get_running_loop().create_task(self._run())

    async def _run(self):
        while True:
            command = await self._queue.get()
            try:
                if command is None:
                    return
                try:
                    result = command.fn()
                except Exception as e:
                    if not command.future.done():
                        command.future.set_exception(e)
                else:
                    if not command.future.done():
                        command.future.set_result(result)
            finally:
                self._queue.task_done()

    async def submit(self, name: str, fn: Callable[[], Any]) -> Any:
        """Queue ``fn`` and wait for its result."""
        if self._closed:
            raise ActorStoppedError(f"Profile actor for {self.user_id} is stopped")
        self.start()
        future = asyncio.get_running_loop().create_future()
        await self._queue.put(_Command(name, fn, future))
        return await future

    async def drain(self):
        """Wait until every queued command has run."""
        await self._queue.join()

    async def stop(self):
        """Refuse new commands, finish queued ones, then end the worker."""
        if self._closed:
            return
        self._closed = True
        if self._worker is None:
            return
        await self._queue.put(None)
        await self._worker

    def _commit(self, name: str, mutate: Callable[[UserProfile], Any],
                persist: Optional[Callable[[UserProfile, Any], None]] = None) -> Tuple[bool, Optional[str]]:
        candidate = copy.deepcopy(self._profile)
        outcome = mutate(candidate)
        try:
            if persist is not None:
                persist(candidate, outcome)
        except StoreError as e:
            logger.error(f"{name} for {self.user_id} dropped: {e}")
            return False, str(e)
        self._profile = candidate
        return True, None

    async def apply_visit(self, visit: PageVisit, analysis: ContentAnalysis, engagement: float,
                          visit_id: str, now: datetime) -> Tuple[bool, Optional[str]]:
        """Fold a visit into the profile; returns (committed, error)."""
        def run():
            updated, changes = self.updater.apply_visit(self._profile, visit, analysis, engagement, visit_id, now)
            try:
                self.repository.save_visit_update(updated, changes)
            except StoreError as e:
                logger.error(f"Visit update for {self.user_id} dropped: {e}")
                return False, str(e)
            self._profile = updated
            return True, None

        return await self.submit('apply_visit', run)

    async def append_mood(self, sample: MoodSample) -> Tuple[bool, Optional[str]]:
        def mutate(profile: UserProfile):
            profile.mood_history.append(sample)
            if len(profile.mood_history) > self.mood_history_size:
                del profile.mood_history[:len(profile.mood_history) - self.mood_history_size]

        def persist(profile: UserProfile, _):
            self.repository.append_mood(profile, sample)

        return await self.submit('append_mood', lambda: self._commit('append_mood', mutate, persist))

    async def update_adaptive_weights(self, compute: Callable[[UserProfile], Optional[Dict[str, Dict[str, float]]]],
                                      now: datetime) -> Tuple[bool, Optional[str]]:
        """Replace adaptive weights with ``compute(profile)`` unless it returns None."""
        def mutate(profile: UserProfile):
            weights = compute(profile)
            if weights is not None:
                profile.adaptive_weights = weights
                profile.updated_at = now

        return await self.submit('update_adaptive_weights', lambda: self._commit('update_adaptive_weights', mutate))

    async def persist(self) -> Tuple[bool, Optional[str]]:
        """Write a full snapshot of the committed profile."""
        def run():
            try:
                self.repository.save_profile(self._profile)
            except StoreError as e:
                logger.error(f"Persistence for {self.user_id} failed: {e}")
                return False, str(e)
            return True, None

        return await self.submit('persist', run)

    async def clear(self, retention_days: Optional[int], now: datetime) -> Dict[str, int]:
        """Delete stored data and drop the matching in-memory state."""
        def run():
            deleted = clear_user_data(self.repository.store, self.user_id, retention_days, now)
            if retention_days is None:
                self._profile = UserProfile.create_default(self.user_id, now)
            else:
                self._profile = self._prune(self._profile, now - timedelta(days=retention_days))
            return deleted

        return await self.submit('clear', run)

    @staticmethod
    def _prune(profile: UserProfile, cutoff: datetime) -> UserProfile:
        pruned = copy.deepcopy(profile)
        pruned.interests = {k: v for k, v in pruned.interests.items() if v.last_updated >= cutoff}
        pruned.behavior_patterns = {k: v for k, v in pruned.behavior_patterns.items() if v.last_seen >= cutoff}
        pruned.preferences = {k: v for k, v in pruned.preferences.items() if v.last_updated >= cutoff}
        pruned.personality = {k: v for k, v in pruned.personality.items() if v.last_updated >= cutoff}
        pruned.mood_history = [sample for sample in pruned.mood_history if sample.timestamp >= cutoff]
        pruned.recent_visits = [visit for visit in pruned.recent_visits if visit.timestamp >= cutoff]
        pruned.normalize_pattern_strengths()
        return pruned

    async def snapshot(self) -> UserProfile:
        return await self.submit('snapshot', lambda: copy.deepcopy(self._profile))
