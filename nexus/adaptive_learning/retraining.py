"""
Retraining hook for the continuous learning loop.

Retraining is an extension point: the engine only decides *when* to
retrain (once per N accumulated interactions) and hands a profile
snapshot to a pluggable strategy.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..user_profiling.models import UserProfile
from ..utils.logging import setup_logger

logger = setup_logger(__name__)


class RetrainingStrategy(ABC):
    """Strategy invoked when enough new interactions have accumulated"""

    @abstractmethod
    async def retrain(self, user_id: str, profile: UserProfile) -> None:
        """Retrain whatever models depend on ``profile``."""


class LoggingRetrainingStrategy(RetrainingStrategy):
    """Default strategy; records the request and does nothing else"""

    def __init__(self):
        self.history: List[Dict[str, int]] = []

    async def retrain(self, user_id: str, profile: UserProfile) -> None:
        self.history.append({'user_id': user_id, 'interaction_count': profile.interaction_count})
        logger.info(f"Retraining requested for {user_id} at {profile.interaction_count} interactions")


class RetrainingTrigger:
    """
    Fires the strategy once at least ``every`` interactions accumulated
    since the last firing for that user.
    """

    def __init__(self, strategy: Optional[RetrainingStrategy] = None, every: int = 100):
        if every <= 0:
            raise ValueError("every must be positive")
        self.strategy = strategy or LoggingRetrainingStrategy()
        self.every = every
        self._last_fired: Dict[str, int] = {}

    def pending(self, user_id: str, interaction_count: int) -> int:
        return interaction_count - self._last_fired.get(user_id, 0)

    def is_due(self, user_id: str, interaction_count: int) -> bool:
        return self.pending(user_id, interaction_count) >= self.every

    async def check(self, user_id: str, profile: UserProfile) -> bool:
        """Run the strategy if due; returns whether it fired."""
        if not self.is_due(user_id, profile.interaction_count):
            return False
        self._last_fired[user_id] = profile.interaction_count
        await self.strategy.retrain(user_id, profile)
        return True

    def reset(self, user_id: str):
        self._last_fired.pop(user_id, None)
