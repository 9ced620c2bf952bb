"""
Behavior Analyzer

Summarises a user's recent interaction telemetry:
- Bounded per-user interaction window
- Inter-event timing and rhythm
- Click / scroll / keyboard mix
- Attention pattern and engagement level
"""

import threading
from collections import deque
from dataclasses import dataclass, asdict
from typing import Any, Deque, Dict, List, Optional

import numpy as np

from ..utils.config import MoodConfig
from .models import EventType, InteractionEvent


@dataclass
class BehaviorMetrics:
    """Metrics for the most recent slice of interaction events"""
    event_count: int
    avg_gap_seconds: float
    gap_variance: float
    click_count: int
    scroll_count: int
    keyboard_count: int
    mousemove_count: int
    click_ratio: float
    scroll_ratio: float
    keyboard_ratio: float
    rhythm: str  # steady, variable, erratic
    attention_pattern: str  # sustained, scanning, fragmented
    engagement_level: str  # low, medium, high

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class InteractionWindow:
    """Bounded, thread-safe window of interaction events for one user"""

    def __init__(self, maxlen: int = 100):
        self._events: Deque[InteractionEvent] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def append(self, event: InteractionEvent):
        with self._lock:
            self._events.append(event)

    def recent(self, count: int) -> List[InteractionEvent]:
        with self._lock:
            events = list(self._events)
        return events[-count:] if count > 0 else []

    def clear(self):
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class BehaviorAnalyzer:
    """
    Derives behaviour metrics from interaction windows
    """

    def __init__(self, config: Optional[MoodConfig] = None):
        self.config = config or MoodConfig()
        self._windows: Dict[str, InteractionWindow] = {}
        self._windows_lock = threading.Lock()

    def window_for(self, user_id: str) -> InteractionWindow:
        with self._windows_lock:
            window = self._windows.get(user_id)
            if window is None:
                window = InteractionWindow(self.config.window_size)
                self._windows[user_id] = window
            return window

    def record(self, user_id: str, event: InteractionEvent):
        self.window_for(user_id).append(event)

    def forget(self, user_id: str):
        with self._windows_lock:
            self._windows.pop(user_id, None)

    def recent_events(self, user_id: str) -> List[InteractionEvent]:
        return self.window_for(user_id).recent(self.config.recent_events)

    def compute_metrics(self, events: List[InteractionEvent]) -> BehaviorMetrics:
        """
        Summarise a list of events ordered by arrival.

        Args:
            events: Recent interaction events

        Returns:
            BehaviorMetrics over the given events
        """
        ordered = sorted(events, key=lambda event: event.timestamp)
        total = len(ordered)

        if total >= 2:
            stamps = np.array([event.timestamp.timestamp() for event in ordered])
            gaps = np.diff(stamps)
            avg_gap = float(np.mean(gaps))
            variance = float(np.var(gaps))
        else:
            avg_gap, variance = 0.0, 0.0

        counts = {event_type: 0 for event_type in EventType}
        for event in ordered:
            counts[event.event_type] += 1

        clicks = counts[EventType.CLICK]
        scrolls = counts[EventType.SCROLL]
        keys = counts[EventType.KEYBOARD]
        denominator = float(total) if total else 1.0

        return BehaviorMetrics(
            event_count=total,
            avg_gap_seconds=avg_gap,
            gap_variance=variance,
            click_count=clicks,
            scroll_count=scrolls,
            keyboard_count=keys,
            mousemove_count=counts[EventType.MOUSEMOVE],
            click_ratio=clicks / denominator,
            scroll_ratio=scrolls / denominator,
            keyboard_ratio=keys / denominator,
            rhythm=self._rhythm(avg_gap, variance),
            attention_pattern=self._attention_pattern(avg_gap, clicks, scrolls, keys),
            engagement_level=self._engagement_level(avg_gap, total),
        )

    def _rhythm(self, avg_gap: float, variance: float) -> str:
        if avg_gap <= 0:
            return 'steady'
        # Coefficient of variation of the inter-event gaps
        spread = float(np.sqrt(variance)) / avg_gap
        if spread < 0.5:
            return 'steady'
        if spread < 1.0:
            return 'variable'
        return 'erratic'

    def _attention_pattern(self, avg_gap: float, clicks: int, scrolls: int, keys: int) -> str:
        if avg_gap > self.config.focused_gap_seconds and (scrolls + keys) >= clicks:
            return 'sustained'
        if scrolls > clicks:
            return 'scanning'
        return 'fragmented'

    def _engagement_level(self, avg_gap: float, total: int) -> str:
        if total == 0 or avg_gap > self.config.distracted_gap_seconds:
            return 'low'
        if avg_gap < self.config.impatient_gap_seconds:
            return 'high'
        return 'medium'
