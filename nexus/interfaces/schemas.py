"""
Host Payload Schemas

Pydantic models validating page visits and interaction events supplied
by the rendering host.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field, NonNegativeInt, ValidationError

from ..content_understanding.models import PageVisit
from ..user_profiling.models import EventType, InteractionEvent


class PageVisitPayload(BaseModel):
    """A page visit as reported by the host"""
    url: str = Field('', description="Visited URL")
    title: str = Field('', description="Document title")
    text: str = Field('', description="Extracted visible text")
    html: str = Field('', description="Raw document markup")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Host supplied metadata")
    timestamp: Optional[datetime] = Field(None, description="Visit time, defaults to now")
    dwell_time: float = Field(0.0, ge=0, description="Seconds spent on the page")
    scroll_depth: float = Field(0.0, ge=0, le=1, description="Maximum scroll depth reached")
    interaction_counts: Dict[str, NonNegativeInt] = Field(
        default_factory=dict, description="Counts per interaction type (click, scroll, keyboard)"
    )

    def to_page_visit(self, now: datetime) -> PageVisit:
        return PageVisit(
            url=self.url,
            title=self.title,
            text=self.text,
            html=self.html,
            metadata=dict(self.metadata),
            timestamp=self.timestamp or now,
            dwell_time=self.dwell_time,
            scroll_depth=self.scroll_depth,
            interaction_counts=dict(self.interaction_counts),
        )


class InteractionEventPayload(BaseModel):
    """A single interaction event as reported by the host"""
    event_type: EventType = Field(..., description="click, scroll, keyboard or mousemove")
    timestamp: Optional[datetime] = Field(None, description="Event time, defaults to now")
    target: Optional[str] = Field(None, description="Element or region the event targeted")

    def to_event(self, now: datetime) -> InteractionEvent:
        return InteractionEvent(event_type=self.event_type, timestamp=self.timestamp or now, target=self.target)


def parse_visit(payload: Union[PageVisit, Dict[str, Any], Any], now: datetime) -> Tuple[PageVisit, Optional[str]]:
    """
    Convert a host payload into a PageVisit.

    Invalid payloads never raise: they become an empty visit at ``now``
    (which analyses to the degraded fallback) together with the error.
    """
    if isinstance(payload, PageVisit):
        return payload, None
    try:
        return PageVisitPayload.model_validate(payload).to_page_visit(now), None
    except ValidationError as e:
        url = payload.get('url') if isinstance(payload, dict) else None
        visit = PageVisit(url=url if isinstance(url, str) else '', timestamp=now)
        return visit, f"Invalid page visit payload: {e.error_count()} validation error(s): {e.errors()[0]['msg']}"


def parse_event(payload: Union[InteractionEvent, Dict[str, Any], Any],
                now: datetime) -> Tuple[Optional[InteractionEvent], Optional[str]]:
    if isinstance(payload, InteractionEvent):
        return payload, None
    try:
        return InteractionEventPayload.model_validate(payload).to_event(now), None
    except ValidationError as e:
        return None, f"Invalid interaction event payload: {e.errors()[0]['msg']}"
