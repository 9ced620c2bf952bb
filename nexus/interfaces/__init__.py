from .schemas import InteractionEventPayload, PageVisitPayload, parse_event, parse_visit

__all__ = ['InteractionEventPayload', 'PageVisitPayload', 'parse_event', 'parse_visit']
