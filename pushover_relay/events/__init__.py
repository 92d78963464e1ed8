"""Upstream events and the readers that load them."""

from .models import Event
from .reader import EventSourceError, parse_events, read_events

__all__ = [
    "Event",
    "EventSourceError",
    "parse_events",
    "read_events",
]
