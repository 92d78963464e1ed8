"""Reading events from JSON documents and JSON Lines streams."""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, List, Optional, TextIO, Union

from pushover_relay.logging import get_logger

from .models import Event

logger = get_logger(__name__, component="events")

STDIN_MARKER = "-"


class EventSourceError(Exception):
    """Raised when event input cannot be read or decoded."""

    pass


def read_events(source: Union[str, Path] = STDIN_MARKER) -> List[Event]:
    """Read a batch of events from a file path or stdin ("-").

    Args:
        source: Path to a JSON / JSON Lines file, or "-" for stdin

    Returns:
        Events in input order

    Raises:
        EventSourceError: If the input cannot be read or decoded
    """
    if str(source) == STDIN_MARKER:
        return parse_events(sys.stdin)

    try:
        with open(source, "r", encoding="utf-8") as f:
            return parse_events(f)
    except OSError as e:
        raise EventSourceError(f"Failed to read events from {source}: {e}") from e


def parse_events(stream: Union[TextIO, str]) -> List[Event]:
    """Parse events from text.

    Accepts a JSON array of objects, a single JSON object, or JSON Lines
    (one object per line, blank lines ignored). An object with a ``payload``
    mapping is read as a full event (``id``, ``created_at``, ``payload``);
    any other object is taken as the payload itself.

    Raises:
        EventSourceError: If the input is not UTF-8 or not valid JSON in any
            accepted shape
    """
    if isinstance(stream, str):
        text = stream
    else:
        try:
            text = stream.read()
        except UnicodeDecodeError as e:
            raise EventSourceError(f"Event input is not valid UTF-8: {e}") from e
    if not text.strip():
        return []

    try:
        document = json.loads(text)
    except json.JSONDecodeError:
        records = _parse_json_lines(text)
    else:
        records = document if isinstance(document, list) else [document]

    events = [_to_event(record, index) for index, record in enumerate(records)]
    logger.debug(f"Parsed {len(events)} event(s)", extra={"event": "events.parsed"})
    return events


def _parse_json_lines(text: str) -> Iterable[Any]:
    records = []
    for lineno, line in enumerate(text.splitlines(), 1):
        if not line.strip():
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise EventSourceError(f"Invalid JSON on line {lineno}: {e}") from e
    return records


def _to_event(record: Any, index: int) -> Event:
    if not isinstance(record, dict):
        raise EventSourceError(
            f"Event #{index} must be a JSON object, got {type(record).__name__}"
        )

    payload = record.get("payload")
    if not isinstance(payload, dict):
        return Event(payload=record)

    event_id = record.get("id")
    return Event(
        payload=payload,
        id=str(event_id) if event_id is not None else None,
        created_at=_parse_timestamp(record.get("created_at")),
    )


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp into a UTC-aware datetime, or None."""
    if not value or not isinstance(value, str):
        return None

    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        dt = datetime.fromisoformat(normalized)
    except ValueError:
        logger.warning(
            "Failed to parse event timestamp",
            extra={"event": "events.timestamp_invalid", "timestamp": value},
        )
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
