"""Liveness tracking for the agent.

The agent is considered working when it has received events recently and
has not recorded an error since shortly before its last receipt.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Union

from pushover_relay.logging import get_logger

logger = get_logger(__name__, component="status")

# Errors logged up to this long before the last receipt still count as recent
RECENT_ERROR_WINDOW = timedelta(minutes=2)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StatusFileError(Exception):
    """Raised when the liveness state file cannot be read or written."""

    pass


@dataclass
class AgentStatus:
    """Receipt and error timestamps from which health is derived.

    Attributes:
        last_receive_at: When the most recent batch of events arrived
        last_error_at: When the most recent per-event failure was recorded
    """

    last_receive_at: Optional[datetime] = None
    last_error_at: Optional[datetime] = None

    def record_receive(self, when: Optional[datetime] = None) -> None:
        self.last_receive_at = when or utc_now()

    def record_error(self, when: Optional[datetime] = None) -> None:
        self.last_error_at = when or utc_now()

    def has_recent_error(self) -> bool:
        """Whether an error was recorded since shortly before the last receipt."""
        if self.last_error_at is None or self.last_receive_at is None:
            return False
        return self.last_error_at > self.last_receive_at - RECENT_ERROR_WINDOW

    def is_working(self, expected_receive_period_in_days: int, now: Optional[datetime] = None) -> bool:
        """Evaluate the liveness predicate.

        Healthy iff an event has ever been received, the latest receipt is
        within the expected period, and no recent error has been recorded.
        """
        if self.last_receive_at is None:
            return False
        now = now or utc_now()
        if self.last_receive_at <= now - timedelta(days=expected_receive_period_in_days):
            return False
        return not self.has_recent_error()

    def to_dict(self) -> dict:
        return {
            "last_receive_at": self.last_receive_at.isoformat() if self.last_receive_at else None,
            "last_error_at": self.last_error_at.isoformat() if self.last_error_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AgentStatus":
        return cls(
            last_receive_at=_parse_datetime(data.get("last_receive_at")),
            last_error_at=_parse_datetime(data.get("last_error_at")),
        )


def load_status(path: Union[str, Path]) -> AgentStatus:
    """Load status from a JSON state file; a missing file means a fresh status.

    Raises:
        StatusFileError: If the file exists but cannot be read or decoded
    """
    path = Path(path)
    if not path.exists():
        logger.debug(f"No state file at {path}, starting fresh")
        return AgentStatus()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise StatusFileError(f"Failed to read state file {path}: {e}") from e

    if not isinstance(data, dict):
        raise StatusFileError(f"State file {path} must contain a JSON object")

    try:
        return AgentStatus.from_dict(data)
    except ValueError as e:
        raise StatusFileError(f"Invalid timestamp in state file {path}: {e}") from e


def save_status(status: AgentStatus, path: Union[str, Path]) -> None:
    """Write status to a JSON state file, replacing it atomically.

    Raises:
        StatusFileError: If the file cannot be written
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(status.to_dict(), f, indent=2)
        tmp_path.replace(path)
    except OSError as e:
        raise StatusFileError(f"Failed to write state file {path}: {e}") from e


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
