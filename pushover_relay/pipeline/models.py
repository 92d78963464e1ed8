"""Data models for batch execution tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class EventOutcome:
    """
    Result of processing a single event.

    Attributes:
        event_id: Identifier of the event, if it carried one
        index: Position of the event in its batch
        status: Outcome status (sent, skipped, dry_run, failed)
        status_code: HTTP status returned by the API, when a request was made
        with_attachment: Whether an image was attached
        error: Error message when status is failed
    """

    event_id: Optional[str]
    index: int
    status: str  # "sent", "skipped", "dry_run", "failed"
    status_code: Optional[int] = None
    with_attachment: bool = False
    error: Optional[str] = None


@dataclass
class BatchRunResult:
    """
    Aggregate results from processing one batch of events.

    Attributes:
        batch_id: Identifier used to correlate log records
        started_at: UTC timestamp when the batch began
        finished_at: UTC timestamp when the batch completed
        outcomes: Per-event outcomes in input order
    """

    batch_id: str
    started_at: datetime
    finished_at: datetime
    outcomes: List[EventOutcome] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def sent(self) -> int:
        return self.count("sent")

    @property
    def skipped(self) -> int:
        return self.count("skipped")

    @property
    def failed(self) -> int:
        return self.count("failed")

    @property
    def had_errors(self) -> bool:
        return self.failed > 0

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()
