"""Event domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Event:
    """A single upstream event to be turned into a notification.

    Events are read-only; the agent renders templates against them and
    never mutates them.

    Attributes:
        payload: Arbitrary event data exposed to field templates
        id: Optional identifier used for log correlation
        created_at: Optional time the event was produced upstream
    """

    payload: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def template_context(self) -> Dict[str, Any]:
        """Build the variables visible to field templates.

        Payload keys are exposed at the top level; the event itself is
        available as ``event`` (``{{ event.id }}``, ``{{ event.payload.x }}``).
        """
        context = dict(self.payload)
        context["event"] = {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "payload": self.payload,
        }
        return context
