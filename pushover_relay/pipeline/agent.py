"""Batch processing of incoming events into Pushover notifications."""

from typing import Iterable, Optional
from uuid import uuid4

import requests

from pushover_relay.config.models import AgentOptions, AppConfig
from pushover_relay.events.models import Event
from pushover_relay.logging import get_logger
from pushover_relay.logging.context import log_context
from pushover_relay.notifications.attachments import AttachmentFetcher
from pushover_relay.notifications.dispatcher import NotificationDispatcher
from pushover_relay.notifications.fields import FIELD_NAMES
from pushover_relay.notifications.params import build_request_params
from pushover_relay.notifications.templates import JinjaTemplateResolver, TemplateResolver

from .models import BatchRunResult, EventOutcome
from .status import AgentStatus, utc_now

logger = get_logger(__name__, component="agent")


class PushoverAgent:
    """
    Turns each received event into at most one Pushover notification.

    For every event, in order: render all fields, build the request
    parameters (skipping the event when a required field is blank), fetch
    the optional image, and dispatch. A failure on one event is logged and
    recorded, and the batch carries on with the next event.
    """

    def __init__(
        self,
        options: AgentOptions,
        resolver: Optional[TemplateResolver] = None,
        fetcher: Optional[AttachmentFetcher] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        status: Optional[AgentStatus] = None,
    ):
        """
        Initialize the agent.

        Args:
            options: Field templates and credentials
            resolver: Template resolver (renders options' templates if None)
            fetcher: Attachment fetcher (creates default if None)
            dispatcher: Notification dispatcher (creates default if None)
            status: Liveness status to update (starts fresh if None)
        """
        self.options = options
        self.resolver = resolver or JinjaTemplateResolver(options.field_templates())
        self.fetcher = fetcher or AttachmentFetcher()
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.status = status or AgentStatus()

    @classmethod
    def from_config(
        cls,
        app_config: AppConfig,
        status: Optional[AgentStatus] = None,
        dry_run: bool = False,
    ) -> "PushoverAgent":
        """Build an agent whose fetcher and dispatcher share one HTTP session."""
        advanced = app_config.advanced
        session = requests.Session()
        session.headers.update({"User-Agent": advanced.user_agent})

        return cls(
            options=app_config.agent,
            fetcher=AttachmentFetcher(session=session, timeout=advanced.http_request_timeout),
            dispatcher=NotificationDispatcher(
                session=session,
                timeout=advanced.http_request_timeout,
                dry_run=dry_run,
            ),
            status=status,
        )

    def receive(self, events: Iterable[Event]) -> BatchRunResult:
        """
        Process a batch of events sequentially.

        Args:
            events: Events to process, in order

        Returns:
            BatchRunResult with one outcome per event
        """
        batch_id = uuid4().hex[:12]
        started_at = utc_now()
        self.status.record_receive(started_at)
        outcomes = []

        with log_context(batch_id=batch_id):
            for index, event in enumerate(events):
                with log_context(event_id=event.id or f"#{index}"):
                    outcomes.append(self._process_safely(event, index))

            result = BatchRunResult(
                batch_id=batch_id,
                started_at=started_at,
                finished_at=utc_now(),
                outcomes=outcomes,
            )

            logger.info(
                f"Batch complete: {result.sent} sent, {result.skipped} skipped, "
                f"{result.failed} failed (total: {result.total})",
                extra={
                    "event": "batch.completed",
                    "duration_seconds": round(result.duration_seconds, 3),
                },
            )

        return result

    def process_event(self, event: Event, index: int = 0) -> EventOutcome:
        """
        Render, build, fetch, and dispatch a single event.

        Raises:
            Exception: Anything raised while rendering or dispatching
        """
        rendered = {name: self.resolver.resolve(event, name) for name in FIELD_NAMES}

        params = build_request_params(rendered)
        if params is None:
            logger.debug(
                "Skipping event: token, user or message rendered blank",
                extra={"event": "notification.skip"},
            )
            return EventOutcome(event_id=event.id, index=index, status="skipped")

        attachment = self.fetcher.fetch(rendered.get("image_url"))
        with_attachment = attachment is not None
        dispatch_result = self.dispatcher.dispatch(params, attachment)

        if dispatch_result is None:
            return EventOutcome(
                event_id=event.id,
                index=index,
                status="dry_run",
                with_attachment=with_attachment,
            )

        return EventOutcome(
            event_id=event.id,
            index=index,
            status="sent",
            status_code=dispatch_result.status_code,
            with_attachment=with_attachment,
        )

    def working(self) -> bool:
        """Whether the agent is receiving events and free of recent errors."""
        return self.status.is_working(self.options.expected_receive_period_in_days)

    def _process_safely(self, event: Event, index: int) -> EventOutcome:
        try:
            return self.process_event(event, index)
        except Exception as e:
            self.status.record_error()
            logger.error(
                f"Failed to process event {event.id or f'#{index}'}: {e}",
                exc_info=True,
                extra={"event": "notification.failed", "error_type": type(e).__name__},
            )
            return EventOutcome(
                event_id=event.id,
                index=index,
                status="failed",
                error=str(e),
            )
