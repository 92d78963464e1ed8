"""Unit tests for the batch driver."""

import logging
from unittest.mock import Mock

import pytest
import requests

from pushover_relay.config.models import AgentOptions, AppConfig
from pushover_relay.events.models import Event
from pushover_relay.notifications.attachments import AttachmentFetcher
from pushover_relay.notifications.dispatcher import API_URL, NotificationDispatcher
from pushover_relay.notifications.models import DispatchResult
from pushover_relay.pipeline.agent import PushoverAgent
from pushover_relay.pipeline.status import AgentStatus
from tests.helpers import PNG_BYTES, make_image_response, make_session


@pytest.fixture
def session():
    return make_session()


@pytest.fixture
def agent(agent_options, session):
    return PushoverAgent(
        options=agent_options,
        fetcher=AttachmentFetcher(session=session),
        dispatcher=NotificationDispatcher(session=session),
    )


class TestEndToEnd:
    """Events rendered with the default templates."""

    def test_minimal_event_sends_simple_request(self, agent, session):
        result = agent.receive([Event(payload={"message": "hi"})])

        session.post.assert_called_once_with(
            API_URL, timeout=30, params={"token": "T", "user": "U", "message": "hi"}
        )
        session.get.assert_not_called()
        assert result.sent == 1
        assert result.outcomes[0].status == "sent"
        assert result.outcomes[0].status_code == 200

    def test_html_false_is_sent_as_zero(self, session):
        agent = PushoverAgent(
            options=AgentOptions(token="T", user="U", html="false"),
            fetcher=AttachmentFetcher(session=session),
            dispatcher=NotificationDispatcher(session=session),
        )
        agent.receive([Event(payload={"message": "hi"})])
        assert session.post.call_args.kwargs["params"]["html"] == "0"

    @pytest.mark.parametrize("flag,expected", [(True, "1"), (False, "0")])
    def test_boolean_html_payload(self, session, flag, expected):
        agent = PushoverAgent(
            options=AgentOptions(token="T", user="U", html="{{ html }}"),
            fetcher=AttachmentFetcher(session=session),
            dispatcher=NotificationDispatcher(session=session),
        )
        agent.receive([Event(payload={"message": "hi", "html": flag})])
        assert session.post.call_args.kwargs["params"]["html"] == expected

    def test_all_fields_rendered(self, agent, session):
        payload = {
            "message": "Build failed",
            "title": "CI",
            "url": "https://ci.example.com/" + "x" * 600,
            "url_title": "y" * 150,
            "priority": 1,
            "sound": "siren",
        }
        agent.receive([Event(payload=payload)])

        sent = session.post.call_args.kwargs["params"]
        assert sent["title"] == "CI"
        assert len(sent["url"]) == 512
        assert sent["url_title"] == "y" * 100
        assert sent["priority"] == "1"
        assert sent["sound"] == "siren"
        assert "image_url" not in sent

    def test_event_with_image_sends_multipart(self, agent, session):
        session.get.return_value = make_image_response(body=PNG_BYTES, content_type="image/png")

        result = agent.receive(
            [Event(payload={"message": "50% off", "image_url": "https://img.example.com/a.png"})]
        )

        kwargs = session.post.call_args.kwargs
        assert "message=50+percent+off" in kwargs["params"]
        assert kwargs["files"]["attachment"][2] == "image/png"
        assert kwargs["files"]["attachment"][1].closed
        assert result.outcomes[0].with_attachment is True

    def test_bad_image_still_sends_notification(self, agent, session, caplog):
        session.get.return_value = make_image_response(content_type="image/bmp")
        caplog.set_level(logging.WARNING)

        result = agent.receive(
            [Event(payload={"message": "hi", "image_url": "https://img.example.com/a.bmp"})]
        )

        assert result.sent == 1
        assert result.outcomes[0].with_attachment is False
        assert "files" not in session.post.call_args.kwargs
        assert "Unsupported image type 'image/bmp'" in caplog.text


class TestSkipping:
    """Events with a blank required field produce no request."""

    def test_blank_message_is_skipped(self, agent, session):
        result = agent.receive([Event(payload={"title": "no message"})])

        session.post.assert_not_called()
        assert result.skipped == 1
        assert result.outcomes[0].status == "skipped"
        assert not result.had_errors

    def test_skipped_event_does_not_fetch_image(self, agent, session):
        agent.receive([Event(payload={"message": " ", "image_url": "https://img.example.com/a.png"})])
        session.get.assert_not_called()

    def test_null_message_is_skipped(self, agent, session):
        result = agent.receive([Event(payload={"message": None, "title": None})])

        session.post.assert_not_called()
        assert result.outcomes[0].status == "skipped"

    def test_null_optional_field_is_omitted(self, agent, session):
        agent.receive([Event(payload={"message": "hi", "title": None, "sound": None})])

        assert session.post.call_args.kwargs["params"] == {"token": "T", "user": "U", "message": "hi"}

    @pytest.mark.parametrize("field", ["token", "user", "message"])
    def test_blank_required_field_from_resolver(self, agent_options, field):
        resolver = Mock()
        resolver.resolve.side_effect = lambda event, name: "" if name == field else "value"
        dispatcher = Mock()
        agent = PushoverAgent(agent_options, resolver=resolver, fetcher=Mock(), dispatcher=dispatcher)

        agent.receive([Event()])

        dispatcher.dispatch.assert_not_called()


class TestBatchIsolation:
    """A failure on one event does not stop the batch."""

    def test_transport_failure_on_second_event(self, agent, session, caplog):
        ok = session.post.return_value
        session.post.side_effect = [ok, requests.exceptions.ConnectionError("down"), ok]
        caplog.set_level(logging.ERROR)

        result = agent.receive(
            [
                Event(payload={"message": "one"}, id="1"),
                Event(payload={"message": "two"}, id="2"),
                Event(payload={"message": "three"}, id="3"),
            ]
        )

        assert session.post.call_count == 3
        assert [o.status for o in result.outcomes] == ["sent", "failed", "sent"]
        assert result.failed == 1
        assert result.had_errors
        assert "Failed to process event 2" in caplog.text
        assert any(r.exc_info for r in caplog.records if r.levelno == logging.ERROR)

    def test_failure_closes_attachment(self, agent, session):
        session.get.return_value = make_image_response()
        session.post.side_effect = requests.exceptions.Timeout("slow")
        captured = []
        real_fetch = agent.fetcher.fetch

        def capture(url):
            attachment = real_fetch(url)
            captured.append(attachment)
            return attachment

        agent.fetcher.fetch = capture

        result = agent.receive([Event(payload={"message": "hi", "image_url": "https://img.example.com/a.png"})])

        assert result.failed == 1
        assert captured[0] is not None
        assert captured[0].closed

    def test_resolver_error_is_isolated(self, agent_options):
        resolver = Mock()

        def resolve(event, name):
            if event.id == "bad":
                raise RuntimeError("template exploded")
            return {"token": "T", "user": "U", "message": "ok"}.get(name, "")

        resolver.resolve.side_effect = resolve
        dispatcher = Mock()
        dispatcher.dispatch.return_value = DispatchResult(status_code=200, body="{}")
        fetcher = Mock()
        fetcher.fetch.return_value = None
        agent = PushoverAgent(agent_options, resolver=resolver, fetcher=fetcher, dispatcher=dispatcher)

        result = agent.receive([Event(id="a"), Event(id="bad"), Event(id="c")])

        assert [o.status for o in result.outcomes] == ["sent", "failed", "sent"]
        assert result.outcomes[1].error == "template exploded"
        assert dispatcher.dispatch.call_count == 2

    def test_events_processed_in_order(self, agent, session):
        agent.receive([Event(payload={"message": str(i)}) for i in range(5)])
        messages = [c.kwargs["params"]["message"] for c in session.post.call_args_list]
        assert messages == ["0", "1", "2", "3", "4"]


class TestStatusTracking:
    """Receipt and error timestamps feed the liveness predicate."""

    def test_receive_records_receipt(self, agent):
        assert agent.status.last_receive_at is None
        agent.receive([Event(payload={"message": "hi"})])
        assert agent.status.last_receive_at is not None
        assert agent.working()

    def test_failure_records_error(self, agent, session):
        session.post.side_effect = requests.exceptions.ConnectionError("down")
        agent.receive([Event(payload={"message": "hi"})])
        assert agent.status.last_error_at is not None
        assert not agent.working()

    def test_skip_is_not_an_error(self, agent):
        agent.receive([Event(payload={})])
        assert agent.status.last_error_at is None
        assert agent.working()

    def test_never_received_is_not_working(self, agent):
        assert not agent.working()

    def test_empty_batch_counts_as_receipt(self, agent):
        result = agent.receive([])
        assert result.total == 0
        assert agent.status.last_receive_at is not None

    def test_uses_provided_status(self, agent_options):
        status = AgentStatus()
        agent = PushoverAgent(agent_options, fetcher=Mock(), dispatcher=Mock(), status=status)
        assert agent.status is status


class TestDryRun:
    """Dry run builds notifications without sending them."""

    def test_dry_run_outcome(self, agent_options, session):
        agent = PushoverAgent(
            options=agent_options,
            fetcher=AttachmentFetcher(session=session),
            dispatcher=NotificationDispatcher(session=session, dry_run=True),
        )

        result = agent.receive([Event(payload={"message": "hi"})])

        session.post.assert_not_called()
        assert result.outcomes[0].status == "dry_run"
        assert result.count("dry_run") == 1
        assert not result.had_errors


def test_batch_summary_is_logged(agent, caplog):
    caplog.set_level(logging.INFO)
    result = agent.receive([Event(payload={"message": "hi"}, id="evt-1")])

    summary = [r for r in caplog.records if getattr(r, "event", None) == "batch.completed"]
    assert len(summary) == 1
    assert "1 sent, 0 skipped, 0 failed" in summary[0].getMessage()
    assert result.batch_id


def test_from_config_shares_session():
    app_config = AppConfig.model_validate(
        {"agent": {"token": "T", "user": "U"}, "advanced": {"http_request_timeout": 12, "user_agent": "Relay/9"}}
    )

    agent = PushoverAgent.from_config(app_config, dry_run=True)

    assert agent.fetcher.session is agent.dispatcher.session
    assert agent.dispatcher.session.headers["User-Agent"] == "Relay/9"
    assert agent.fetcher.timeout == 12
    assert agent.dispatcher.timeout == 12
    assert agent.dispatcher.dry_run is True
    assert agent.options.token == "T"
