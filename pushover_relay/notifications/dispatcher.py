"""Delivery of built notifications to the Pushover messages API.

The transport shape depends on whether an attachment is present:

- simple mode: every parameter goes in the query string of a plain POST
- multipart mode: parameters stay in the query string, the image travels as
  the ``attachment`` body part, and ``%`` in the message becomes " percent"
"""

import logging
from typing import Mapping, Optional
from urllib.parse import urlencode

import requests

from pushover_relay.logging import get_logger

from .attachments import Attachment
from .models import DispatchResult, NotificationDeliveryError
from .params import redact_params

logger = get_logger(__name__, component="dispatcher")

API_URL = "https://api.pushover.net/1/messages.json"


def sanitize_multipart_message(message: str) -> str:
    """Replace every literal '%' with ' percent'."""
    return message.replace("%", " percent")


def build_multipart_query(params: Mapping[str, str]) -> str:
    """Encode params as a query string with the message sanitized.

    The result is handed to requests as a ready-made string so the message
    is percent-encoded exactly once.
    """
    query = dict(params)
    if "message" in query:
        query["message"] = sanitize_multipart_message(query["message"])
    return urlencode(query)


class NotificationDispatcher:
    """Sends one request per notification and logs the API's answer.

    The dispatcher never retries. It closes any attachment it is handed,
    whether the request succeeds, fails, or is skipped by dry run.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
        user_agent: Optional[str] = None,
        api_url: str = API_URL,
        dry_run: bool = False,
    ):
        """Initialize the dispatcher.

        Args:
            session: HTTP session to post with (creates one if None)
            timeout: Request timeout in seconds
            user_agent: Optional User-Agent header
            api_url: Messages endpoint
            dry_run: Log the request that would be made instead of sending it
        """
        self.session = session or requests.Session()
        if user_agent:
            self.session.headers.update({"User-Agent": user_agent})
        self.timeout = timeout
        self.api_url = api_url
        self.dry_run = dry_run

    def dispatch(
        self,
        params: Mapping[str, str],
        attachment: Optional[Attachment] = None,
    ) -> Optional[DispatchResult]:
        """POST a notification.

        Args:
            params: Request parameter set (must contain token, user, message)
            attachment: Optional image; closed before this method returns

        Returns:
            DispatchResult, or None in dry-run mode

        Raises:
            NotificationDeliveryError: If the request fails at the transport level
        """
        try:
            if self.dry_run:
                logger.info(
                    f"Dry run: would send {'multipart' if attachment else 'simple'} request: "
                    f"{redact_params(params)!r}",
                    extra={"event": "notification.dry_run", "with_attachment": attachment is not None},
                )
                return None

            if attachment is not None:
                response = self._post_multipart(params, attachment)
            else:
                response = self._post_simple(params)

            result = DispatchResult(
                status_code=response.status_code,
                body=response.text,
                with_attachment=attachment is not None,
            )
            self._log_result(result, params)
            return result
        finally:
            if attachment is not None:
                attachment.close()

    def _post_simple(self, params: Mapping[str, str]) -> requests.Response:
        logger.info(
            "Sending request without attachment",
            extra={"event": "notification.sending", "mode": "simple"},
        )
        logger.debug(f"Query parameters: {redact_params(params)!r}")
        return self._post(params=dict(params))

    def _post_multipart(self, params: Mapping[str, str], attachment: Attachment) -> requests.Response:
        query = build_multipart_query(params)
        files = {
            "attachment": (attachment.filename, attachment.open_for_upload(), attachment.mime_type),
        }
        logger.info(
            "Sending request with attachment",
            extra={
                "event": "notification.sending",
                "mode": "multipart",
                "attachment_size": attachment.size,
                "attachment_type": attachment.mime_type,
            },
        )
        logger.debug(f"Attachment: {attachment!r}")
        return self._post(params=query, files=files)

    def _post(self, **kwargs) -> requests.Response:
        try:
            return self.session.post(self.api_url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            error_msg = f"Request to {self.api_url} failed: {type(e).__name__}"
            logger.error(
                error_msg,
                extra={"event": "notification.send.failure", "error_type": type(e).__name__},
            )
            raise NotificationDeliveryError(error_msg, url=self.api_url) from e

    def _log_result(self, result: DispatchResult, params: Mapping[str, str]) -> None:
        level = logging.INFO if result.is_success() else logging.WARNING
        logger.log(
            level,
            f"Response status: {result.status_code}",
            extra={"event": "notification.response", "status_code": result.status_code},
        )
        logger.log(level, f"Response body: {result.body}")
        logger.info(
            f"Sent the following notification: {redact_params(params)!r}",
            extra={"event": "notification.sent", "with_attachment": result.with_attachment},
        )
