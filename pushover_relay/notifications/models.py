"""Data models and exceptions for the notification pipeline."""

from dataclasses import dataclass


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when a field template cannot be rendered for an event."""

    pass


class NotificationDeliveryError(NotificationError):
    """Raised when the POST to the Pushover API fails at the transport level."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of a single POST to the Pushover API.

    Attributes:
        status_code: HTTP status returned by the API
        body: Raw response body
        with_attachment: Whether the request was sent as multipart
    """

    status_code: int
    body: str
    with_attachment: bool = False

    def is_success(self) -> bool:
        return 200 <= self.status_code < 300
