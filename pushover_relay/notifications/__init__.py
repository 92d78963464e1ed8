"""Notification building and delivery for the Pushover API.

This package provides the per-event pipeline pieces:
- TemplateResolver / JinjaTemplateResolver: render each field for an event
- build_request_params: required-field gating, truncation, html coercion
- AttachmentFetcher: size- and type-checked image download
- NotificationDispatcher: simple or multipart POST with guaranteed cleanup
"""

from .attachments import MAX_ATTACHMENT_SIZE, Attachment, AttachmentFetcher
from .dispatcher import (
    API_URL,
    NotificationDispatcher,
    build_multipart_query,
    sanitize_multipart_message,
)
from .fields import FIELD_NAMES, FIELD_SPECS, REQUIRED_FIELDS, FieldRole, FieldSpec
from .models import (
    DispatchResult,
    NotificationDeliveryError,
    NotificationError,
    NotificationTemplateError,
)
from .params import build_request_params, redact_params
from .templates import JinjaTemplateResolver, TemplateResolver

__all__ = [
    # Delivery
    "API_URL",
    "NotificationDispatcher",
    "DispatchResult",
    "build_multipart_query",
    "sanitize_multipart_message",
    # Attachments
    "Attachment",
    "AttachmentFetcher",
    "MAX_ATTACHMENT_SIZE",
    # Fields and parameters
    "FIELD_NAMES",
    "FIELD_SPECS",
    "REQUIRED_FIELDS",
    "FieldRole",
    "FieldSpec",
    "build_request_params",
    "redact_params",
    # Templates
    "TemplateResolver",
    "JinjaTemplateResolver",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "NotificationDeliveryError",
]
