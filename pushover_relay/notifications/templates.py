"""Field template rendering using Jinja2.

Templates use the ``{{ variable }}`` syntax and are rendered against an
event's payload. Undefined variables and null values render as empty
strings, which lets an optional field drop out of the request when the event
does not carry it. Booleans print as "true" and "false".
"""

import logging
from typing import Dict, Optional, Protocol

from jinja2 import TemplateError, Undefined
from jinja2.sandbox import SandboxedEnvironment

from pushover_relay.events.models import Event

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


def finalize_value(value):
    """Print None as "" and booleans in lower case, like YAML and JSON do."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class TemplateResolver(Protocol):
    """Renders one named notification field for an event."""

    def resolve(self, event: Event, field_name: str) -> str:
        ...


class JinjaTemplateResolver:
    """Renders per-field Jinja2 templates against event payloads.

    Compiled templates are cached per field, so a batch pays the parse cost
    once. Rendering runs in a sandbox since templates come from configuration
    and values come from upstream events.
    """

    def __init__(self, templates: Dict[str, str]):
        """Initialize the resolver.

        Args:
            templates: Mapping of field name to template source
        """
        self.templates = dict(templates)
        self.env = SandboxedEnvironment(
            autoescape=False,
            undefined=Undefined,
            finalize=finalize_value,
            keep_trailing_newline=False,
        )
        self._compiled: Dict[str, object] = {}

    def resolve(self, event: Event, field_name: str) -> str:
        """Render the template for field_name, or "" if it has none.

        Raises:
            NotificationTemplateError: If the template fails to compile or render
        """
        template = self._get_template(field_name)
        if template is None:
            return ""

        try:
            return template.render(event.template_context())
        except TemplateError as e:
            error_msg = f"Failed to render '{field_name}' template: {e}"
            logger.error(error_msg)
            raise NotificationTemplateError(error_msg) from e

    def _get_template(self, field_name: str):
        if field_name in self._compiled:
            return self._compiled[field_name]

        source: Optional[str] = self.templates.get(field_name)
        if not source:
            template = None
        else:
            try:
                template = self.env.from_string(source)
            except TemplateError as e:
                error_msg = f"Invalid '{field_name}' template: {e}"
                logger.error(error_msg)
                raise NotificationTemplateError(error_msg) from e

        self._compiled[field_name] = template
        return template
