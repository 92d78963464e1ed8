"""Field specifications for Pushover message parameters.

Each field is rendered from its own template. Required fields must render
to a non-blank value for a message to be sent; optional fields are omitted
when blank and may carry a post-processing rule.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class FieldRole(str, Enum):
    """Whether a field must be present for a message to be sent."""

    REQUIRED = "required"
    OPTIONAL = "optional"


@dataclass(frozen=True)
class FieldSpec:
    """A named, rule-governed slot in the notification payload.

    Attributes:
        name: Pushover API parameter name
        role: Required or optional
        max_length: Hard character limit applied before transmission
        boolean: Coerce the rendered value to "1" or "0"
        transport: False for fields that drive behaviour but are not sent
    """

    name: str
    role: FieldRole = FieldRole.OPTIONAL
    max_length: Optional[int] = None
    boolean: bool = False
    transport: bool = True

    @property
    def required(self) -> bool:
        return self.role is FieldRole.REQUIRED


URL_MAX_LENGTH = 512
URL_TITLE_MAX_LENGTH = 100

FIELD_SPECS: Tuple[FieldSpec, ...] = (
    FieldSpec("token", role=FieldRole.REQUIRED),
    FieldSpec("user", role=FieldRole.REQUIRED),
    FieldSpec("message", role=FieldRole.REQUIRED),
    FieldSpec("device"),
    FieldSpec("title"),
    FieldSpec("url", max_length=URL_MAX_LENGTH),
    FieldSpec("url_title", max_length=URL_TITLE_MAX_LENGTH),
    FieldSpec("priority"),
    FieldSpec("timestamp"),
    FieldSpec("sound"),
    FieldSpec("retry"),
    FieldSpec("expire"),
    FieldSpec("html", boolean=True),
    FieldSpec("image_url", transport=False),
)

FIELD_NAMES: Tuple[str, ...] = tuple(spec.name for spec in FIELD_SPECS)
REQUIRED_FIELDS: Tuple[str, ...] = tuple(spec.name for spec in FIELD_SPECS if spec.required)
