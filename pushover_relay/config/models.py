"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from pushover_relay.notifications.fields import FIELD_NAMES


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _template_default(field_name: str) -> str:
    return "{{ " + field_name + " }}"


class AgentOptions(BaseModel):
    """Per-field templates and credentials for the Pushover agent.

    Every field except ``expected_receive_period_in_days`` is a template that
    is rendered against each incoming event.
    """

    token: str = Field("", description="Application API token")
    user: str = Field("", description="User or group key (not an e-mail address)")
    message: str = Field(_template_default("message"))
    device: str = Field(_template_default("device"))
    title: str = Field(_template_default("title"))
    url: str = Field(_template_default("url"), description="Supplementary URL (512 chars max)")
    url_title: str = Field(_template_default("url_title"), description="Title for url (100 chars max)")
    image_url: str = Field(_template_default("image_url"), description="Image to attach")
    priority: str = Field(_template_default("priority"))
    timestamp: str = Field(_template_default("timestamp"))
    sound: str = Field(_template_default("sound"))
    retry: str = Field(_template_default("retry"))
    expire: str = Field(_template_default("expire"))
    html: str = Field("false", description="Render message as HTML when 'true' or '1'")
    expected_receive_period_in_days: Optional[int] = Field(
        1, ge=1, description="Maximum days expected between received events"
    )

    @field_validator(*FIELD_NAMES, mode="before")
    @classmethod
    def stringify_scalars(cls, v: Any) -> Any:
        """Convert YAML scalars to the text a template engine would print."""
        if v is None:
            return ""
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @model_validator(mode="after")
    def validate_required_options(self):
        """Token, user and the receive period must all be present."""
        if not (self.token.strip() and self.user.strip() and self.expected_receive_period_in_days):
            raise ValueError(
                "token, user, and expected_receive_period_in_days are all required."
            )
        return self

    def field_templates(self) -> Dict[str, str]:
        """Return the template for every notification field, keyed by name."""
        return {name: getattr(self, name) for name in FIELD_NAMES}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AdvancedConfig(BaseModel):
    """Advanced runtime settings."""

    http_request_timeout: int = Field(
        30, ge=5, le=300, description="Timeout for image downloads and API calls (seconds)"
    )
    user_agent: str = Field(
        "PushoverRelay/1.0",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class AppConfig(BaseModel):
    """Root configuration object for the Pushover relay."""

    agent: AgentOptions = Field(..., description="Agent options and field templates")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    advanced: AdvancedConfig = Field(
        default_factory=AdvancedConfig, description="Advanced runtime settings"
    )
    state_file: Optional[str] = Field(
        None, description="Where to persist liveness state between runs"
    )
