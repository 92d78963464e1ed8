"""Building Pushover request parameters from rendered field values."""

from typing import Dict, Mapping, Optional

from .fields import FIELD_SPECS, FieldSpec

HTML_TRUE_VALUES = ("true", "1")


def presence(value: Optional[str]) -> Optional[str]:
    """Return value unless it is None or blank (empty or whitespace only)."""
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    return value if value.strip() else None


def normalize_html(value: str) -> str:
    """Coerce a rendered html flag to "1" for 'true'/'1', "0" otherwise."""
    return "1" if value in HTML_TRUE_VALUES else "0"


def apply_field_rules(spec: FieldSpec, value: str) -> str:
    """Apply a field's truncation or boolean rule to a non-blank value.

    Truncation is a hard character cut, so a combining sequence or emoji
    built from several code points may be split.
    """
    if spec.boolean:
        return normalize_html(value)
    if spec.max_length is not None:
        return value[: spec.max_length]
    return value


def build_request_params(rendered: Mapping[str, Optional[str]]) -> Optional[Dict[str, str]]:
    """Build the request parameter set for one event.

    Args:
        rendered: Rendered value for each field name; missing keys count as blank

    Returns:
        Ordered parameter mapping, or None when a required field is blank and
        the event should be skipped. Fields that are not sent to the API
        (image_url) are never included.
    """
    params: Dict[str, str] = {}

    for spec in FIELD_SPECS:
        value = presence(rendered.get(spec.name))

        if value is None:
            if spec.required:
                return None
            continue

        if not spec.transport:
            continue

        params[spec.name] = apply_field_rules(spec, value)

    return params


def redact_params(params: Mapping[str, str]) -> Dict[str, str]:
    """Copy params without the API token, for logging."""
    return {key: value for key, value in params.items() if key != "token"}
