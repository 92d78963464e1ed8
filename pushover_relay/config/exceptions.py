"""Custom exceptions for configuration management."""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

# Inputs to these fields are Pushover credentials and never echoed back
CREDENTIAL_FIELDS = frozenset({"token", "user"})


class ConfigurationError(Exception):
    """
    Exception raised when configuration validation fails.

    Carries the numbered validation errors and suggestions shown by the CLI,
    plus the config paths (``agent -> token``) the errors point at.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
        fields: Optional[List[str]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: Primary error message
            errors: List of specific validation errors
            suggestions: List of helpful suggestions to fix the errors
            fields: Config paths of the offending values, if known
        """
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.fields = fields or []
        super().__init__(self._format_message())

    @classmethod
    def from_validation_error(
        cls,
        error: ValidationError,
        message: str = "Configuration validation failed",
        suggestions: Optional[List[str]] = None,
    ) -> "ConfigurationError":
        """Build an error from a pydantic ValidationError.

        Values given for credential fields are masked in the messages.
        """
        items = error.errors()
        fields = [path for path in (_field_path(item) for item in items) if path]
        return cls(
            message,
            errors=[describe_validation_error(item) for item in items],
            suggestions=suggestions,
            fields=fields,
        )

    def _format_message(self) -> str:
        parts = [self.message]

        if self.errors:
            parts.append("\nValidation Errors:")
            for i, error in enumerate(self.errors, 1):
                parts.append(f"  {i}. {error}")

        if self.suggestions:
            parts.append("\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"  - {suggestion}")

        return "\n".join(parts)


def describe_validation_error(item: Dict[str, Any]) -> str:
    """Convert one pydantic error entry into a user-friendly message."""
    field_path = _field_path(item)
    error_type = item["type"]
    error_msg = item["msg"]

    # model-level validators carry no location
    if not field_path:
        return error_msg.removeprefix("Value error, ")
    if error_type == "missing":
        return f"Missing required field: {field_path}"
    if error_type in ["string_type", "int_type", "int_parsing", "bool_type"]:
        value = item.get("input")
        shown = "<hidden>" if _is_credential(item) else repr(value)
        return f"Invalid type for '{field_path}': {error_msg}, got {shown}"
    if "enum" in error_type:
        return f"Invalid value for '{field_path}': {error_msg}"
    return f"{field_path}: {error_msg.removeprefix('Value error, ')}"


def _field_path(item: Dict[str, Any]) -> str:
    return " -> ".join(str(loc) for loc in item["loc"])


def _is_credential(item: Dict[str, Any]) -> bool:
    loc = item["loc"]
    return bool(loc) and loc[-1] in CREDENTIAL_FIELDS
