"""JSON Schema validation utilities."""

from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError


def validate_schema(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate data against a JSON Schema.

    Args:
        data: The data to validate
        schema: JSON Schema to validate against

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    if not schema:
        return True, []

    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])

    if not errors:
        return True, []

    error_messages = [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]

    return False, error_messages


def check_tool_schema(schema: dict[str, Any]) -> None:
    """
    Ensure a tool input schema is itself valid.

    Raises:
        ValueError: If the schema is not a valid Draft 7 object schema
    """
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        raise ValueError(f"Invalid input schema: {e.message}") from e

    if schema.get("type") != "object":
        raise ValueError("Tool input schema must describe an object")

    missing = set(schema.get("required", [])) - set(schema.get("properties", {}))
    if missing:
        raise ValueError(f"Required parameters without a declared property: {sorted(missing)}")
