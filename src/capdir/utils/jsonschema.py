"""JSON Schema validation helpers."""

from __future__ import annotations

import difflib
from collections.abc import Iterable
from typing import Any

from jsonschema import exceptions as jsonschema_exceptions
from jsonschema.protocols import Validator
from jsonschema.validators import validator_for

from capdir.core.errors import SchemaError


def get_validator(schema: dict[str, Any]) -> Validator:
    if not isinstance(schema, dict):
        raise SchemaError("Schema data must be an object.")
    cls = validator_for(schema)
    try:
        cls.check_schema(schema)
    except jsonschema_exceptions.SchemaError as exc:
        raise SchemaError(f"Invalid schema: {exc.message}") from exc
    return cls(schema)


def validate_jsonschema(schema: dict[str, Any], data: Any) -> None:
    validator = get_validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda error: list(error.path))
    if errors:
        raise SchemaError(
            "Data does not match schema", report_validation_errors(errors)
        )


async def validator_from_file(file: Any) -> Validator:
    """Build a validator from a schema stored in a JSON or YAML file."""
    schema = await file.load_data()
    return get_validator(schema)


def report_validation_errors(
    errors: Iterable[jsonschema_exceptions.ValidationError] | None,
) -> str:
    if not errors:
        return ""

    lines: list[str] = []
    for error in errors:
        location = "/" + "/".join(str(part) for part in error.absolute_path)
        if location == "/":
            location = "(root)"
        lines.append(f'- "{location}" {error.message}')
        lines.extend(f"  -> {detail}" for detail in _details(error))
    return "\n".join(lines)


def _details(error: jsonschema_exceptions.ValidationError) -> list[str]:
    keyword = error.validator
    expected = error.validator_value
    instance = error.instance

    if keyword == "type":
        if isinstance(expected, list):
            expected = ", ".join(expected)
        return [f"Expected type: {expected}"]

    if keyword == "required" and isinstance(instance, dict):
        return [
            f"Missing required field: {name}"
            for name in expected
            if name not in instance
        ]

    if keyword == "enum":
        allowed = [str(value) for value in expected]
        details = [
            'Allowed values: "' + '", "'.join(allowed) + '"',
            f'Received value: "{instance}"',
        ]
        closest = difflib.get_close_matches(str(instance), allowed, n=1)
        if closest:
            details.append(f'Did you mean: "{closest[0]}"?')
        return details

    if keyword == "pattern":
        return [f"Expected pattern: {expected}"]

    if keyword == "format":
        return [f"Expected format: {expected}"]

    if keyword == "additionalProperties" and isinstance(instance, dict):
        known = error.schema.get("properties", {}) if isinstance(error.schema, dict) else {}
        return [
            f"Unexpected property: {name}" for name in instance if name not in known
        ]

    return []
