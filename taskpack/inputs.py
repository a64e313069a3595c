from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .errors import InputValidationError
from .models import InputFieldDef


def _matches_type(value: Any, expected: str) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "number":
        # bool is an int subclass but not a number here
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "boolean":
        return isinstance(value, bool)
    return False


class InputValidator:
    """Checks caller inputs against a pack's input schema."""

    @staticmethod
    def validate(inputs: Mapping[str, Any], schema: Mapping[str, InputFieldDef]) -> None:
        errors: list[str] = []

        for name, definition in schema.items():
            if name not in inputs or inputs[name] is None:
                if definition.required:
                    errors.append(f"Missing required field: {name}")
                continue
            if not _matches_type(inputs[name], definition.type):
                errors.append(f"Field {name} must be a {definition.type}")

        for name in inputs:
            if name not in schema:
                errors.append(f"Unknown field: {name}")

        if errors:
            raise InputValidationError("Input validation failed:\n" + "\n".join(errors), errors=errors)

    @staticmethod
    def apply_defaults(inputs: Mapping[str, Any], schema: Mapping[str, InputFieldDef]) -> dict[str, Any]:
        """Fill in declared defaults for missing or null fields; other provided values (even falsy ones) win."""
        result = dict(inputs)
        for name, definition in schema.items():
            if result.get(name) is None and definition.has_default:
                result[name] = definition.default
        return result
