from __future__ import annotations

import pytest

from taskpack.errors import InputValidationError
from taskpack.inputs import InputValidator
from taskpack.models import InputFieldDef

SCHEMA = {
    "query": InputFieldDef(type="string", required=True),
    "page": InputFieldDef(type="number", default=1),
    "exact": InputFieldDef(type="boolean", default=False),
    "region": InputFieldDef(type="string"),
}


def test_valid_inputs_pass() -> None:
    InputValidator.validate({"query": "widgets", "page": 2.5, "exact": True}, SCHEMA)


def test_problems_are_aggregated() -> None:
    with pytest.raises(InputValidationError) as exc_info:
        InputValidator.validate({"page": True, "exact": "yes", "colour": "red"}, SCHEMA)
    assert exc_info.value.errors == [
        "Missing required field: query",
        "Field page must be a number",
        "Field exact must be a boolean",
        "Unknown field: colour",
    ]


def test_none_counts_as_missing() -> None:
    with pytest.raises(InputValidationError, match="Missing required field: query"):
        InputValidator.validate({"query": None}, SCHEMA)


def test_apply_defaults_fills_only_missing_fields() -> None:
    result = InputValidator.apply_defaults({"query": "w", "exact": False, "page": 0}, SCHEMA)
    assert result == {"query": "w", "exact": False, "page": 0}

    result = InputValidator.apply_defaults({"query": "w"}, SCHEMA)
    assert result == {"query": "w", "page": 1, "exact": False}
    assert "region" not in result


def test_explicit_none_default_is_applied() -> None:
    schema = {"cursor": InputFieldDef.model_validate({"type": "string", "default": None})}
    assert InputValidator.apply_defaults({}, schema) == {"cursor": None}


def test_null_value_takes_the_declared_default() -> None:
    result = InputValidator.apply_defaults({"query": "w", "page": None, "exact": None, "region": None}, SCHEMA)
    assert result == {"query": "w", "page": 1, "exact": False, "region": None}
