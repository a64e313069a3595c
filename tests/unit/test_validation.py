from __future__ import annotations

import copy

import pytest

from taskpack.errors import ValidationError
from taskpack.models import AnyOfTarget, ExtractTextStep, TaskPack
from taskpack.validation import (
    check_collectibles_match_flow,
    parse_task_pack,
    validate_flow,
    validate_task_pack,
)


def make_doc() -> dict:
    return {
        "metadata": {"id": "acme-search", "name": "Acme search", "version": "1.0.0"},
        "inputs": {"query": {"type": "string", "required": True}},
        "collectibles": [{"name": "title", "type": "string"}, {"name": "price", "type": "string"}],
        "flow": [
            {"id": "open", "type": "navigate", "params": {"url": "https://acme.example/?q={{ inputs.query }}"}},
            {"id": "title", "type": "extract_title", "params": {"out": "title"}},
            {
                "id": "price",
                "type": "extract_text",
                "params": {
                    "target": {
                        "anyOf": [
                            {"kind": "testId", "id": "price"},
                            {"kind": "css", "selector": ".price"},
                        ]
                    },
                    "out": "price",
                },
            },
        ],
    }


def test_valid_pack_passes_and_parses() -> None:
    doc = make_doc()
    validate_task_pack(doc)
    pack = parse_task_pack(doc)
    assert isinstance(pack, TaskPack)
    step = pack.flow[2]
    assert isinstance(step, ExtractTextStep)
    assert isinstance(step.params.target, AnyOfTarget)


def test_parsed_pack_revalidates() -> None:
    validate_task_pack(parse_task_pack(make_doc()))


def test_undeclared_collectible_is_reported() -> None:
    doc = make_doc()
    doc["collectibles"] = [{"name": "title", "type": "string"}]
    with pytest.raises(ValidationError) as exc_info:
        validate_task_pack(doc)
    assert exc_info.value.errors == [
        'Flow references collectible "price" in extraction step, '
        "but it's not defined in collectibles schema"
    ]
    assert str(exc_info.value).startswith("Task pack validation failed:\n")


def test_all_problems_are_aggregated() -> None:
    doc = make_doc()
    doc["metadata"] = {"id": "acme-search", "name": "Acme"}
    doc["flow"][1] = {"id": "open", "type": "extract_title", "params": {"out": "title"}}
    doc["flow"].append({"type": "teleport", "params": {}})

    with pytest.raises(ValidationError) as exc_info:
        validate_task_pack(doc)

    errors = exc_info.value.errors
    assert "Task pack must have metadata.id, metadata.name, and metadata.version" in errors
    assert "Duplicate step ID: open" in errors
    assert any("unknown step type: teleport" in e for e in errors)
    assert len(errors) == 3


def test_empty_flow_is_rejected() -> None:
    doc = make_doc()
    doc["flow"] = []
    doc["collectibles"] = []
    with pytest.raises(ValidationError, match="at least one step"):
        validate_task_pack(doc)


def test_missing_inputs_object_is_rejected() -> None:
    doc = make_doc()
    del doc["inputs"]
    with pytest.raises(ValidationError) as exc_info:
        validate_task_pack(doc)
    assert "Task pack must have an inputs object" in exc_info.value.errors


def test_extract_text_requires_a_target() -> None:
    errors = validate_flow([{"type": "extract_text", "params": {"out": "x"}}], [])
    assert len(errors) == 1
    assert errors[0].startswith("Step 0 (extract_text): ")
    assert 'either "selector" or "target"' in errors[0]


def test_invalid_role_is_reported() -> None:
    errors = validate_flow(
        [{"type": "click", "params": {"target": {"kind": "role", "role": "not-a-role"}}}], []
    )
    assert errors
    assert all(e.startswith("Step 0 (click): ") for e in errors)
    assert any("valid role" in e for e in errors)


def test_validate_flow_raises_without_error_list() -> None:
    with pytest.raises(ValidationError, match="Duplicate step ID: a"):
        validate_flow(
            [
                {"id": "a", "type": "sleep", "params": {"durationMs": 1}},
                {"id": "a", "type": "sleep", "params": {"durationMs": 1}},
            ]
        )


def test_steps_without_ids_are_not_duplicates() -> None:
    steps = [
        {"type": "sleep", "params": {"durationMs": 1}},
        {"type": "sleep", "params": {"durationMs": 1}},
    ]
    assert validate_flow(steps, []) == []


def test_cross_reference_helper_ignores_non_extraction_steps() -> None:
    steps = [{"type": "set_var", "params": {"name": "price", "value": "1"}}]
    assert check_collectibles_match_flow([], steps) == []


def test_browser_proxy_settings_are_validated() -> None:
    doc = copy.deepcopy(make_doc())
    doc["browser"] = {"proxy": {"enabled": True, "mode": "sticky"}}
    with pytest.raises(ValidationError) as exc_info:
        validate_task_pack(doc)
    assert any(e.startswith("browser.proxy.mode") for e in exc_info.value.errors)


@pytest.mark.parametrize(
    "step",
    [
        {"type": "extract_text", "params": {"selector": ".price", "out": "price", "first": "yes"}},
        {"type": "click", "params": {"target": {"kind": "text", "text": "Buy", "exact": "false"}}},
        {"type": "sleep", "params": {"durationMs": "250"}},
        {"type": "sleep", "optional": "true", "params": {"durationMs": 250}},
        {"type": "navigate", "timeoutMs": "5000", "params": {"url": "https://acme.example/"}},
        {"type": "wait_for", "params": {"selector": ".ready", "visible": 1}},
    ],
)
def test_booleans_and_numbers_are_not_coerced_from_other_types(step: dict) -> None:
    doc = make_doc()
    doc["flow"].append(step)
    with pytest.raises(ValidationError) as exc_info:
        validate_task_pack(doc)
    assert any(e.startswith("Step 3 (") for e in exc_info.value.errors)


def test_unused_near_hint_is_ignored() -> None:
    doc = make_doc()
    doc["flow"].append(
        {"type": "click", "params": {"selector": "button.add", "near": {"kind": "text", "text": "Price"}}}
    )
    validate_task_pack(doc)
    step = parse_task_pack(doc).flow[3]
    assert "near" not in step.params.to_doc()
