"""
Static validation of task pack documents.

Every check runs even when an earlier one failed, so a single pass reports
all problems at once:

    try:
        validate_task_pack(doc)
    except ValidationError as e:
        print(e)          # "Task pack validation failed:\n<one line per problem>"
        print(e.errors)   # the individual problems

Validation never touches a browser; it must pass before any step runs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .constants import EXTRACTION_STEP_TYPES
from .errors import ValidationError
from .models import STEP_TYPES, BrowserSettings, CollectibleDefinition, DslStep, InputFieldDef, TaskPack

_step_adapter: TypeAdapter[Any] = TypeAdapter(DslStep)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def format_pydantic_errors(exc: PydanticValidationError, prefix: str = "") -> list[str]:
    messages: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        messages.append(f"{prefix}{loc}: {msg}" if loc else f"{prefix}{msg}")
    return messages


def _step_label(index: int, step: Any) -> str:
    if isinstance(step, Mapping):
        step_id = step.get("id")
        step_type = step.get("type")
        parts = [str(p) for p in (step_id, step_type) if _non_empty_str(p)]
        if parts:
            return f"Step {index} ({', '.join(parts)})"
    return f"Step {index}"


def validate_step(index: int, step: Any) -> list[str]:
    """Structural problems for one step definition (empty when valid)."""
    label = _step_label(index, step)
    if not isinstance(step, Mapping):
        return [f"{label}: step must be an object"]

    step_type = step.get("type")
    if not _non_empty_str(step_type):
        return [f'{label}: step must have a non-empty string "type"']
    if step_type not in STEP_TYPES:
        return [f"{label}: unknown step type: {step_type}. Supported types: {', '.join(STEP_TYPES)}"]
    if not isinstance(step.get("params"), Mapping):
        return [f'{label}: step must have a "params" object']

    try:
        _step_adapter.validate_python(step)
    except PydanticValidationError as e:
        return format_pydantic_errors(e, prefix=f"{label}: ")
    return []


def validate_flow(steps: Any, errors: list[str] | None = None) -> list[str]:
    """
    Validate each step and the uniqueness of explicit step ids.

    Problems are appended to `errors` when given (and returned). Without an
    `errors` list, a ValidationError is raised for any problem.
    """
    collected: list[str] = errors if errors is not None else []
    start = len(collected)

    if not isinstance(steps, list):
        collected.append("Flow must be an array of steps")
    else:
        seen: set[str] = set()
        for index, step in enumerate(steps):
            collected.extend(validate_step(index, step))
            step_id = step.get("id") if isinstance(step, Mapping) else None
            if not _non_empty_str(step_id):
                continue
            if step_id in seen:
                collected.append(f"Duplicate step ID: {step_id}")
            seen.add(step_id)

    if errors is None and len(collected) > start:
        raise ValidationError("Flow validation failed:\n" + "\n".join(collected), errors=collected)
    return collected[start:]


def referenced_outputs(steps: list[Any]) -> list[str]:
    """`out` names written by extraction steps, in flow order, without duplicates."""
    outs: list[str] = []
    for step in steps:
        if not isinstance(step, Mapping) or step.get("type") not in EXTRACTION_STEP_TYPES:
            continue
        params = step.get("params")
        out = params.get("out") if isinstance(params, Mapping) else None
        if _non_empty_str(out) and out not in outs:
            outs.append(out)
    return outs


def check_collectibles_match_flow(collectibles: list[Any], steps: list[Any]) -> list[str]:
    declared = {c.get("name") for c in collectibles if isinstance(c, Mapping)}
    return [
        f'Flow references collectible "{out}" in extraction step, '
        "but it's not defined in collectibles schema"
        for out in referenced_outputs(steps)
        if out not in declared
    ]


def _check_metadata(doc: Mapping[str, Any], errors: list[str]) -> None:
    metadata = doc.get("metadata")
    if not isinstance(metadata, Mapping) or not all(
        _non_empty_str(metadata.get(k)) for k in ("id", "name", "version")
    ):
        errors.append("Task pack must have metadata.id, metadata.name, and metadata.version")


def _check_inputs(doc: Mapping[str, Any], errors: list[str]) -> None:
    inputs = doc.get("inputs")
    if not isinstance(inputs, Mapping):
        errors.append("Task pack must have an inputs object")
        return
    for name, definition in inputs.items():
        try:
            InputFieldDef.model_validate(definition)
        except PydanticValidationError as e:
            errors.extend(format_pydantic_errors(e, prefix=f'Input "{name}": '))


def _check_collectibles(doc: Mapping[str, Any], errors: list[str]) -> None:
    collectibles = doc.get("collectibles")
    if not isinstance(collectibles, list):
        errors.append("Task pack must have a collectibles array")
        return
    for index, definition in enumerate(collectibles):
        try:
            CollectibleDefinition.model_validate(definition)
        except PydanticValidationError as e:
            errors.extend(format_pydantic_errors(e, prefix=f"Collectible {index}: "))


def _check_flow(doc: Mapping[str, Any], errors: list[str]) -> None:
    flow = doc.get("flow")
    if not isinstance(flow, list):
        errors.append("Task pack must have a flow array")
        return
    if not flow:
        errors.append("Task pack flow must contain at least one step")
        return
    validate_flow(flow, errors)


def _check_cross_references(doc: Mapping[str, Any], errors: list[str]) -> None:
    collectibles = doc.get("collectibles")
    flow = doc.get("flow")
    if isinstance(collectibles, list) and isinstance(flow, list):
        errors.extend(check_collectibles_match_flow(collectibles, flow))


def _check_browser(doc: Mapping[str, Any], errors: list[str]) -> None:
    browser = doc.get("browser")
    if browser is None:
        return
    try:
        BrowserSettings.model_validate(browser)
    except PydanticValidationError as e:
        errors.extend(format_pydantic_errors(e, prefix="browser."))


_CHECKS = (
    _check_metadata,
    _check_inputs,
    _check_collectibles,
    _check_flow,
    _check_cross_references,
    _check_browser,
)


def validate_task_pack(pack: Mapping[str, Any] | TaskPack) -> None:
    """Raise ValidationError listing every problem in `pack`; return None if valid."""
    doc = pack.to_doc() if isinstance(pack, TaskPack) else pack
    if not isinstance(doc, Mapping):
        raise ValidationError("Task pack validation failed:\nTask pack must be an object")

    errors: list[str] = []
    for check in _CHECKS:
        check(doc, errors)

    if errors:
        raise ValidationError("Task pack validation failed:\n" + "\n".join(errors), errors=errors)


def parse_task_pack(doc: Mapping[str, Any]) -> TaskPack:
    """Validate a raw document and build the TaskPack model from it."""
    validate_task_pack(doc)
    try:
        return TaskPack.model_validate(doc)
    except PydanticValidationError as e:
        errors = format_pydantic_errors(e)
        raise ValidationError("Task pack validation failed:\n" + "\n".join(errors), errors=errors) from e
