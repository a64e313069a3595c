"""
Pydantic models for task pack documents.

Field names follow the JSON documents authors write by hand (camelCase such as
`anyOf`, `altText`, `waitUntil`); Python attributes are snake_case. Both
spellings are accepted when constructing a model. Booleans and integers must be
JSON booleans and numbers; strings such as "true" or "250" are rejected. Keys a
model does not declare (for example the unused `near` hint some packs carry)
are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .constants import ARIA_ROLES


class _DocModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_doc(self) -> dict[str, Any]:
        """Dump using document (camelCase) names, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ========== Targets ==========


class CssTarget(_DocModel):
    kind: Literal["css"] = "css"
    selector: str = Field(min_length=1)


class TextTarget(_DocModel):
    kind: Literal["text"] = "text"
    text: str = Field(min_length=1)
    exact: StrictBool | None = None


class RoleTarget(_DocModel):
    kind: Literal["role"] = "role"
    role: str
    name: str | None = None
    exact: StrictBool | None = None

    @field_validator("role")
    @classmethod
    def _known_role(cls, value: str) -> str:
        if value not in ARIA_ROLES:
            raise ValueError(f"Role target must have a valid role: {', '.join(ARIA_ROLES)}")
        return value


class LabelTarget(_DocModel):
    kind: Literal["label"] = "label"
    text: str = Field(min_length=1)
    exact: StrictBool | None = None


class PlaceholderTarget(_DocModel):
    kind: Literal["placeholder"] = "placeholder"
    text: str = Field(min_length=1)
    exact: StrictBool | None = None


class AltTextTarget(_DocModel):
    kind: Literal["altText"] = "altText"
    text: str = Field(min_length=1)
    exact: StrictBool | None = None


class TestIdTarget(_DocModel):
    __test__ = False  # keep pytest from collecting this model

    kind: Literal["testId"] = "testId"
    id: str = Field(min_length=1)


Target = Annotated[
    Union[
        CssTarget,
        TextTarget,
        RoleTarget,
        LabelTarget,
        PlaceholderTarget,
        AltTextTarget,
        TestIdTarget,
    ],
    Field(discriminator="kind"),
]


class AnyOfTarget(_DocModel):
    """Ordered fallback candidates, tried in declaration order."""

    any_of: list[Target] = Field(min_length=1)


TargetOrAnyOf = Union[Target, AnyOfTarget]


# ========== Step params ==========


class NavigateParams(_DocModel):
    url: str = Field(min_length=1)
    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] | None = None


class ExtractTitleParams(_DocModel):
    out: str = Field(min_length=1)


class _TargetParams(_DocModel):
    # `selector` is the legacy spelling of a css target.
    selector: str | None = None
    target: TargetOrAnyOf | None = None
    hint: str | None = None
    scope: Target | None = None

    def resolved_target(self) -> TargetOrAnyOf | None:
        if self.target is not None:
            return self.target
        if self.selector:
            return CssTarget(selector=self.selector)
        return None


class _RequiredTargetParams(_TargetParams):
    @model_validator(mode="after")
    def _require_target(self) -> _RequiredTargetParams:
        if not self.selector and self.target is None:
            raise ValueError('params must have either "selector" or "target"')
        return self


class ExtractTextParams(_RequiredTargetParams):
    out: str = Field(min_length=1)
    first: StrictBool = True
    trim: StrictBool = True
    default: str | None = None


class ExtractAttributeParams(_RequiredTargetParams):
    attribute: str = Field(min_length=1)
    out: str = Field(min_length=1)
    first: StrictBool = True
    default: str | None = None


class SleepParams(_DocModel):
    duration_ms: StrictInt = Field(ge=0)


class UrlPattern(_DocModel):
    pattern: str
    exact: StrictBool = False


class WaitForParams(_TargetParams):
    visible: StrictBool = True
    url: str | UrlPattern | None = None
    load_state: Literal["load", "domcontentloaded", "networkidle"] | None = None
    timeout_ms: StrictInt | None = Field(None, ge=0)

    @model_validator(mode="after")
    def _require_condition(self) -> WaitForParams:
        if not (self.selector or self.target is not None or self.url or self.load_state):
            raise ValueError("wait_for params must have one of: selector, target, url, or loadState")
        return self


class ClickParams(_RequiredTargetParams):
    first: StrictBool = True
    wait_for_visible: StrictBool = True


class FillParams(_RequiredTargetParams):
    value: str
    first: StrictBool = True
    clear: StrictBool = True


class AssertParams(_TargetParams):
    visible: StrictBool | None = None
    text_includes: str | None = None
    url_includes: str | None = None
    message: str | None = None

    @model_validator(mode="after")
    def _require_check(self) -> AssertParams:
        if not (self.selector or self.target is not None or self.url_includes):
            raise ValueError("assert params must have at least one of: selector, target, or urlIncludes")
        return self


class SetVarParams(_DocModel):
    name: str = Field(min_length=1)
    value: Union[bool, int, float, str]


# ========== Steps ==========


class _StepBase(_DocModel):
    id: str | None = Field(None, min_length=1)
    label: str | None = None
    timeout_ms: StrictInt | None = Field(None, ge=0)
    optional: StrictBool = False
    on_error: Literal["stop", "continue"] | None = None

    @property
    def continues_on_error(self) -> bool:
        return self.optional or self.on_error == "continue"


class NavigateStep(_StepBase):
    type: Literal["navigate"]
    params: NavigateParams


class ExtractTitleStep(_StepBase):
    type: Literal["extract_title"]
    params: ExtractTitleParams


class ExtractTextStep(_StepBase):
    type: Literal["extract_text"]
    params: ExtractTextParams


class ExtractAttributeStep(_StepBase):
    type: Literal["extract_attribute"]
    params: ExtractAttributeParams


class SleepStep(_StepBase):
    type: Literal["sleep"]
    params: SleepParams


class WaitForStep(_StepBase):
    type: Literal["wait_for"]
    params: WaitForParams


class ClickStep(_StepBase):
    type: Literal["click"]
    params: ClickParams


class FillStep(_StepBase):
    type: Literal["fill"]
    params: FillParams


class AssertStep(_StepBase):
    type: Literal["assert"]
    params: AssertParams


class SetVarStep(_StepBase):
    type: Literal["set_var"]
    params: SetVarParams


DslStep = Annotated[
    Union[
        NavigateStep,
        ExtractTitleStep,
        ExtractTextStep,
        ExtractAttributeStep,
        SleepStep,
        WaitForStep,
        ClickStep,
        FillStep,
        AssertStep,
        SetVarStep,
    ],
    Field(discriminator="type"),
]

STEP_TYPES = (
    "navigate",
    "extract_title",
    "extract_text",
    "extract_attribute",
    "sleep",
    "wait_for",
    "click",
    "fill",
    "assert",
    "set_var",
)


# ========== Task pack ==========


class PackMetadata(_DocModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    description: str | None = None


class InputFieldDef(_DocModel):
    type: Literal["string", "number", "boolean"] = "string"
    required: StrictBool = False
    default: Any = None
    description: str | None = None

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set


class CollectibleDefinition(_DocModel):
    name: str = Field(min_length=1)
    type: Literal["string", "number", "boolean"] = "string"
    description: str | None = None


class ProxyConfig(_DocModel):
    """Proxy settings stored under `browser.proxy` in the pack manifest."""

    enabled: StrictBool = False
    mode: Literal["session", "random"] = "session"
    provider: str | None = None
    country: str | None = Field(None, min_length=2, max_length=2)
    session_duration_minutes: StrictInt | None = Field(None, ge=1)


class BrowserSettings(_DocModel):
    proxy: ProxyConfig | None = None


class TaskPack(_DocModel):
    metadata: PackMetadata
    inputs: dict[str, InputFieldDef] = Field(default_factory=dict)
    collectibles: list[CollectibleDefinition] = Field(default_factory=list)
    flow: list[DslStep] = Field(min_length=1)
    browser: BrowserSettings | None = None


# ========== Run state / results ==========


@dataclass
class VariableContext:
    """
    Per-run template variables.

    `inputs` is fixed for the run; `vars` only grows as steps produce values.
    """

    inputs: dict[str, Any] = field(default_factory=dict)
    vars: dict[str, Any] = field(default_factory=dict)

    def as_template_vars(self) -> dict[str, Any]:
        return {"inputs": self.inputs, "vars": self.vars}


class RunMeta(_DocModel):
    url: str | None = None
    duration_ms: int
    steps_executed: int
    steps_total: int


class RunResult(_DocModel):
    collectibles: dict[str, Any]
    meta: RunMeta


class CollectibleSchemaField(_DocModel):
    name: str
    type: Literal["string", "number", "boolean"]
    description: str | None = None


class StoredResult(_DocModel):
    """A single stored run result, as handed to a ResultStore."""

    key: str
    pack_id: str
    tool_name: str
    inputs: dict[str, Any]
    collectibles: dict[str, Any]
    meta: RunMeta
    collectible_schema: list[CollectibleSchemaField] = Field(default_factory=list)
    stored_at: str
    ran_at: str
    version: int = 1


class ResultSummary(_DocModel):
    key: str
    pack_id: str
    tool_name: str
    stored_at: str
    version: int
    field_count: int
