"""
Declarative browser task packs.

A task pack is a JSON document (metadata, input schema, collectibles, and a
flow of steps) interpreted against a Playwright page:
- target resolution with ordered `anyOf` fallback
- strict templating of step params from `inputs` / `vars`
- aggregated validation of the whole pack before anything runs
- FIFO admission control shared by every pack tool
- deterministic result keys for storing runs
"""

from .artifacts import ArtifactManager
from .concurrency import ConcurrencyLimiter
from .config import RunnerConfig
from .errors import (
    AssertionFailedError,
    InputValidationError,
    PackLoadError,
    RunCancelledError,
    StepExecutionError,
    TargetResolutionError,
    TaskPackError,
    TemplateResolutionError,
    UnknownProviderError,
    ValidationError,
)
from .inputs import InputValidator
from .keys import UNDEFINED, canonicalize_inputs, generate_result_key
from .loader import TaskPackLoader
from .models import (
    AnyOfTarget,
    CollectibleDefinition,
    DslStep,
    InputFieldDef,
    PackMetadata,
    ProxyConfig,
    RunMeta,
    RunResult,
    StoredResult,
    Target,
    TaskPack,
    VariableContext,
)
from .proxy import OxylabsProvider, ProxyRegistry, ResolvedProxy
from .runner import run_task_pack
from .storage import InMemoryResultStore, ResultStore
from .target import TargetMatch, resolve_target, resolve_target_with_fallback
from .templating import JinjaTemplateRenderer, has_template, resolve_template, resolve_templates
from .tools import PackTool, ToolResult, browser_page_factory, build_tool_description
from .validation import parse_task_pack, validate_flow, validate_task_pack

__all__ = [
    "AnyOfTarget",
    "ArtifactManager",
    "AssertionFailedError",
    "CollectibleDefinition",
    "ConcurrencyLimiter",
    "DslStep",
    "InMemoryResultStore",
    "InputFieldDef",
    "InputValidationError",
    "InputValidator",
    "JinjaTemplateRenderer",
    "OxylabsProvider",
    "PackLoadError",
    "PackMetadata",
    "PackTool",
    "ProxyConfig",
    "ProxyRegistry",
    "ResolvedProxy",
    "ResultStore",
    "RunCancelledError",
    "RunMeta",
    "RunResult",
    "RunnerConfig",
    "StepExecutionError",
    "StoredResult",
    "Target",
    "TargetMatch",
    "TargetResolutionError",
    "TaskPack",
    "TaskPackError",
    "TaskPackLoader",
    "TemplateResolutionError",
    "ToolResult",
    "UNDEFINED",
    "UnknownProviderError",
    "ValidationError",
    "VariableContext",
    "browser_page_factory",
    "build_tool_description",
    "canonicalize_inputs",
    "generate_result_key",
    "has_template",
    "parse_task_pack",
    "resolve_target",
    "resolve_target_with_fallback",
    "resolve_template",
    "resolve_templates",
    "run_task_pack",
    "validate_flow",
    "validate_task_pack",
]
