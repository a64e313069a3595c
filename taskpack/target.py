"""
Target resolution: declarative element descriptors -> live Playwright locators.

Resolution is a pure query against the backend. A `TargetOrAnyOf` with an
`anyOf` chain is resolved candidate by candidate, in declaration order, and
the first candidate that matches at least one element wins:

    match = await resolve_target_with_fallback(
        page,
        AnyOfTarget(any_of=[TestIdTarget(id="buy"), RoleTarget(role="button", name="Buy")]),
    )
    await match.locator.first.click()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, Union, runtime_checkable

from .errors import TargetResolutionError
from .models import (
    AltTextTarget,
    AnyOfTarget,
    CssTarget,
    LabelTarget,
    PlaceholderTarget,
    RoleTarget,
    Target,
    TargetOrAnyOf,
    TestIdTarget,
    TextTarget,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class Locatable(Protocol):
    """Locate-by-criteria primitives shared by pages and locators."""

    def locator(self, selector: str) -> ScopedHandle: ...

    def get_by_text(self, text: str, *, exact: bool | None = None) -> ScopedHandle: ...

    def get_by_role(
        self, role: Any, *, name: str | None = None, exact: bool | None = None
    ) -> ScopedHandle: ...

    def get_by_label(self, text: str, *, exact: bool | None = None) -> ScopedHandle: ...

    def get_by_placeholder(self, text: str, *, exact: bool | None = None) -> ScopedHandle: ...

    def get_by_alt_text(self, text: str, *, exact: bool | None = None) -> ScopedHandle: ...

    def get_by_test_id(self, test_id: str) -> ScopedHandle: ...


class ScopedHandle(Locatable, Protocol):
    """A (possibly empty) set of matched elements, e.g. a Playwright `Locator`."""

    @property
    def first(self) -> ScopedHandle: ...

    def nth(self, index: int) -> ScopedHandle: ...

    async def count(self) -> int: ...

    async def text_content(self, **kwargs: Any) -> str | None: ...

    async def get_attribute(self, name: str, **kwargs: Any) -> str | None: ...

    async def is_visible(self, **kwargs: Any) -> bool: ...

    async def wait_for(self, **kwargs: Any) -> None: ...

    async def click(self, **kwargs: Any) -> None: ...

    async def fill(self, value: str, **kwargs: Any) -> None: ...

    async def press_sequentially(self, text: str, **kwargs: Any) -> None: ...


class DocumentRoot(Locatable, Protocol):
    """A whole document, e.g. a Playwright `Page`."""

    @property
    def url(self) -> str: ...

    async def title(self) -> str: ...

    async def goto(self, url: str, **kwargs: Any) -> Any: ...

    async def wait_for_url(self, url: Any, **kwargs: Any) -> None: ...

    async def wait_for_load_state(self, state: Any = None, **kwargs: Any) -> None: ...


SearchRoot = Union[DocumentRoot, ScopedHandle]


@dataclass(frozen=True)
class TargetMatch:
    locator: ScopedHandle
    matched_target: Target
    matched_count: int


def selector_to_target(selector: str) -> CssTarget:
    """Legacy `selector` strings are css targets."""
    return CssTarget(selector=selector)


def describe_target(target: Target | AnyOfTarget) -> str:
    return target.model_dump_json(by_alias=True, exclude_none=True)


def resolve_target(root: SearchRoot, target: Target) -> ScopedHandle:
    """
    Map a single target onto the matching backend primitive.

    `exact` defaults to False (substring, case-insensitive matching).
    """
    if isinstance(target, CssTarget):
        return root.locator(target.selector)
    if isinstance(target, TextTarget):
        return root.get_by_text(target.text, exact=bool(target.exact))
    if isinstance(target, RoleTarget):
        return root.get_by_role(target.role, name=target.name, exact=bool(target.exact))
    if isinstance(target, LabelTarget):
        return root.get_by_label(target.text, exact=bool(target.exact))
    if isinstance(target, PlaceholderTarget):
        return root.get_by_placeholder(target.text, exact=bool(target.exact))
    if isinstance(target, AltTextTarget):
        return root.get_by_alt_text(target.text, exact=bool(target.exact))
    if isinstance(target, TestIdTarget):
        return root.get_by_test_id(target.id)
    raise TypeError(f"Unknown target kind: {getattr(target, 'kind', type(target).__name__)!r}")


async def resolve_target_with_fallback(
    root: SearchRoot,
    target_or_any_of: TargetOrAnyOf,
    scope: Target | None = None,
) -> TargetMatch:
    """
    Resolve a target (or `anyOf` chain) inside an optional scope.

    Single target: resolved and counted; errors propagate and a zero count is
    returned as-is.

    `anyOf`: the first candidate with a count above zero is returned, even if
    a later candidate would match more elements. A candidate that raises is
    skipped. If nothing matches, TargetResolutionError reports how many
    candidates were tried and the last error seen.
    """
    base: SearchRoot = resolve_target(root, scope) if scope is not None else root

    if not isinstance(target_or_any_of, AnyOfTarget):
        locator = resolve_target(base, target_or_any_of)
        count = await locator.count()
        return TargetMatch(locator=locator, matched_target=target_or_any_of, matched_count=count)

    candidates = target_or_any_of.any_of
    last_error: Exception | None = None
    for index, candidate in enumerate(candidates):
        try:
            locator = resolve_target(base, candidate)
            count = await locator.count()
        except Exception as e:
            last_error = e
            logger.debug("anyOf candidate %d (%s) failed: %s", index, describe_target(candidate), e)
            continue
        if count > 0:
            return TargetMatch(locator=locator, matched_target=candidate, matched_count=count)

    message = f"No target matched. Tried {len(candidates)} target(s)."
    if last_error is not None:
        message += f" Last error: {last_error}"
    raise TargetResolutionError(message, tried=len(candidates), last_error=last_error)
