from __future__ import annotations

import pytest

from taskpack.errors import TargetResolutionError
from taskpack.models import (
    AltTextTarget,
    AnyOfTarget,
    CssTarget,
    LabelTarget,
    PlaceholderTarget,
    RoleTarget,
    TestIdTarget,
    TextTarget,
)
from taskpack.target import resolve_target, resolve_target_with_fallback

from .fake_page import FakeElement, FakePage


def make_page() -> FakePage:
    return FakePage(
        [
            FakeElement(text="Welcome", selectors=("h1",)),
            FakeElement(text="Buy now", role="button", name="Buy now", test_id="buy"),
            FakeElement(text="Buy later", role="button", name="Buy later"),
            FakeElement(label="Email", placeholder="you@example.com", selectors=("input",)),
            FakeElement(alt="Company logo", selectors=("img",)),
            FakeElement(
                selectors=(".card",),
                children=[FakeElement(text="$10", selectors=(".price",))],
            ),
            FakeElement(text="$99", selectors=(".price",)),
        ]
    )


@pytest.mark.asyncio
async def test_each_target_kind_maps_to_its_primitive() -> None:
    page = make_page()
    assert await resolve_target(page, CssTarget(selector="h1")).count() == 1
    assert await resolve_target(page, TextTarget(text="welcome")).count() == 1
    assert await resolve_target(page, RoleTarget(role="button", name="Buy")).count() == 2
    assert await resolve_target(page, LabelTarget(text="Email")).count() == 1
    assert await resolve_target(page, PlaceholderTarget(text="you@")).count() == 1
    assert await resolve_target(page, AltTextTarget(text="logo")).count() == 1
    assert await resolve_target(page, TestIdTarget(id="buy")).count() == 1


@pytest.mark.asyncio
async def test_exact_defaults_to_substring_matching() -> None:
    page = make_page()
    assert await resolve_target(page, TextTarget(text="Buy")).count() == 2
    assert await resolve_target(page, TextTarget(text="Buy", exact=True)).count() == 0
    assert await resolve_target(page, TextTarget(text="Buy now", exact=True)).count() == 1


@pytest.mark.asyncio
async def test_single_target_returns_zero_count_without_error() -> None:
    match = await resolve_target_with_fallback(make_page(), CssTarget(selector=".missing"))
    assert match.matched_count == 0
    assert match.matched_target == CssTarget(selector=".missing")


@pytest.mark.asyncio
async def test_single_target_error_propagates() -> None:
    with pytest.raises(ValueError, match="Unexpected token"):
        await resolve_target_with_fallback(make_page(), CssTarget(selector="!broken"))


@pytest.mark.asyncio
async def test_any_of_returns_first_positive_candidate() -> None:
    target = AnyOfTarget(
        any_of=[
            TestIdTarget(id="checkout"),
            RoleTarget(role="button", name="Buy"),
            TestIdTarget(id="buy"),
        ]
    )
    match = await resolve_target_with_fallback(make_page(), target)
    # second candidate wins even though it is ambiguous and the third is unique
    assert match.matched_target == RoleTarget(role="button", name="Buy")
    assert match.matched_count == 2


@pytest.mark.asyncio
async def test_any_of_skips_candidates_that_raise() -> None:
    target = AnyOfTarget(any_of=[CssTarget(selector="!broken"), TextTarget(text="Welcome")])
    match = await resolve_target_with_fallback(make_page(), target)
    assert match.matched_target == TextTarget(text="Welcome")
    assert match.matched_count == 1


@pytest.mark.asyncio
async def test_any_of_reports_count_and_last_error_when_nothing_matches() -> None:
    target = AnyOfTarget(any_of=[CssTarget(selector="!broken"), TextTarget(text="Nope")])
    with pytest.raises(TargetResolutionError) as exc_info:
        await resolve_target_with_fallback(make_page(), target)

    message = str(exc_info.value)
    assert message.startswith("No target matched.")
    assert "Tried 2 target(s)" in message
    assert "Unexpected token" in message
    assert exc_info.value.tried == 2
    assert isinstance(exc_info.value.last_error, ValueError)


@pytest.mark.asyncio
async def test_scope_restricts_search_to_descendants() -> None:
    page = make_page()
    unscoped = await resolve_target_with_fallback(page, CssTarget(selector=".price"))
    scoped = await resolve_target_with_fallback(
        page, CssTarget(selector=".price"), scope=CssTarget(selector=".card")
    )
    assert unscoped.matched_count == 2
    assert scoped.matched_count == 1
    assert await scoped.locator.first.text_content() == "$10"


def test_unknown_target_kind_raises_type_error() -> None:
    with pytest.raises(TypeError, match="Unknown target kind"):
        resolve_target(make_page(), object())  # type: ignore[arg-type]


def test_any_of_parses_from_document_names() -> None:
    target = AnyOfTarget.model_validate(
        {"anyOf": [{"kind": "testId", "id": "buy"}, {"kind": "altText", "text": "logo"}]}
    )
    assert target.any_of == [TestIdTarget(id="buy"), AltTextTarget(text="logo")]
