"""Shared fakes standing in for Playwright pages and locators."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from driftproof.interaction.strategies import Strategy
from driftproof.runner.step_tracker import StepDefinition


def make_locator(count: int = 1, wait_error: Exception | None = None, action_error: Exception | None = None):
    """Locator fake: ``count()`` matches, ``first`` is the actionable element."""
    element = MagicMock()
    element.wait_for = AsyncMock(side_effect=wait_error)
    for action in ("click", "fill", "select_option", "check", "clear", "scroll_into_view_if_needed"):
        setattr(element, action, AsyncMock(side_effect=action_error))

    locator = MagicMock()
    locator.count = AsyncMock(return_value=count)
    locator.first = element
    return locator


def strategy_for(name: str, locator) -> Strategy:
    return Strategy(name, lambda page: locator)


@pytest.fixture
def page():
    page = MagicMock()
    page.wait_for_load_state = AsyncMock()
    page.screenshot = AsyncMock()
    page.content = AsyncMock(return_value="<html><body><button id='save'>Save</button></body></html>")
    page.title = AsyncMock(return_value="Test page")
    page.pause = AsyncMock()
    page.url = "https://example.test/form"
    return page


@pytest.fixture
def catalog():
    return (
        StepDefinition(1, "open_portal", "Open the portal", group="auth"),
        StepDefinition(2, "click_login", "Click login", group="auth"),
        StepDefinition(3, "submit_form", "Submit the form", group="form", required=False),
    )
