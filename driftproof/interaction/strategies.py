"""Locator strategies and builders for common attribute hints.

A strategy is a named function ``page -> Locator``. Builders translate the
hints a caller usually has (id, name, visible text, ...) into ordered
strategy lists, most specific first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

LocatorFn = Callable[[Any], Any]


@dataclass(frozen=True)
class Strategy:
    name: str
    resolve: LocatorFn

    def __post_init__(self):
        if not self.name:
            raise ValueError("Strategy name must be non-empty")


def _xpath(expr: str) -> str:
    return expr if expr.startswith("xpath=") else f"xpath={expr}"


def build_strategies(
    id: str | None = None,
    name: str | None = None,
    text: str | None = None,
    aria_label: str | None = None,
    role: str | None = None,
    test_id: str | None = None,
    css: str | None = None,
    xpath: str | None = None,
) -> list[Strategy]:
    """Build strategies from attribute hints, in a fixed priority order."""
    strategies: list[Strategy] = []

    if id:
        strategies.append(Strategy(f"ID: {id}", lambda page: page.locator(f'[id="{id}"]')))
    if name:
        strategies.append(Strategy(f"Name: {name}", lambda page: page.locator(f'[name="{name}"]')))
    if text:
        strategies.append(Strategy(f"Text: {text}", lambda page: page.get_by_text(text, exact=True)))
        strategies.append(Strategy(f"Text (contains): {text}", lambda page: page.locator(f"text={text}")))
    if aria_label:
        strategies.append(Strategy(f"ARIA Label: {aria_label}", lambda page: page.get_by_label(aria_label)))
    if role:
        strategies.append(Strategy(f"Role: {role}", lambda page: page.get_by_role(role)))
    if test_id:
        strategies.append(Strategy(
            f"Data Test ID: {test_id}", lambda page: page.locator(f'[data-testid="{test_id}"]')
        ))
        strategies.append(Strategy(
            f"Data Test ID (alt): {test_id}", lambda page: page.locator(f'[data-test-id="{test_id}"]')
        ))
    if css:
        strategies.append(Strategy(f"CSS: {css}", lambda page: page.locator(css)))
    if xpath:
        strategies.append(Strategy(f"XPath: {xpath}", lambda page: page.locator(_xpath(xpath))))

    return strategies


def build_dynamic_id_strategy(pattern: str, description: str) -> Strategy:
    """Match elements whose generated id contains a stable fragment."""
    return Strategy(
        f"Dynamic ID Pattern: {description}",
        lambda page: page.locator(f'[id*="{pattern}"]'),
    )


def build_form_field_strategies(field_name: str) -> list[Strategy]:
    return [
        Strategy(f"Input by name: {field_name}", lambda page: page.locator(f'input[name="{field_name}"]')),
        Strategy(f"Input by id: {field_name}", lambda page: page.locator(f'input[id="{field_name}"]')),
        Strategy(
            f"Label + Input: {field_name}",
            lambda page: page.locator(f'label:has-text("{field_name}") + input'),
        ),
        Strategy(
            f"Input by placeholder: {field_name}",
            lambda page: page.locator(f'input[placeholder*="{field_name}" i]'),
        ),
    ]


def build_button_strategies(button_text: str) -> list[Strategy]:
    return [
        Strategy(
            f"Button by text: {button_text}",
            lambda page: page.get_by_role("button", name=button_text),
        ),
        Strategy(
            f"Button contains text: {button_text}",
            lambda page: page.locator(f'button:has-text("{button_text}")'),
        ),
        Strategy(
            f"Input button: {button_text}",
            lambda page: page.locator(f'input[type="button"][value="{button_text}"]'),
        ),
        Strategy(
            f"Submit button: {button_text}",
            lambda page: page.locator(f'input[type="submit"][value="{button_text}"]'),
        ),
        Strategy(
            f"Any element as button: {button_text}",
            lambda page: page.locator(f'[role="button"]:has-text("{button_text}")'),
        ),
    ]


def build_option_text_strategies(option_text: str) -> list[Strategy]:
    """Strategies for clicking a listbox/dropdown option by its visible text."""
    return [
        Strategy(f"Option exact text: {option_text}", lambda page: page.get_by_text(option_text, exact=True)),
        Strategy(
            f"Role option: {option_text}",
            lambda page: page.locator(f'[role="option"]:has-text("{option_text}")'),
        ),
        Strategy(f"Quoted text: {option_text}", lambda page: page.locator(f'text="{option_text}"')),
    ]
