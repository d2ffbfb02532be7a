#!/usr/bin/env python3
"""Debug script: open a page and click a control through the resolver.

Usage:
    python scripts/debug_run.py https://example.com --text "More information"
    python scripts/debug_run.py https://example.com --css "a" --headed
    python scripts/debug_run.py https://example.com --option "Acme S.A." --option-query "[role=option]"
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from playwright.async_api import async_playwright

from driftproof.config import load_engine_config, load_retry_policy, load_settings
from driftproof.diagnostics import SnapshotManager
from driftproof.interaction import StrategyResolver, build_button_strategies, build_strategies
from driftproof.log_setup import configure_logging
from driftproof.runner import (
    InteractiveFallbackController,
    ProgressTracker,
    StepDefinition,
    execute_with_retries,
)

logger = logging.getLogger(__name__)

CATALOG = (
    StepDefinition(1, "open_page", "Open the target page"),
    StepDefinition(2, "act", "Act on the requested control"),
)


async def run_steps(args, browser, tracker, snapshots, engine_config, policy, settings) -> None:
    resolver_config = engine_config.get("resolver", {})
    page = await browser.new_page()
    resolver = StrategyResolver(
        page,
        actionability_timeout=resolver_config.get("actionability_timeout", 5.0),
        tracker=tracker,
    )
    fallback = InteractiveFallbackController.for_page(
        page, settings.interactive_mode, snapshots=snapshots
    )

    tracker.start_step(1)
    try:
        await execute_with_retries(lambda: page.goto(args.url), policy)
    except Exception as e:
        tracker.log_error(1, str(e))
        return
    await resolver.wait_for_navigation(resolver_config.get("navigation_timeout", 30.0))
    tracker.log_success(1)

    async def act():
        if args.option:
            outcome = await resolver.select_similar_option(args.option, args.option_query, step_id=2)
        else:
            strategies = build_strategies(text=args.text, css=args.css)
            if args.text:
                strategies += build_button_strategies(args.text)
            outcome = await resolver.click(strategies, step_id=2)
        if not outcome.success:
            raise outcome.error
        return outcome

    try:
        outcome = await fallback.execute_with_interactive_support(
            "act", act, retries=engine_config.get("interactive", {}).get("retries", 3)
        )
        logger.info(f"Winning strategy: {outcome.strategy_name}")
    except Exception as e:
        try:
            await snapshots.failure_report(page, e, "act")
        except Exception as report_error:
            logger.error(f"Could not write failure report: {report_error}")

    try:
        await snapshots.screenshot(page, "final")
    except Exception as e:
        logger.warning(f"Final screenshot failed: {e}")


async def main(args: argparse.Namespace) -> int:
    settings = load_settings()
    configure_logging(settings.log_level, settings.output_dir)
    engine_config = load_engine_config()
    policy = load_retry_policy(engine_config)

    tracker = ProgressTracker(CATALOG)
    snapshots = SnapshotManager(settings.output_dir, debug_mode=settings.debug_mode)

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=settings.headless and not args.headed)
        try:
            await run_steps(args, browser, tracker, snapshots, engine_config, policy, settings)
        finally:
            await browser.close()

    print(tracker.generate_summary())
    return 0 if tracker.get_progress().completed == tracker.total else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Click a control through the strategy resolver")
    parser.add_argument("url")
    parser.add_argument("--text", help="Visible text of the control")
    parser.add_argument("--css", help="Raw CSS selector")
    parser.add_argument("--option", help="Approximate text of an option to pick")
    parser.add_argument("--option-query", default='[role="option"], option', help="Selector for option elements")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    args = parser.parse_args()
    if not (args.text or args.css or args.option):
        parser.error("one of --text, --css or --option is required")
    sys.exit(asyncio.run(main(args)))
