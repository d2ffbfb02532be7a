"""Human-in-the-loop fallback for operations that automation cannot finish.

After the automated attempts run out, an attended run pauses (by default in
the Playwright inspector), lets the operator finish the step by hand, and
then tries the operation exactly once more. Unattended runs never pause;
they re-raise the last error.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Snapshotter = Callable[[str], Awaitable[object]]
Pauser = Callable[[], Awaitable[None]]


class InteractiveFallbackController:
    def __init__(
        self,
        interactive: bool,
        snapshotter: Snapshotter | None = None,
        pauser: Pauser | None = None,
        delay_unit: float = 1.0,
    ):
        self.interactive = interactive
        self.snapshotter = snapshotter
        self.pauser = pauser
        self.delay_unit = delay_unit

    @classmethod
    def for_page(cls, page, interactive: bool, snapshots=None, delay_unit: float = 1.0):
        """Wire the controller to a page: inspector pause plus debug screenshot."""
        snapshotter = None
        if snapshots is not None:
            async def snapshotter(name: str):
                return await snapshots.screenshot(page, name, kind="debug")
        return cls(interactive, snapshotter=snapshotter, pauser=page.pause, delay_unit=delay_unit)

    async def enter_interactive_mode(self, task_name: str, error: BaseException) -> bool:
        if not self.interactive:
            return False

        logger.warning("INTERACTIVE MODE ENABLED")
        logger.warning(f"Failed task: {task_name}")
        logger.warning(f"Error: {error}")
        logger.warning("Please complete the action manually in the browser.")
        logger.warning("Press 'Resume' in the inspector when done.")

        if self.snapshotter is not None:
            try:
                path = await self.snapshotter(f"interactive_mode_{'_'.join(task_name.split())}")
                logger.info(f"Diagnostic snapshot: {path}")
            except Exception as e:
                logger.error(f"Diagnostic snapshot failed: {e}")

        if self.pauser is not None:
            await self.pauser()

        logger.info("Resuming after manual intervention...")
        return True

    async def execute_with_interactive_support(
        self,
        task_name: str,
        operation: Callable[[], Awaitable[T]],
        retries: int = 3,
    ) -> T:
        if retries < 1:
            raise ValueError("retries must be >= 1")

        last_error: BaseException | None = None
        for attempt in range(1, retries + 1):
            try:
                logger.info(f"Running {task_name} (attempt {attempt}/{retries})...")
                return await operation()
            except Exception as e:
                last_error = e
                logger.warning(f"Attempt {attempt} failed: {e}")

            if attempt < retries:
                delay = attempt * self.delay_unit
                logger.info(f"Waiting {delay:.1f}s before the next attempt...")
                await asyncio.sleep(delay)

        logger.error(f"All attempts failed for: {task_name}")
        if not self.interactive:
            raise last_error

        await self.enter_interactive_mode(task_name, last_error)
        try:
            logger.info("Retrying after manual correction...")
            return await operation()
        except Exception as e:
            logger.critical(f"{task_name} failed even after manual intervention: {e}")
            raise


def log_recorded_action(action: str, selector: str | None = None) -> None:
    """Log an action the operator performed so it can be automated later."""
    logger.info(f"RECORDED ACTION: {action}")
    if selector:
        logger.info(f"Selector: {selector}")
    logger.info("Consider adding this action as a strategy to automate it next time.")
