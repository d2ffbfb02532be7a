"""Screenshots, debug snapshots and failure reports for a Playwright page.

Everything lands under ``<output_dir>``:

  screenshots/<kind>/<kind>_<name>_<ts>.png
  debug_runs/run_<ts>/<name>/{page.html, controls.json, metadata.json, context.txt}
  debug_runs/run_<ts>/failure_report.json
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

SCREENSHOT_KINDS = ("milestone", "error", "debug")


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")


def _safe_name(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", name.strip()) or "snapshot"


async def take_screenshot(
    page,
    name: str,
    output_dir: str | Path,
    kind: str = "milestone",
    full_page: bool = True,
) -> Path:
    if kind not in SCREENSHOT_KINDS:
        raise ValueError(f"Unknown screenshot kind: {kind}")
    screenshot_dir = Path(output_dir) / "screenshots" / kind
    screenshot_dir.mkdir(parents=True, exist_ok=True)
    path = screenshot_dir / f"{kind}_{_safe_name(name)}_{_timestamp()}.png"

    try:
        await page.screenshot(path=str(path), full_page=full_page)
    except Exception as e:
        logger.error(f"Failed to take screenshot {name}: {e}")
        raise
    logger.info(f"Screenshot saved: {path}")
    return path


def extract_controls(html: str) -> list[dict]:
    """List the interactive controls in *html* for an operator to inspect.

    Ids and names are exactly the attributes that drift, so seeing the
    current ones next to the visible labels is the fastest way to write a
    new strategy.
    """
    soup = BeautifulSoup(html, "html.parser")
    controls: list[dict] = []
    for el in soup.find_all(["input", "button", "select", "textarea", "a"]):
        if el.name == "input" and el.get("type") == "hidden":
            continue
        text = el.get_text(" ", strip=True)
        controls.append({
            "tag": el.name,
            "id": el.get("id"),
            "name": el.get("name"),
            "type": el.get("type"),
            "role": el.get("role"),
            "aria_label": el.get("aria-label"),
            "placeholder": el.get("placeholder"),
            "text": text[:120] if text else None,
            "options": [o.get_text(strip=True) for o in el.find_all("option")] if el.name == "select" else None,
        })
    for el in soup.select('[role="button"], [role="option"], [role="checkbox"]'):
        if el.name in ("input", "button", "select", "textarea", "a"):
            continue
        controls.append({
            "tag": el.name,
            "id": el.get("id"),
            "role": el.get("role"),
            "text": el.get_text(" ", strip=True)[:120],
        })
    return controls


@dataclass
class DebugSnapshot:
    timestamp: str
    url: str
    title: str
    screenshot_path: str
    html_path: str
    controls_path: str


class SnapshotManager:
    """Writes screenshots and debug artifacts for one run."""

    def __init__(self, output_dir: str | Path, debug_mode: bool = False):
        self.output_dir = Path(output_dir)
        self.debug_mode = debug_mode
        self.run_dir = self.output_dir / "debug_runs" / f"run_{_timestamp()}"

    async def screenshot(self, page, name: str, kind: str = "milestone") -> Path:
        return await take_screenshot(page, name, self.output_dir, kind=kind)

    async def debug_snapshot(self, page, name: str, context: str | None = None) -> DebugSnapshot | None:
        """Capture page state; a no-op unless debug mode is on.

        Failures are logged and reported as None so diagnostics never take
        down the run they are diagnosing.
        """
        if not self.debug_mode:
            return None

        snapshot_dir = self.run_dir / _safe_name(name)
        try:
            logger.info(f"Creating debug snapshot: {name}")
            snapshot_dir.mkdir(parents=True, exist_ok=True)

            screenshot_path = await self.screenshot(page, name, kind="debug")

            html = await page.content()
            html_path = snapshot_dir / "page.html"
            html_path.write_text(html, encoding="utf-8")

            controls_path = snapshot_dir / "controls.json"
            controls_path.write_text(json.dumps(extract_controls(html), indent=2), encoding="utf-8")

            snapshot = DebugSnapshot(
                timestamp=_timestamp(),
                url=page.url,
                title=await page.title(),
                screenshot_path=str(screenshot_path),
                html_path=str(html_path),
                controls_path=str(controls_path),
            )
            (snapshot_dir / "metadata.json").write_text(
                json.dumps(asdict(snapshot), indent=2), encoding="utf-8"
            )
            if context:
                (snapshot_dir / "context.txt").write_text(context, encoding="utf-8")
        except Exception as e:
            logger.error(f"Failed to create debug snapshot {name}: {e}")
            return None

        logger.info(f"Debug snapshot created in: {snapshot_dir}")
        return snapshot

    async def failure_report(
        self, page, error: BaseException, step: str, additional_info: dict | None = None
    ) -> Path:
        self.run_dir.mkdir(parents=True, exist_ok=True)
        snapshot = await self.debug_snapshot(page, "failure", f"Error in step: {step}")

        try:
            page_info = {"url": page.url, "title": await page.title()}
        except Exception as e:
            logger.warning(f"Page unavailable for failure report: {e}")
            page_info = {"url": None, "title": None}

        report = {
            "timestamp": _timestamp(),
            "step": step,
            "error": {"type": type(error).__name__, "message": str(error)},
            "page": page_info,
            "snapshot": asdict(snapshot) if snapshot else None,
            "additional_info": additional_info,
        }
        report_path = self.run_dir / "failure_report.json"
        report_path.write_text(json.dumps(report, indent=2, default=str), encoding="utf-8")
        logger.error(f"Failure report written: {report_path}")
        return report_path
