"""Settings from the environment (.env) and engine/step catalogs from YAML."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from driftproof.errors import ConfigError
from driftproof.runner.step_tracker import StepDefinition
from driftproof.runner.task_runner import RetryPolicy

PROJECT_ROOT = Path(__file__).resolve().parents[1]
CONFIG_PATH = PROJECT_ROOT / "config" / "engine_config.yaml"
STEPS_PATH = PROJECT_ROOT / "config" / "steps.yaml"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(env: Mapping[str, str], key: str, default: bool = False) -> bool:
    value = env.get(key)
    if value is None or value == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class Settings:
    interactive_mode: bool = False
    debug_mode: bool = False
    log_level: str = "INFO"
    output_dir: Path = Path("output")
    headless: bool = True


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Read settings from *env*, or from os.environ after loading ``.env``."""
    if env is None:
        load_dotenv(PROJECT_ROOT / ".env")
        env = os.environ
    return Settings(
        interactive_mode=_env_flag(env, "INTERACTIVE_MODE"),
        debug_mode=_env_flag(env, "DEVELOPER_DEBUG_MODE"),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
        output_dir=Path(env.get("OUTPUT_DIR") or Path.cwd() / "output"),
        headless=_env_flag(env, "HEADLESS", default=True),
    )


def _load_yaml(path: str | Path) -> Any:
    with open(path) as f:
        return yaml.safe_load(f)


def load_engine_config(path: str | Path = CONFIG_PATH) -> dict:
    data = _load_yaml(path) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    return data


def load_retry_policy(config: Mapping[str, Any]) -> RetryPolicy:
    """Build the retry policy from the ``retry`` section of the engine config."""
    section = config.get("retry") or {}
    if not isinstance(section, Mapping):
        raise ConfigError("'retry' must be a mapping")
    try:
        return RetryPolicy.from_config(section)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid retry policy: {e}") from e


def parse_step_catalog(entries: Any) -> tuple[StepDefinition, ...]:
    if not isinstance(entries, list):
        raise ConfigError("Step catalog must be a list of steps")

    catalog: list[StepDefinition] = []
    seen: set[int] = set()
    for entry in entries:
        try:
            step = StepDefinition(
                number=int(entry["number"]),
                name=str(entry["name"]),
                description=str(entry.get("description", entry["name"])),
                required=bool(entry.get("required", True)),
                retryable=bool(entry.get("retryable", True)),
                group=entry.get("group"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid step entry {entry!r}: {e}") from e
        if step.number in seen:
            raise ConfigError(f"Duplicate step number in catalog: {step.number}")
        seen.add(step.number)
        catalog.append(step)
    return tuple(catalog)


def load_step_catalog(path: str | Path = STEPS_PATH) -> tuple[StepDefinition, ...]:
    data = _load_yaml(path)
    if isinstance(data, dict):
        data = data.get("steps")
    return parse_step_catalog(data)
