from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Dashboard configuration loader.

Responsibilities:
- Load YAML (config/dashboard.yml by default for the CLI)
- Validate against the packaged JSON schema (config_schema.json)
- Apply defaults; every key is optional
"""

__all__ = [
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
    "ConfigError",
    "PageSizes",
    "MissingMilestoneConfig",
    "DashboardConfig",
    "default_config",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/dashboard.yml")

_DEFAULT_FLOOR_DATE = date(2025, 7, 1)
_DEFAULT_PREFERRED = ("ORD", "LAX", "JFK", "DFW", "MIA", "SFO")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class PageSizes:
    driver: int = 10
    warehouse: int = 30
    average: int = 30
    missing: int = 30

    def for_view(self, view: str) -> int:
        return getattr(self, view)


@dataclass(frozen=True)
class MissingMilestoneConfig:
    require_consigned: bool = False
    locations: tuple[str, ...] = ()  # 空 = 全ロケーション


@dataclass(frozen=True)
class DashboardConfig:
    floor_date: date = _DEFAULT_FLOOR_DATE
    secondary_marker: str = "temu"
    status_column: int = 6
    preferred_locations: tuple[str, ...] = _DEFAULT_PREFERRED
    page_sizes: PageSizes = field(default_factory=PageSizes)
    missing_milestones: MissingMilestoneConfig = field(default_factory=MissingMilestoneConfig)
    thresholds: tuple[float, ...] = (48, 72)


def default_config() -> DashboardConfig:
    return DashboardConfig()


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: schema file missing / not valid JSON, or data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _parse_floor_date(raw: Any) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as e:
        raise ConfigError(f"config validation failed: invalid floor_date '{raw}'") from e


def load_config(path: Path) -> DashboardConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: top level must be a mapping, got {type(data).__name__}")

    # YAML は引用符なしの日付を date に変換するので文字列へ戻してから検証
    if isinstance(data.get("floor_date"), date):
        data["floor_date"] = data["floor_date"].isoformat()

    _validate_config_schema(data)

    defaults = default_config()
    floor = _parse_floor_date(data["floor_date"]) if "floor_date" in data else defaults.floor_date
    missing_raw = data.get("missing_milestones", {})
    return DashboardConfig(
        floor_date=floor,
        secondary_marker=data.get("secondary_marker", defaults.secondary_marker).lower(),
        status_column=data.get("status_column", defaults.status_column),
        preferred_locations=tuple(
            code.upper() for code in data.get("preferred_locations", defaults.preferred_locations)
        ),
        page_sizes=PageSizes(**data.get("page_sizes", {})),
        missing_milestones=MissingMilestoneConfig(
            require_consigned=missing_raw.get("require_consigned", False),
            locations=tuple(code.upper() for code in missing_raw.get("locations", [])),
        ),
        thresholds=tuple(data.get("thresholds", defaults.thresholds)),
    )
