"""Configuration loading for intentlayer (.intentlayer.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from .models import ANCHOR_FILE_NAMES, ANCHOR_KINDS
from .splits import MIN_COVERAGE_PERCENT_FOR_SPLIT, MIN_FILES_FOR_SPLIT, SplitPolicy
from .tokenizer import DEFAULT_BUDGET_PERCENT, DEFAULT_MAX_LINES, TokenCountOptions

CONFIG_FILENAME = ".intentlayer.yml"

_FILES_CHOICES = ("agents", "claude", "both")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is invalid."""


@dataclass
class SplitConfig:
    """Thresholds for proposing new anchors under an over-budget one."""

    min_files: int = MIN_FILES_FOR_SPLIT
    min_coverage_percent: float = MIN_COVERAGE_PERCENT_FOR_SPLIT


@dataclass
class IntentLayerConfig:
    """Settings defined in .intentlayer.yml, with defaults for anything missing."""

    root: Path
    files: str = "agents"
    symlink: bool = False
    symlink_source: str = "agents"
    split_large_nodes: bool = True
    token_budget_percent: float = DEFAULT_BUDGET_PERCENT
    skip_binary_files: bool = True
    file_max_lines: int = DEFAULT_MAX_LINES
    split: SplitConfig = field(default_factory=SplitConfig)
    anchor_file_names: Dict[str, str] = field(default_factory=lambda: dict(ANCHOR_FILE_NAMES))
    exclude_paths: List[str] = field(default_factory=list)

    def kinds(self) -> Tuple[str, ...]:
        """Anchor kinds to manage, in a stable order."""
        if self.files == "both":
            return tuple(ANCHOR_KINDS)
        return (self.files,)

    def token_options(self) -> TokenCountOptions:
        return TokenCountOptions(
            skip_binary=self.skip_binary_files, max_lines=self.file_max_lines
        )

    def split_policy(self) -> SplitPolicy:
        return SplitPolicy(
            min_files=self.split.min_files,
            min_coverage_percent=self.split.min_coverage_percent,
        )


def load_config(config_path: Path) -> IntentLayerConfig:
    """Load configuration from a repository directory or a config file path."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return IntentLayerConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = IntentLayerConfig(root=root)

    files = _as_str(data.get("files"))
    if files is not None:
        config.files = _as_choice("files", files, _FILES_CHOICES)

    symlink = _as_bool(data.get("symlink"))
    if symlink is not None:
        config.symlink = symlink

    symlink_source = _as_str(data.get("symlink_source"))
    if symlink_source is not None:
        config.symlink_source = _as_choice("symlink_source", symlink_source, ANCHOR_KINDS)

    split_large_nodes = _as_bool(data.get("split_large_nodes"))
    if split_large_nodes is not None:
        config.split_large_nodes = split_large_nodes

    skip_binary = _as_bool(data.get("skip_binary_files"))
    if skip_binary is not None:
        config.skip_binary_files = skip_binary

    if "token_budget_percent" in data:
        config.token_budget_percent = _require_float(
            "token_budget_percent", data["token_budget_percent"], minimum=0.0
        )
    if "file_max_lines" in data:
        config.file_max_lines = _require_int("file_max_lines", data["file_max_lines"], minimum=0)

    split_data = _as_dict(data.get("split"))
    if "min_files" in split_data:
        config.split.min_files = _require_int("split.min_files", split_data["min_files"], minimum=1)
    if "min_coverage_percent" in split_data:
        config.split.min_coverage_percent = _require_float(
            "split.min_coverage_percent", split_data["min_coverage_percent"], minimum=0.0
        )

    names_data = _as_dict(data.get("anchor_file_names"))
    for kind in ANCHOR_KINDS:
        name = _as_str(names_data.get(kind))
        if name is None:
            continue
        if not name or "/" in name:
            raise ConfigError(f"anchor_file_names.{kind} must be a bare file name, got {name!r}")
        config.anchor_file_names[kind] = name

    config.exclude_paths = _as_str_list(data.get("exclude_paths"))
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_choice(name: str, value: str, choices: Sequence[str]) -> str:
    lowered = value.strip().lower()
    if lowered not in choices:
        allowed = ", ".join(choices)
        raise ConfigError(f"{name} must be one of: {allowed} (got {value!r})")
    return lowered


def _require_float(name: str, value: Any, *, minimum: Optional[float] = None) -> float:
    parsed = _as_float(value)
    if parsed is None or isinstance(value, bool):
        raise ConfigError(f"{name} must be a number (got {value!r})")
    if minimum is not None and parsed < minimum:
        raise ConfigError(f"{name} must be >= {minimum:g} (got {parsed:g})")
    return parsed


def _require_int(name: str, value: Any, *, minimum: Optional[int] = None) -> int:
    parsed = _as_int(value)
    if parsed is None or isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer (got {value!r})")
    if minimum is not None and parsed < minimum:
        raise ConfigError(f"{name} must be >= {minimum} (got {parsed})")
    return parsed


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "IntentLayerConfig",
    "SplitConfig",
    "load_config",
]
