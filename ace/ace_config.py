"""
Configuration for ACE: packaged YAML defaults, optionally overridden by a
user file, with message texts kept as Mustache templates.
"""
from __future__ import annotations

import copy
import functools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pystache
import yaml

DEFAULTS_PATH = Path(__file__).parent / "ace_defaults.yaml"

_renderer = pystache.Renderer(escape=lambda u: u)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


@dataclass
class AceConfig:
    entries_per_page: int = 5
    continuation: str = "#"
    log_level: str = "INFO"
    commands: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    messages: Dict[str, str] = field(default_factory=dict)

    def message(self, key: str, **context) -> str:
        """Render the message template `key` with `context`."""
        return _renderer.render(self.messages[key], context)

    def aliases(self, command: str) -> List[str]:
        return list(self.commands.get(command, {}).get("aliases") or [command])

    def permission(self, command: str) -> Optional[str]:
        return self.commands.get(command, {}).get("permission")


def _read_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"ACE config {path} must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Optional[Union[str, Path]] = None) -> AceConfig:
    """Load the packaged defaults, merging the YAML file at `path` over them."""
    data = _read_yaml(DEFAULTS_PATH)
    if path is not None:
        data = _merge(data, _read_yaml(path))

    entries_per_page = data.get("entries_per_page", 5)
    if not isinstance(entries_per_page, int) or isinstance(entries_per_page, bool) or entries_per_page < 1:
        raise ValueError(f"entries_per_page must be a positive integer, got {entries_per_page!r}")
    continuation = data.get("continuation", "#")
    if not isinstance(continuation, str) or not continuation:
        raise ValueError("continuation must be a non-empty string")

    return AceConfig(
        entries_per_page=entries_per_page,
        continuation=continuation,
        log_level=str(data.get("log_level", "INFO")).upper(),
        commands=data.get("commands") or {},
        messages=data.get("messages") or {},
    )


@functools.lru_cache(maxsize=1)
def default_config() -> AceConfig:
    return load_config()
