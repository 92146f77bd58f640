"""JSON-backed application configuration for wiregraph."""

from __future__ import annotations

from copy import deepcopy
import json
import logging
import os
from pathlib import Path
from typing import Any


logger = logging.getLogger(__name__)


DEFAULT_CONFIGS: dict[str, dict[str, Any]] = {
    "routing": {
        "geometry": "manhattan",
        "grid_step": 10.0,
        "epsilon": None,
        "neighborhood_padding": None,
        "default_width": None,
        "default_layer": None,
    },
    "engine": {
        "max_resolve_passes": 8,
        "strict": False,
        "undo_depth": 200,
        "spatial_cell_size": 400.0,
    },
    "ui": {
        "window": {
            "minimum_size": [1024, 768],
        },
        "colors": {
            "background": "#1e1e1e",
            "wire": "#4fc1ff",
            "junction": "#ffd700",
            "pin": "#ff5555",
            "preview": "#b4ffff00",
        },
        "wire_width": 2.0,
        "junction_radius": 3.0,
        "shortcuts": {
            "edit.undo": "Ctrl+Z",
            "edit.redo": "Ctrl+Shift+Z",
        },
    },
}


def _deep_merge(default: dict[str, Any], current: dict[str, Any]) -> dict[str, Any]:
    """Merge current config into defaults recursively."""
    merged = deepcopy(default)
    for key, value in current.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _path_get(data: dict[str, Any], dotted_path: str, default: Any = None) -> Any:
    """Read a nested key from dotted path notation."""
    node: Any = data
    for part in dotted_path.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def _path_set(data: dict[str, Any], dotted_path: str, value: Any) -> None:
    """Set a nested key using dotted path notation."""
    node = data
    parts = dotted_path.split(".")
    for part in parts[:-1]:
        if part not in node or not isinstance(node[part], dict):
            node[part] = {}
        node = node[part]
    node[parts[-1]] = value


class JsonConfigManager:
    """
    Manages wiregraph configuration files stored as JSON.

    One file per section lives in ``$WIREGRAPH_CONFIG_DIR`` (or the given
    directory, or ``~/.wiregraph/config``). Missing keys fall back to
    ``DEFAULT_CONFIGS``; missing files are created with the defaults.
    """

    def __init__(self, config_dir: str | Path | None = None):
        base_dir = os.environ.get("WIREGRAPH_CONFIG_DIR")
        root = Path(base_dir or config_dir or Path.home() / ".wiregraph" / "config")
        self._config_dir = root.expanduser().resolve()
        self._config_dir.mkdir(parents=True, exist_ok=True)

        self._paths: dict[str, Path] = {
            section: self._config_dir / f"{section}.json"
            for section in DEFAULT_CONFIGS
        }
        self._data: dict[str, dict[str, Any]] = {}

        self._load_all()

    @property
    def config_dir(self) -> Path:
        """Return configuration directory path."""
        return self._config_dir

    def file_path(self, section: str) -> Path:
        """Return configuration file path for a section."""
        return self._paths[section]

    def sections(self) -> tuple[str, ...]:
        """Return known configuration section names."""
        return tuple(self._data.keys())

    def section(self, section: str) -> dict[str, Any]:
        """Return a deep copy of a full section."""
        data = self._data.get(section)
        if data is None:
            return {}
        return deepcopy(data)

    def get(self, section: str, dotted_path: str, default: Any = None) -> Any:
        """Get a value from a section by dotted path."""
        data = self._data.get(section)
        if data is None:
            return default
        return _path_get(data, dotted_path, default)

    def set(self, section: str, dotted_path: str, value: Any) -> None:
        """Set a value in a section by dotted path."""
        if section not in self._data:
            self._data[section] = {}
        _path_set(self._data[section], dotted_path, value)

    def save_section(self, section: str) -> None:
        """Write one configuration section to disk."""
        if section not in self._data:
            return

        path = self._paths.get(section, self._config_dir / f"{section}.json")
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(self._data[section], handle, indent=2, sort_keys=True)
            handle.write("\n")

    def save_all(self) -> None:
        """Write all configuration sections to disk."""
        for section in self._data:
            self.save_section(section)

    def _load_all(self) -> None:
        """Load every config file, creating defaults when needed."""
        for section, default in DEFAULT_CONFIGS.items():
            path = self._paths[section]
            loaded: dict[str, Any] = {}

            if path.exists():
                try:
                    with path.open("r", encoding="utf-8") as handle:
                        parsed = json.load(handle)
                        if isinstance(parsed, dict):
                            loaded = parsed
                        else:
                            logger.warning("Config '%s' is not a JSON object; resetting to defaults", path)
                except (OSError, json.JSONDecodeError) as exc:
                    logger.warning("Failed to load config '%s': %s", path, exc)
            else:
                logger.info("Creating default config file '%s'", path)

            self._data[section] = _deep_merge(default, loaded)
            self.save_section(section)
