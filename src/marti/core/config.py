"""
Layered configuration for the sample store.

Values come from, lowest to highest precedence: built-in defaults, extra
defaults passed by the caller, a YAML or JSON file, and ``MARTI_`` env vars.
A double underscore in an env var name separates nesting levels, so
``MARTI_MONGO__DATABASE=grassroots`` sets ``mongo.database``.

Usage:
    config = Config(config_file="~/.marti/config.yaml")
    config.get("mongo.collection")
    config.get_bool("schema.end_date")
"""

import json
import os
from pathlib import Path
from typing import Any

import yaml

DEFAULTS: dict[str, Any] = {
    "mongo": {
        "uri": "mongodb://localhost:27017",
        # No default database or collection; StoreSettings refuses to start without them
        "database": "",
        "collection": "",
        "timeout_ms": 5000,
    },
    "marti": {"api_url": ""},
    "schema": {
        "end_date": True,
        "site_details": True,
        "single_taxon_as_scalar": True,
    },
    "logging": {"level": "WARNING", "file": ""},
}

_TRUE_STRINGS = ("1", "true", "yes", "on")


class Config:
    """Read-only view over the merged configuration sources."""

    def __init__(
        self,
        config_file: str | None = None,
        env_prefix: str = "MARTI_",
        defaults: dict[str, Any] | None = None,
    ):
        self.config_file = config_file
        self.env_prefix = env_prefix or ""

        self.data = _merge({}, DEFAULTS)
        if defaults:
            _merge(self.data, defaults)
        if config_file:
            _merge(self.data, _read_file(Path(config_file).expanduser()))
        if self.env_prefix:
            _merge(self.data, _read_env(self.env_prefix))

    def get(self, key_path: str, default: Any = None) -> Any:
        """Look up a dotted path such as ``"mongo.database"``."""
        current: Any = self.data
        for part in key_path.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def get_bool(self, key_path: str, default: bool = False) -> bool:
        """Like ``get``, but also accepts the string forms env vars arrive as."""
        value = self.get(key_path, default)
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)


def _merge(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    for key, value in source.items():
        if isinstance(value, dict):
            if not isinstance(target.get(key), dict):
                target[key] = {}
            _merge(target[key], value)
        else:
            target[key] = value
    return target


def _read_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    with path.open() as f:
        if path.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(f) or {}
        if path.suffix.lower() == ".json":
            return json.load(f)
    return {}


def _read_env(prefix: str) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name, value in os.environ.items():
        if not name.startswith(prefix):
            continue
        *sections, key = name[len(prefix) :].lower().split("__")
        node = overrides
        for section in sections:
            if not isinstance(node.get(section), dict):
                node[section] = {}
            node = node[section]
        node[key] = value
    return overrides
