"""Configuration loading and runtime path bootstrapping."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

CONFIG_ENV_VAR = "FRIENDGRAPH_CONFIG"


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML from file, returning empty mapping when missing."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dictionaries."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def ensure_runtime_dirs(root: Path, config: dict[str, Any]) -> dict[str, Path]:
    """Ensure database and audit log directories exist and return resolved paths."""
    paths_cfg = config.get("paths", {})
    db_path = (root / paths_cfg.get("db_path", "var/friendgraph.db")).resolve()
    audit_log_path = (root / paths_cfg.get("audit_log_path", "var/logs/audit.jsonl")).resolve()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    audit_log_path.parent.mkdir(parents=True, exist_ok=True)

    return {
        "db_path": db_path,
        "audit_log_path": audit_log_path,
    }


def allowed_groups(config: dict[str, Any]) -> list[str] | None:
    """Configured group vocabulary, or None when labels are free form."""
    groups = config.get("friendships", {}).get("groups")
    if groups is None:
        return None
    if not isinstance(groups, list):
        raise ValueError("friendships.groups must be a list of labels or null.")
    return [str(label) for label in groups]


def configure_logging(config: dict[str, Any]) -> None:
    """Apply the configured level to the ``fg`` logger tree."""
    level = str(config.get("logging", {}).get("level", "WARNING")).upper()
    logging.getLogger("fg").setLevel(level)


def load_effective_config(root: Path, override_path: Path | None = None) -> dict[str, Any]:
    """Load default config and merge the optional override file on top."""
    default_cfg = load_yaml(root / "config" / "default.yaml")
    if override_path is None and os.getenv(CONFIG_ENV_VAR):
        override_path = Path(os.environ[CONFIG_ENV_VAR])
    if override_path is None:
        return default_cfg
    return merge_dicts(default_cfg, load_yaml(override_path))
