"""
Settings loading with layered merging.

Implements the settings precedence chain:
    defaults < project settings.json < env vars

Settings are deliberately not cached: the board may be reconfigured between
scans and the next scan must see the change.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import KodoSettings

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.json"
DEFAULT_CONFIG_DIR = ".kodo"


def get_config_dir(project_dir: Path | None = None) -> Path:
    """
    Get the kodo config directory for a project.

    Args:
        project_dir: Project root (defaults to current directory)

    Returns:
        $KODO_CONFIG_DIR if set, otherwise <project>/.kodo
    """
    if env_dir := os.environ.get("KODO_CONFIG_DIR"):
        path = Path(env_dir)
        if not path.is_absolute() and project_dir is not None:
            path = project_dir / path
        return path
    if project_dir is None:
        project_dir = Path.cwd()
    return project_dir / DEFAULT_CONFIG_DIR


def get_settings_path(config_dir: Path) -> Path:
    return config_dir / SETTINGS_FILE


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence. Nested dicts are merged; lists and
    scalars are replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 1}}, {"b": {"y": 2}})
        {'a': 1, 'b': {'x': 1, 'y': 2}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if missing or unparseable
    """
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            logger.warning("Settings at %s is not a JSON object, ignoring", path)
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse settings at %s: %s", path, e)
        return None


def _split_env_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def apply_env_overrides(settings_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to settings.

    Supported env vars (comma-separated, appended to the configured lists):
        KODO_EXCLUDE_DIRECTORIES - extra code_scan_settings.exclude_directories
        KODO_EXCLUDE_FILES - extra code_scan_settings.exclude_files

    Args:
        settings_dict: Settings dictionary to override

    Returns:
        Settings dictionary with env var overrides applied
    """
    result = settings_dict.copy()
    scan = dict(result.get("code_scan_settings") or {})

    if dirs := os.environ.get("KODO_EXCLUDE_DIRECTORIES"):
        scan["exclude_directories"] = list(scan.get("exclude_directories", [])) + _split_env_list(
            dirs
        )

    if files := os.environ.get("KODO_EXCLUDE_FILES"):
        scan["exclude_files"] = list(scan.get("exclude_files", [])) + _split_env_list(files)

    result["code_scan_settings"] = scan
    return result


def get_default_settings() -> dict[str, Any]:
    """
    Get hardcoded default settings.

    Returns:
        Dictionary with default kanban columns, priorities and exclusions
    """
    return {
        "kanban_columns": [
            {"id": "todo", "name": "TODO", "color": "dark", "auto_assign_pattern": "TODO|FIXME"},
            {"id": "in_progress", "name": "IN PROGRESS", "color": "blue"},
            {"id": "done", "name": "DONE", "color": "green"},
        ],
        "priority_patterns": {"low": "LOW", "medium": "MEDIUM", "high": "HIGH"},
        "code_scan_settings": {
            "exclude_directories": [
                "node_modules",
                ".git",
                ".kodo",
                ".idea",
                ".vscode",
                ".cache",
                ".next",
                "dist",
                "build",
                "out",
                "public",
                "vendor",
                "target",
                "tmp",
                "logs",
                "coverage",
            ],
            "exclude_files": [
                "*.min.js",
                "*.min.css",
                "*.bundle.js",
                "*.png",
                "*.jpg",
                "*.jpeg",
                "*.gif",
                "*.webp",
                "*.svg",
                "*.ico",
                "*.map",
                "*.lock",
                "package-lock.json",
                "yarn.lock",
                "pnpm-lock.yaml",
                ".gitignore",
                ".dockerignore",
                "README.md",
                "LICENSE",
                "*.env",
                "*.local",
                "*.log",
                "*.db",
            ],
        },
    }


def load_settings(project_dir: Path | None = None, config_dir: Path | None = None) -> KodoSettings:
    """
    Load settings with layered merging.

    Precedence (highest to lowest):
        1. Environment variables (KODO_*)
        2. <config-dir>/settings.json
        3. Hardcoded defaults

    A settings file that cannot be parsed or fails validation is logged and
    the defaults are used instead.

    Args:
        project_dir: Project root (defaults to cwd)
        config_dir: Explicit config directory (defaults to get_config_dir())

    Returns:
        Validated KodoSettings instance
    """
    if config_dir is None:
        config_dir = get_config_dir(project_dir)

    defaults = get_default_settings()
    merged = defaults

    settings_path = get_settings_path(config_dir)
    if project_settings := load_json_file(settings_path):
        merged = deep_merge(merged, project_settings)
    else:
        logger.debug("No usable settings at %s, using defaults", settings_path)

    merged = apply_env_overrides(merged)

    try:
        return KodoSettings(**merged)
    except ValidationError as e:
        logger.error("Invalid settings at %s, using defaults: %s", settings_path, e)
        return KodoSettings(**apply_env_overrides(defaults))
