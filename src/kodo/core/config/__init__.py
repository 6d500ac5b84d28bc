"""
Settings models and loading.

This module provides Pydantic models for kodo settings with layered
merging: defaults < project settings.json < env vars.
"""

from .env import load_project_env
from .loader import (
    get_config_dir,
    get_default_settings,
    get_settings_path,
    load_settings,
)
from .models import CodeScanSettings, KanbanColumn, KodoSettings, PriorityPatterns

__all__ = [
    # Models
    "CodeScanSettings",
    "KanbanColumn",
    "KodoSettings",
    "PriorityPatterns",
    # Loader functions
    "get_config_dir",
    "get_default_settings",
    "get_settings_path",
    "load_project_env",
    "load_settings",
]
