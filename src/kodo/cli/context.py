"""
Shared CLI state: the project and config directories chosen on the command line.
"""

from dataclasses import dataclass
from pathlib import Path

import typer

from kodo.core.config import KodoSettings, get_config_dir, load_settings
from kodo.core.history import HistoryTracker
from kodo.core.scanner import ScannerService


@dataclass
class CliState:
    project_dir: Path
    config_dir: Path
    debug: bool = False

    def settings(self) -> KodoSettings:
        return load_settings(self.project_dir, config_dir=self.config_dir)

    def tracker(self) -> HistoryTracker:
        return HistoryTracker(self.config_dir, self.project_dir)

    def service(self) -> ScannerService:
        return ScannerService(
            project_dir=self.project_dir,
            settings_provider=self.settings,
            tracker=self.tracker(),
        )


def build_state(project: Path | None, config: Path | None, debug: bool) -> CliState:
    project_dir = (project or Path.cwd()).resolve()
    if config is None:
        config_dir = get_config_dir(project_dir)
    else:
        config_dir = config if config.is_absolute() else project_dir / config
    return CliState(project_dir=project_dir, config_dir=config_dir, debug=debug)


def get_state(ctx: typer.Context) -> CliState:
    """State stored by the root callback (or built from defaults when absent)."""
    root = ctx.find_root()
    if isinstance(root.obj, CliState):
        return root.obj
    state = build_state(None, None, False)
    root.obj = state
    return state
