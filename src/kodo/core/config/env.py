"""Environment loading helpers.

Kodo reads a few KODO_* variables (config dir, extra exclusions). Besides the
process environment they may come from a project .env file:

  os.environ (pre-existing) > project .env > project .env.local

A .env never overrides variables already present in the process environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values


def _read_env(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    values = dotenv_values(path)
    out: dict[str, str] = {}
    for k, v in values.items():
        if k is None or v is None:
            continue
        out[str(k)] = str(v)
    return out


def load_project_env(
    project_dir: Path | None = None,
    env_paths: Iterable[Path] | None = None,
) -> list[str]:
    """Load environment variables from the project's .env files.

    Args:
        project_dir: base directory for default env paths (defaults to cwd)
        env_paths: explicit env file paths, earlier files win

    Returns:
        Names of the variables that were set
    """
    if project_dir is None:
        project_dir = Path.cwd()

    if env_paths is None:
        env_paths = [project_dir / ".env", project_dir / ".env.local"]

    loaded: list[str] = []
    for p in env_paths:
        for k, v in _read_env(Path(p)).items():
            if k not in os.environ:
                os.environ[k] = v
                loaded.append(k)
    return loaded
