from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "ZEILUMARA_HOME"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains zeilumara/, api/, cli/, config/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for Zeilumara.
    Override with ZEILUMARA_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".zeilumara").resolve()


def config_dir() -> Path:
    d = app_home() / "config"
    d.mkdir(parents=True, exist_ok=True)
    return d


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def units_config_path() -> Path:
    """
    Unit table override file.

    Resolution order:
    1. <app home>/config/units.yaml (user override)
    2. <project root>/config/units.yaml (shipped defaults)
    """
    user = app_home() / "config" / "units.yaml"
    if user.exists():
        return user
    return project_root() / "config" / "units.yaml"
