from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "EVENTPLAN_HOME"
APP_ENV_DB = "EVENTPLAN_DB"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains eventplan/, api/, cli/, config/, tests/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for the planner.
    Override with EVENTPLAN_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".eventplan").resolve()


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical DB path.

    Resolution order:
    1. EVENTPLAN_DB env var (explicit override)
    2. ~/.eventplan/data/eventplan.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "eventplan.db"


def engine_config_path() -> Path:
    """Bundled recalibration config (canonical block catalog)."""
    return project_root() / "config" / "recalibration.yaml"
