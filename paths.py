from __future__ import annotations
import os
import sys
from pathlib import Path


APP_NAME = "StudyScheduler"
DATA_DIR_ENV = "STUDY_SCHEDULER_DATA_DIR"


def _platform_data_root(home: Path) -> Path:
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / APP_NAME
    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        roaming = Path(appdata) if appdata else home / "AppData" / "Roaming"
        return roaming / APP_NAME
    return home / ".local" / "share" / "study-scheduler"


def get_data_dir(create: bool = True) -> Path:
    """
    Directory holding profiles.json and the state__<profile>.json files.
    STUDY_SCHEDULER_DATA_DIR overrides the per-OS default.
    """
    configured = os.environ.get(DATA_DIR_ENV)
    data_dir = Path(configured).expanduser() if configured else _platform_data_root(Path.home())
    if create:
        data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir
