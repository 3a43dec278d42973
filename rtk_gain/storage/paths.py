"""
Filesystem locations for history data.
"""

import os
import sys
from pathlib import Path

APP_DIR_NAME = "rtk"
DB_FILE_NAME = "history.db"
CONFIG_FILE_NAME = "config.yaml"


def data_local_dir() -> Path:
    """Per-user local data directory for the current platform.

    Windows: %LOCALAPPDATA%
    macOS:   ~/Library/Application Support
    Other:   $XDG_DATA_HOME, else ~/.local/share

    Falls back to the current directory when no home can be determined.
    """
    if sys.platform == "win32":
        local_appdata = os.environ.get("LOCALAPPDATA")
        if local_appdata:
            return Path(local_appdata)
        return Path(".")

    try:
        home = Path.home()
    except RuntimeError:
        return Path(".")

    if sys.platform == "darwin":
        return home / "Library" / "Application Support"

    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    if xdg_data_home and os.path.isabs(xdg_data_home):
        return Path(xdg_data_home)
    return home / ".local" / "share"


def app_data_dir() -> Path:
    return data_local_dir() / APP_DIR_NAME


def default_db_path() -> Path:
    """Default location of the history database: <data dir>/rtk/history.db."""
    return app_data_dir() / DB_FILE_NAME


def default_config_path() -> Path:
    return app_data_dir() / CONFIG_FILE_NAME
