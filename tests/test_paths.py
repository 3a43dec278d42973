"""
Unit tests for data directory resolution.
"""

from pathlib import Path
from unittest.mock import patch

from rtk_gain.storage import paths


class TestDataLocalDir:
    """Test per-platform data directory lookup."""

    def test_linux_xdg_data_home(self):
        with patch.object(paths.sys, "platform", "linux"), \
                patch.dict(paths.os.environ, {"XDG_DATA_HOME": "/xdg/data"}):
            assert paths.data_local_dir() == Path("/xdg/data")

    def test_linux_relative_xdg_ignored(self):
        with patch.object(paths.sys, "platform", "linux"), \
                patch.dict(paths.os.environ, {"XDG_DATA_HOME": "relative/dir"}), \
                patch.object(paths.Path, "home", return_value=Path("/home/u")):
            assert paths.data_local_dir() == Path("/home/u/.local/share")

    def test_macos(self):
        with patch.object(paths.sys, "platform", "darwin"), \
                patch.object(paths.Path, "home", return_value=Path("/Users/u")):
            assert paths.data_local_dir() == Path("/Users/u/Library/Application Support")

    def test_windows_local_appdata(self):
        with patch.object(paths.sys, "platform", "win32"), \
                patch.dict(paths.os.environ, {"LOCALAPPDATA": "C:/Users/u/AppData/Local"}):
            assert paths.data_local_dir() == Path("C:/Users/u/AppData/Local")

    def test_no_home_falls_back_to_cwd(self):
        with patch.object(paths.sys, "platform", "linux"), \
                patch.dict(paths.os.environ, {}, clear=True), \
                patch.object(paths.Path, "home", side_effect=RuntimeError("no home")):
            assert paths.data_local_dir() == Path(".")

    def test_default_db_path_layout(self):
        with patch.object(paths, "data_local_dir", return_value=Path("/data")):
            assert paths.default_db_path() == Path("/data/rtk/history.db")
            assert paths.default_config_path() == Path("/data/rtk/config.yaml")
