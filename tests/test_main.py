"""
Tests for CLI helpers.
"""

from pathlib import Path

import pytest

from hudreader.main import export_dir
from hudreader.utils.config import Config


@pytest.fixture
def app_dir(tmp_path, monkeypatch):
    """Point the Config singleton at a temporary application directory."""
    base = tmp_path / "app"
    monkeypatch.setattr(Config, "_APP_DIR", base)
    monkeypatch.setattr(Config, "_CONFIG_FILE", base / "config.json")
    monkeypatch.setattr(Config, "_EXPORT_DIR", base / "exports")
    monkeypatch.setattr(Config, "_DB_PATH", base / "hudreader.db")
    monkeypatch.setattr(Config, "_instance", None)
    return base


class TestExportDir:

    def test_default_is_configured_export_dir(self, app_dir):
        path = export_dir("")
        assert path == app_dir / "exports"
        assert path.is_dir()

    def test_explicit_directory(self, app_dir, tmp_path):
        assert export_dir(str(tmp_path / "out")) == tmp_path / "out"
        assert not (app_dir / "exports").exists()

    def test_expands_home(self, app_dir):
        assert export_dir("~/shots") == Path.home() / "shots"
