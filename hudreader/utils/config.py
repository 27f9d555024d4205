"""
Application configuration management for HUD Reader.

Handles settings storage, API key management, and extraction tuning.
Settings are persisted to ~/.hudreader/config.json.
"""

import json
import os
from pathlib import Path
from typing import Optional

from hudreader.utils.constants import (
    BLACK_THRESHOLD,
    CURRENT_SHOT_SECONDS,
    DEFAULT_CLUB,
    DEFAULT_DRILL,
    REGION_HEIGHT_FRACTION,
    REGION_SCALE,
    REGION_WIDTH_FRACTION,
    REP_CONFIDENCE_THRESHOLD,
    REP_POLL_SECONDS,
    STORAGE_KEY,
    WHITE_THRESHOLD,
)


class Config:
    """Manages application settings with JSON file persistence."""

    _APP_DIR = Path.home() / ".hudreader"
    _CONFIG_FILE = _APP_DIR / "config.json"
    _EXPORT_DIR = _APP_DIR / "exports"
    _DB_PATH = _APP_DIR / "hudreader.db"

    _defaults = {
        "region_width_fraction": REGION_WIDTH_FRACTION,
        "region_height_fraction": REGION_HEIGHT_FRACTION,
        "region_scale": REGION_SCALE,
        "white_threshold": WHITE_THRESHOLD,
        "black_threshold": BLACK_THRESHOLD,
        "tesseract_cmd": "",          # empty = tesseract on PATH
        "current_shot_seconds": CURRENT_SHOT_SECONDS,
        "default_club": DEFAULT_CLUB,
        "storage_key": STORAGE_KEY,
        "range_rules": None,          # None = built-in HUD range table
        "anthropic_api_key": "",
        "model": "claude-sonnet-4-20250514",
        "default_drill": DEFAULT_DRILL,
        "rep_confidence_threshold": REP_CONFIDENCE_THRESHOLD,
        "rep_poll_seconds": REP_POLL_SECONDS,
    }

    _instance: Optional["Config"] = None
    _settings: dict

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._settings = {}
            cls._instance._load()
        return cls._instance

    def _load(self):
        """Load settings from disk, merging with defaults."""
        self._APP_DIR.mkdir(parents=True, exist_ok=True)

        if self._CONFIG_FILE.exists():
            try:
                with open(self._CONFIG_FILE) as f:
                    saved = json.load(f)
                # Merge: defaults first, then saved values override
                self._settings = {**self._defaults, **saved}
            except (json.JSONDecodeError, IOError):
                self._settings = dict(self._defaults)
        else:
            self._settings = dict(self._defaults)

    def save(self):
        """Persist current settings to disk."""
        self._APP_DIR.mkdir(parents=True, exist_ok=True)
        with open(self._CONFIG_FILE, "w") as f:
            json.dump(self._settings, f, indent=2)

    def get(self, key: str, default=None):
        """Get a setting value."""
        return self._settings.get(key, default)

    def set(self, key: str, value):
        """Set a setting value and save."""
        self._settings[key] = value
        self.save()

    @classmethod
    def get_api_key(cls) -> str:
        """Get Anthropic API key from config or environment."""
        instance = cls()
        # Environment variable takes priority
        env_key = os.environ.get("ANTHROPIC_API_KEY", "")
        if env_key:
            return env_key
        return instance.get("anthropic_api_key", "")

    @classmethod
    def get_export_dir(cls) -> Path:
        """Get the default directory for history exports."""
        instance = cls()
        instance._EXPORT_DIR.mkdir(parents=True, exist_ok=True)
        return instance._EXPORT_DIR

    @classmethod
    def get_db_path(cls) -> Path:
        """Get the SQLite database file path."""
        instance = cls()
        instance._APP_DIR.mkdir(parents=True, exist_ok=True)
        return instance._DB_PATH
