"""
settings.py

Persistent settings management for the ramp & landing layout core.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/occubuilder/settings.toml
    - macOS: ~/Library/Application Support/occubuilder/settings.toml
    - Linux: ~/.config/occubuilder/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

APP_NAME = "occubuilder"

log = logging.getLogger(__name__)

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


def set_settings(manager: Optional["SettingsManager"]) -> None:
    """Replace the global settings manager (``None`` forces a reload)."""
    global _settings_manager
    _settings_manager = manager


# =============================================================================
# Snap Settings
# =============================================================================

@dataclass
class SnapSettings:
    """Snapping behaviour.

    Defaults:
        threshold_mm: 20.0
        min_resize_mm: 100
        default_increment_mm: 100
        snap_to_grid: True
        snap_to_objects: True
    """
    threshold_mm: float = 20.0        # Default: 20.0 mm
    min_resize_mm: int = 100          # Default: 100 mm per local axis
    default_increment_mm: int = 100   # Default: 100 mm (one of 1, 10, 100, 1000)
    snap_to_grid: bool = True         # Default: True
    snap_to_objects: bool = True      # Default: True


# =============================================================================
# Dimension Settings
# =============================================================================

@dataclass
class DimensionSettings:
    """Dimension annotation geometry.

    Defaults:
        default_offset_mm: 200
        tick_length_mm: 80
        bracket_height_mm: 160
        bracket_spacing_mm: 60
    """
    default_offset_mm: int = 200      # Default: 200 mm from the measured edge
    tick_length_mm: int = 80          # Default: 80 mm
    bracket_height_mm: int = 160      # Default: 160 mm
    bracket_spacing_mm: int = 60      # Default: 60 mm


# =============================================================================
# History Settings
# =============================================================================

@dataclass
class HistorySettings:
    """Undo history settings.

    Defaults:
        max_past: 50
    """
    max_past: int = 50  # Default: 50 undo steps


# =============================================================================
# Storage Settings
# =============================================================================

@dataclass
class StorageSettings:
    """Project persistence settings.

    Defaults:
        debounce_ms: 200
        project_file: "" (empty = <user data dir>/project.json)
    """
    debounce_ms: int = 200   # Default: 200 ms
    project_file: str = ""   # Default: "" (platform data dir)


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        snap: Snapping settings.
        dimensions: Dimension annotation settings.
        history: Undo history settings.
        storage: Project persistence settings.
    """
    snap: SnapSettings = field(default_factory=SnapSettings)
    dimensions: DimensionSettings = field(default_factory=DimensionSettings)
    history: HistorySettings = field(default_factory=HistorySettings)
    storage: StorageSettings = field(default_factory=StorageSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
        settings_dir: Override for the config directory (tests use a tmp dir).
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        self.app_name = app_name
        if settings_dir is None:
            settings_dir = Path(platformdirs.user_config_dir(app_name))
        self.settings_dir = Path(settings_dir)
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            # If file is corrupted or unreadable, return defaults
            log.warning("Ignoring unreadable settings file %s: %s", self.settings_file, e)
            return AppSettings()

        return self._parse_toml(data)

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        snap = data.get("snap", {})
        settings.snap.threshold_mm = snap.get("threshold_mm", settings.snap.threshold_mm)
        settings.snap.min_resize_mm = snap.get("min_resize_mm", settings.snap.min_resize_mm)
        settings.snap.default_increment_mm = snap.get("default_increment_mm", settings.snap.default_increment_mm)
        settings.snap.snap_to_grid = snap.get("snap_to_grid", settings.snap.snap_to_grid)
        settings.snap.snap_to_objects = snap.get("snap_to_objects", settings.snap.snap_to_objects)

        dims = data.get("dimensions", {})
        settings.dimensions.default_offset_mm = dims.get("default_offset_mm", settings.dimensions.default_offset_mm)
        settings.dimensions.tick_length_mm = dims.get("tick_length_mm", settings.dimensions.tick_length_mm)
        settings.dimensions.bracket_height_mm = dims.get("bracket_height_mm", settings.dimensions.bracket_height_mm)
        settings.dimensions.bracket_spacing_mm = dims.get("bracket_spacing_mm", settings.dimensions.bracket_spacing_mm)

        history = data.get("history", {})
        settings.history.max_past = history.get("max_past", settings.history.max_past)

        storage = data.get("storage", {})
        settings.storage.debounce_ms = storage.get("debounce_ms", settings.storage.debounce_ms)
        settings.storage.project_file = storage.get("project_file", settings.storage.project_file)

        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        s = self.settings
        return {
            "snap": {
                "threshold_mm": s.snap.threshold_mm,
                "min_resize_mm": s.snap.min_resize_mm,
                "default_increment_mm": s.snap.default_increment_mm,
                "snap_to_grid": s.snap.snap_to_grid,
                "snap_to_objects": s.snap.snap_to_objects,
            },
            "dimensions": {
                "default_offset_mm": s.dimensions.default_offset_mm,
                "tick_length_mm": s.dimensions.tick_length_mm,
                "bracket_height_mm": s.dimensions.bracket_height_mm,
                "bracket_spacing_mm": s.dimensions.bracket_spacing_mm,
            },
            "history": {
                "max_past": s.history.max_past,
            },
            "storage": {
                "debounce_ms": s.storage.debounce_ms,
                "project_file": s.storage.project_file,
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        return tomli_w.dumps(self._to_toml_dict())

    def get_project_path(self) -> Path:
        """Get the resolved project file path.

        Returns:
            Path to the persisted project. Falls back to
            ``<user data dir>/project.json`` if ``project_file`` is empty.
        """
        if self.settings.storage.project_file:
            return Path(self.settings.storage.project_file)
        return Path(platformdirs.user_data_dir(self.app_name)) / "project.json"

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file
