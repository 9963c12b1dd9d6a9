from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from settings import SettingsManager, set_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path):
    """Give every test default settings backed by a throwaway directory."""
    manager = SettingsManager(settings_dir=tmp_path / "config")
    set_settings(manager)
    yield manager
    set_settings(None)


@pytest.fixture(scope="session")
def qapp():
    """Provide a single QCoreApplication for the entire test session."""
    from PyQt6.QtCore import QCoreApplication
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    yield app
