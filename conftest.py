"""Project-level pytest configuration and shared fixtures."""

import logging

import pytest

from beads_comments.config.settings import Settings, get_settings

SETTINGS_ENV_VARS = [name.upper() for name in Settings.model_fields]


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Run every test against default settings, free of the caller's environment and .env file."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handlers and levels installed by setup_logging during a test."""
    root = logging.getLogger()
    package = logging.getLogger("beads_comments")
    root_handlers = root.handlers[:]
    root_level = root.level
    package_handlers = package.handlers[:]
    package_level = package.level
    package_propagate = package.propagate
    yield
    for handler in root.handlers[:]:
        # pytest's capture handlers are subclasses and manage themselves
        if type(handler) is logging.StreamHandler and handler not in root_handlers:
            root.removeHandler(handler)
    root.setLevel(root_level)
    package.handlers[:] = package_handlers
    package.setLevel(package_level)
    package.propagate = package_propagate
