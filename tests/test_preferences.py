"""Tests for preferences module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add tests directory to path for conftest imports
sys.path.insert(0, str(Path(__file__).parent))

from habit_tracker.preferences import Preferences, PreferencesStore
from habit_tracker.storage import StorageManager
from conftest import MockFileSystem


@pytest.fixture
def store(storage: StorageManager) -> PreferencesStore:
    return PreferencesStore(storage)


class TestPreferences:
    """Tests for the Preferences value object."""

    def test_defaults(self) -> None:
        prefs = Preferences()
        assert prefs.theme_mode == "light"
        assert prefs.text_size == "medium"
        assert prefs.font_scale == 1.0
        assert prefs.is_dark is False

    @pytest.mark.parametrize(
        ("size", "scale"),
        [("small", 0.9), ("medium", 1.0), ("large", 1.15), ("extraLarge", 1.3)],
    )
    def test_font_scale(self, size: str, scale: float) -> None:
        assert Preferences(text_size=size).font_scale == scale

    def test_invalid_theme(self) -> None:
        with pytest.raises(ValueError, match="theme_mode"):
            Preferences(theme_mode="sepia")

    def test_invalid_text_size(self) -> None:
        with pytest.raises(ValueError, match="text_size"):
            Preferences(text_size="huge")

    def test_from_dict_fills_defaults(self) -> None:
        assert Preferences.from_dict({"theme_mode": "dark"}) == Preferences("dark", "medium")

    def test_round_trip(self) -> None:
        prefs = Preferences("dark", "extraLarge")
        assert Preferences.from_dict(prefs.to_dict()) == prefs


class TestPreferencesStore:
    """Tests for loading and persisting preferences."""

    def test_load_missing_user_defaults(self, store: PreferencesStore) -> None:
        assert store.load("u1") == Preferences()

    def test_update_persists(self, store: PreferencesStore, storage: StorageManager) -> None:
        """Verifies update writes through and later loads see the change.

        Arrangement:
        Empty preference file.

        Action:
        update() text size, then theme.

        Assertion Strategy:
        Validates both changes are kept and stored per user.
        """
        store.update("u1", text_size="large")
        prefs = store.update("u1", theme_mode="dark")

        assert prefs == Preferences("dark", "large")
        assert store.load("u1") == prefs
        assert storage.load_preferences() == {"u1": {"theme_mode": "dark", "text_size": "large"}}

    def test_users_are_separate(self, store: PreferencesStore) -> None:
        store.update("u1", theme_mode="dark")
        assert store.load("u2") == Preferences()

    def test_update_invalid_writes_nothing(self, store: PreferencesStore,
                                           storage: StorageManager) -> None:
        with pytest.raises(ValueError):
            store.update("u1", text_size="tiny")
        assert storage.load_preferences() == {}

    def test_update_write_failure(self, store: PreferencesStore,
                                  mock_fs: MockFileSystem) -> None:
        mock_fs.set_read_only("/test/preferences.json")
        with pytest.raises(OSError, match="Could not save preferences for u1"):
            store.update("u1", theme_mode="dark")

    def test_invalid_stored_record_ignored(self, store: PreferencesStore,
                                           storage: StorageManager) -> None:
        storage.save_preferences({"u1": {"theme_mode": "neon"}, "u2": "dark"})
        assert store.load("u1") == Preferences()
        assert store.load("u2") == Preferences()

    def test_toggle_theme(self, store: PreferencesStore) -> None:
        assert store.toggle_theme("u1").is_dark is True
        assert store.toggle_theme("u1").is_dark is False
