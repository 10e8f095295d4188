"""
User display preferences for Habit Tracker.

PURPOSE: Theme mode and text size, loaded once and persisted on change.
AI CONTEXT: Preferences are an explicit object handed to whatever renders;
there is no global theme state.

USAGE:
    store = PreferencesStore(storage)
    prefs = store.load("u1")
    prefs = store.update("u1", theme_mode="dark")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from .config import Config
from .storage import StorageManager

__all__ = ["Preferences", "PreferencesStore"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Preferences:
    """
    Display preferences of one user.

    Attributes:
        theme_mode: 'light' or 'dark'.
        text_size: Key of Config.TEXT_SIZES.
    """

    theme_mode: str = Config.DEFAULT_THEME_MODE
    text_size: str = Config.DEFAULT_TEXT_SIZE

    def __post_init__(self) -> None:
        if self.theme_mode not in Config.THEME_MODES:
            raise ValueError(
                f"theme_mode must be one of: {', '.join(sorted(Config.THEME_MODES))}"
            )
        if self.text_size not in Config.TEXT_SIZES:
            raise ValueError(f"text_size must be one of: {', '.join(Config.TEXT_SIZES)}")

    @property
    def font_scale(self) -> float:
        """Font scale factor for the text size, e.g. 1.15 for 'large'."""
        return Config.TEXT_SIZES[self.text_size]

    @property
    def is_dark(self) -> bool:
        return self.theme_mode == "dark"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage and the preferences API."""
        return {"theme_mode": self.theme_mode, "text_size": self.text_size}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Preferences:
        """
        Deserialize preferences, falling back to defaults for missing keys.

        Raises:
            ValueError: If a present value is not allowed.
        """
        return cls(
            theme_mode=data.get("theme_mode") or Config.DEFAULT_THEME_MODE,
            text_size=data.get("text_size") or Config.DEFAULT_TEXT_SIZE,
        )


class PreferencesStore:
    """
    Load-at-startup, persist-on-change access to user preferences.

    Business context: The tracker page reads preferences once per request
    and the settings form writes them back; a stored record that no longer
    validates is replaced by defaults rather than breaking the page.
    """

    def __init__(self, storage: StorageManager | None = None) -> None:
        self.storage = storage or StorageManager()

    def load(self, user_id: str) -> Preferences:
        """
        Load the preferences of a user.

        Args:
            user_id: User whose preferences are wanted.

        Returns:
            Stored Preferences, or defaults if none are stored or the stored
            record is invalid.
        """
        record = self.storage.load_preferences().get(user_id)
        if not isinstance(record, dict):
            return Preferences()
        try:
            return Preferences.from_dict(record)
        except ValueError as e:
            logger.warning(f"Ignoring invalid preferences for {user_id}: {e}")
            return Preferences()

    def save(self, user_id: str, preferences: Preferences) -> bool:
        """
        Persist the preferences of a user.

        Returns:
            True on success.
        """
        records = self.storage.load_preferences()
        records[user_id] = preferences.to_dict()
        return self.storage.save_preferences(records)

    def update(
        self,
        user_id: str,
        theme_mode: str | None = None,
        text_size: str | None = None,
    ) -> Preferences:
        """
        Change some preferences of a user and persist the result.

        Args:
            user_id: User whose preferences change.
            theme_mode: New theme mode, or None to keep the current one.
            text_size: New text size, or None to keep the current one.

        Returns:
            The updated Preferences.

        Raises:
            ValueError: If a new value is not allowed. Nothing is written.
            OSError: If the preferences could not be written.

        Example:
            >>> store.update("u1", theme_mode="dark").is_dark
            True
        """
        current = self.load(user_id)
        changes = {}
        if theme_mode is not None:
            changes["theme_mode"] = theme_mode
        if text_size is not None:
            changes["text_size"] = text_size
        updated = replace(current, **changes)
        if not self.save(user_id, updated):
            raise OSError(f"Could not save preferences for {user_id}")
        logger.info(f"Saved preferences for {user_id}: {updated.to_dict()}")
        return updated

    def toggle_theme(self, user_id: str) -> Preferences:
        """Switch between light and dark mode and persist the result."""
        current = self.load(user_id)
        return self.update(user_id, theme_mode="light" if current.is_dark else "dark")
