"""Service layer helpers (preferences persistence)."""

from .preferences import Preferences, PreferencesStore, ViewerPreferences

__all__ = [
    "Preferences",
    "PreferencesStore",
    "ViewerPreferences",
]
