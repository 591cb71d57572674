"""Key/value persistence."""

from engine.storage.preferences import (
    Preferences,
    PreferencesError,
    MemoryPreferences,
    JsonPreferences,
)

__all__ = [
    "Preferences",
    "PreferencesError",
    "MemoryPreferences",
    "JsonPreferences",
]
