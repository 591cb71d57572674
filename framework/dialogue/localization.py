"""
Localization - the current text language.

The selected language is remembered in preferences and every change is
announced on the event bus. Dialogue playback reads the language once
when a session starts.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Optional

from engine.core.events import EventBus
from engine.storage.preferences import Preferences
from framework.dialogue.models import Language

logger = logging.getLogger(__name__)


class LocalizationEvent(Enum):
    """Localization events."""
    LANGUAGE_CHANGED = auto()   # data: language


class LocalizationManager:
    """
    Holds the current language.

    Usage:
        localization = LocalizationManager(event_bus, preferences)
        localization.set_language(Language.SPANISH)
    """

    def __init__(
        self,
        event_bus: EventBus,
        preferences: Optional[Preferences] = None,
        default: Language = Language.ENGLISH,
        preference_key: str = "Language",
    ):
        self.event_bus = event_bus
        self.preferences = preferences
        self.preference_key = preference_key
        self._language = default

        if preferences is not None and preferences.has(preference_key):
            stored = preferences.get(preference_key)
            try:
                self._language = Language(stored)
            except ValueError:
                logger.warning(f"Unknown stored language {stored!r}, using {default.value}")

    @property
    def current_language(self) -> Language:
        return self._language

    def set_language(self, language: Language) -> None:
        """Switch language, remember it and notify listeners."""
        if language == self._language:
            return

        self._language = language

        if self.preferences is not None:
            self.preferences.set(self.preference_key, language.value)
            try:
                self.preferences.persist()
            except OSError as e:
                logger.error(f"Could not persist language selection: {e}")

        logger.info(f"Language changed to {language.value}")
        self.event_bus.publish(LocalizationEvent.LANGUAGE_CHANGED, language=language)
