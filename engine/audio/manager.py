"""
Core Audio Manager.

Plays voice-over clips for dialogue lines on a reserved mixer channel
so text and speech can be started, stopped and polled together.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from pathlib import Path

import pygame

from engine.core.events import EventBus

logger = logging.getLogger(__name__)


class AudioEvent(Enum):
    """Audio system events."""
    VOICE_STARTED = auto()
    VOICE_STOPPED = auto()


class AudioManager:
    """
    Central audio manager for the engine.

    Handles:
    - Sound caching
    - Volume categories (master, voice, ui)
    - A dedicated voice channel: play(), stop(), is_playing()

    Usage:
        audio = AudioManager(event_bus)
        audio.init()
        audio.play("assets/voice/phase0_intro_01.ogg")
        if audio.is_playing():
            ...
    """

    VOICE_CHANNEL = 0

    def __init__(self, event_bus: EventBus | None = None):
        self.event_bus = event_bus

        # Configuration
        self._master_volume: float = 1.0
        self._category_volumes: dict[str, float] = {
            "voice": 1.0,
        }

        # Resources
        self._sound_cache: dict[str, pygame.mixer.Sound] = {}
        self._voice_channel: pygame.mixer.Channel | None = None
        self._current_clip: str | None = None

        # State
        self._initialized: bool = False

    def init(self, frequency: int = 44100, size: int = -16, channels: int = 2, buffer: int = 512) -> None:
        """Initialize the audio system."""
        if self._initialized:
            return

        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=frequency, size=size, channels=channels, buffer=buffer)
            pygame.mixer.set_num_channels(16)
            # Keep the voice channel out of find_channel()
            pygame.mixer.set_reserved(1)
            self._voice_channel = pygame.mixer.Channel(self.VOICE_CHANNEL)
            self._initialized = True
            logger.info("Audio system initialized.")
        except pygame.error as e:
            logger.error(f"Failed to initialize audio system: {e}")

    def quit(self) -> None:
        """Shutdown audio system."""
        self.stop()
        pygame.mixer.quit()
        self._voice_channel = None
        self._sound_cache.clear()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    # --- Volume Control ---

    def set_master_volume(self, volume: float) -> None:
        """Set master volume (0.0 to 1.0)."""
        self._master_volume = max(0.0, min(1.0, volume))

    def set_category_volume(self, category: str, volume: float) -> None:
        """Set volume for a specific category."""
        if category in self._category_volumes:
            self._category_volumes[category] = max(0.0, min(1.0, volume))

    def get_settings(self) -> dict:
        """Get all volume settings."""
        return {
            "master": self._master_volume,
            "categories": self._category_volumes.copy()
        }

    def apply_settings(self, settings: dict) -> None:
        """Apply volume settings."""
        self.set_master_volume(settings.get("master", 1.0))
        for cat, vol in settings.get("categories", {}).items():
            self.set_category_volume(cat, vol)

    # --- Voice ---

    def _get_sound(self, file_path: str) -> pygame.mixer.Sound | None:
        """Load or retrieve sound from cache."""
        if not self._initialized:
            return None

        if file_path not in self._sound_cache:
            try:
                if not Path(file_path).exists():
                    logger.warning(f"Audio file not found: {file_path}")
                    return None
                self._sound_cache[file_path] = pygame.mixer.Sound(file_path)
            except pygame.error as e:
                logger.error(f"Failed to load sound {file_path}: {e}")
                return None

        return self._sound_cache[file_path]

    def play(self, clip: str) -> bool:
        """
        Play a voice clip, replacing whatever the voice channel was playing.

        Returns:
            True if playback started
        """
        sound = self._get_sound(clip)
        if sound is None or self._voice_channel is None:
            return False

        volume = self._master_volume * self._category_volumes["voice"]
        self._voice_channel.set_volume(volume)
        self._voice_channel.play(sound)
        self._current_clip = clip

        if self.event_bus:
            self.event_bus.publish(AudioEvent.VOICE_STARTED, clip=clip)

        return True

    def stop(self) -> None:
        """Stop the voice channel immediately."""
        if self._voice_channel is None:
            return

        was_playing = self.is_playing()
        self._voice_channel.stop()

        if was_playing and self.event_bus:
            self.event_bus.publish(AudioEvent.VOICE_STOPPED, clip=self._current_clip)
        self._current_clip = None

    def is_playing(self) -> bool:
        """True while the voice channel is busy."""
        if self._voice_channel is None:
            return False
        return bool(self._voice_channel.get_busy())

    @property
    def current_clip(self) -> str | None:
        return self._current_clip
