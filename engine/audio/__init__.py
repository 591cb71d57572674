"""Audio module."""

from engine.audio.manager import AudioManager, AudioEvent

__all__ = [
    "AudioManager",
    "AudioEvent",
]
