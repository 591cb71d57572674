"""
Collaborator interfaces used by the dialogue systems.

The dialogue code never reaches for a global; each collaborator is
passed in by whoever builds the game. These protocols describe what is
expected of them. AudioManager, InputHandler and LocalizationManager
already satisfy the matching protocols.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from engine.core.actions import Action
from framework.dialogue.models import Language


@runtime_checkable
class LanguageProvider(Protocol):
    """Source of the current text language."""

    @property
    def current_language(self) -> Language: ...


class DialoguePresenter(Protocol):
    """Stateless sink for on-screen dialogue text."""

    def set_speaker_text(self, text: str) -> None: ...

    def set_message_text(self, text: str) -> None: ...

    def show(self) -> None: ...

    def hide(self) -> None: ...


class VoicePlayer(Protocol):
    """Plays one voice clip at a time."""

    def play(self, clip: str) -> bool: ...

    def stop(self) -> None: ...

    def is_playing(self) -> bool: ...


class PlayerControl(Protocol):
    """Locks and unlocks player movement/camera."""

    def suspend(self) -> None: ...

    def restore(self) -> None: ...


class InputSource(Protocol):
    """Per-frame input queries."""

    def is_action_just_pressed(self, action: Action) -> bool: ...

    def any_action_just_pressed(self) -> bool: ...


class MissionTracker(Protocol):
    """Reports completed missions/tasks."""

    def is_completed(self, mission_id: str) -> bool: ...


class ItemHolder(Protocol):
    """Reports items held by the player."""

    def has_item(self, item_id: str) -> bool: ...
