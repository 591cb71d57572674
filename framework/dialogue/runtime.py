"""
Dialogue runtime - one instance of every dialogue service, wired together.

Games build a DialogueRuntime at startup and pass it (or its parts) to
whatever needs them, instead of reaching for global singletons.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from engine.core.events import EventBus
from engine.core.tasks import TaskScheduler
from engine.storage.preferences import MemoryPreferences, Preferences
from framework.dialogue.interfaces import (
    DialoguePresenter,
    InputSource,
    ItemHolder,
    MissionTracker,
    PlayerControl,
    VoicePlayer,
)
from framework.dialogue.library import DialogueLibrary
from framework.dialogue.localization import LocalizationManager
from framework.dialogue.playback import DialogueManager
from framework.dialogue.seen import SeenStore
from framework.dialogue.sequence import PhaseSequencer
from framework.dialogue.settings import DialogueSettings
from framework.dialogue.trigger import DialogueTrigger

logger = logging.getLogger(__name__)


@dataclass
class DialogueRuntime:
    """
    The dialogue services of a running game.

    Usage:
        runtime = create_runtime(preferences=JsonPreferences("save/prefs.json"),
                                 library=library, presenter=dialogue_box)
        runtime.play_current_phase()

        # Game loop
        runtime.update(dt)
    """
    event_bus: EventBus
    scheduler: TaskScheduler
    settings: DialogueSettings
    preferences: Preferences
    library: DialogueLibrary
    localization: LocalizationManager
    seen_store: SeenStore
    sequencer: PhaseSequencer
    manager: DialogueManager
    missions: Optional[MissionTracker] = None
    inventory: Optional[ItemHolder] = None

    def update(self, dt: float) -> None:
        """Advance running dialogue sessions by dt seconds."""
        self.scheduler.update(dt)

    def new_game(self) -> None:
        """Stop playback and forget all progress (storage untouched)."""
        self.manager.stop()
        self.seen_store.clear_all_seen()
        self.sequencer.reset_progression()
        logger.info("New game: dialogue progress reset")

    def play(self, dialogue_id: str) -> bool:
        dialogue = self.library.get(dialogue_id)
        if dialogue is None:
            logger.error(f"Unknown dialogue: {dialogue_id}")
            return False
        return self.manager.play(dialogue)

    def play_current_phase(self) -> bool:
        """Play the main dialogue of the current phase."""
        phase = self.sequencer.current_phase
        dialogue = self.sequencer.get_phase_dialogue(phase)
        if dialogue is None:
            logger.warning(f"Phase {phase} has no main dialogue")
            return False
        return self.manager.play(dialogue)

    def create_trigger(self, name: str, dialogue_id: str, **kwargs: Any) -> DialogueTrigger:
        """Build a trigger for a library dialogue, wired to this runtime."""
        dialogue = self.library.get(dialogue_id)
        if dialogue is None:
            logger.warning(f"Trigger {name} references unknown dialogue {dialogue_id}")

        kwargs.setdefault('sequencer', self.sequencer)
        kwargs.setdefault('missions', self.missions)
        kwargs.setdefault('inventory', self.inventory)
        return DialogueTrigger(name, self.manager, self.seen_store, dialogue, **kwargs)

    # Checkpoints

    def save_checkpoint(self, checkpoint_id: str) -> bool:
        """Persist seen dialogues, the checkpoint and phase progression together."""
        previous = self.preferences.get(self.settings.phase_key, None)
        self.preferences.set(
            self.settings.phase_key,
            json.dumps(self.sequencer.get_save_data(), sort_keys=True),
        )
        if self.seen_store.save_checkpoint(checkpoint_id):
            return True

        if previous is None:
            self.preferences.delete(self.settings.phase_key)
        else:
            self.preferences.set(self.settings.phase_key, previous)
        return False

    def load_checkpoint(self) -> bool:
        """
        Restore seen dialogues and phase progression from storage.

        Progression starts over when no readable phase state is stored.

        Returns:
            True if a checkpoint was found
        """
        found = self.seen_store.load_checkpoint()
        if not self._load_phase_state():
            self.sequencer.reset_progression()
        return found

    def delete_save_data(self) -> None:
        """Erase all stored dialogue progress and reset memory. Irreversible."""
        self.preferences.delete(self.settings.phase_key)
        self.seen_store.delete_save_data()
        self.sequencer.reset_progression()

    def _load_phase_state(self) -> bool:
        blob = self.preferences.get(self.settings.phase_key, "")
        if not blob:
            return False
        try:
            data = json.loads(blob)
        except json.JSONDecodeError as e:
            logger.warning(f"Stored phase progression unreadable: {e}")
            return False
        if not isinstance(data, dict):
            logger.warning("Stored phase progression is not an object")
            return False
        self.sequencer.load_save_data(data)
        return True


def create_runtime(
    settings: Optional[DialogueSettings] = None,
    preferences: Optional[Preferences] = None,
    library: Optional[DialogueLibrary] = None,
    *,
    event_bus: Optional[EventBus] = None,
    presenter: Optional[DialoguePresenter] = None,
    audio: Optional[VoicePlayer] = None,
    player_control: Optional[PlayerControl] = None,
    input_source: Optional[InputSource] = None,
    missions: Optional[MissionTracker] = None,
    inventory: Optional[ItemHolder] = None,
) -> DialogueRuntime:
    """Build and wire every dialogue service."""
    settings = settings or DialogueSettings()
    preferences = preferences if preferences is not None else MemoryPreferences()
    library = library if library is not None else DialogueLibrary(settings.default_language)
    event_bus = event_bus or EventBus()
    scheduler = TaskScheduler()

    localization = LocalizationManager(
        event_bus,
        preferences,
        default=settings.default_language,
        preference_key=settings.language_key,
    )
    seen_store = SeenStore(preferences, settings)
    sequencer = PhaseSequencer(
        event_bus,
        library.phase_table(settings.max_phase),
        settings.max_phase,
    )
    manager = DialogueManager(
        event_bus,
        scheduler,
        seen_store,
        sequencer,
        localization=localization,
        presenter=presenter,
        audio=audio,
        player_control=player_control,
        input_source=input_source,
        settings=settings,
    )

    logger.info(f"Dialogue runtime ready ({len(library)} dialogues, phases 0-{settings.max_phase})")

    return DialogueRuntime(
        event_bus=event_bus,
        scheduler=scheduler,
        settings=settings,
        preferences=preferences,
        library=library,
        localization=localization,
        seen_store=seen_store,
        sequencer=sequencer,
        manager=manager,
        missions=missions,
        inventory=inventory,
    )
