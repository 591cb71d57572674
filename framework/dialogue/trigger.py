"""
Dialogue triggers - prerequisite-gated activation of a dialogue.

A trigger sits between whatever detects the player (a trigger volume,
an interaction prompt, a script) and the DialogueManager. On each
activation it runs a fixed sequence of checks and, if all pass, starts
its dialogue once.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Iterable, Optional, Protocol

from framework.dialogue.models import Dialogue

if TYPE_CHECKING:
    from framework.dialogue.interfaces import ItemHolder, MissionTracker
    from framework.dialogue.playback import DialogueManager
    from framework.dialogue.seen import SeenStore
    from framework.dialogue.sequence import PhaseSequencer

logger = logging.getLogger(__name__)


class TriggerMode(Enum):
    """Which activation event fires the trigger."""
    ON_ENTER = auto()
    ON_STAY = auto()
    ON_EXIT = auto()
    MANUAL = auto()   # only activate_manual()


class ActivationSource(Protocol):
    """The physical thing that reports activations (e.g. a trigger volume)."""
    enabled: bool


class DialogueTrigger:
    """
    Starts a dialogue when its prerequisites are met.

    Automatic activations check, in order:
    1. already fired (when disable_after_use)
    2. actor tag
    3. dialogue assigned
    4. required phase reachable
    5. required dialogues seen
    6. required missions completed
    7. required items held
    8. no dialogue currently showing

    Requirements listed on the dialogue itself are checked together with
    the ones configured on the trigger.

    Usage:
        trigger = DialogueTrigger(
            "lobby_door", manager, seen_store,
            dialogue=library.get("phase1_lobby"),
            sequencer=sequencer,
            required_phase=1,
        )
        trigger.on_enter({"player"})
    """

    def __init__(
        self,
        name: str,
        manager: DialogueManager,
        seen_store: SeenStore,
        dialogue: Optional[Dialogue] = None,
        *,
        sequencer: Optional[PhaseSequencer] = None,
        missions: Optional[MissionTracker] = None,
        inventory: Optional[ItemHolder] = None,
        mode: TriggerMode = TriggerMode.ON_ENTER,
        required_tag: Optional[str] = "player",
        required_phase: int = -1,
        required_dialogue_ids: Iterable[str] = (),
        required_missions: Iterable[str] = (),
        required_items: Iterable[str] = (),
        disable_after_use: bool = True,
        source: Optional[ActivationSource] = None,
    ):
        self.name = name
        self.manager = manager
        self.seen_store = seen_store
        self.dialogue = dialogue
        self.sequencer = sequencer
        self.missions = missions
        self.inventory = inventory
        self.mode = mode
        self.required_tag = required_tag
        self.required_phase = required_phase
        self.required_dialogue_ids = tuple(required_dialogue_ids)
        self.required_missions = tuple(required_missions)
        self.required_items = tuple(required_items)
        self.disable_after_use = disable_after_use
        self.source = source

        self._has_fired = False
        self._source_enabled = True

    # Activation events

    def on_enter(self, actor_tags: Iterable[str]) -> bool:
        return self._on_event(TriggerMode.ON_ENTER, actor_tags)

    def on_stay(self, actor_tags: Iterable[str]) -> bool:
        return self._on_event(TriggerMode.ON_STAY, actor_tags)

    def on_exit(self, actor_tags: Iterable[str]) -> bool:
        return self._on_event(TriggerMode.ON_EXIT, actor_tags)

    def _on_event(self, mode: TriggerMode, actor_tags: Iterable[str]) -> bool:
        if mode != self.mode or not self._source_enabled:
            return False
        return self.try_activate(actor_tags)

    def try_activate(self, actor_tags: Iterable[str]) -> bool:
        """
        Run the full check sequence and play the dialogue if it passes.

        Returns:
            True if the dialogue was started
        """
        if self._has_fired and self.disable_after_use:
            logger.debug(f"Trigger {self.name} already used")
            return False

        tags = set(actor_tags)
        if self.required_tag and self.required_tag not in tags:
            logger.debug(f"Trigger {self.name} ignored: actor lacks tag {self.required_tag!r}")
            return False

        if self.dialogue is None:
            logger.warning(f"Trigger {self.name} has no dialogue assigned")
            return False

        if not self.check_prerequisites():
            logger.debug(f"Trigger {self.name} prerequisites not met")
            return False

        if self.manager.is_showing():
            logger.debug(f"Trigger {self.name} waiting: a dialogue is already showing")
            return False

        return self._activate()

    def activate_manual(self) -> bool:
        """
        Activate from script, ignoring the mode and actor tag.

        Prerequisites are always re-validated.
        """
        if self.dialogue is None:
            logger.warning(f"Trigger {self.name} has no dialogue assigned")
            return False

        if not self.check_prerequisites():
            logger.warning(f"Trigger {self.name} prerequisites not met")
            return False

        return self._activate()

    def _activate(self) -> bool:
        logger.info(f"Trigger {self.name} activated: {self.dialogue.dialogue_id}")
        started = self.manager.play(self.dialogue)

        self._has_fired = True
        if self.disable_after_use:
            self._set_source_enabled(False)
            logger.debug(f"Trigger {self.name} disabled after use")

        return started

    # Prerequisites

    def check_prerequisites(self) -> bool:
        """Phase, seen dialogues, missions and items, short-circuiting."""
        if self.required_phase >= 0 and self.sequencer is not None:
            if not self.sequencer.can_access_phase(self.required_phase):
                logger.debug(
                    f"Trigger {self.name}: phase {self.required_phase} not reachable "
                    f"(current {self.sequencer.current_phase})"
                )
                return False

        for dialogue_id in self._required_dialogue_ids():
            if not self.seen_store.has_seen(dialogue_id):
                logger.debug(f"Trigger {self.name}: dialogue {dialogue_id} not seen")
                return False

        for mission_id in self._required_missions():
            if self.missions is None or not self.missions.is_completed(mission_id):
                logger.debug(f"Trigger {self.name}: mission {mission_id} not completed")
                return False

        for item_id in self._required_items():
            if self.inventory is None or not self.inventory.has_item(item_id):
                logger.debug(f"Trigger {self.name}: item {item_id} missing")
                return False

        return True

    def prerequisite_status(self) -> dict[str, Any]:
        """Report every prerequisite individually (for debugging)."""
        phase_ok: Optional[bool] = None
        if self.required_phase >= 0 and self.sequencer is not None:
            phase_ok = self.sequencer.can_access_phase(self.required_phase)

        return {
            'phase': phase_ok,
            'dialogues': {
                dialogue_id: self.seen_store.has_seen(dialogue_id)
                for dialogue_id in self._required_dialogue_ids()
            },
            'missions': {
                mission_id: self.missions is not None and self.missions.is_completed(mission_id)
                for mission_id in self._required_missions()
            },
            'items': {
                item_id: self.inventory is not None and self.inventory.has_item(item_id)
                for item_id in self._required_items()
            },
        }

    def _required_dialogue_ids(self) -> list[str]:
        return self._merge(self.required_dialogue_ids, 'required_dialogue_ids')

    def _required_missions(self) -> list[str]:
        return self._merge(self.required_missions, 'required_missions')

    def _required_items(self) -> list[str]:
        return self._merge(self.required_items, 'required_items')

    def _merge(self, own: tuple[str, ...], field: str) -> list[str]:
        merged = list(own)
        if self.dialogue is not None:
            merged.extend(i for i in getattr(self.dialogue, field) if i not in merged)
        return merged

    # State

    @property
    def has_fired(self) -> bool:
        return self._has_fired

    @property
    def source_enabled(self) -> bool:
        return self._source_enabled

    def reset(self) -> None:
        """Allow the trigger to fire again."""
        self._has_fired = False
        self._set_source_enabled(True)
        logger.debug(f"Trigger {self.name} reset")

    def _set_source_enabled(self, enabled: bool) -> None:
        self._source_enabled = enabled
        if self.source is not None:
            self.source.enabled = enabled
