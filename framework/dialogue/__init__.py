"""
Dialogue module - timed narrative dialogue with story progression.

Provides:
- Authored dialogue data and JSON loading
- Typewriter playback with voice audio and skip
- Seen-dialogue and checkpoint persistence
- Linear story phases
- Prerequisite-gated triggers
"""

from framework.dialogue.models import Dialogue, DialogueLine, Language, Translations
from framework.dialogue.settings import DialogueSettings
from framework.dialogue.library import DialogueLibrary, dialogue_from_dict
from framework.dialogue.localization import LocalizationManager, LocalizationEvent
from framework.dialogue.seen import SeenStore
from framework.dialogue.sequence import PhaseSequencer, PhaseEvent
from framework.dialogue.playback import DialogueManager, DialogueEvent, LineState, PlaybackSession
from framework.dialogue.trigger import DialogueTrigger, TriggerMode
from framework.dialogue.runtime import DialogueRuntime, create_runtime

__all__ = [
    # Data
    "Dialogue",
    "DialogueLine",
    "Language",
    "Translations",
    "DialogueSettings",
    "DialogueLibrary",
    "dialogue_from_dict",
    # Services
    "LocalizationManager",
    "LocalizationEvent",
    "SeenStore",
    "PhaseSequencer",
    "PhaseEvent",
    "DialogueManager",
    "DialogueEvent",
    "LineState",
    "PlaybackSession",
    "DialogueTrigger",
    "TriggerMode",
    # Wiring
    "DialogueRuntime",
    "create_runtime",
]
