"""
Dialogue Demo: headless playback of a two-phase script

Demonstrates:
- Loading authored dialogues
- Typewriter playback driven by a fixed-timestep loop
- Skipping a line
- Phase progression and trigger prerequisites
- Saving a checkpoint

Run: python -m demos.dialogue_demo
"""

import logging

from engine.core import Event
from engine.storage import MemoryPreferences
from framework.dialogue import (
    DialogueEvent,
    DialogueLibrary,
    Language,
    PhaseEvent,
    create_runtime,
    dialogue_from_dict,
)


FIXED_DT = 1.0 / 60.0

SCRIPT = [
    {
        "id": "phase0_intro",
        "phase": 0,
        "main": True,
        "initial_delay": 0.5,
        "lines": [
            {
                "id": "phase0_intro_1",
                "speaker": {"en": "Inspector", "es": "Inspectora"},
                "text": {"en": "Another night shift.", "es": "Otro turno de noche."},
                "display_time": 1.0,
            },
            {
                "id": "phase0_intro_2",
                "speaker": {"en": "Inspector", "es": "Inspectora"},
                "text": {
                    "en": "Let's see what the station left for me.",
                    "es": "Veamos qué me ha dejado la estación.",
                },
                "display_time": 1.0,
            },
        ],
    },
    {
        "id": "phase1_lobby",
        "phase": 1,
        "main": True,
        "required_dialogues": ["phase0_intro"],
        "lines": [
            {
                "id": "phase1_lobby_1",
                "speaker": {"en": "Guard"},
                "text": {"en": "Badge, please."},
                "letter_time": 0.03,
                "display_time": 0.8,
            },
        ],
    },
]


class ConsolePresenter:
    """Prints the dialogue panel to stdout."""

    def __init__(self):
        self.speaker = ""
        self.message = ""

    def set_speaker_text(self, text: str) -> None:
        self.speaker = text

    def set_message_text(self, text: str) -> None:
        self.message = text

    def show(self) -> None:
        print("[panel shown]")

    def hide(self) -> None:
        print("[panel hidden]")


class ConsolePlayer:
    """Player control that just reports its state."""

    def suspend(self) -> None:
        print("[player control suspended]")

    def restore(self) -> None:
        print("[player control restored]")


def run_until_idle(runtime, presenter, skip_line=None, max_seconds=30.0):
    """Tick the runtime until no dialogue is showing."""
    elapsed = 0.0
    while runtime.manager.is_showing() and elapsed < max_seconds:
        session = runtime.manager.session
        line = session.current_line if session else None
        if skip_line and line and line.line_id == skip_line and session.is_typing:
            runtime.manager.advance()
        runtime.update(FIXED_DT)
        elapsed += FIXED_DT
    return elapsed


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    library = DialogueLibrary()
    for entry in SCRIPT:
        library.add(dialogue_from_dict(entry))

    presenter = ConsolePresenter()
    preferences = MemoryPreferences()
    runtime = create_runtime(
        preferences=preferences,
        library=library,
        presenter=presenter,
        player_control=ConsolePlayer(),
    )

    def on_line(event: Event) -> None:
        print(f"  {presenter.speaker}: {presenter.message}")

    def on_ended(event: Event) -> None:
        print(f"[dialogue {event.get('dialogue_id')} ended, completed={event.get('completed')}]")

    def on_phase(event: Event) -> None:
        print(f"[phase {event.get('phase')} started]")

    runtime.event_bus.subscribe(DialogueEvent.LINE_SHOWN, on_line)
    runtime.event_bus.subscribe(DialogueEvent.DIALOGUE_ENDED, on_ended)
    runtime.event_bus.subscribe(PhaseEvent.PHASE_STARTED, on_phase)

    lobby = runtime.create_trigger("lobby_door", "phase1_lobby", required_phase=1)

    print("Walking into the lobby before the intro...")
    print(f"  trigger fired: {lobby.on_enter({'player'})}")

    print("\nPhase 0 (Spanish, second line skipped):")
    runtime.localization.set_language(Language.SPANISH)
    runtime.play_current_phase()
    seconds = run_until_idle(runtime, presenter, skip_line="phase0_intro_2")
    print(f"  played in {seconds:.2f}s")

    print("\nWalking into the lobby again...")
    runtime.localization.set_language(Language.ENGLISH)
    print(f"  trigger fired: {lobby.on_enter({'player'})}")
    run_until_idle(runtime, presenter)

    runtime.save_checkpoint("lobby")
    print(f"\nCheckpoint saved: {sorted(preferences.durable)}")
    runtime.sequencer.log_status()
    runtime.seen_store.dump()


if __name__ == "__main__":
    main()
