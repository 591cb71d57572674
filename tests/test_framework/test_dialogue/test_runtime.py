import pytest
from unittest.mock import patch
from engine.storage.preferences import MemoryPreferences, PreferencesError
from framework.dialogue.library import DialogueLibrary, dialogue_from_dict
from framework.dialogue.models import Language
from framework.dialogue.runtime import create_runtime
from framework.dialogue.settings import DialogueSettings

SCRIPT = [
    {"id": "intro", "phase": 0, "main": True,
     "lines": [{"id": "intro_1", "text": {"en": "Hi"}, "display_time": 0.5}]},
    {"id": "lobby", "phase": 1, "main": True, "required_dialogues": ["intro"],
     "lines": [{"id": "lobby_1", "text": {"en": "Yo"}, "display_time": 0.5}]},
]

@pytest.fixture
def library():
    library = DialogueLibrary()
    for entry in SCRIPT:
        library.add(dialogue_from_dict(entry))
    return library

@pytest.fixture
def runtime(library, presenter, control):
    return create_runtime(
        DialogueSettings(default_letter_time=0.125, max_phase=3),
        MemoryPreferences(),
        library,
        presenter=presenter,
        player_control=control,
    )

def play_out(runtime, seconds=5.0):
    for _ in range(int(seconds / 0.125)):
        runtime.update(0.125)

def test_create_runtime_defaults():
    runtime = create_runtime()

    assert runtime.sequencer.max_phase == 12
    assert runtime.manager.seen_store is runtime.seen_store
    assert runtime.manager.localization is runtime.localization
    assert len(runtime.library) == 0

def test_phase_table_built_from_library(runtime):
    assert runtime.sequencer.get_phase_dialogue(0).dialogue_id == "intro"
    assert runtime.sequencer.get_phase_dialogue(1).dialogue_id == "lobby"
    assert runtime.sequencer.get_phase_dialogue(2) is None

def test_story_progresses_through_phases(runtime):
    assert runtime.play_current_phase()
    play_out(runtime)
    assert runtime.sequencer.current_phase == 1

    assert runtime.play_current_phase()
    play_out(runtime)
    assert runtime.sequencer.current_phase == 2
    assert runtime.seen_store.seen_ids == {"intro", "lobby"}

    assert not runtime.play_current_phase()

def test_play_unknown_dialogue(runtime):
    assert not runtime.play("nope")

def test_trigger_wired_to_runtime(runtime):
    trigger = runtime.create_trigger("door", "lobby", required_phase=1)

    assert not trigger.on_enter({"player"})

    runtime.play("intro")
    play_out(runtime)

    assert trigger.on_enter({"player"})
    assert runtime.manager.current_dialogue.dialogue_id == "lobby"

def test_checkpoint_restores_progress(runtime, library):
    runtime.play("intro")
    play_out(runtime)
    assert runtime.save_checkpoint("after_intro")

    restored = create_runtime(
        runtime.settings,
        runtime.preferences.reopen(),
        library,
    )
    assert restored.load_checkpoint()
    assert restored.seen_store.has_seen("intro")
    assert restored.sequencer.current_phase == 1
    assert restored.seen_store.last_checkpoint == "after_intro"

def test_corrupt_phase_state_ignored(runtime):
    runtime.preferences.set(runtime.settings.phase_key, "{broken")

    assert not runtime.load_checkpoint()
    assert runtime.sequencer.current_phase == 0

def test_new_game_resets_progress(runtime):
    runtime.play("intro")
    play_out(runtime)
    runtime.play_current_phase()

    runtime.new_game()

    assert not runtime.manager.is_showing()
    assert runtime.sequencer.current_phase == 0
    assert len(runtime.seen_store) == 0
    assert runtime.play("intro")

def test_delete_save_data_erases_phase_progress(runtime, library):
    runtime.play("intro")
    play_out(runtime)
    runtime.play_current_phase()
    play_out(runtime)
    assert runtime.save_checkpoint("after_lobby")

    runtime.delete_save_data()

    assert runtime.sequencer.current_phase == 0
    assert len(runtime.seen_store) == 0
    assert runtime.settings.phase_key not in runtime.preferences.durable

    restored = create_runtime(runtime.settings, runtime.preferences.reopen(), library)
    restored.sequencer.complete_phase(0)
    assert not restored.load_checkpoint()
    assert restored.seen_store.seen_ids == frozenset()
    assert restored.sequencer.current_phase == 0

def test_failed_save_leaves_no_phase_state_behind(runtime):
    runtime.play("intro")
    play_out(runtime)

    with patch.object(runtime.preferences, "persist", side_effect=PreferencesError("read-only")):
        assert not runtime.save_checkpoint("after_intro")

    assert not runtime.preferences.has(runtime.settings.phase_key)

    # A later unrelated write must not carry the failed checkpoint to disk
    runtime.localization.set_language(Language.SPANISH)
    assert runtime.settings.phase_key not in runtime.preferences.durable

def test_failed_save_restores_previous_phase_state(runtime):
    runtime.play("intro")
    play_out(runtime)
    assert runtime.save_checkpoint("after_intro")
    saved = runtime.preferences.get(runtime.settings.phase_key)

    runtime.play_current_phase()
    play_out(runtime)
    with patch.object(runtime.preferences, "persist", side_effect=PreferencesError("read-only")):
        assert not runtime.save_checkpoint("after_lobby")

    assert runtime.preferences.get(runtime.settings.phase_key) == saved
