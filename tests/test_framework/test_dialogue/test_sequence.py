import pytest
from framework.dialogue.models import Dialogue
from framework.dialogue.sequence import PhaseEvent, PhaseSequencer

def test_initial_state(sequencer):
    assert sequencer.current_phase == 0
    assert sequencer.get_current_phase() == 0
    assert sequencer.max_phase == 12
    assert sequencer.completed_phases == frozenset()
    assert not sequencer.is_finished()

def test_complete_current_phase_advances(sequencer, recorder_factory):
    recorder = recorder_factory(PhaseEvent.PHASE_COMPLETED, PhaseEvent.PHASE_STARTED)

    assert sequencer.complete_phase(0)

    assert sequencer.current_phase == 1
    assert sequencer.is_phase_completed(0)
    assert recorder.types == [PhaseEvent.PHASE_COMPLETED, PhaseEvent.PHASE_STARTED]
    assert recorder.events[0]["phase"] == 0
    assert recorder.events[1]["phase"] == 1

def test_out_of_order_completion_rejected(sequencer):
    assert not sequencer.complete_phase(3)
    assert sequencer.current_phase == 0
    assert not sequencer.is_phase_completed(3)

    sequencer.complete_phase(0)
    assert not sequencer.complete_phase(0)
    assert sequencer.current_phase == 1

def test_can_access_phase(sequencer):
    assert sequencer.can_access_phase(0)
    assert not sequencer.can_access_phase(1)

    sequencer.complete_phase(0)
    sequencer.complete_phase(1)

    assert sequencer.can_access_phase(1)
    assert sequencer.can_access_phase(2)
    assert not sequencer.can_access_phase(3)

def test_last_phase_is_terminal(event_bus, recorder_factory):
    sequencer = PhaseSequencer(event_bus, max_phase=2)
    recorder = recorder_factory(PhaseEvent.PHASE_STARTED)

    for phase in range(3):
        assert sequencer.complete_phase(phase)

    assert sequencer.current_phase == 2
    assert sequencer.is_finished()
    assert [e["phase"] for e in recorder.events] == [1, 2]

    # Completing the terminal phase again changes nothing
    assert sequencer.complete_phase(2)
    assert sequencer.current_phase == 2
    assert sequencer.completed_phases == {0, 1, 2}

def test_completed_phases_never_exceed_current(sequencer):
    for phase in range(5):
        sequencer.complete_phase(phase)
        assert max(sequencer.completed_phases) <= sequencer.current_phase

def test_reset_progression(sequencer):
    sequencer.complete_phase(0)
    sequencer.complete_phase(1)

    sequencer.reset_progression()

    assert sequencer.current_phase == 0
    assert sequencer.completed_phases == frozenset()

def test_phase_dialogue_table(event_bus):
    intro = Dialogue(dialogue_id="intro", phase=0)
    table = [intro] + [None] * 20
    sequencer = PhaseSequencer(event_bus, table, max_phase=3)

    assert sequencer.get_phase_dialogue(0) is intro
    assert sequencer.get_phase_dialogue(3) is None
    assert sequencer.get_phase_dialogue(4) is None
    assert sequencer.get_phase_dialogue(-1) is None

def test_negative_max_phase_rejected(event_bus):
    with pytest.raises(ValueError):
        PhaseSequencer(event_bus, max_phase=-1)

def test_save_data_round_trip(event_bus, sequencer):
    sequencer.complete_phase(0)
    sequencer.complete_phase(1)
    data = sequencer.get_save_data()

    assert data == {"current_phase": 2, "completed_phases": [0, 1]}

    restored = PhaseSequencer(event_bus)
    restored.load_save_data(data)
    assert restored.current_phase == 2
    assert restored.completed_phases == {0, 1}

def test_load_save_data_is_clamped(sequencer):
    sequencer.load_save_data({"current_phase": 40, "completed_phases": [0, 5, 13, "x"]})

    assert sequencer.current_phase == 12
    assert sequencer.completed_phases == {0, 5}

    sequencer.load_save_data({"current_phase": "garbage", "completed_phases": [0, 1]})
    assert sequencer.current_phase == 0
    assert sequencer.completed_phases == {0}
