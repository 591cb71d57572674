import os
import sys
import pytest
from unittest.mock import MagicMock, patch

# Ensure engine modules can be imported
sys.path.append(os.getcwd())

@pytest.fixture(autouse=True)
def mock_pygame():
    """
    Global mock for pygame to allow headless testing.
    Autoused for all tests to prevent accidental window creation or audio output.
    """
    with patch('pygame.init'), \
         patch('pygame.display'), \
         patch('pygame.event'), \
         patch('pygame.time'), \
         patch('pygame.mixer'), \
         patch('pygame.joystick'), \
         patch('pygame.key'):

        import pygame
        pygame.time.get_ticks = MagicMock(return_value=0)

        yield

@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from engine.core.events import EventBus
    return EventBus()

@pytest.fixture
def scheduler():
    """Fresh TaskScheduler for each test."""
    from engine.core.tasks import TaskScheduler
    return TaskScheduler()

@pytest.fixture
def preferences():
    """In-memory preferences."""
    from engine.storage.preferences import MemoryPreferences
    return MemoryPreferences()

@pytest.fixture
def settings():
    from framework.dialogue.settings import DialogueSettings
    return DialogueSettings()


# ---------------------------------------------------------------------------
# Dialogue collaborators
# ---------------------------------------------------------------------------

class EventRecorder:
    """Subscribes to event types and keeps every event it receives."""

    def __init__(self, event_bus, *event_types):
        self.events = []
        for event_type in event_types:
            event_bus.subscribe(event_type, self.record)

    def record(self, event):
        self.events.append(event)

    @property
    def types(self):
        return [e.type for e in self.events]

    def of(self, event_type):
        return [e for e in self.events if e.type == event_type]


class FakePresenter:
    def __init__(self):
        self.speaker = ""
        self.message = ""
        self.visible = False
        self.messages = []
        self.calls = []

    def set_speaker_text(self, text):
        self.speaker = text

    def set_message_text(self, text):
        self.message = text
        self.messages.append(text)

    def show(self):
        self.visible = True
        self.calls.append("show")

    def hide(self):
        self.visible = False
        self.calls.append("hide")


class FakeVoice:
    """Voice player; a test ends the clip by setting playing = False."""

    def __init__(self, available=True):
        self.available = available
        self.playing = False
        self.played = []
        self.stops = 0

    def play(self, clip):
        if not self.available:
            return False
        self.played.append(clip)
        self.playing = True
        return True

    def stop(self):
        self.stops += 1
        self.playing = False

    def is_playing(self):
        return self.playing


class FakeControl:
    def __init__(self):
        self.suspended = False
        self.calls = []

    def suspend(self):
        self.suspended = True
        self.calls.append("suspend")

    def restore(self):
        self.suspended = False
        self.calls.append("restore")


class FakeInput:
    def __init__(self):
        self.just_pressed = set()
        self.any_pressed = False

    def is_action_just_pressed(self, action):
        return action in self.just_pressed

    def any_action_just_pressed(self):
        return self.any_pressed or bool(self.just_pressed)


@pytest.fixture
def presenter():
    return FakePresenter()

@pytest.fixture
def voice():
    return FakeVoice()

@pytest.fixture
def control():
    return FakeControl()

@pytest.fixture
def fake_input():
    return FakeInput()

@pytest.fixture
def recorder_factory(event_bus):
    def make(*event_types):
        return EventRecorder(event_bus, *event_types)
    return make

@pytest.fixture
def seen_store(preferences, settings):
    from framework.dialogue.seen import SeenStore
    return SeenStore(preferences, settings)

@pytest.fixture
def sequencer(event_bus):
    from framework.dialogue.sequence import PhaseSequencer
    return PhaseSequencer(event_bus, max_phase=12)

@pytest.fixture
def manager(event_bus, scheduler, seen_store, sequencer, presenter, voice, control, fake_input, settings):
    from framework.dialogue.playback import DialogueManager
    return DialogueManager(
        event_bus,
        scheduler,
        seen_store,
        sequencer,
        presenter=presenter,
        audio=voice,
        player_control=control,
        input_source=fake_input,
        settings=settings,
    )


def _make_line(line_id, text="Hi", speaker="Ana", **kwargs):
    from framework.dialogue.models import DialogueLine, Language, Translations
    return DialogueLine(
        line_id=line_id,
        speaker_names=Translations(texts={Language.ENGLISH: speaker}),
        messages=Translations(texts={Language.ENGLISH: text}),
        **kwargs,
    )


def _make_dialogue(dialogue_id="d1", lines=None, **kwargs):
    from framework.dialogue.models import Dialogue
    if lines is None:
        lines = [_make_line(f"{dialogue_id}_l1")]
    return Dialogue(dialogue_id=dialogue_id, lines=tuple(lines), **kwargs)


def _run(scheduler, seconds, dt=0.125):
    """Tick the scheduler for about `seconds` of game time."""
    steps = int(round(seconds / dt))
    for _ in range(steps):
        scheduler.update(dt)


@pytest.fixture
def make_line():
    return _make_line

@pytest.fixture
def make_dialogue():
    return _make_dialogue

@pytest.fixture
def run():
    return _run
