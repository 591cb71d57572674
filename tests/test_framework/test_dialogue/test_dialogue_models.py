import pytest
from pydantic import ValidationError
from framework.dialogue.models import Dialogue, DialogueLine, Language, Translations
from framework.dialogue.settings import DialogueSettings
from engine.core.actions import Action

def test_translations_resolve_with_fallback():
    texts = Translations(texts={Language.ENGLISH: "Hello", Language.SPANISH: "Hola"})

    assert texts.resolve(Language.SPANISH, Language.ENGLISH) == "Hola"
    assert texts.resolve(Language.CATALAN, Language.ENGLISH) == "Hello"
    assert Translations().resolve(Language.CATALAN, Language.ENGLISH) is None

def test_translations_accept_language_codes():
    texts = Translations(texts={"ca": "Hola"})

    assert texts.has_translation(Language.CATALAN)
    assert not texts.has_translation(Language.ENGLISH)
    assert texts.languages() == [Language.CATALAN]

def test_line_defaults():
    line = DialogueLine(line_id="l1")

    assert line.display_time == 2.0
    assert line.letter_time is None
    assert not line.has_audio()
    assert DialogueLine(line_id="l2", audio_clip="voice/l2.ogg").has_audio()

def test_line_rejects_negative_times():
    with pytest.raises(ValidationError):
        DialogueLine(line_id="l1", letter_time=-0.1)
    with pytest.raises(ValidationError):
        DialogueLine(line_id="l1", display_time=-1)

def test_dialogue_defaults_and_lines():
    first = DialogueLine(line_id="a")
    second = DialogueLine(line_id="b")
    dialogue = Dialogue(dialogue_id="intro", lines=(first, second))

    assert dialogue.phase == -1
    assert not dialogue.has_phase
    assert dialogue.one_shot
    assert dialogue.pause_player_movement
    assert dialogue.initial_delay == 0.0
    assert not dialogue.main
    assert dialogue.line_count() == 2
    assert dialogue.get_line(1) is second
    assert dialogue.get_line(2) is None
    assert dialogue.get_line(-1) is None

def test_dialogue_validation():
    with pytest.raises(ValidationError):
        Dialogue(dialogue_id="")
    with pytest.raises(ValidationError):
        Dialogue(dialogue_id="d", phase=-2)
    with pytest.raises(ValidationError):
        Dialogue(dialogue_id="d", unknown_field=True)

def test_dialogue_is_frozen():
    dialogue = Dialogue(dialogue_id="d")
    with pytest.raises(ValidationError):
        dialogue.phase = 3

def test_settings_defaults():
    settings = DialogueSettings()

    assert settings.max_phase == 12
    assert settings.default_letter_time == 0.05
    assert settings.audio_settle_delay == 0.5
    assert settings.auto_advance_timeout == 0.5
    assert settings.skip_action == Action.CONFIRM
    assert settings.seen_key == "NV51_SeenDialogues"
    assert settings.checkpoint_key == "NV51_LastCheckpoint"

def test_settings_from_file(tmp_path):
    path = tmp_path / "dialogue.json"
    path.write_text('{"max_phase": 3, "skip_action": "INTERACT", "default_language": "es"}')

    settings = DialogueSettings.from_file(path)

    assert settings.max_phase == 3
    assert settings.skip_action == Action.INTERACT
    assert settings.default_language == Language.SPANISH

def test_settings_missing_file_uses_defaults(tmp_path):
    assert DialogueSettings.from_file(tmp_path / "none.json") == DialogueSettings()

def test_settings_reject_invalid_values(tmp_path):
    path = tmp_path / "dialogue.json"
    path.write_text('{"auto_advance_timeout": -1}')

    with pytest.raises(ValidationError):
        DialogueSettings.from_file(path)
