"""
Dialogue library - loads and indexes authored dialogues.

Dialogues are authored as JSON files, each holding one dialogue object
or a list of them. Every entry is checked against DIALOGUE_SCHEMA with
jsonschema, then built into the frozen Pydantic models. Invalid entries
and duplicate IDs are logged and skipped; loading never raises.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional

import jsonschema
from pydantic import ValidationError

from framework.dialogue.models import Dialogue, DialogueLine, Language, Translations

logger = logging.getLogger(__name__)


_TRANSLATIONS_SCHEMA = {
    "type": "object",
    "propertyNames": {"enum": [language.value for language in Language]},
    "additionalProperties": {"type": "string"},
}

_ID_LIST_SCHEMA = {
    "type": "array",
    "items": {"type": "string", "minLength": 1},
}

DIALOGUE_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Dialogue",
    "type": "object",
    "required": ["id", "lines"],
    "additionalProperties": False,
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "phase": {"type": "integer", "minimum": -1},
        "main": {"type": "boolean"},
        "one_shot": {"type": "boolean"},
        "pause_player_movement": {"type": "boolean"},
        "initial_delay": {"type": "number", "minimum": 0},
        "required_dialogues": _ID_LIST_SCHEMA,
        "required_missions": _ID_LIST_SCHEMA,
        "required_items": _ID_LIST_SCHEMA,
        "lines": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "text"],
                "additionalProperties": False,
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "speaker": _TRANSLATIONS_SCHEMA,
                    "text": _TRANSLATIONS_SCHEMA,
                    "audio": {"type": ["string", "null"]},
                    "letter_time": {"type": ["number", "null"], "minimum": 0},
                    "display_time": {"type": "number", "minimum": 0},
                },
            },
        },
    },
}


def dialogue_from_dict(data: dict[str, Any]) -> Dialogue:
    """
    Build a Dialogue from its JSON form.

    Raises:
        jsonschema.ValidationError: If the data does not match DIALOGUE_SCHEMA
        pydantic.ValidationError: If the values are out of range
    """
    jsonschema.validate(instance=data, schema=DIALOGUE_SCHEMA)

    lines = [
        DialogueLine(
            line_id=line['id'],
            speaker_names=Translations(texts=line.get('speaker', {})),
            messages=Translations(texts=line['text']),
            audio_clip=line.get('audio'),
            letter_time=line.get('letter_time'),
            display_time=line.get('display_time', 2.0),
        )
        for line in data['lines']
    ]

    return Dialogue(
        dialogue_id=data['id'],
        phase=data.get('phase', -1),
        lines=tuple(lines),
        required_dialogue_ids=tuple(data.get('required_dialogues', ())),
        required_missions=tuple(data.get('required_missions', ())),
        required_items=tuple(data.get('required_items', ())),
        one_shot=data.get('one_shot', True),
        pause_player_movement=data.get('pause_player_movement', True),
        initial_delay=data.get('initial_delay', 0.0),
        main=data.get('main', False),
    )


class DialogueLibrary:
    """
    Registry of dialogues by ID.

    Usage:
        library = DialogueLibrary()
        library.load_directory("data/dialogue")
        sequencer = PhaseSequencer(event_bus, library.phase_table(12), 12)
    """

    def __init__(self, default_language: Language = Language.ENGLISH):
        self.default_language = default_language
        self._dialogues: dict[str, Dialogue] = {}

    def load_directory(self, path: str | Path) -> int:
        """
        Load every *.json file in a directory.

        Returns:
            Number of dialogues added
        """
        directory = Path(path)
        if not directory.is_dir():
            logger.warning(f"Dialogue directory not found: {directory}")
            return 0

        added = 0
        for file_path in sorted(directory.glob("*.json")):
            added += self.load_file(file_path)

        logger.info(f"Loaded {added} dialogues from {directory}")
        return added

    def load_file(self, path: str | Path) -> int:
        """Load one JSON file holding a dialogue or a list of dialogues."""
        file_path = Path(path)
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load {file_path}: {e}")
            return 0

        entries = data if isinstance(data, list) else [data]
        added = 0
        for entry in entries:
            if not isinstance(entry, dict):
                logger.error(f"Invalid dialogue entry in {file_path}: expected an object")
                continue
            try:
                dialogue = dialogue_from_dict(entry)
            except jsonschema.ValidationError as e:
                logger.error(f"Validation error in {file_path}: {e.message}")
                continue
            except ValidationError as e:
                logger.error(f"Invalid dialogue {entry.get('id')!r} in {file_path}: {e}")
                continue

            if self.add(dialogue):
                added += 1

        return added

    def add(self, dialogue: Dialogue) -> bool:
        """Register a dialogue. Duplicate IDs are rejected."""
        if dialogue.dialogue_id in self._dialogues:
            logger.warning(f"Duplicate dialogue ID ignored: {dialogue.dialogue_id}")
            return False

        for line in dialogue.lines:
            if not line.messages.has_translation(self.default_language):
                logger.warning(
                    f"Line {line.line_id} of {dialogue.dialogue_id} has no "
                    f"{self.default_language.value} text"
                )

        self._dialogues[dialogue.dialogue_id] = dialogue
        return True

    def get(self, dialogue_id: str) -> Optional[Dialogue]:
        return self._dialogues.get(dialogue_id)

    def ids(self) -> list[str]:
        return list(self._dialogues)

    def phase_table(self, max_phase: int) -> list[Optional[Dialogue]]:
        """
        Build the main-dialogue table for phases 0..max_phase.

        Only dialogues flagged as main count. The first one registered for
        a phase wins.
        """
        table: list[Optional[Dialogue]] = [None] * (max_phase + 1)

        for dialogue in self._dialogues.values():
            if not dialogue.main:
                continue
            if not 0 <= dialogue.phase <= max_phase:
                logger.warning(
                    f"Main dialogue {dialogue.dialogue_id} has phase {dialogue.phase} "
                    f"outside 0-{max_phase}"
                )
                continue
            existing = table[dialogue.phase]
            if existing is not None:
                logger.warning(
                    f"Phase {dialogue.phase} already has main dialogue "
                    f"{existing.dialogue_id}; ignoring {dialogue.dialogue_id}"
                )
                continue
            table[dialogue.phase] = dialogue

        for phase, dialogue in enumerate(table):
            if dialogue is None:
                logger.debug(f"Phase {phase} has no main dialogue")

        return table

    def __contains__(self, dialogue_id: str) -> bool:
        return dialogue_id in self._dialogues

    def __len__(self) -> int:
        return len(self._dialogues)

    def __iter__(self) -> Iterator[Dialogue]:
        return iter(self._dialogues.values())
