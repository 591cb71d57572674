"""
Dialogue settings.

Every timing constant and storage key the dialogue systems use lives
here so a game can tune them from one JSON file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from engine.core.actions import Action
from framework.dialogue.models import Language

logger = logging.getLogger(__name__)


class DialogueSettings(BaseModel):
    """
    Configuration for the dialogue systems.

    Attributes:
        max_phase: Last story phase (phases run 0..max_phase)
        default_letter_time: Typewriter seconds per character when a line sets none
        audio_settle_delay: Pause after a voice clip finishes
        auto_advance_timeout: Longest wait for player input after each line
        allow_skip: Whether the skip action completes the typewriter instantly
        skip_action: Input action that skips the typewriter
        default_language: Fallback language for missing translations
        missing_translation: Text shown when no translation exists
        seen_key: Preferences key for the seen-dialogue list
        checkpoint_key: Preferences key for the last checkpoint
        language_key: Preferences key for the selected language
        phase_key: Preferences key for story progression
        seen_delimiter: Separator used in the stored seen-dialogue list
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra='forbid',
    )

    max_phase: int = Field(default=12, ge=0)
    default_letter_time: float = Field(default=0.05, gt=0.0)
    audio_settle_delay: float = Field(default=0.5, ge=0.0)
    auto_advance_timeout: float = Field(default=0.5, ge=0.0)
    allow_skip: bool = True
    skip_action: Action = Action.CONFIRM
    default_language: Language = Language.ENGLISH
    missing_translation: str = "[MISSING TRANSLATION]"
    seen_key: str = "NV51_SeenDialogues"
    checkpoint_key: str = "NV51_LastCheckpoint"
    language_key: str = "Language"
    phase_key: str = "DialoguePhaseState"
    seen_delimiter: str = Field(default=",", min_length=1)

    @classmethod
    def from_file(cls, path: str | Path) -> DialogueSettings:
        """
        Load settings from a JSON file.

        A missing file yields the defaults. Unknown keys or invalid
        values raise pydantic.ValidationError.
        """
        path = Path(path)
        if not path.exists():
            logger.info(f"Dialogue settings not found, using defaults: {path}")
            return cls()

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        # Actions are stored by name ("CONFIRM")
        if isinstance(data.get('skip_action'), str):
            data['skip_action'] = Action[data['skip_action']]

        return cls.model_validate(data)
