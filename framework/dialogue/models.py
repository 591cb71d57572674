"""
Dialogue data - authored, immutable content.

Dialogues and their lines are created by the content pipeline and
only read at runtime. All models are frozen Pydantic models so a
playing session can hold references without copying.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    """Supported text languages (ISO 639-1 codes)."""
    ENGLISH = "en"
    SPANISH = "es"
    CATALAN = "ca"


class ContentModel(BaseModel):
    """Base class for authored content: immutable, no unknown fields."""

    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
    )


class Translations(ContentModel):
    """
    Per-language text for one field of a line.

    Attributes:
        texts: Mapping of language -> text
    """
    texts: dict[Language, str] = Field(default_factory=dict)

    def resolve(self, language: Language, fallback: Language) -> Optional[str]:
        """
        Get text for a language, falling back to another language.

        Returns:
            The text, or None when neither language is present
        """
        if language in self.texts:
            return self.texts[language]
        if fallback in self.texts:
            return self.texts[fallback]
        return None

    def has_translation(self, language: Language) -> bool:
        """Check for a non-empty text in a language."""
        return bool(self.texts.get(language))

    def languages(self) -> list[Language]:
        return list(self.texts)


class DialogueLine(ContentModel):
    """
    A single line of a dialogue.

    Attributes:
        line_id: Unique ID (e.g. "phase0_intro_line1")
        speaker_names: Speaker label per language
        messages: Message text per language
        audio_clip: Voice clip path, if the line is voiced
        letter_time: Seconds per revealed character (None = engine default)
        display_time: Seconds to hold an unvoiced line after it is revealed
    """
    line_id: str
    speaker_names: Translations = Field(default_factory=Translations)
    messages: Translations = Field(default_factory=Translations)
    audio_clip: Optional[str] = None
    letter_time: Optional[float] = Field(default=None, ge=0.0)
    display_time: float = Field(default=2.0, ge=0.0)

    def has_audio(self) -> bool:
        return bool(self.audio_clip)


class Dialogue(ContentModel):
    """
    A complete dialogue or monologue.

    Attributes:
        dialogue_id: Unique ID (e.g. "phase0_intro")
        phase: Story phase this dialogue belongs to (-1 = none)
        lines: Lines in playback order
        required_dialogue_ids: Dialogues that must have been seen first
        required_missions: Missions that must be completed first
        required_items: Items the player must hold
        one_shot: Can only be played once per save
        pause_player_movement: Suspend player control while playing
        initial_delay: Seconds before the first line appears
        main: This is the designated dialogue that completes its phase
    """
    dialogue_id: str = Field(min_length=1)
    phase: int = Field(default=-1, ge=-1)
    lines: tuple[DialogueLine, ...] = ()
    required_dialogue_ids: tuple[str, ...] = ()
    required_missions: tuple[str, ...] = ()
    required_items: tuple[str, ...] = ()
    one_shot: bool = True
    pause_player_movement: bool = True
    initial_delay: float = Field(default=0.0, ge=0.0)
    main: bool = False

    def has_lines(self) -> bool:
        return len(self.lines) > 0

    def line_count(self) -> int:
        return len(self.lines)

    def get_line(self, index: int) -> Optional[DialogueLine]:
        if index < 0 or index >= len(self.lines):
            return None
        return self.lines[index]

    @property
    def has_phase(self) -> bool:
        return self.phase >= 0
