"""
Dialogue playback - plays a dialogue's lines over time.

Each play() call runs one session as a cooperative task on the
TaskScheduler: optional control lock and initial delay, then every
line with a typewriter reveal, optional voice clip, hold time and a
short auto-advance window. When all lines have played the dialogue is
marked seen and, if it belongs to the current story phase, that phase
is completed.

Only one session runs at a time. Starting another one, or calling
stop(), cancels the running session on the spot: the panel is hidden,
player control is restored, and nothing is marked seen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional

from engine.core.events import Event, EventBus
from engine.core.tasks import Routine, Task, TaskScheduler, WaitForSeconds, WaitUntil, WaitWhile
from framework.dialogue.localization import LocalizationEvent
from framework.dialogue.models import Dialogue, DialogueLine, Language, Translations
from framework.dialogue.settings import DialogueSettings

if TYPE_CHECKING:
    from framework.dialogue.interfaces import (
        DialoguePresenter,
        InputSource,
        LanguageProvider,
        PlayerControl,
        VoicePlayer,
    )
    from framework.dialogue.seen import SeenStore
    from framework.dialogue.sequence import PhaseSequencer

logger = logging.getLogger(__name__)


class DialogueEvent(Enum):
    """Dialogue playback events."""
    DIALOGUE_STARTED = auto()   # data: dialogue_id
    LINE_SHOWN = auto()         # data: dialogue_id, line_id
    DIALOGUE_ENDED = auto()     # data: dialogue_id, completed
    TEXT_ADVANCED = auto()      # data: dialogue_id, line_id, char_index


class LineState(Enum):
    """Where a session is within its current line."""
    STARTING = auto()    # before the first line (initial delay)
    TYPING = auto()      # typewriter reveal in progress
    SETTLED = auto()     # text complete, holding / waiting for input
    FINISHING = auto()   # all lines played, recording progress


@dataclass
class PlaybackSession:
    """
    Runtime state of one playing dialogue.

    Attributes:
        dialogue: The dialogue being played
        language: Language captured when the session started
        line_index: Index of the current line (-1 before the first)
        state: Sub-state within the current line
        skipped: Whether the last reveal was cut short by a skip
        control_suspended: Whether this session locked player control
        cancelled: Set when the session was stopped or replaced
    """
    dialogue: Dialogue
    language: Language
    line_index: int = -1
    state: LineState = LineState.STARTING
    skipped: bool = False
    control_suspended: bool = False
    cancelled: bool = False
    closed: bool = False
    task: Optional[Task] = None

    @property
    def current_line(self) -> Optional[DialogueLine]:
        return self.dialogue.get_line(self.line_index)

    @property
    def is_typing(self) -> bool:
        return self.state is LineState.TYPING


class DialogueManager:
    """
    Plays dialogues with a typewriter effect and optional voice audio.

    Usage:
        manager = DialogueManager(
            event_bus, scheduler, seen_store, sequencer,
            localization=localization,
            presenter=dialogue_box,
            audio=audio_manager,
            input_source=input_handler,
        )
        manager.play(library.get("phase0_intro"))

        # Game loop
        scheduler.update(dt)
    """

    def __init__(
        self,
        event_bus: EventBus,
        scheduler: TaskScheduler,
        seen_store: SeenStore,
        sequencer: Optional[PhaseSequencer] = None,
        *,
        localization: Optional[LanguageProvider] = None,
        presenter: Optional[DialoguePresenter] = None,
        audio: Optional[VoicePlayer] = None,
        player_control: Optional[PlayerControl] = None,
        input_source: Optional[InputSource] = None,
        settings: Optional[DialogueSettings] = None,
    ):
        self.event_bus = event_bus
        self.scheduler = scheduler
        self.seen_store = seen_store
        self.sequencer = sequencer
        self.localization = localization
        self.presenter = presenter
        self.audio = audio
        self.player_control = player_control
        self.input_source = input_source
        self.settings = settings or DialogueSettings()

        self._session: Optional[PlaybackSession] = None
        self._advance_requested = False

        self._language_subscription = event_bus.subscribe(
            LocalizationEvent.LANGUAGE_CHANGED, self._on_language_changed
        )

    # Public API

    def play(self, dialogue: Optional[Dialogue]) -> bool:
        """
        Start playing a dialogue, replacing any running one.

        Returns:
            True if a session started; False for missing/empty dialogues
            and one-shot dialogues that were already seen
        """
        if dialogue is None:
            logger.error("Cannot play dialogue: no dialogue data given")
            return False

        if not dialogue.has_lines():
            logger.warning(f"Dialogue {dialogue.dialogue_id} has no lines")
            return False

        if dialogue.one_shot and self.seen_store.has_seen(dialogue.dialogue_id):
            logger.info(f"Dialogue {dialogue.dialogue_id} already seen (one-shot)")
            return False

        self._cancel_active()

        session = PlaybackSession(dialogue=dialogue, language=self._current_language())
        self._session = session
        self._advance_requested = False

        session.task = self.scheduler.start(
            self._run_session(session),
            name=f"dialogue:{dialogue.dialogue_id}",
            on_error=lambda task, error: self._on_session_error(session, error),
        )

        # A listener may have stopped the session before the task existed
        if session.cancelled:
            session.task.cancel()

        return True

    def stop(self) -> None:
        """Cancel the running dialogue immediately (no-op when idle)."""
        self._cancel_active()

    def is_showing(self) -> bool:
        """True between DIALOGUE_STARTED and DIALOGUE_ENDED."""
        return self._session is not None

    def advance(self) -> None:
        """
        Player input for the running dialogue.

        While text is being typed this skips to the full line; afterwards
        it ends the auto-advance wait. Ignored before the first line
        starts typing.
        """
        if self._session is None or self._session.state is LineState.STARTING:
            return
        self._advance_requested = True

    @property
    def session(self) -> Optional[PlaybackSession]:
        return self._session

    @property
    def current_dialogue(self) -> Optional[Dialogue]:
        return self._session.dialogue if self._session else None

    # Session flow

    def _run_session(self, session: PlaybackSession) -> Routine:
        dialogue = session.dialogue
        logger.info(
            f"Playing dialogue {dialogue.dialogue_id} "
            f"({dialogue.line_count()} lines, {session.language.value})"
        )

        self.event_bus.publish(DialogueEvent.DIALOGUE_STARTED, dialogue_id=dialogue.dialogue_id)
        if session.cancelled:
            return

        # Lock control before the delay so the player cannot act during it
        if dialogue.pause_player_movement:
            self._suspend_player(session)

        if dialogue.initial_delay > 0:
            yield WaitForSeconds(dialogue.initial_delay)

        if self.presenter:
            self.presenter.show()

        for index, line in enumerate(dialogue.lines):
            session.line_index = index
            yield from self._run_line(session, line)
            if session.cancelled:
                return

        session.state = LineState.FINISHING
        self._record_progress(session)
        self._teardown(session, completed=True)

    def _run_line(self, session: PlaybackSession, line: DialogueLine) -> Routine:
        dialogue_id = session.dialogue.dialogue_id
        speaker = self._resolve_text(line, line.speaker_names, session.language, "speaker")
        message = self._resolve_text(line, line.messages, session.language, "message")

        if self.presenter:
            self.presenter.set_speaker_text(speaker)
            self.presenter.set_message_text("")

        has_audio = False
        if line.has_audio() and self.audio is not None:
            has_audio = self.audio.play(line.audio_clip)

        # Typewriter
        session.state = LineState.TYPING
        session.skipped = False
        letter_time = line.letter_time or self.settings.default_letter_time

        for index in range(len(message)):
            if self.presenter:
                self.presenter.set_message_text(message[:index + 1])
            self.event_bus.publish(
                DialogueEvent.TEXT_ADVANCED,
                dialogue_id=dialogue_id,
                line_id=line.line_id,
                char_index=index + 1,
            )
            if session.cancelled:
                return

            if self.settings.allow_skip and self._skip_requested():
                if self.presenter:
                    self.presenter.set_message_text(message)
                if has_audio and self.audio.is_playing():
                    self.audio.stop()
                session.skipped = True
                break

            yield WaitForSeconds(letter_time)

        session.state = LineState.SETTLED
        self.event_bus.publish(
            DialogueEvent.LINE_SHOWN,
            dialogue_id=dialogue_id,
            line_id=line.line_id,
        )
        if session.cancelled:
            return

        if has_audio and self.audio.is_playing():
            yield WaitWhile(self.audio.is_playing)
            yield WaitForSeconds(self.settings.audio_settle_delay)
        else:
            yield WaitForSeconds(line.display_time)

        received = yield WaitUntil(
            self._input_received,
            timeout=self.settings.auto_advance_timeout,
        )
        if received:
            logger.debug(f"Line {line.line_id} closed by player input")
        else:
            logger.debug(f"Line {line.line_id} closed automatically (timeout)")

    def _record_progress(self, session: PlaybackSession) -> None:
        dialogue = session.dialogue
        self.seen_store.mark_seen(dialogue.dialogue_id)

        if self.sequencer is None or not dialogue.has_phase:
            return

        current = self.sequencer.current_phase
        if dialogue.phase == current:
            self.sequencer.complete_phase(dialogue.phase)
        else:
            # Replaying an earlier phase's dialogue must not move progression
            logger.debug(
                f"Dialogue {dialogue.dialogue_id} belongs to phase {dialogue.phase}, "
                f"current phase is {current}; phase not completed"
            )

    # Cancellation / cleanup

    def _cancel_active(self) -> None:
        session = self._session
        if session is None:
            return

        session.cancelled = True
        if session.task is not None:
            session.task.cancel()

        logger.info(f"Dialogue {session.dialogue.dialogue_id} interrupted")
        self._teardown(session, completed=session.state is LineState.FINISHING)

    def _on_session_error(self, session: PlaybackSession, error: BaseException) -> None:
        logger.error(f"Dialogue {session.dialogue.dialogue_id} aborted: {error}")
        session.cancelled = True
        self._teardown(session, completed=False)

    def _teardown(self, session: PlaybackSession, completed: bool) -> None:
        if session.closed:
            return
        session.closed = True

        if not completed and self.audio is not None and self.audio.is_playing():
            self.audio.stop()

        self._hide_ui()
        if session.control_suspended:
            self._restore_player()

        if self._session is session:
            self._session = None
            self._advance_requested = False

        self.event_bus.publish(
            DialogueEvent.DIALOGUE_ENDED,
            dialogue_id=session.dialogue.dialogue_id,
            completed=completed,
        )

    # Input

    def _skip_requested(self) -> bool:
        if self._advance_requested:
            self._advance_requested = False
            return True
        if self.input_source is None:
            return False
        return self.input_source.is_action_just_pressed(self.settings.skip_action)

    def _input_received(self) -> bool:
        if self._advance_requested:
            self._advance_requested = False
            return True
        if self.input_source is None:
            return False
        return self.input_source.any_action_just_pressed()

    # Collaborators

    def _current_language(self) -> Language:
        if self.localization is None:
            return self.settings.default_language
        return self.localization.current_language

    def _resolve_text(
        self,
        line: DialogueLine,
        translations: Translations,
        language: Language,
        field: str,
    ) -> str:
        text = translations.resolve(language, self.settings.default_language)
        if text is None:
            logger.warning(
                f"Line {line.line_id} has no {field} text for "
                f"{language.value} or {self.settings.default_language.value}"
            )
            return self.settings.missing_translation
        return text

    def _hide_ui(self) -> None:
        if self.presenter:
            self.presenter.hide()
            self.presenter.set_speaker_text("")
            self.presenter.set_message_text("")

    def _suspend_player(self, session: PlaybackSession) -> None:
        if self.player_control is None:
            return
        self.player_control.suspend()
        session.control_suspended = True

    def _restore_player(self) -> None:
        if self.player_control is not None:
            self.player_control.restore()

    def _on_language_changed(self, event: Event) -> None:
        if self._session is not None:
            language = event.get('language')
            logger.info(
                f"Language changed to {getattr(language, 'value', language)} during "
                f"dialogue {self._session.dialogue.dialogue_id}; applies to the next one"
            )
