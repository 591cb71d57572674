"""
Phase sequencer - linear story progression.

The story runs through phases 0..max_phase. Only the current phase
can be completed, completing it advances to the next one, and the
last phase is terminal. Each phase has one designated main dialogue
whose playback completes it.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Any, Optional, Sequence

from engine.core.events import EventBus
from framework.dialogue.models import Dialogue

logger = logging.getLogger(__name__)


class PhaseEvent(Enum):
    """Story progression events."""
    PHASE_COMPLETED = auto()   # data: phase
    PHASE_STARTED = auto()     # data: phase


class PhaseSequencer:
    """
    Enforces strictly ordered phase completion.

    Invariants:
    - completed phases are a subset of 0..current_phase
    - current_phase never decreases except through reset_progression()
    - a phase is completed at most once

    Usage:
        sequencer = PhaseSequencer(event_bus, library.phase_table(12))
        if sequencer.can_access_phase(3):
            ...
        sequencer.complete_phase(sequencer.current_phase)
    """

    def __init__(
        self,
        event_bus: EventBus,
        phase_dialogues: Optional[Sequence[Optional[Dialogue]]] = None,
        max_phase: int = 12,
    ):
        if max_phase < 0:
            raise ValueError(f"max_phase must be >= 0, got {max_phase}")

        self.event_bus = event_bus
        self._max_phase = max_phase
        self._current_phase = 0
        self._completed: set[int] = set()

        # One slot per phase, 0..max_phase
        table = list(phase_dialogues or [])
        if len(table) > max_phase + 1:
            logger.warning(
                f"Phase table has {len(table)} entries, "
                f"ignoring those past phase {max_phase}"
            )
        table = table[:max_phase + 1]
        table.extend([None] * (max_phase + 1 - len(table)))
        self._phase_dialogues: list[Optional[Dialogue]] = table

    # Queries

    @property
    def current_phase(self) -> int:
        return self._current_phase

    def get_current_phase(self) -> int:
        return self._current_phase

    @property
    def max_phase(self) -> int:
        return self._max_phase

    @property
    def completed_phases(self) -> frozenset[int]:
        return frozenset(self._completed)

    def can_access_phase(self, phase: int) -> bool:
        """Phase 0 is always reachable; otherwise only phases up to the current one."""
        if phase == 0:
            return True
        return phase <= self._current_phase

    def is_phase_completed(self, phase: int) -> bool:
        return phase in self._completed

    def is_finished(self) -> bool:
        """True once the last phase is completed (no further transitions)."""
        return self._current_phase == self._max_phase and self._max_phase in self._completed

    def get_phase_dialogue(self, phase: int) -> Optional[Dialogue]:
        """Get the main dialogue of a phase, or None if out of range or unassigned."""
        if phase < 0 or phase >= len(self._phase_dialogues):
            logger.error(f"Phase {phase} out of range (0-{self._max_phase})")
            return None
        return self._phase_dialogues[phase]

    # Transitions

    def complete_phase(self, phase: int) -> bool:
        """
        Complete the current phase and advance to the next one.

        Completing any other phase is rejected and leaves state unchanged.

        Returns:
            True if the phase matched the current one
        """
        if phase != self._current_phase:
            logger.warning(
                f"Attempted to complete phase {phase} "
                f"but the current phase is {self._current_phase}"
            )
            return False

        if phase not in self._completed:
            self._completed.add(phase)
            logger.info(f"Phase {phase} completed")
            self.event_bus.publish(PhaseEvent.PHASE_COMPLETED, phase=phase)

        if self._current_phase < self._max_phase:
            self._current_phase += 1
            logger.info(f"Advancing to phase {self._current_phase}")
            self.event_bus.publish(PhaseEvent.PHASE_STARTED, phase=self._current_phase)
        else:
            logger.info(f"Story complete (phase {self._max_phase})")

        return True

    def reset_progression(self) -> None:
        """Return to phase 0 with nothing completed (new game)."""
        self._current_phase = 0
        self._completed.clear()
        logger.info("Progression reset")

    # Save data

    def get_save_data(self) -> dict[str, Any]:
        """Get progression state for saving."""
        return {
            'current_phase': self._current_phase,
            'completed_phases': sorted(self._completed),
        }

    def load_save_data(self, data: dict[str, Any]) -> None:
        """
        Restore progression state.

        Out-of-range values are clamped and completed phases beyond the
        current one are dropped, so the invariants hold after loading.
        """
        try:
            current = int(data.get('current_phase', 0))
        except (TypeError, ValueError):
            logger.warning(f"Invalid current_phase in save data: {data.get('current_phase')!r}")
            current = 0
        current = max(0, min(self._max_phase, current))

        completed = set()
        for value in data.get('completed_phases', []) or []:
            try:
                phase = int(value)
            except (TypeError, ValueError):
                continue
            if 0 <= phase <= current:
                completed.add(phase)

        self._current_phase = current
        self._completed = completed

    # Debug

    def log_status(self) -> None:
        logger.info("=== SEQUENCE STATUS ===")
        logger.info(f"Current phase: {self._current_phase}")
        logger.info(f"Completed phases: {sorted(self._completed)}")
