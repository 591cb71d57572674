"""
Seen-dialogue store - which dialogues the player has watched.

Tracks dialogue IDs marked as seen plus one manual checkpoint ID.
Marking is in-memory only; save_checkpoint() writes the seen list and
the checkpoint to preferences together.

Stored layout (two preference keys):
    seen_key        "phase0_intro,phase1_gas,..."   (delimiter-joined)
    checkpoint_key  "phase11_module_entrance"        ("" = no checkpoint)
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from engine.storage.preferences import Preferences
from framework.dialogue.settings import DialogueSettings

logger = logging.getLogger(__name__)


class SeenStore:
    """
    Registry of seen dialogues with checkpoint persistence.

    Usage:
        seen = SeenStore(preferences)
        seen.mark_seen("phase0_intro")
        seen.save_checkpoint("phase11_module_entrance")

        # After restart
        if seen.load_checkpoint():
            resume_from(seen.last_checkpoint)
    """

    def __init__(
        self,
        preferences: Preferences,
        settings: Optional[DialogueSettings] = None,
    ):
        self.preferences = preferences
        self.settings = settings or DialogueSettings()

        self._seen: set[str] = set()
        self._checkpoint: str = ""

    # Seen registry

    def mark_seen(self, dialogue_id: str) -> bool:
        """
        Mark a dialogue as seen (does not persist).

        Returns:
            True if the ID was newly added, False if empty, invalid
            or already present
        """
        if not dialogue_id:
            logger.warning("Attempted to mark dialogue with empty ID")
            return False

        if self.settings.seen_delimiter in dialogue_id:
            logger.warning(
                f"Dialogue ID {dialogue_id!r} contains the delimiter "
                f"{self.settings.seen_delimiter!r}; not marked"
            )
            return False

        if dialogue_id in self._seen:
            return False

        self._seen.add(dialogue_id)
        logger.info(f"Seen dialogue: {dialogue_id}")
        return True

    def has_seen(self, dialogue_id: str) -> bool:
        return dialogue_id in self._seen

    def has_seen_all(self, dialogue_ids: Iterable[str]) -> bool:
        """Check that every ID was seen (True for an empty input)."""
        return all(d in self._seen for d in dialogue_ids)

    @property
    def seen_ids(self) -> frozenset[str]:
        return frozenset(self._seen)

    def clear_all_seen(self) -> None:
        """Forget all seen dialogues and the checkpoint (new game); storage untouched."""
        self._seen.clear()
        self._checkpoint = ""
        logger.info("All seen dialogues cleared")

    # Checkpoints

    @property
    def last_checkpoint(self) -> str:
        return self._checkpoint

    def has_checkpoint(self) -> bool:
        return bool(self._checkpoint)

    def save_checkpoint(self, checkpoint_id: str) -> bool:
        """
        Set the checkpoint and persist it together with the seen list.

        On a storage failure the previous checkpoint and stored values
        are put back and False is returned.
        """
        keys = (self.settings.seen_key, self.settings.checkpoint_key)
        previous_checkpoint = self._checkpoint
        previous_values = {k: self.preferences.get(k, None) for k in keys}

        self._checkpoint = checkpoint_id or ""

        try:
            self.preferences.set(self.settings.seen_key, self._encode(self._seen))
            self.preferences.set(self.settings.checkpoint_key, self._checkpoint)
            self.preferences.persist()
        except OSError as e:
            logger.error(f"Checkpoint {checkpoint_id!r} could not be saved: {e}")
            self._checkpoint = previous_checkpoint
            for key, value in previous_values.items():
                if value is None:
                    self.preferences.delete(key)
                else:
                    self.preferences.set(key, value)
            return False

        logger.info(
            f"Checkpoint saved: {self._checkpoint} "
            f"({len(self._seen)} dialogues)"
        )
        return True

    def load_checkpoint(self) -> bool:
        """
        Replace in-memory state with the stored seen list and checkpoint.

        Returns:
            True if a non-empty checkpoint was found
        """
        self._seen = self._decode(self.preferences.get(self.settings.seen_key, ""))
        self._checkpoint = self.preferences.get(self.settings.checkpoint_key, "") or ""

        logger.info(
            f"Loaded {len(self._seen)} seen dialogues, "
            f"checkpoint: {self._checkpoint or '(none)'}"
        )
        return bool(self._checkpoint)

    def delete_save_data(self) -> None:
        """Erase stored data and clear memory. Irreversible."""
        self.preferences.delete(self.settings.seen_key)
        self.preferences.delete(self.settings.checkpoint_key)
        try:
            self.preferences.persist()
        except OSError as e:
            logger.error(f"Could not persist save data deletion: {e}")

        self._seen.clear()
        self._checkpoint = ""
        logger.info("Saved dialogue data deleted")

    # Encoding

    def _encode(self, ids: Iterable[str]) -> str:
        return self.settings.seen_delimiter.join(sorted(ids))

    def _decode(self, blob: object) -> set[str]:
        if not isinstance(blob, str) or not blob:
            return set()
        return {i for i in blob.split(self.settings.seen_delimiter) if i}

    # Debug

    def dump(self) -> None:
        """Log every seen dialogue and the checkpoint."""
        logger.info(f"=== DIALOGUES SEEN ({len(self._seen)}) ===")
        for dialogue_id in sorted(self._seen):
            logger.info(f"  {dialogue_id}")
        logger.info(f"=== CHECKPOINT: {self._checkpoint or '(none)'} ===")

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, dialogue_id: str) -> bool:
        return dialogue_id in self._seen
