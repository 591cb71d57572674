"""
Narrative framework module.

Provides game-specific systems built on top of the engine:
- Dialogue (playback, seen store, story phases, triggers)
"""
