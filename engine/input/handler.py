"""
Input handler with action-based abstraction.

Translates raw pygame keyboard and gamepad events into semantic
Actions. The dialogue player polls it for two signals: the skip
action (typewriter skip) and "any action just pressed" (line
acknowledgement).

Usage:
    for event in pygame.event.get():
        input_handler.process_event(event)
    input_handler.update()

    if input_handler.is_action_just_pressed(Action.CONFIRM):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import pygame

from engine.core.actions import (
    Action,
    DEFAULT_KEY_BINDINGS,
    DEFAULT_GAMEPAD_BINDINGS,
)
from engine.core.events import EventBus


class InputEvent(Enum):
    """Input-specific events."""
    ACTION_PRESSED = "input.action_pressed"
    ACTION_RELEASED = "input.action_released"


@dataclass
class InputState:
    """Complete input state for current frame."""
    actions_pressed: set[Action] = field(default_factory=set)
    actions_just_pressed: set[Action] = field(default_factory=set)
    actions_just_released: set[Action] = field(default_factory=set)

    # Raw key states (for unbound keys)
    keys_pressed: set[int] = field(default_factory=set)
    keys_just_pressed: set[int] = field(default_factory=set)


class InputHandler:
    """
    Handles keyboard and gamepad input.

    Call process_event() for every pygame event of the frame and then
    update() once, before ticking game systems.
    """

    def __init__(self, event_bus: EventBus | None = None):
        self.event_bus = event_bus

        # Current and previous frame states
        self._state = InputState()
        self._prev_actions: set[Action] = set()
        self._prev_keys: set[int] = set()

        # Key bindings (action -> list of keys)
        self._key_bindings = {a: list(keys) for a, keys in DEFAULT_KEY_BINDINGS.items()}
        self._reverse_key_bindings: dict[int, list[Action]] = {}
        self._rebuild_reverse_bindings()

        self._gamepad_bindings = {a: list(b) for a, b in DEFAULT_GAMEPAD_BINDINGS.items()}

    def _rebuild_reverse_bindings(self) -> None:
        """Build reverse lookup: key -> actions."""
        self._reverse_key_bindings.clear()
        for action, keys in self._key_bindings.items():
            for key in keys:
                self._reverse_key_bindings.setdefault(key, []).append(action)

    # Public API

    def is_action_pressed(self, action: Action) -> bool:
        """Check if an action is currently held down."""
        return action in self._state.actions_pressed

    def is_action_just_pressed(self, action: Action) -> bool:
        """Check if an action was just pressed this frame."""
        return action in self._state.actions_just_pressed

    def is_action_just_released(self, action: Action) -> bool:
        """Check if an action was just released this frame."""
        return action in self._state.actions_just_released

    def any_action_just_pressed(self) -> bool:
        """True if any key or bound button went down this frame."""
        return bool(self._state.actions_just_pressed or self._state.keys_just_pressed)

    def is_key_pressed(self, key: int) -> bool:
        """Check if a raw key is pressed."""
        return key in self._state.keys_pressed

    # Key binding management

    def bind_key(self, action: Action, key: int) -> None:
        """Add a key binding for an action."""
        keys = self._key_bindings.setdefault(action, [])
        if key not in keys:
            keys.append(key)
        self._rebuild_reverse_bindings()

    def unbind_key(self, action: Action, key: int) -> None:
        """Remove a key binding for an action."""
        if key in self._key_bindings.get(action, []):
            self._key_bindings[action].remove(key)
        self._rebuild_reverse_bindings()

    def get_bindings(self, action: Action) -> list[int]:
        """Get all key bindings for an action."""
        return self._key_bindings.get(action, []).copy()

    # Frame update

    def process_event(self, event: pygame.event.Event) -> None:
        """Process a pygame event."""
        if event.type == pygame.KEYDOWN:
            self._on_key_down(event.key)

        elif event.type == pygame.KEYUP:
            self._on_key_up(event.key)

        elif event.type == pygame.JOYBUTTONDOWN:
            self._on_gamepad_button(event.button, pressed=True)

        elif event.type == pygame.JOYBUTTONUP:
            self._on_gamepad_button(event.button, pressed=False)

    def update(self) -> None:
        """
        Update input state for new frame.

        Call this at the start of each fixed update.
        """
        self._state.actions_just_pressed = self._state.actions_pressed - self._prev_actions
        self._state.actions_just_released = self._prev_actions - self._state.actions_pressed
        self._state.keys_just_pressed = self._state.keys_pressed - self._prev_keys

        if self.event_bus:
            for action in self._state.actions_just_pressed:
                self.event_bus.publish(InputEvent.ACTION_PRESSED, action=action)
            for action in self._state.actions_just_released:
                self.event_bus.publish(InputEvent.ACTION_RELEASED, action=action)

        # Save current state for next frame
        self._prev_actions = self._state.actions_pressed.copy()
        self._prev_keys = self._state.keys_pressed.copy()

    def _on_key_down(self, key: int) -> None:
        self._state.keys_pressed.add(key)
        for action in self._reverse_key_bindings.get(key, []):
            self._state.actions_pressed.add(action)

    def _on_key_up(self, key: int) -> None:
        self._state.keys_pressed.discard(key)

        # Release an action only when none of its other keys is still held
        for action in self._reverse_key_bindings.get(key, []):
            still_pressed = any(
                other != key and other in self._state.keys_pressed
                for other in self._key_bindings.get(action, [])
            )
            if not still_pressed:
                self._state.actions_pressed.discard(action)

    def _on_gamepad_button(self, button: int, pressed: bool) -> None:
        for action, buttons in self._gamepad_bindings.items():
            if button in buttons:
                if pressed:
                    self._state.actions_pressed.add(action)
                else:
                    self._state.actions_pressed.discard(action)
