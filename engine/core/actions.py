"""
Input action definitions.

Actions abstract raw input (keys, buttons) into semantic actions.
Dialogue code asks for Actions, never raw keys, so skip and advance
bindings can be changed without touching playback logic.

Usage:
    # Skip the typewriter effect
    if input.is_action_just_pressed(Action.CONFIRM):
        ...

    # Any key/button acknowledges a finished line
    if input.any_action_just_pressed():
        ...
"""

from enum import Enum, auto

import pygame


class Action(Enum):
    """
    Semantic input actions.

    Each action can be mapped to multiple input sources
    (keyboard, gamepad).
    """

    # Menu navigation
    MENU_UP = auto()
    MENU_DOWN = auto()
    CONFIRM = auto()
    CANCEL = auto()
    MENU = auto()

    # Movement
    MOVE_UP = auto()
    MOVE_DOWN = auto()
    MOVE_LEFT = auto()
    MOVE_RIGHT = auto()

    # World
    INTERACT = auto()
    RUN = auto()

    # System
    PAUSE = auto()
    QUICKSAVE = auto()
    QUICKLOAD = auto()


DEFAULT_KEY_BINDINGS: dict[Action, list[int]] = {
    # Menu
    Action.MENU_UP: [pygame.K_UP, pygame.K_w],
    Action.MENU_DOWN: [pygame.K_DOWN, pygame.K_s],
    Action.CONFIRM: [pygame.K_RETURN, pygame.K_SPACE],
    Action.CANCEL: [pygame.K_ESCAPE, pygame.K_x],
    Action.MENU: [pygame.K_TAB],

    # Movement
    Action.MOVE_UP: [pygame.K_UP, pygame.K_w],
    Action.MOVE_DOWN: [pygame.K_DOWN, pygame.K_s],
    Action.MOVE_LEFT: [pygame.K_LEFT, pygame.K_a],
    Action.MOVE_RIGHT: [pygame.K_RIGHT, pygame.K_d],

    # World
    Action.INTERACT: [pygame.K_f, pygame.K_e],
    Action.RUN: [pygame.K_LSHIFT, pygame.K_RSHIFT],

    # System
    Action.PAUSE: [pygame.K_p, pygame.K_ESCAPE],
    Action.QUICKSAVE: [pygame.K_F5],
    Action.QUICKLOAD: [pygame.K_F9],
}

# Gamepad button bindings (SDL controller layout)
DEFAULT_GAMEPAD_BINDINGS: dict[Action, list[int]] = {
    Action.CONFIRM: [0],  # A button
    Action.CANCEL: [1],   # B button
    Action.INTERACT: [2], # X button
    Action.RUN: [4],      # Left bumper
    Action.PAUSE: [7],    # Start
}
