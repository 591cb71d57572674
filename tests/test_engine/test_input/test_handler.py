import pytest
from types import SimpleNamespace
from engine.input.handler import InputHandler, InputEvent
from engine.core.actions import Action
import pygame

def key_down(key):
    return SimpleNamespace(type=pygame.KEYDOWN, key=key)

def key_up(key):
    return SimpleNamespace(type=pygame.KEYUP, key=key)

def test_action_state(mock_pygame):
    handler = InputHandler()
    # Manually inject state
    handler._state.actions_pressed.add(Action.MOVE_UP)

    assert handler.is_action_pressed(Action.MOVE_UP)
    assert not handler.is_action_pressed(Action.MOVE_DOWN)

def test_confirm_just_pressed_for_one_frame(mock_pygame):
    handler = InputHandler()

    handler.process_event(key_down(pygame.K_RETURN))
    handler.update()
    assert handler.is_action_just_pressed(Action.CONFIRM)
    assert handler.any_action_just_pressed()

    # Still held next frame, but no longer "just" pressed
    handler.update()
    assert handler.is_action_pressed(Action.CONFIRM)
    assert not handler.is_action_just_pressed(Action.CONFIRM)
    assert not handler.any_action_just_pressed()

    handler.process_event(key_up(pygame.K_RETURN))
    handler.update()
    assert handler.is_action_just_released(Action.CONFIRM)

def test_unbound_key_counts_as_any_input(mock_pygame):
    handler = InputHandler()

    handler.process_event(key_down(pygame.K_F12))
    handler.update()

    assert handler.any_action_just_pressed()
    assert handler.is_key_pressed(pygame.K_F12)

def test_action_stays_pressed_while_other_key_held(mock_pygame):
    handler = InputHandler()

    handler.process_event(key_down(pygame.K_RETURN))
    handler.process_event(key_down(pygame.K_SPACE))
    handler.process_event(key_up(pygame.K_RETURN))
    handler.update()

    assert handler.is_action_pressed(Action.CONFIRM)

def test_bind_and_unbind_key(mock_pygame):
    handler = InputHandler()

    handler.bind_key(Action.CONFIRM, pygame.K_z)
    assert pygame.K_z in handler.get_bindings(Action.CONFIRM)

    handler.process_event(key_down(pygame.K_z))
    handler.update()
    assert handler.is_action_just_pressed(Action.CONFIRM)

    handler.unbind_key(Action.CONFIRM, pygame.K_z)
    assert pygame.K_z not in handler.get_bindings(Action.CONFIRM)

def test_action_events_published(mock_pygame, event_bus):
    received = []
    def on_pressed(event):
        received.append(event["action"])

    event_bus.subscribe(InputEvent.ACTION_PRESSED, on_pressed)
    handler = InputHandler(event_bus)

    handler.process_event(key_down(pygame.K_SPACE))
    handler.update()

    assert Action.CONFIRM in received
