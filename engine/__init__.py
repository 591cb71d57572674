"""
Dialogue Engine runtime services.

Generic building blocks the narrative framework runs on: a typed event
bus, cooperative tasks ticked by the game loop, action-based input,
voice audio and durable key/value preferences.

Quick Start:
    from engine.core import EventBus, TaskScheduler

    events = EventBus()
    scheduler = TaskScheduler()

    # Game loop
    scheduler.update(dt)
"""

__version__ = "0.1.0"

from engine.core import (
    EventBus,
    Event,
    Subscription,
    TaskScheduler,
    Task,
    WaitForSeconds,
    WaitUntil,
    WaitWhile,
    Action,
)

__all__ = [
    # Events
    "EventBus",
    "Event",
    "Subscription",
    # Tasks
    "TaskScheduler",
    "Task",
    "WaitForSeconds",
    "WaitUntil",
    "WaitWhile",
    # Input
    "Action",
]
