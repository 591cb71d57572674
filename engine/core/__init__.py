"""
Core engine module.

Exports:
- EventBus, Event, Subscription: Event system
- TaskScheduler, Task, WaitForSeconds, WaitUntil, WaitWhile: Cooperative tasks
- Action: Input actions
"""

from engine.core.events import EventBus, Event, Subscription
from engine.core.tasks import (
    TaskScheduler,
    Task,
    WaitInstruction,
    WaitForSeconds,
    WaitUntil,
    WaitWhile,
)
from engine.core.actions import Action

__all__ = [
    # Events
    "EventBus",
    "Event",
    "Subscription",
    # Tasks
    "TaskScheduler",
    "Task",
    "WaitInstruction",
    "WaitForSeconds",
    "WaitUntil",
    "WaitWhile",
    # Input
    "Action",
]
