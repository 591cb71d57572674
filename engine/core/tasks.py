"""
Cooperative tasks driven by the game loop.

A task wraps a generator ("routine") that yields wait instructions.
The scheduler is ticked once per fixed update with the frame delta and
resumes each routine when its wait has finished. Nothing runs in
parallel: every routine step happens on the thread calling update().

Usage:
    def blink(light):
        while True:
            light.on = not light.on
            yield WaitForSeconds(0.5)

    scheduler = TaskScheduler()
    task = scheduler.start(blink(lamp), name="blink")

    # In the game loop
    scheduler.update(dt)

    # Later
    task.cancel()

Wait instructions:
    yield None                    # resume next tick
    yield 1.5                     # same as WaitForSeconds(1.5)
    yield WaitForSeconds(1.5)
    yield WaitWhile(audio.is_playing)
    fired = yield WaitUntil(pressed, timeout=0.5)   # False on timeout
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Generator, Optional

logger = logging.getLogger(__name__)

Routine = Generator[Any, Any, None]


class WaitInstruction(ABC):
    """
    Base class for everything a routine can yield.

    tick() is called once per scheduler update after the instruction was
    yielded; it returns True when the routine should resume. The value
    in `result` is sent back into the routine.
    """

    result: Any = None

    @abstractmethod
    def tick(self, dt: float) -> bool:
        pass


class WaitForSeconds(WaitInstruction):
    """Resume once at least `seconds` of game time have elapsed."""

    def __init__(self, seconds: float):
        self.seconds = max(0.0, float(seconds))
        self.elapsed = 0.0

    def tick(self, dt: float) -> bool:
        self.elapsed += dt
        return self.elapsed >= self.seconds

    def __repr__(self) -> str:
        return f"WaitForSeconds({self.seconds})"


class WaitUntil(WaitInstruction):
    """
    Resume when predicate() is true, or when `timeout` seconds pass.

    The routine receives True if the predicate fired and False if the
    timeout elapsed first.
    """

    def __init__(
        self,
        predicate: Callable[[], bool],
        timeout: Optional[float] = None,
    ):
        self.predicate = predicate
        self.timeout = timeout
        self.elapsed = 0.0

    def tick(self, dt: float) -> bool:
        if self.predicate():
            self.result = True
            return True

        self.elapsed += dt
        if self.timeout is not None and self.elapsed >= self.timeout:
            self.result = False
            return True

        return False


class WaitWhile(WaitUntil):
    """Resume once predicate() turns false."""

    def __init__(self, predicate: Callable[[], bool]):
        super().__init__(lambda: not predicate())


class Task:
    """
    A resumable routine.

    Attributes:
        name: Label used in logs
        error: Exception raised by the routine, if it failed
    """

    def __init__(
        self,
        routine: Routine,
        name: str = "",
        on_error: Optional[Callable[[Task, BaseException], None]] = None,
    ):
        self.name = name or getattr(routine, "__name__", "task")
        self.error: Optional[BaseException] = None
        self._routine = routine
        self._on_error = on_error
        self._wait: Optional[WaitInstruction] = None
        self._started = False
        self._running = False
        self._done = False
        self._cancelled = False

    @property
    def done(self) -> bool:
        """True once the routine returned, failed or was cancelled."""
        return self._done

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def alive(self) -> bool:
        return self._started and not self._done

    @property
    def waiting_on(self) -> Optional[WaitInstruction]:
        return self._wait

    def start(self) -> None:
        """Run the routine synchronously up to its first yield."""
        if self._started:
            return
        self._started = True
        self._advance(None)

    def update(self, dt: float) -> bool:
        """
        Advance the current wait by dt; resume the routine if it finished.

        Returns:
            True while the task is still alive
        """
        if not self.alive:
            return False

        if self._wait is not None:
            if not self._wait.tick(dt):
                return True
            value = self._wait.result
        else:
            value = None

        self._advance(value)
        return self.alive

    def cancel(self) -> None:
        """
        Stop the task immediately.

        When called from inside the routine's own step the generator is
        closed as soon as it reaches its next yield.
        """
        if self._done or self._cancelled:
            return

        self._cancelled = True
        self._wait = None

        if not self._running:
            self._routine.close()
            self._done = True

    def _advance(self, value: Any) -> None:
        self._running = True
        try:
            instruction = self._routine.send(value)
        except StopIteration:
            self._finish()
            return
        except Exception as e:
            self._fail(e)
            return
        finally:
            self._running = False

        if self._cancelled:
            self._routine.close()
            self._finish()
            return

        self._wait = self._coerce(instruction)

    def _coerce(self, instruction: Any) -> Optional[WaitInstruction]:
        if instruction is None or isinstance(instruction, WaitInstruction):
            return instruction
        if isinstance(instruction, (int, float)) and not isinstance(instruction, bool):
            return WaitForSeconds(instruction)

        error = TypeError(f"Task {self.name} yielded unsupported value: {instruction!r}")
        self._routine.close()
        self._fail(error)
        return None

    def _finish(self) -> None:
        self._done = True
        self._wait = None

    def _fail(self, error: BaseException) -> None:
        self.error = error
        self._finish()
        logger.error(f"Task {self.name} failed", exc_info=error)
        if self._on_error:
            self._on_error(self, error)

    def __repr__(self) -> str:
        state = "done" if self._done else f"waiting {self._wait!r}"
        return f"Task({self.name!r}, {state})"


class TaskScheduler:
    """
    Owns the live tasks and ticks them from the game loop.

    Tasks started during update() are first ticked on the following
    update, so a freshly started routine never skips its first wait.
    """

    def __init__(self):
        self._tasks: list[Task] = []
        self._elapsed: float = 0.0

    def start(
        self,
        routine: Routine,
        name: str = "",
        on_error: Optional[Callable[[Task, BaseException], None]] = None,
    ) -> Task:
        """
        Start a routine.

        The routine runs synchronously until its first yield before this
        method returns.
        """
        task = Task(routine, name=name, on_error=on_error)
        self._tasks.append(task)
        task.start()
        if task.done:
            self._tasks.remove(task)
        return task

    def update(self, dt: float) -> None:
        """Advance every live task by dt seconds."""
        self._elapsed += dt
        for task in list(self._tasks):
            task.update(dt)
        self._tasks = [t for t in self._tasks if not t.done]

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    @property
    def elapsed(self) -> float:
        """Total game time fed through update()."""
        return self._elapsed

    @property
    def tasks(self) -> list[Task]:
        return [t for t in self._tasks if not t.done]

    def __len__(self) -> int:
        return len(self.tasks)
