"""Typing-aware debouncing of the search input."""

import asyncio
from collections.abc import Callable


class TypingAwareDebouncer:
    """Commit the latest value once typing pauses, or after ``delay`` at most.

    Two timers run per burst of changes:

    - the quiet timer, restarted on every change, commits after ``quiet``
      seconds of silence;
    - the deadline, started by the first change of a burst and never
      restarted, commits ``delay`` seconds later so continuous typing still
      produces a commit per ``delay``.

    Whichever fires first commits and cancels the other. Must be used from a
    running event loop.
    """

    def __init__(self, on_commit: Callable[[str], None], delay: float, quiet: float):
        self.on_commit = on_commit
        self.delay = delay
        self.quiet = quiet
        self._value: str | None = None
        self._pending = False
        self._deadline: asyncio.TimerHandle | None = None
        self._quiet_timer: asyncio.TimerHandle | None = None

    def push(self, value: str) -> None:
        """Record a change and (re)arm the timers."""
        loop = asyncio.get_running_loop()
        self._value = value
        self._pending = True
        if self._deadline is None:
            self._deadline = loop.call_later(self.delay, self._commit)
        if self._quiet_timer is not None:
            self._quiet_timer.cancel()
        self._quiet_timer = loop.call_later(self.quiet, self._commit)

    def cancel(self) -> None:
        """Drop the pending value and every scheduled timer."""
        self._cancel_timers()
        self._pending = False
        self._value = None

    def _cancel_timers(self) -> None:
        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None
        if self._quiet_timer is not None:
            self._quiet_timer.cancel()
            self._quiet_timer = None

    def _commit(self) -> None:
        self._cancel_timers()
        if not self._pending:
            return
        self._pending = False
        self.on_commit(self._value)
