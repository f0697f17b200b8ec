"""Process-wide GitHub quota tracker with persistence and automatic reset."""

import asyncio
import json
import logging
import time
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from .errors import StorageUnavailable
from .models import (
    AUTHENTICATED_LIMIT,
    SEARCH_WINDOW_SECONDS,
    UNAUTHENTICATED_LIMIT,
    RateLimitSnapshot,
)
from .settings import get_settings
from .storage import Storage
from .utils import format_countdown

logger = logging.getLogger(__name__)

RATE_LIMIT_KEY = "github_rate_limit_info"
RATE_LIMIT_EXCEEDED_KEY = "github_rate_limit_exceeded"

RATE_LIMIT_PHRASES = ("rate limit", "api rate", "api limit")

RESET_CHECK_INTERVAL = 1.0  # seconds between automatic reset checks

RateLimitCallback = Callable[[RateLimitSnapshot], None]


def is_rate_limit_error(message: str) -> bool:
    lowered = message.lower()
    return any(phrase in lowered for phrase in RATE_LIMIT_PHRASES)


def format_reset_time(reset: int) -> str:
    if reset <= 0:
        return ""
    return time.strftime("%X", time.localtime(reset))


class RateLimitTracker:
    """Quota state machine: Available or Exceeded.

    Exceeded is a latch. It engages when ``remaining`` reaches zero or a
    rate-limit error is reported, and clears only once the clock passes
    ``reset`` (see ``check_reset``) or on an explicit ``reset``/credential
    change. Every mutation is persisted before subscribers are notified.
    """

    def __init__(self, storage: Storage | None = None, clock: Callable[[], float] = time.time):
        self.storage = storage
        self.clock = clock
        self._snapshot = RateLimitSnapshot()
        self._latched = False
        self._subscribers: list[RateLimitCallback] = []
        self._reset_task: asyncio.Task | None = None
        self._load()

    @property
    def snapshot(self) -> RateLimitSnapshot:
        return self._snapshot

    @property
    def exceeded(self) -> bool:
        return self._latched or self._snapshot.remaining <= 0

    def _now(self) -> int:
        return int(self.clock())

    def seconds_until_reset(self) -> int:
        """Seconds until the quota window resets, 0 if not limited."""
        if not self.exceeded or self._snapshot.reset <= 0:
            return 0
        return max(0, self._snapshot.reset - self._now())

    def countdown(self) -> str:
        return format_countdown(self.seconds_until_reset())

    # Persistence

    def _load(self) -> None:
        if self.storage is None:
            return
        try:
            raw_info = self.storage.read(RATE_LIMIT_KEY)
            raw_exceeded = self.storage.read(RATE_LIMIT_EXCEEDED_KEY)
        except StorageUnavailable as e:
            logger.warning("Could not load rate limit state: %s", e)
            return
        if raw_info is None:
            return
        try:
            snapshot = RateLimitSnapshot.from_dict(json.loads(raw_info))
        except (ValueError, KeyError, TypeError):
            logger.debug("Ignoring unparseable rate limit snapshot")
            return

        if snapshot.reset > 0 and self._now() >= snapshot.reset:
            # Window already over, start fresh
            self._forget()
            return

        latched = raw_exceeded == "true" or snapshot.exceeded
        if latched and not snapshot.exceeded:
            snapshot = replace(snapshot, exceeded=True, remaining=0)
        self._snapshot = snapshot
        self._latched = latched

    def _save(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.write(RATE_LIMIT_KEY, json.dumps(self._snapshot.to_dict()))
            self.storage.write(RATE_LIMIT_EXCEEDED_KEY, "true" if self._latched else "false")
        except StorageUnavailable as e:
            logger.warning("Could not save rate limit state: %s", e)

    def _forget(self) -> None:
        try:
            self.storage.remove(RATE_LIMIT_KEY)
            self.storage.remove(RATE_LIMIT_EXCEEDED_KEY)
        except StorageUnavailable as e:
            logger.warning("Could not clear rate limit state: %s", e)

    # Observers

    def subscribe(self, callback: RateLimitCallback) -> Callable[[], None]:
        """Register ``callback`` and replay the current snapshot to it right away.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)
        callback(self._snapshot)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self._snapshot
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Rate limit subscriber failed")

    # Mutations

    def update(self, **changes) -> RateLimitSnapshot:
        """Merge ``changes`` into the snapshot, persist and broadcast it.

        Passing ``exceeded=False`` never releases the latch; use ``reset``.
        """
        snapshot = replace(self._snapshot, **changes)
        was_latched = self._latched
        if snapshot.remaining <= 0 or changes.get("exceeded"):
            self._latched = True
        if self._latched:
            snapshot = replace(snapshot, exceeded=True)
            if snapshot.reset <= self._now():
                # No known window end, assume one search window from now
                reset = self._now() + SEARCH_WINDOW_SECONDS
                snapshot = replace(snapshot, reset=reset, reset_time_string=format_reset_time(reset))
        else:
            snapshot = replace(snapshot, exceeded=False)
        self._snapshot = snapshot
        if self._latched and not was_latched:
            logger.info("GitHub rate limit exceeded, resets at %s", snapshot.reset_time_string)
        self._save()
        self._notify()
        return snapshot

    def observe_response(self, url: str, headers) -> RateLimitSnapshot:
        """Account for one completed request.

        Quota headers are authoritative when all three are present; otherwise
        the local estimate drops by one.
        """
        is_search = "/search/" in str(url)
        try:
            limit = int(headers["x-ratelimit-limit"])
            remaining = int(headers["x-ratelimit-remaining"])
            reset = int(headers["x-ratelimit-reset"])
        except (KeyError, TypeError, ValueError):
            return self.update(
                remaining=max(0, self._snapshot.remaining - 1),
                is_search_api=is_search,
            )
        return self.update(
            limit=limit,
            remaining=max(0, remaining),
            reset=reset,
            reset_time_string=format_reset_time(reset),
            is_search_api=is_search,
        )

    def mark_exceeded(self) -> RateLimitSnapshot:
        return self.update(exceeded=True, remaining=0)

    def report_error(self, message: str) -> bool:
        """Engage the latch if ``message`` reads like a rate-limit failure."""
        if is_rate_limit_error(message):
            self.mark_exceeded()
            return True
        return False

    def reset(self, limit: int | None = None) -> RateLimitSnapshot:
        """Release the latch and restore a full quota."""
        limit = self._snapshot.limit if limit is None else limit
        self._latched = False
        self._snapshot = replace(
            self._snapshot,
            limit=limit,
            remaining=limit,
            reset=0,
            reset_time_string="",
            exceeded=False,
        )
        self._save()
        self._notify()
        return self._snapshot

    def configure_credential(self, token: str | None) -> RateLimitSnapshot:
        limit = AUTHENTICATED_LIMIT if token else UNAUTHENTICATED_LIMIT
        logger.info("Rate limit configured for %s requests/minute", limit)
        return self.reset(limit=limit)

    def check_reset(self) -> bool:
        """Release the latch if the reset time has passed. Returns True if it did."""
        if not self.exceeded:
            return False
        reset = self._snapshot.reset
        if reset > 0 and self._now() >= reset:
            logger.info("GitHub rate limit window reset")
            self.reset()
            return True
        return False

    # Reset tick

    def start_reset_check(self, interval: float = RESET_CHECK_INTERVAL) -> asyncio.Task:
        """Start the recurring reset check on the running loop.

        Calling it again while the loop is alive returns the existing task.
        """
        if self._reset_task is None or self._reset_task.done():
            self._reset_task = asyncio.get_running_loop().create_task(self._reset_loop(interval))
        return self._reset_task

    def stop_reset_check(self) -> None:
        if self._reset_task is not None:
            self._reset_task.cancel()
            self._reset_task = None

    async def _reset_loop(self, interval: float) -> None:
        while True:
            self.check_reset()
            await asyncio.sleep(interval)


# Tracker instances keyed by storage directory
_trackers: dict[str, RateLimitTracker] = {}


def get_tracker(storage_dir: Path | None = None) -> RateLimitTracker:
    """Get or create the process-wide tracker for a storage directory."""
    root = Path(storage_dir or get_settings().storage_dir)
    key = str(root)
    if key not in _trackers:
        _trackers[key] = RateLimitTracker(Storage(root))
    return _trackers[key]


def reset_trackers() -> None:
    """Drop every process-wide tracker, stopping their reset checks."""
    for tracker in _trackers.values():
        tracker.stop_reset_check()
    _trackers.clear()
