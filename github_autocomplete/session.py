"""One autocomplete session: keystrokes in, dropdown state out."""

import asyncio
import logging
from collections.abc import Callable

from .debounce import TypingAwareDebouncer
from .errors import SearchError
from .models import RateLimitSnapshot, ResultItem
from .orchestrator import SearchOrchestrator, error_message
from .selection import SelectionReducer, SelectionState
from .settings import get_settings

logger = logging.getLogger(__name__)


class SearchSession:
    """Wires the input box to the debouncer, the orchestrator and the reducer.

    Each debounced commit gets a new request token and cancels the search it
    supersedes; a result is applied only if its token is still current.
    """

    def __init__(
        self,
        orchestrator: SearchOrchestrator,
        min_chars: int | None = None,
        debounce_ms: int | None = None,
        typing_threshold_ms: int | None = None,
        on_select: Callable[[ResultItem], None] | None = None,
        on_change: Callable[[SelectionState], None] | None = None,
    ):
        settings = get_settings()
        self.orchestrator = orchestrator
        self.tracker = orchestrator.tracker
        self.on_change = on_change
        self.reducer = SelectionReducer(
            min_chars=settings.min_chars if min_chars is None else min_chars,
            on_select=on_select,
        )
        debounce_ms = settings.debounce_ms if debounce_ms is None else debounce_ms
        typing_threshold_ms = settings.typing_threshold_ms if typing_threshold_ms is None else typing_threshold_ms
        self.debouncer = TypingAwareDebouncer(
            self._on_commit,
            delay=debounce_ms / 1000,
            quiet=typing_threshold_ms / 1000,
        )
        self._token = 0
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> SelectionState:
        return self.reducer.state

    @property
    def request_token(self) -> int:
        return self._token

    def start(self) -> None:
        """Start the tracker's reset check on the running loop."""
        self.tracker.start_reset_check()

    def subscribe_rate_limit(self, callback: Callable[[RateLimitSnapshot], None]) -> Callable[[], None]:
        return self.tracker.subscribe(callback)

    def _emit(self) -> SelectionState:
        state = self.reducer.state
        if self.on_change is not None:
            self.on_change(state)
        return state

    # Input

    def input(self, value: str) -> SelectionState:
        self.reducer.input_changed(value)
        if len(value.strip()) < self.reducer.min_chars:
            self.debouncer.cancel()
            self._abandon()
        else:
            self.debouncer.push(value)
        return self._emit()

    def _on_commit(self, value: str) -> None:
        query = value.strip()
        if len(query) < self.reducer.min_chars:
            return
        self._abandon()
        token = self._token
        self.reducer.committed()
        self._emit()
        self._task = asyncio.get_running_loop().create_task(self._run(token, query))

    def _abandon(self) -> None:
        """Invalidate the in-flight search, if any."""
        self._token += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, token: int, query: str) -> None:
        try:
            results = await self.orchestrator.search(query)
        except SearchError as e:
            if token != self._token:
                return
            logger.debug("Search for %r failed: %s", query, e)
            self.reducer.failed(error_message(e))
            self._emit()
            return
        except Exception as e:
            logger.exception("Unexpected failure searching for %r", query)
            if token != self._token:
                return
            self.reducer.failed(error_message(e))
            self._emit()
            return
        if token != self._token:
            logger.debug("Discarding stale results for %r", query)
            return
        self.reducer.succeeded(results)
        self._emit()

    async def wait(self) -> None:
        """Wait for the in-flight search, if any, to finish."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    # Commands

    def reset(self) -> SelectionState:
        self.debouncer.cancel()
        self._abandon()
        self.reducer.reset()
        return self._emit()

    async def close(self) -> None:
        task = self._task
        self.debouncer.cancel()
        self._abandon()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    def arrow_down(self) -> SelectionState:
        self.reducer.arrow_down()
        return self._emit()

    def arrow_up(self) -> SelectionState:
        self.reducer.arrow_up()
        return self._emit()

    def enter(self) -> ResultItem | None:
        return self.reducer.enter()

    def hover(self, index: int) -> SelectionState:
        self.reducer.hover(index)
        return self._emit()

    def click(self, index: int) -> ResultItem | None:
        item = self.reducer.click(index)
        self._emit()
        return item

    def escape(self) -> SelectionState:
        self.reducer.escape()
        return self._emit()

    def blur(self) -> SelectionState:
        self.reducer.blur()
        return self._emit()

    def focus(self) -> SelectionState:
        self.reducer.focus()
        return self._emit()

    def dismiss_error(self) -> SelectionState:
        self.reducer.dismiss_error()
        return self._emit()
