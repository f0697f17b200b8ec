"""Dropdown state: what is shown, what is highlighted, whether it is open."""

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from .models import ResultItem


class Phase(str, Enum):
    IDLE = "idle"
    GATED = "gated"  # query shorter than min_chars
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    ERRORED = "errored"


@dataclass(frozen=True)
class SelectionState:
    query: str = ""
    results: tuple[ResultItem, ...] = ()
    is_loading: bool = False
    error: str | None = None
    selected_index: int = -1
    dropdown_open: bool = False
    phase: Phase = Phase.IDLE

    @property
    def selected(self) -> ResultItem | None:
        if 0 <= self.selected_index < len(self.results):
            return self.results[self.selected_index]
        return None


class SelectionReducer:
    """State machine behind the dropdown.

    Every transition replaces ``state`` with a new frozen ``SelectionState``
    and returns it. Escape and blur only close the dropdown; query, results
    and highlight survive so ``focus`` can restore the same view.
    """

    def __init__(self, min_chars: int = 3, on_select: Callable[[ResultItem], None] | None = None):
        self.min_chars = min_chars
        self.on_select = on_select
        self.state = SelectionState()

    def _set(self, **changes) -> SelectionState:
        self.state = replace(self.state, **changes)
        return self.state

    def _is_searchable(self, query: str) -> bool:
        return len(query.strip()) >= self.min_chars

    def _should_open(self, query: str, results, error: str | None) -> bool:
        return self._is_searchable(query) or len(results) > 0 or error is not None

    # Search lifecycle

    def input_changed(self, value: str) -> SelectionState:
        if not self._is_searchable(value):
            return self._set(
                query=value,
                results=(),
                is_loading=False,
                error=None,
                selected_index=-1,
                dropdown_open=False,
                phase=Phase.GATED if value.strip() else Phase.IDLE,
            )
        return self._set(
            query=value,
            is_loading=True,
            error=None,
            selected_index=-1,
            dropdown_open=True,
            phase=Phase.LOADING,
        )

    def committed(self) -> SelectionState:
        """A debounced query was sent to the orchestrator."""
        if not self._is_searchable(self.state.query):
            return self.state
        return self._set(is_loading=True, error=None, phase=Phase.LOADING)

    def succeeded(self, results: list[ResultItem]) -> SelectionState:
        results = tuple(results)
        return self._set(
            results=results,
            is_loading=False,
            error=None,
            selected_index=-1,
            dropdown_open=self._should_open(self.state.query, results, None),
            phase=Phase.READY if results else Phase.EMPTY,
        )

    def failed(self, message: str) -> SelectionState:
        return self._set(
            results=(),
            is_loading=False,
            error=message,
            selected_index=-1,
            dropdown_open=True,
            phase=Phase.ERRORED,
        )

    def dismiss_error(self) -> SelectionState:
        if self.state.error is None:
            return self.state
        query = self.state.query
        return self._set(
            error=None,
            dropdown_open=self._should_open(query, self.state.results, None),
            phase=Phase.EMPTY if self._is_searchable(query) else Phase.IDLE,
        )

    def reset(self) -> SelectionState:
        self.state = SelectionState()
        return self.state

    # Keyboard and pointer

    def arrow_down(self) -> SelectionState:
        count = len(self.state.results)
        if count == 0:
            return self.state
        if not self.state.dropdown_open:
            return self._set(dropdown_open=True)
        index = self.state.selected_index
        return self._set(selected_index=index + 1 if index < count - 1 else 0)

    def arrow_up(self) -> SelectionState:
        count = len(self.state.results)
        if count == 0:
            return self.state
        if not self.state.dropdown_open:
            return self._set(dropdown_open=True)
        index = self.state.selected_index
        return self._set(selected_index=index - 1 if index > 0 else count - 1)

    def hover(self, index: int) -> SelectionState:
        if not 0 <= index < len(self.state.results):
            index = -1
        return self._set(selected_index=index)

    def enter(self) -> ResultItem | None:
        """Commit the highlighted result. The dropdown stays open."""
        if not self.state.dropdown_open:
            return None
        item = self.state.selected
        if item is not None and self.on_select is not None:
            self.on_select(item)
        return item

    def click(self, index: int) -> ResultItem | None:
        self.hover(index)
        return self.enter()

    def escape(self) -> SelectionState:
        if not self.state.dropdown_open:
            return self.state
        return self._set(dropdown_open=False)

    def blur(self) -> SelectionState:
        return self._set(dropdown_open=False)

    def focus(self) -> SelectionState:
        state = self.state
        return self._set(dropdown_open=self._should_open(state.query, state.results, state.error))
