"""Review-session state machine for the two-pane browser.

Owns selection, focus, diff mode and diff scroll. Navigation keys are routed
through ``NAVIGATION_TABLE`` keyed on ``(Focus, DiffMode)`` so every pane/mode
combination has one explicit meaning. All operations are total: on an empty
catalog they leave state untouched.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .catalog import CommitRecord
from .changeset import ClassifiedLine, DiffMode, changeset_lines

PAGE_SIZE = 10

ChangesetFetcher = Callable[[str, DiffMode], str]


class Focus(enum.Enum):
    COMMIT_LIST = "commits"
    DIFF_PANE = "diff"


class NavTarget(enum.Enum):
    """What a line/page navigation key moves in a given state."""

    SELECTION = "selection"
    SCROLL = "scroll"


NAVIGATION_TABLE: dict[tuple[Focus, DiffMode], NavTarget] = {
    (Focus.COMMIT_LIST, DiffMode.HIDDEN): NavTarget.SELECTION,
    (Focus.COMMIT_LIST, DiffMode.STAT): NavTarget.SELECTION,
    (Focus.COMMIT_LIST, DiffMode.FULL): NavTarget.SELECTION,
    # Unreachable: hiding the diff returns focus to the list. Kept for totality.
    (Focus.DIFF_PANE, DiffMode.HIDDEN): NavTarget.SELECTION,
    (Focus.DIFF_PANE, DiffMode.STAT): NavTarget.SCROLL,
    (Focus.DIFF_PANE, DiffMode.FULL): NavTarget.SCROLL,
}


def clamp_scroll(offset: int, line_count: int) -> int:
    """Clamp ``offset`` into ``[0, max(1, line_count) - 1]``."""
    return max(0, min(offset, max(1, line_count) - 1))


@dataclass
class SessionState:
    commits: tuple[CommitRecord, ...]
    selected: int | None = None
    diff_mode: DiffMode = DiffMode.STAT
    diff_lines: tuple[ClassifiedLine, ...] = ()
    diff_scroll: int = 0
    focus: Focus = Focus.COMMIT_LIST
    should_quit: bool = False


class ReviewSession:
    """Mutating operations over one ``SessionState``.

    ``fetch_changeset`` is the version-control collaborator; its failures are
    converted to a sentinel line by ``changeset_lines`` and never escape.
    """

    def __init__(self, commits: Sequence[CommitRecord], fetch_changeset: ChangesetFetcher) -> None:
        snapshot = tuple(commits)
        self.state = SessionState(commits=snapshot, selected=0 if snapshot else None)
        self._fetch_changeset = fetch_changeset
        self.refresh_diff()

    @property
    def commits(self) -> tuple[CommitRecord, ...]:
        return self.state.commits

    def selected_commit(self) -> CommitRecord | None:
        idx = self.state.selected
        if idx is None or not (0 <= idx < len(self.state.commits)):
            return None
        return self.state.commits[idx]

    def nav_target(self) -> NavTarget:
        return NAVIGATION_TABLE[(self.state.focus, self.state.diff_mode)]

    def refresh_diff(self) -> None:
        """Regenerate classified lines for the current selection and mode."""
        state = self.state
        commit = self.selected_commit()
        if state.diff_mode is DiffMode.HIDDEN or commit is None:
            state.diff_lines = ()
        else:
            mode = state.diff_mode
            state.diff_lines = changeset_lines(lambda: self._fetch_changeset(commit.full_hash, mode))
        state.diff_scroll = clamp_scroll(state.diff_scroll, len(state.diff_lines))

    def _move_selection(self, delta: int) -> None:
        state = self.state
        count = len(state.commits)
        if count == 0:
            return
        current = state.selected if state.selected is not None else 0
        state.selected = (current + delta) % count
        state.diff_scroll = 0
        self.refresh_diff()

    def _scroll_by(self, delta: int) -> None:
        state = self.state
        state.diff_scroll = clamp_scroll(state.diff_scroll + delta, len(state.diff_lines))

    def select_next(self) -> None:
        """Move down the commit list (wrapping) or scroll the diff by one line."""
        if self.nav_target() is NavTarget.SCROLL:
            self._scroll_by(1)
        else:
            self._move_selection(1)

    def select_previous(self) -> None:
        """Move up the commit list (wrapping) or scroll the diff back one line."""
        if self.nav_target() is NavTarget.SCROLL:
            self._scroll_by(-1)
        else:
            self._move_selection(-1)

    def page_down(self) -> None:
        if self.nav_target() is NavTarget.SCROLL:
            self._scroll_by(PAGE_SIZE)

    def page_up(self) -> None:
        if self.nav_target() is NavTarget.SCROLL:
            self._scroll_by(-PAGE_SIZE)

    def cycle_diff_mode(self) -> None:
        """Advance hidden -> stat -> full -> hidden, resetting diff scroll."""
        state = self.state
        if not state.commits:
            return
        state.diff_mode = state.diff_mode.next()
        if state.diff_mode is DiffMode.HIDDEN:
            state.focus = Focus.COMMIT_LIST
        state.diff_scroll = 0
        self.refresh_diff()

    def toggle_focus(self) -> None:
        """Swap focus between panes; no effect while the diff pane is hidden."""
        state = self.state
        if not state.commits or state.diff_mode is DiffMode.HIDDEN:
            return
        state.focus = Focus.DIFF_PANE if state.focus is Focus.COMMIT_LIST else Focus.COMMIT_LIST

    def request_quit(self) -> None:
        self.state.should_quit = True

    def visible_lines(self, rows: int) -> tuple[ClassifiedLine, ...]:
        """Return up to ``rows`` classified lines starting at the scroll offset."""
        start = self.state.diff_scroll
        return self.state.diff_lines[start:start + max(0, rows)]

    def scroll_label(self) -> str:
        """Return `` [pos/total] `` for the diff title, empty when no lines."""
        total = len(self.state.diff_lines)
        if total == 0:
            return ""
        return f" [{self.state.diff_scroll + 1}/{total}] "
