"""Tests for the review-session state machine.

Covers wrap-around selection, diff-mode cycling, focus rules, and scroll
clamping across every pane/mode combination.
"""

from __future__ import annotations

import unittest

from arf.catalog import CommitRecord
from arf.changeset import FAILED_CHANGESET_TEXT, DiffMode, LineKind
from arf.errors import ChangesetUnavailableError
from arf.session import NAVIGATION_TABLE, PAGE_SIZE, Focus, NavTarget, ReviewSession, clamp_scroll


def _commits(count: int) -> tuple[CommitRecord, ...]:
    return tuple(
        CommitRecord(full_hash=f"{idx:040x}", display_hash=f"{idx:07x}", summary=f"commit {idx}")
        for idx in range(count)
    )


class _RecordingFetcher:
    def __init__(self, line_count: int = 30) -> None:
        self.line_count = line_count
        self.calls: list[tuple[str, DiffMode]] = []

    def __call__(self, commit_hash: str, mode: DiffMode) -> str:
        self.calls.append((commit_hash, mode))
        return "\n".join(f"+{mode.value} line {idx}" for idx in range(self.line_count))


class SessionInitTests(unittest.TestCase):
    def test_non_empty_catalog_selects_first_commit_with_stat_diff(self) -> None:
        fetch = _RecordingFetcher()
        session = ReviewSession(_commits(3), fetch)

        state = session.state
        self.assertEqual(state.selected, 0)
        self.assertIs(state.diff_mode, DiffMode.STAT)
        self.assertIs(state.focus, Focus.COMMIT_LIST)
        self.assertEqual(state.diff_scroll, 0)
        self.assertFalse(state.should_quit)
        self.assertEqual(fetch.calls, [(f"{0:040x}", DiffMode.STAT)])
        self.assertEqual(len(state.diff_lines), 30)

    def test_empty_catalog_has_no_selection_and_no_lines(self) -> None:
        fetch = _RecordingFetcher()
        session = ReviewSession((), fetch)

        self.assertIsNone(session.state.selected)
        self.assertIsNone(session.selected_commit())
        self.assertEqual(session.state.diff_lines, ())
        self.assertEqual(fetch.calls, [])


class SelectionTests(unittest.TestCase):
    def test_selection_wraps_in_both_directions(self) -> None:
        session = ReviewSession(_commits(3), _RecordingFetcher())

        session.select_previous()
        self.assertEqual(session.state.selected, 2)
        session.select_next()
        self.assertEqual(session.state.selected, 0)

    def test_full_cycle_of_next_returns_to_start(self) -> None:
        session = ReviewSession(_commits(5), _RecordingFetcher())
        for _ in range(5):
            session.select_next()
        self.assertEqual(session.state.selected, 0)

    def test_selection_change_resets_scroll_and_refetches(self) -> None:
        fetch = _RecordingFetcher()
        session = ReviewSession(_commits(2), fetch)
        session.toggle_focus()
        session.page_down()
        self.assertEqual(session.state.diff_scroll, PAGE_SIZE)
        session.toggle_focus()

        session.select_next()

        self.assertEqual(session.state.diff_scroll, 0)
        self.assertEqual(fetch.calls[-1], (f"{1:040x}", DiffMode.STAT))

    def test_empty_catalog_operations_are_noops(self) -> None:
        session = ReviewSession((), _RecordingFetcher())
        for action in (
            session.select_next,
            session.select_previous,
            session.page_down,
            session.page_up,
            session.toggle_focus,
            session.cycle_diff_mode,
        ):
            action()
        self.assertIsNone(session.state.selected)
        self.assertIs(session.state.focus, Focus.COMMIT_LIST)
        self.assertIs(session.state.diff_mode, DiffMode.STAT)
        self.assertEqual(session.state.diff_scroll, 0)
        self.assertEqual(session.state.diff_lines, ())

    def test_page_keys_do_not_move_selection_in_commit_list(self) -> None:
        session = ReviewSession(_commits(20), _RecordingFetcher())
        session.page_down()
        self.assertEqual(session.state.selected, 0)
        session.page_up()
        self.assertEqual(session.state.selected, 0)


class DiffModeTests(unittest.TestCase):
    def test_three_cycles_return_to_original_mode(self) -> None:
        session = ReviewSession(_commits(1), _RecordingFetcher())
        seen = []
        for _ in range(3):
            session.cycle_diff_mode()
            seen.append(session.state.diff_mode)
        self.assertEqual(seen, [DiffMode.FULL, DiffMode.HIDDEN, DiffMode.STAT])

    def test_hiding_diff_forces_commit_list_focus_and_clears_lines(self) -> None:
        session = ReviewSession(_commits(1), _RecordingFetcher())
        session.toggle_focus()
        self.assertIs(session.state.focus, Focus.DIFF_PANE)

        session.cycle_diff_mode()
        session.cycle_diff_mode()

        self.assertIs(session.state.diff_mode, DiffMode.HIDDEN)
        self.assertIs(session.state.focus, Focus.COMMIT_LIST)
        self.assertEqual(session.state.diff_lines, ())

    def test_mode_change_resets_scroll_and_refetches_for_new_mode(self) -> None:
        fetch = _RecordingFetcher()
        session = ReviewSession(_commits(1), fetch)
        session.toggle_focus()
        session.page_down()

        session.cycle_diff_mode()

        self.assertEqual(session.state.diff_scroll, 0)
        self.assertEqual(fetch.calls[-1][1], DiffMode.FULL)
        self.assertTrue(session.state.diff_lines[0].text.startswith("+full"))

    def test_fetch_failure_shows_single_sentinel_line(self) -> None:
        def failing(commit_hash: str, mode: DiffMode) -> str:
            raise ChangesetUnavailableError("unknown revision")

        with self.assertLogs("arf.changeset", level="WARNING"):
            session = ReviewSession(_commits(1), failing)

        self.assertEqual(len(session.state.diff_lines), 1)
        line = session.state.diff_lines[0]
        self.assertIs(line.kind, LineKind.PLAIN)
        self.assertTrue(line.text.startswith(FAILED_CHANGESET_TEXT))


class FocusTests(unittest.TestCase):
    def test_toggle_focus_is_noop_while_diff_hidden(self) -> None:
        session = ReviewSession(_commits(2), _RecordingFetcher())
        session.cycle_diff_mode()
        session.cycle_diff_mode()

        session.toggle_focus()

        self.assertIs(session.state.focus, Focus.COMMIT_LIST)

    def test_toggle_focus_swaps_panes(self) -> None:
        session = ReviewSession(_commits(2), _RecordingFetcher())
        session.toggle_focus()
        self.assertIs(session.state.focus, Focus.DIFF_PANE)
        session.toggle_focus()
        self.assertIs(session.state.focus, Focus.COMMIT_LIST)


class DiffScrollTests(unittest.TestCase):
    def _focused_session(self, line_count: int) -> ReviewSession:
        session = ReviewSession(_commits(3), _RecordingFetcher(line_count))
        session.toggle_focus()
        return session

    def test_line_navigation_scrolls_without_changing_selection(self) -> None:
        session = self._focused_session(30)
        session.select_next()
        session.select_next()
        self.assertEqual(session.state.diff_scroll, 2)
        self.assertEqual(session.state.selected, 0)
        session.select_previous()
        self.assertEqual(session.state.diff_scroll, 1)

    def test_scroll_clamps_at_both_ends_without_wrapping(self) -> None:
        session = self._focused_session(25)
        session.select_previous()
        self.assertEqual(session.state.diff_scroll, 0)

        for _ in range(5):
            session.page_down()
        self.assertEqual(session.state.diff_scroll, 24)

        session.select_next()
        self.assertEqual(session.state.diff_scroll, 24)

        session.page_up()
        self.assertEqual(session.state.diff_scroll, 14)

    def test_scroll_stays_in_range_after_every_operation(self) -> None:
        session = self._focused_session(12)
        actions = [
            session.page_down,
            session.select_next,
            session.page_down,
            session.toggle_focus,
            session.select_next,
            session.cycle_diff_mode,
            session.toggle_focus,
            session.page_down,
            session.cycle_diff_mode,
            session.cycle_diff_mode,
            session.page_up,
        ]
        for action in actions:
            action()
            upper = max(1, len(session.state.diff_lines)) - 1
            self.assertGreaterEqual(session.state.diff_scroll, 0)
            self.assertLessEqual(session.state.diff_scroll, upper)

    def test_visible_lines_and_scroll_label_follow_offset(self) -> None:
        session = self._focused_session(30)
        session.page_down()

        visible = session.visible_lines(5)

        self.assertEqual(len(visible), 5)
        self.assertEqual(visible[0].text, "+stat line 10")
        self.assertEqual(session.scroll_label(), " [11/30] ")

    def test_scroll_label_empty_without_lines(self) -> None:
        session = ReviewSession((), _RecordingFetcher())
        self.assertEqual(session.scroll_label(), "")


class NavigationTableTests(unittest.TestCase):
    def test_every_focus_and_mode_pair_has_a_target(self) -> None:
        for focus in Focus:
            for mode in DiffMode:
                self.assertIn((focus, mode), NAVIGATION_TABLE)

    def test_only_visible_diff_pane_scrolls(self) -> None:
        scrolling = {key for key, target in NAVIGATION_TABLE.items() if target is NavTarget.SCROLL}
        self.assertEqual(
            scrolling,
            {(Focus.DIFF_PANE, DiffMode.STAT), (Focus.DIFF_PANE, DiffMode.FULL)},
        )

    def test_clamp_scroll_bounds(self) -> None:
        self.assertEqual(clamp_scroll(-3, 10), 0)
        self.assertEqual(clamp_scroll(50, 10), 9)
        self.assertEqual(clamp_scroll(4, 0), 0)


class QuitTests(unittest.TestCase):
    def test_request_quit_sets_flag_only(self) -> None:
        session = ReviewSession(_commits(2), _RecordingFetcher())
        session.request_quit()
        self.assertTrue(session.state.should_quit)
        self.assertEqual(session.state.selected, 0)


if __name__ == "__main__":
    unittest.main()
