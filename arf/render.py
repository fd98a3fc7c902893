"""Frame rendering for the browse session.

Composes the commit list, reasoning panel, diff pane and help bar into one
full-screen ANSI frame. Rendering reads session state and never mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass

from .ansi import clip_ansi_line, display_width, pad_ansi_line, sanitize_terminal_text, wrap_plain_text
from .catalog import CommitRecord
from .changeset import DiffMode
from .keys import HELP_TEXT
from .records import AnnotationEntry
from .session import Focus, ReviewSession
from .ui_theme import UITheme

NO_RECORD_TEXT = "(no ARF record for this commit)"
NO_SELECTION_TEXT = "No commit selected"
NO_COMMITS_TEXT = "(no commits)"
HIGHLIGHT_SYMBOL = "→ "
ANNOTATED_MARK = "●"
COMMIT_LIST_PERCENT = 40
RECORD_SEPARATOR = "---"


@dataclass(frozen=True)
class PaneRect:
    width: int
    height: int


def split_percent(total: int, percent: int) -> tuple[int, int]:
    """Split ``total`` cells into ``percent``/remainder parts."""
    first = (total * percent) // 100
    return first, total - first


def format_commit_item(commit: CommitRecord) -> str:
    marker = ANNOTATED_MARK if commit.has_annotations else " "
    return sanitize_terminal_text(f"{marker} {commit.display_hash} {commit.summary}")


def format_annotation(entry: AnnotationEntry) -> str:
    lines = [f"what: {entry.what}", f"why:  {entry.why}"]
    if entry.how is not None:
        lines.append(f"how:  {entry.how}")
    if entry.backup is not None:
        lines.append(f"back: {entry.backup}")
    return "\n".join(lines)


def reasoning_text(commit: CommitRecord | None) -> str:
    """Return the reasoning-panel body for ``commit`` or a placeholder."""
    if commit is None:
        return NO_SELECTION_TEXT
    if not commit.annotations:
        return NO_RECORD_TEXT
    return f"\n\n{RECORD_SEPARATOR}\n\n".join(format_annotation(entry) for entry in commit.annotations)


def list_window_start(selected: int | None, count: int, rows: int) -> int:
    """Return first visible list index keeping ``selected`` on screen."""
    if selected is None or rows <= 0 or count <= rows:
        return 0
    return selected - rows + 1 if selected >= rows else 0


def diff_title(mode: DiffMode) -> str:
    if mode is DiffMode.STAT:
        return " Diff (stat) "
    if mode is DiffMode.FULL:
        return " Diff (full) "
    return ""


def _styled(text: str, style: str, theme: UITheme) -> str:
    if not style:
        return text
    return f"{style}{text}{theme.reset}"


def draw_box(
    title: str,
    body: list[str],
    rect: PaneRect,
    border_style: str,
    theme: UITheme,
) -> list[str]:
    """Return ``rect.height`` rows, each ``rect.width`` columns wide."""
    width, height = rect.width, rect.height
    if width <= 0 or height <= 0:
        return []
    if width < 2 or height < 2:
        return [" " * width for _ in range(height)]

    inner_width = width - 2
    title_text = clip_ansi_line(title, inner_width)
    top = "┌" + title_text + "─" * (inner_width - display_width(title_text)) + "┐"
    rows = [_styled(top, border_style, theme)]
    side = _styled("│", border_style, theme)
    for idx in range(height - 2):
        cell = body[idx] if idx < len(body) else ""
        tail = theme.reset if "\x1b" in cell else ""
        rows.append(side + pad_ansi_line(cell, inner_width) + tail + side)
    rows.append(_styled("└" + "─" * inner_width + "┘", border_style, theme))
    return rows


def _commit_list_rows(session: ReviewSession, rect: PaneRect, theme: UITheme) -> list[str]:
    state = session.state
    inner_rows = max(0, rect.height - 2)
    inner_width = max(0, rect.width - 2)
    if not state.commits:
        return [_styled(NO_COMMITS_TEXT, theme.placeholder, theme)]
    start = list_window_start(state.selected, len(state.commits), inner_rows)
    rows: list[str] = []
    for idx in range(start, min(len(state.commits), start + inner_rows)):
        commit = state.commits[idx]
        is_selected = idx == state.selected
        prefix = HIGHLIGHT_SYMBOL if is_selected else " " * len(HIGHLIGHT_SYMBOL)
        item = format_commit_item(commit)
        if commit.has_annotations:
            item = _styled(ANNOTATED_MARK, theme.annotated_marker, theme) + item[len(ANNOTATED_MARK):]
        text = prefix + item
        if is_selected:
            text = theme.selected + pad_ansi_line(text, inner_width).replace(
                "\033[0m", "\033[0m" + theme.selected
            ) + "\033[0m"
        rows.append(text)
    return rows


def _reasoning_rows(session: ReviewSession, rect: PaneRect, theme: UITheme) -> list[str]:
    commit = session.selected_commit()
    body = sanitize_terminal_text(reasoning_text(commit))
    rows = wrap_plain_text(body, max(1, rect.width - 2))
    if commit is None or not commit.annotations:
        return [_styled(row, theme.placeholder, theme) for row in rows]
    return rows


def _diff_rows(session: ReviewSession, rect: PaneRect, theme: UITheme) -> list[str]:
    rows: list[str] = []
    for line in session.visible_lines(max(0, rect.height - 2)):
        text = clip_ansi_line(sanitize_terminal_text(line.text), max(0, rect.width - 2))
        rows.append(_styled(text, theme.line_style(line.kind), theme))
    return rows


def build_frame_rows(session: ReviewSession, width: int, height: int, theme: UITheme) -> list[str]:
    """Lay out all panes for a ``width`` x ``height`` screen."""
    state = session.state
    width = max(1, width)
    height = max(1, height)
    content_height = max(0, height - 1)
    has_diff = state.diff_mode is not DiffMode.HIDDEN

    if has_diff:
        top_height, diff_height = split_percent(content_height, 50)
    else:
        top_height, diff_height = content_height, 0

    list_width, reasoning_width = split_percent(width, COMMIT_LIST_PERCENT)
    list_rect = PaneRect(list_width, top_height)
    reasoning_rect = PaneRect(reasoning_width, top_height)

    list_border = theme.border_focused if state.focus is Focus.COMMIT_LIST else theme.border
    left = draw_box(" Commits ", _commit_list_rows(session, list_rect, theme), list_rect, list_border, theme)
    right = draw_box(" Reasoning ", _reasoning_rows(session, reasoning_rect, theme), reasoning_rect, theme.border, theme)
    rows = [
        (left[idx] if idx < len(left) else "") + (right[idx] if idx < len(right) else "")
        for idx in range(top_height)
    ]

    if has_diff:
        diff_rect = PaneRect(width, diff_height)
        diff_border = theme.border_focused if state.focus is Focus.DIFF_PANE else theme.border
        title = diff_title(state.diff_mode) + session.scroll_label()
        rows.extend(draw_box(title, _diff_rows(session, diff_rect, theme), diff_rect, diff_border, theme))

    rows.append(_styled(pad_ansi_line(HELP_TEXT, width), theme.help_bar, theme))
    return rows


def render_frame(session: ReviewSession, width: int, height: int, theme: UITheme) -> str:
    """Return one full-screen frame, starting from the home position."""
    rows = build_frame_rows(session, width, height, theme)
    return "\033[H\033[J" + "\r\n".join(rows)
