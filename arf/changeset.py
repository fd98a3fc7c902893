"""Changeset line classification for diff-pane highlighting.

Maps raw ``git show`` output (stat or full patch) to tagged lines.
Classification is pure; fetch failures become a single plain sentinel line.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass

from .errors import ChangesetUnavailableError

logger = logging.getLogger(__name__)

FAILED_CHANGESET_TEXT = "Failed to get diff"


class DiffMode(enum.Enum):
    """Detail level of the changeset pane."""

    HIDDEN = "hidden"
    STAT = "stat"
    FULL = "full"

    def next(self) -> DiffMode:
        """Return the following mode in the hidden -> stat -> full cycle."""
        return _DIFF_MODE_CYCLE[self]


_DIFF_MODE_CYCLE = {
    DiffMode.HIDDEN: DiffMode.STAT,
    DiffMode.STAT: DiffMode.FULL,
    DiffMode.FULL: DiffMode.HIDDEN,
}


class LineKind(enum.Enum):
    ADDED = "added"
    REMOVED = "removed"
    HUNK_HEADER = "hunk_header"
    FILE_HEADER = "file_header"
    PLAIN = "plain"


@dataclass(frozen=True)
class ClassifiedLine:
    """One line of changeset output with its highlight kind."""

    text: str
    kind: LineKind


def classify_line(line: str) -> LineKind:
    """Return highlight kind for one changeset line.

    Header checks run before the bare ``+``/``-`` checks so ``+++``/``---``
    file markers are never reported as added/removed content.
    """
    if line.startswith("diff ") or line.startswith("index "):
        return LineKind.FILE_HEADER
    if line.startswith("+++") or line.startswith("---"):
        return LineKind.FILE_HEADER
    if line.startswith("@@"):
        return LineKind.HUNK_HEADER
    if line.startswith("+"):
        return LineKind.ADDED
    if line.startswith("-"):
        return LineKind.REMOVED
    return LineKind.PLAIN


def classify_changeset(text: str) -> tuple[ClassifiedLine, ...]:
    """Classify every line of ``text``; empty text yields one blank plain line."""
    lines = text.splitlines()
    if not lines:
        return (ClassifiedLine("", LineKind.PLAIN),)
    return tuple(ClassifiedLine(line, classify_line(line)) for line in lines)


def failure_lines(reason: str = "") -> tuple[ClassifiedLine, ...]:
    """Return the single sentinel line shown when a changeset fetch fails."""
    text = f"{FAILED_CHANGESET_TEXT}: {reason}" if reason else FAILED_CHANGESET_TEXT
    return (ClassifiedLine(text, LineKind.PLAIN),)


def changeset_lines(fetch: Callable[[], str]) -> tuple[ClassifiedLine, ...]:
    """Run ``fetch`` and classify its output, degrading failures to a sentinel."""
    try:
        text = fetch()
    except ChangesetUnavailableError as exc:
        logger.warning("changeset unavailable: %s", exc)
        return failure_lines(str(exc))
    return classify_changeset(text)
