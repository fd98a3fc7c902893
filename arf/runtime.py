"""Interactive browse runtime.

Builds the catalog and session, then runs a blocking read -> dispatch ->
redraw loop. One key event produces at most one state transition and is
always followed by exactly one full redraw.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from collections.abc import Callable

from .catalog import AnnotationSource, HistorySource, load_catalog
from .input import read_key
from .keys import KeyComboRegistry, build_session_registry
from .render import render_frame
from .session import ReviewSession
from .terminal import TerminalController
from .ui_theme import UITheme

logger = logging.getLogger(__name__)

DrawFn = Callable[[ReviewSession], None]
ReadKeyFn = Callable[[int], str]


def run_session_loop(
    session: ReviewSession,
    registry: KeyComboRegistry,
    stdin_fd: int,
    draw: DrawFn,
    read: ReadKeyFn = read_key,
) -> None:
    """Run until the session's quit flag is set or stdin closes.

    The quit flag is checked once per iteration, after dispatch and before
    the next blocking read.
    """
    draw(session)
    while True:
        key = read(stdin_fd)
        if key == "":
            logger.debug("stdin closed, ending session")
            break
        handled = registry.dispatch(key)
        if handled is None:
            logger.debug("ignoring unbound key %r", key)
        if session.state.should_quit:
            break
        draw(session)


def make_terminal_draw(terminal: TerminalController, theme: UITheme) -> DrawFn:
    """Return a draw callback that sizes the frame to the current terminal."""
    def draw(session: ReviewSession) -> None:
        term = shutil.get_terminal_size((80, 24))
        terminal.write(render_frame(session, term.columns, term.lines, theme))

    return draw


def run_browser(
    history: HistorySource,
    store: AnnotationSource | None,
    theme: UITheme,
    limit: int,
) -> None:
    """Load commits and run the interactive session on the controlling tty.

    ``HistoryUnavailableError`` propagates before the terminal is touched.
    """
    commits = load_catalog(history, store, limit)
    if not (os.isatty(sys.stdin.fileno()) and os.isatty(sys.stdout.fileno())):
        raise SystemExit("arf browse needs an interactive terminal.")

    session = ReviewSession(commits, history.get_changeset)
    registry = build_session_registry(session)
    stdin_fd = sys.stdin.fileno()
    terminal = TerminalController(stdin_fd, sys.stdout.fileno())
    with terminal.raw_mode():
        run_session_loop(session, registry, stdin_fd, make_terminal_draw(terminal, theme))
    logger.info("browse session ended")
