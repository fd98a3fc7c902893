"""Exception hierarchy shared by arf collaborators and the CLI.

Fatal errors stop the CLI before any UI is drawn. Degraded errors are caught
at the boundary where the session calls a collaborator and turned into
placeholders.
"""

from __future__ import annotations


class ArfError(Exception):
    """Base class for errors reported to the user by the CLI."""


class GitCommandError(ArfError):
    """A git subprocess failed or could not be started."""


class HistoryUnavailableError(ArfError):
    """Commit history could not be listed; no session is possible."""


class ChangesetUnavailableError(ArfError):
    """One commit's changeset could not be produced."""


class AnnotationStoreUnavailableError(ArfError):
    """The record store is missing or cannot be read."""


class StoreNotInitializedError(ArfError):
    """A command needs ``.arf/`` but ``arf init`` has not been run."""

    def __init__(self, message: str = "ARF not initialized. Run 'arf init' first.") -> None:
        super().__init__(message)
