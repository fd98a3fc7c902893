"""Commit catalog: recent commits paired with their reasoning records.

The catalog is an immutable snapshot built once per session. History
failures are fatal; a missing or unreadable record store only means every
commit shows up without annotations.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from .changeset import DiffMode
from .errors import AnnotationStoreUnavailableError
from .git import CommitSummary
from .records import AnnotationEntry, sort_entries

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class HistorySource(Protocol):
    def list_recent_commits(self, limit: int) -> Sequence[CommitSummary]: ...

    def get_changeset(self, commit_hash: str, mode: DiffMode) -> str: ...


class AnnotationSource(Protocol):
    def lookup_annotation_groups(self) -> Mapping[str, Sequence[AnnotationEntry]]: ...


@dataclass(frozen=True)
class CommitRecord:
    """Commit identity plus its matched annotations in timestamp order."""

    full_hash: str
    display_hash: str
    summary: str
    annotations: tuple[AnnotationEntry, ...] = ()

    @property
    def has_annotations(self) -> bool:
        return bool(self.annotations)


def prefix_matches(group_key: str, full_hash: str, display_hash: str) -> bool:
    """Return whether a stored record group belongs to a commit.

    Group keys are the first eight hash characters, while ``git log %h``
    usually abbreviates to seven (more in large repositories). Either side
    may therefore be the longer one: the key must prefix the full hash, or
    the display hash must prefix the key.

    Two distinct commits whose display hashes are mutual prefixes of one key
    would both match; that ambiguity is not resolved here.
    """
    if not group_key:
        return False
    if full_hash.startswith(group_key):
        return True
    return bool(display_hash) and group_key.startswith(display_hash)


def match_group(
    commit: CommitSummary,
    groups: Mapping[str, Sequence[AnnotationEntry]],
) -> tuple[AnnotationEntry, ...]:
    """Return the first matching group's entries sorted ascending by timestamp."""
    for key in sorted(groups):
        if prefix_matches(key, commit.full_hash, commit.display_hash):
            return tuple(sort_entries(list(groups[key])))
    return ()


def build_catalog(
    commits: Iterable[CommitSummary],
    groups: Mapping[str, Sequence[AnnotationEntry]],
) -> tuple[CommitRecord, ...]:
    """Attach annotation groups to commits, preserving input order."""
    return tuple(
        CommitRecord(
            full_hash=commit.full_hash,
            display_hash=commit.display_hash,
            summary=commit.summary,
            annotations=match_group(commit, groups),
        )
        for commit in commits
    )


def load_annotation_groups(store: AnnotationSource | None) -> Mapping[str, Sequence[AnnotationEntry]]:
    """Read all groups from ``store``, degrading to no annotations on failure."""
    if store is None:
        return {}
    try:
        return store.lookup_annotation_groups()
    except AnnotationStoreUnavailableError as exc:
        logger.warning("annotation store unavailable, continuing without records: %s", exc)
        return {}


def load_catalog(
    history: HistorySource,
    store: AnnotationSource | None,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> tuple[CommitRecord, ...]:
    """Build the session catalog from live collaborators.

    ``HistoryUnavailableError`` from ``history`` propagates unchanged.
    """
    commits = history.list_recent_commits(limit)
    groups = load_annotation_groups(store)
    catalog = build_catalog(commits, groups)
    logger.debug(
        "catalog built: %d commits, %d annotated",
        len(catalog),
        sum(1 for record in catalog if record.has_annotations),
    )
    return catalog
