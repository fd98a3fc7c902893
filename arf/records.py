"""Reasoning-record store kept on the ``arf`` branch worktree.

Records live under ``.arf/records/<prefix>/<agent>-<stamp>.toml`` where
``<prefix>`` is the first eight characters of the commit hash. Unreadable
record files are skipped; a missing store is reported to callers.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import tomli_w

from .errors import AnnotationStoreUnavailableError, ArfError, StoreNotInitializedError

logger = logging.getLogger(__name__)

ARF_DIR_NAME = ".arf"
RECORDS_DIR_NAME = "records"
SPECS_DIR_NAME = "specs"
RECORD_SUFFIX = ".toml"
SPEC_SUFFIX = ".arf"
PREFIX_LENGTH = 8
UNKNOWN_AGENT = "unknown"


def record_prefix(commit_hash: str) -> str:
    """Return the directory key for ``commit_hash`` (eight chars or fewer)."""
    return commit_hash[:PREFIX_LENGTH]


@dataclass(frozen=True)
class AnnotationEntry:
    """One reasoning record attached to a commit."""

    what: str
    why: str
    timestamp: str
    how: str | None = None
    backup: str | None = None
    outcome: str | None = None
    commit: str | None = None
    agent: str | None = None

    @classmethod
    def from_mapping(cls, data: dict[str, object]) -> AnnotationEntry:
        """Build an entry from decoded TOML, rejecting missing required fields."""
        def optional(key: str) -> str | None:
            value = data.get(key)
            return value if isinstance(value, str) else None

        what = data.get("what")
        why = data.get("why")
        timestamp = data.get("timestamp")
        if not isinstance(what, str) or not isinstance(why, str):
            raise ValueError("record requires string 'what' and 'why'")
        if isinstance(timestamp, datetime):
            timestamp = timestamp.isoformat()
        if not isinstance(timestamp, str):
            raise ValueError("record requires a 'timestamp'")
        return cls(
            what=what,
            why=why,
            timestamp=timestamp,
            how=optional("how"),
            backup=optional("backup"),
            outcome=optional("outcome"),
            commit=optional("commit"),
            agent=optional("agent"),
        )

    def to_mapping(self) -> dict[str, str]:
        """Serialize to the on-disk field order, dropping unset optionals."""
        ordered = (
            ("what", self.what),
            ("why", self.why),
            ("how", self.how),
            ("backup", self.backup),
            ("outcome", self.outcome),
            ("timestamp", self.timestamp),
            ("commit", self.commit),
            ("agent", self.agent),
        )
        return {key: value for key, value in ordered if value is not None}


def sort_entries(entries: list[AnnotationEntry], newest_first: bool = False) -> list[AnnotationEntry]:
    return sorted(entries, key=lambda entry: entry.timestamp, reverse=newest_first)


def _read_record(path: Path) -> AnnotationEntry | None:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
        return AnnotationEntry.from_mapping(data)
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError, ValueError) as exc:
        logger.debug("skipping unreadable record %s: %s", path, exc)
        return None


class RecordStore:
    """Annotation-store collaborator rooted at an ``.arf`` worktree."""

    def __init__(self, root: Path) -> None:
        self.root = root

    @classmethod
    def for_repo(cls, repo_dir: Path) -> RecordStore:
        return cls(repo_dir / ARF_DIR_NAME)

    @property
    def records_dir(self) -> Path:
        return self.root / RECORDS_DIR_NAME

    @property
    def specs_dir(self) -> Path:
        return self.root / SPECS_DIR_NAME

    def is_initialized(self) -> bool:
        return self.root.is_dir()

    def require_initialized(self) -> None:
        if not self.is_initialized():
            raise StoreNotInitializedError()

    def read_group(self, group_dir: Path) -> list[AnnotationEntry]:
        """Read every parseable record file inside one prefix directory."""
        entries: list[AnnotationEntry] = []
        try:
            paths = sorted(group_dir.iterdir())
        except OSError as exc:
            logger.debug("cannot list %s: %s", group_dir, exc)
            return entries
        for path in paths:
            if path.suffix != RECORD_SUFFIX or not path.is_file():
                continue
            entry = _read_record(path)
            if entry is not None:
                entries.append(entry)
        return entries

    def lookup_annotation_groups(self) -> dict[str, list[AnnotationEntry]]:
        """Return all record groups keyed by hash prefix.

        Raises ``AnnotationStoreUnavailableError`` when the records directory is
        missing or cannot be listed.
        """
        try:
            group_dirs = sorted(path for path in self.records_dir.iterdir() if path.is_dir())
        except OSError as exc:
            raise AnnotationStoreUnavailableError(f"cannot read {self.records_dir}: {exc}") from exc
        return {group_dir.name: self.read_group(group_dir) for group_dir in group_dirs}

    def records_for_prefix(self, prefix: str) -> list[AnnotationEntry]:
        """Return records stored under exactly ``record_prefix(prefix)``."""
        group_dir = self.records_dir / record_prefix(prefix)
        if not group_dir.is_dir():
            return []
        return self.read_group(group_dir)

    def append_record(self, prefix: str, entry: AnnotationEntry, now: datetime | None = None) -> Path:
        """Write ``entry`` as a new TOML file under the group for ``prefix``."""
        self.require_initialized()
        stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d-%H%M%S")
        group_dir = self.records_dir / record_prefix(prefix)
        group_dir.mkdir(parents=True, exist_ok=True)
        agent = entry.agent or UNKNOWN_AGENT
        path = group_dir / f"{agent}-{stamp}{RECORD_SUFFIX}"
        path.write_text(tomli_w.dumps(entry.to_mapping()), encoding="utf-8")
        logger.info("wrote record %s", path)
        return path

    def list_specs(self) -> list[str]:
        """Return sorted spec names (file stems) from ``specs/``."""
        if not self.specs_dir.is_dir():
            raise StoreNotInitializedError(
                "ARF not initialized or no specs directory. Run 'arf init' first."
            )
        return sorted(path.stem for path in self.specs_dir.iterdir() if path.suffix == SPEC_SUFFIX)

    def read_spec(self, name: str) -> str:
        path = self.specs_dir / f"{name}{SPEC_SUFFIX}"
        if not path.is_file():
            raise ArfError(f"Spec not found: {name}")
        return path.read_text(encoding="utf-8")
