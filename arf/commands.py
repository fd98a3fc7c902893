"""Non-interactive ``arf`` subcommands.

Each command writes plain text to ``out`` and raises ``ArfError`` subclasses
for conditions the CLI reports as fatal.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TextIO

from .catalog import CommitRecord, build_catalog, load_annotation_groups, match_group
from .changeset import DiffMode, failure_lines
from .errors import ChangesetUnavailableError, GitCommandError, StoreNotInitializedError
from .git import ARF_BRANCH, CommitSummary, GitBackend
from .records import (
    ARF_DIR_NAME,
    RECORDS_DIR_NAME,
    SPECS_DIR_NAME,
    AnnotationEntry,
    RecordStore,
    record_prefix,
    sort_entries,
)

logger = logging.getLogger(__name__)

RULE_HEAVY = "═" * 63
RULE_LIGHT = "─" * 63

ARF_README = """# ARF Records

This branch contains Agent Reasoning Format records.

Records are organized by commit SHA:
```
records/
  <commit-sha>/
    <agent>-<timestamp>.toml
```
"""


def cmd_init(git: GitBackend, repo_dir: Path, out: TextIO) -> None:
    """Create the orphan ``arf`` branch mounted at ``.arf/``."""
    if not git.is_repository():
        raise GitCommandError("Not a git repository. Run 'git init' first.")
    if git.branch_exists(ARF_BRANCH):
        out.write(f"✓ ARF branch '{ARF_BRANCH}' already exists\n")
        return

    out.write("Initializing ARF...\n")
    worktree = repo_dir / ARF_DIR_NAME
    git.add_orphan_worktree(ARF_BRANCH, worktree)
    (worktree / RECORDS_DIR_NAME).mkdir(parents=True, exist_ok=True)
    (worktree / SPECS_DIR_NAME).mkdir(parents=True, exist_ok=True)
    (worktree / "README.md").write_text(ARF_README, encoding="utf-8")
    git.commit_all(worktree, "Initialize ARF")
    logger.info("initialized arf worktree at %s", worktree)

    out.write(f"✓ Created ARF branch '{ARF_BRANCH}'\n")
    out.write(f"✓ Mounted at {ARF_DIR_NAME}/\n\n")
    out.write("Next: arf record --what 'action' --why 'reason'\n")


def cmd_record(
    git: GitBackend,
    store: RecordStore,
    out: TextIO,
    *,
    what: str,
    why: str,
    how: str | None = None,
    backup: str | None = None,
    commit: str | None = None,
    agent: str | None = None,
    now: datetime | None = None,
) -> Path:
    """Write one reasoning record for ``commit`` (HEAD by default) and commit it."""
    store.require_initialized()
    commit_hash = git.resolve_commit(commit or "HEAD")
    stamp = now or datetime.now(timezone.utc)
    entry = AnnotationEntry(
        what=what,
        why=why,
        how=how,
        backup=backup,
        timestamp=stamp.isoformat(),
        commit=commit_hash,
        agent=agent,
    )
    path = store.append_record(commit_hash, entry, now=stamp)
    git.commit_all(store.root, f"Record: {what}")
    out.write(f"✓ Recorded: {what}\n")
    out.write(f"  Commit: {record_prefix(commit_hash)}\n")
    return path


def format_entry_lines(entry: AnnotationEntry, indent: str = "") -> list[str]:
    lines = [f"{indent}what: {entry.what}", f"{indent}why:  {entry.why}"]
    if entry.how is not None:
        lines.append(f"{indent}how:  {entry.how}")
    return lines


def cmd_log(store: RecordStore, out: TextIO, commit: str | None = None, limit: int = 10) -> None:
    """Print records newest-first, optionally only those for one commit."""
    if not store.records_dir.is_dir():
        raise StoreNotInitializedError()

    if commit is not None:
        short = record_prefix(commit)
        if not (store.records_dir / short).is_dir():
            out.write(f"No records for commit {short}\n")
            return
        entries = store.records_for_prefix(short)
    else:
        groups = load_annotation_groups(store)
        entries = [entry for group in groups.values() for entry in group]

    records = sort_entries(entries, newest_first=True)[: max(0, limit)]
    if not records:
        out.write("No ARF records found.\n")
        return

    out.write(f"ARF Records ({len(records)}):\n\n")
    for entry in records:
        out.write(f"commit {record_prefix(entry.commit) if entry.commit else 'none'}\n")
        out.write(f"what: {entry.what}\n")
        out.write(f"why: {entry.why}\n")
        if entry.how is not None:
            out.write(f"how: {entry.how}\n")
        if entry.backup is not None:
            out.write(f"backup: {entry.backup}\n")
        out.write(f"time: {entry.timestamp}\n\n")


def format_graph(commits: tuple[CommitRecord, ...], has_store: bool) -> list[str]:
    """Render commits with tree connectors and their reasoning records."""
    lines = ["Git + ARF History:", ""]
    for idx, commit in enumerate(commits):
        is_last = idx == len(commits) - 1
        connector = "└" if is_last else "├"
        continuation = " " if is_last else "│"
        lines.append(f"{connector}─● {commit.display_hash} {commit.summary}")
        for rec_idx, entry in enumerate(commit.annotations):
            last_record = rec_idx == len(commit.annotations) - 1
            rec_connector = "└" if last_record else "├"
            rec_continuation = " " if last_record else "│"
            lines.append(f"{continuation}  {rec_connector}─ what: {entry.what}")
            lines.append(f"{continuation}  {rec_continuation}   why: {entry.why}")
            if entry.how is not None:
                lines.append(f"{continuation}  {rec_continuation}   how: {entry.how}")
    if not has_store:
        lines.append("")
        lines.append("(ARF not initialized - run 'arf init' for reasoning context)")
    return lines


def cmd_graph(git: GitBackend, store: RecordStore, out: TextIO, limit: int = 10) -> None:
    commits = git.list_recent_commits(limit)
    if not commits:
        out.write("No commits found.\n")
        return
    has_store = store.records_dir.is_dir()
    catalog = build_catalog(commits, load_annotation_groups(store if has_store else None))
    out.write("\n".join(format_graph(catalog, has_store)) + "\n")


def cmd_diff(git: GitBackend, store: RecordStore, out: TextIO, commit: str | None = None, full: bool = False) -> None:
    """Print reasoning context followed by the commit's changeset."""
    full_hash = git.resolve_commit(commit or "HEAD")
    description = git.describe_commit(full_hash)

    out.write(f"{RULE_HEAVY}\nCommit: {description}\n{RULE_HEAVY}\n")

    if store.records_dir.is_dir():
        summary = CommitSummary(full_hash, record_prefix(full_hash), "")
        records = match_group(summary, load_annotation_groups(store))
        if not records:
            out.write("\n(no ARF record for this commit)\n\n")
        else:
            out.write("\nREASONING:\n")
            for entry in records:
                out.write("\n".join(format_entry_lines(entry, indent="  ")) + "\n\n")

    out.write(f"{RULE_LIGHT}\nCHANGES:\n\n")
    try:
        changes = git.get_changeset(full_hash, DiffMode.FULL if full else DiffMode.STAT)
    except ChangesetUnavailableError as exc:
        logger.warning("changeset unavailable for %s: %s", full_hash, exc)
        changes = failure_lines(str(exc))[0].text + "\n"
    out.write(changes)


def cmd_sync(git: GitBackend, store: RecordStore, out: TextIO, push: bool = False, pull: bool = False) -> None:
    """Pull and/or push the ``arf`` branch; both when neither flag is given."""
    store.require_initialized()
    do_pull, do_push = (True, True) if not push and not pull else (pull, push)

    if do_pull:
        out.write("Pulling ARF records...\n")
        proc = git.pull(store.root)
        if proc.returncode == 0:
            out.write("✓ Pulled\n")
        elif "couldn't find remote ref" in proc.stderr:
            out.write("  No remote ARF branch yet\n")
        else:
            logger.warning("arf pull failed: %s", proc.stderr.strip())
            out.write(f"  Pull failed: {proc.stderr.strip()}\n")

    if do_push:
        out.write("Pushing ARF records...\n")
        proc = git.push(store.root)
        if proc.returncode == 0:
            out.write("✓ Pushed\n")
        else:
            logger.warning("arf push failed: %s", proc.stderr.strip())
            out.write(f"  Push failed: {proc.stderr.strip()}\n")


def cmd_spec_list(store: RecordStore, out: TextIO) -> None:
    names = store.list_specs()
    if not names:
        out.write(f"No specs found in {ARF_DIR_NAME}/{SPECS_DIR_NAME}/\n")
        return
    out.write(f"Specs ({len(names)}):\n\n")
    for name in names:
        out.write(f"  {name}\n")
    out.write("\nShow details: arf spec show <name>\n")


def cmd_spec_show(store: RecordStore, out: TextIO, name: str) -> None:
    content = store.read_spec(name)
    out.write(f"{RULE_HEAVY}\nSpec: {name}\n{RULE_HEAVY}\n\n")
    out.write(content)
