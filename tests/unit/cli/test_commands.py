"""Tests for the non-interactive subcommands against a fake git backend."""

from __future__ import annotations

import io
import subprocess
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from arf.changeset import FAILED_CHANGESET_TEXT, DiffMode
from arf.commands import (
    ARF_README,
    cmd_diff,
    cmd_init,
    cmd_record,
    cmd_spec_list,
    cmd_spec_show,
    cmd_sync,
)
from arf.errors import ArfError, ChangesetUnavailableError, GitCommandError, StoreNotInitializedError
from arf.records import RecordStore

HEAD_HASH = "c0ffee1234567890c0ffee1234567890c0ffee12"


def _proc(returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=["git"], returncode=returncode, stdout="", stderr=stderr)


class _FakeGit:
    def __init__(
        self,
        *,
        is_repo: bool = True,
        branch: bool = False,
        pull: subprocess.CompletedProcess[str] | None = None,
        push: subprocess.CompletedProcess[str] | None = None,
        changeset_error: Exception | None = None,
    ) -> None:
        self.is_repo = is_repo
        self.branch = branch
        self.pull_result = pull or _proc()
        self.push_result = push or _proc()
        self.changeset_error = changeset_error
        self.calls: list[tuple] = []

    def is_repository(self) -> bool:
        return self.is_repo

    def branch_exists(self, branch: str) -> bool:
        return self.branch

    def add_orphan_worktree(self, branch: str, path: Path) -> None:
        self.calls.append(("worktree", branch, path))
        path.mkdir(parents=True)

    def commit_all(self, worktree: Path, message: str) -> bool:
        self.calls.append(("commit", worktree, message))
        return True

    def resolve_commit(self, rev: str = "HEAD") -> str:
        self.calls.append(("resolve", rev))
        if rev in ("HEAD", "main", HEAD_HASH[:7]):
            return HEAD_HASH
        raise GitCommandError(f"Commit not found: {rev}")

    def describe_commit(self, rev: str) -> str:
        return f"{rev[:7]} subject"

    def get_changeset(self, commit_hash: str, mode: DiffMode) -> str:
        if self.changeset_error is not None:
            raise self.changeset_error
        return " a.txt | 2 +-\n"

    def pull(self, worktree: Path) -> subprocess.CompletedProcess[str]:
        self.calls.append(("pull", worktree))
        return self.pull_result

    def push(self, worktree: Path) -> subprocess.CompletedProcess[str]:
        self.calls.append(("push", worktree))
        return self.push_result


def _initialized_store(tmp: str) -> RecordStore:
    store = RecordStore(Path(tmp) / ".arf")
    store.records_dir.mkdir(parents=True)
    store.specs_dir.mkdir()
    return store


class InitCommandTests(unittest.TestCase):
    def test_outside_repository_fails(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(GitCommandError) as ctx:
                cmd_init(_FakeGit(is_repo=False), Path(tmp), io.StringIO())
        self.assertIn("Not a git repository", str(ctx.exception))

    def test_creates_layout_and_commits(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            repo = Path(tmp)
            git = _FakeGit()
            out = io.StringIO()

            cmd_init(git, repo, out)

            worktree = repo / ".arf"
            self.assertTrue((worktree / "records").is_dir())
            self.assertTrue((worktree / "specs").is_dir())
            self.assertEqual((worktree / "README.md").read_text(encoding="utf-8"), ARF_README)
        self.assertEqual(git.calls[0], ("worktree", "arf", worktree))
        self.assertEqual(git.calls[1], ("commit", worktree, "Initialize ARF"))
        self.assertIn("✓ Created ARF branch 'arf'", out.getvalue())

    def test_existing_branch_is_left_alone(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            git = _FakeGit(branch=True)
            out = io.StringIO()
            cmd_init(git, Path(tmp), out)
            self.assertFalse((Path(tmp) / ".arf").exists())
        self.assertEqual(out.getvalue(), "✓ ARF branch 'arf' already exists\n")
        self.assertEqual(git.calls, [])


class RecordCommandTests(unittest.TestCase):
    def test_symbolic_revision_is_resolved_before_filing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = _initialized_store(tmp)
            out = io.StringIO()
            path = cmd_record(
                _FakeGit(),
                store,
                out,
                what="w",
                why="y",
                commit="main",
                now=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            )

            self.assertEqual(path.parent.name, HEAD_HASH[:8])
            self.assertEqual(store.records_for_prefix(HEAD_HASH)[0].commit, HEAD_HASH)
        self.assertIn(f"Commit: {HEAD_HASH[:8]}", out.getvalue())

    def test_unknown_revision_fails_without_writing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = _initialized_store(tmp)
            with self.assertRaises(GitCommandError):
                cmd_record(_FakeGit(), store, io.StringIO(), what="w", why="y", commit="nope")
            self.assertEqual(list(store.records_dir.iterdir()), [])


class DiffCommandTests(unittest.TestCase):
    def test_changeset_failure_still_prints_full_report(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            git = _FakeGit(changeset_error=ChangesetUnavailableError("bad object"))
            out = io.StringIO()
            with self.assertLogs("arf.commands", level="WARNING"):
                cmd_diff(git, RecordStore(Path(tmp) / ".arf"), out)

        text = out.getvalue()
        self.assertIn(f"Commit: {HEAD_HASH[:7]} subject", text)
        self.assertIn("CHANGES:", text)
        self.assertTrue(text.endswith(f"{FAILED_CHANGESET_TEXT}: bad object\n"))


class SyncCommandTests(unittest.TestCase):
    def test_requires_initialized_store(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(StoreNotInitializedError):
                cmd_sync(_FakeGit(), RecordStore(Path(tmp) / ".arf"), io.StringIO())

    def test_no_flags_pulls_then_pushes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = _initialized_store(tmp)
            git = _FakeGit()
            out = io.StringIO()
            cmd_sync(git, store, out)
        self.assertEqual([call[0] for call in git.calls], ["pull", "push"])
        self.assertIn("✓ Pulled", out.getvalue())
        self.assertIn("✓ Pushed", out.getvalue())

    def test_single_flag_limits_direction(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = _initialized_store(tmp)
            git = _FakeGit()
            cmd_sync(git, store, io.StringIO(), push=True)
        self.assertEqual([call[0] for call in git.calls], ["push"])

    def test_missing_remote_branch_and_push_failure_are_reported(self) -> None:
        git = _FakeGit(
            pull=_proc(1, "fatal: couldn't find remote ref arf\n"),
            push=_proc(1, "fatal: 'origin' does not appear to be a git repository\n"),
        )
        with tempfile.TemporaryDirectory() as tmp:
            store = _initialized_store(tmp)
            out = io.StringIO()
            with self.assertLogs("arf.commands", level="WARNING"):
                cmd_sync(git, store, out)
        text = out.getvalue()
        self.assertIn("  No remote ARF branch yet\n", text)
        self.assertIn("  Push failed: fatal: 'origin' does not appear to be a git repository\n", text)

    def test_pull_failure_is_reported(self) -> None:
        git = _FakeGit(pull=_proc(1, "fatal: refusing to merge unrelated histories"))
        with tempfile.TemporaryDirectory() as tmp:
            store = _initialized_store(tmp)
            out = io.StringIO()
            with self.assertLogs("arf.commands", level="WARNING"):
                cmd_sync(git, store, out, pull=True)
        self.assertIn("  Pull failed: fatal: refusing to merge unrelated histories\n", out.getvalue())


class SpecCommandTests(unittest.TestCase):
    def test_list_and_show(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = _initialized_store(tmp)
            (store.specs_dir / "login.arf").write_text("goal = 'login'\n", encoding="utf-8")
            listing = io.StringIO()
            shown = io.StringIO()

            cmd_spec_list(store, listing)
            cmd_spec_show(store, shown, "login")

        self.assertEqual(listing.getvalue(), "Specs (1):\n\n  login\n\nShow details: arf spec show <name>\n")
        self.assertIn("Spec: login\n", shown.getvalue())
        self.assertTrue(shown.getvalue().endswith("goal = 'login'\n"))

    def test_empty_specs_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            out = io.StringIO()
            cmd_spec_list(_initialized_store(tmp), out)
        self.assertEqual(out.getvalue(), "No specs found in .arf/specs/\n")

    def test_missing_spec_and_missing_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = _initialized_store(tmp)
            with self.assertRaises(ArfError) as ctx:
                cmd_spec_show(store, io.StringIO(), "absent")
            self.assertEqual(str(ctx.exception), "Spec not found: absent")
            with self.assertRaises(StoreNotInitializedError):
                cmd_spec_list(RecordStore(Path(tmp) / "elsewhere"), io.StringIO())


if __name__ == "__main__":
    unittest.main()
