"""Git subprocess wrappers used by the session and the CLI.

Lists recent commits, fetches per-commit changesets, and runs the plumbing
behind ``init``/``record``/``sync``. Failures surface as ``arf.errors`` types.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .changeset import DiffMode
from .errors import ChangesetUnavailableError, GitCommandError, HistoryUnavailableError

logger = logging.getLogger(__name__)

ARF_BRANCH = "arf"
_LOG_FIELD_SEP = "\x00"
_LOG_FORMAT = "%H%x00%h%x00%s"


@dataclass(frozen=True)
class CommitSummary:
    """One ``git log`` row: full hash, abbreviated hash, subject line."""

    full_hash: str
    display_hash: str
    summary: str


def run_git(
    args: list[str],
    cwd: Path | None = None,
    timeout_seconds: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Execute a git subcommand and return the completed process.

    Raises ``GitCommandError`` when git cannot be started or times out; a
    nonzero exit status is left for callers to interpret.
    """
    command = ["git", *args]
    logger.debug("running %s (cwd=%s)", " ".join(command), cwd)
    try:
        return subprocess.run(
            command,
            cwd=None if cwd is None else str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        raise GitCommandError(f"failed to run {' '.join(command)}: {exc}") from exc


def parse_log_output(output: str) -> tuple[CommitSummary, ...]:
    """Parse ``%H%x00%h%x00%s`` log rows into commit summaries."""
    commits: list[CommitSummary] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split(_LOG_FIELD_SEP, 2)
        full_hash = parts[0].strip()
        display_hash = parts[1].strip() if len(parts) > 1 and parts[1].strip() else full_hash
        summary = parts[2] if len(parts) > 2 else ""
        commits.append(CommitSummary(full_hash, display_hash, summary))
    return tuple(commits)


class GitBackend:
    """Version-control collaborator bound to one working directory."""

    def __init__(self, repo_dir: Path | None = None) -> None:
        self.repo_dir = repo_dir

    def is_repository(self) -> bool:
        """Return whether ``repo_dir`` is inside a git work tree."""
        try:
            proc = run_git(["rev-parse", "--git-dir"], cwd=self.repo_dir)
        except GitCommandError:
            return False
        return proc.returncode == 0

    def list_recent_commits(self, limit: int) -> tuple[CommitSummary, ...]:
        """Return up to ``limit`` commits, most recent first."""
        try:
            proc = run_git(
                ["log", "--no-decorate", f"--format={_LOG_FORMAT}", f"-{max(1, limit)}"],
                cwd=self.repo_dir,
            )
        except GitCommandError as exc:
            raise HistoryUnavailableError(f"Failed to get git log: {exc}") from exc
        if proc.returncode != 0:
            detail = proc.stderr.strip()
            raise HistoryUnavailableError(f"Failed to get git log: {detail}" if detail else "Failed to get git log")
        return parse_log_output(proc.stdout)

    def get_changeset(self, commit_hash: str, mode: DiffMode) -> str:
        """Return ``git show`` output for one commit as stat summary or full patch."""
        if mode is DiffMode.HIDDEN:
            raise ValueError("hidden diff mode has no changeset")
        args = ["show", "--format=", commit_hash]
        if mode is DiffMode.STAT:
            args.insert(1, "--stat")
        try:
            proc = run_git(args, cwd=self.repo_dir)
        except GitCommandError as exc:
            raise ChangesetUnavailableError(str(exc)) from exc
        if proc.returncode != 0:
            raise ChangesetUnavailableError(proc.stderr.strip() or f"git show {commit_hash} failed")
        return proc.stdout

    def resolve_commit(self, rev: str = "HEAD") -> str:
        """Resolve ``rev`` to a full commit hash."""
        proc = run_git(["rev-parse", "--verify", f"{rev}^{{commit}}"], cwd=self.repo_dir)
        if proc.returncode != 0:
            if rev == "HEAD":
                raise GitCommandError("Failed to get HEAD commit")
            raise GitCommandError(f"Commit not found: {rev}")
        return proc.stdout.strip()

    def describe_commit(self, rev: str) -> str:
        """Return the one-line ``<short> <subject>`` description of ``rev``."""
        proc = run_git(["log", "-1", "--oneline", "--no-decorate", rev], cwd=self.repo_dir)
        if proc.returncode != 0:
            raise GitCommandError(f"Commit not found: {rev}")
        return proc.stdout.strip()

    def branch_exists(self, branch: str) -> bool:
        proc = run_git(["rev-parse", "--verify", "--quiet", branch], cwd=self.repo_dir)
        return proc.returncode == 0

    def add_orphan_worktree(self, branch: str, path: Path) -> None:
        """Create ``branch`` as an orphan branch checked out at ``path``."""
        proc = run_git(["worktree", "add", "--orphan", "-b", branch, str(path)], cwd=self.repo_dir)
        if proc.returncode != 0:
            raise GitCommandError(f"Failed to create ARF branch: {proc.stderr.strip()}")

    def commit_all(self, worktree: Path, message: str) -> bool:
        """Stage everything in ``worktree`` and commit it.

        Returns ``False`` when there was nothing to commit.
        """
        add = run_git(["add", "."], cwd=worktree)
        if add.returncode != 0:
            raise GitCommandError(f"Failed to stage files: {add.stderr.strip()}")
        commit = run_git(["commit", "-m", message], cwd=worktree)
        if commit.returncode == 0:
            return True
        output = f"{commit.stdout}\n{commit.stderr}"
        if "nothing to commit" in output:
            return False
        raise GitCommandError(f"Failed to commit: {commit.stderr.strip()}")

    def pull(self, worktree: Path, branch: str = ARF_BRANCH) -> subprocess.CompletedProcess[str]:
        return run_git(["pull", "origin", branch], cwd=worktree)

    def push(self, worktree: Path, branch: str = ARF_BRANCH) -> subprocess.CompletedProcess[str]:
        return run_git(["push", "-u", "origin", branch], cwd=worktree)
