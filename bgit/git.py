"""Git operations for bgit."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .exceptions import (
    CommitError,
    CommitReadbackError,
    GitError,
    RepositoryNotFoundError,
    StatusQueryError,
)
from .status import FileState, PathStatus

logger = logging.getLogger(__name__)

_PORCELAIN_STATES = {
    " ": FileState.UNMODIFIED,
    "M": FileState.MODIFIED,
    "T": FileState.MODIFIED,
    "U": FileState.MODIFIED,
    "A": FileState.ADDED,
    "C": FileState.ADDED,
    "D": FileState.DELETED,
    "R": FileState.RENAMED,
    "?": FileState.UNTRACKED,
}


@dataclass(frozen=True)
class Signature:
    """Name and email of a commit author or committer."""

    name: str
    email: str

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True)
class CommitInfo:
    """A commit object as read back from the repository."""

    hash: str
    author_name: str
    author_email: str
    committer_name: str
    committer_email: str
    timestamp: datetime
    message: str

    @property
    def subject(self) -> str:
        return self.message.split("\n", 1)[0]


@dataclass
class StageResult:
    """Paths staged by :meth:`GitRepo.stage_paths` and those that failed."""

    staged: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    def render(self) -> str:
        lines = [f"Staged {len(self.staged)} paths"]
        lines.extend(f"  • {path}" for path in self.staged)
        if self.failed:
            lines.append("")
            lines.append(f"Failed ({len(self.failed)}):")
            lines.extend(f"  • {path} ({reason})" for path, reason in self.failed)
        return "\n".join(lines)


def find_git_repo_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Return the top-level Git repository directory for ``start_path``.

    Attempts ``git rev-parse --show-toplevel`` first so worktrees and
    submodules are handled correctly. Falls back to walking parent
    directories looking for a ``.git`` directory or file. Returns ``None``
    when no Git repository can be found starting from ``start_path``.
    """

    path = Path(start_path or Path.cwd()).expanduser().resolve(strict=False)
    if path.is_file():
        path = path.parent
    if not path.exists():
        return None

    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=path,
            capture_output=True,
            text=True,
            check=True,
        )
        top = result.stdout.strip()
        if top:
            return Path(top)
    except (subprocess.CalledProcessError, FileNotFoundError):
        pass

    for candidate in (path, *path.parents):
        git_meta = candidate / ".git"
        if git_meta.exists():
            return candidate

    return None


def parse_porcelain(output: str) -> list[PathStatus]:
    """Parse ``git status --porcelain -z`` output into path statuses.

    Each record is ``XY <path>``; renames and copies are followed by an
    extra record holding the original path, which is skipped. Ignored
    entries (``!!``) are dropped.
    """
    entries: list[PathStatus] = []
    records = output.split("\0")
    idx = 0
    while idx < len(records):
        record = records[idx]
        idx += 1
        if len(record) < 4:
            continue
        xy, path = record[:2], record[3:]
        if "R" in xy or "C" in xy:
            idx += 1  # original path
        if xy == "!!":
            continue
        staging = _PORCELAIN_STATES.get(xy[0], FileState.MODIFIED)
        worktree = _PORCELAIN_STATES.get(xy[1], FileState.MODIFIED)
        entries.append(PathStatus(path=path, staging=staging, worktree=worktree))
    return entries


class GitRepo:
    """Handles Git repository operations."""

    def __init__(self, repo_path: Optional[str] = None) -> None:
        """Open the repository containing ``repo_path`` (default: cwd).

        Raises:
            RepositoryNotFoundError: If no repository contains the path.
        """

        requested = Path(repo_path or ".").expanduser()
        root = find_git_repo_root(requested)
        if root is None:
            raise RepositoryNotFoundError(str(requested))
        self.repo_path = root

    def _run_git_command(
        self,
        args: list[str],
        strip: bool = True,
        env: Optional[dict[str, str]] = None,
    ) -> str:
        """Run a Git command and return its output."""
        logger.debug("git %s", " ".join(args))
        run_env = None
        if env:
            run_env = os.environ.copy()
            run_env.update(env)
        try:
            result = subprocess.run(
                ["git"] + args,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=True,
                env=run_env,
            )
        except subprocess.CalledProcessError as e:
            cmd = " ".join(args)
            raise GitError(f"Git command failed: {cmd}\n{e.stderr}") from e
        except FileNotFoundError as exc:
            raise GitError("Git command not found. Please install Git.") from exc
        return result.stdout.strip() if strip else result.stdout

    def status(self) -> list[PathStatus]:
        """Return the status of every path with uncommitted state."""
        try:
            output = self._run_git_command(
                [
                    "-c",
                    "core.quotePath=false",
                    "status",
                    "--porcelain",
                    "-z",
                    "--untracked-files=all",
                ],
                strip=False,
            )
        except GitError as e:
            raise StatusQueryError(f"failed to compute status: {e}") from e
        return parse_porcelain(output)

    def diff_for_path(self, file_path: str) -> str:
        """Get the staged diff (index against HEAD) of a single path."""
        return self._run_git_command(
            ["diff", "--cached", "--", file_path], strip=False
        )

    def stage_file(self, file_path: str) -> None:
        """Stage a specific file for commit.

        A path missing from the working tree is removed from the index
        instead, which stages its deletion.
        """
        if os.path.lexists(self.repo_path / file_path):
            self._run_git_command(["add", "--", file_path])
        else:
            self._run_git_command(["rm", "--cached", "--quiet", "--", file_path])

    def stage_paths(self, paths: Iterable[str]) -> StageResult:
        """Stage each path on its own, continuing past failures."""
        result = StageResult()
        for path in paths:
            try:
                self.stage_file(path)
            except GitError as e:
                reason = str(e).strip()
                logger.warning("failed to stage %s: %s", path, reason)
                result.failed.append((path, reason))
            else:
                result.staged.append(path)
        return result

    def stage_all(self) -> None:
        """Stage all changes (including new and deleted files)."""
        self._run_git_command(["add", "-A"])

    def create_commit(
        self,
        message: str,
        author: Signature,
        when: datetime,
        allow_empty: bool = False,
    ) -> str:
        """Commit the index and return the new commit's hash.

        ``author`` is recorded as both author and committer, stamped with
        ``when`` (a timezone-aware datetime).

        Raises:
            CommitError: The backend rejected the commit.
            CommitReadbackError: The commit was written but HEAD could not
                be resolved afterwards.
        """
        stamp = f"{int(when.timestamp())} {when.strftime('%z') or '+0000'}"
        env = {
            "GIT_AUTHOR_NAME": author.name,
            "GIT_AUTHOR_EMAIL": author.email,
            "GIT_AUTHOR_DATE": stamp,
            "GIT_COMMITTER_NAME": author.name,
            "GIT_COMMITTER_EMAIL": author.email,
            "GIT_COMMITTER_DATE": stamp,
        }
        args = ["commit", "--cleanup=whitespace", "-m", message]
        if allow_empty:
            args.append("--allow-empty")
        try:
            self._run_git_command(args, env=env)
        except GitError as e:
            raise CommitError(f"failed to create commit: {e}") from e
        try:
            return self._run_git_command(["rev-parse", "HEAD"])
        except GitError as e:
            raise CommitReadbackError(None, str(e)) from e

    def read_commit(self, commit_hash: str) -> CommitInfo:
        """Look up a commit object by hash."""
        output = self._run_git_command(
            [
                "log",
                "-1",
                "--format=%H%x00%an%x00%ae%x00%cn%x00%ce%x00%aI%x00%B",
                commit_hash,
                "--",
            ],
            strip=False,
        )
        fields = output.split("\0", 6)
        if len(fields) != 7:
            raise GitError(f"Unexpected commit format for {commit_hash}")
        sha, a_name, a_email, c_name, c_email, date_raw, body = fields
        try:
            timestamp = datetime.fromisoformat(date_raw.strip())
        except ValueError as e:
            raise GitError(f"Unparseable commit date {date_raw!r}") from e
        return CommitInfo(
            hash=sha.strip(),
            author_name=a_name,
            author_email=a_email,
            committer_name=c_name,
            committer_email=c_email,
            timestamp=timestamp,
            message=body.strip(),
        )

    def current_branch(self) -> str:
        """Return the branch name, or a short hash when HEAD is detached."""
        try:
            return self._run_git_command(["symbolic-ref", "--short", "-q", "HEAD"])
        except GitError:
            return self._run_git_command(["rev-parse", "--short=12", "HEAD"])
