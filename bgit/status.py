"""Working tree / index status classification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class FileState(str, Enum):
    """Status of a path on one axis (index or worktree)."""

    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    UNTRACKED = "untracked"


@dataclass(frozen=True)
class PathStatus:
    """Raw status of one path as reported by the backend."""

    path: str
    staging: FileState = FileState.UNMODIFIED
    worktree: FileState = FileState.UNMODIFIED


@dataclass(frozen=True)
class StatusReport:
    """Paths grouped into display categories.

    The categories are computed independently from the two status axes, so
    a path staged and then edited again shows up in both ``staged`` and
    ``modified``.
    """

    staged: tuple[str, ...] = ()
    added: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()
    renamed: tuple[str, ...] = ()
    untracked: tuple[str, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not any(
            (
                self.staged,
                self.added,
                self.modified,
                self.deleted,
                self.renamed,
                self.untracked,
            )
        )

    def sections(self) -> list[tuple[str, tuple[str, ...]]]:
        """Return ``(title, paths)`` pairs in display order."""
        return [
            ("Staged", self.staged),
            ("Added", self.added),
            ("Modified", self.modified),
            ("Deleted", self.deleted),
            ("Renamed", self.renamed),
            ("Untracked", self.untracked),
        ]


_STAGING_ROUTES = {
    FileState.MODIFIED: "staged",
    FileState.ADDED: "added",
    FileState.DELETED: "deleted",
    FileState.RENAMED: "renamed",
    FileState.UNTRACKED: "untracked",
}

# An added-but-unstaged file is indistinguishable from a new untracked one.
_WORKTREE_ROUTES = {
    FileState.MODIFIED: "modified",
    FileState.ADDED: "untracked",
    FileState.DELETED: "deleted",
    FileState.RENAMED: "renamed",
    FileState.UNTRACKED: "untracked",
}


def classify(raw_statuses: Iterable[PathStatus]) -> StatusReport:
    """Partition raw path statuses into a :class:`StatusReport`."""
    buckets: dict[str, set[str]] = {
        "staged": set(),
        "added": set(),
        "modified": set(),
        "deleted": set(),
        "renamed": set(),
        "untracked": set(),
    }
    for entry in raw_statuses:
        if entry.staging != FileState.UNMODIFIED:
            buckets[_STAGING_ROUTES[entry.staging]].add(entry.path)
        if entry.worktree != FileState.UNMODIFIED:
            buckets[_WORKTREE_ROUTES[entry.worktree]].add(entry.path)
    return StatusReport(**{name: tuple(sorted(paths)) for name, paths in buckets.items()})


def staged_paths(raw_statuses: Iterable[PathStatus]) -> list[str]:
    """Return the sorted paths that have changes recorded in the index."""
    return sorted(
        {
            entry.path
            for entry in raw_statuses
            if entry.staging not in (FileState.UNMODIFIED, FileState.UNTRACKED)
        }
    )


def render_status(report: StatusReport, branch: Optional[str] = None) -> str:
    """Render a report as plain text, one titled section per category."""
    lines: list[str] = []
    if branch:
        lines.append(f"On branch {branch}")
    if report.is_clean:
        lines.append("Working tree clean")
        return "\n".join(lines)
    for title, paths in report.sections():
        if not paths:
            continue
        if lines:
            lines.append("")
        lines.append(f"{title} ({len(paths)})")
        lines.extend(f"  • {path}" for path in paths)
    return "\n".join(lines)
