"""Commit planning and execution for bgit."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional, Protocol, Sequence, Union

from .exceptions import (
    CommitReadbackError,
    GitError,
    NothingToCommitError,
    ValidationError,
)
from .git import CommitInfo, Signature

logger = logging.getLogger(__name__)

AUTHOR_NAME_ENV = "GIT_AUTHOR_NAME"
AUTHOR_EMAIL_ENV = "GIT_AUTHOR_EMAIL"
DEFAULT_AUTHOR_NAME = "bgit user"
DEFAULT_AUTHOR_EMAIL = "user@example.com"

# Name "<" Email ">" with no stray angle brackets in either part.
_AUTHOR_RE = re.compile(r"^\s*(?P<name>[^<>]*?)\s*<(?P<email>[^<>]*)>\s*$")


class CommitBackend(Protocol):
    def create_commit(
        self,
        message: str,
        author: Signature,
        when: datetime,
        allow_empty: bool = False,
    ) -> str: ...

    def read_commit(self, commit_hash: str) -> CommitInfo: ...


@dataclass(frozen=True)
class CommitPlan:
    """Everything needed to create one commit; consumed once."""

    staged_paths: tuple[str, ...]
    message: str
    author_name: str
    author_email: str
    allow_empty: bool = False
    dry_run: bool = False

    @property
    def subject(self) -> str:
        return first_line(self.message)

    @property
    def author(self) -> Signature:
        return Signature(self.author_name, self.author_email)


@dataclass(frozen=True)
class CommitPreview:
    """What a dry run would have committed."""

    plan: CommitPlan

    def render(self) -> str:
        lines = [
            "Dry run commit preview:",
            "Message:",
            f"  {self.plan.subject}",
            "Files:",
        ]
        if self.plan.staged_paths:
            lines.extend(f"  • {path}" for path in self.plan.staged_paths)
        else:
            lines.append("  (none; empty commit would be created)")
        return "\n".join(lines)


@dataclass(frozen=True)
class CommitResult:
    """A created commit, as read back from the repository."""

    hash: str
    author_name: str
    author_email: str
    timestamp: datetime
    message_subject: str

    @classmethod
    def from_info(cls, info: CommitInfo) -> "CommitResult":
        return cls(
            hash=info.hash,
            author_name=info.author_name,
            author_email=info.author_email,
            timestamp=info.timestamp,
            message_subject=info.subject,
        )

    def render(self, staged_paths: Sequence[str] = ()) -> str:
        lines = [
            "Commit created:",
            f"  Hash: {self.hash}",
            f"  Author: {self.author_name} <{self.author_email}>",
            f"  Date: {self.timestamp.isoformat()}",
            f"  Subject: {self.message_subject}",
        ]
        if staged_paths:
            lines.append("")
            lines.append("Files included:")
            lines.extend(f"  • {path}" for path in staged_paths)
        else:
            lines.append("(Empty commit)")
        return "\n".join(lines)


def first_line(text: str) -> str:
    return text.split("\n", 1)[0]


def check_staged(staged_paths: Sequence[str], allow_empty: bool) -> None:
    """Reject an empty commit unless explicitly allowed.

    Raises:
        NothingToCommitError: Nothing is staged and ``allow_empty`` is False.
    """
    if not staged_paths and not allow_empty:
        raise NothingToCommitError()


def parse_author(text: Optional[str]) -> Optional[Signature]:
    """Parse ``Name <email>``; return None when the text is malformed."""
    if not text:
        return None
    match = _AUTHOR_RE.match(text)
    if not match:
        return None
    name = match.group("name").strip()
    email = match.group("email").strip()
    if not name or not email:
        return None
    return Signature(name, email)


def resolve_author(
    override: Optional[str] = None, env: Optional[Mapping[str, str]] = None
) -> Signature:
    """Resolve the commit author.

    Precedence: a well-formed ``override``, then ``GIT_AUTHOR_NAME`` /
    ``GIT_AUTHOR_EMAIL`` from ``env``, then placeholder defaults. A
    malformed override is ignored.
    """
    parsed = parse_author(override)
    if parsed is not None:
        return parsed
    if override:
        logger.debug("ignoring malformed author override %r", override)
    source = os.environ if env is None else env
    return Signature(
        source.get(AUTHOR_NAME_ENV) or DEFAULT_AUTHOR_NAME,
        source.get(AUTHOR_EMAIL_ENV) or DEFAULT_AUTHOR_EMAIL,
    )


def plan_commit(
    staged_paths: Sequence[str],
    message: str,
    author: Optional[str] = None,
    allow_empty: bool = False,
    dry_run: bool = False,
    env: Optional[Mapping[str, str]] = None,
) -> CommitPlan:
    """Validate inputs and build an immutable :class:`CommitPlan`.

    Raises:
        NothingToCommitError: No staged paths and ``allow_empty`` is False.
        ValidationError: The message is blank.
    """
    check_staged(staged_paths, allow_empty)
    if not message or not message.strip():
        raise ValidationError("commit message required")
    signature = resolve_author(author, env)
    return CommitPlan(
        staged_paths=tuple(staged_paths),
        message=message.strip(),
        author_name=signature.name,
        author_email=signature.email,
        allow_empty=allow_empty,
        dry_run=dry_run,
    )


class CommitExecutor:
    """Turns a :class:`CommitPlan` into a commit (or a dry-run preview)."""

    def __init__(self, repo: CommitBackend) -> None:
        self.repo = repo

    def execute(self, plan: CommitPlan) -> Union[CommitResult, CommitPreview]:
        """Create the commit described by ``plan``.

        Dry runs return a :class:`CommitPreview` and never touch the
        repository.

        Raises:
            CommitError: The backend rejected the commit.
            CommitReadbackError: The commit exists but could not be read.
        """
        if plan.dry_run:
            return CommitPreview(plan)

        when = datetime.now(timezone.utc).astimezone()
        commit_hash = self.repo.create_commit(
            plan.message,
            plan.author,
            when,
            allow_empty=plan.allow_empty,
        )
        logger.debug("created commit %s", commit_hash)
        try:
            info = self.repo.read_commit(commit_hash)
        except GitError as e:
            raise CommitReadbackError(commit_hash, str(e)) from e
        return CommitResult.from_info(info)
