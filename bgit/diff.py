"""Staged diff collection for bgit."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from .exceptions import DiffError, GitError

logger = logging.getLogger(__name__)


class DiffBackend(Protocol):
    def diff_for_path(self, file_path: str) -> str: ...


@dataclass
class DiffResult:
    """Outcome of a lenient collection: diff text plus skipped paths."""

    text: str = ""
    skipped: list[DiffError] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [str(err) for err in self.skipped]


class DiffCollector:
    """Builds the unified diff text for a list of staged paths."""

    def __init__(self, repo: DiffBackend) -> None:
        self.repo = repo

    def _diff_one(self, path: str) -> str:
        try:
            return self.repo.diff_for_path(path)
        except GitError as e:
            raise DiffError(path, str(e).strip()) from e

    def collect(self, paths: Iterable[str]) -> str:
        """Concatenate per-path diffs in input order.

        The first failing path aborts the whole collection.

        Raises:
            DiffError: Identifies the path whose diff failed.
        """
        return "".join(self._diff_one(path) for path in paths)

    def collect_lenient(self, paths: Iterable[str]) -> DiffResult:
        """Like :meth:`collect` but skip failing paths instead of aborting."""
        result = DiffResult()
        chunks: list[str] = []
        for path in paths:
            try:
                chunks.append(self._diff_one(path))
            except DiffError as err:
                logger.warning("skipping diff for %s: %s", path, err.reason)
                result.skipped.append(err)
        result.text = "".join(chunks)
        return result
