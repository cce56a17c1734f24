"""Exception hierarchy for bgit."""

from __future__ import annotations

from typing import Optional


class BgitError(Exception):
    """Base class for all bgit errors."""


class ConfigError(BgitError):
    """Invalid or unsupported configuration."""


class GitError(BgitError):
    """A git backend operation failed."""


class RepositoryNotFoundError(GitError):
    """No git repository exists at the requested path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"no git repository found at {path}")
        self.path = path


class StatusQueryError(GitError):
    """The working tree status could not be computed."""


class DiffError(GitError):
    """Computing the diff for a single path failed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"failed to diff {path}: {reason}")
        self.path = path
        self.reason = reason


class CommitError(GitError):
    """The backend rejected the commit; nothing was written."""


class CommitReadbackError(GitError):
    """The commit was written but could not be read back."""

    def __init__(self, commit_hash: Optional[str], reason: str) -> None:
        target = commit_hash or "HEAD"
        super().__init__(f"commit created but retrieval of {target} failed: {reason}")
        self.commit_hash = commit_hash


class LLMError(BgitError):
    """A text-generation provider call failed."""


class MissingCredentialError(LLMError):
    """The provider's credential environment variable is unset."""

    def __init__(self, env_var: str) -> None:
        super().__init__(f"{env_var} not set")
        self.env_var = env_var


class ValidationError(BgitError):
    """User input cannot produce a valid commit."""


class NothingToCommitError(ValidationError):
    """Nothing is staged and empty commits were not allowed."""

    def __init__(self) -> None:
        super().__init__(
            "no staged changes to commit (stage files first or use allow-empty)"
        )
