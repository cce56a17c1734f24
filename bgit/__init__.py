"""bgit - status classification and AI-assisted commits for Git."""

from importlib import import_module
from typing import TYPE_CHECKING

__version__ = "0.1.0"

# Public API (lazy-exported to avoid importing provider SDKs at import time)
__all__ = [
    # Config
    "Config", "Provider", "load_config",
    # Status
    "FileState", "PathStatus", "StatusReport", "classify",
    # Git
    "GitRepo",
    # Diff
    "DiffCollector",
    # Message synthesis
    "MessageSynthesizer", "SynthesisResult", "synthesize_message",
    # Commit
    "CommitPlan", "CommitResult", "CommitExecutor", "plan_commit",
    # Workflow
    "BgitWorkflow",
    # Exceptions
    "BgitError", "GitError", "LLMError", "ConfigError", "ValidationError",
]


def __getattr__(name: str):
    """Lazy attribute loader so ``import bgit`` stays cheap."""
    mapping = {
        # Config
        "Config": ("bgit.config", "Config"),
        "Provider": ("bgit.config", "Provider"),
        "load_config": ("bgit.config", "load_config"),
        # Status
        "FileState": ("bgit.status", "FileState"),
        "PathStatus": ("bgit.status", "PathStatus"),
        "StatusReport": ("bgit.status", "StatusReport"),
        "classify": ("bgit.status", "classify"),
        # Git
        "GitRepo": ("bgit.git", "GitRepo"),
        # Diff
        "DiffCollector": ("bgit.diff", "DiffCollector"),
        # Message synthesis
        "MessageSynthesizer": ("bgit.llm", "MessageSynthesizer"),
        "SynthesisResult": ("bgit.llm", "SynthesisResult"),
        "synthesize_message": ("bgit.llm", "synthesize_message"),
        # Commit
        "CommitPlan": ("bgit.commit", "CommitPlan"),
        "CommitResult": ("bgit.commit", "CommitResult"),
        "CommitExecutor": ("bgit.commit", "CommitExecutor"),
        "plan_commit": ("bgit.commit", "plan_commit"),
        # Workflow
        "BgitWorkflow": ("bgit.core", "BgitWorkflow"),
        # Exceptions
        "BgitError": ("bgit.exceptions", "BgitError"),
        "GitError": ("bgit.exceptions", "GitError"),
        "LLMError": ("bgit.exceptions", "LLMError"),
        "ConfigError": ("bgit.exceptions", "ConfigError"),
        "ValidationError": ("bgit.exceptions", "ValidationError"),
    }
    if name in mapping:
        mod_name, attr = mapping[name]
        mod = import_module(mod_name)
        value = getattr(mod, attr)
        globals()[name] = value  # cache for future access
        return value
    raise AttributeError(f"module 'bgit' has no attribute {name!r}")


if TYPE_CHECKING:
    from .commit import CommitExecutor, CommitPlan, CommitResult, plan_commit
    from .config import Config, Provider, load_config
    from .core import BgitWorkflow
    from .diff import DiffCollector
    from .exceptions import (
        BgitError,
        ConfigError,
        GitError,
        LLMError,
        ValidationError,
    )
    from .git import GitRepo
    from .llm import MessageSynthesizer, SynthesisResult, synthesize_message
    from .status import FileState, PathStatus, StatusReport, classify
