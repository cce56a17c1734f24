"""Core workflow logic for bgit."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence, Union

from .commit import (
    CommitExecutor,
    CommitPlan,
    CommitPreview,
    CommitResult,
    check_staged,
    plan_commit,
)
from .config import Config, Provider, load_config
from .diff import DiffCollector
from .exceptions import ValidationError
from .git import GitRepo, StageResult
from .llm import (
    DriverFactory,
    MessageSynthesizer,
    ProviderWarning,
    SynthesisResult,
)
from .status import StatusReport, classify, render_status, staged_paths

logger = logging.getLogger(__name__)

MESSAGE_SOURCE_USER = "user"


@dataclass
class CommitOutcome:
    """Result of :meth:`BgitWorkflow.commit`."""

    result: Union[CommitResult, CommitPreview]
    plan: CommitPlan
    message_source: str = MESSAGE_SOURCE_USER
    warnings: list[ProviderWarning] = field(default_factory=list)

    @property
    def dry_run(self) -> bool:
        return isinstance(self.result, CommitPreview)

    def render(self) -> str:
        lines = [str(w) for w in self.warnings]
        if isinstance(self.result, CommitPreview):
            lines.append(self.result.render())
        else:
            lines.append(self.result.render(self.plan.staged_paths))
        return "\n".join(lines)


class BgitWorkflow:
    """Status, message synthesis and commit creation for one repository."""

    def __init__(
        self,
        repo_path: Optional[str] = None,
        config: Optional[Config] = None,
        env: Optional[Mapping[str, str]] = None,
        driver_factory: Optional[DriverFactory] = None,
        debug: bool = False,
    ) -> None:
        """Open the repository and capture configuration once.

        Raises:
            RepositoryNotFoundError: No repository at ``repo_path``.
        """
        self.env = env
        self._config = config or load_config(env=env)
        self.git_repo = GitRepo(repo_path or self._config.repo_path)
        self.diff_collector = DiffCollector(self.git_repo)
        self.executor = CommitExecutor(self.git_repo)
        self._driver_factory = driver_factory
        self.debug = debug

    @property
    def config(self) -> Config:
        return self._config

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    def classify_status(self) -> StatusReport:
        return classify(self.git_repo.status())

    def staged_paths(self) -> list[str]:
        return staged_paths(self.git_repo.status())

    def render_status(self) -> str:
        raw = self.git_repo.status()
        branch = self.git_repo.current_branch()
        return render_status(classify(raw), branch=branch)

    def stage_all(self) -> None:
        self.git_repo.stage_all()

    def stage_paths(self, paths: Sequence[str]) -> StageResult:
        return self.git_repo.stage_paths(paths)

    # ------------------------------------------------------------------
    # Message generation
    # ------------------------------------------------------------------
    def collect_staged_diff(self, paths: Optional[Sequence[str]] = None) -> str:
        if paths is None:
            paths = self.staged_paths()
        return self.diff_collector.collect(paths)

    def generate_commit_message(
        self,
        diff: str,
        paths: Optional[Sequence[str]] = None,
        providers: Optional[Sequence[Provider]] = None,
    ) -> SynthesisResult:
        """Run the provider chain over ``diff``; never raises for AI failure."""
        synthesizer = MessageSynthesizer(
            self._config.providers if providers is None else providers,
            timeout=self._config.request_timeout,
            env=self.env,
            driver_factory=self._driver_factory,
            debug=self.debug,
        )
        return synthesizer.synthesize(diff, paths=paths)

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------
    def plan_commit(
        self,
        staged: Sequence[str],
        message: str,
        author: Optional[str] = None,
        allow_empty: bool = False,
        dry_run: bool = False,
    ) -> CommitPlan:
        return plan_commit(
            staged,
            message,
            author=author,
            allow_empty=allow_empty,
            dry_run=dry_run,
            env=self.env,
        )

    def execute_commit(self, plan: CommitPlan) -> Union[CommitResult, CommitPreview]:
        return self.executor.execute(plan)

    def commit(
        self,
        message: Optional[str] = None,
        author: Optional[str] = None,
        allow_empty: bool = False,
        dry_run: bool = False,
        use_ai: bool = True,
    ) -> CommitOutcome:
        """Commit the staged changes end to end.

        The staged set is validated before any diff or provider work. An
        explicit ``message`` is used as given; otherwise the message comes
        from the provider chain. With ``use_ai`` False a message is required.

        Raises:
            NothingToCommitError: Nothing staged and ``allow_empty`` is False.
            ValidationError: The message is blank, or missing with AI disabled.
            StatusQueryError / DiffError: The backend query failed.
            CommitError / CommitReadbackError: Writing or reading the commit
                failed.
        """
        staged = self.staged_paths()
        check_staged(staged, allow_empty)

        warnings: list[ProviderWarning] = []
        source = MESSAGE_SOURCE_USER
        if message is not None and not message.strip():
            raise ValidationError("commit message required")
        if message is None:
            if not use_ai:
                raise ValidationError(
                    "commit message required (provide a message or enable AI)"
                )
            diff = self.collect_staged_diff(staged)
            synthesis = self.generate_commit_message(diff, paths=staged)
            message = synthesis.message
            warnings = synthesis.warnings
            source = synthesis.source

        plan = self.plan_commit(
            staged,
            message,
            author=author,
            allow_empty=allow_empty,
            dry_run=dry_run,
        )
        result = self.execute_commit(plan)
        if isinstance(result, CommitResult):
            logger.info("committed %s: %s", result.hash[:7], result.message_subject)
        return CommitOutcome(
            result=result, plan=plan, message_source=source, warnings=warnings
        )
