import subprocess
import types

import pytest

from bgit.commit import CommitPreview, CommitResult
from bgit.config import load_config
from bgit.core import BgitWorkflow
from bgit.exceptions import NothingToCommitError, ValidationError
from bgit.llm import HEURISTIC_SOURCE, ProviderWarning


def git(cwd, *args):
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout


def _head(repo):
    return git(repo, "rev-parse", "HEAD").strip()


def _factory(message, calls):
    def factory(provider, api_key, timeout, debug=False):
        def complete(prompt):
            calls.append((provider.name, prompt))
            return message

        return types.SimpleNamespace(complete=complete)

    return factory


def test_nothing_staged_fails_before_any_diff(git_repo, monkeypatch):
    (git_repo / "README.md").write_text("unstaged edit\n")
    workflow = BgitWorkflow(str(git_repo), env={})

    def fail(*_a, **_k):
        raise AssertionError("diff must not be collected")

    monkeypatch.setattr(workflow.diff_collector, "collect", fail)
    before = _head(git_repo)

    with pytest.raises(NothingToCommitError):
        workflow.commit()
    assert _head(git_repo) == before


def test_blank_explicit_message_is_rejected(git_repo):
    (git_repo / "a.py").write_text("a = 1\n")
    git(git_repo, "add", "a.py")
    with pytest.raises(ValidationError):
        BgitWorkflow(str(git_repo), env={}).commit(message="  \n")


def test_dry_run_leaves_history_untouched(git_repo):
    (git_repo / "a.py").write_text("a = 1\n")
    git(git_repo, "add", "a.py")
    before = _head(git_repo)

    outcome = BgitWorkflow(str(git_repo), env={}).commit(
        message="feat: add a", dry_run=True
    )

    assert outcome.dry_run
    assert isinstance(outcome.result, CommitPreview)
    assert _head(git_repo) == before
    assert "  • a.py" in outcome.render()


def test_commit_with_explicit_message_and_author(git_repo):
    (git_repo / "a.py").write_text("a = 1\n")
    git(git_repo, "add", "a.py")

    outcome = BgitWorkflow(str(git_repo), env={}).commit(
        message="feat: add a\n\nlonger body", author="Ada <ada@example.com>"
    )

    result = outcome.result
    assert isinstance(result, CommitResult)
    assert result.hash == _head(git_repo)
    assert result.message_subject == "feat: add a"
    assert (result.author_name, result.author_email) == (
        outcome.plan.author_name,
        outcome.plan.author_email,
    ) == ("Ada", "ada@example.com")
    assert git(git_repo, "log", "-1", "--format=%an <%ae>").strip() == (
        "Ada <ada@example.com>"
    )


def test_commit_without_ai_requires_message(git_repo, monkeypatch):
    (git_repo / "a.py").write_text("a = 1\n")
    git(git_repo, "add", "a.py")
    workflow = BgitWorkflow(str(git_repo), env={})

    def fail(*_a, **_k):
        raise AssertionError("providers must not be consulted")

    monkeypatch.setattr(workflow, "generate_commit_message", fail)
    before = _head(git_repo)

    with pytest.raises(ValidationError) as ei:
        workflow.commit(use_ai=False)
    assert "enable AI" in str(ei.value)
    assert _head(git_repo) == before


def test_commit_without_ai_uses_explicit_message(git_repo):
    (git_repo / "a.py").write_text("a = 1\n")
    git(git_repo, "add", "a.py")

    outcome = BgitWorkflow(str(git_repo), env={}).commit(
        message="feat: add a", use_ai=False
    )

    assert outcome.result.message_subject == "feat: add a"
    assert (outcome.result.author_name, outcome.result.author_email) == (
        "bgit user",
        "user@example.com",
    )


def test_commit_with_provider_message(git_repo):
    (git_repo / "README.md").write_text("hello\nworld\n")
    git(git_repo, "add", "README.md")
    calls = []
    env = {"BGIT_PROVIDERS": "openrouter", "OPENROUTER_API_KEY": "or-key"}

    outcome = BgitWorkflow(
        str(git_repo),
        config=load_config(env=env),
        env=env,
        driver_factory=_factory("```\ndocs: greet the world\n```", calls),
    ).commit()

    assert outcome.message_source == "openrouter"
    assert outcome.warnings == []
    assert outcome.result.message_subject == "docs: greet the world"
    assert calls[0][0] == "openrouter"
    assert "+world" in calls[0][1]


def test_commit_without_credentials_falls_back_with_warnings(git_repo):
    (git_repo / "notes.md").write_text("n\n")
    git(git_repo, "add", "notes.md")
    calls = []

    outcome = BgitWorkflow(
        str(git_repo), env={}, driver_factory=_factory("unused", calls)
    ).commit()

    assert calls == []
    assert outcome.message_source == HEURISTIC_SOURCE
    assert [w.provider for w in outcome.warnings] == [
        "openai",
        "openrouter",
        "anthropic",
    ]
    assert all(w.kind == ProviderWarning.MISSING_CREDENTIAL for w in outcome.warnings)
    assert outcome.result.message_subject == "update 1 paths (1 md file)"
    assert outcome.render().startswith("openai: missing credential (OPENAI_API_KEY")


def test_allow_empty_commit(git_repo):
    before = _head(git_repo)
    outcome = BgitWorkflow(str(git_repo), env={}).commit(allow_empty=True)
    assert outcome.result.message_subject == "chore: empty commit"
    assert _head(git_repo) != before
    assert "(Empty commit)" in outcome.render()


def test_render_status_clean_and_dirty(git_repo):
    workflow = BgitWorkflow(str(git_repo), env={})
    assert workflow.render_status() == "On branch main\nWorking tree clean"

    (git_repo / "README.md").write_text("changed\n")
    (git_repo / "new.txt").write_text("n\n")
    report = workflow.classify_status()
    assert report.modified == ("README.md",)
    assert report.untracked == ("new.txt",)
    assert "Modified (1)\n  • README.md" in workflow.render_status()


def test_stage_all_then_staged_paths(git_repo):
    (git_repo / "README.md").write_text("changed\n")
    (git_repo / "new.txt").write_text("n\n")
    workflow = BgitWorkflow(str(git_repo), env={})
    assert workflow.staged_paths() == []

    workflow.stage_all()
    assert workflow.staged_paths() == ["README.md", "new.txt"]


def test_stage_paths_continues_past_failures(git_repo):
    (git_repo / "good.py").write_text("g = 1\n")
    workflow = BgitWorkflow(str(git_repo), env={})

    result = workflow.stage_paths(["good.py", "missing.py"])

    assert result.staged == ["good.py"]
    assert [path for path, _ in result.failed] == ["missing.py"]
    assert "missing.py" in result.failed[0][1]
    assert workflow.staged_paths() == ["good.py"]
    assert "Failed (1):\n  • missing.py (" in result.render()
