import subprocess
from collections.abc import Generator
from pathlib import Path

import pytest

_PROVIDER_ENV = (
    "OPENAI_API_KEY",
    "OPENROUTER_API_KEY",
    "ANTHROPIC_API_KEY",
    "XAI_API_KEY",
    "GITHUB_TOKEN",
    "BGIT_PROVIDERS",
    "BGIT_LLM_REQUEST_TIMEOUT",
    "BGIT_REPO_PATH",
)
_GIT_IDENTITY_ENV = (
    "GIT_AUTHOR_NAME",
    "GIT_AUTHOR_EMAIL",
    "GIT_AUTHOR_DATE",
    "GIT_COMMITTER_NAME",
    "GIT_COMMITTER_EMAIL",
    "GIT_COMMITTER_DATE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    # Real credentials or identities from the developer's shell must not
    # leak into provider selection or commit authorship.
    for name in _PROVIDER_ENV + _GIT_IDENTITY_ENV:
        monkeypatch.delenv(name, raising=False)
    yield


# Ensure no real Anthropic network calls escape during tests that don't
# explicitly mock the endpoint.
@pytest.fixture(autouse=True)
def _block_anthropic_messages(monkeypatch):
    import httpx

    original_post = httpx.post

    def fake_post(url, *args, **kwargs):  # noqa: D401
        if isinstance(url, str) and "api.anthropic.com" in url:
            raise httpx.ConnectError("network disabled in tests")
        return original_post(url, *args, **kwargs)

    monkeypatch.setattr(httpx, "post", fake_post)


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A repository with one initial commit on ``main``."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "user.name", "Fixture User")
    git(repo, "config", "user.email", "fixture@example.com")
    git(repo, "config", "commit.gpgsign", "false")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    (repo / "README.md").write_text("hello\n")
    git(repo, "add", "README.md")
    git(repo, "commit", "-q", "-m", "chore: init")
    return repo
