import os
import subprocess
from collections.abc import Generator
from pathlib import Path
from typing import Callable, Sequence

import pytest

from rcmt.config import Config


@pytest.fixture(autouse=True)
def reset_config(
    monkeypatch: pytest.MonkeyPatch, request: pytest.FixtureRequest
) -> Generator[None, None, None]:
    is_integration = any(
        mark.name == "integration" for mark in request.node.iter_markers()
    )
    if not is_integration or not os.environ.get("OPENAI_API_KEY"):
        # Default to OpenAI provider with a fake key for non-integration tests
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    for name in (
        "GITHUB_TOKEN",
        "ANTHROPIC_API_KEY",
        "XAI_API_KEY",
        "RCMT_PROVIDER",
        "RCMT_MODEL",
        "RCMT_ENDPOINT",
        "RCMT_TEMPLATE",
        "RCMT_LANGUAGE",
        "RCMT_MIN_QUALITY_SCORE",
        "RCMT_LLM_REQUEST_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    # Ambient variables that the fuzzy key detection would pick up.
    from rcmt.config import _FUZZY_ENV_HINTS, clear_active_config

    hints = [hint.lower() for names in _FUZZY_ENV_HINTS.values() for hint in names]
    for name in list(os.environ):
        if name == "OPENAI_API_KEY":
            continue
        if any(hint in name.lower() for hint in hints):
            monkeypatch.delenv(name, raising=False)

    clear_active_config()
    yield
    clear_active_config()


# Ensure no real Anthropic network calls escape during tests that don't
# explicitly mock the endpoint. This only intercepts Anthropic's messages API
# and leaves other providers untouched.
@pytest.fixture(autouse=True)
def _mock_anthropic_messages(monkeypatch):
    import httpx

    original_post = httpx.post

    def fake_post(url, *args, **kwargs):  # noqa: D401
        if isinstance(url, str) and "api.anthropic.com" in url and "/v1/messages" in url:

            class _Resp:
                status_code = 200

                def json(self):  # noqa: D401
                    return {
                        "content": [
                            {
                                "type": "text",
                                "text": "feat(test): stubbed anthropic message",
                            }
                        ]
                    }

                @property
                def text(self):  # noqa: D401
                    return "ok"

            return _Resp()
        return original_post(url, *args, **kwargs)

    monkeypatch.setattr(httpx, "post", fake_post)


def run_git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Deterministic git identity, no user/system config leaking in."""
    empty_cfg = tmp_path / "gitconfig"
    empty_cfg.write_text("")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(empty_cfg))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "rcmt tests")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "tests@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "rcmt tests")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "tests@example.com")


@pytest.fixture
def make_repo(tmp_path: Path, git_env) -> Callable[[Sequence[str]], Path]:
    """Create ``tmp_path/repo`` on branch ``main`` with one commit per message."""

    def _make(messages: Sequence[str]) -> Path:
        repo = tmp_path / "repo"
        repo.mkdir()
        run_git(repo, "init", "-q")
        run_git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
        for index, message in enumerate(messages):
            name = f"file{index}.txt"
            (repo / name).write_text(f"content {index}\n")
            run_git(repo, "add", name)
            run_git(repo, "commit", "-q", "-m", message)
        return repo

    return _make


@pytest.fixture
def make_config() -> Callable[..., Config]:
    def _make(repo: Path, **changes) -> Config:
        base = Config(
            provider="openai",
            model="gpt-test",
            llm_endpoint="http://localhost",
            api_key_env="OPENAI_API_KEY",
            git_repo_path=str(repo),
        )
        return base.with_overrides(**changes)

    return _make


class FakeProvider:
    """Records prompts and answers from a queue (or a callable)."""

    def __init__(self, answers=None, error=None):
        self.answers = answers if callable(answers) else list(answers or [])
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def generate_message(self, prompt: str, system_instruction: str) -> str:
        self.calls.append((prompt, system_instruction))
        if self.error is not None:
            raise self.error
        if callable(self.answers):
            return self.answers(prompt)
        return self.answers.pop(0)


@pytest.fixture
def fake_provider_cls():
    return FakeProvider
