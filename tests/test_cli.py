import rcmt.cli as cli_module
from rcmt.config import config_file_path
from rcmt.exceptions import ProviderUnavailable, RewriteCMTError

from conftest import run_git


class _FakeWorkflow:
    instances = []

    def __init__(self, repo_path=None, config=None, **_kw):
        self.config = config
        self.ran = False
        _FakeWorkflow.instances.append(self)

    def run(self):
        self.ran = True

    def generate_for_staged(self):
        return "feat: staged change"


def test_cli_help_returns_zero():
    assert cli_module.CLI().run(["--help"]) == 0


def test_cli_executes_workflow(monkeypatch, tmp_path):
    _FakeWorkflow.instances = []
    monkeypatch.setattr(cli_module, "RewriteWorkflow", _FakeWorkflow)

    code = cli_module.CLI().run(
        [
            "--provider",
            "openai",
            "--model",
            "test-model",
            "--repo-path",
            str(tmp_path),
            "--dry-run",
            "--max-commits",
            "4",
            "--no-skip-well-formed",
            "--min-quality-score",
            "8",
            "-y",
        ]
    )

    assert code == 0
    (workflow,) = _FakeWorkflow.instances
    assert workflow.ran
    cfg = workflow.config
    assert cfg.model == "test-model"
    assert cfg.dry_run is True
    assert cfg.max_commits == 4
    assert cfg.skip_well_formed is False
    assert cfg.min_quality_score == 8
    assert cfg.assume_yes is True


def test_cli_handles_workflow_failure(monkeypatch, tmp_path):
    class _Failing(_FakeWorkflow):
        def run(self):
            raise RewriteCMTError("boom")

    monkeypatch.setattr(cli_module, "RewriteWorkflow", _Failing)
    assert cli_module.CLI().run(["--repo-path", str(tmp_path)]) == 1


def test_cli_interrupt_returns_130(monkeypatch, tmp_path):
    class _Interrupted(_FakeWorkflow):
        def run(self):
            raise KeyboardInterrupt

    monkeypatch.setattr(cli_module, "RewriteWorkflow", _Interrupted)
    assert cli_module.CLI().run(["--repo-path", str(tmp_path)]) == 130


def test_cli_requires_api_key(monkeypatch, make_repo, capsys):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    repo = make_repo(["wip"])

    assert cli_module.CLI().run(["--provider", "openai", "--repo-path", str(repo)]) == 2
    assert "OPENAI_API_KEY" in capsys.readouterr().err


def test_cli_rejects_out_of_range_score():
    assert cli_module.CLI().run(["--min-quality-score", "11"]) == 2
    assert cli_module.CLI().run(["--min-quality-score", "0"]) == 2


def test_cli_rejects_negative_max_commits():
    assert cli_module.CLI().run(["--max-commits", "-1"]) == 2


def test_cli_staged_prints_message(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(cli_module, "RewriteWorkflow", _FakeWorkflow)

    assert cli_module.CLI().run(["--staged", "--repo-path", str(tmp_path)]) == 0
    assert capsys.readouterr().out.strip() == "feat: staged change"


def test_cli_staged_generation_failure(monkeypatch, tmp_path):
    class _Down(_FakeWorkflow):
        def generate_for_staged(self):
            raise ProviderUnavailable("down")

    monkeypatch.setattr(cli_module, "RewriteWorkflow", _Down)
    assert cli_module.CLI().run(["--staged", "--repo-path", str(tmp_path)]) == 1


def test_cli_install_hooks(make_repo, capsys):
    repo = make_repo(["init project"])

    assert cli_module.CLI().run(["--install-hooks", "--repo-path", str(repo)]) == 0
    assert (repo / ".git" / "hooks" / "prepare-commit-msg").exists()
    assert "prepare-commit-msg - installed" in capsys.readouterr().out

    assert cli_module.CLI().run(["--install-hooks", "--repo-path", str(repo)]) == 0
    assert "already exists" in capsys.readouterr().out


def test_cli_save_config(make_repo):
    repo = make_repo(["init project"])

    code = cli_module.CLI().run(
        ["--save-config", "--provider", "ollama", "--language", "de", "--repo-path", str(repo)]
    )

    assert code == 0
    assert config_file_path(repo).exists()
    assert run_git(repo, "log", "--format=%s") == "init project"


def test_main_entrypoint_help():
    from rcmt import main as main_mod

    assert main_mod.main.__module__ == "rcmt.main"
    assert cli_module.main(["--help"]) == 0
