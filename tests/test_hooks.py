import os

from rcmt.git import GitRepo
from rcmt.hooks import HOOKS, PREPARE_COMMIT_MSG, install_hooks


def test_install_creates_executable_hook(make_repo, make_config):
    repo = make_repo(["init project"])
    git_repo = GitRepo(str(repo), make_config(repo))

    results = install_hooks(git_repo)

    assert results == {"prepare-commit-msg": "installed"}
    hook = repo / ".git" / "hooks" / "prepare-commit-msg"
    assert hook.read_text() == PREPARE_COMMIT_MSG
    assert os.access(hook, os.X_OK)


def test_existing_hook_is_not_overwritten(make_repo, make_config):
    repo = make_repo(["init project"])
    hook = repo / ".git" / "hooks" / "prepare-commit-msg"
    hook.parent.mkdir(parents=True, exist_ok=True)
    hook.write_text("#!/bin/sh\necho mine\n")

    results = install_hooks(GitRepo(str(repo), make_config(repo)))

    assert results == {"prepare-commit-msg": "skipped"}
    assert hook.read_text() == "#!/bin/sh\necho mine\n"


def test_hook_script_uses_staged_mode_and_settings():
    script = HOOKS["prepare-commit-msg"]
    assert script.startswith("#!/bin/sh")
    assert "--staged" in script
    assert "hooks.commitTemplate" in script
    assert "hooks.commitLanguage" in script
    assert "exit 0" in script
