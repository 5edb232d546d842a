import subprocess

import pytest

from rcmt.exceptions import GitError
from rcmt.git import GitRepo, find_git_repo_root

from conftest import run_git


def test_gitrepo_init_validates_repo(monkeypatch, make_config, tmp_path):
    monkeypatch.setattr(GitRepo, "_is_git_repo", lambda self: False)

    with pytest.raises(GitError):
        GitRepo(str(tmp_path), make_config(tmp_path))


def test_run_git_command_success(monkeypatch, tmp_path):
    class _R:
        stdout = "ok\n"

    def fake_run(cmd, cwd=None, capture_output=True, text=True, check=True, env=None):
        return _R()

    monkeypatch.setattr(subprocess, "run", fake_run)
    repo = object.__new__(GitRepo)
    repo.repo_path = tmp_path

    assert GitRepo._run_git_command(repo, ["status"]) == "ok"
    assert GitRepo._run_git_command(repo, ["status"], strip=False) == "ok\n"


def test_run_git_command_called_process_error(monkeypatch, tmp_path):
    def fake_run(*args, **kwargs):
        raise subprocess.CalledProcessError(1, "git", stderr="bad\n")

    monkeypatch.setattr(subprocess, "run", fake_run)
    repo = object.__new__(GitRepo)
    repo.repo_path = tmp_path

    with pytest.raises(GitError) as ei:
        GitRepo._run_git_command(repo, ["x"])
    assert "failed" in str(ei.value)
    assert "bad" in str(ei.value)


def test_run_git_command_file_not_found(monkeypatch, tmp_path):
    def fake_run(*args, **kwargs):
        raise FileNotFoundError()

    monkeypatch.setattr(subprocess, "run", fake_run)
    repo = object.__new__(GitRepo)
    repo.repo_path = tmp_path

    with pytest.raises(GitError) as ei:
        GitRepo._run_git_command(repo, ["status"])
    assert "install Git" in str(ei.value)


def test_find_git_repo_root_from_subdirectory(make_repo):
    repo = make_repo(["init project"])
    nested = repo / "a" / "b"
    nested.mkdir(parents=True)

    assert find_git_repo_root(nested).resolve() == repo.resolve()


def test_repository_state_queries(make_repo, make_config):
    repo = make_repo(["one", "two"])
    git_repo = GitRepo(str(repo), make_config(repo))

    assert git_repo.current_branch() == "main"
    assert git_repo.has_commits()
    assert not git_repo.has_uncommitted_changes()
    assert git_repo.branch_exists("main")
    assert not git_repo.branch_exists("nope")
    assert git_repo.git_dir() == (repo / ".git").resolve()

    (repo / "file1.txt").write_text("dirty\n")
    assert git_repo.has_uncommitted_changes()


def test_create_branch_and_parents(make_repo, make_config):
    repo = make_repo(["one", "two"])
    git_repo = GitRepo(str(repo), make_config(repo))
    root, tip = git_repo.list_commits()

    git_repo.create_branch("copy", root)

    assert git_repo.resolve_ref("copy") == root
    assert git_repo.get_parent(tip) == root
    assert git_repo.get_parent(root) is None
    assert git_repo.get_commit_subject(tip) == "two"


def test_empty_repository_has_no_commits(make_repo, make_config):
    repo = make_repo([])
    git_repo = GitRepo(str(repo), make_config(repo))

    assert not git_repo.has_commits()
    assert git_repo.list_commits() == []
    assert git_repo.current_branch() == "main"


def test_staged_changes(make_repo, make_config):
    repo = make_repo(["one"])
    git_repo = GitRepo(str(repo), make_config(repo))
    assert not git_repo.has_staged_changes()

    (repo / "new.txt").write_text("hello\n")
    run_git(repo, "add", "new.txt")

    assert git_repo.has_staged_changes()
    assert git_repo.get_staged_files() == ["new.txt"]
    assert "+hello" in git_repo.get_staged_diff()
