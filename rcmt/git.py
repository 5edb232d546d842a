"""Git operations for rcmt."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, Optional, Sequence

from .config import Config, get_active_config
from .exceptions import GitError

# Well-known id of git's empty tree; used as the baseline for root commits.
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

logger = logging.getLogger(__name__)


def find_git_repo_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Return the top-level Git repository directory for ``start_path``.

    Attempts ``git rev-parse --show-toplevel`` first so worktrees and
    submodules are handled correctly. Falls back to walking parent
    directories looking for a ``.git`` directory or file. Returns ``None``
    when no Git repository can be found starting from ``start_path``.
    """

    path = Path(start_path or Path.cwd()).expanduser().resolve(strict=False)
    if path.is_file():
        path = path.parent

    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=path,
            capture_output=True,
            text=True,
            check=True,
        )
        top = result.stdout.strip()
        if top:
            return Path(top)
    except (subprocess.CalledProcessError, FileNotFoundError):
        pass

    for candidate in (path, *path.parents):
        git_meta = candidate / ".git"
        if git_meta.exists():
            return candidate

    return None


class GitRepo:
    """Narrow command contract over the git binary."""

    def __init__(
        self,
        repo_path: Optional[str] = None,
        config: Optional[Config] = None,
    ) -> None:
        """Initialize Git repository handler."""

        self._config = config or get_active_config()
        self.repo_path = Path(repo_path or self._config.git_repo_path)
        if not self._is_git_repo():
            raise GitError(f"Not a Git repository: {self.repo_path}")

    def _is_git_repo(self) -> bool:
        """Check if the current directory is a Git repository."""
        try:
            self._run_git_command(["rev-parse", "--git-dir"])
            return True
        except GitError:
            return False

    def _run_git_command(
        self,
        args: Sequence[str],
        env: Optional[Dict[str, str]] = None,
        strip: bool = True,
    ) -> str:
        """Run a Git command and return its output."""
        logger.debug("git %s", " ".join(args))
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=True,
                env=env,
            )
            return result.stdout.strip() if strip else result.stdout
        except subprocess.CalledProcessError as e:
            cmd = " ".join(args)
            raise GitError(
                f"Git command failed: {cmd}\n{e.stderr}"
            ) from e
        except FileNotFoundError as exc:
            raise GitError(
                "Git command not found. Please install Git."
            ) from exc

    # ------------------------------------------------------------------
    # Repository state
    # ------------------------------------------------------------------
    def git_dir(self) -> Path:
        """Absolute path of the repository's internal metadata directory."""
        return Path(self._run_git_command(["rev-parse", "--absolute-git-dir"]))

    def current_branch(self) -> str:
        """Checked-out branch name; ``HEAD`` when detached."""
        # symbolic-ref also works on an unborn branch, rev-parse does not.
        try:
            return self._run_git_command(["symbolic-ref", "--short", "-q", "HEAD"])
        except GitError:
            return "HEAD"

    def has_uncommitted_changes(self) -> bool:
        return bool(self._run_git_command(["status", "--porcelain"]))

    def has_commits(self, ref: str = "HEAD") -> bool:
        try:
            self._run_git_command(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])
        except GitError:
            return False
        return True

    def resolve_ref(self, ref: str = "HEAD") -> str:
        return self._run_git_command(["rev-parse", ref])

    def branch_exists(self, name: str) -> bool:
        try:
            self._run_git_command(["rev-parse", "--verify", "--quiet", f"refs/heads/{name}"])
        except GitError:
            return False
        return True

    def create_branch(self, name: str, start_point: str = "HEAD") -> None:
        self._run_git_command(["branch", name, start_point])

    # ------------------------------------------------------------------
    # Commit inspection
    # ------------------------------------------------------------------
    def list_commits(self, ref: str = "HEAD") -> list[str]:
        """Return commit ids reachable from ``ref``, oldest first."""
        if not self.has_commits(ref):
            return []
        output = self._run_git_command(["rev-list", "--reverse", ref])
        return [line for line in output.split("\n") if line]

    def get_commit_message(self, commit_id: str) -> str:
        """Full message (subject and body) of ``commit_id``."""
        return self._run_git_command(["log", "-1", "--format=%B", commit_id])

    def get_commit_subject(self, commit_id: str) -> str:
        return self._run_git_command(["log", "-1", "--format=%s", commit_id])

    def get_parent(self, commit_id: str) -> Optional[str]:
        """First parent of ``commit_id`` or ``None`` for a root commit."""
        output = self._run_git_command(["rev-list", "--parents", "-n", "1", commit_id])
        parts = output.split()
        return parts[1] if len(parts) > 1 else None

    def get_changed_files(self, commit_id: str) -> list[str]:
        output = self._run_git_command(
            ["diff-tree", "--no-commit-id", "--name-only", "-r", "--root", commit_id]
        )
        return [line for line in output.split("\n") if line]

    def get_commit_diff(self, commit_id: str) -> str:
        """Diff of ``commit_id`` against its parent, or the empty tree."""
        parent = self.get_parent(commit_id)
        base = parent if parent else EMPTY_TREE
        return self._run_git_command(
            ["diff-tree", "--no-commit-id", "-p", "-r", base, commit_id],
            strip=False,
        )

    # ------------------------------------------------------------------
    # Staged changes
    # ------------------------------------------------------------------
    def get_staged_diff(self) -> str:
        """Get the diff of staged changes."""
        return self._run_git_command(["diff", "--cached"])

    def get_staged_files(self) -> list[str]:
        output = self._run_git_command(["diff", "--cached", "--name-only"])
        return [line for line in output.split("\n") if line]

    def has_staged_changes(self) -> bool:
        """Check if there are staged changes."""
        diff = self.get_staged_diff()
        return bool(diff.strip())

    # ------------------------------------------------------------------
    # History rewriting
    # ------------------------------------------------------------------
    def filter_branch_messages(
        self,
        msg_filter: str,
        rev_range: str,
        extra_env: Optional[Dict[str, str]] = None,
    ) -> str:
        """Run ``git filter-branch --msg-filter`` over ``rev_range``.

        Only refs named positively in ``rev_range`` are rewritten.
        """
        env = dict(os.environ)
        env["FILTER_BRANCH_SQUELCH_WARNING"] = "1"
        env.update(extra_env or {})
        return self._run_git_command(
            ["filter-branch", "-f", "--msg-filter", msg_filter, "--", rev_range],
            env=env,
        )
