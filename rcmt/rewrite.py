"""Application of a RewritePlan to git history."""

from __future__ import annotations

import json
import logging
import os
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .exceptions import GitError, RewriteApplicationError
from .git import GitRepo
from .history import RewritePlan

WORKDIR_NAME = "rcmt-rewrite"
PLAN_FILE_NAME = "plan.json"
CURSOR_FILE_NAME = "cursor"

logger = logging.getLogger(__name__)


@dataclass
class RewriteOutcome:
    """Result of HistoryRewriter.apply."""

    applied: bool
    rewritten: int = 0
    visited: int = 0
    old_head: Optional[str] = None
    new_head: Optional[str] = None


class HistoryRewriter:
    """Substitutes commit messages across the planned range in one pass.

    Every commit id at or after the first altered commit changes; callers
    should communicate that, it is not an error.
    """

    def __init__(self, git_repo: GitRepo, branch: Optional[str] = None) -> None:
        self.git_repo = git_repo
        self.branch = branch

    def _ref(self) -> str:
        if self.branch:
            return self.branch
        current = self.git_repo.current_branch()
        return current or "HEAD"

    def _rev_range(self, first_commit: str, ref: str) -> str:
        parent = self.git_repo.get_parent(first_commit)
        return f"{parent}..{ref}" if parent else ref

    def _filter_command(self, plan_path: Path, cursor_path: Path) -> str:
        return " ".join(
            shlex.quote(part)
            for part in (
                sys.executable,
                "-m",
                "rcmt.msg_filter",
                str(plan_path),
                str(cursor_path),
            )
        )

    def _filter_env(self) -> dict[str, str]:
        # filter-branch runs the callback from a scratch directory; make sure
        # this package is importable there.
        package_parent = str(Path(__file__).resolve().parent.parent)
        existing = os.environ.get("PYTHONPATH")
        return {
            "PYTHONPATH": package_parent + (os.pathsep + existing if existing else "")
        }

    def _cleanup(self, workdir: Path) -> None:
        for name in (PLAN_FILE_NAME, CURSOR_FILE_NAME):
            (workdir / name).unlink(missing_ok=True)
        try:
            workdir.rmdir()
        except OSError as e:
            logger.debug("could not remove %s: %s", workdir, e)

    def apply(self, plan: RewritePlan) -> RewriteOutcome:
        if not plan.has_changes:
            return RewriteOutcome(applied=False)

        ref = self._ref()
        old_head = self.git_repo.resolve_ref(ref)
        workdir = self.git_repo.git_dir() / WORKDIR_NAME
        workdir.mkdir(parents=True, exist_ok=True)
        plan_path = workdir / PLAN_FILE_NAME
        cursor_path = workdir / CURSOR_FILE_NAME

        try:
            plan_path.write_text(
                json.dumps(plan.to_entries(), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            cursor_path.write_text("0")
            rev_range = self._rev_range(plan[0].commit_id, ref)
            logger.debug("filter-branch over %s (%d commits)", rev_range, len(plan))
            try:
                self.git_repo.filter_branch_messages(
                    self._filter_command(plan_path, cursor_path),
                    rev_range,
                    extra_env=self._filter_env(),
                )
            except GitError as e:
                raise RewriteApplicationError(f"History rewrite failed: {e}") from e

            visited = int(cursor_path.read_text().strip() or 0)
            if visited != len(plan):
                raise RewriteApplicationError(
                    f"History rewrite visited {visited} commits, "
                    f"expected {len(plan)}; inspect the result before pushing"
                )
            new_head = self.git_repo.resolve_ref(ref)
        finally:
            self._cleanup(workdir)

        return RewriteOutcome(
            applied=True,
            rewritten=len(plan.changes()),
            visited=visited,
            old_head=old_head,
            new_head=new_head,
        )
