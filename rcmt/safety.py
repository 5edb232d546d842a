"""Backup branch creation and interactive confirmation."""

from __future__ import annotations

import logging
import re
import time
from typing import Callable

from .git import GitRepo

logger = logging.getLogger(__name__)

_AFFIRMATIVE = {"y", "yes"}


def console_confirm(question: str) -> bool:
    """Ask ``question`` on the terminal; anything but y/yes rejects."""
    try:
        answer = input(f"{question} (y/n): ")
    except EOFError:
        return False
    return answer.strip().lower() in _AFFIRMATIVE


class ConfirmationGate:
    """Injected yes/no capability so the workflow runs without a terminal."""

    def __init__(
        self,
        prompt_fn: Callable[[str], bool] = console_confirm,
        assume_yes: bool = False,
    ) -> None:
        self._prompt_fn = prompt_fn
        self.assume_yes = assume_yes

    def confirm(self, question: str) -> bool:
        if self.assume_yes:
            logger.debug("auto-confirmed: %s", question)
            return True
        return bool(self._prompt_fn(question))


class BackupManager:
    """Creates a branch pointing at the pre-rewrite tip."""

    def __init__(
        self,
        git_repo: GitRepo,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.git_repo = git_repo
        self._clock = clock

    @staticmethod
    def _safe_branch(branch_name: str) -> str:
        return re.sub(r"[^A-Za-z0-9._/-]", "-", branch_name) or "HEAD"

    def backup_name(self, branch_name: str) -> str:
        millis = int(self._clock() * 1000)
        return f"backup-{self._safe_branch(branch_name)}-{millis}"

    def create_backup(self, branch_name: str, start_point: str = "HEAD") -> str:
        """Create the backup branch and return its name; never overwrites."""
        name = self.backup_name(branch_name)
        prefix, _, stamp = name.rpartition("-")
        millis = int(stamp)
        while self.git_repo.branch_exists(name):
            millis += 1
            name = f"{prefix}-{millis}"
        self.git_repo.create_branch(name, start_point)
        logger.debug("created backup branch %s at %s", name, start_point)
        return name
