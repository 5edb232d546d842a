"""Core workflow logic for rcmt."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .commit import MessageGenerator
from .config import Config, get_active_config
from .exceptions import RewriteApplicationError, ValidationError
from .git import GitRepo
from .history import (
    STATUS_IMPROVED,
    STATUS_SKIPPED,
    CommitEnumerator,
    CommitRecord,
    PlanStats,
    RewriteDecision,
    RewritePlan,
    RewritePlanBuilder,
)
from .llm import LLMClient, TextGenerationProvider
from .rewrite import HistoryRewriter, RewriteOutcome
from .safety import BackupManager, ConfirmationGate

RESET = "\033[0m"
BOLD = "\033[1m"
CYAN = "\033[96m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
DIM = "\033[2m"
RED = "\033[91m"

STATUS_NOTHING_TO_DO = "nothing-to-do"
STATUS_NO_CHANGES = "no-changes"
STATUS_DRY_RUN = "dry-run"
STATUS_CANCELLED = "cancelled"
STATUS_APPLIED = "applied"

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """What a run did, for callers and tests."""

    status: str
    stats: PlanStats = field(default_factory=PlanStats)
    plan: Optional[RewritePlan] = None
    backup_branch: Optional[str] = None
    outcome: Optional[RewriteOutcome] = None


class RewriteWorkflow:
    """Enumerate, plan and (when confirmed) rewrite commit messages."""

    def __init__(
        self,
        repo_path: Optional[str] = None,
        config: Optional[Config] = None,
        provider: Optional[TextGenerationProvider] = None,
        gate: Optional[ConfirmationGate] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the workflow.

        Provider credentials are checked here (``ConfigError``) so a bad
        configuration fails before any repository work starts.
        """
        self._config = config or get_active_config()
        self.git_repo = GitRepo(repo_path, self._config)
        self.provider = provider or LLMClient(self._config, debug=self._config.verbose)
        self.generator = MessageGenerator(self.provider, self._config)
        self.gate = gate or ConfirmationGate(assume_yes=self._config.assume_yes)
        self._sleep = sleep
        self._clock = clock

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------
    def _say(self, text: str, color: str = "") -> None:
        print(f"{color}{text}{RESET}" if color else text)

    def _report_decision(
        self, index: int, total: int, record: CommitRecord, decision: RewriteDecision
    ) -> None:
        progress = f"[{(index + 1) / total * 100:.1f}%]"
        short = record.short_id
        if decision.status == STATUS_SKIPPED and decision.assessment is not None:
            self._say(
                f"{progress} {short}: already well-formed "
                f"(score: {decision.assessment.score}/10) - {decision.assessment.reason}",
                CYAN,
            )
        elif decision.status == STATUS_IMPROVED:
            self._say(f'{progress} {short}: improved to: "{decision.final_message}"', GREEN)
        elif record.commit_id in self.generator.failures:
            self._say(
                f"{progress} {short}: generation failed, keeping original "
                f"({self.generator.failures[record.commit_id]})",
                YELLOW,
            )
        else:
            self._say(f"{progress} {short}: keeping original message", YELLOW)

    def _report_summary(self, stats: PlanStats) -> None:
        self._say("\nSummary:", CYAN)
        self._say(f"  - Total commits analyzed: {stats.total}", BLUE)
        if self._config.skip_well_formed:
            self._say(f"  - Well-formed commits (skipped): {stats.skipped}", CYAN)
        self._say(f"  - Commits improved: {stats.improved}", GREEN)
        self._say(f"  - Commits kept unchanged: {stats.kept}", YELLOW)
        self._say(f"  - Commits to be rewritten: {stats.to_rewrite}", YELLOW)

    def _report_plan(self, plan: RewritePlan) -> None:
        self._say("\nProposed changes:", CYAN)
        for decision in plan.changes():
            old = decision.original_message.split("\n", 1)[0]
            new = decision.final_message.split("\n", 1)[0]
            self._say(f"  {decision.commit_id[:8]}", BOLD)
            self._say(f"    - {old}", RED)
            self._say(f"    + {new}", GREEN)

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------
    def run(self) -> RunSummary:
        cfg = self._config
        branch = cfg.branch or self.git_repo.current_branch()
        self._say("\nGit commit message rewriter\n", BOLD + CYAN)
        self._say(f"Current branch: {branch}", BLUE)

        if self.git_repo.has_uncommitted_changes():
            self._say("\nWarning: you have uncommitted changes!", YELLOW)
            self._say("Please commit or stash them before proceeding.", YELLOW)
            if not self.gate.confirm("Do you want to continue anyway?"):
                self._say("Operation cancelled.", YELLOW)
                return RunSummary(status=STATUS_CANCELLED)

        enumerator = CommitEnumerator(self.git_repo, cfg.branch)
        commit_ids = enumerator.commit_ids(cfg.max_commits)
        self._say(f"\nFound {len(commit_ids)} commits to process", GREEN)
        if not commit_ids:
            self._say("No commits found to process.", YELLOW)
            return RunSummary(status=STATUS_NOTHING_TO_DO)

        if not cfg.dry_run:
            self._say("\nWARNING: This will REWRITE your git history!", BOLD + RED)
            self._say(
                "This is dangerous if you have already pushed to a remote repository.",
                RED,
            )
            self._say("Make sure to:", YELLOW)
            self._say("  1. Work on a separate branch", YELLOW)
            self._say("  2. Have a backup of your repository", YELLOW)
            self._say("  3. Coordinate with your team if this is a shared repository", YELLOW)
            if not self.gate.confirm("\nDo you want to proceed?"):
                self._say("Operation cancelled.", YELLOW)
                return RunSummary(status=STATUS_CANCELLED)

        backup_branch: Optional[str] = None
        if not cfg.skip_backup and not cfg.dry_run:
            backup_branch = BackupManager(self.git_repo, clock=self._clock).create_backup(
                branch, start_point=enumerator.ref
            )
            self._say(f"\nCreated backup branch: {backup_branch}", GREEN)

        self._say("\nGenerating new commit messages...\n", CYAN)
        records = tuple(enumerator.read(commit_id) for commit_id in commit_ids)
        builder = RewritePlanBuilder(
            self.generator,
            cfg,
            sleep=self._sleep,
            on_decision=self._report_decision,
        )
        plan = builder.build(records)
        self._report_summary(plan.stats)

        summary = RunSummary(
            status=STATUS_NO_CHANGES,
            stats=plan.stats,
            plan=plan,
            backup_branch=backup_branch,
        )
        if not plan.has_changes:
            if plan.stats.skipped == plan.stats.total:
                self._say("\nAll commits are already well-formed! No changes needed.", GREEN)
            else:
                self._say("\nNo commit messages to change. Exiting.", YELLOW)
            return summary

        self._report_plan(plan)
        if cfg.dry_run:
            self._say("\nDry run completed. No changes were made to your repository.", YELLOW)
            self._say(
                "Review the proposed changes above and run without --dry-run to apply them.",
                BLUE,
            )
            summary.status = STATUS_DRY_RUN
            return summary

        if not self.gate.confirm("\nDo you want to apply the new commit messages?"):
            self._say("Rewrite cancelled. Your history remains unchanged.", YELLOW)
            if backup_branch:
                self._say(f"Backup branch kept: {backup_branch}", BLUE)
            summary.status = STATUS_CANCELLED
            return summary

        self._say("\nRewriting git history...", CYAN)
        try:
            outcome = HistoryRewriter(self.git_repo, cfg.branch).apply(plan)
        except RewriteApplicationError as e:
            self._say(f"\nError rewriting history: {e}", RED)
            if backup_branch:
                self._say(f"You can restore from backup: git reset --hard {backup_branch}", YELLOW)
            raise

        summary.outcome = outcome
        summary.status = STATUS_APPLIED
        self._say("\nSuccessfully rewrote git history!", BOLD + GREEN)
        self._say(
            f"{outcome.rewritten} message(s) changed; commit ids from the first "
            "changed commit onward are new.",
            DIM,
        )
        self._say("\nImportant next steps:", BOLD + YELLOW)
        self._say("  1. Review the changes: git log --oneline", YELLOW)
        self._say("  2. If satisfied, force push: git push --force-with-lease", YELLOW)
        if backup_branch:
            self._say(f"  3. If something went wrong, restore: git reset --hard {backup_branch}", YELLOW)
            self._say(f"  4. Clean up backup when done: git branch -D {backup_branch}", YELLOW)
        return summary

    def generate_for_staged(self) -> str:
        """Message for the currently staged changes; history is untouched."""
        if not self.git_repo.has_staged_changes():
            raise ValidationError("No staged changes found. Stage your changes first.")
        return self.generator.generate_for_changes(
            self.git_repo.get_staged_diff(), self.git_repo.get_staged_files()
        )
