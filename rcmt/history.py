"""Commit enumeration and rewrite planning."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Sequence

from .config import Config, get_active_config
from .exceptions import RewriteCMTError, ValidationError
from .quality import QualityAssessment, QualityScorer

if TYPE_CHECKING:
    from .commit import MessageGenerator
    from .git import GitRepo

# Pause between two consecutive provider calls to stay under rate limits.
PACING_DELAY_SECONDS = 0.5

STATUS_SKIPPED = "skipped"
STATUS_IMPROVED = "improved"
STATUS_KEPT = "kept"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitRecord:
    """A commit as read from history; immutable once built."""

    commit_id: str
    original_message: str
    changed_files: tuple[str, ...] = ()
    diff_text: str = ""

    @property
    def short_id(self) -> str:
        return self.commit_id[:8]

    @property
    def subject(self) -> str:
        return self.original_message.split("\n", 1)[0]


@dataclass(frozen=True)
class RewriteDecision:
    """Final message chosen for one commit."""

    commit_id: str
    original_message: str
    final_message: str
    was_generated: bool
    status: str
    assessment: Optional[QualityAssessment] = None

    @property
    def changed(self) -> bool:
        return self.final_message != self.original_message


@dataclass
class PlanStats:
    total: int = 0
    skipped: int = 0
    improved: int = 0
    kept: int = 0
    to_rewrite: int = 0

    def record(self, decision: RewriteDecision) -> None:
        self.total += 1
        if decision.status == STATUS_SKIPPED:
            self.skipped += 1
        elif decision.status == STATUS_IMPROVED:
            self.improved += 1
        else:
            self.kept += 1
        if decision.changed:
            self.to_rewrite += 1


@dataclass(frozen=True)
class RewritePlan:
    """Index-aligned, chronological list of decisions.

    ``plan[i]`` always belongs to the i-th enumerated commit.
    """

    decisions: tuple[RewriteDecision, ...]
    stats: PlanStats = field(default_factory=PlanStats)

    def __len__(self) -> int:
        return len(self.decisions)

    def __iter__(self) -> Iterator[RewriteDecision]:
        return iter(self.decisions)

    def __getitem__(self, index: int) -> RewriteDecision:
        return self.decisions[index]

    def commit_ids(self) -> list[str]:
        return [d.commit_id for d in self.decisions]

    def changes(self) -> list[RewriteDecision]:
        return [d for d in self.decisions if d.changed]

    @property
    def has_changes(self) -> bool:
        return any(d.changed for d in self.decisions)

    def to_entries(self) -> list[dict[str, object]]:
        """Serialisable form consumed by the message filter."""
        return [
            {"id": d.commit_id, "message": d.final_message, "rewrite": d.changed}
            for d in self.decisions
        ]


class CommitEnumerator:
    """Reads the commits to evaluate, oldest first."""

    def __init__(self, git_repo: "GitRepo", branch: Optional[str] = None) -> None:
        self.git_repo = git_repo
        self.branch = branch

    @property
    def ref(self) -> str:
        return self.branch or "HEAD"

    def commit_ids(self, limit: Optional[int] = None) -> list[str]:
        if limit is not None and limit < 0:
            raise ValidationError(f"Commit limit must not be negative, got {limit}")
        ids = self.git_repo.list_commits(self.ref)
        if limit:
            # Most recent ``limit`` commits, still oldest first.
            ids = ids[max(0, len(ids) - limit):]
        return ids

    def read(self, commit_id: str) -> CommitRecord:
        return CommitRecord(
            commit_id=commit_id,
            original_message=self.git_repo.get_commit_message(commit_id).strip(),
            changed_files=tuple(self.git_repo.get_changed_files(commit_id)),
            diff_text=self.git_repo.get_commit_diff(commit_id),
        )

    def enumerate(self, limit: Optional[int] = None) -> tuple[CommitRecord, ...]:
        return tuple(self.read(commit_id) for commit_id in self.commit_ids(limit))


DecisionCallback = Callable[[int, int, CommitRecord, RewriteDecision], None]


class RewritePlanBuilder:
    """Turns enumerated commits into a RewritePlan."""

    def __init__(
        self,
        generator: "MessageGenerator",
        config: Optional[Config] = None,
        scorer: Optional[QualityScorer] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_decision: Optional[DecisionCallback] = None,
    ) -> None:
        self._config = config or get_active_config()
        self.generator = generator
        self.scorer = scorer or QualityScorer(self._config.min_quality_score)
        self._sleep = sleep
        self._on_decision = on_decision

    def _decide(self, record: CommitRecord, generated_before: bool) -> RewriteDecision:
        assessment = None
        if self._config.skip_well_formed:
            assessment = self.scorer.assess(record.original_message)
            if assessment.is_well_formed:
                return RewriteDecision(
                    commit_id=record.commit_id,
                    original_message=record.original_message,
                    final_message=record.original_message,
                    was_generated=False,
                    status=STATUS_SKIPPED,
                    assessment=assessment,
                )

        if generated_before:
            self._sleep(PACING_DELAY_SECONDS)
        message = self.generator.generate(record)
        if message and message != record.original_message:
            return RewriteDecision(
                commit_id=record.commit_id,
                original_message=record.original_message,
                final_message=message,
                was_generated=True,
                status=STATUS_IMPROVED,
                assessment=assessment,
            )
        return RewriteDecision(
            commit_id=record.commit_id,
            original_message=record.original_message,
            final_message=record.original_message,
            was_generated=False,
            status=STATUS_KEPT,
            assessment=assessment,
        )

    def build(self, records: Sequence[CommitRecord]) -> RewritePlan:
        stats = PlanStats()
        decisions: list[RewriteDecision] = []
        generated_before = False
        total = len(records)
        for index, record in enumerate(records):
            decision = self._decide(record, generated_before)
            if decision.status != STATUS_SKIPPED:
                generated_before = True
            decisions.append(decision)
            stats.record(decision)
            logger.debug(
                "plan %d/%d %s -> %s", index + 1, total, record.short_id, decision.status
            )
            if self._on_decision is not None:
                self._on_decision(index, total, record, decision)

        plan = RewritePlan(decisions=tuple(decisions), stats=stats)
        if len(plan) != total or any(
            d.commit_id != r.commit_id for d, r in zip(plan, records)
        ):
            raise RewriteCMTError("Rewrite plan is not aligned with enumerated commits")
        return plan
