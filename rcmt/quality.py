"""Deterministic commit message quality rubric.

The score is the sum of five checks (10 points total):

====================================  ======
check                                 points
====================================  ======
conventional ``type(scope): subject``    4
first line length within [10, 72]        2
not a generic one-word message           2
lower-case start after the prefix        1
no trailing period on the first line     1
====================================  ======

The "present tense" check only looks at whether the first letter is an ASCII
lower-case letter (``[a-z]``). It is an approximation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .exceptions import ValidationError

COMMIT_TYPES = (
    "feat",
    "fix",
    "docs",
    "style",
    "refactor",
    "test",
    "chore",
    "perf",
    "ci",
    "build",
    "revert",
)

GENERIC_MESSAGES = (
    "update",
    "fix",
    "change",
    "modify",
    "commit",
    "initial",
    "test",
    "wip",
)

MIN_SUBJECT_LENGTH = 10
MAX_SUBJECT_LENGTH = 72
DEFAULT_THRESHOLD = 7
MAX_SCORE = 10

_TYPES_RE = "|".join(COMMIT_TYPES)
_CONVENTIONAL_RE = re.compile(rf"^({_TYPES_RE})(\([^)]+\))?: .+")
_PREFIX_RE = re.compile(rf"^({_TYPES_RE})(\([^)]+\))?:\s*")
_LOWER_START_RE = re.compile(r"[a-z]")
_GENERIC_RE = re.compile(
    r"^(" + "|".join(GENERIC_MESSAGES) + r")(\.| commit)?$", re.IGNORECASE
)


@dataclass(frozen=True)
class QualityAssessment:
    """Result of scoring one commit message."""

    score: int
    is_well_formed: bool
    reasons: tuple[str, ...] = ()

    @property
    def reason(self) -> str:
        return ", ".join(self.reasons)


def first_line(message: str) -> str:
    return message.split("\n", 1)[0]


def is_conventional(message: str) -> bool:
    return bool(_CONVENTIONAL_RE.match(first_line(message)))


class QualityScorer:
    """Scores commit messages against the rubric above."""

    def __init__(self, threshold: int = DEFAULT_THRESHOLD) -> None:
        if not 1 <= int(threshold) <= MAX_SCORE:
            raise ValidationError(
                f"Quality threshold must be between 1 and {MAX_SCORE}, got {threshold}"
            )
        self.threshold = int(threshold)

    def assess(self, message: str) -> QualityAssessment:
        score = 0
        reasons: list[str] = []
        subject = first_line(message)

        if _CONVENTIONAL_RE.match(subject):
            score += 4
            reasons.append("follows conventional format")
        else:
            reasons.append("not conventional format")

        if MIN_SUBJECT_LENGTH <= len(subject) <= MAX_SUBJECT_LENGTH:
            score += 2
            reasons.append("appropriate length")
        elif len(subject) < MIN_SUBJECT_LENGTH:
            reasons.append("too short")
        else:
            reasons.append("too long")

        if _GENERIC_RE.match(message.strip()):
            reasons.append("too generic")
        else:
            score += 2
            reasons.append("descriptive")

        remainder = _PREFIX_RE.sub("", subject, count=1)
        if _LOWER_START_RE.match(remainder):
            score += 1
            reasons.append("uses present tense")
        else:
            reasons.append("not present tense")

        if subject.endswith("."):
            reasons.append("trailing period")
        else:
            score += 1
            reasons.append("no trailing period")

        return QualityAssessment(
            score=score,
            is_well_formed=score >= self.threshold,
            reasons=tuple(reasons),
        )


def assess_commit_quality(
    message: str, threshold: int = DEFAULT_THRESHOLD
) -> QualityAssessment:
    return QualityScorer(threshold).assess(message)
