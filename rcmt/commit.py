"""Commit message generation logic for rcmt."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .config import Config, get_active_config
from .exceptions import LLMError
from .history import CommitRecord
from .llm import TextGenerationProvider
from .quality import COMMIT_TYPES

MAX_DIFF_CHARS = 8000

SYSTEM_PROMPT = (
    "You are a helpful assistant that generates clear, conventional git "
    "commit messages."
)

logger = logging.getLogger(__name__)


class MessageGenerator:
    """Builds generation requests from commit facts.

    ``generate`` never raises a provider failure: when the provider is
    unreachable, errors, or returns nothing usable the original message is
    returned and the failure is recorded in ``failures``. One bad request
    therefore degrades to a no-op for that commit instead of aborting the
    run.
    """

    def __init__(
        self,
        provider: TextGenerationProvider,
        config: Optional[Config] = None,
    ) -> None:
        self.provider = provider
        self._config = config or get_active_config()
        self.failures: dict[str, str] = {}

    def _instructions(self) -> list[str]:
        cfg = self._config
        if cfg.custom_prompt:
            rules = [cfg.custom_prompt.strip()]
        else:
            if cfg.template:
                shape = (
                    f'Follow this format template exactly: "{cfg.template}" '
                    '(replace "message" with the description of the change)'
                )
            else:
                shape = "Follow the format: <type>(<scope>): <subject>"
            rules = [
                shape,
                "Types can be: " + ", ".join(COMMIT_TYPES),
                "Scope is optional but recommended (e.g., auth, api, ui)",
                "Subject should be clear and descriptive",
                "Focus on WHAT was changed and WHY, not HOW",
                'Use present tense ("add" not "added")',
                "Don't end with a period",
                "Maximum 72 characters for the first line",
            ]
        if cfg.language:
            rules.append(
                f"Write the commit message in {cfg.language}, but keep the "
                "type and scope keywords in English (feat, fix, docs, ...)"
            )
        return rules

    def build_prompt(
        self,
        original_message: str,
        changed_files: Sequence[str],
        diff_text: str,
    ) -> str:
        rules = "\n".join(
            f"{i}. {rule}" for i, rule in enumerate(self._instructions(), start=1)
        )
        files = "\n".join(changed_files) if changed_files else "(none)"
        original = original_message or "(none)"
        return (
            "You are a git commit message generator. Analyze the following git "
            "diff and file changes, then generate a clear, concise commit "
            "message.\n\n"
            f'Old commit message: "{original}"\n\n'
            f"Files changed:\n{files}\n\n"
            "Git diff (truncated if too long):\n"
            f"{diff_text[:MAX_DIFF_CHARS]}\n\n"
            f"Generate a commit message that:\n{rules}\n\n"
            "Return ONLY the commit message, nothing else."
        )

    def generate(self, record: CommitRecord) -> str:
        """Return a replacement message for ``record`` or its original."""
        prompt = self.build_prompt(
            record.original_message, record.changed_files, record.diff_text
        )
        try:
            message = self.provider.generate_message(prompt, SYSTEM_PROMPT)
        except LLMError as e:
            logger.warning(
                "generation failed for %s, keeping original: %s",
                record.short_id,
                e,
            )
            self.failures[record.commit_id] = str(e)
            return record.original_message
        message = (message or "").strip()
        if not message:
            self.failures[record.commit_id] = "empty response"
            return record.original_message
        return message

    def generate_for_changes(
        self, diff_text: str, changed_files: Sequence[str]
    ) -> str:
        """Generate a message for uncommitted (staged) changes.

        Raises ``LLMError``: there is no original message to fall back to.
        """
        prompt = self.build_prompt("", changed_files, diff_text)
        message = (self.provider.generate_message(prompt, SYSTEM_PROMPT) or "").strip()
        if not message:
            raise LLMError("Provider returned an empty commit message")
        return message
