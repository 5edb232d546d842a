"""Git hook installation for rcmt."""

from __future__ import annotations

import logging
import stat
from typing import Dict

from .git import GitRepo

logger = logging.getLogger(__name__)

PREPARE_COMMIT_MSG = """#!/bin/sh
# Installed by rcmt: fills an empty commit message from the staged changes.
# Optional settings:
#   git config hooks.commitTemplate "[JIRA-123] feat: message"
#   git config hooks.commitLanguage "es"
COMMIT_MSG_FILE="$1"
COMMIT_SOURCE="$2"

# Leave messages from -m/-F, templates, merges, squashes and amends alone.
if [ -n "$COMMIT_SOURCE" ]; then
    exit 0
fi

if grep -v '^#' "$COMMIT_MSG_FILE" | grep -q '[^[:space:]]'; then
    exit 0
fi

set -- --staged
TEMPLATE=$(git config --get hooks.commitTemplate)
LANGUAGE=$(git config --get hooks.commitLanguage)
[ -n "$TEMPLATE" ] && set -- "$@" --template "$TEMPLATE"
[ -n "$LANGUAGE" ] && set -- "$@" --language "$LANGUAGE"

MESSAGE=$(rcmt "$@" 2>/dev/null)
if [ -n "$MESSAGE" ]; then
    {
        printf '%s\\n' "$MESSAGE"
        cat "$COMMIT_MSG_FILE"
    } > "$COMMIT_MSG_FILE.rcmt" && mv "$COMMIT_MSG_FILE.rcmt" "$COMMIT_MSG_FILE"
fi
exit 0
"""

HOOKS: Dict[str, str] = {
    "prepare-commit-msg": PREPARE_COMMIT_MSG,
}


def install_hooks(git_repo: GitRepo) -> Dict[str, str]:
    """Install rcmt hooks; returns hook name -> "installed" | "skipped".

    Existing hooks are never overwritten.
    """
    hooks_dir = git_repo.git_dir() / "hooks"
    hooks_dir.mkdir(parents=True, exist_ok=True)
    results: Dict[str, str] = {}
    for name, content in HOOKS.items():
        target = hooks_dir / name
        if target.exists():
            results[name] = "skipped"
            continue
        target.write_text(content)
        mode = target.stat().st_mode
        target.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        logger.debug("installed hook %s", target)
        results[name] = "installed"
    return results
