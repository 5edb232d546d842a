"""Message filter invoked by ``git filter-branch --msg-filter``.

Usage (set up by HistoryRewriter, not meant to be run by hand)::

    python -m rcmt.msg_filter <plan.json> <cursor>

filter-branch exports the commit being rewritten as ``$GIT_COMMIT`` and
feeds its current message on stdin; whatever is written to stdout becomes
the new message. The plan is looked up by commit id. An id missing from
the plan exits non-zero, which makes filter-branch abort before any ref is
updated. The cursor file counts invocations so the caller can verify that
every planned commit was visited exactly once.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import BinaryIO, Mapping, Optional, Sequence

EXIT_USAGE = 2
EXIT_UNKNOWN_COMMIT = 3


def _err(message: str) -> None:
    sys.stderr.write(f"rcmt msg-filter: {message}\n")


def filter_message(
    plan_path: Path,
    cursor_path: Path,
    commit_id: str,
    old_message: bytes,
) -> Optional[bytes]:
    """Return the bytes to emit for ``commit_id`` or None if it is unplanned."""
    entries = json.loads(plan_path.read_text(encoding="utf-8"))
    positions = {entry["id"]: index for index, entry in enumerate(entries)}
    position = positions.get(commit_id)
    if position is None:
        return None

    cursor = int(cursor_path.read_text().strip() or 0)
    if position != cursor:
        _err(
            f"commit {commit_id[:8]} visited at step {cursor} but planned at "
            f"{position}; using the planned message for this commit id"
        )
    cursor_path.write_text(str(cursor + 1))

    entry = entries[position]
    if not entry.get("rewrite"):
        return old_message
    message = str(entry["message"])
    if not message.endswith("\n"):
        message += "\n"
    return message.encode("utf-8")


def main(
    argv: Optional[Sequence[str]] = None,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    args = list(argv if argv is not None else sys.argv[1:])
    if len(args) != 2:
        _err("usage: python -m rcmt.msg_filter <plan.json> <cursor>")
        return EXIT_USAGE
    env = environ if environ is not None else os.environ
    in_stream = stdin if stdin is not None else sys.stdin.buffer
    out_stream = stdout if stdout is not None else sys.stdout.buffer

    commit_id = env.get("GIT_COMMIT", "")
    old_message = in_stream.read()
    result = filter_message(Path(args[0]), Path(args[1]), commit_id, old_message)
    if result is None:
        _err(f"commit {commit_id or '<unknown>'} is not part of the rewrite plan")
        return EXIT_UNKNOWN_COMMIT
    out_stream.write(result)
    out_stream.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
