"""Cleanup applied to provider output before it is returned.

post_process_markdown() is idempotent.
"""

import re
from typing import List, Optional

DEFAULT_TITLE = "README"

_LINE_ENDINGS = re.compile(r"\r\n?")
# Opening fence on a line of its own: ```, ```markdown, ```md ...
_OPENING_FENCE = re.compile(r"\A```[\w+-]*[ \t]*\Z")
_ANY_FENCE = re.compile(r"\A[ \t]*```")
# A newline directly preceded by a non-newline and followed by a heading marker
_TIGHT_HEADING = re.compile(r"(?<=[^\n])\n(?=#{1,6}\s)")
_EXCESS_NEWLINES = re.compile(r"\n{4,}")


def _unwrap_fence(lines: List[str]) -> Optional[List[str]]:
    """Return the body of a fence wrapping the whole reply, else None.

    A leading fence that is never closed (the reply was cut off) is
    dropped as well. A leading fence followed by other fences belongs to
    the document and is kept.
    """
    if not _OPENING_FENCE.match(lines[0]):
        return None

    fences = [i for i, line in enumerate(lines[1:], 1) if _ANY_FENCE.match(line)]
    if not fences:
        return lines[1:]
    if fences == [len(lines) - 1] and lines[-1].strip() == "```":
        return lines[1:-1]
    return None


def post_process_markdown(markdown: str) -> str:
    """Normalize generated README markdown.

    - normalizes line endings to LF
    - unwraps output wrapped in a single fenced code block
    - puts a blank line before every heading
    - collapses 4+ consecutive newlines to 2
    - guarantees the document starts with a heading marker
    """
    processed = _LINE_ENDINGS.sub("\n", markdown).strip()

    body = _unwrap_fence(processed.split("\n"))
    if body is not None:
        processed = "\n".join(body).strip()

    processed = _TIGHT_HEADING.sub("\n\n", processed)
    processed = _EXCESS_NEWLINES.sub("\n\n", processed)

    if _ANY_FENCE.match(processed):
        # Prefixing "# " would turn the fence into a heading and unbalance it
        processed = f"# {DEFAULT_TITLE}\n\n{processed}"
    elif not processed.startswith("#"):
        processed = f"# {processed}"

    return processed.strip()
