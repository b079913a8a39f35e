"""In-place replacement of markers in the watched document.

The text we are asked to replace is the payload as it was detected, but the
marker on disk may have been typed with different spacing or newlines. A
fixed list of candidate forms is tried in priority order and the first one
present in the file is replaced (first occurrence only). When the exact
marker text seen by the detector is known, it is tried before any of them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .document import read_document
from .document import write_document
from .errors import PatternNotFoundError
from .pattern import BLOCK_CLOSE
from .pattern import BLOCK_OPEN
from .pattern import INLINE_TOKEN
from .pattern import TriggerKind

logger = logging.getLogger(__name__)


def _unique(candidates: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for candidate in candidates:
        if candidate and candidate not in seen:
            seen.add(candidate)
            result.append(candidate)
    return result


def inline_forms(old: str) -> list[str]:
    """Inline marker spellings, untrimmed payload first."""
    trimmed = old.strip()
    return [
        f"{INLINE_TOKEN} {old} {INLINE_TOKEN}",
        f"{INLINE_TOKEN}  {old}  {INLINE_TOKEN}",
        f"{INLINE_TOKEN}\n{old}\n{INLINE_TOKEN}",
        f"{INLINE_TOKEN} {trimmed} {INLINE_TOKEN}",
        f"{INLINE_TOKEN}  {trimmed}  {INLINE_TOKEN}",
    ]


def block_forms(old: str) -> list[str]:
    """Fenced marker spellings, with and without a two-space indent."""
    trimmed = old.strip()
    return [
        f"{BLOCK_OPEN}\n{old}\n{BLOCK_CLOSE}",
        f"{BLOCK_OPEN}\n{trimmed}\n{BLOCK_CLOSE}",
        f"{BLOCK_OPEN}\n  {trimmed}\n{BLOCK_CLOSE}",
    ]


def build_candidates(old: str, kind: TriggerKind | None = None, marker: str | None = None) -> list[str]:
    """Build the ordered candidate list for old.

    Order: the detected marker, inline forms, the raw literal text, then
    block forms. The raw literal is how an already-injected placeholder gets
    replaced. For a block trigger the block forms go before the raw literal,
    otherwise the payload inside the fence would match first and leave the
    fence behind.

    Args:
        old: Payload (or placeholder) text to locate
        kind: Grammar of the trigger being replaced, if known
        marker: Exact marker text as detected, if known

    Returns:
        Candidate strings without duplicates, in the order they are tried
    """
    detected = [marker] if marker else []
    if kind == TriggerKind.BLOCK:
        return _unique(detected + inline_forms(old) + block_forms(old) + [old])
    return _unique(detected + inline_forms(old) + [old] + block_forms(old))


def replace_text(
    content: str, old: str, new: str, kind: TriggerKind | None = None, marker: str | None = None
) -> tuple[str, str]:
    """Replace the first matching candidate in content.

    Returns:
        Tuple of (new content, candidate that matched)

    Raises:
        PatternNotFoundError: If no candidate occurs in content
    """
    for candidate in build_candidates(old, kind, marker):
        if candidate in content:
            return content.replace(candidate, new, 1), candidate
    raise PatternNotFoundError(old)


def replace_in_file(
    path: Path, old: str, new: str, kind: TriggerKind | None = None, marker: str | None = None
) -> str:
    """Rewrite one marker (or literal text) in the document at path.

    Args:
        path: Watched document
        old: Payload or literal text to replace
        new: Replacement text
        kind: Grammar of the trigger being replaced, if known
        marker: Exact marker text as detected, tried first

    Returns:
        The candidate form that was found and replaced

    Raises:
        DocumentIOError: If the document cannot be read or written
        PatternNotFoundError: If no candidate form is present
    """
    content = read_document(path)
    updated, matched = replace_text(content, old, new, kind, marker)
    write_document(path, updated)
    logger.debug(f"Replaced {matched!r} in {path}")
    return matched
