"""Trigger marker detection.

Two marker grammars are recognized in a document:

- Inline: ``ecce <prompt> ecce``
- Block:  a fence opened with ```` ```ecce ```` and closed with ```` ``` ````

Detection is pure. The only state a detector carries is the set of
content fingerprints that have already been dispatched.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from enum import Enum
from re import Pattern

INLINE_TOKEN = "ecce"
BLOCK_OPEN = "```ecce"
BLOCK_CLOSE = "```"

# Non-greedy, and "." stops at newlines: the first paired ecce ... ecce closes the span
INLINE_PATTERN: Pattern = re.compile(r"ecce\s+(.*?)\s+ecce")

# Fence body may span several lines
BLOCK_PATTERN: Pattern = re.compile(r"```ecce[ \t]*\n(.*?)\n```", re.DOTALL)


class TriggerKind(str, Enum):
    """Grammar a trigger was written in."""

    INLINE = "inline"
    BLOCK = "block"


def fingerprint(content: str) -> str:
    """Compute the dedup key for a payload.

    Args:
        content: Payload text (trimmed before hashing)

    Returns:
        Hex digest of SHA-256 over the trimmed UTF-8 text
    """
    return hashlib.sha256(content.strip().encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class TriggerSpan:
    """One detected trigger.

    Attributes:
        content: Trimmed prompt payload
        start: Offset of the marker in the scanned text
        end: Offset just past the marker
        kind: Grammar that produced the match
        marker: Exact marker text as it appeared in the scanned text

    Offsets are only valid for the exact text that was scanned; replacement
    locates markers by content.
    """

    content: str
    start: int
    end: int
    kind: TriggerKind
    marker: str = ""

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.content)

    def marker_text(self) -> str:
        """Marker text as detected, or the canonical form for this span's grammar."""
        if self.marker:
            return self.marker
        if self.kind == TriggerKind.BLOCK:
            return f"{BLOCK_OPEN}\n{self.content}\n{BLOCK_CLOSE}"
        return f"{INLINE_TOKEN} {self.content} {INLINE_TOKEN}"


class PatternDetector:
    """Finds trigger spans and remembers which payloads were already handled."""

    def __init__(self) -> None:
        self._processed: set[str] = set()

    def is_processed(self, content: str) -> bool:
        return fingerprint(content) in self._processed

    def mark_processed(self, content: str) -> None:
        self._processed.add(fingerprint(content))

    def detect(self, text: str) -> list[TriggerSpan]:
        """Detect every trigger in text, ignoring processed state.

        Args:
            text: Full document text

        Returns:
            Spans from both grammars ordered by ascending start offset
        """
        spans = list(_scan(INLINE_PATTERN, text, TriggerKind.INLINE))
        spans.extend(_scan(BLOCK_PATTERN, text, TriggerKind.BLOCK))
        spans.sort(key=lambda s: (s.start, s.end))
        return spans

    def detect_new(self, text: str) -> list[TriggerSpan]:
        """Detect triggers whose payload has not been processed yet.

        Only the first span is kept for each fingerprint.
        """
        seen = set(self._processed)
        spans = []
        for span in self.detect(text):
            if span.fingerprint in seen:
                continue
            seen.add(span.fingerprint)
            spans.append(span)
        return spans


def _scan(pattern: Pattern, text: str, kind: TriggerKind):
    for match in pattern.finditer(text):
        content = match.group(1).strip()
        if not content:
            continue
        yield TriggerSpan(content=content, start=match.start(), end=match.end(), kind=kind, marker=match.group(0))
