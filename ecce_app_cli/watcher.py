"""Polling change tracker for the watched document.

The tracker holds the last text it saw (or that we wrote) and, on each poll
cycle, re-reads the file. When the text changed, the whole document is
re-scanned for triggers that have not been processed yet.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .document import read_document
from .pattern import PatternDetector
from .pattern import TriggerSpan

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.1  # seconds


class ContentTracker:
    """Owns the document snapshot and the detector for one watch session.

    Contract:
    - initialize() must be called before polling
    - After any write to the file by this process, call resync() so the write
      is not mistaken for a user edit
    - Read failures raise DocumentIOError; nothing is retried here
    """

    def __init__(self, poll_interval: float = DEFAULT_POLL_INTERVAL, detector: PatternDetector | None = None):
        """Initialize tracker.

        Args:
            poll_interval: Seconds to sleep before each check
            detector: Pattern detector (default: a fresh one)
        """
        self.poll_interval = poll_interval
        self.detector = detector or PatternDetector()
        self.snapshot: str | None = None

    def initialize(self, path: Path) -> None:
        """Take the initial snapshot of the document."""
        self.snapshot = read_document(path)
        logger.debug(f"Tracking {path} ({len(self.snapshot)} characters)")

    def check(self, path: Path) -> list[TriggerSpan]:
        """Run a single check without sleeping.

        Returns:
            New, unprocessed spans from the whole document, or an empty list
            when the content is unchanged
        """
        current = read_document(path)
        if current == self.snapshot:
            return []

        patterns = self.detector.detect_new(current)
        self.snapshot = current

        if patterns:
            logger.info(
                f"Detected {len(patterns)} new pattern(s) in {path}",
                extra={"event": "patterns_detected", "path": str(path), "count": len(patterns)},
            )
        return patterns

    async def poll_for_new_patterns(self, path: Path) -> list[TriggerSpan]:
        """One poll cycle: sleep one interval, then check."""
        await asyncio.sleep(self.poll_interval)
        return self.check(path)

    async def wait_for_patterns(self, path: Path) -> list[TriggerSpan]:
        """Poll until a non-empty batch of new patterns appears."""
        while True:
            patterns = await self.poll_for_new_patterns(path)
            if patterns:
                return patterns

    def resync(self, path: Path) -> None:
        """Refresh the snapshot from disk without running detection."""
        self.snapshot = read_document(path)

    def mark_processed(self, content: str) -> None:
        self.detector.mark_processed(content)

    def is_processed(self, content: str) -> bool:
        return self.detector.is_processed(content)
