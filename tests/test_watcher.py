"""Tests for the polling content tracker."""

import asyncio

import pytest

from ecce_app_cli.document import write_document
from ecce_app_cli.errors import DocumentIOError
from ecce_app_cli.pattern import PatternDetector
from ecce_app_cli.watcher import ContentTracker


class TestContentTracker:
    @pytest.fixture
    def tracker(self):
        return ContentTracker(poll_interval=0.01)

    def test_initialize_missing_file(self, tracker, tmp_path):
        with pytest.raises(DocumentIOError):
            tracker.initialize(tmp_path / "missing.md")

    def test_initialize_takes_snapshot(self, tracker, document):
        path = document("# Slides\n")

        tracker.initialize(path)

        assert tracker.snapshot == "# Slides\n"

    def test_unchanged_content_returns_nothing(self, tracker, document):
        path = document("ecce existing ecce")
        tracker.initialize(path)

        assert tracker.check(path) == []

    def test_change_returns_new_patterns_and_updates_snapshot(self, tracker, document):
        path = document("# Slides\n")
        tracker.initialize(path)

        write_document(path, "# Slides\necce what is apple? ecce\n")
        spans = tracker.check(path)

        assert [s.content for s in spans] == ["what is apple?"]
        assert tracker.snapshot == "# Slides\necce what is apple? ecce\n"
        # Same content again is not a change
        assert tracker.check(path) == []

    def test_whole_document_rescan_finds_preexisting_markers(self, tracker, document):
        path = document("ecce already here ecce\n")
        tracker.initialize(path)

        write_document(path, "ecce already here ecce\nunrelated edit\n")

        assert [s.content for s in tracker.check(path)] == ["already here"]

    def test_processed_patterns_are_filtered(self, tracker, document):
        path = document("")
        tracker.initialize(path)
        tracker.mark_processed("done before")

        write_document(path, "ecce done before ecce")

        assert tracker.check(path) == []
        assert tracker.snapshot == "ecce done before ecce"

    def test_resync_hides_own_write(self, tracker, document):
        path = document("start")
        tracker.initialize(path)

        write_document(path, "start ecce written by us ecce")
        tracker.resync(path)

        assert tracker.check(path) == []

    def test_read_failure_propagates(self, tracker, document):
        path = document("content")
        tracker.initialize(path)
        path.unlink()

        with pytest.raises(DocumentIOError):
            tracker.check(path)

    def test_shares_given_detector(self, document):
        detector = PatternDetector()
        tracker = ContentTracker(detector=detector)

        tracker.mark_processed("x")

        assert detector.is_processed("x")
        assert tracker.is_processed("x")

    @pytest.mark.asyncio
    async def test_poll_sleeps_then_checks(self, tracker, document):
        path = document("")
        tracker.initialize(path)

        assert await tracker.poll_for_new_patterns(path) == []

        write_document(path, "ecce polled ecce")
        spans = await tracker.poll_for_new_patterns(path)

        assert [s.content for s in spans] == ["polled"]

    @pytest.mark.asyncio
    async def test_wait_for_patterns_returns_first_non_empty_batch(self, tracker, document):
        path = document("")
        tracker.initialize(path)

        async def edit_later():
            await asyncio.sleep(0.05)
            write_document(path, "no markers yet")
            await asyncio.sleep(0.05)
            write_document(path, "no markers yet\necce finally ecce")

        editor = asyncio.create_task(edit_later())
        spans = await asyncio.wait_for(tracker.wait_for_patterns(path), timeout=5)
        await editor

        assert [s.content for s in spans] == ["finally"]
