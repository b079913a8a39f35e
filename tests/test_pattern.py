"""Tests for trigger detection and processed-payload tracking."""

from ecce_app_cli.pattern import PatternDetector
from ecce_app_cli.pattern import TriggerKind
from ecce_app_cli.pattern import TriggerSpan
from ecce_app_cli.pattern import fingerprint


class TestInlineDetection:
    def test_inline_pattern(self):
        detector = PatternDetector()
        text = "Some text ecce what is apple? ecce more text"

        spans = detector.detect(text)

        assert len(spans) == 1
        assert spans[0].content == "what is apple?"
        assert spans[0].kind == TriggerKind.INLINE
        assert text[spans[0].start : spans[0].end] == "ecce what is apple? ecce"

    def test_non_greedy_pairs_first_closing_token(self):
        spans = PatternDetector().detect("ecce one ecce then ecce two ecce")

        assert [s.content for s in spans] == ["one", "two"]

    def test_newlines_as_separators(self):
        spans = PatternDetector().detect("before\necce\nhello there\necce\nafter")

        assert len(spans) == 1
        assert spans[0].content == "hello there"

    def test_extra_whitespace_is_trimmed(self):
        spans = PatternDetector().detect("ecce   padded prompt   ecce")

        assert spans[0].content == "padded prompt"

    def test_empty_payload_is_not_a_trigger(self):
        assert PatternDetector().detect("ecce   ecce") == []

    def test_unclosed_marker_is_ignored(self):
        assert PatternDetector().detect("ecce still typing this") == []


class TestBlockDetection:
    def test_codeblock_pattern(self):
        detector = PatternDetector()
        text = "Some text\n```ecce\nwhat is apple?\n```\nmore text"

        spans = detector.detect(text)

        assert len(spans) == 1
        assert spans[0].content == "what is apple?"
        assert spans[0].kind == TriggerKind.BLOCK

    def test_multiline_payload_keeps_internal_newlines(self):
        text = "```ecce\nExplain quantum computing\n\nin simple terms\n```"

        spans = PatternDetector().detect(text)

        assert len(spans) == 1
        assert spans[0].content == "Explain quantum computing\n\nin simple terms"

    def test_outer_whitespace_trimmed(self):
        spans = PatternDetector().detect("```ecce\n   indented question  \n```")

        assert spans[0].content == "indented question"

    def test_empty_block_is_not_a_trigger(self):
        assert PatternDetector().detect("```ecce\n\n```") == []


class TestMixedDetection:
    def test_multiple_patterns_in_order(self):
        text = "ecce first? ecce and ```ecce\nsecond?\n```"

        spans = PatternDetector().detect(text)

        assert [s.content for s in spans] == ["first?", "second?"]
        assert [s.kind for s in spans] == [TriggerKind.INLINE, TriggerKind.BLOCK]

    def test_block_before_inline_is_ordered_by_position(self):
        text = "```ecce\nblock first\n```\nthen ecce inline second ecce"

        spans = PatternDetector().detect(text)

        assert [s.content for s in spans] == ["block first", "inline second"]
        assert spans[0].start < spans[1].start

    def test_document_workflow(self):
        text = """
# Document Title

Some introduction text.

ecce What is the capital of France? ecce

More content here.

```ecce
Explain quantum computing in simple terms
```

Final paragraph.
"""
        spans = PatternDetector().detect(text)

        assert len(spans) == 2
        assert spans[0].content == "What is the capital of France?"
        assert spans[0].kind == TriggerKind.INLINE
        assert spans[1].content == "Explain quantum computing in simple terms"
        assert spans[1].kind == TriggerKind.BLOCK

    def test_detection_is_deterministic(self):
        detector = PatternDetector()
        text = "ecce a ecce\n```ecce\nb\n```\necce c ecce"

        assert detector.detect(text) == detector.detect(text)


class TestProcessedTracking:
    def test_detect_new_skips_processed(self):
        detector = PatternDetector()
        text = "ecce what is apple? ecce"

        spans = detector.detect_new(text)
        assert len(spans) == 1

        detector.mark_processed(spans[0].content)

        assert detector.detect_new(text) == []
        assert detector.detect_new(text) == []

    def test_detect_ignores_processed_state(self):
        detector = PatternDetector()
        detector.mark_processed("what is apple?")

        assert len(detector.detect("ecce what is apple? ecce")) == 1

    def test_processed_applies_across_grammars(self):
        detector = PatternDetector()
        detector.mark_processed("same question")

        text = "ecce same question ecce\n```ecce\nsame question\n```\necce other ecce"

        assert [s.content for s in detector.detect_new(text)] == ["other"]

    def test_hash_consistency_across_detectors(self):
        detector1 = PatternDetector()
        detector2 = PatternDetector()

        detector1.mark_processed("test pattern content")
        detector2.mark_processed("test pattern content")

        assert detector1.is_processed("test pattern content")
        assert detector2.is_processed("test pattern content")
        assert not detector1.is_processed("other content")

    def test_fingerprint_uses_trimmed_text(self):
        assert fingerprint("  hello \n") == fingerprint("hello")
        assert fingerprint("hello") != fingerprint("Hello")

    def test_duplicate_payloads_in_one_scan_yield_one_span(self):
        detector = PatternDetector()
        text = "ecce same ecce\n\necce same ecce\n```ecce\n  same\n```"

        spans = detector.detect_new(text)

        assert len(spans) == 1
        assert spans[0].start == 0
        assert len(detector.detect(text)) == 3


class TestTriggerSpan:
    def test_detected_span_keeps_exact_marker(self):
        text = "intro\n```ecce \t\n\nwhat is X?\n\n```\n"

        [span] = PatternDetector().detect(text)

        assert span.content == "what is X?"
        assert span.marker == "```ecce \t\n\nwhat is X?\n\n```"
        assert span.marker_text() == span.marker

    def test_marker_text_inline(self):
        span = TriggerSpan(content="hi", start=0, end=12, kind=TriggerKind.INLINE)
        assert span.marker_text() == "ecce hi ecce"

    def test_marker_text_block(self):
        span = TriggerSpan(content="line1\nline2", start=0, end=30, kind=TriggerKind.BLOCK)
        assert span.marker_text() == "```ecce\nline1\nline2\n```"

    def test_marker_text_is_detected_again(self):
        span = TriggerSpan(content="round trip", start=0, end=0, kind=TriggerKind.BLOCK)

        spans = PatternDetector().detect(span.marker_text())

        assert spans[0].content == "round trip"
        assert spans[0].kind == TriggerKind.BLOCK
