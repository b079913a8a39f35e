"""Watch session: drives each detected trigger through the rewrite sequence.

Per-pattern sequence (not resumable):

    detected -> placeholder_written -> generation_requested
             -> replaced_with_result -> marked_processed

Patterns from one poll batch are processed strictly one after another, in
document order, so two in-place rewrites never race on the file.

Error policy:
- PatternNotFoundError / GenerationError: reported for that pattern, the
  session keeps watching. A failed generation leaves a visible failure
  message where the placeholder was.
- DocumentIOError: ends the session.
- Interrupt (SIGINT/SIGTERM): the in-flight generation is abandoned and the
  placeholder is turned back into the original marker.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from .agent import AgentSession
from .console import console as default_console
from .errors import DocumentIOError
from .errors import GenerationError
from .errors import PatternNotFoundError
from .pattern import TriggerSpan
from .replacement import replace_in_file
from .utils.error_format import escape_markup
from .utils.error_format import format_error_message
from .watcher import ContentTracker

if TYPE_CHECKING:
    from rich.console import Console

logger = logging.getLogger(__name__)

PLACEHOLDER = "🤖 Generating response..."
FAILURE_TEMPLATE = "⚠️ Generation failed: {reason}"


class PatternState(str, Enum):
    DETECTED = "detected"
    PLACEHOLDER_WRITTEN = "placeholder_written"
    GENERATION_REQUESTED = "generation_requested"
    REPLACED_WITH_RESULT = "replaced_with_result"
    MARKED_PROCESSED = "marked_processed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class PatternOutcome:
    """Result of driving one span through the sequence."""

    span: TriggerSpan
    state: PatternState
    response: str | None = None
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class WatchSession:
    """Owns one tracker and one agent for the lifetime of a watch.

    Contract:
    - Inputs: document path, AgentSession
    - Side effects: rewrites the document in place, logs each transition
    - Errors: DocumentIOError propagates out of run()/run_until_interrupted()
    """

    def __init__(
        self,
        path: Path,
        agent: AgentSession,
        tracker: ContentTracker | None = None,
        console: Console | None = None,
    ):
        self.path = Path(path)
        self.agent = agent
        self.tracker = tracker or ContentTracker()
        self.console = console or default_console
        self._shutdown = asyncio.Event()

    def start(self) -> None:
        """Take the initial snapshot; existing markers are picked up on the first edit."""
        self.tracker.initialize(self.path)

    def request_shutdown(self) -> None:
        self._shutdown.set()

    async def process_pattern(self, span: TriggerSpan) -> PatternOutcome:
        """Drive one span through the full sequence.

        The payload is marked processed whatever the outcome, so it is never
        dispatched twice in this process. A span whose payload was already
        processed is skipped without touching the document.
        """
        if self.tracker.is_processed(span.content):
            self._log_transition(span, PatternState.SKIPPED)
            return PatternOutcome(span=span, state=PatternState.SKIPPED)

        try:
            outcome = await self._run_sequence(span)
        finally:
            self.tracker.mark_processed(span.content)

        if outcome.state == PatternState.REPLACED_WITH_RESULT:
            self._log_transition(span, outcome.state)
            outcome.state = PatternState.MARKED_PROCESSED
        self._log_transition(span, outcome.state)
        return outcome

    async def _run_sequence(self, span: TriggerSpan) -> PatternOutcome:
        try:
            replace_in_file(self.path, span.content, PLACEHOLDER, span.kind, span.marker)
        except PatternNotFoundError as e:
            return PatternOutcome(span=span, state=PatternState.FAILED, error=e)
        # The placeholder must never be picked up as a trigger of its own
        self.tracker.mark_processed(PLACEHOLDER)
        self.tracker.resync(self.path)
        self._log_transition(span, PatternState.PLACEHOLDER_WRITTEN)

        self.console.print(f"  [yellow]{PLACEHOLDER}[/yellow]")
        self._log_transition(span, PatternState.GENERATION_REQUESTED)
        try:
            response = await self.agent.generate_response(span.content)
        except GenerationError as e:
            self._write_failure(span, e)
            return PatternOutcome(span=span, state=PatternState.FAILED, error=e)
        except asyncio.CancelledError:
            logger.warning(
                f"Session interrupted while generating a response for '{span.content}'",
                extra={"event": "pattern_interrupted", "path": str(self.path), "fingerprint": span.fingerprint},
            )
            self._restore_marker(span)
            raise

        self.console.print("  [yellow]📝 Replacing with response...[/yellow]")
        try:
            replace_in_file(self.path, PLACEHOLDER, response)
        except PatternNotFoundError as e:
            logger.warning(f"Placeholder disappeared before the response for '{span.content}' was written")
            return PatternOutcome(span=span, state=PatternState.FAILED, response=response, error=e)
        self.tracker.resync(self.path)

        return PatternOutcome(span=span, state=PatternState.REPLACED_WITH_RESULT, response=response)

    def _write_failure(self, span: TriggerSpan, error: Exception) -> None:
        message = FAILURE_TEMPLATE.format(reason=format_error_message(error, include_type=False))
        try:
            replace_in_file(self.path, PLACEHOLDER, message)
        except PatternNotFoundError:
            logger.warning(f"Placeholder for '{span.content}' was removed; failure not written to the document")
            return
        self.tracker.resync(self.path)

    def _restore_marker(self, span: TriggerSpan) -> None:
        try:
            replace_in_file(self.path, PLACEHOLDER, span.marker_text())
            self.tracker.resync(self.path)
        except (PatternNotFoundError, DocumentIOError) as e:
            logger.warning(f"Could not restore marker for '{span.content}': {e}")
            return
        self.console.print(f"  [yellow]↩ Restored marker for:[/yellow] {escape_markup(span.content)}")

    async def process_batch(self, spans: list[TriggerSpan]) -> list[PatternOutcome]:
        """Process one poll batch sequentially in document order."""
        ordered = sorted(spans, key=lambda s: s.start)
        outcomes = []

        self.console.print(f"\n[bold green]🔍 Found {len(ordered)} new pattern(s)[/bold green]")
        self.console.print("[dim]" + "─" * 60 + "[/dim]")

        for idx, span in enumerate(ordered, start=1):
            preview = span.content.splitlines()[0][:60] if span.content else ""
            self.console.print(f"\n[cyan]▶[/cyan] Pattern {idx}/{len(ordered)}")
            self.console.print(f"  Type:    {span.kind.value}")
            self.console.print(f"  Content: [cyan]{escape_markup(preview)}[/cyan]")

            outcome = await self.process_pattern(span)
            if outcome.state == PatternState.SKIPPED:
                self.console.print("  [dim]⏭ Already processed, skipped[/dim]")
            elif outcome.succeeded:
                self.console.print("  [bold green]✅ Success[/bold green]")
            else:
                error = outcome.error or RuntimeError("unknown failure")
                self.console.print(f"  [bold red]❌ Error:[/bold red] {escape_markup(format_error_message(error))}")
                logger.error(
                    f"Failed to process pattern: {format_error_message(error)}",
                    extra={"event": "pattern_failed", "path": str(self.path), "fingerprint": span.fingerprint},
                )
            outcomes.append(outcome)

        self.console.print("\n[dim]" + "─" * 60 + "[/dim]")
        self.console.print("[yellow]👀 Continuing to watch...[/yellow]")
        return outcomes

    async def run(self) -> None:
        """Poll and process forever. Only DocumentIOError (or cancellation) ends it."""
        if self.tracker.snapshot is None:
            self.start()
        while True:
            spans = await self.tracker.wait_for_patterns(self.path)
            await self.process_batch(spans)

    async def run_until_interrupted(self, install_signal_handlers: bool = True) -> None:
        """Race the watch loop against the shutdown signal.

        Args:
            install_signal_handlers: Route SIGINT/SIGTERM to request_shutdown()
        """
        loop = asyncio.get_running_loop()
        original_handlers = {}

        if install_signal_handlers:

            def signal_handler(signum, frame):
                """Set the shutdown event instead of raising KeyboardInterrupt."""
                loop.call_soon_threadsafe(self._shutdown.set)

            for sig in (signal.SIGINT, signal.SIGTERM):
                original_handlers[sig] = signal.signal(sig, signal_handler)

        watch_task = asyncio.create_task(self.run())
        stop_task = asyncio.create_task(self._shutdown.wait())
        try:
            done, _ = await asyncio.wait({watch_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

            if watch_task in done:
                # Loop only ends on error; re-raise it
                watch_task.result()
                return

            watch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watch_task
            logger.info("Watch session stopped by interrupt", extra={"event": "session_stopped", "path": str(self.path)})
            self.console.print("\n\n[bold yellow]👋 Stopped watching file. Goodbye![/bold yellow]")
        finally:
            if not watch_task.done():
                watch_task.cancel()
            stop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await stop_task
            for sig, handler in original_handlers.items():
                signal.signal(sig, handler)

    def _log_transition(self, span: TriggerSpan, state: PatternState) -> None:
        logger.info(
            f"Pattern {span.fingerprint[:12]} -> {state.value}",
            extra={"event": "pattern_state", "path": str(self.path), "fingerprint": span.fingerprint, "state": state.value},
        )
