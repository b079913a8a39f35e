"""Prompt executors.

A prompt executor turns a (system prompt, user prompt) pair into generated
text. The watch pipeline only needs request/response semantics and a
distinguishable failure (GenerationError).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from .errors import GenerationError

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "claude"


class PromptExecutor(Protocol):
    """Anything that can generate text from a prompt pair."""

    async def generate(self, system_prompt: str, user_prompt: str) -> str: ...


class ClaudeCodeExecutor:
    """Runs the Claude Code CLI once per prompt.

    Invocation: ``<executable> --system-prompt-file <tmp> -- <user_prompt>``.
    The system prompt is written to a temporary file that is removed
    afterwards. Stdout (stripped) is the generated text.

    Failure modes (all raised as GenerationError):
    - Executable not found
    - Non-zero exit code (stderr is used as the message)
    - Timeout (when a timeout is configured)
    - Output that is not valid UTF-8

    Cancelling the awaiting task kills the child process.
    """

    def __init__(
        self,
        executable: str = DEFAULT_EXECUTABLE,
        timeout: float | None = None,
        working_dir: Path | None = None,
    ):
        """Initialize executor.

        Args:
            executable: Claude Code executable name or path
            timeout: Seconds to wait for a response (None = no limit)
            working_dir: Working directory for the child process
        """
        self.executable = executable
        self.timeout = timeout
        self.working_dir = working_dir or Path.cwd()

    def _build_command(self, system_prompt_file: Path, user_prompt: str) -> list[str]:
        return [self.executable, "--system-prompt-file", str(system_prompt_file), "--", user_prompt]

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", prefix="ecce_system_", suffix=".txt", delete=False
        ) as tmp_file:
            tmp_file.write(system_prompt + "\n")
            system_path = Path(tmp_file.name)

        try:
            stdout = await self._execute(self._build_command(system_path, user_prompt))
        finally:
            with contextlib.suppress(OSError):
                system_path.unlink()

        try:
            return stdout.decode("utf-8").strip()
        except UnicodeDecodeError as e:
            raise GenerationError("Failed to parse Claude Code output as UTF-8") from e

    async def _execute(self, cmd: list[str]) -> bytes:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.working_dir),
                env=os.environ.copy(),
            )
        except FileNotFoundError as e:
            raise GenerationError(f"Failed to execute Claude Code at '{self.executable}': command not found") from e
        except OSError as e:
            raise GenerationError(f"Failed to execute Claude Code at '{self.executable}': {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            _kill(proc)
            await proc.wait()
            raise GenerationError(f"Claude Code timed out after {self.timeout}s") from e
        except asyncio.CancelledError:
            _kill(proc)
            with contextlib.suppress(asyncio.CancelledError):
                await asyncio.shield(proc.wait())
            logger.warning(f"Generation cancelled, killed {self.executable} (pid {proc.pid})")
            raise

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip() or f"exit code {proc.returncode}"
            raise GenerationError(f"Claude Code execution failed: {message}")

        return stdout


def _kill(proc: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        proc.kill()
