"""Whole-file read and atomic write for the watched document."""

import contextlib
import logging
import shutil
import tempfile
from pathlib import Path

from .errors import DocumentIOError

logger = logging.getLogger(__name__)


def read_document(path: Path) -> str:
    """Read the full document as UTF-8 text.

    Raises:
        DocumentIOError: If the file is missing, unreadable, or not valid UTF-8
    """
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentIOError(f"Failed to read {path}: {e}", path=path) from e


def write_document(path: Path, content: str) -> None:
    """Replace the document's content in one rename.

    The new text goes to a temp file next to the target, which is then
    renamed over it, so a killed process never leaves a half-written file.

    Raises:
        DocumentIOError: If the temp file cannot be written or renamed
    """
    path = Path(path)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            tmp_file.write(content)
            tmp_file.flush()

        if path.exists():
            # Keep the user's permissions rather than the temp file's 0600
            shutil.copymode(path, temp_path)
        temp_path.replace(path)
    except OSError as e:
        if temp_path is not None:
            with contextlib.suppress(OSError):
                temp_path.unlink()
        raise DocumentIOError(f"Failed to write {path}: {e}", path=path) from e

    logger.debug(f"Wrote {len(content)} characters to {path}")
