"""Error taxonomy for the watch pipeline.

- DocumentIOError: the watched document could not be read or written (fatal to a session)
- PatternNotFoundError: no replacement candidate was found in the document (per pattern)
- GenerationError: the prompt executor failed (per pattern)
- SettingsError: settings could not be loaded or a named entry is missing
"""


class EcceError(Exception):
    """Base class for all ecce errors."""


class DocumentIOError(EcceError, OSError):
    """The watched document could not be read or written."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class PatternNotFoundError(EcceError, LookupError):
    """None of the replacement candidates exist in the document."""

    def __init__(self, old_text: str):
        super().__init__(f"Pattern not found in file: '{old_text}'")
        self.old_text = old_text


class GenerationError(EcceError):
    """The prompt executor failed or produced unusable output."""


class SettingsError(EcceError):
    """Settings could not be loaded, saved, or resolved."""
