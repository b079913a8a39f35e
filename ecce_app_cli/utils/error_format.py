"""Safe error message formatting utilities.

Ensures exceptions always have useful display messages, even when their
str() representation is empty (e.g., TimeoutError, CancelledError), and
that dynamic text is safe to interpolate into Rich markup.
"""

from __future__ import annotations

import asyncio

from rich.markup import escape as _escape_markup

# Friendly messages for exception types known to have an empty str()
FRIENDLY_MESSAGES: dict[type, str] = {
    TimeoutError: "Request timed out.",
    asyncio.CancelledError: "Operation was cancelled.",
    KeyboardInterrupt: "Operation interrupted by user.",
    PermissionError: "Permission denied.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a non-empty display message.

    Args:
        e: The exception to format
        include_type: Whether to prefix the exception type name

    Returns:
        A user-facing error message

    Examples:
        >>> format_error_message(TimeoutError())
        'TimeoutError: Request timed out.'

        >>> format_error_message(ValueError("invalid input"), include_type=False)
        'invalid input'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if include_type and error_type not in error_str:
            return f"{error_type}: {error_str}"
        return error_str

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}" if include_type else friendly_msg

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a value for safe interpolation into Rich markup strings.

    Payloads and file contents routinely contain brackets; without escaping
    Rich would treat them as style tags.
    """
    return _escape_markup(str(value))
