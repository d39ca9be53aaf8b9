# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Centralized logging configuration.

Parsers log dropped fragments at DEBUG and buffer overflows at WARNING.
Fragments can be arbitrarily large, so the handler installed here
shortens long string arguments before they are formatted.

Usage:
    # In entry points (CLI tools)
    from agent_transcript.logging import configure_logging
    configure_logging(level=logging.INFO)

    # In library modules
    import logging
    logger = logging.getLogger(__name__)
    logger.debug("Dropping stream fragment: %s", fragment)
"""

import logging


#: Default cap for string arguments in log records.
DEFAULT_MAX_ARG_CHARS = 200


class TruncatingFilter(logging.Filter):
    """Logging filter that shortens long string arguments.

    Only ``record.args`` are touched; the message template is left
    alone. Truncated values end with ``... (N chars)``.

    Example:
        filter = TruncatingFilter(max_chars=10)
        logger.addFilter(filter)
        logger.debug("Fragment: %s", "x" * 50)
        # Output: "Fragment: xxxxxxxxxx... (50 chars)"
    """

    def __init__(self, max_chars: int = DEFAULT_MAX_ARG_CHARS) -> None:
        super().__init__()
        self.max_chars = max_chars

    def _shorten(self, value: object) -> object:
        if isinstance(value, str) and len(value) > self.max_chars:
            return f"{value[: self.max_chars]}... ({len(value)} chars)"
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        """Shorten string arguments of *record*.

        Returns:
            Always True (record is never suppressed, only modified).
        """
        if isinstance(record.args, tuple):
            record.args = tuple(self._shorten(arg) for arg in record.args)
        return True


def configure_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
    max_arg_chars: int | None = DEFAULT_MAX_ARG_CHARS,
) -> None:
    """Configure logging for the application.

    Sets up the root logger with a standard format on stderr.

    Args:
        level: The logging level (e.g., logging.INFO, logging.DEBUG).
        format_string: Custom format string. If None, uses default format.
        max_arg_chars: Cap for string arguments; None disables it.
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string))

    if max_arg_chars is not None:
        handler.addFilter(TruncatingFilter(max_arg_chars))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)

    root_logger.addHandler(handler)
