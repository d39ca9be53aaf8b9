# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Common interface for streaming transcript parsers.

The session manager picks a parser by agent family and then treats all
parsers alike: feed chunks in arrival order, and either append or
replace the displayed transcript depending on ``replaces_output``.
"""

from __future__ import annotations

import logging
from typing import ClassVar, Protocol, runtime_checkable

from agent_transcript.claude_stream.parser import ClaudeStreamParser
from agent_transcript.codex_stream.parser import CodexStreamParser
from agent_transcript.config import ParserConfig


logger = logging.getLogger(__name__)


@runtime_checkable
class TranscriptParser(Protocol):
    """Protocol for per-session streaming transcript parsers.

    ``feed`` never raises on malformed input. When ``replaces_output``
    is False the returned text is a delta to append; when True it is
    the whole transcript so far (``None`` meaning unchanged).
    """

    replaces_output: ClassVar[bool]

    def feed(self, chunk: str) -> str | None: ...

    def reset(self) -> None: ...


#: Agent family to parser class.
PARSER_REGISTRY: dict[
    str, type[ClaudeStreamParser] | type[CodexStreamParser]
] = {
    "claude": ClaudeStreamParser,
    "codex": CodexStreamParser,
}


def get_parser(
    family: str,
    config: ParserConfig | None = None,
    agent: str | None = None,
) -> TranscriptParser:
    """Create a parser for one CLI session.

    Args:
        family: Agent family (``claude`` or ``codex``).
        config: Parser settings; defaults when omitted.
        agent: Display name for the transcript header (Claude family
            only); defaults to *family*.

    Returns:
        A fresh parser instance.

    Raises:
        ValueError: If *family* is not registered.
    """
    if family not in PARSER_REGISTRY:
        known = ", ".join(sorted(PARSER_REGISTRY))
        raise ValueError(f"Unknown agent family {family!r} (known: {known})")

    logger.debug("Creating %s transcript parser", family)
    if family == "claude":
        return ClaudeStreamParser(agent=agent or family, config=config)
    return CodexStreamParser(config=config)
