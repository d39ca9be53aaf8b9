# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Streaming parser for Codex JSONL and SSE output."""

from agent_transcript.codex_stream.events import DecodedEvent, Usage, classify
from agent_transcript.codex_stream.items import ThreadItem, parse_item
from agent_transcript.codex_stream.parser import (
    CodexSections,
    CodexStreamParser,
    CodexStreamState,
    advance,
    build_output,
)
from agent_transcript.codex_stream.timeline import (
    StepStatus,
    Timeline,
    TimelineEntry,
)


__all__ = [
    # Events and items
    "DecodedEvent",
    "ThreadItem",
    "Usage",
    "classify",
    "parse_item",
    # Parser
    "CodexSections",
    "CodexStreamParser",
    "CodexStreamState",
    "advance",
    "build_output",
    # Timeline
    "StepStatus",
    "Timeline",
    "TimelineEntry",
]
