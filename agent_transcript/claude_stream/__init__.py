# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Streaming parser for Claude ``stream-json`` output.

Events are decoded incrementally and rendered as transcript deltas that
the caller appends to what it already displays.
"""

from agent_transcript.claude_stream.events import DecodedEvent, classify
from agent_transcript.claude_stream.parser import (
    ClaudeStreamParser,
    ClaudeStreamState,
    advance,
    ensure_transcript_headers,
)
from agent_transcript.claude_stream.tools import (
    ToolCallCorrelator,
    ToolCallState,
    format_tool_result,
    format_tool_use,
)


__all__ = [
    # Events
    "DecodedEvent",
    "classify",
    # Parser
    "ClaudeStreamParser",
    "ClaudeStreamState",
    "advance",
    "ensure_transcript_headers",
    # Tool calls
    "ToolCallCorrelator",
    "ToolCallState",
    "format_tool_result",
    "format_tool_use",
]
