# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Incremental transcript parser for Claude ``stream-json`` output.

Feeds arbitrarily chunked stdout through the chunk lexer, classifies
each complete object, and advances an explicit parser state. Every
``feed`` call returns only the new transcript text, so callers append
the result to what they already display.

The produced transcript uses the plain-text conventions understood by
:mod:`agent_transcript.legacy`::

    Agent: claude | Command: stream-json
    --------
    model: claude-opus-4-1
    --------
    Working
    • I'll list the files.
    • Bash: ls — list files
    • BashOutput: README.md
    --------
    Answer
    Done.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import ClassVar

from agent_transcript.claude_stream.events import (
    TEXT_BLOCK_TYPES,
    AssistantEnvelope,
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlockStop,
    DecodedEvent,
    MessageStart,
    ResultEnvelope,
    SystemInit,
    ToolCallDelta,
    ToolCallStop,
    ToolResult,
    UserEnvelope,
    classify,
)
from agent_transcript.claude_stream.tools import (
    DEFAULT_TOOL_NAME,
    ToolCallCorrelator,
    format_tool_use,
)
from agent_transcript.config import ParserConfig
from agent_transcript.lexer import DecodeFailure, StreamBuffer, decode_object


logger = logging.getLogger(__name__)

SEPARATOR = "--------"
WORKING_MARKER = "Working"
ANSWER_MARKER = "Answer"


@dataclass
class ClaudeStreamState:
    """Everything a Claude stream parser knows about one session.

    Attributes:
        agent: Agent name shown in the header line.
        model: Model reported by the stream, once seen.
        header_printed: Header line and first separator emitted.
        meta_printed: Metadata block emitted (or skipped for good).
        working_printed: ``Working`` marker emitted.
        text_blocks: Open text/thinking blocks keyed by block index.
        tools: In-flight tool calls.
    """

    agent: str = "claude"
    model: str | None = None
    header_printed: bool = False
    meta_printed: bool = False
    working_printed: bool = False
    text_blocks: dict[int, str] = field(default_factory=dict)
    tools: ToolCallCorrelator = field(default_factory=ToolCallCorrelator)


def _ensure_header(state: ClaudeStreamState) -> str:
    if state.header_printed:
        return ""
    state.header_printed = True
    return f"Agent: {state.agent} | Command: stream-json\n{SEPARATOR}\n"


def _ensure_meta(state: ClaudeStreamState) -> str:
    if state.meta_printed:
        return ""
    state.meta_printed = True
    if not state.model:
        return ""
    return f"model: {state.model}\n{SEPARATOR}\n"


def _ensure_working(state: ClaudeStreamState) -> str:
    if state.working_printed:
        return ""
    state.working_printed = True
    return f"{WORKING_MARKER}\n"


def ensure_transcript_headers(state: ClaudeStreamState) -> str:
    """Emit whichever header sections have not been emitted yet."""
    return _ensure_header(state) + _ensure_meta(state) + _ensure_working(state)


def _bullets(text: str) -> str:
    lines = (line.strip() for line in text.split("\n"))
    return "".join(f"• {line}\n" for line in lines if line)


def _advance_assistant(
    state: ClaudeStreamState, event: AssistantEnvelope
) -> str:
    delta = ensure_transcript_headers(state)
    for part in event.content:
        part_type = part.get("type")
        if part_type == "text" and isinstance(part.get("text"), str):
            delta += _bullets(part["text"])
        elif part_type == "tool_use":
            name = part.get("name") or DEFAULT_TOOL_NAME
            tool_id = part.get("id")
            if not isinstance(tool_id, str) or not tool_id:
                delta += format_tool_use(name, part.get("input"))
                continue
            # The envelope carries the final input, so finish right away
            line = state.tools.start(tool_id, name, part.get("input"))
            delta += line or state.tools.finish(tool_id)
    return delta


def _advance_user(state: ClaudeStreamState, event: UserEnvelope) -> str:
    delta = ensure_transcript_headers(state)
    for part in event.content:
        if part.get("type") != "tool_result":
            continue
        tool_id = part.get("tool_use_id")
        delta += state.tools.complete(
            tool_id if isinstance(tool_id, str) else None,
            part.get("content"),
            is_error=bool(part.get("is_error", False)),
        )
    return delta


def advance(state: ClaudeStreamState, event: DecodedEvent) -> str:
    """Apply one decoded event to *state*.

    The state is owned by the caller and updated in place.

    Args:
        state: Parser state for the session.
        event: Classified event.

    Returns:
        Transcript text produced by this event (possibly empty).
    """
    if isinstance(event, SystemInit):
        if event.model:
            state.model = event.model
        return _ensure_header(state) + _ensure_meta(state)

    if isinstance(event, MessageStart):
        if event.model:
            state.model = event.model
        return ensure_transcript_headers(state)

    if isinstance(event, ContentBlockStart):
        if event.block_type in TEXT_BLOCK_TYPES:
            state.text_blocks[event.index] = ""
            return ""
        if event.block_type == "tool_use":
            tool_id = event.tool_id or f"idx:{event.index}"
            line = state.tools.start(
                tool_id, event.tool_name, event.tool_input, index=event.index
            )
            if line:
                return ensure_transcript_headers(state) + line
        return ""

    if isinstance(event, ContentBlockDelta):
        if event.index in state.text_blocks:
            addition = event.text or event.partial_json or ""
            state.text_blocks[event.index] += addition
            return ""
        tool_id = event.tool_id or state.tools.id_for_index(event.index)
        if tool_id and event.partial_json:
            state.tools.add_partial(tool_id, event.partial_json)
        return ""

    if isinstance(event, ContentBlockStop):
        if event.index in state.text_blocks:
            text = state.text_blocks.pop(event.index).strip()
            if text:
                return ensure_transcript_headers(state) + f"• {text}\n"
            return ""
        line = state.tools.finish_index(event.index)
        if line:
            return ensure_transcript_headers(state) + line
        return ""

    if isinstance(event, ToolCallDelta):
        state.tools.add_partial(event.tool_id, event.partial_json)
        return ""

    if isinstance(event, ToolCallStop):
        line = state.tools.finish(event.tool_id, event.result_input)
        if line:
            return ensure_transcript_headers(state) + line
        return ""

    if isinstance(event, ToolResult):
        line = state.tools.complete(
            event.tool_id,
            event.content,
            result=event.result,
            is_error=event.is_error,
            error=event.error,
        )
        if line:
            return ensure_transcript_headers(state) + line
        return ""

    if isinstance(event, AssistantEnvelope):
        return _advance_assistant(state, event)

    if isinstance(event, UserEnvelope):
        return _advance_user(state, event)

    if isinstance(event, ResultEnvelope):
        if event.result:
            return f"{SEPARATOR}\n{ANSWER_MARKER}\n{event.result}\n"
        return ""

    # MessageDelta, MessageStop, Unrecognized
    return ""


class ClaudeStreamParser:
    """Turns chunked Claude ``stream-json`` output into transcript deltas.

    One instance per CLI session. Not thread-safe; ``feed`` must be
    called from a single consumer in arrival order.

    Example:
        parser = ClaudeStreamParser(agent="claude")
        for chunk in chunks:
            view.append(parser.feed(chunk))
    """

    #: Callers append each returned delta.
    replaces_output: ClassVar[bool] = False

    def __init__(
        self, agent: str = "claude", config: ParserConfig | None = None
    ) -> None:
        self._config = config or ParserConfig()
        self._agent = agent
        self._buffer = StreamBuffer(max_chars=self._config.max_buffer_chars)
        self.state = ClaudeStreamState(agent=agent)

    def feed(self, chunk: str) -> str:
        """Consume a chunk of output and return the new transcript text.

        Never raises on malformed input: fragments that fail to decode
        are dropped.

        Args:
            chunk: Next piece of stdout, in arrival order.

        Returns:
            Transcript delta to append (possibly empty).
        """
        delta = ""
        for candidate in self._buffer.push(chunk):
            decoded = decode_object(
                candidate, clean_ansi=self._config.strip_ansi
            )
            if isinstance(decoded, DecodeFailure):
                logger.debug(
                    "Dropping stream fragment (%s): %s",
                    decoded.reason,
                    decoded.fragment,
                )
                continue
            delta += advance(self.state, classify(decoded.value))
        return delta

    def reset(self) -> None:
        """Discard all state, as if freshly constructed."""
        self._buffer.clear()
        self.state = ClaudeStreamState(agent=self._agent)
