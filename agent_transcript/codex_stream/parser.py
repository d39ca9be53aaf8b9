# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Transcript parser for Codex streaming output.

Unlike the Claude parser, which returns deltas, this parser returns the
whole transcript known so far for the active turn every time something
changes. Callers replace their displayed text with the latest result.

Reasoning and answer text go into the transcript. Commands, file
changes, tool calls and the like go into a separate step timeline
(see :meth:`CodexStreamParser.steps`) for progress display.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import ClassVar

from agent_transcript.codex_stream.events import (
    DecodedEvent,
    ItemEvent,
    ResponseCompleted,
    ResponseDelta,
    ResponseError,
    ThreadStarted,
    TurnCompleted,
    TurnFailed,
    Usage,
    classify,
)
from agent_transcript.codex_stream.items import (
    AgentMessageItem,
    CommandExecutionItem,
    ErrorItem,
    FileChangeItem,
    McpToolCallItem,
    ReasoningItem,
    ThreadItem,
    TodoListItem,
    WebSearchItem,
)
from agent_transcript.codex_stream.timeline import Timeline, TimelineEntry
from agent_transcript.config import ParserConfig
from agent_transcript.lexer import DecodeFailure, StreamBuffer, decode_object


logger = logging.getLogger(__name__)


@dataclass
class CodexSections:
    """Transcript sections accumulated over a turn.

    ``reasoning`` and ``messages`` only grow; ``usage`` is replaced by
    each ``turn.completed`` event.
    """

    reasoning: list[str] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    usage: Usage | None = None
    thread_id: str | None = None


@dataclass
class CodexStreamState:
    """Everything a Codex stream parser knows about one session.

    Attributes:
        sections: Rendered transcript sections.
        timeline: Working steps.
        streaming_text: Response text accumulated from deltas.
        reasoning_slots: Item id to position in ``sections.reasoning``.
        message_slots: Item id to position in ``sections.messages``.
    """

    sections: CodexSections = field(default_factory=CodexSections)
    timeline: Timeline = field(default_factory=Timeline)
    streaming_text: str = ""
    reasoning_slots: dict[str, int] = field(default_factory=dict)
    message_slots: dict[str, int] = field(default_factory=dict)


def format_usage(usage: Usage) -> str:
    """Format the trailing token usage line."""
    cached = (
        f", {usage.cached_input_tokens:,} cached"
        if usage.cached_input_tokens > 0
        else ""
    )
    return (
        f"\n---\n**Tokens:** {usage.total_tokens:,} total "
        f"({usage.input_tokens:,} in, {usage.output_tokens:,} out{cached})"
    )


def build_output(state: CodexStreamState) -> str:
    """Render the current transcript for the turn.

    Reasoning blocks come first (as emphasis), then answer messages,
    then the response still streaming (if any), then the token usage
    line once known. Sections are separated by a blank line.
    """
    sections = state.sections
    parts = [f"_{reasoning}_" for reasoning in sections.reasoning]
    parts.extend(sections.messages)
    if state.streaming_text:
        parts.append(state.streaming_text)
    if sections.usage is not None:
        parts.append(format_usage(sections.usage))
    return "\n\n".join(parts)


def _upsert(
    entries: list[str], slots: dict[str, int], item_id: str, text: str
) -> None:
    if item_id and item_id in slots:
        entries[slots[item_id]] = text
        return
    if item_id:
        slots[item_id] = len(entries)
    entries.append(text)


def _advance_item(state: CodexStreamState, item: ThreadItem) -> str | None:
    if isinstance(item, AgentMessageItem):
        _upsert(
            state.sections.messages, state.message_slots, item.id, item.text
        )
    elif isinstance(item, ReasoningItem):
        _upsert(
            state.sections.reasoning, state.reasoning_slots, item.id, item.text
        )
    elif isinstance(item, CommandExecutionItem):
        state.timeline.record_command(item)
    elif isinstance(item, FileChangeItem):
        state.timeline.record_file_change(item)
    elif isinstance(item, McpToolCallItem):
        state.timeline.record_mcp_tool_call(item)
    elif isinstance(item, WebSearchItem):
        state.timeline.record_web_search(item)
    elif isinstance(item, TodoListItem):
        state.timeline.record_todo_list(item)
    elif isinstance(item, ErrorItem):
        state.timeline.record_error(item)
    else:
        return None
    return build_output(state)


def _finish_response(state: CodexStreamState, text: str) -> str:
    state.streaming_text = ""
    state.sections.messages.append(text)
    return build_output(state)


def advance(state: CodexStreamState, event: DecodedEvent) -> str | None:
    """Apply one decoded event to *state*.

    The state is owned by the caller and updated in place.

    Args:
        state: Parser state for the session.
        event: Classified event.

    Returns:
        The full transcript after the event, or ``None`` when nothing
        visible changed.
    """
    if isinstance(event, ThreadStarted):
        state.sections.thread_id = event.thread_id
        return None

    if isinstance(event, TurnCompleted):
        if event.usage is None:
            return None
        state.sections.usage = event.usage
        return build_output(state)

    if isinstance(event, TurnFailed):
        return _finish_response(state, f"Error: {event.message}")

    if isinstance(event, ItemEvent):
        return _advance_item(state, event.item)

    if isinstance(event, ResponseDelta):
        state.streaming_text += event.text
        return build_output(state)

    if isinstance(event, ResponseCompleted):
        if not event.text:
            return None
        return _finish_response(state, event.text)

    if isinstance(event, ResponseError):
        return _finish_response(state, f"Error: {event.message}")

    # TurnStarted, ThreadError, Unrecognized
    return None


class CodexStreamParser:
    """Turns chunked Codex output into the current turn transcript.

    One instance per CLI session. ``feed`` accepts raw JSONL or SSE
    framed output in any chunking.

    Args:
        config: Parser settings.
        clock: Time source for step timestamps.
    """

    #: Callers replace their displayed text with each returned value.
    replaces_output: ClassVar[bool] = True

    def __init__(
        self,
        config: ParserConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or ParserConfig()
        self._clock = clock
        self._buffer = StreamBuffer(max_chars=self._config.max_buffer_chars)
        self.state = CodexStreamState(timeline=Timeline(clock=clock))

    @property
    def thread_id(self) -> str | None:
        return self.state.sections.thread_id

    def feed(self, chunk: str) -> str | None:
        """Consume a chunk of output.

        Args:
            chunk: Next piece of stdout, in arrival order.

        Returns:
            The latest transcript, or ``None`` when this chunk changed
            nothing visible.
        """
        output: str | None = None
        for candidate in self._buffer.push(chunk, sse=True):
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
            result = advance(self.state, classify(decoded.value))
            if result is not None:
                output = result
        return output

    def steps(self) -> list[TimelineEntry]:
        """Return a snapshot of the working steps seen so far."""
        return self.state.timeline.entries()

    def reset(self) -> None:
        """Discard all state, as if freshly constructed."""
        self._buffer.clear()
        self.state = CodexStreamState(timeline=Timeline(clock=self._clock))
