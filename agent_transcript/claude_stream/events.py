# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Typed representations for Claude ``stream-json`` events.

Claude CLIs have emitted several generations of streaming output: the
envelope format (``system``, ``assistant``, ``user``, ``result``), the
content-block format mirroring the Messages API (``message_start``,
``content_block_*``, ``message_delta``, ``message_stop``), and a
tool-call variant (``tool_call_delta``, ``tool_call_stop``,
``tool_result``). All of them may appear in the same stream.

``classify`` maps a decoded JSON object onto exactly one of the frozen
dataclasses below. Shapes the parser does not know become
``Unrecognized`` so new event types never break a live session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any


logger = logging.getLogger(__name__)

#: Content block types whose text is buffered until the block closes.
TEXT_BLOCK_TYPES = frozenset({"text", "thinking", "assistant_response"})


@dataclass(frozen=True)
class SystemInit:
    """Session initialization; carries the model when known."""

    model: str | None = None
    session_id: str = ""


@dataclass(frozen=True)
class MessageStart:
    """Start of one streamed assistant message."""

    model: str | None = None


@dataclass(frozen=True)
class ContentBlockStart:
    """A content block opened at a positional *index*.

    Attributes:
        index: Slot number; reused across messages.
        block_type: ``text``, ``thinking``, ``tool_use``, ...
        tool_id: Tool call id for ``tool_use`` blocks.
        tool_name: Tool name for ``tool_use`` blocks.
        tool_input: Tool input for ``tool_use`` blocks (often empty when
            the input streams in through deltas).
    """

    index: int
    block_type: str
    tool_id: str | None = None
    tool_name: str | None = None
    tool_input: Any = None


@dataclass(frozen=True)
class ContentBlockDelta:
    """Incremental content for an open block.

    ``text`` carries text or thinking deltas; ``partial_json`` carries
    streamed tool input. ``tool_id`` is only set by producers that tag
    deltas with the call id instead of the block index.
    """

    index: int
    text: str | None = None
    partial_json: str | None = None
    tool_id: str | None = None


@dataclass(frozen=True)
class ContentBlockStop:
    """A content block closed."""

    index: int


@dataclass(frozen=True)
class ToolCallDelta:
    """Partial tool arguments for call *tool_id*."""

    tool_id: str
    partial_json: str | None = None


@dataclass(frozen=True)
class ToolCallStop:
    """Tool call *tool_id* finished streaming its arguments."""

    tool_id: str
    result_input: Any = None


@dataclass(frozen=True)
class ToolResult:
    """Result of a tool call, correlated by *tool_id*."""

    tool_id: str | None
    content: Any = None
    result: Any = None
    is_error: bool = False
    error: Any = None


@dataclass(frozen=True)
class MessageDelta:
    """Message-level metadata update (stop reason, usage)."""


@dataclass(frozen=True)
class MessageStop:
    """End of one streamed assistant message."""


@dataclass(frozen=True)
class AssistantEnvelope:
    """A complete assistant message with its content parts."""

    content: tuple[dict[str, Any], ...]


@dataclass(frozen=True)
class UserEnvelope:
    """A complete user message, typically carrying tool results."""

    content: tuple[dict[str, Any], ...]


@dataclass(frozen=True)
class ResultEnvelope:
    """Final turn result.

    Attributes:
        result: Final answer text (``None`` when not a string).
        subtype: ``success`` or an error subtype.
        is_error: Whether the turn failed.
        usage: Raw token usage mapping, if reported.
    """

    result: str | None
    subtype: str = ""
    is_error: bool = False
    usage: dict[str, Any] = dataclass_field(default_factory=dict)


@dataclass(frozen=True)
class Unrecognized:
    """Any shape the classifier does not know. Produces no output."""

    type: str | None = None


DecodedEvent = (
    SystemInit
    | MessageStart
    | ContentBlockStart
    | ContentBlockDelta
    | ContentBlockStop
    | ToolCallDelta
    | ToolCallStop
    | ToolResult
    | MessageDelta
    | MessageStop
    | AssistantEnvelope
    | UserEnvelope
    | ResultEnvelope
    | Unrecognized
)


def _str_or_none(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


def _index(obj: dict[str, Any]) -> int:
    # bool is an int subclass; treat it as missing
    index = obj.get("index")
    if isinstance(index, int) and not isinstance(index, bool):
        return index
    return 0


def _dict(value: object) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _content_parts(obj: dict[str, Any]) -> tuple[dict[str, Any], ...] | None:
    message = obj.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, list):
        return None
    return tuple(part for part in content if isinstance(part, dict))


def _tool_id(obj: dict[str, Any]) -> str | None:
    return _str_or_none(obj.get("id")) or _str_or_none(obj.get("tool_use_id"))


def classify(obj: dict[str, Any]) -> DecodedEvent:
    """Classify a decoded JSON object as a Claude stream event.

    Total function: every input maps to some event, unknown or
    structurally incomplete shapes map to ``Unrecognized``.

    Args:
        obj: A decoded JSON object.

    Returns:
        The typed event.
    """
    event_type = obj.get("type")
    if not isinstance(event_type, str):
        return Unrecognized()

    if event_type == "system":
        return SystemInit(
            model=_str_or_none(obj.get("model")),
            session_id=_str_or_none(obj.get("session_id")) or "",
        )

    if event_type == "message_start":
        message = _dict(obj.get("message"))
        return MessageStart(model=_str_or_none(message.get("model")))

    if event_type == "content_block_start":
        block = _dict(obj.get("content_block"))
        return ContentBlockStart(
            index=_index(obj),
            block_type=block.get("type") or "",
            tool_id=_str_or_none(block.get("id")),
            tool_name=_str_or_none(block.get("name")),
            tool_input=block.get("input"),
        )

    if event_type == "content_block_delta":
        delta = _dict(obj.get("delta"))
        text = delta.get("text")
        if not isinstance(text, str):
            text = delta.get("thinking")
        partial = delta.get("partial_json")
        return ContentBlockDelta(
            index=_index(obj),
            text=text if isinstance(text, str) else None,
            partial_json=partial if isinstance(partial, str) else None,
            tool_id=_str_or_none(obj.get("id")),
        )

    if event_type == "content_block_stop":
        return ContentBlockStop(index=_index(obj))

    if event_type == "tool_call_delta":
        tool_id = _tool_id(obj)
        if tool_id is None:
            return Unrecognized(type=event_type)
        partial = _dict(obj.get("delta")).get("partial_json")
        return ToolCallDelta(
            tool_id=tool_id,
            partial_json=partial if isinstance(partial, str) else None,
        )

    if event_type == "tool_call_stop":
        tool_id = _tool_id(obj)
        if tool_id is None:
            return Unrecognized(type=event_type)
        return ToolCallStop(
            tool_id=tool_id,
            result_input=_dict(obj.get("result")).get("input"),
        )

    if event_type == "tool_result":
        return ToolResult(
            tool_id=(
                _str_or_none(obj.get("tool_use_id"))
                or _str_or_none(obj.get("id"))
            ),
            content=obj.get("content"),
            result=obj.get("result"),
            is_error=bool(obj.get("is_error", False)),
            error=obj.get("error"),
        )

    if event_type == "message_delta":
        return MessageDelta()

    if event_type == "message_stop":
        return MessageStop()

    if event_type in ("assistant", "user"):
        parts = _content_parts(obj)
        if parts is None:
            return Unrecognized(type=event_type)
        if event_type == "assistant":
            return AssistantEnvelope(content=parts)
        return UserEnvelope(content=parts)

    if event_type == "result":
        result = obj.get("result")
        subtype = obj.get("subtype")
        return ResultEnvelope(
            result=result if isinstance(result, str) else None,
            subtype=subtype if isinstance(subtype, str) else "",
            is_error=bool(obj.get("is_error", False)),
            usage=_dict(obj.get("usage")),
        )

    logger.debug("Unknown Claude event type: %s", event_type)
    return Unrecognized(type=event_type)
