# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tool call correlation for Claude streaming output.

A tool call is announced, its arguments may stream in as partial JSON,
and its result arrives later, possibly many events apart. The
correlator merges these into exactly one invocation line per call id
and one result line per result event.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any


logger = logging.getLogger(__name__)

#: Input fields that name what a tool call acts on, in precedence order.
_LABEL_FIELDS = ("command", "cmd", "code", "path", "query", "message")

#: Name used when a call never reported one.
DEFAULT_TOOL_NAME = "Tool"

#: Result line prefix when the originating call is unknown.
GENERIC_RESULT_PREFIX = "ToolOutput"


@dataclass
class ToolCallState:
    """Mutable state of one in-flight tool call.

    Attributes:
        tool_id: Call identifier.
        name: Tool name.
        description: Human description from the start event, if any.
        input: Resolved tool input, once known.
        partial_json: Accumulated streamed argument text.
        emitted: Whether the invocation line has been produced. Never
            reset once set.
    """

    tool_id: str
    name: str = DEFAULT_TOOL_NAME
    description: str | None = None
    input: Any = None
    partial_json: str = ""
    emitted: bool = False

    def resolve_input(self) -> Any:
        """Return the input, parsing accumulated partial JSON if needed."""
        if self.input is None and self.partial_json:
            try:
                self.input = json.loads(self.partial_json)
            except json.JSONDecodeError:
                logger.debug(
                    "Unparseable arguments for tool call %s: %s",
                    self.tool_id,
                    self.partial_json[:100],
                )
        return self.input


def _derive_label(tool_input: Any) -> str:
    if isinstance(tool_input, str):
        return tool_input.strip()
    if not isinstance(tool_input, dict):
        return ""

    for key in _LABEL_FIELDS:
        value = tool_input.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    args = tool_input.get("args")
    if isinstance(args, list):
        joined = " ".join(str(arg) for arg in args).strip()
        if joined:
            return joined

    nested = tool_input.get("input")
    if isinstance(nested, str):
        return nested.strip()
    if nested:
        return json.dumps(nested)
    return ""


def format_tool_use(
    name: str, tool_input: Any, description: str | None = None
) -> str:
    """Format the single invocation line for a tool call.

    Produces ``• <name>: <label> — <description>`` where the label is the
    first non-empty conventional input field. Parts that are missing
    are left out.

    Args:
        name: Tool name.
        tool_input: Tool input (dict, string, or ``None``).
        description: Explicit description; falls back to the input's
            ``description`` field.

    Returns:
        The formatted line, newline-terminated.
    """
    parts: list[str] = []
    label = _derive_label(tool_input)
    if label:
        parts.append(label)

    if not (description and description.strip()) and isinstance(
        tool_input, dict
    ):
        candidate = tool_input.get("description")
        description = candidate if isinstance(candidate, str) else None
    if description and description.strip():
        parts.append(f"— {description.strip()}")

    text = " ".join(parts)
    suffix = f": {text}" if text else ""
    return f"• {name}{suffix}\n"


def _result_text(content: Any, result: Any) -> str:
    if isinstance(content, list):
        pieces: list[str] = []
        for item in content:
            if isinstance(item, str):
                pieces.append(item)
            elif isinstance(item, dict):
                if isinstance(item.get("text"), str):
                    pieces.append(item["text"])
                elif isinstance(item.get("data"), str):
                    pieces.append(item["data"])
                elif isinstance(item.get("content"), list):
                    pieces.append(" ".join(str(c) for c in item["content"]))
        return " ".join(p for p in pieces if p)
    if isinstance(content, str):
        return content
    if isinstance(result, str):
        return result
    return ""


def format_tool_result(
    content: Any,
    *,
    name: str | None = None,
    result: Any = None,
    is_error: bool = False,
    error: Any = None,
) -> str | None:
    """Format the result line for a tool call.

    Args:
        content: Result content: a string or a list of parts.
        name: Name of the originating tool, if known.
        result: Alternate ``result`` string used when content is absent.
        is_error: Whether the tool reported failure.
        error: Error text, used when there is no other content.

    Returns:
        ``• <Name>Output: <text>`` (or ``ToolOutput`` when the name is
        unknown), or ``None`` when there is no text to show.
    """
    text = _result_text(content, result).strip()
    if not text and is_error and isinstance(error, str):
        text = error.strip()
    if not text:
        return None
    prefix = f"{name}Output" if name else GENERIC_RESULT_PREFIX
    return f"• {prefix}: {text}\n"


class ToolCallCorrelator:
    """Tracks in-flight tool calls and guarantees single emission.

    Calls are keyed by id. Producers that stream arguments with only a
    block index are handled by binding the index to the id when the
    block starts. Ids whose result has been consumed are remembered, so
    late argument or stop events for them never emit a second line.
    """

    def __init__(self) -> None:
        self._calls: dict[str, ToolCallState] = {}
        self._by_index: dict[int, str] = {}
        self._completed: set[str] = set()

    def __contains__(self, tool_id: str) -> bool:
        return tool_id in self._calls

    def get(self, tool_id: str) -> ToolCallState | None:
        """Return the state for *tool_id*, if tracked."""
        return self._calls.get(tool_id)

    def _state(self, tool_id: str) -> ToolCallState:
        state = self._calls.get(tool_id)
        if state is None:
            state = ToolCallState(tool_id=tool_id)
            self._calls[tool_id] = state
        return state

    def _emit(self, state: ToolCallState) -> str:
        if state.emitted:
            return ""
        state.emitted = True
        return format_tool_use(state.name, state.input, state.description)

    def start(
        self,
        tool_id: str,
        name: str | None,
        tool_input: Any = None,
        *,
        index: int | None = None,
    ) -> str:
        """Register a tool call announcement.

        Emits the invocation line immediately when the announcement
        already carries a non-empty input.

        Returns:
            The invocation line, or an empty string.
        """
        if tool_id in self._completed:
            return ""
        state = self._state(tool_id)
        state.name = name or state.name
        if isinstance(tool_input, dict):
            description = tool_input.get("description")
            if isinstance(description, str):
                state.description = description
        if tool_input:
            state.input = tool_input
        if index is not None:
            self._by_index[index] = tool_id

        if state.input is not None:
            return self._emit(state)
        return ""

    def id_for_index(self, index: int) -> str | None:
        """Return the id of the tool call streaming at block *index*."""
        return self._by_index.get(index)

    def add_partial(self, tool_id: str, partial_json: str | None) -> None:
        """Accumulate streamed argument text for *tool_id*."""
        if tool_id in self._completed:
            return
        state = self._state(tool_id)
        if partial_json:
            state.partial_json += partial_json

    def finish(self, tool_id: str, result_input: Any = None) -> str:
        """Mark the arguments of *tool_id* complete.

        Resolves the input from the stop event or from accumulated
        partial JSON, then emits the invocation line unless it was
        already emitted.

        Returns:
            The invocation line, or an empty string.
        """
        state = self._calls.get(tool_id)
        if state is None:
            return ""
        if state.input is None and result_input is not None:
            state.input = result_input
        state.resolve_input()
        return self._emit(state)

    def finish_index(self, index: int) -> str:
        """Finish the tool call bound to block *index*, if any."""
        tool_id = self._by_index.pop(index, None)
        if tool_id is None:
            return ""
        return self.finish(tool_id)

    def complete(
        self,
        tool_id: str | None,
        content: Any,
        *,
        result: Any = None,
        is_error: bool = False,
        error: Any = None,
    ) -> str:
        """Consume a tool result and produce its result line.

        The call state is dropped once a result line is produced and
        the id is marked completed. A result for an unknown or completed
        id still yields a line with the generic prefix.

        Returns:
            The result line, or an empty string when there is no text.
        """
        state = self._calls.get(tool_id) if tool_id else None
        line = format_tool_result(
            content,
            name=state.name if state else None,
            result=result,
            is_error=is_error,
            error=error,
        )
        if line is None:
            return ""
        if state is not None:
            del self._calls[state.tool_id]
            self._completed.add(state.tool_id)
        else:
            logger.debug("Tool result without matching call: %s", tool_id)
        return line

    def clear(self) -> None:
        """Forget all tracked calls."""
        self._calls.clear()
        self._by_index.clear()
        self._completed.clear()
