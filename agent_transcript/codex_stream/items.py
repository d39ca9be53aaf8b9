# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Typed thread items from Codex ``exec --json`` output.

Items are the units of work a Codex turn produces. The same item id is
reported by ``item.started``, any number of ``item.updated`` and a
final ``item.completed`` event, each carrying the item's latest state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentMessageItem:
    """Assistant answer text."""

    id: str
    text: str


@dataclass(frozen=True)
class ReasoningItem:
    """Reasoning summary text."""

    id: str
    text: str


@dataclass(frozen=True)
class CommandExecutionItem:
    """A shell command run by the agent.

    Attributes:
        command: Command line as executed.
        aggregated_output: Combined stdout/stderr captured so far.
        exit_code: Exit code once the command finished.
        status: ``in_progress``, ``completed`` or ``failed``.
    """

    id: str
    command: str
    aggregated_output: str = ""
    exit_code: int | None = None
    status: str | None = None


@dataclass(frozen=True)
class FileUpdateChange:
    """One path touched by a patch.

    Attributes:
        path: File path.
        kind: ``add``, ``delete`` or ``update``.
    """

    path: str
    kind: str


@dataclass(frozen=True)
class FileChangeItem:
    """A patch applied by the agent."""

    id: str
    changes: tuple[FileUpdateChange, ...]
    status: str | None = None


@dataclass(frozen=True)
class McpToolCallItem:
    """A call to a tool exposed by an MCP server."""

    id: str
    server: str
    tool: str
    status: str | None = None


@dataclass(frozen=True)
class WebSearchItem:
    id: str
    query: str


@dataclass(frozen=True)
class TodoEntry:
    text: str
    completed: bool


@dataclass(frozen=True)
class TodoListItem:
    """The agent's running plan."""

    id: str
    items: tuple[TodoEntry, ...]


@dataclass(frozen=True)
class ErrorItem:
    """A non-fatal error surfaced as an item."""

    id: str
    message: str


@dataclass(frozen=True)
class UnknownItem:
    """An item type this parser does not render."""

    id: str
    type: str


ThreadItem = (
    AgentMessageItem
    | ReasoningItem
    | CommandExecutionItem
    | FileChangeItem
    | McpToolCallItem
    | WebSearchItem
    | TodoListItem
    | ErrorItem
    | UnknownItem
)


def _str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _status(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


def _changes(raw: object) -> tuple[FileUpdateChange, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(
        FileUpdateChange(path=_str(c.get("path")), kind=_str(c.get("kind")))
        for c in raw
        if isinstance(c, dict)
    )


def _todos(raw: object) -> tuple[TodoEntry, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(
        TodoEntry(text=_str(t.get("text")), completed=bool(t.get("completed")))
        for t in raw
        if isinstance(t, dict)
    )


def parse_item(raw: dict[str, Any]) -> ThreadItem:
    """Convert a raw item mapping into a typed item.

    Args:
        raw: The ``item`` object of an item event.

    Returns:
        Typed item; ``UnknownItem`` for unrecognized types.
    """
    item_id = _str(raw.get("id"))
    item_type = _str(raw.get("type"))

    if item_type == "agent_message":
        return AgentMessageItem(id=item_id, text=_str(raw.get("text")))
    if item_type == "reasoning":
        return ReasoningItem(id=item_id, text=_str(raw.get("text")))
    if item_type == "command_execution":
        exit_code = raw.get("exit_code")
        return CommandExecutionItem(
            id=item_id,
            command=_str(raw.get("command")),
            aggregated_output=_str(raw.get("aggregated_output")),
            exit_code=exit_code if isinstance(exit_code, int) else None,
            status=_status(raw.get("status")),
        )
    if item_type == "file_change":
        return FileChangeItem(
            id=item_id,
            changes=_changes(raw.get("changes")),
            status=_status(raw.get("status")),
        )
    if item_type == "mcp_tool_call":
        return McpToolCallItem(
            id=item_id,
            server=_str(raw.get("server")),
            tool=_str(raw.get("tool")),
            status=_status(raw.get("status")),
        )
    if item_type == "web_search":
        return WebSearchItem(id=item_id, query=_str(raw.get("query")))
    if item_type == "todo_list":
        return TodoListItem(id=item_id, items=_todos(raw.get("items")))
    if item_type == "error":
        return ErrorItem(id=item_id, message=_str(raw.get("message")))

    logger.debug("Unknown Codex item type: %s", item_type)
    return UnknownItem(id=item_id, type=item_type)
