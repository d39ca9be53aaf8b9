# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Working-step timeline for Codex turns.

Each command, file change, MCP tool call, web search, plan update and
error becomes one ``TimelineEntry``. Entries are keyed by item id:
later events for the same id update the entry in place, so the
timeline never holds duplicates and keeps first-seen order.
"""

from __future__ import annotations

import copy
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from agent_transcript.codex_stream.items import (
    CommandExecutionItem,
    ErrorItem,
    FileChangeItem,
    McpToolCallItem,
    TodoListItem,
    WebSearchItem,
)


class StepStatus(Enum):
    """Step lifecycle status.

    Steps progress through: PENDING → IN_PROGRESS → COMPLETED or FAILED.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (StepStatus.COMPLETED, StepStatus.FAILED)


@dataclass
class TimelineEntry:
    """One unit of agent activity.

    Attributes:
        id: Item id the step was reported under.
        label: Short title (command line, ``server/tool``, ...).
        detail: Optional body (command output, changed paths, todos).
        status: Current status.
        started_at: Time the step was first seen.
        finished_at: Time the step first reached a terminal status.
    """

    id: str
    label: str
    detail: str | None
    status: StepStatus
    started_at: float | None = None
    finished_at: float | None = None


_ACTION_WORDS = {"add": "Created", "delete": "Deleted"}


def map_status(status: str | None) -> StepStatus:
    """Map an item status string; missing or unknown means in progress."""
    if status == "pending":
        return StepStatus.PENDING
    if status == "completed":
        return StepStatus.COMPLETED
    if status == "failed":
        return StepStatus.FAILED
    return StepStatus.IN_PROGRESS


def command_detail(item: CommandExecutionItem) -> str | None:
    """Render captured command output as a fenced shell block."""
    if not item.aggregated_output:
        return None
    return f"\n```sh\n$ {item.command}\n{item.aggregated_output}\n```"


def file_change_detail(item: FileChangeItem) -> str | None:
    """List changed paths with Created/Deleted/Modified action words."""
    lines = [
        f"{_ACTION_WORDS.get(change.kind, 'Modified')}: {change.path}"
        for change in item.changes
    ]
    return "\n".join(lines) or None


def todo_detail(item: TodoListItem) -> str | None:
    """Render the plan with ✓ for done and • for open entries."""
    lines = [
        f"{'✓' if todo.completed else '•'} {todo.text}"
        for todo in item.items
    ]
    return "\n".join(lines) or None


class Timeline:
    """Ordered, id-keyed list of working steps.

    Args:
        clock: Time source for start/finish stamps.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: list[TimelineEntry] = []
        self._by_id: dict[str, TimelineEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, step_id: str) -> TimelineEntry | None:
        return self._by_id.get(step_id)

    def record_step(
        self,
        step_id: str,
        label: str,
        detail: str | None,
        status: StepStatus,
    ) -> TimelineEntry:
        """Create or update the step *step_id*.

        An existing step keeps its label and position; its status is
        replaced and its detail replaced when a new one is given.
        ``started_at`` is stamped once, ``finished_at`` on the first
        transition into a terminal status.

        Returns:
            The live entry.
        """
        now = self._clock()
        entry = self._by_id.get(step_id)
        if entry is None:
            entry = TimelineEntry(
                id=step_id,
                label=label,
                detail=detail,
                status=status,
                started_at=now,
                finished_at=now if status.is_terminal else None,
            )
            self._entries.append(entry)
            self._by_id[step_id] = entry
            return entry

        entry.status = status
        if detail:
            entry.detail = detail
        if entry.started_at is None:
            entry.started_at = now
        if status.is_terminal and entry.finished_at is None:
            entry.finished_at = now
        return entry

    def record_command(self, item: CommandExecutionItem) -> TimelineEntry:
        return self.record_step(
            item.id, item.command, command_detail(item), map_status(item.status)
        )

    def record_file_change(self, item: FileChangeItem) -> TimelineEntry:
        status = (
            StepStatus.FAILED
            if item.status == "failed"
            else StepStatus.COMPLETED
        )
        return self.record_step(
            item.id, "File updates", file_change_detail(item), status
        )

    def record_mcp_tool_call(self, item: McpToolCallItem) -> TimelineEntry:
        return self.record_step(
            item.id,
            f"{item.server}/{item.tool}",
            None,
            map_status(item.status),
        )

    def record_web_search(self, item: WebSearchItem) -> TimelineEntry:
        return self.record_step(
            item.id, f"Search: {item.query}", None, StepStatus.COMPLETED
        )

    def record_todo_list(self, item: TodoListItem) -> TimelineEntry:
        return self.record_step(
            item.id, "To-do list", todo_detail(item), StepStatus.COMPLETED
        )

    def record_error(self, item: ErrorItem) -> TimelineEntry:
        return self.record_step(
            item.id, "Error", item.message or None, StepStatus.FAILED
        )

    def entries(self) -> list[TimelineEntry]:
        """Return copies of all steps in first-seen order."""
        return [copy.copy(entry) for entry in self._entries]

    def clear(self) -> None:
        self._entries.clear()
        self._by_id.clear()
