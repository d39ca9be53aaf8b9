# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for agent_transcript/codex_stream/timeline.py."""

from agent_transcript.codex_stream.items import (
    CommandExecutionItem,
    ErrorItem,
    FileChangeItem,
    FileUpdateChange,
    McpToolCallItem,
    TodoEntry,
    TodoListItem,
    WebSearchItem,
)
from agent_transcript.codex_stream.timeline import (
    StepStatus,
    Timeline,
    command_detail,
    file_change_detail,
    map_status,
    todo_detail,
)


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class TestStepStatus:
    def test_terminal(self) -> None:
        assert StepStatus.COMPLETED.is_terminal
        assert StepStatus.FAILED.is_terminal
        assert not StepStatus.PENDING.is_terminal
        assert not StepStatus.IN_PROGRESS.is_terminal

    def test_map_status(self) -> None:
        assert map_status("completed") is StepStatus.COMPLETED
        assert map_status("failed") is StepStatus.FAILED
        assert map_status("pending") is StepStatus.PENDING
        assert map_status("in_progress") is StepStatus.IN_PROGRESS
        assert map_status(None) is StepStatus.IN_PROGRESS
        assert map_status("queued") is StepStatus.IN_PROGRESS


class TestDetails:
    def test_command_detail(self) -> None:
        item = CommandExecutionItem(
            id="c1", command="ls", aggregated_output="a.py"
        )
        assert command_detail(item) == "\n```sh\n$ ls\na.py\n```"

    def test_command_detail_without_output(self) -> None:
        assert command_detail(CommandExecutionItem(id="c", command="x")) is None

    def test_file_change_detail(self) -> None:
        item = FileChangeItem(
            id="f1",
            changes=(
                FileUpdateChange(path="new.py", kind="add"),
                FileUpdateChange(path="old.py", kind="delete"),
                FileUpdateChange(path="main.py", kind="update"),
            ),
        )
        assert file_change_detail(item) == (
            "Created: new.py\nDeleted: old.py\nModified: main.py"
        )

    def test_file_change_detail_empty(self) -> None:
        assert file_change_detail(FileChangeItem(id="f", changes=())) is None

    def test_todo_detail(self) -> None:
        item = TodoListItem(
            id="p1",
            items=(
                TodoEntry(text="read", completed=True),
                TodoEntry(text="write", completed=False),
            ),
        )
        assert todo_detail(item) == "✓ read\n• write"


class TestTimeline:
    def test_record_step_creates_entry(self) -> None:
        clock = FakeClock()
        timeline = Timeline(clock=clock)
        entry = timeline.record_step("s1", "ls", None, StepStatus.IN_PROGRESS)
        assert len(timeline) == 1
        assert entry.started_at == 100.0
        assert entry.finished_at is None

    def test_update_in_place(self) -> None:
        clock = FakeClock()
        timeline = Timeline(clock=clock)
        timeline.record_step("s1", "ls", None, StepStatus.IN_PROGRESS)
        clock.now = 105.0
        entry = timeline.record_step(
            "s1", "other label", "out", StepStatus.COMPLETED
        )
        assert len(timeline) == 1
        assert entry.label == "ls"
        assert entry.detail == "out"
        assert entry.status is StepStatus.COMPLETED
        assert entry.started_at == 100.0
        assert entry.finished_at == 105.0

    def test_finished_at_set_once(self) -> None:
        clock = FakeClock()
        timeline = Timeline(clock=clock)
        timeline.record_step("s1", "ls", None, StepStatus.COMPLETED)
        clock.now = 200.0
        entry = timeline.record_step("s1", "ls", None, StepStatus.FAILED)
        assert entry.finished_at == 100.0
        assert entry.status is StepStatus.FAILED

    def test_empty_detail_keeps_previous(self) -> None:
        timeline = Timeline()
        timeline.record_step("s1", "ls", "out", StepStatus.IN_PROGRESS)
        entry = timeline.record_step("s1", "ls", None, StepStatus.COMPLETED)
        assert entry.detail == "out"

    def test_first_seen_order(self) -> None:
        timeline = Timeline()
        for step_id in ("a", "b", "a", "c", "b"):
            timeline.record_step(step_id, step_id, None, StepStatus.PENDING)
        assert [e.id for e in timeline.entries()] == ["a", "b", "c"]

    def test_entries_are_copies(self) -> None:
        timeline = Timeline()
        timeline.record_step("s1", "ls", None, StepStatus.IN_PROGRESS)
        snapshot = timeline.entries()
        snapshot[0].status = StepStatus.FAILED
        entry = timeline.get("s1")
        assert entry is not None
        assert entry.status is StepStatus.IN_PROGRESS

    def test_record_command(self) -> None:
        timeline = Timeline()
        entry = timeline.record_command(
            CommandExecutionItem(
                id="c1",
                command="pytest",
                aggregated_output="ok",
                status="completed",
            )
        )
        assert entry.label == "pytest"
        assert entry.detail == "\n```sh\n$ pytest\nok\n```"
        assert entry.status is StepStatus.COMPLETED

    def test_record_file_change(self) -> None:
        timeline = Timeline()
        item = FileChangeItem(
            id="f1", changes=(FileUpdateChange(path="a.py", kind="add"),)
        )
        entry = timeline.record_file_change(item)
        assert entry.label == "File updates"
        assert entry.status is StepStatus.COMPLETED
        failed = FileChangeItem(id="f2", changes=(), status="failed")
        assert timeline.record_file_change(failed).status is StepStatus.FAILED

    def test_record_mcp_tool_call(self) -> None:
        entry = Timeline().record_mcp_tool_call(
            McpToolCallItem(id="t1", server="docs", tool="search")
        )
        assert entry.label == "docs/search"
        assert entry.status is StepStatus.IN_PROGRESS

    def test_record_web_search(self) -> None:
        entry = Timeline().record_web_search(WebSearchItem(id="w", query="q"))
        assert entry.label == "Search: q"
        assert entry.status is StepStatus.COMPLETED

    def test_record_todo_list(self) -> None:
        item = TodoListItem(id="p", items=(TodoEntry("x", False),))
        entry = Timeline().record_todo_list(item)
        assert entry.label == "To-do list"
        assert entry.detail == "• x"

    def test_record_error(self) -> None:
        entry = Timeline().record_error(ErrorItem(id="e", message="bad"))
        assert entry.label == "Error"
        assert entry.detail == "bad"
        assert entry.status is StepStatus.FAILED

    def test_clear(self) -> None:
        timeline = Timeline()
        timeline.record_step("s1", "ls", None, StepStatus.PENDING)
        timeline.clear()
        assert len(timeline) == 0
        assert timeline.get("s1") is None
