# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for agent_transcript/claude_stream/events.py."""

from agent_transcript.claude_stream.events import (
    AssistantEnvelope,
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlockStop,
    MessageDelta,
    MessageStart,
    MessageStop,
    ResultEnvelope,
    SystemInit,
    ToolCallDelta,
    ToolCallStop,
    ToolResult,
    Unrecognized,
    UserEnvelope,
    classify,
)


class TestClassifyEnvelopes:
    def test_system_init(self) -> None:
        event = classify(
            {
                "type": "system",
                "subtype": "init",
                "session_id": "sess-1",
                "model": "claude-opus-4-1",
            }
        )
        assert event == SystemInit(model="claude-opus-4-1", session_id="sess-1")

    def test_system_without_model(self) -> None:
        assert classify({"type": "system"}) == SystemInit()

    def test_assistant_keeps_dict_parts_only(self) -> None:
        event = classify(
            {
                "type": "assistant",
                "message": {"content": [{"type": "text", "text": "hi"}, 3]},
            }
        )
        assert event == AssistantEnvelope(
            content=({"type": "text", "text": "hi"},)
        )

    def test_user(self) -> None:
        part = {"type": "tool_result", "tool_use_id": "t1", "content": "ok"}
        event = classify({"type": "user", "message": {"content": [part]}})
        assert event == UserEnvelope(content=(part,))

    def test_assistant_without_message(self) -> None:
        assert classify({"type": "assistant"}) == Unrecognized(
            type="assistant"
        )

    def test_assistant_with_non_list_content(self) -> None:
        event = classify({"type": "assistant", "message": {"content": "x"}})
        assert isinstance(event, Unrecognized)

    def test_result(self) -> None:
        event = classify(
            {
                "type": "result",
                "subtype": "success",
                "result": "Done.",
                "is_error": False,
                "usage": {"input_tokens": 10},
            }
        )
        assert event == ResultEnvelope(
            result="Done.",
            subtype="success",
            is_error=False,
            usage={"input_tokens": 10},
        )

    def test_result_with_non_string_result(self) -> None:
        event = classify({"type": "result", "result": {"x": 1}})
        assert isinstance(event, ResultEnvelope)
        assert event.result is None


class TestClassifyContentBlocks:
    def test_message_start(self) -> None:
        event = classify(
            {"type": "message_start", "message": {"model": "claude-x"}}
        )
        assert event == MessageStart(model="claude-x")

    def test_text_block_start(self) -> None:
        event = classify(
            {
                "type": "content_block_start",
                "index": 0,
                "content_block": {"type": "text", "text": ""},
            }
        )
        assert event == ContentBlockStart(index=0, block_type="text")

    def test_tool_use_block_start(self) -> None:
        event = classify(
            {
                "type": "content_block_start",
                "index": 1,
                "content_block": {
                    "type": "tool_use",
                    "id": "t1",
                    "name": "Bash",
                    "input": {"command": "ls"},
                },
            }
        )
        assert event == ContentBlockStart(
            index=1,
            block_type="tool_use",
            tool_id="t1",
            tool_name="Bash",
            tool_input={"command": "ls"},
        )

    def test_missing_index_defaults_to_zero(self) -> None:
        event = classify({"type": "content_block_stop"})
        assert event == ContentBlockStop(index=0)

    def test_boolean_index_treated_as_missing(self) -> None:
        event = classify({"type": "content_block_stop", "index": True})
        assert event == ContentBlockStop(index=0)

    def test_text_delta(self) -> None:
        event = classify(
            {
                "type": "content_block_delta",
                "index": 2,
                "delta": {"type": "text_delta", "text": "Hel"},
            }
        )
        assert event == ContentBlockDelta(index=2, text="Hel")

    def test_thinking_delta(self) -> None:
        event = classify(
            {
                "type": "content_block_delta",
                "index": 0,
                "delta": {"type": "thinking_delta", "thinking": "hmm"},
            }
        )
        assert event == ContentBlockDelta(index=0, text="hmm")

    def test_input_json_delta(self) -> None:
        event = classify(
            {
                "type": "content_block_delta",
                "index": 1,
                "delta": {
                    "type": "input_json_delta",
                    "partial_json": '{"comm',
                },
            }
        )
        assert event == ContentBlockDelta(index=1, partial_json='{"comm')

    def test_message_delta_and_stop(self) -> None:
        assert classify({"type": "message_delta"}) == MessageDelta()
        assert classify({"type": "message_stop"}) == MessageStop()


class TestClassifyToolEvents:
    def test_tool_call_delta(self) -> None:
        event = classify(
            {
                "type": "tool_call_delta",
                "id": "t1",
                "delta": {"partial_json": '{"a"'},
            }
        )
        assert event == ToolCallDelta(tool_id="t1", partial_json='{"a"')

    def test_tool_call_delta_without_id(self) -> None:
        event = classify({"type": "tool_call_delta", "delta": {}})
        assert event == Unrecognized(type="tool_call_delta")

    def test_tool_call_stop_with_result_input(self) -> None:
        event = classify(
            {
                "type": "tool_call_stop",
                "tool_use_id": "t1",
                "result": {"input": {"command": "ls"}},
            }
        )
        assert event == ToolCallStop(
            tool_id="t1", result_input={"command": "ls"}
        )

    def test_tool_result(self) -> None:
        event = classify(
            {"type": "tool_result", "tool_use_id": "t1", "content": "42"}
        )
        assert event == ToolResult(tool_id="t1", content="42")

    def test_tool_result_error(self) -> None:
        event = classify(
            {
                "type": "tool_result",
                "id": "t2",
                "is_error": True,
                "error": "boom",
            }
        )
        assert event == ToolResult(tool_id="t2", is_error=True, error="boom")


class TestClassifyUnknown:
    def test_unknown_type(self) -> None:
        assert classify({"type": "nonsense"}) == Unrecognized(type="nonsense")

    def test_missing_type(self) -> None:
        assert classify({"foo": 1}) == Unrecognized()

    def test_non_string_type(self) -> None:
        assert classify({"type": 5}) == Unrecognized()
