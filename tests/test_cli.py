# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for the agent-transcript command line."""

import io
import json
import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from agent_transcript.claude_stream.parser import ClaudeStreamParser
from agent_transcript.cli import main


CLAUDE_STREAM = (
    '{"type":"system","subtype":"init","model":"claude-x"}\n'
    '{"type":"assistant","message":{"content":[{"type":"tool_use",'
    '"id":"t1","name":"Bash","input":{"command":"ls"}}]}}\n'
    '{"type":"user","message":{"content":[{"type":"tool_result",'
    '"tool_use_id":"t1","content":"README.md"}]}}\n'
    '{"type":"result","subtype":"success","result":"One file."}\n'
)

CODEX_STREAM = (
    '{"type":"thread.started","thread_id":"th"}\n'
    '{"type":"item.completed","item":{"type":"agent_message","id":"m",'
    '"text":"Hi there"}}\n'
    '{"type":"turn.completed","usage":{"input_tokens":5,'
    '"output_tokens":2}}\n'
)


@pytest.fixture(autouse=True)
def mock_configure_logging() -> Iterator[MagicMock]:
    with patch("agent_transcript.cli.configure_logging") as mock:
        yield mock


@pytest.fixture
def no_config(tmp_path: Path) -> list[str]:
    return ["--config", str(tmp_path / "absent.yaml")]


class TestStream:
    def test_claude_file(
        self,
        tmp_path: Path,
        no_config: list[str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "claude.jsonl"
        path.write_text(CLAUDE_STREAM)

        code = main(
            [*no_config, "stream", "--protocol", "claude", "--chunk-size",
             "7", str(path)]
        )

        assert code == 0
        out = capsys.readouterr().out
        assert out == ClaudeStreamParser().feed(CLAUDE_STREAM)
        assert "• Bash: ls\n• BashOutput: README.md\n" in out
        assert out.endswith("--------\nAnswer\nOne file.\n")

    def test_claude_agent_name(
        self,
        tmp_path: Path,
        no_config: list[str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "claude.jsonl"
        path.write_text(CLAUDE_STREAM)

        main([*no_config, "stream", "--protocol", "claude", "--agent", "x",
              str(path)])

        assert capsys.readouterr().out.startswith("Agent: x | Command:")

    def test_codex_stdin(
        self,
        no_config: list[str],
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(CODEX_STREAM))

        code = main([*no_config, "stream", "--protocol", "codex"])

        assert code == 0
        assert capsys.readouterr().out == (
            "Hi there\n\n\n---\n**Tokens:** 7 total (5 in, 2 out)\n"
        )

    def test_codex_without_output(
        self,
        no_config: list[str],
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO('{"type":"x"}\n'))

        assert main([*no_config, "stream", "--protocol", "codex"]) == 0
        assert capsys.readouterr().out == ""

    def test_missing_file(self, tmp_path: Path, no_config: list[str]) -> None:
        code = main(
            [*no_config, "stream", "--protocol", "claude",
             str(tmp_path / "nope.jsonl")]
        )
        assert code == 2

    def test_unknown_protocol(self, no_config: list[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([*no_config, "stream", "--protocol", "gemini"])
        assert exc_info.value.code == 2

    def test_invalid_chunk_size(self, no_config: list[str]) -> None:
        with pytest.raises(SystemExit):
            main([*no_config, "stream", "--protocol", "codex",
                  "--chunk-size", "0"])


class TestRecover:
    def test_prints_sections_as_json(
        self,
        tmp_path: Path,
        no_config: list[str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "transcript.txt"
        path.write_text(ClaudeStreamParser().feed(CLAUDE_STREAM))

        assert main([*no_config, "recover", str(path)]) == 0

        sections = json.loads(capsys.readouterr().out)
        assert sections["header"] == {
            "agent": "claude",
            "command": "stream-json",
        }
        assert sections["meta"] == {"model": "claude-x"}
        assert sections["answer"] == "One file."
        assert sections["working"] == ["Bash: ls", "BashOutput: README.md"]
        assert sections["success"] is True

    def test_no_transcript(
        self,
        no_config: list[str],
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO("hello world"))

        assert main([*no_config, "recover"]) == 1
        assert capsys.readouterr().out == ""

    def test_agent_names_from_config(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("agent_names: [aider]\n")
        transcript = "--------\n[2025-01-01T00:00:00] aider\nHello\n"
        monkeypatch.setattr("sys.stdin", io.StringIO(transcript))

        assert main(["--config", str(config), "recover"]) == 0
        assert json.loads(capsys.readouterr().out)["answer"] == "Hello"


class TestMain:
    def test_config_error(self, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("max_buffer_chars: 0\n")
        assert main(["--config", str(config), "recover"]) == 1

    def test_debug_flag(
        self,
        no_config: list[str],
        mock_configure_logging: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(""))

        main(["--debug", *no_config, "stream", "--protocol", "codex"])

        mock_configure_logging.assert_called_once_with(level=logging.DEBUG)

    def test_subcommand_required(self) -> None:
        with pytest.raises(SystemExit):
            main([])
