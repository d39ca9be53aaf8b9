# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for the parser registry and common parser interface."""

import pytest

from agent_transcript.base import PARSER_REGISTRY, TranscriptParser, get_parser
from agent_transcript.claude_stream.parser import ClaudeStreamParser
from agent_transcript.codex_stream.parser import CodexStreamParser
from agent_transcript.config import ParserConfig


class TestGetParser:
    def test_registry_families(self) -> None:
        assert set(PARSER_REGISTRY) == {"claude", "codex"}

    def test_claude(self) -> None:
        parser = get_parser("claude")
        assert isinstance(parser, ClaudeStreamParser)
        assert parser.replaces_output is False

    def test_claude_agent_name(self) -> None:
        parser = get_parser("claude", agent="opus")
        delta = parser.feed('{"type":"system","model":"m"}')
        assert delta.startswith("Agent: opus | Command: stream-json\n")

    def test_claude_defaults_agent_to_family(self) -> None:
        delta = get_parser("claude").feed('{"type":"system"}')
        assert delta.startswith("Agent: claude |")

    def test_codex(self) -> None:
        parser = get_parser("codex")
        assert isinstance(parser, CodexStreamParser)
        assert parser.replaces_output is True

    def test_config_is_passed(self) -> None:
        config = ParserConfig(strip_ansi=False)
        parser = get_parser("codex", config=config)
        raw = '{"type":"item.completed","item":{"type":"agent_message",'
        raw += '"id":"m","text":"hi\x1b[0m"}}'
        assert parser.feed(raw) is None

    def test_unknown_family(self) -> None:
        with pytest.raises(ValueError, match="Unknown agent family 'gemini'"):
            get_parser("gemini")

    def test_fresh_instances(self) -> None:
        assert get_parser("codex") is not get_parser("codex")


class TestTranscriptParserProtocol:
    @pytest.mark.parametrize("family", sorted(PARSER_REGISTRY))
    def test_parsers_satisfy_protocol(self, family: str) -> None:
        assert isinstance(get_parser(family), TranscriptParser)

    @pytest.mark.parametrize("family", sorted(PARSER_REGISTRY))
    def test_uniform_usage(self, family: str) -> None:
        """Both parsers tolerate garbage and reset cleanly."""
        parser = get_parser(family)
        assert not parser.feed("not json at all {")
        parser.reset()
        assert not parser.feed('{"type":"nonsense"}')
