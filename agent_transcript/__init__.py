# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Streaming transcript parsers for AI coding agent CLIs.

Turns chunked stdout of agent CLIs (Claude ``stream-json``, Codex JSONL
or SSE) into human-readable transcripts, and recovers sections from
plain-text transcripts of older CLI versions.
"""

from agent_transcript.base import PARSER_REGISTRY, TranscriptParser, get_parser
from agent_transcript.claude_stream import ClaudeStreamParser
from agent_transcript.codex_stream import CodexStreamParser, StepStatus
from agent_transcript.config import ConfigError, ParserConfig
from agent_transcript.legacy import (
    AgentHeader,
    ParsedAgentOutput,
    extract_working_lines,
    parse_agent_transcript,
)
from agent_transcript.lexer import StreamBuffer, extract_objects


__all__ = [
    # Parsers
    "ClaudeStreamParser",
    "CodexStreamParser",
    "PARSER_REGISTRY",
    "StepStatus",
    "TranscriptParser",
    "get_parser",
    # Configuration
    "ConfigError",
    "ParserConfig",
    # Plain-text recovery
    "AgentHeader",
    "ParsedAgentOutput",
    "extract_working_lines",
    "parse_agent_transcript",
    # Lexing
    "StreamBuffer",
    "extract_objects",
]
