# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Best-effort recovery of sections from plain-text agent transcripts.

Older CLI versions (and persisted transcripts) are plain text rather
than JSON events. This module pulls the same logical sections out of a
complete transcript string: header, metadata, user instructions,
thinking, answer, working steps and token count. Every section is
optional; the transcript must however contain a ``--------`` separator
before any parsing is attempted, so that arbitrary prose is never
mistaken for a transcript.

Example input::

    Agent: codex | Command: how are you?
    [2025-09-04T00:48:13] OpenAI Codex v0.23.0 (research preview)
    --------
    workdir: /tmp/ws
    model: gpt-5
    --------
    Working
    • Considering structured output
    [2025-09-04T00:48:13] User instructions:
    how are you?
    [2025-09-04T00:48:17] thinking
    I will reply concisely.
    [2025-09-04T00:48:18] codex
    I'm doing well, thanks!
    [2025-09-04T00:48:19] tokens used: 5347
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from agent_transcript.config import DEFAULT_AGENT_NAMES


logger = logging.getLogger(__name__)

#: Marker that must be present for a string to count as a transcript.
TRANSCRIPT_MARKER = "--------"

_HEADER_LINE = re.compile(r"^Agent:\s*", re.IGNORECASE)
_HEADER = re.compile(r"Agent:\s*([^|]+)\|\s*Command:\s*(.*)$", re.IGNORECASE)
_PROVIDER = re.compile(r"Codex|OpenAI|Gemini|Claude", re.IGNORECASE)
_TIMESTAMP = re.compile(r"^\[\d{4}-\d{2}-\d{2}T")
_BRACKET_PREFIX = re.compile(r"^\[[^\]]+\]\s*")
_SEPARATOR = re.compile(r"^-{3,}$")
_META_PAIR = re.compile(r"^([^:]+):\s*(.*)$")
_USER_INSTRUCTIONS = re.compile(r"User instructions:", re.IGNORECASE)
_THINKING = re.compile(r"^\s*(?:\[[^\]]+\]\s*)?thinking\s*$", re.IGNORECASE)
_STATUS_OR_TOKENS = re.compile(r"^✅|^❌|tokens used:", re.IGNORECASE)
_TOKENS = re.compile(r"tokens used:\s*(\d+)", re.IGNORECASE)
_WORKING_HEADER = re.compile(r"^\s*Working\s*$", re.IGNORECASE)
_THINKING_HEADER = re.compile(r"^\s*Thinking\s*$", re.IGNORECASE)
_ANSWER_MARKER = re.compile(r"^\s*Answer\s*$")
_GUIDE_PREFIX = re.compile(r"^\s*[|│]+\s*")
_BULLET_PREFIX = re.compile(r"^\s*[•\-]\s*")
_BULLET_LIKE = re.compile(r"^\s*[•\-]|^\s*[|│]")
_FAILURE_MARKER = re.compile(r"^\s*❌", re.MULTILINE)


@dataclass(frozen=True)
class AgentHeader:
    """Parsed ``Agent: X | Command: Y`` line."""

    agent: str
    command: str


@dataclass(frozen=True)
class ParsedAgentOutput:
    """Sections recovered from a plain-text transcript.

    Attributes:
        header: Agent and command from the header line.
        provider_line: Provider/version banner without its timestamp.
        meta: Key/value pairs between the first two separators, up to
            a ``Working`` header.
        user_instructions: The prompt as echoed by the CLI.
        thinking: Reasoning text.
        answer: Final answer text.
        tokens_used: Token count from the ``tokens used:`` line.
        success: False when a ``❌`` failure marker is present.
        working: Working-step lines, consecutive duplicates collapsed.
    """

    header: AgentHeader | None = None
    provider_line: str | None = None
    meta: dict[str, str] | None = None
    user_instructions: str | None = None
    thinking: str | None = None
    answer: str | None = None
    tokens_used: int | None = None
    success: bool = True
    working: list[str] | None = None


def _is_separator(line: str) -> bool:
    return bool(_SEPARATOR.match(line.strip()))


def _first_index(lines: Sequence[str], pattern: re.Pattern[str]) -> int:
    for i, line in enumerate(lines):
        if pattern.search(line):
            return i
    return -1


def _normalize_step(line: str) -> str:
    return _BULLET_PREFIX.sub("", _GUIDE_PREFIX.sub("", line)).strip()


def _dedup_consecutive(items: Iterable[str]) -> list[str]:
    result: list[str] = []
    for item in items:
        if not result or result[-1] != item:
            result.append(item)
    return result


def _answer_header(agent_names: Iterable[str]) -> re.Pattern[str]:
    names = "|".join(re.escape(name) for name in agent_names)
    return re.compile(rf"\]\s*({names})\s*$", re.IGNORECASE)


def _collect_until(
    lines: Sequence[str], start: int, stop: re.Pattern[str]
) -> str:
    collected: list[str] = []
    for line in lines[start:]:
        if _TIMESTAMP.match(line) or stop.search(line):
            break
        collected.append(line)
    return "\n".join(collected).strip()


def extract_working_lines(text: str | Sequence[str]) -> list[str]:
    """Extract working steps from the body of a ``Working`` block.

    Blank lines are skipped. Collection stops at a timestamped line, a
    separator, or a ``Thinking`` header. Timeline guides (``|``, ``│``)
    and leading bullets (``•``, ``-``) are stripped, and consecutive
    duplicates are collapsed.

    Args:
        text: Block body as a string or as a sequence of lines.

    Returns:
        Normalized step lines.

    Example:
        >>> extract_working_lines("• build\\n• build\\n• test\\n")
        ['build', 'test']
    """
    lines = text.splitlines() if isinstance(text, str) else text
    items: list[str] = []
    for line in lines:
        if not line.strip():
            continue
        if _TIMESTAMP.match(line) or _SEPARATOR.match(line):
            break
        if _THINKING_HEADER.match(line):
            break
        step = _normalize_step(line)
        if step:
            items.append(step)
    return _dedup_consecutive(items)


def _infer_working(
    lines: Sequence[str], separators: Sequence[int], stops: Iterable[int]
) -> list[str]:
    """Scan for bullet-like lines when there is no ``Working`` header."""
    start = separators[1] + 1 if len(separators) >= 2 else 0
    found = [i for i in stops if i >= 0]
    end = min(found) if found else len(lines)
    items = [
        _normalize_step(line)
        for line in lines[start:end]
        if _BULLET_LIKE.match(line) and not _is_separator(line)
    ]
    return _dedup_consecutive(item for item in items if item)


def parse_agent_transcript(
    raw: str, agent_names: Iterable[str] = DEFAULT_AGENT_NAMES
) -> ParsedAgentOutput | None:
    """Recover structured sections from a complete plain-text transcript.

    Args:
        raw: The complete transcript text.
        agent_names: Names whose ``[timestamp] <name>`` line introduces
            the answer block.

    Returns:
        The recovered sections, or ``None`` when *raw* lacks the
        ``--------`` marker or none of header, metadata, answer,
        thinking and token count could be found.
    """
    if not raw or TRANSCRIPT_MARKER not in raw:
        return None

    lines = re.split(r"\r?\n", raw)
    answer_header = _answer_header(agent_names)

    header = None
    header_index = _first_index(lines, _HEADER_LINE)
    if header_index >= 0:
        m = _HEADER.search(lines[header_index])
        if m:
            header = AgentHeader(
                agent=m.group(1).strip(), command=m.group(2).strip()
            )

    provider_line = None
    for line in lines:
        if _PROVIDER.search(line) and _TIMESTAMP.search(line):
            provider_line = _BRACKET_PREFIX.sub("", line).strip()
            break

    separators = [i for i, line in enumerate(lines) if _is_separator(line)]
    meta = None
    if len(separators) >= 2:
        pairs: dict[str, str] = {}
        for line in lines[separators[0] + 1 : separators[1]]:
            # Stream parser output without a model has no metadata block
            if _WORKING_HEADER.match(line):
                break
            if _BULLET_LIKE.match(line):
                continue
            m = _META_PAIR.match(line)
            if m:
                pairs[m.group(1).strip()] = m.group(2).strip()
        meta = pairs or None

    user_index = _first_index(lines, _USER_INSTRUCTIONS)
    user_instructions = None
    if user_index >= 0:
        user_instructions = _collect_until(lines, user_index + 1, _SEPARATOR)

    thinking_index = _first_index(lines, _THINKING)
    thinking = None
    if thinking_index >= 0:
        thinking = _collect_until(lines, thinking_index + 1, _STATUS_OR_TOKENS)

    answer_index = _first_index(lines, answer_header)
    if answer_index < 0:
        # Transcripts rendered by the stream parsers mark the answer
        answer_index = _first_index(lines, _ANSWER_MARKER)
    answer = None
    if answer_index >= 0:
        answer = _collect_until(lines, answer_index + 1, _STATUS_OR_TOKENS)

    working: list[str] | None = None
    working_index = _first_index(lines, _WORKING_HEADER)
    if working_index >= 0:
        working = extract_working_lines(lines[working_index + 1 :]) or None
    if not working:
        working = (
            _infer_working(
                lines,
                separators,
                (user_index, thinking_index, answer_index),
            )
            or None
        )

    tokens_used = None
    for line in lines:
        if "tokens used:" in line.lower():
            m = _TOKENS.search(line)
            if m:
                tokens_used = int(m.group(1))
            break

    # A working list alone is not enough to call this a transcript
    if not (header or meta or answer or thinking or tokens_used):
        logger.debug("No transcript structure found")
        return None

    return ParsedAgentOutput(
        header=header,
        provider_line=provider_line,
        meta=meta,
        user_instructions=user_instructions,
        thinking=thinking,
        answer=answer,
        tokens_used=tokens_used,
        success=_FAILURE_MARKER.search(raw) is None,
        working=working,
    )
