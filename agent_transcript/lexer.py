# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Chunk lexer for agent CLI output.

Agent CLIs write JSON objects to stdout, but the channel that delivers
that output gives no framing guarantee: one object may be split across
several chunks and one chunk may carry several objects (with or without
newlines between them). This module recovers complete top-level objects
from a growing buffer and decodes them fail-soft.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any


logger = logging.getLogger(__name__)

#: ANSI CSI sequences (colors, cursor movement) that terminals inject.
_ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")

#: SSE framing lines that never carry a payload.
_SSE_SKIP_PREFIXES = ("event:", "id:")

_SSE_DATA_PREFIX = "data:"
_SSE_DONE = "[DONE]"


def extract_objects(buffer: str) -> tuple[list[str], str]:
    """Extract complete top-level JSON objects from *buffer*.

    Scans left to right counting braces. Braces inside string literals
    are ignored, and escaped quotes do not end a string. Every time the
    depth returns to zero, the text from the opening brace up to the
    closing brace is one complete object.

    Args:
        buffer: Accumulated, not yet consumed stream text.

    Returns:
        Tuple of (objects, remainder). Everything up to and including
        the last closed object is consumed; the remainder is carried to
        the next call. When no object closes, the buffer is returned
        unchanged as the remainder.
    """
    objects: list[str] = []
    start = -1
    depth = 0
    in_string = False
    escaped = False
    consumed = 0

    for i, c in enumerate(buffer):
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
            continue

        if c == '"':
            # Quotes only matter inside an object
            if depth > 0:
                in_string = True
        elif c == "{":
            if depth == 0:
                start = i
            depth += 1
        elif c == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                objects.append(buffer[start : i + 1])
                consumed = i + 1
                start = -1

    if not objects:
        return objects, buffer
    return objects, buffer[consumed:]


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from *text*."""
    return _ANSI_PATTERN.sub("", text)


def normalize_sse_lines(text: str) -> str:
    """Strip SSE framing from every complete line of *text*.

    ``event:`` and ``id:`` lines and the ``data: [DONE]`` end marker are
    dropped; ``data:`` prefixes are removed so only the payload remains.
    The trailing line is left alone until its newline arrives, which
    makes the function safe to re-apply to a growing buffer.
    """
    if "\n" not in text:
        return text

    *complete, tail = text.split("\n")
    kept: list[str] = []
    for line in complete:
        stripped = line.strip()
        if stripped.startswith(_SSE_SKIP_PREFIXES):
            continue
        if stripped.startswith(_SSE_DATA_PREFIX):
            payload = stripped[len(_SSE_DATA_PREFIX) :].strip()
            if not payload or payload == _SSE_DONE:
                continue
            kept.append(payload)
            continue
        kept.append(line)

    kept.append(tail)
    return "\n".join(kept)


@dataclass(frozen=True)
class Decoded:
    """A candidate that decoded to a JSON object."""

    value: dict[str, Any]


@dataclass(frozen=True)
class DecodeFailure:
    """A candidate that could not be decoded.

    Attributes:
        reason: Short description of why decoding failed.
        fragment: The offending text (truncated for logging).
    """

    reason: str
    fragment: str


DecodeResult = Decoded | DecodeFailure


def _loads_object(text: str) -> DecodeResult:
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        return DecodeFailure(
            reason=f"invalid JSON: {e.msg}", fragment=text[:100]
        )
    if not isinstance(value, dict):
        return DecodeFailure(
            reason=f"expected object, got {type(value).__name__}",
            fragment=text[:100],
        )
    return Decoded(value=value)


def decode_object(candidate: str, *, clean_ansi: bool = True) -> DecodeResult:
    """Decode a candidate object extracted by :func:`extract_objects`.

    When the raw text fails to parse, a second attempt is made after
    stripping terminal escape sequences, provided the cleaned text still
    looks like a single object.

    Args:
        candidate: Text of one candidate object.
        clean_ansi: Whether to retry with ANSI sequences removed.

    Returns:
        ``Decoded`` on success, otherwise ``DecodeFailure``.
    """
    result = _loads_object(candidate)
    if isinstance(result, Decoded) or not clean_ansi:
        return result

    stripped = strip_ansi(candidate).strip()
    if not (stripped.startswith("{") and stripped.endswith("}")):
        return result
    return _loads_object(stripped)


class StreamBuffer:
    """Unconsumed tail of a chunked JSON stream.

    Text is only dropped when it is consumed as part of an extracted
    object, or when the tail grows past *max_chars* without ever closing
    an object. The latter case is logged and the tail discarded, so a
    wedged producer cannot grow memory without bound.

    Attributes:
        max_chars: Maximum retained tail length, or ``None`` for no cap.
    """

    def __init__(self, max_chars: int | None = None) -> None:
        self.max_chars = max_chars
        self._text = ""

    @property
    def pending(self) -> str:
        """Text received but not yet consumed."""
        return self._text

    def push(self, chunk: str, *, sse: bool = False) -> list[str]:
        """Append *chunk* and return every object it completes.

        Args:
            chunk: Next piece of stream output.
            sse: Whether to strip SSE framing from complete lines first.

        Returns:
            Complete object candidates in stream order.
        """
        if chunk:
            self._text += chunk
        if sse:
            self._text = normalize_sse_lines(self._text)

        objects, self._text = extract_objects(self._text)

        if self.max_chars is not None and len(self._text) > self.max_chars:
            logger.warning(
                "Discarding %d chars of unterminated stream output "
                "(limit %d)",
                len(self._text),
                self.max_chars,
            )
            self._text = ""

        return objects

    def clear(self) -> None:
        """Drop any buffered text."""
        self._text = ""
