# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Typed representations for Codex streaming events.

Two event families share the stream: the thread/turn/item events of
``codex exec --json`` and the Responses-style ``response.*`` events
(sometimes framed as SSE ``data:`` lines). ``classify`` maps a decoded
JSON object onto one frozen dataclass; unknown shapes become
``Unrecognized``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from agent_transcript.codex_stream.items import ThreadItem, parse_item


logger = logging.getLogger(__name__)

#: Message used when an error event carries none.
DEFAULT_ERROR_MESSAGE = "Codex encountered an error."

_ITEM_EVENT_PREFIX = "item."


@dataclass(frozen=True)
class Usage:
    """Token usage reported at the end of a turn."""

    input_tokens: int = 0
    cached_input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class ThreadStarted:
    thread_id: str | None


@dataclass(frozen=True)
class TurnStarted:
    pass


@dataclass(frozen=True)
class TurnCompleted:
    usage: Usage | None


@dataclass(frozen=True)
class TurnFailed:
    message: str


@dataclass(frozen=True)
class ItemEvent:
    """``item.started``, ``item.updated`` or ``item.completed``.

    Attributes:
        phase: ``started``, ``updated`` or ``completed``.
        item: The item's latest state.
    """

    phase: str
    item: ThreadItem


@dataclass(frozen=True)
class ThreadError:
    """Stream-level error notice; not rendered."""

    message: str


@dataclass(frozen=True)
class ResponseDelta:
    """Incremental response text."""

    text: str


@dataclass(frozen=True)
class ResponseCompleted:
    """Final response; ``text`` is ``None`` when it carried no text."""

    text: str | None


@dataclass(frozen=True)
class ResponseError:
    message: str


@dataclass(frozen=True)
class Unrecognized:
    """Any shape the classifier does not know. Produces no output."""

    type: str | None = None


DecodedEvent = (
    ThreadStarted
    | TurnStarted
    | TurnCompleted
    | TurnFailed
    | ItemEvent
    | ThreadError
    | ResponseDelta
    | ResponseCompleted
    | ResponseError
    | Unrecognized
)


def _int(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    return int(value)


def _usage(raw: object) -> Usage | None:
    if not isinstance(raw, dict):
        return None
    return Usage(
        input_tokens=_int(raw.get("input_tokens")),
        cached_input_tokens=_int(raw.get("cached_input_tokens")),
        output_tokens=_int(raw.get("output_tokens")),
    )


def _error_message(raw: object) -> str:
    if isinstance(raw, dict) and isinstance(raw.get("message"), str):
        return raw["message"] or DEFAULT_ERROR_MESSAGE
    return DEFAULT_ERROR_MESSAGE


def extract_delta_text(delta: Any) -> str | None:
    """Extract text from any of the historical delta payload shapes.

    Accepts a plain string, a list of parts, an object with ``text``, an
    object with a ``content`` list of text parts, or an object with a
    string ``delta``.

    Returns:
        The text, or ``None`` when the payload carries none.
    """
    if not delta:
        return None
    if isinstance(delta, str):
        return delta
    if isinstance(delta, list):
        pieces = [extract_delta_text(part) for part in delta]
        return "".join(p for p in pieces if p) or None
    if isinstance(delta, dict):
        if isinstance(delta.get("text"), str):
            return delta["text"]
        if isinstance(delta.get("content"), list):
            text = "".join(
                entry["text"]
                for entry in delta["content"]
                if isinstance(entry, dict)
                and isinstance(entry.get("text"), str)
            )
            return text or None
        if isinstance(delta.get("delta"), str):
            return delta["delta"]
    return None


def extract_response_text(response: Any) -> str | None:
    """Extract final text from a ``response.completed`` envelope."""
    if not isinstance(response, dict):
        return None
    if isinstance(response.get("text"), str):
        return response["text"]
    output = response.get("output")
    if isinstance(output, list):
        text = "".join(
            part["text"]
            for part in output
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
        return text or None
    return None


def classify(obj: dict[str, Any]) -> DecodedEvent:
    """Classify a decoded JSON object as a Codex stream event.

    Total function; never raises.

    Args:
        obj: A decoded JSON object.

    Returns:
        The typed event.
    """
    event_type = obj.get("type")
    if not isinstance(event_type, str):
        event_type = None

    if event_type == "thread.started":
        thread_id = obj.get("thread_id")
        return ThreadStarted(
            thread_id=thread_id if isinstance(thread_id, str) else None
        )
    if event_type == "turn.started":
        return TurnStarted()
    if event_type == "turn.completed":
        return TurnCompleted(usage=_usage(obj.get("usage")))
    if event_type == "turn.failed":
        return TurnFailed(message=_error_message(obj.get("error")))
    if event_type == "error":
        message = obj.get("message")
        return ThreadError(message=message if isinstance(message, str) else "")
    if event_type == "response.error":
        return ResponseError(message=_error_message(obj.get("error")))
    if event_type == "response.completed":
        text = extract_response_text(obj.get("response"))
        return ResponseCompleted(text=text)

    item = obj.get("item")
    if isinstance(item, dict) and (
        event_type is None or event_type.startswith(_ITEM_EVENT_PREFIX)
    ):
        phase = (
            event_type.removeprefix(_ITEM_EVENT_PREFIX)
            if event_type
            else "completed"
        )
        return ItemEvent(phase=phase, item=parse_item(item))

    if "delta" in obj:
        text = extract_delta_text(obj["delta"])
        if text:
            return ResponseDelta(text=text)

    if event_type is not None:
        logger.debug("Unknown Codex event type: %s", event_type)
    return Unrecognized(type=event_type)
