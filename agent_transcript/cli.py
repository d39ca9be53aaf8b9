# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Command-line entry point.

Two subcommands:

* ``stream`` replays captured CLI output through a streaming parser,
  in fixed-size chunks, and writes the rendered transcript.
* ``recover`` extracts sections from a plain-text transcript and prints
  them as JSON.
"""

from __future__ import annotations

import argparse
import contextlib
import dataclasses
import json
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO

from agent_transcript.base import PARSER_REGISTRY, get_parser
from agent_transcript.config import ConfigError, ParserConfig
from agent_transcript.legacy import parse_agent_transcript
from agent_transcript.logging import configure_logging


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096


def _read_chunks(stream: TextIO, chunk_size: int) -> Iterator[str]:
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            return
        yield chunk


def _open_input(path: Path | None) -> contextlib.AbstractContextManager[TextIO]:
    if path is None:
        # Leave stdin open for the caller
        return contextlib.nullcontext(sys.stdin)
    return path.open(encoding="utf-8")


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agent-transcript",
        description="Render AI coding agent CLI output as transcripts",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Parser config file (default: config/agent_transcript.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    stream = subparsers.add_parser(
        "stream", help="Replay captured streaming output through a parser"
    )
    stream.add_argument(
        "--protocol",
        choices=sorted(PARSER_REGISTRY),
        required=True,
        help="Output protocol of the agent CLI",
    )
    stream.add_argument(
        "--agent",
        default=None,
        help="Agent name for the transcript header",
    )
    stream.add_argument(
        "--chunk-size",
        type=_positive_int,
        default=DEFAULT_CHUNK_SIZE,
        help="Characters per fed chunk (default: %(default)s)",
    )
    stream.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="Captured output (default: stdin)",
    )

    recover = subparsers.add_parser(
        "recover", help="Extract sections from a plain-text transcript"
    )
    recover.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="Transcript file (default: stdin)",
    )
    return parser


def _run_stream(args: argparse.Namespace, config: ParserConfig) -> int:
    parser = get_parser(args.protocol, config=config, agent=args.agent)
    latest: str | None = None
    with _open_input(args.file) as source:
        for chunk in _read_chunks(source, args.chunk_size):
            output = parser.feed(chunk)
            if parser.replaces_output:
                if output is not None:
                    latest = output
            elif output:
                sys.stdout.write(output)
                sys.stdout.flush()

    if latest is not None:
        sys.stdout.write(latest)
        if not latest.endswith("\n"):
            sys.stdout.write("\n")
    return 0


def _run_recover(args: argparse.Namespace, config: ParserConfig) -> int:
    with _open_input(args.file) as source:
        raw = source.read()

    parsed = parse_agent_transcript(raw, agent_names=config.agent_names)
    if parsed is None:
        logger.error("No transcript structure found in input")
        return 1

    json.dump(
        dataclasses.asdict(parsed), sys.stdout, indent=2, ensure_ascii=False
    )
    sys.stdout.write("\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0=success, 1=config error or nothing recovered,
        2=unreadable input).
    """
    args = _build_arg_parser().parse_args(argv)

    configure_logging(level=logging.DEBUG if args.debug else logging.INFO)

    try:
        config = ParserConfig.from_yaml(args.config)
    except ConfigError as e:
        logger.critical("Configuration error: %s", e)
        return 1

    if not args.debug:
        logging.getLogger().setLevel(config.log_level)

    try:
        if args.command == "stream":
            return _run_stream(args, config)
        return _run_recover(args, config)
    except OSError as e:
        logger.error("Failed to read input: %s", e)
        return 2
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
