# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Configuration for transcript parsers.

Parser settings are loaded from a YAML file (``config/agent_transcript.yaml``
by default) with support for ``!env`` tags that resolve values from
environment variables::

    max_buffer_chars: !env TRANSCRIPT_MAX_BUFFER
    strip_ansi: true
    agent_names: [codex, claude, gemini]
    log_level: INFO

A missing file yields the defaults. Invalid values raise ``ConfigError``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar, overload

import yaml


logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path("config/agent_transcript.yaml")

#: Default cap on unterminated stream output kept between feeds (8 MiB).
DEFAULT_MAX_BUFFER_CHARS = 8 * 1024 * 1024

#: Agent names that introduce an answer block in plain-text transcripts.
DEFAULT_AGENT_NAMES = ("codex", "claude", "gemini")

_BOOL_TRUTHY = frozenset({"true", "1", "yes", "on"})
_BOOL_FALSY = frozenset({"false", "0", "no", "off"})

#: Spelling used in YAML to disable the buffer cap.
_UNLIMITED = frozenset({"none", "null", "unlimited", "off"})


class ConfigError(Exception):
    """Base exception for configuration errors."""


# ---------------------------------------------------------------------------
# YAML tag placeholders
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    """Handle ``!env VAR_NAME`` in YAML."""
    value = loader.construct_scalar(node)
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def _coerce_bool(value: object) -> bool:
    """Coerce a value to bool, handling string representations."""
    if isinstance(value, bool):
        return value
    s = str(value).lower().strip()
    if s in _BOOL_TRUTHY:
        return True
    if s in _BOOL_FALSY:
        return False
    raise ConfigError(f"Cannot convert {value!r} to bool")


def _raw_resolve(value: object) -> str | None:
    """Resolve an ``_EnvVar`` to its string value, or stringify literals.

    Returns None if the value is None or the env var is unset/empty.
    """
    if isinstance(value, _EnvVar):
        return os.environ.get(value.var_name) or None
    if value is None:
        return None
    return str(value)


_MISSING = object()

_T = TypeVar("_T")


@overload
def _resolve(value: object, coerce: type[_T], *, default: _T) -> _T: ...


@overload
def _resolve(value: object, coerce: type[_T]) -> _T | None: ...


def _resolve(
    value: object,
    coerce: type[Any],
    *,
    default: object = _MISSING,
) -> Any:
    """Resolve a YAML value, handling ``!env`` tags and type coercion.

    Args:
        value: Raw value from YAML (may be ``_EnvVar``, None, or a
            literal already parsed by PyYAML).
        coerce: Target type (``str``, ``int``, ``bool``).
        default: Default when value is absent.

    Returns:
        The resolved, coerced value, or None when absent without default.

    Raises:
        ConfigError: If the value cannot be coerced.
    """
    if not isinstance(value, _EnvVar) and value is not None:
        if coerce is bool:
            return _coerce_bool(value)
        if isinstance(value, coerce) and not (
            coerce is int and isinstance(value, bool)
        ):
            return value

    resolved = _raw_resolve(value)
    if resolved is None:
        if default is not _MISSING:
            return default
        return None

    if coerce is bool:
        return _coerce_bool(resolved)
    try:
        return coerce(resolved)
    except ValueError as e:
        raise ConfigError(
            f"Cannot convert {resolved!r} to {coerce.__name__}"
        ) from e


def _resolve_buffer_limit(value: object) -> int | None:
    """Resolve ``max_buffer_chars``; ``null``/``unlimited`` disables it."""
    if value is None:
        return None
    resolved = _raw_resolve(value)
    if resolved is None:
        return DEFAULT_MAX_BUFFER_CHARS
    if resolved.strip().lower() in _UNLIMITED:
        return None
    limit = _resolve(resolved, int)
    if limit is None or limit <= 0:
        raise ConfigError(
            f"max_buffer_chars must be a positive integer, got {resolved!r}"
        )
    return limit


def _resolve_string_list(value: object, *, name: str) -> tuple[str, ...]:
    """Resolve a list of strings, handling ``!env`` for each element.

    Raises:
        ConfigError: If value is not a list.
    """
    if not isinstance(value, list):
        raise ConfigError(
            f"Config '{name}' must be a list, got {type(value).__name__}"
        )
    result: list[str] = []
    for item in value:
        resolved = _raw_resolve(item)
        if resolved:
            result.append(resolved.strip())
    return tuple(result)


def _resolve_log_level(value: object) -> int:
    resolved = _raw_resolve(value)
    if resolved is None:
        return logging.INFO
    if resolved.isdigit():
        return int(resolved)
    level = logging.getLevelNamesMapping().get(resolved.upper())
    if level is None:
        raise ConfigError(f"Unknown log level {resolved!r}")
    return level


# ---------------------------------------------------------------------------
# Parser configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParserConfig:
    """Settings shared by all transcript parsers.

    Attributes:
        max_buffer_chars: Maximum length of unterminated output retained
            between feeds. ``None`` keeps everything.
        strip_ansi: Retry decoding with terminal escape sequences removed.
        agent_names: Names that introduce the answer block when
            recovering plain-text transcripts.
        log_level: Level used by command-line entry points.
    """

    max_buffer_chars: int | None = DEFAULT_MAX_BUFFER_CHARS
    strip_ansi: bool = True
    agent_names: tuple[str, ...] = DEFAULT_AGENT_NAMES
    log_level: int = logging.INFO

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ParserConfig:
        """Build a config from a parsed YAML mapping.

        Args:
            raw: Mapping loaded from YAML.

        Returns:
            Parser configuration with defaults for absent keys.

        Raises:
            ConfigError: If a value is invalid.
        """
        unknown = set(raw) - {
            "max_buffer_chars",
            "strip_ansi",
            "agent_names",
            "log_level",
        }
        if unknown:
            logger.warning(
                "Ignoring unknown config keys: %s", ", ".join(sorted(unknown))
            )

        max_buffer_chars = (
            _resolve_buffer_limit(raw["max_buffer_chars"])
            if "max_buffer_chars" in raw
            else DEFAULT_MAX_BUFFER_CHARS
        )
        agent_names = (
            _resolve_string_list(raw["agent_names"], name="agent_names")
            if raw.get("agent_names") is not None
            else DEFAULT_AGENT_NAMES
        )
        return cls(
            max_buffer_chars=max_buffer_chars,
            strip_ansi=_resolve(raw.get("strip_ansi"), bool, default=True),
            agent_names=agent_names or DEFAULT_AGENT_NAMES,
            log_level=_resolve_log_level(raw.get("log_level")),
        )

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> ParserConfig:
        """Load parser configuration from a YAML file.

        Args:
            config_path: Path to the YAML file. Defaults to
                ``config/agent_transcript.yaml``.

        Returns:
            Parser configuration; defaults when the file does not exist.

        Raises:
            ConfigError: If the file is unreadable or invalid.
        """
        path = config_path or _DEFAULT_CONFIG_PATH
        if not path.exists():
            logger.debug("Config %s not found, using defaults", path)
            return cls()

        try:
            with path.open() as f:
                raw = yaml.load(f, Loader=_make_loader())
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config {path}: {e}") from e

        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ConfigError(f"Config {path} must be a mapping")

        logger.debug("Loaded parser config from %s", path)
        return cls.from_dict(raw)
