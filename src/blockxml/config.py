"""Converter configuration.

The mark registry is an explicit value handed to the serializer and parser
rather than module state, so callers (and tests) can run with their own
registry side by side with the default one.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping, Optional

from blockxml.model import DOC_TYPE, MARK_TYPES
from blockxml.utils.errors import ConfigurationError
from blockxml.utils.logging import LoggerFactory

logger = LoggerFactory.get_logger("config")

MARK_TYPES_ENV = "BLOCKXML_MARK_TYPES"
EXTRA_MARK_TYPES_ENV = "BLOCKXML_EXTRA_MARK_TYPES"
INDENT_ENV = "BLOCKXML_INDENT"
COERCE_SCALARS_ENV = "BLOCKXML_COERCE_SCALARS"

MAX_INDENT = 8
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"", "0", "false", "no", "off"}


@dataclass(frozen=True)
class ConverterOptions:
    """Settings shared by the serializer and the parser."""

    mark_types: frozenset[str] = field(default_factory=lambda: MARK_TYPES)
    indent: str = "  "
    doc_tag: str = DOC_TYPE
    # Parse ``true``/``false``/numeric attribute values into JSON scalars.
    coerce_scalars: bool = False

    def is_mark(self, tag: str) -> bool:
        return tag in self.mark_types

    def with_mark_types(self, *names: str) -> "ConverterOptions":
        """Return a copy whose registry also contains ``names``."""
        return replace(self, mark_types=self.mark_types | frozenset(names))


DEFAULT_OPTIONS = ConverterOptions()


def _split_names(raw: str) -> frozenset[str]:
    return frozenset(name.strip() for name in raw.split(",") if name.strip())


def _parse_indent(raw: str) -> str:
    try:
        width = int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(
            f"{INDENT_ENV} must be an integer, got {raw!r}",
            config_key=INDENT_ENV,
        ) from exc
    if not 0 <= width <= MAX_INDENT:
        raise ConfigurationError(
            f"{INDENT_ENV} must be between 0 and {MAX_INDENT}, got {width}",
            config_key=INDENT_ENV,
        )
    return " " * width


def _parse_flag(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigurationError(
        f"{name} must be a boolean flag, got {raw!r}",
        config_key=name,
    )


def resolve_options(
    env: Optional[Mapping[str, str]] = None,
    *,
    extra_mark_types: Iterable[str] = (),
) -> ConverterOptions:
    """Resolve converter options from the environment.

    Args:
        env: Mapping to read instead of ``os.environ``.
        extra_mark_types: Mark names added on top of whatever the
            environment selects (used by the CLI's ``--mark-type``).

    Raises:
        ConfigurationError: A variable is set to an unusable value.
    """
    env = os.environ if env is None else env
    options = DEFAULT_OPTIONS

    raw_marks = env.get(MARK_TYPES_ENV)
    if raw_marks is not None:
        names = _split_names(raw_marks)
        if not names:
            raise ConfigurationError(
                f"{MARK_TYPES_ENV} is set but names no mark types",
                config_key=MARK_TYPES_ENV,
            )
        options = replace(options, mark_types=names)
        logger.info(
            "Using mark registry from environment",
            extra_context={"variable": MARK_TYPES_ENV, "mark_types": sorted(names)},
        )

    raw_extra = env.get(EXTRA_MARK_TYPES_ENV)
    if raw_extra:
        options = options.with_mark_types(*_split_names(raw_extra))
        logger.info(
            "Extending mark registry from environment",
            extra_context={"variable": EXTRA_MARK_TYPES_ENV},
        )

    extra = [name for name in extra_mark_types if name]
    if extra:
        options = options.with_mark_types(*extra)

    raw_indent = env.get(INDENT_ENV)
    if raw_indent is not None:
        options = replace(options, indent=_parse_indent(raw_indent))

    raw_coerce = env.get(COERCE_SCALARS_ENV)
    if raw_coerce is not None:
        options = replace(options, coerce_scalars=_parse_flag(COERCE_SCALARS_ENV, raw_coerce))

    return options
