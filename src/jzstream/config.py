"""
Immutable session configuration.

Both value objects are validated once at construction and never change for
the lifetime of the session that holds them.
"""

from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import fields
from typing import Any

# Adapter turning a host object into something the generator understands
DefaultHook = Callable[[Any], Any] | None


def _check_bool_fields(config: Any) -> None:
    for field in fields(config):
        if field.type in ("bool", bool):
            value = getattr(config, field.name)
            if not isinstance(value, bool):
                raise TypeError(f"{field.name} must be a boolean")


@dataclass(frozen=True)
class ParseConfig:
    """
    Configures parser behavior with immutable settings.

    allow_comments: accept ``//`` line and ``/* */`` block comments.
    check_utf8: strictly validate multi-byte sequences in byte chunks.
    allow_trailing_commas: accept ``[1,]`` and ``{"a":1,}``.
    allow_multiple_values: accept concatenated top-level values.
    max_depth: maximum container nesting, ``None`` for unlimited.
    """

    allow_comments: bool = False
    check_utf8: bool = True
    allow_trailing_commas: bool = False
    allow_multiple_values: bool = False
    max_depth: int | None = None

    def __post_init__(self) -> None:
        _check_bool_fields(self)
        if self.max_depth is not None:
            if isinstance(self.max_depth, bool) or not isinstance(
                self.max_depth, int
            ):
                raise TypeError("max_depth must be an integer or None")
            if self.max_depth < 1:
                raise ValueError("max_depth must be at least 1")


@dataclass(frozen=True)
class GenerateConfig:
    """
    Configures generator output with immutable settings.

    beautify: newline and indent between structural elements.
    indent_string: one indentation unit, used only when beautifying.
    ensure_ascii: escape every non-ASCII character as ``\\uXXXX``; by
        default non-ASCII text is written through unchanged.
    escape_solidus: write ``/`` as ``\\/``.
    default: adapter called with any value outside the JSON variant set;
        its return value is generated in place of the original.
    """

    beautify: bool = False
    indent_string: str = "  "
    ensure_ascii: bool = False
    escape_solidus: bool = False
    default: DefaultHook = None

    def __post_init__(self) -> None:
        _check_bool_fields(self)
        if not isinstance(self.indent_string, str):
            raise TypeError("indent_string must be a string")
        if not self.indent_string or self.indent_string.strip(" \t"):
            raise ValueError(
                "indent_string must be non-empty spaces and tabs only"
            )
        if self.default is not None and not callable(self.default):
            raise TypeError("default must be callable")
