"""
JSON generator session.

Values are written into an owned accumulator either through discrete calls
that mirror the parser's event vocabulary (``map_open``, ``generate_string``,
``array_close``, ...) or in one go with ``generate_object``. Separators and
beautified whitespace are decided from a per-depth state stack, so callers
never place commas or newlines themselves.
"""

import logging
import math
import re
from collections.abc import Callable
from collections.abc import Iterator
from enum import Enum
from typing import Any
from typing import NoReturn

from ._profile import ProfileContext
from .config import GenerateConfig
from .errors import CircularReferenceError
from .errors import ConfigurationLockedError
from .errors import GenerationCompleteError
from .errors import InvalidKeyTypeError
from .errors import JzstreamError
from .errors import SessionFailedError
from .errors import SessionStateError
from .errors import UnbalancedStructureError
from .errors import UnrepresentableNumberError
from .errors import UnsupportedTypeError
from .lexer import INT64_MAX
from .lexer import INT64_MIN

logger = logging.getLogger(__name__)

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "/": "\\/",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

# Lone surrogates are always escaped so the output stays encodable
_NEEDS_ESCAPE = re.compile(r'[\x00-\x1f\\"\ud800-\udfff]')
_NEEDS_ESCAPE_SOLIDUS = re.compile(r'[\x00-\x1f\\"/\ud800-\udfff]')
_NEEDS_ESCAPE_ASCII = re.compile(r'[^\x20-\x21\x23-\x5b\x5d-\x7e]')
_NEEDS_ESCAPE_ASCII_SOLIDUS = re.compile(
    r"[^\x20-\x21\x23-\x2e\x30-\x5b\x5d-\x7e]"
)


def _escape_char(match: re.Match[str]) -> str:
    char = match.group(0)
    escaped = _ESCAPES.get(char)
    if escaped is not None:
        return escaped
    code = ord(char)
    if code < 0x10000:
        return f"\\u{code:04x}"
    code -= 0x10000
    high = 0xD800 | (code >> 10)
    low = 0xDC00 | (code & 0x3FF)
    return f"\\u{high:04x}\\u{low:04x}"


def encode_string(
    s: str, ensure_ascii: bool = False, escape_solidus: bool = False
) -> str:
    """
    Quotes and escapes a string per JSON rules.

    Quote and backslash get a backslash, ``\\b \\f \\n \\r \\t`` use their
    short forms, other control characters and lone surrogates become
    ``\\u00XX``-style escapes. Non-ASCII text is written through unless
    ``ensure_ascii`` is set, in which case characters above the BMP are
    written as surrogate pairs.
    """
    if ensure_ascii:
        if escape_solidus:
            pattern = _NEEDS_ESCAPE_ASCII_SOLIDUS
        else:
            pattern = _NEEDS_ESCAPE_ASCII
    else:
        pattern = _NEEDS_ESCAPE_SOLIDUS if escape_solidus else _NEEDS_ESCAPE
    return '"' + pattern.sub(_escape_char, s) + '"'


def format_integer(n: int) -> str:
    """Formats a 64-bit signed integer."""
    if not INT64_MIN <= n <= INT64_MAX:
        raise UnrepresentableNumberError(
            f"Integer {n} is outside the 64-bit signed range"
        )
    return str(int(n))


def format_double(x: float) -> str:
    """
    Formats a double so that parsing the text yields the same bits.

    ``repr`` gives the shortest round-trip form and never depends on the
    locale; it always contains a ``.`` or an exponent, so the value reads
    back as a double rather than an integer.
    """
    try:
        x = float(x)
    except OverflowError as e:
        raise UnrepresentableNumberError(
            "Integer is too large to convert to a double"
        ) from e
    if math.isnan(x) or math.isinf(x):
        raise UnrepresentableNumberError(
            "Out of range float values are not JSON compliant"
        )
    return float.__repr__(x)


class GenState(Enum):
    """What the generator expects next at one nesting level."""

    START = "start"
    MAP_START = "map_start"
    MAP_KEY = "map_key"
    MAP_VALUE = "map_value"
    ARRAY_START = "array_start"
    IN_ARRAY = "in_array"
    COMPLETE = "complete"


_KEY_STATES = frozenset({GenState.MAP_START, GenState.MAP_KEY})
_ARRAY_STATES = frozenset({GenState.ARRAY_START, GenState.IN_ARRAY})
_NEXT_STATE = {
    GenState.START: GenState.COMPLETE,
    GenState.MAP_START: GenState.MAP_VALUE,
    GenState.MAP_KEY: GenState.MAP_VALUE,
    GenState.MAP_VALUE: GenState.MAP_KEY,
    GenState.ARRAY_START: GenState.IN_ARRAY,
    GenState.IN_ARRAY: GenState.IN_ARRAY,
}

_DONE = object()


class Generator:
    """
    A single serialization job.

    The accumulator only grows until ``finish`` hands it out; ``buffer``
    shows the partial text at any point. A failed call leaves the
    accumulator as it was before the call, marks the session failed, and
    every later call raises ``SessionFailedError``.
    """

    def __init__(self, config: GenerateConfig | None = None, **kwargs: Any):
        if config is None:
            config = GenerateConfig(**kwargs)
        elif kwargs:
            raise TypeError("pass either config or keyword options, not both")
        self._config = config
        self._parts: list[str] = []
        self._states = [GenState.START]
        self._error: JzstreamError | None = None
        self._consumed = False
        logger.debug("Generator session created with %s", config)

    @property
    def config(self) -> GenerateConfig:
        return self._config

    @config.setter
    def config(self, config: GenerateConfig) -> None:
        if self._parts or self.depth:
            raise ConfigurationLockedError(
                "configuration cannot change after output was generated"
            )
        if not isinstance(config, GenerateConfig):
            raise TypeError("config must be a GenerateConfig")
        self._config = config

    @property
    def depth(self) -> int:
        """Number of containers currently open."""
        return len(self._states) - 1

    @property
    def buffer(self) -> str:
        """The text generated so far."""
        if len(self._parts) > 1:
            self._parts = ["".join(self._parts)]
        return self._parts[0] if self._parts else ""

    def generate_null(self) -> None:
        self._run(self._scalar, "null", False)

    def generate_bool(self, value: bool) -> None:
        self._run(self._scalar, "true" if value else "false", False)

    def generate_integer(self, number: int) -> None:
        self._run(self._integer, number)

    def generate_double(self, number: float) -> None:
        self._run(self._double, number)

    def generate_string(self, string: str) -> None:
        """Writes a string; inside a map in key position it is the key."""
        self._run(self._string, string)

    def map_open(self) -> None:
        self._run(self._open, "{", GenState.MAP_START)

    def map_close(self) -> None:
        self._run(self._close, "}", _KEY_STATES)

    def array_open(self) -> None:
        self._run(self._open, "[", GenState.ARRAY_START)

    def array_close(self) -> None:
        self._run(self._close, "]", _ARRAY_STATES)

    def generate_object(self, obj: Any) -> None:
        """
        Serializes a whole value graph.

        ``None``, ``bool``, ``int``, ``float``, ``str``, ``list``/``tuple``
        and ``dict`` map to their JSON counterparts. Anything else is passed
        once through ``config.default`` if one is set, and otherwise fails
        with ``UnsupportedTypeError``.
        """
        with ProfileContext("generate_object") as profile:
            profile.items = self._run(self._object, obj)

    def finish(self) -> str:
        """
        Returns the complete output and consumes the session.

        Fails with ``UnbalancedStructureError`` while containers are open.
        """
        self._check_open()
        if self.depth:
            self._fail(
                UnbalancedStructureError(
                    f"{self.depth} container(s) still open at finish"
                )
            )
        self._consumed = True
        text = self.buffer
        logger.debug("Generator finished: %d chars", len(text))
        return text

    def reset(self) -> None:
        """Discards all output and any failure; keeps the configuration."""
        self._parts = []
        self._states = [GenState.START]
        self._error = None
        self._consumed = False

    def _check_open(self) -> None:
        if self._error is not None:
            raise SessionFailedError(self._error) from self._error
        if self._consumed:
            raise SessionStateError(
                "generator output was already retrieved; call reset()"
            )

    def _fail(self, error: JzstreamError) -> NoReturn:
        self._error = error
        logger.debug("Generator session failed: %s", error)
        raise error

    def _run(self, operation: Callable[..., Any], *args: Any) -> Any:
        """Runs one public operation, rolling back output on failure."""
        self._check_open()
        mark = len(self._parts)
        states = list(self._states)
        try:
            return operation(*args)
        except Exception as e:
            del self._parts[mark:]
            self._states = states
            if isinstance(e, JzstreamError):
                self._fail(e)
            raise

    def _newline(self) -> None:
        self._parts.append("\n" + self._config.indent_string * self.depth)

    def _before_value(self, is_key: bool = False) -> None:
        """Writes the separator and whitespace that precede a value."""
        state = self._states[-1]
        if state is GenState.COMPLETE:
            raise GenerationCompleteError(
                "a complete top-level value was already generated"
            )
        if state in _KEY_STATES:
            if not is_key:
                raise InvalidKeyTypeError("map keys must be strings")
            if state is GenState.MAP_KEY:
                self._parts.append(",")
            if self._config.beautify:
                self._newline()
        elif state is GenState.MAP_VALUE:
            self._parts.append(": " if self._config.beautify else ":")
        elif state is GenState.IN_ARRAY:
            self._parts.append(",")
            if self._config.beautify:
                self._newline()
        elif state is GenState.ARRAY_START and self._config.beautify:
            self._newline()

    def _after_value(self) -> None:
        self._states[-1] = _NEXT_STATE[self._states[-1]]

    def _scalar(self, text: str, is_key: bool) -> None:
        self._before_value(is_key)
        self._parts.append(text)
        self._after_value()

    def _integer(self, number: int) -> None:
        if not isinstance(number, int):
            raise UnsupportedTypeError(type(number).__name__)
        self._scalar(format_integer(number), False)

    def _double(self, number: float) -> None:
        if isinstance(number, bool) or not isinstance(number, int | float):
            raise UnsupportedTypeError(type(number).__name__)
        self._scalar(format_double(number), False)

    def _string(self, string: str) -> None:
        if not isinstance(string, str):
            raise UnsupportedTypeError(type(string).__name__)
        config = self._config
        self._scalar(
            encode_string(string, config.ensure_ascii, config.escape_solidus),
            True,
        )

    def _open(self, bracket: str, state: GenState) -> None:
        self._before_value()
        self._parts.append(bracket)
        self._states.append(state)

    def _close(self, bracket: str, allowed: frozenset[GenState]) -> None:
        if self.depth == 0:
            raise UnbalancedStructureError(
                f"'{bracket}' without open container"
            )
        state = self._states[-1]
        if state not in allowed:
            if state is GenState.MAP_VALUE:
                raise UnbalancedStructureError(
                    f"'{bracket}' while a map key is waiting for its value"
                )
            raise UnbalancedStructureError(
                f"'{bracket}' does not match the open container"
            )
        self._states.pop()
        if self._config.beautify and state in (
            GenState.MAP_KEY,
            GenState.IN_ARRAY,
        ):
            self._newline()
        self._parts.append(bracket)
        self._after_value()

    def _object(self, root: Any) -> int:
        """
        Walks a value graph iteratively, without recursion limits.

        Returns the number of values written, map keys excluded.
        """
        work: list[tuple[Iterator[Any], bool, int]] = []
        active: set[int] = set()

        self._value(root, work, active)
        count = 1
        while work:
            items, is_map, marker = work[-1]
            item = next(items, _DONE)
            if item is _DONE:
                work.pop()
                active.discard(marker)
                if is_map:
                    self._close("}", _KEY_STATES)
                else:
                    self._close("]", _ARRAY_STATES)
                continue
            if is_map:
                key, item = item
                if not isinstance(key, str):
                    raise InvalidKeyTypeError(
                        f"keys must be str, not {type(key).__name__}"
                    )
                self._string(key)
            self._value(item, work, active)
            count += 1
        return count

    def _value(
        self,
        obj: Any,
        work: list[tuple[Iterator[Any], bool, int]],
        active: set[int],
    ) -> None:
        type_name = type(obj).__name__
        adapted = False
        while True:
            if obj is None:
                self._scalar("null", False)
            elif obj is True or obj is False:
                self._scalar("true" if obj else "false", False)
            elif isinstance(obj, str):
                self._string(obj)
            elif isinstance(obj, int):
                self._integer(obj)
            elif isinstance(obj, float):
                self._double(obj)
            elif isinstance(obj, dict | list | tuple):
                marker = id(obj)
                if marker in active:
                    raise CircularReferenceError("Circular reference detected")
                active.add(marker)
                if isinstance(obj, dict):
                    self._open("{", GenState.MAP_START)
                    work.append((iter(obj.items()), True, marker))
                else:
                    self._open("[", GenState.ARRAY_START)
                    work.append((iter(obj), False, marker))
            elif self._config.default is not None and not adapted:
                obj = self._config.default(obj)
                adapted = True
                continue
            else:
                raise UnsupportedTypeError(type_name)
            return
