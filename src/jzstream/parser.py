"""
Incremental JSON parser session.

Chunks of bytes or text are tokenized as they arrive and drive a state
machine. The state machine turns tokens into construction events (map start,
map key, map end, array start, array end, scalar) which a stack of typed
frames assembles into a single root value. Nothing is re-parsed when more
input arrives.
"""

import logging
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from collections.abc import Iterator
from typing import Any
from typing import NoReturn
from typing import TypeVar

from ._profile import ProfileContext
from ._utf8 import Utf8ChunkDecoder
from .config import ParseConfig
from .errors import ConfigurationLockedError
from .errors import EncodingError
from .errors import JSONDecodeError
from .errors import JSONSyntaxError
from .errors import JzstreamError
from .errors import SessionFailedError
from .errors import SessionStateError
from .errors import TrailingDataError
from .errors import UnexpectedEndOfInputError
from .lexer import JsonLexer
from .lexer import JsonToken
from .lexer import Position
from .lexer import TokenType
from .lexer import error_at

logger = logging.getLogger(__name__)

# Type aliases for domain concepts - recursive definition
JsonValue = (
    str | int | float | bool | None | dict[str, "JsonValue"] | list["JsonValue"]
)


class ParseState(Enum):
    """State machine states of a parser session."""

    EXPECT_VALUE = "expect_value"
    EXPECT_MAP_KEY_OR_END = "expect_map_key_or_end"
    EXPECT_MAP_KEY = "expect_map_key"
    EXPECT_COLON = "expect_colon"
    EXPECT_MAP_VALUE = "expect_map_value"
    EXPECT_COMMA_OR_MAP_END = "expect_comma_or_map_end"
    EXPECT_ARRAY_VALUE_OR_END = "expect_array_value_or_end"
    EXPECT_ARRAY_VALUE = "expect_array_value"
    EXPECT_COMMA_OR_ARRAY_END = "expect_comma_or_array_end"
    COMPLETE = "complete"
    FAILED = "failed"


_VALUE_STATES = frozenset(
    {
        ParseState.EXPECT_VALUE,
        ParseState.EXPECT_MAP_VALUE,
        ParseState.EXPECT_ARRAY_VALUE_OR_END,
        ParseState.EXPECT_ARRAY_VALUE,
    }
)

_SCALAR_TOKENS = frozenset(
    {
        TokenType.STRING,
        TokenType.INTEGER,
        TokenType.DOUBLE,
        TokenType.TRUE,
        TokenType.FALSE,
        TokenType.NULL,
    }
)

_EXPECTED = {
    ParseState.EXPECT_VALUE: "a value",
    ParseState.EXPECT_MAP_KEY_OR_END: "property name or '}'",
    ParseState.EXPECT_MAP_KEY: "property name enclosed in double quotes",
    ParseState.EXPECT_COLON: "':' delimiter",
    ParseState.EXPECT_MAP_VALUE: "a value",
    ParseState.EXPECT_COMMA_OR_MAP_END: "',' or '}'",
    ParseState.EXPECT_ARRAY_VALUE_OR_END: "a value or ']'",
    ParseState.EXPECT_ARRAY_VALUE: "a value",
    ParseState.EXPECT_COMMA_OR_ARRAY_END: "',' or ']'",
}


@dataclass
class ArrayFrame:
    """An array under construction."""

    elements: list[Any] = field(default_factory=list)


@dataclass
class MapFrame:
    """A map under construction, with the key awaiting its value."""

    entries: dict[str, Any] = field(default_factory=dict)
    pending_key: str = ""


Frame = ArrayFrame | MapFrame
_F = TypeVar("_F", ArrayFrame, MapFrame)


def _frame_as(frame: Frame, kind: type[_F]) -> _F:
    if not isinstance(frame, kind):
        raise SessionStateError(
            f"expected an open {kind.__name__}, found {type(frame).__name__}"
        )
    return frame


class ValueBuilder:
    """
    Assembles construction events into native values.

    The frame stack holds one entry per open container; completed values are
    attached to the frame on top, or become a root value when the stack is
    empty.
    """

    def __init__(self) -> None:
        self.stack: list[Frame] = []
        self.roots: list[JsonValue] = []

    @property
    def depth(self) -> int:
        return len(self.stack)

    def map_start(self) -> None:
        self.stack.append(MapFrame())

    def map_key(self, key: str) -> None:
        frame = _frame_as(self.stack[-1], MapFrame)
        if key in frame.entries:
            logger.debug("Duplicate key %r, later value wins", key)
        frame.pending_key = key

    def map_end(self) -> bool:
        frame = _frame_as(self.stack.pop(), MapFrame)
        return self.attach(frame.entries)

    def array_start(self) -> None:
        self.stack.append(ArrayFrame())

    def array_end(self) -> bool:
        frame = _frame_as(self.stack.pop(), ArrayFrame)
        return self.attach(frame.elements)

    def attach(self, value: JsonValue) -> bool:
        """Attaches a completed value; returns True if it became a root."""
        if not self.stack:
            self.roots.append(value)
            return True
        frame = self.stack[-1]
        if isinstance(frame, ArrayFrame):
            frame.elements.append(value)
        else:
            frame.entries[frame.pending_key] = value
            frame.pending_key = ""
        return False


class Parser:
    """
    A single incremental parse job.

    Feed any number of chunks with ``parse_data`` (bytes, preferred) or
    ``parse_string`` (text), then call ``parse_complete`` to validate the
    input and obtain the root value. Any error is terminal: the session
    moves to ``FAILED`` and rejects every further call.
    """

    def __init__(self, config: ParseConfig | None = None, **kwargs: Any):
        if config is None:
            config = ParseConfig(**kwargs)
        elif kwargs:
            raise TypeError("pass either config or keyword options, not both")
        self._config = config
        self._decoder = Utf8ChunkDecoder(config.check_utf8)
        self._lexer = JsonLexer()
        self._builder = ValueBuilder()
        self._state = ParseState.EXPECT_VALUE
        self._started = False
        self._finalized = False
        self._error: JzstreamError | None = None
        logger.debug("Parser session created with %s", config)

    @property
    def config(self) -> ParseConfig:
        return self._config

    @config.setter
    def config(self, config: ParseConfig) -> None:
        if self._started:
            raise ConfigurationLockedError(
                "configuration cannot change after input was submitted"
            )
        if not isinstance(config, ParseConfig):
            raise TypeError("config must be a ParseConfig")
        self._config = config
        self._decoder = Utf8ChunkDecoder(config.check_utf8)

    @property
    def state(self) -> ParseState:
        return self._state

    @property
    def depth(self) -> int:
        """Number of containers currently open."""
        return self._builder.depth

    @property
    def position(self) -> Position:
        """Position of the next unread input character."""
        return self._lexer.position

    @property
    def root(self) -> JsonValue:
        """
        The parsed top-level value.

        Available only after ``parse_complete`` succeeded. With
        ``allow_multiple_values`` this is the last completed value.
        """
        self._check_usable()
        if not self._finalized:
            raise SessionStateError("parse_complete() has not been called")
        return self._builder.roots[-1]

    @property
    def values(self) -> list[JsonValue]:
        """Every completed top-level value, in input order."""
        self._check_usable()
        if not self._finalized:
            raise SessionStateError("parse_complete() has not been called")
        return list(self._builder.roots)

    def parse_data(self, data: bytes | bytearray | memoryview) -> None:
        """
        Feeds a chunk of UTF-8 bytes.

        Multi-byte characters may be split across chunks; the incomplete
        tail is carried over to the next call.
        """
        if not isinstance(data, bytes | bytearray | memoryview):
            raise TypeError(
                f"data must be bytes-like, not {type(data).__name__}"
            )
        self._check_open()
        self._started = True
        try:
            text = self._decoder.decode(data)
        except EncodingError as e:
            self._consume(e.decoded)
            self._fail(self._relocate(e))
        else:
            self._consume(text)

    def parse_string(self, text: str) -> None:
        """
        Feeds a chunk of already decoded text.

        The caller must not split a character across calls.
        """
        if not isinstance(text, str):
            raise TypeError(f"text must be str, not {type(text).__name__}")
        self._check_open()
        self._started = True
        self._consume(text)

    def parse_complete(self) -> JsonValue:
        """
        Signals end of input and returns the root value.

        Raises ``UnexpectedEndOfInputError`` if the input stopped inside a
        value or no value was supplied at all.
        """
        self._check_open()
        self._started = True
        try:
            tail = self._decoder.finish()
        except EncodingError as e:
            self._fail(self._relocate(e))
        else:
            self._consume(tail)

        try:
            self._run_tokens(self._lexer.finish())
        except JzstreamError as e:
            self._fail(e)

        if self._state is not ParseState.COMPLETE:
            if self._builder.roots or self._builder.depth:
                msg = "Unexpected end of input, expecting " + _EXPECTED.get(
                    self._state, "a value"
                )
            else:
                msg = "Expecting value"
            self._fail(
                error_at(UnexpectedEndOfInputError, msg, self.position)
            )

        self._finalized = True
        logger.debug(
            "Parse complete: %d value(s), %d chars",
            len(self._builder.roots),
            self.position.offset,
        )
        return self._builder.roots[-1]

    def _check_usable(self) -> None:
        if self._error is not None:
            raise SessionFailedError(self._error) from self._error

    def _check_open(self) -> None:
        self._check_usable()
        if self._finalized:
            raise SessionStateError("parser session is already complete")

    def _fail(self, error: JzstreamError) -> NoReturn:
        self._state = ParseState.FAILED
        self._error = error
        logger.debug("Parser session failed: %s", error)
        raise error

    def _relocate(self, error: EncodingError) -> EncodingError:
        """Re-anchors a decoder error to the lexer's position."""
        position = self.position
        relocated = EncodingError(
            error.msg,
            position.offset,
            byte_pos=error.byte_pos,
            lineno=position.line,
            colno=position.column,
        )
        relocated.__cause__ = error
        return relocated

    def _consume(self, text: str) -> None:
        if not text:
            return
        if self.position.offset == 0 and text.startswith("\ufeff"):
            self._fail(
                EncodingError(
                    "JSON input should not contain BOM (Byte Order Mark)", 0
                )
            )
        with ProfileContext("parse_chunk", len(text)) as profile:
            try:
                profile.items += self._run_tokens(self._lexer.feed(text))
            except JzstreamError as e:
                self._fail(e)

    def _run_tokens(self, tokens: Iterator[JsonToken]) -> int:
        """Hands each scanned token to the state machine; returns the count."""
        count = 0
        while True:
            try:
                token = next(tokens, None)
            except JSONDecodeError as e:
                error = self._lexical_error(e)
                if error is e:
                    raise
                raise error from e
            if token is None:
                return count
            self._handle(token)
            count += 1

    def _lexical_error(self, error: JSONDecodeError) -> JSONDecodeError:
        """
        Reports a tokenizer error the way the state machine would.

        Text inside a disallowed comment is a comment error, and anything
        after a complete single value is extra data, whatever it contains.
        """
        lexer = self._lexer
        state = self._state
        if lexer.in_comment:
            if self._config.allow_comments:
                return error
            return error_at(
                JSONSyntaxError,
                "Comments are not allowed",
                lexer.token_start,
                expected=_EXPECTED.get(state, ""),
            )
        if (
            state is ParseState.COMPLETE
            and not self._config.allow_multiple_values
        ):
            if lexer.in_token:
                start = lexer.token_start
            else:
                start = Position(
                    error.pos, error.byte_pos, error.lineno, error.colno
                )
            return error_at(TrailingDataError, "Extra data", start)
        return error

    def _unexpected(self, token: JsonToken) -> JSONDecodeError:
        expected = _EXPECTED.get(self._state, "a value")
        if token.type in _SCALAR_TOKENS:
            found = token.type.value
        else:
            found = repr(token.value)
        return error_at(
            JSONSyntaxError,
            f"Expecting {expected}, found {found}",
            token.start,
            expected=expected,
        )

    def _handle(self, token: JsonToken) -> None:
        """Advances the state machine by one token."""
        state = self._state
        kind = token.type
        builder = self._builder

        if kind is TokenType.COMMENT:
            if not self._config.allow_comments:
                raise error_at(
                    JSONSyntaxError,
                    "Comments are not allowed",
                    token.start,
                    expected=_EXPECTED.get(state, ""),
                )
            return

        if state is ParseState.COMPLETE:
            if not self._config.allow_multiple_values:
                raise error_at(TrailingDataError, "Extra data", token.start)
            state = self._state = ParseState.EXPECT_VALUE

        if state in _VALUE_STATES:
            if kind in _SCALAR_TOKENS:
                self._after_value(builder.attach(token.value))
            elif kind is TokenType.MAP_OPEN:
                self._check_depth(token)
                builder.map_start()
                self._state = ParseState.EXPECT_MAP_KEY_OR_END
            elif kind is TokenType.ARRAY_OPEN:
                self._check_depth(token)
                builder.array_start()
                self._state = ParseState.EXPECT_ARRAY_VALUE_OR_END
            elif (
                kind is TokenType.ARRAY_CLOSE
                and state is ParseState.EXPECT_ARRAY_VALUE_OR_END
            ):
                self._after_value(builder.array_end())
            elif (
                kind is TokenType.ARRAY_CLOSE
                and state is ParseState.EXPECT_ARRAY_VALUE
                and self._config.allow_trailing_commas
            ):
                self._after_value(builder.array_end())
            else:
                raise self._unexpected(token)

        elif state in (
            ParseState.EXPECT_MAP_KEY_OR_END,
            ParseState.EXPECT_MAP_KEY,
        ):
            if kind is TokenType.STRING:
                builder.map_key(token.value)
                self._state = ParseState.EXPECT_COLON
            elif kind is TokenType.MAP_CLOSE and (
                state is ParseState.EXPECT_MAP_KEY_OR_END
                or self._config.allow_trailing_commas
            ):
                self._after_value(builder.map_end())
            else:
                raise self._unexpected(token)

        elif state is ParseState.EXPECT_COLON:
            if kind is not TokenType.COLON:
                raise self._unexpected(token)
            self._state = ParseState.EXPECT_MAP_VALUE

        elif state is ParseState.EXPECT_COMMA_OR_MAP_END:
            if kind is TokenType.COMMA:
                self._state = ParseState.EXPECT_MAP_KEY
            elif kind is TokenType.MAP_CLOSE:
                self._after_value(builder.map_end())
            else:
                raise self._unexpected(token)

        elif state is ParseState.EXPECT_COMMA_OR_ARRAY_END:
            if kind is TokenType.COMMA:
                self._state = ParseState.EXPECT_ARRAY_VALUE
            elif kind is TokenType.ARRAY_CLOSE:
                self._after_value(builder.array_end())
            else:
                raise self._unexpected(token)

        else:
            raise self._unexpected(token)

    def _after_value(self, became_root: bool) -> None:
        """Picks the next state once a value was attached."""
        if became_root:
            self._state = ParseState.COMPLETE
        elif isinstance(self._builder.stack[-1], ArrayFrame):
            self._state = ParseState.EXPECT_COMMA_OR_ARRAY_END
        else:
            self._state = ParseState.EXPECT_COMMA_OR_MAP_END

    def _check_depth(self, token: JsonToken) -> None:
        max_depth = self._config.max_depth
        if max_depth is not None and self._builder.depth >= max_depth:
            raise error_at(
                JSONSyntaxError,
                f"Maximum nesting depth of {max_depth} exceeded",
                token.start,
            )
