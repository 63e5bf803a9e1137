"""
Incremental JSON tokenizer.

Text arrives in arbitrary slices. Tokens that straddle a slice boundary are
kept as scanner state (the open string with its resolved pieces, the digits
of a number, the half-read ``\\uXXXX`` escape, ...) and completed by the next
slice, so no input is ever scanned twice.
"""

import math
import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any
from typing import Final

from .errors import JSONDecodeError
from .errors import JSONSyntaxError
from .errors import UnexpectedEndOfInputError

INT64_MIN: Final = -(2**63)
INT64_MAX: Final = 2**63 - 1

_WHITESPACE = re.compile(r"[ \t\n\r]*")
_STRING_RUN = re.compile(r'[^"\\\x00-\x1f]*')
_NUMBER_RUN = re.compile(r"[0-9eE.+\-]*")
_LETTER_RUN = re.compile(r"[A-Za-z]*")
_NUMBER = re.compile(r"-?(?:0|[1-9][0-9]*)(\.[0-9]+)?([eE][-+]?[0-9]+)?")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# Longest int64 literal: "-9223372036854775808"
_MAX_INTEGER_CHARS = 20

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


class TokenType(Enum):
    """Lexical token kinds."""

    MAP_OPEN = "{"
    MAP_CLOSE = "}"
    ARRAY_OPEN = "["
    ARRAY_CLOSE = "]"
    COLON = ":"
    COMMA = ","
    STRING = "string"
    INTEGER = "integer"
    DOUBLE = "double"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"
    COMMENT = "comment"


_STRUCTURAL = {
    "{": TokenType.MAP_OPEN,
    "}": TokenType.MAP_CLOSE,
    "[": TokenType.ARRAY_OPEN,
    "]": TokenType.ARRAY_CLOSE,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
}

_LITERALS = {
    "true": (TokenType.TRUE, True),
    "false": (TokenType.FALSE, False),
    "null": (TokenType.NULL, None),
}


class _Scan(Enum):
    IDLE = "idle"
    STRING = "string"
    STRING_ESCAPE = "string_escape"
    STRING_UNICODE = "string_unicode"
    NUMBER = "number"
    LITERAL = "literal"
    COMMENT_OPEN = "comment_open"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    BLOCK_COMMENT_STAR = "block_comment_star"


_COMMENT_SCANS = frozenset(
    {_Scan.LINE_COMMENT, _Scan.BLOCK_COMMENT, _Scan.BLOCK_COMMENT_STAR}
)


@dataclass(frozen=True)
class Position:
    """
    Location in the input stream.

    ``offset`` counts characters, ``byte_offset`` counts UTF-8 bytes, and
    ``line``/``column`` are 1-based.
    """

    offset: int = 0
    byte_offset: int = 0
    line: int = 1
    column: int = 1


@dataclass(frozen=True)
class JsonToken:
    """A complete token with its decoded value and start position."""

    type: TokenType
    value: Any
    start: Position


def utf8_width(text: str) -> int:
    """Number of bytes ``text`` occupies when encoded as UTF-8."""
    if text.isascii():
        return len(text)
    return len(text.encode("utf-8", "surrogatepass"))


def error_at(
    cls: type[JSONDecodeError], msg: str, position: Position, **kwargs: Any
) -> JSONDecodeError:
    """Builds a decode error located at ``position``."""
    return cls(
        msg,
        position.offset,
        byte_pos=position.byte_offset,
        lineno=position.line,
        colno=position.column,
        **kwargs,
    )


class JsonLexer:
    """
    Tokenizes JSON text delivered in slices.

    ``feed`` yields every token completed by the new slice; ``finish`` flushes
    a trailing number or literal once the caller knows no text follows.
    Comments are always recognised and emitted as ``COMMENT`` tokens; whether
    they are legal is the parser's decision.
    """

    def __init__(self) -> None:
        self._scan = _Scan.IDLE
        self._offset = 0
        self._byte_offset = 0
        self._line = 1
        self._column = 1
        self._token_start = Position()
        self._escape_start = Position()
        self._pieces: list[str] = []
        self._hex = ""
        self._high_surrogate: int | None = None

    @property
    def position(self) -> Position:
        """Position of the next unread character."""
        return Position(
            self._offset, self._byte_offset, self._line, self._column
        )

    @property
    def in_token(self) -> bool:
        """True while a token is partially read."""
        return self._scan is not _Scan.IDLE

    @property
    def in_comment(self) -> bool:
        """True while inside an opened line or block comment."""
        return self._scan in _COMMENT_SCANS

    @property
    def token_start(self) -> Position:
        """Start of the token currently being read."""
        return self._token_start

    def _advance(self, text: str) -> None:
        self._offset += len(text)
        self._byte_offset += utf8_width(text)
        newlines = text.count("\n")
        if newlines:
            self._line += newlines
            self._column = len(text) - text.rfind("\n")
        else:
            self._column += len(text)

    def _advance_ascii(self, count: int) -> None:
        self._offset += count
        self._byte_offset += count
        self._column += count

    def _syntax_error(
        self, msg: str, position: Position | None = None
    ) -> JSONDecodeError:
        return error_at(JSONSyntaxError, msg, position or self.position)

    def feed(self, text: str) -> Iterator[JsonToken]:
        """Scans ``text`` and yields each token it completes."""
        i = 0
        n = len(text)
        while i < n:
            scan = self._scan

            if scan is _Scan.IDLE:
                end = _WHITESPACE.match(text, i).end()
                if end > i:
                    self._advance(text[i:end])
                    i = end
                    continue
                char = text[i]
                if char in _STRUCTURAL:
                    start = self.position
                    self._advance_ascii(1)
                    i += 1
                    yield JsonToken(_STRUCTURAL[char], char, start)
                elif char == '"':
                    self._token_start = self.position
                    self._pieces = []
                    self._scan = _Scan.STRING
                    self._advance_ascii(1)
                    i += 1
                elif char == "-" or "0" <= char <= "9":
                    self._token_start = self.position
                    self._pieces = []
                    self._scan = _Scan.NUMBER
                elif char in "tfn":
                    self._token_start = self.position
                    self._pieces = []
                    self._scan = _Scan.LITERAL
                elif char == "/":
                    self._token_start = self.position
                    self._pieces = ["/"]
                    self._scan = _Scan.COMMENT_OPEN
                    self._advance_ascii(1)
                    i += 1
                else:
                    raise self._syntax_error(
                        f"Unexpected character {char!r}"
                    )

            elif scan is _Scan.STRING:
                end = _STRING_RUN.match(text, i).end()
                if end > i:
                    run = text[i:end]
                    self._flush_surrogate()
                    self._pieces.append(run)
                    self._advance(run)
                    i = end
                    if i >= n:
                        break
                char = text[i]
                if char == '"':
                    self._flush_surrogate()
                    start = self._token_start
                    value = "".join(self._pieces)
                    self._pieces = []
                    self._scan = _Scan.IDLE
                    self._advance_ascii(1)
                    i += 1
                    yield JsonToken(TokenType.STRING, value, start)
                elif char == "\\":
                    self._escape_start = self.position
                    self._scan = _Scan.STRING_ESCAPE
                    self._advance_ascii(1)
                    i += 1
                else:
                    raise self._syntax_error(
                        "Invalid control character in string"
                    )

            elif scan is _Scan.STRING_ESCAPE:
                char = text[i]
                if char == "u":
                    self._hex = ""
                    self._scan = _Scan.STRING_UNICODE
                elif char in _ESCAPES:
                    self._flush_surrogate()
                    self._pieces.append(_ESCAPES[char])
                    self._scan = _Scan.STRING
                else:
                    raise self._syntax_error(
                        f"Invalid escape sequence: \\{char}",
                        self._escape_start,
                    )
                self._advance(char)
                i += 1

            elif scan is _Scan.STRING_UNICODE:
                take = min(4 - len(self._hex), n - i)
                digits = text[i : i + take]
                if not _HEX_DIGITS.issuperset(digits):
                    raise self._syntax_error(
                        "Invalid \\uXXXX escape", self._escape_start
                    )
                self._hex += digits
                self._advance_ascii(take)
                i += take
                if len(self._hex) == 4:
                    self._add_code_unit(int(self._hex, 16))
                    self._scan = _Scan.STRING

            elif scan is _Scan.NUMBER:
                end = _NUMBER_RUN.match(text, i).end()
                self._pieces.append(text[i:end])
                self._advance_ascii(end - i)
                i = end
                if i < n:
                    yield self._finish_number()

            elif scan is _Scan.LITERAL:
                end = _LETTER_RUN.match(text, i).end()
                self._pieces.append(text[i:end])
                self._advance_ascii(end - i)
                i = end
                word = "".join(self._pieces)
                if not any(literal.startswith(word) for literal in _LITERALS):
                    raise self._syntax_error(
                        f"Invalid literal {word!r}", self._token_start
                    )
                if i < n:
                    yield self._finish_literal()

            elif scan is _Scan.COMMENT_OPEN:
                char = text[i]
                if char == "/":
                    self._scan = _Scan.LINE_COMMENT
                elif char == "*":
                    self._scan = _Scan.BLOCK_COMMENT
                else:
                    raise self._syntax_error(
                        "Invalid comment", self._token_start
                    )
                self._pieces.append(char)
                self._advance_ascii(1)
                i += 1

            elif scan is _Scan.LINE_COMMENT:
                end = text.find("\n", i)
                if end < 0:
                    end = n
                run = text[i:end]
                self._pieces.append(run)
                self._advance(run)
                i = end
                if i < n:
                    yield self._finish_comment()

            elif scan is _Scan.BLOCK_COMMENT:
                end = text.find("*", i)
                if end < 0:
                    run = text[i:]
                else:
                    run = text[i : end + 1]
                    self._scan = _Scan.BLOCK_COMMENT_STAR
                self._pieces.append(run)
                self._advance(run)
                i += len(run)

            else:
                char = text[i]
                self._pieces.append(char)
                self._advance(char)
                i += 1
                if char == "/":
                    yield self._finish_comment()
                elif char != "*":
                    self._scan = _Scan.BLOCK_COMMENT

    def finish(self) -> Iterator[JsonToken]:
        """Completes the token in progress at end of input."""
        scan = self._scan
        if scan is _Scan.NUMBER:
            yield self._finish_number()
        elif scan is _Scan.LITERAL:
            yield self._finish_literal()
        elif scan is _Scan.LINE_COMMENT:
            yield self._finish_comment()
        elif scan is _Scan.COMMENT_OPEN:
            raise self._syntax_error("Invalid comment", self._token_start)
        elif scan in (_Scan.BLOCK_COMMENT, _Scan.BLOCK_COMMENT_STAR):
            raise error_at(
                UnexpectedEndOfInputError,
                "Unterminated comment starting at",
                self._token_start,
            )
        elif scan is not _Scan.IDLE:
            raise error_at(
                UnexpectedEndOfInputError,
                "Unterminated string starting at",
                self._token_start,
            )

    def _add_code_unit(self, code_unit: int) -> None:
        """Appends a ``\\uXXXX`` code unit, pairing UTF-16 surrogates."""
        high = self._high_surrogate
        if high is not None:
            self._high_surrogate = None
            if 0xDC00 <= code_unit <= 0xDFFF:
                combined = 0x10000 + ((high - 0xD800) << 10)
                self._pieces.append(chr(combined + (code_unit - 0xDC00)))
                return
            self._pieces.append(chr(high))
        if 0xD800 <= code_unit <= 0xDBFF:
            self._high_surrogate = code_unit
        else:
            self._pieces.append(chr(code_unit))

    def _flush_surrogate(self) -> None:
        # An unpaired high surrogate is kept as-is
        if self._high_surrogate is not None:
            self._pieces.append(chr(self._high_surrogate))
            self._high_surrogate = None

    def _finish_number(self) -> JsonToken:
        text = "".join(self._pieces)
        self._pieces = []
        self._scan = _Scan.IDLE
        start = self._token_start

        match = _NUMBER.fullmatch(text)
        if match is None:
            raise self._syntax_error(f"Invalid number {text!r}", start)

        fraction, exponent = match.groups()
        if fraction is None and exponent is None:
            if len(text) <= _MAX_INTEGER_CHARS:
                number = int(text)
                if INT64_MIN <= number <= INT64_MAX:
                    return JsonToken(TokenType.INTEGER, number, start)

        double = float(text)
        if math.isinf(double):
            raise self._syntax_error(
                f"Numeric overflow in {text[:32]!r}", start
            )
        return JsonToken(TokenType.DOUBLE, double, start)

    def _finish_literal(self) -> JsonToken:
        word = "".join(self._pieces)
        self._pieces = []
        self._scan = _Scan.IDLE
        if word not in _LITERALS:
            raise self._syntax_error(
                f"Invalid literal {word!r}", self._token_start
            )
        token_type, value = _LITERALS[word]
        return JsonToken(token_type, value, self._token_start)

    def _finish_comment(self) -> JsonToken:
        text = "".join(self._pieces)
        self._pieces = []
        self._scan = _Scan.IDLE
        return JsonToken(TokenType.COMMENT, text, self._token_start)
