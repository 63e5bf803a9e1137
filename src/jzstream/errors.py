"""
Typed error taxonomy for parser and generator sessions.

Every failure raised by a session is one of the classes below. Errors are
terminal for the session that raised them: later calls on the same session
raise ``SessionFailedError`` chained to the original error.
"""


class JzstreamError(Exception):
    """Base class for every error raised by jzstream."""


class JSONDecodeError(JzstreamError, ValueError):
    """
    Handles JSON parsing failures with precise position information.

    Carries the character offset, the UTF-8 byte offset, and the 1-based
    line and column of the offending input so callers can point at the
    malformed text even when it arrived across many chunks.
    """

    def __init__(
        self,
        msg: str,
        pos: int = 0,
        *,
        byte_pos: int | None = None,
        lineno: int = 1,
        colno: int | None = None,
    ) -> None:
        if not isinstance(msg, str):
            raise TypeError("msg must be a string")
        if not isinstance(pos, int) or pos < 0:
            raise ValueError("pos must be a non-negative integer")

        self.msg = msg
        self.pos = pos
        self.byte_pos = pos if byte_pos is None else byte_pos
        self.lineno = lineno
        self.colno = pos + 1 if colno is None else colno

        super().__init__(
            f"{msg} at line {self.lineno}, column {self.colno} "
            f"(char {self.pos}, byte {self.byte_pos})"
        )


class EncodingError(JSONDecodeError):
    """
    Malformed or truncated UTF-8 input.

    ``decoded`` holds the text that decoded cleanly before the bad byte, so a
    caller tracking positions can advance over it.
    """

    decoded: str = ""


class JSONSyntaxError(JSONDecodeError):
    """
    Unexpected token or malformed literal.

    ``expected`` describes what the parser would have accepted at that point,
    e.g. ``"',' or '}'"``; it is empty for lexical errors.
    """

    def __init__(
        self,
        msg: str,
        pos: int = 0,
        *,
        expected: str = "",
        byte_pos: int | None = None,
        lineno: int = 1,
        colno: int | None = None,
    ) -> None:
        self.expected = expected
        super().__init__(
            msg, pos, byte_pos=byte_pos, lineno=lineno, colno=colno
        )


class UnexpectedEndOfInputError(JSONDecodeError):
    """Parsing was finalized before a complete value was read."""


class TrailingDataError(JSONDecodeError):
    """Extra content followed a complete top-level value."""


class JSONEncodeError(JzstreamError):
    """Base class for generator failures."""


class InvalidKeyTypeError(JSONEncodeError, TypeError):
    """A map key was not a string."""


class UnsupportedTypeError(JSONEncodeError, TypeError):
    """A value outside the JSON variant set reached the generator."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(
            f"Object of type {type_name} is not JSON serializable"
        )


class UnrepresentableNumberError(JSONEncodeError, ValueError):
    """NaN, an infinity, or an integer outside the 64-bit signed range."""


class UnbalancedStructureError(JSONEncodeError, ValueError):
    """Open and close calls on a generator did not pair up."""


class GenerationCompleteError(JSONEncodeError, ValueError):
    """A value was generated after the top-level value was already closed."""


class CircularReferenceError(JSONEncodeError, ValueError):
    """A container was found inside itself."""


class SessionStateError(JzstreamError, RuntimeError):
    """The operation is not valid in the session's current state."""


class SessionFailedError(SessionStateError):
    """
    The session already failed and accepts no further operations.

    ``original`` is the error that put the session into the failed state.
    """

    def __init__(self, original: JzstreamError) -> None:
        self.original = original
        super().__init__(f"session already failed: {original}")


class ConfigurationLockedError(SessionStateError):
    """Configuration was changed after the session started."""
