"""Incremental UTF-8 decoding for byte chunks split at arbitrary offsets."""

from __future__ import annotations

from typing import Final

from .errors import EncodingError


def _sequence_length(lead: int) -> int:
    """Return the encoded length announced by a UTF-8 lead byte, or 0."""
    if lead < 0x80:
        return 1
    if 0xC2 <= lead <= 0xDF:
        return 2
    if 0xE0 <= lead <= 0xEF:
        return 3
    if 0xF0 <= lead <= 0xF4:
        return 4
    return 0


def incomplete_tail(data: bytes) -> int:
    """Count trailing bytes that start a multi-byte sequence but stop short.

    Only the last three bytes are inspected. A malformed tail is not treated
    as incomplete; it is left for the decoder to reject.

    Args:
        data: Bytes whose end may cut a code point in half

    Returns:
        Number of bytes to hold back until more input arrives
    """
    length = len(data)
    for back in range(1, min(3, length) + 1):
        byte = data[length - back]
        if 0x80 <= byte <= 0xBF:
            continue
        if _sequence_length(byte) > back:
            return back
        return 0
    return 0


class Utf8ChunkDecoder:
    """Decodes UTF-8 chunk by chunk, carrying split code points forward.

    The carry buffer never holds more than three bytes: the start of a code
    point whose remaining continuation bytes are in a later chunk.

    With ``check_utf8`` disabled, malformed bytes are handed through as lone
    surrogates (``surrogateescape``) and nothing is corrected; what the
    parser does with such text is undefined.
    """

    def __init__(self, check_utf8: bool = True) -> None:
        """Initialize an empty decoder.

        Args:
            check_utf8: Reject malformed sequences instead of passing them on
        """
        self.check_utf8: Final = check_utf8
        self.errors: Final = "strict" if check_utf8 else "surrogateescape"
        self.bytes_seen = 0
        self._carry = b""

    @property
    def pending(self) -> int:
        """Number of bytes held back waiting for their continuation."""
        return len(self._carry)

    def decode(self, chunk: bytes) -> str:
        """Decode every complete code point available so far.

        Args:
            chunk: Next slice of the byte stream

        Returns:
            Text for all complete code points, possibly empty

        Raises:
            EncodingError: On a malformed sequence; ``decoded`` on the error
                holds the valid text preceding the bad byte
        """
        base = self.bytes_seen - len(self._carry)
        data = self._carry + bytes(chunk)
        self.bytes_seen += len(chunk)

        held = incomplete_tail(data)
        complete = data[: len(data) - held]
        self._carry = data[len(data) - held :]

        try:
            return complete.decode("utf-8", self.errors)
        except UnicodeDecodeError as e:
            error = EncodingError(
                f"Invalid UTF-8 byte 0x{complete[e.start]:02x}",
                base + e.start,
            )
            error.decoded = complete[: e.start].decode("utf-8")
            raise error from e

    def finish(self) -> str:
        """Flush the carry buffer at end of input.

        Returns:
            Passed-through text for a truncated tail when validation is off

        Raises:
            EncodingError: If the stream ended inside a multi-byte sequence
        """
        carry, self._carry = self._carry, b""
        if not carry:
            return ""
        if not self.check_utf8:
            return carry.decode("utf-8", self.errors)
        raise EncodingError(
            "Truncated UTF-8 sequence", self.bytes_seen - len(carry)
        )
