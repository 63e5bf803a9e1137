"""
Streaming JSON codec.

An incremental parser that accepts JSON as byte or text chunks split at any
offset and assembles a single native value, and a generator that writes a
native value graph back out as compact or beautified JSON text.
"""

from typing import Any

from ._profile import HotPathStats
from ._profile import clear_hot_path_stats
from ._profile import get_hot_path_stats
from ._profile import profiling_enabled
from ._profile import set_profiling
from .config import GenerateConfig
from .config import ParseConfig
from .errors import CircularReferenceError
from .errors import ConfigurationLockedError
from .errors import EncodingError
from .errors import GenerationCompleteError
from .errors import InvalidKeyTypeError
from .errors import JSONDecodeError
from .errors import JSONEncodeError
from .errors import JSONSyntaxError
from .errors import JzstreamError
from .errors import SessionFailedError
from .errors import SessionStateError
from .errors import TrailingDataError
from .errors import UnbalancedStructureError
from .errors import UnexpectedEndOfInputError
from .errors import UnrepresentableNumberError
from .errors import UnsupportedTypeError
from .generator import Generator
from .lexer import Position
from .parser import JsonValue
from .parser import Parser
from .parser import ParseState

__version__ = "0.1.0"


def loads(s: str | bytes | bytearray, **kwargs: Any) -> JsonValue:
    """
    Parses one complete JSON document held in memory.

    Text and UTF-8 bytes are both accepted; keyword arguments become the
    session's ``ParseConfig``.
    """
    parser = Parser(ParseConfig(**kwargs))
    if isinstance(s, str):
        parser.parse_string(s)
    elif isinstance(s, bytes | bytearray):
        parser.parse_data(s)
    else:
        raise TypeError(
            f"the JSON object must be str or bytes, not {type(s).__name__}"
        )
    return parser.parse_complete()


def dumps(obj: Any, **kwargs: Any) -> str:
    """
    Serializes a value graph to JSON text.

    Keyword arguments become the session's ``GenerateConfig``.
    """
    generator = Generator(GenerateConfig(**kwargs))
    generator.generate_object(obj)
    return generator.finish()


__all__ = [
    "CircularReferenceError",
    "ConfigurationLockedError",
    "EncodingError",
    "GenerateConfig",
    "GenerationCompleteError",
    "Generator",
    "HotPathStats",
    "InvalidKeyTypeError",
    "JSONDecodeError",
    "JSONEncodeError",
    "JSONSyntaxError",
    "JsonValue",
    "JzstreamError",
    "ParseConfig",
    "ParseState",
    "Parser",
    "Position",
    "SessionFailedError",
    "SessionStateError",
    "TrailingDataError",
    "UnbalancedStructureError",
    "UnexpectedEndOfInputError",
    "UnrepresentableNumberError",
    "UnsupportedTypeError",
    "clear_hot_path_stats",
    "dumps",
    "get_hot_path_stats",
    "loads",
    "profiling_enabled",
    "set_profiling",
]
