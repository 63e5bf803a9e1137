"""
Test data generators for JSON benchmarks.

Creates various JSON structures for performance testing:
- Different sizes (small/medium/large)
- Different complexity levels (simple/nested/mixed)
- String-heavy content with escape sequences
- Multi-byte UTF-8 content, to exercise the chunk decoder

Every generator is seeded by its data type so repeated runs compare the
same documents.
"""

import json
import random
import string
from collections.abc import Callable
from collections.abc import Iterator
from typing import Any

DATA_TYPES = (
    "small_object",
    "large_object",
    "mixed_array",
    "nested_structure",
    "string_heavy",
    "unicode_heavy",
)

# Typical network read size
DEFAULT_CHUNK_SIZE = 4096

_ESCAPE_PROBABILITY = 0.3
_NON_ASCII = "éüßçñøå€£¥αβγδ中文日本語한국어😀🚀🎉"


def generate_test_value(data_type: str) -> Any:
    """Generates the native value for the specified data type."""
    generators: dict[str, Callable[[random.Random], Any]] = {
        "small_object": _small_object,
        "large_object": _large_object,
        "mixed_array": _mixed_array,
        "nested_structure": _nested_structure,
        "string_heavy": _string_heavy,
        "unicode_heavy": _unicode_heavy,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    return generators[data_type](random.Random(data_type))


def generate_test_data(data_type: str) -> str:
    """Generates JSON text for the specified data type."""
    return json.dumps(generate_test_value(data_type), ensure_ascii=False)


def iter_chunks(
    data: bytes, size: int = DEFAULT_CHUNK_SIZE
) -> Iterator[bytes]:
    """Cuts encoded JSON into fixed-size chunks, ignoring code points."""
    for start in range(0, len(data), size):
        yield data[start : start + size]


def _small_object(rng: random.Random) -> dict[str, Any]:
    """Small JSON object (< 1KB) with basic key-value pairs."""
    return {
        "id": rng.randint(10000, 99999),
        "name": "Alice Johnson",
        "email": "alice@example.com",
        "active": True,
        "balance": 1234.56,
        "metadata": {"created": "2024-01-15T10:30:00Z", "source": "api"},
    }


def _large_object(rng: random.Random) -> dict[str, Any]:
    """Large JSON object (> 10KB) with many fields."""
    return {
        "user_id": rng.randint(1000000, 9999999),
        "profile": {
            "first_name": _random_string(rng, 10),
            "last_name": _random_string(rng, 12),
            "email": f"{_random_string(rng, 8)}@example.com",
            "address": {
                "street": f"{rng.randint(1, 9999)} Main St",
                "city": _random_string(rng, 12),
                "zip": f"{rng.randint(10000, 99999)}",
                "country": "US",
            },
            "notifications": {
                "email": rng.choice([True, False]),
                "sms": rng.choice([True, False]),
                "push": None,
            },
        },
        "transactions": [
            {
                "id": f"txn_{i:06d}",
                "amount": round(rng.uniform(1.0, 1000.0), 2),
                "currency": rng.choice(["USD", "EUR", "GBP", "JPY"]),
                "timestamp": _timestamp(rng),
                "description": f"Payment for {_random_string(rng, 20)}",
                "status": rng.choice(["completed", "pending", "failed"]),
            }
            for i in range(50)
        ],
        "activity_log": [
            {
                "timestamp": _timestamp(rng),
                "action": rng.choice(["login", "logout", "purchase", "view"]),
                "ip_address": ".".join(
                    str(rng.randint(1, 255)) for _ in range(4)
                ),
                "user_agent": f"Mozilla/5.0 ({_random_string(rng, 20)})",
            }
            for _ in range(30)
        ],
    }


def _mixed_array(rng: random.Random) -> list[Any]:
    """Large array with mixed data types."""
    array: list[Any] = []
    for i in range(200):
        choice = rng.randint(1, 6)
        if choice == 1:
            array.append(rng.randint(-(2**40), 2**40))
        elif choice == 2:
            array.append(round(rng.uniform(-1e6, 1e6), 4))
        elif choice == 3:
            array.append(_random_string(rng, rng.randint(5, 30)))
        elif choice == 4:
            array.append(rng.choice([True, False]))
        elif choice == 5:
            array.append(None)
        else:
            array.append(
                {
                    "index": i,
                    "value": _random_string(rng, 10),
                    "score": round(rng.uniform(0, 100), 2),
                }
            )
    return array


def _nested_structure(rng: random.Random) -> dict[str, Any]:
    """Deeply nested JSON structure."""

    def create(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"value": _random_string(rng, 10)}
        return {
            "level": depth,
            "data": _random_string(rng, 15),
            "items": [create(depth - 1) for _ in range(3)],
            "nested": create(depth - 1),
        }

    return create(7)


def _string_heavy(rng: random.Random) -> dict[str, Any]:
    """Strings full of characters that need escaping."""

    def escaped() -> str:
        chars = []
        for _ in range(50):
            if rng.random() < _ESCAPE_PROBABILITY:
                chars.append(rng.choice('"\\/\b\f\n\r\t\x01'))
            else:
                chars.append(rng.choice(string.ascii_letters + " "))
        return "".join(chars)

    return {
        "strings": [escaped() for _ in range(100)],
        "paths": {
            f"key_{i}": f"C:\\Users\\{_random_string(rng, 8)}\\file_{i}.txt"
            for i in range(20)
        },
    }


def _unicode_heavy(rng: random.Random) -> dict[str, Any]:
    """Multi-byte text, so fixed-size chunks split code points."""

    def text(length: int) -> str:
        return "".join(rng.choice(_NON_ASCII) for _ in range(length))

    return {
        "titles": [text(rng.randint(5, 40)) for _ in range(150)],
        "labels": {text(6): text(20) for _ in range(50)},
    }


def _timestamp(rng: random.Random) -> str:
    return (
        f"2024-{rng.randint(1, 12):02d}-{rng.randint(1, 28):02d}"
        f"T{rng.randint(0, 23):02d}:{rng.randint(0, 59):02d}:00Z"
    )


def _random_string(rng: random.Random, length: int) -> str:
    """Generates a random string of specified length."""
    return "".join(rng.choices(string.ascii_letters, k=length))
