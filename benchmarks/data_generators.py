"""
Test data generators for jsontree benchmarks.

Creates JSON documents of different shapes from a seeded generator so every
run measures the same input:
- small and large objects
- mixed arrays and deep nesting
- string-heavy content with escape sequences
"""

import json
import random
import string
from typing import Any

DATA_TYPES = (
    "small_object",
    "large_object",
    "mixed_array",
    "nested_structure",
    "string_heavy",
)

_ESCAPES = ['\\"', "\\\\", "\\/", "\\b", "\\f", "\\n", "\\r", "\\t", "\\u00e9"]
_ESCAPE_PROBABILITY = 0.3


def generate_test_data(data_type: str, seed: int = 1234) -> str:
    """Generates a JSON document of the given shape."""
    generators = {
        "small_object": _generate_small_object,
        "large_object": _generate_large_object,
        "mixed_array": _generate_mixed_array,
        "nested_structure": _generate_nested_structure,
        "string_heavy": _generate_string_heavy,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    return generators[data_type](random.Random(seed))


def _random_string(rng: random.Random, length: int) -> str:
    return "".join(rng.choices(string.ascii_letters, k=length))


def _timestamp(rng: random.Random) -> str:
    return (
        f"2024-{rng.randint(1, 12):02d}-{rng.randint(1, 28):02d}"
        f"T{rng.randint(0, 23):02d}:{rng.randint(0, 59):02d}:00Z"
    )


def _generate_small_object(rng: random.Random) -> str:
    """Generates a small JSON object (< 1KB)."""
    data = {
        "id": 12345,
        "name": "Alice Johnson",
        "email": "alice@example.com",
        "active": True,
        "balance": 1234.56,
        "metadata": {"created": "2024-01-15T10:30:00Z", "source": "api"},
    }
    return json.dumps(data)


def _generate_large_object(rng: random.Random) -> str:
    """Generates a large JSON object (> 10KB) of account data."""
    data = {
        "user_id": rng.randint(1000000, 9999999),
        "profile": {
            "first_name": _random_string(rng, 10),
            "last_name": _random_string(rng, 12),
            "email": f"{_random_string(rng, 8)}@{_random_string(rng, 6)}.com",
            "language": rng.choice(["en", "es", "fr", "de", "zh"]),
            "notifications": {
                "email": rng.choice([True, False]),
                "push": rng.choice([True, False]),
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
                "ip_address": ".".join(str(rng.randint(1, 255)) for _ in range(4)),
            }
            for _ in range(30)
        ],
    }
    return json.dumps(data)


def _generate_mixed_array(rng: random.Random) -> str:
    """Generates a large array with mixed value kinds."""
    makers = [
        lambda i: rng.randint(-1000, 1000),
        lambda i: round(rng.uniform(-100.0, 100.0), 3),
        lambda i: _random_string(rng, rng.randint(5, 30)),
        lambda i: rng.choice([True, False]),
        lambda i: None,
        lambda i: {
            "index": i,
            "value": _random_string(rng, 10),
            "score": round(rng.uniform(0, 100), 2),
        },
    ]
    array: list[Any] = [rng.choice(makers)(i) for i in range(200)]
    return json.dumps(array)


def _generate_nested_structure(rng: random.Random) -> str:
    """Generates a deeply nested JSON structure."""

    def create_nested_dict(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"value": _random_string(rng, 10)}

        return {
            "level": depth,
            "data": _random_string(rng, 15),
            "items": [create_nested_dict(depth - 1) for _ in range(3)],
            "nested": create_nested_dict(depth - 1),
        }

    return json.dumps(create_nested_dict(6))


def _generate_string_heavy(rng: random.Random) -> str:
    """Generates JSON with many string escape sequences."""

    def create_escaped_string() -> str:
        chars = []
        for _ in range(50):
            if rng.random() < _ESCAPE_PROBABILITY:
                chars.append(rng.choice(_ESCAPES))
            else:
                chars.append(rng.choice(string.ascii_letters + string.digits + " "))
        return "".join(chars)

    strings = ",".join(f'"{create_escaped_string()}"' for _ in range(100))
    mixed = ",".join(
        f'"key_{i}":{{"description":"{create_escaped_string()}",'
        f'"path":"C:\\\\Users\\\\{_random_string(rng, 8)}\\\\file_{i}.txt"}}'
        for i in range(20)
    )
    return f'{{"strings":[{strings}],"mixed_content":{{{mixed}}}}}'
