"""
Decoding and encoding benchmarks comparing jsontree against other libraries.

Compares speed across different JSON document shapes:
- Standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)
- jsontree (value tree) and jsontree.loads (native objects)
"""

import json
from collections.abc import Callable
from typing import Any

import orjson
import pytest
import ujson  # type: ignore[import-untyped]

import jsontree
from benchmarks.data_generators import DATA_TYPES
from benchmarks.data_generators import generate_test_data


def _decode_tree(data: bytes) -> jsontree.JsonValue:
    tree = jsontree.decode(data)
    tree.free()
    return tree


PARSERS = [
    ("stdlib_json", json.loads),
    ("orjson", orjson.loads),
    ("ujson", ujson.loads),
    ("jsontree_decode", _decode_tree),
    ("jsontree_loads", jsontree.loads),
]


class TestParsingBenchmarks:
    """Benchmarks for JSON decoding across libraries."""

    @pytest.mark.benchmark(group="decode")
    @pytest.mark.parametrize("data_type", DATA_TYPES)
    @pytest.mark.parametrize("parser,parse_func", PARSERS)
    def test_decoding(
        self,
        benchmark: Any,
        data_type: str,
        parser: str,
        parse_func: Callable[[bytes], Any],
    ) -> None:
        """Benchmarks decoding of one document shape."""
        test_data = generate_test_data(data_type).encode("utf-8")
        result = benchmark(parse_func, test_data)
        assert result is not None


class TestEncodingBenchmarks:
    """Benchmarks for JSON encoding across libraries."""

    @pytest.mark.benchmark(group="encode")
    @pytest.mark.parametrize("data_type", DATA_TYPES)
    def test_jsontree_encode(self, benchmark: Any, data_type: str) -> None:
        """Benchmarks encoding an already decoded tree."""
        tree = jsontree.decode(generate_test_data(data_type))
        try:
            text = benchmark(jsontree.encode, tree)
        finally:
            tree.free()
        assert json.loads(text) == json.loads(generate_test_data(data_type))

    @pytest.mark.benchmark(group="encode")
    @pytest.mark.parametrize("data_type", DATA_TYPES)
    @pytest.mark.parametrize(
        "encoder,encode_func",
        [
            ("stdlib_json", json.dumps),
            ("orjson", orjson.dumps),
            ("ujson", ujson.dumps),
            ("jsontree_dumps", jsontree.dumps),
        ],
    )
    def test_native_encode(
        self,
        benchmark: Any,
        data_type: str,
        encoder: str,
        encode_func: Callable[[Any], Any],
    ) -> None:
        """Benchmarks encoding native Python objects."""
        obj = json.loads(generate_test_data(data_type))
        result = benchmark(encode_func, obj)
        assert result
