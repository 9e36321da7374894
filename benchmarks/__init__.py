"""
Benchmark suite for jsontree decoding and encoding.

Compares jsontree against standard JSON libraries including:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)

Measures speed and memory across different document shapes.
"""
