"""
Benchmark suite for jzstream JSON parsing and generation performance.

Compares jzstream against standard JSON libraries including:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)

Measures whole-document and chunked parsing speed, generation speed, and
memory usage across different data types.
"""
