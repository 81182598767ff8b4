"""Source record feeds."""

from __future__ import annotations

from .jsonl import FeedBatch, iter_lines, parse_line, read_jsonl, read_lines

__all__ = ["FeedBatch", "iter_lines", "parse_line", "read_jsonl", "read_lines"]
