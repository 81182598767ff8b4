"""Key normalization shared by keys, alias checks and variant lookups."""

from __future__ import annotations

import re
from typing import Final

_WHITESPACE: Final = re.compile(r"\s+")


def normalize_key(value: str | int) -> str:
    """Trim, collapse internal whitespace and upper-case ``value``."""

    return _WHITESPACE.sub(" ", str(value).strip()).upper()
