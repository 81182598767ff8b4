"""Mapping between identity keys and per-identity object names."""

from __future__ import annotations

import re
from typing import Final

from namebridge.domain.model import normalize_key

OBJECT_SUFFIX: Final = ".json"
_WHITESPACE: Final = re.compile(r"\s+")
_INVALID_CHARS: Final = re.compile(r'[<>:"/\\|?*]')


def object_name_for_key(key: str) -> str:
    """``"JOHN SMITH"`` -> ``"JOHN_SMITH.json"``; characters stores reject become ``_``."""

    stem = _WHITESPACE.sub("_", normalize_key(key))
    return _INVALID_CHARS.sub("_", stem) + OBJECT_SUFFIX


def key_for_object_name(name: str) -> str | None:
    """Recover the folder-side key of an object name; ``None`` for foreign files."""

    if not name.endswith(OBJECT_SUFFIX):
        return None
    stem = name[: -len(OBJECT_SUFFIX)]
    if not stem.strip("_ "):
        return None
    return normalize_key(stem.replace("_", " "))


def folder_key(key: str) -> str:
    """The key as it reads back from the folder (lossy for rejected characters)."""

    recovered = key_for_object_name(object_name_for_key(key))
    if recovered is None:
        raise ValueError(f"Key {key!r} has no usable object name")
    return recovered
