"""Domain port definitions for adapters."""

from __future__ import annotations

from .codec import ViewCodec
from .collaborators import DisambiguationCallback, NameParser
from .object_store import ObjectStore, StoredObject
from .progress import ProgressStore

__all__ = [
    "DisambiguationCallback",
    "NameParser",
    "ObjectStore",
    "ProgressStore",
    "StoredObject",
    "ViewCodec",
]
