"""Object store adapters: REST over the resilient HTTP client, and in-memory."""

from __future__ import annotations

from .http import HttpObjectStore
from .memory import InMemoryObjectStore

__all__ = ["HttpObjectStore", "InMemoryObjectStore"]
