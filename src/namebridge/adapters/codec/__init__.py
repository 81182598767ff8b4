"""JSON view codec backed by pydantic models."""

from __future__ import annotations

from .codec import JsonViewCodec

__all__ = ["JsonViewCodec"]
