"""Errors raised while reading configuration from the environment."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A configured value (store location, backfill limit, URI) is unusable."""


class MissingConfigurationError(ConfigurationError):
    """One or more required ``NAMEBRIDGE_*`` variables are unset or blank."""
