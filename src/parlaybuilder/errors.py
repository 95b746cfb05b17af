"""Error types for parlay generation flows."""

from __future__ import annotations


class ParlayBuilderError(RuntimeError):
    """Base error for parlaybuilder operations."""


class UpstreamUnavailable(ParlayBuilderError):
    """Raised when an odds or search provider cannot be reached."""


class GenerationError(ParlayBuilderError):
    """Raised when the text generator fails outright (not a leg-count mismatch)."""


class InvalidOddsFormat(ValueError):
    """Raised when a value cannot be interpreted as American or decimal odds."""
