"""Custom exceptions for SubTrack."""

from __future__ import annotations


class SubtrackError(Exception):
    """Base exception for all SubTrack errors."""


class ConfigError(SubtrackError):
    """Configuration error."""


class StorageError(SubtrackError):
    """Data file read, parse or write error."""


class ValidationError(SubtrackError):
    """Subscription failed validation at the edit boundary.

    ``errors`` maps field name to a human-readable message.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        detail = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(f"Invalid subscription: {detail}" if detail else "Invalid subscription")


class NotFoundError(SubtrackError):
    """Entity not found."""


class RenewalSearchError(SubtrackError):
    """Renewal search exceeded its step limit (data or logic bug)."""
