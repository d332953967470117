"""Exception hierarchy of the OrderScout pipeline."""
from __future__ import annotations

from typing import Optional


class ScoutError(Exception):
    """Base class for every error raised by an identifier pipeline."""


class TransportError(ScoutError):
    """HTTP or network failure that survived all retry attempts."""

    def __init__(self, message: str, *, url: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class AuthenticationError(ScoutError):
    """Expired session cookies or a signature payload without ``signature``."""


class MissingFieldError(ScoutError):
    """A response lacks the field the next pipeline step depends on."""


__all__ = ["ScoutError", "TransportError", "AuthenticationError", "MissingFieldError"]
