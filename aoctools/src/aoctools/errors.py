"""Exception hierarchy shared across aoctools.

Transport failures and 5xx responses never surface from the retrying
request loop; it absorbs them.  Everything defined here is terminal for
the operation that raised it.
"""

from __future__ import annotations

from typing import Optional


class AocError(Exception):
    """Base class for all aoctools errors."""


class RequestError(AocError):
    """A non-retryable HTTP response (redirect or client error).

    The exception message is the raw response body so callers can show
    the platform's own diagnostic text.
    """

    def __init__(self, body: str, status: Optional[int] = None) -> None:
        super().__init__(body)
        self.body = body
        self.status = status


class AuthenticationError(AocError):
    """A stored session token was rejected by the platform."""


class CredentialStoreError(AocError):
    """The credential store cannot hold a token (e.g. a read-only backend)."""


class ValidationError(AocError, ValueError):
    """Invalid input detected before any network or storage access."""


class OutOfSeasonError(AocError):
    """The current date is outside December 1-25."""


class RequestCancelled(AocError):
    """A retrying request was cancelled by its caller."""


__all__ = [
    "AocError",
    "AuthenticationError",
    "CredentialStoreError",
    "OutOfSeasonError",
    "RequestCancelled",
    "RequestError",
    "ValidationError",
]
