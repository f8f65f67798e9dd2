"""
Client utilities for talking to the puzzle platform.

This package provides the retrying HTTP client used for every platform
request, along with the form encoding helper it relies on.
"""

from .http_client import BackoffState, RequestPhase, RetryingHttpClient, form_url_encoded  # noqa: F401
