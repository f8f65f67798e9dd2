"""
aoctools: helpers for a daily, time-gated puzzle platform.

The package bundles a retrying HTTP client for the platform, a broker
that obtains and caches the user's session token, and a clock that
knows when each day's puzzle is released (05:00 UTC, December 1-25).
The ``aoctools`` console script in :mod:`aoctools.cli` wires them
together.
"""

from .clients import RetryingHttpClient  # noqa: F401
from .clock import ChallengeClock, get_current_day, get_current_year, validate_day_and_year  # noqa: F401
from .config import Settings, load_settings  # noqa: F401
from .credentials import CredentialBroker  # noqa: F401
from .errors import (  # noqa: F401
    AocError,
    AuthenticationError,
    CredentialStoreError,
    OutOfSeasonError,
    RequestCancelled,
    RequestError,
    ValidationError,
)
from .templates import build_command, get_dir_for_day, normalize_template  # noqa: F401

__version__ = "0.1.0"
