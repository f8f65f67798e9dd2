"""
Runtime configuration for aoctools.

All policy knobs (backoff parameters, request timeouts, the challenge
margin and credential storage options) live on a single immutable
:class:`Settings` model.  Values are read from environment variables by
:func:`load_settings`; anything unset falls back to the documented
default.  Validation is delegated to Pydantic so that a malformed value
(e.g. ``AOC_BACKOFF_RATE=fast``) fails loudly at start-up instead of in
the middle of a retry loop.

Recognised variables
--------------------

``AOC_BASE_URL``
    Origin every request path is appended to.
``AOC_BACKOFF_RATE`` / ``AOC_BACKOFF_INITIAL`` / ``AOC_BACKOFF_MAX``
    Multiplier, starting wait and cap (seconds) of the retry backoff.
``AOC_TIMEOUT_FLOOR``
    Minimum per-attempt timeout in seconds.
``AOC_CHALLENGE_MARGIN_HOURS``
    How long after a release the "current" challenge stays the previous one.
``AOC_SERVICE_NAME`` / ``AOC_ACCOUNT``
    Credential store service name and default account key.
``AOC_CREDENTIAL_BACKEND`` / ``AOC_CREDENTIAL_FILE``
    Credential store backend (``keyring``, ``file`` or ``env``) and the
    JSON file used by the ``file`` backend.
"""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Dict, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


DEFAULT_ACCOUNT = "_default"
SERVICE_NAME = "aoctools"
BASE_URL = "https://adventofcode.com"


class Settings(BaseModel):
    """Immutable settings shared by the clock, client and credential broker."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(BASE_URL, description="Origin of the puzzle platform")
    backoff_rate: float = Field(1.1, ge=1.0, description="Backoff multiplier per attempt")
    backoff_initial: float = Field(1.0, gt=0, description="Initial backoff in seconds")
    backoff_max: float = Field(30.0, gt=0, description="Backoff cap in seconds")
    timeout_floor: float = Field(5.0, gt=0, description="Minimum per-attempt timeout in seconds")
    challenge_margin_hours: float = Field(23.0, ge=0, description="Grace period after a release")
    service_name: str = Field(SERVICE_NAME, min_length=1)
    default_account: str = Field(DEFAULT_ACCOUNT, min_length=1)
    credential_backend: Literal["keyring", "file", "env"] = "keyring"
    credential_file: Path = Field(
        default_factory=lambda: Path.home() / ".config" / "aoctools" / "credentials.json"
    )

    @model_validator(mode="after")
    def _check_backoff_bounds(self) -> "Settings":
        if self.backoff_max < self.backoff_initial:
            raise ValueError("backoff_max must be greater than or equal to backoff_initial")
        return self

    @property
    def challenge_margin(self) -> timedelta:
        return timedelta(hours=self.challenge_margin_hours)


_ENV_FIELDS = {
    "AOC_BASE_URL": "base_url",
    "AOC_BACKOFF_RATE": "backoff_rate",
    "AOC_BACKOFF_INITIAL": "backoff_initial",
    "AOC_BACKOFF_MAX": "backoff_max",
    "AOC_TIMEOUT_FLOOR": "timeout_floor",
    "AOC_CHALLENGE_MARGIN_HOURS": "challenge_margin_hours",
    "AOC_SERVICE_NAME": "service_name",
    "AOC_ACCOUNT": "default_account",
    "AOC_CREDENTIAL_BACKEND": "credential_backend",
    "AOC_CREDENTIAL_FILE": "credential_file",
}


def load_settings() -> Settings:
    """Build :class:`Settings` from ``AOC_*`` environment variables.

    Empty variables are treated as unset.  Raises
    :class:`pydantic.ValidationError` when a value cannot be parsed.
    """
    values: Dict[str, str] = {}
    for env_name, field_name in _ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw:
            values[field_name] = raw.strip()
    if "credential_backend" in values:
        values["credential_backend"] = values["credential_backend"].lower()
    return Settings(**values)


__all__ = ["BASE_URL", "DEFAULT_ACCOUNT", "SERVICE_NAME", "Settings", "load_settings"]
