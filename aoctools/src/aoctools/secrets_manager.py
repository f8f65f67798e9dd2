"""
secrets_manager
===============

Persistent storage for session tokens.  A credential store is a small
key/value interface keyed by ``(service, account)``: the service name
identifies this application and the account defaults to a single-user
sentinel.  Three backends are provided:

* :class:`KeyringCredentialStore` keeps tokens in the operating system
  keychain through the ``keyring`` library (the default).
* :class:`FileCredentialStore` keeps tokens in a JSON file, for headless
  machines without a keychain.
* :class:`EnvCredentialStore` reads tokens from ``AOC_SESSION`` (or
  ``AOC_SESSION_<ACCOUNT>``) and the matching ``*_FILE`` variables.  It is
  read-only, which suits CI jobs where secrets are injected.

Example usage::

    from aoctools.secrets_manager import get_default_credential_store

    store = get_default_credential_store()
    token = store.get("aoctools", "_default")
"""

from __future__ import annotations

import json
import logging
import os
import re
import threading
from pathlib import Path
from typing import Dict, Optional

try:
    import keyring  # type: ignore
except ImportError:
    keyring = None  # type: ignore

from .config import DEFAULT_ACCOUNT, Settings
from .errors import CredentialStoreError


logger = logging.getLogger(__name__)


class BaseCredentialStore:
    """Abstract base class for credential stores."""

    #: Read-only stores cannot persist a token entered at a prompt.
    read_only = False

    def get(self, service: str, account: str) -> Optional[str]:  # pragma: no cover - override
        """Return the stored token for ``account`` or ``None`` if absent."""
        raise NotImplementedError

    def set(self, service: str, account: str, token: str) -> None:  # pragma: no cover - override
        """Persist ``token`` for ``account``, replacing any previous value."""
        raise NotImplementedError


class KeyringCredentialStore(BaseCredentialStore):
    """Store tokens in the system keychain via ``keyring``."""

    def __init__(self) -> None:
        if keyring is None:
            raise RuntimeError(
                "keyring is required for KeyringCredentialStore; please install with `pip install keyring`"
            )

    def get(self, service: str, account: str) -> Optional[str]:
        return keyring.get_password(service, account) or None

    def set(self, service: str, account: str, token: str) -> None:
        keyring.set_password(service, account, token)


class FileCredentialStore(BaseCredentialStore):
    """
    Store tokens in a JSON document of the form ``{service: {account: token}}``.

    The whole file is rewritten on each ``set``.  A lock serialises access
    within the process; concurrent writers in separate processes are not
    coordinated.  The file is created with ``0600`` permissions.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def _read_file(self) -> Dict[str, Dict[str, str]]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_file(self, data: Dict[str, Dict[str, str]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get(self, service: str, account: str) -> Optional[str]:
        with self._lock:
            data = self._read_file()
        return data.get(service, {}).get(account) or None

    def set(self, service: str, account: str, token: str) -> None:
        with self._lock:
            data = self._read_file()
            data.setdefault(service, {})[account] = token
            self._write_file(data)
        logger.debug("Stored token for account %s in %s", account, self.path)


class EnvCredentialStore(BaseCredentialStore):
    """
    Read tokens from environment variables and optional ``*_FILE`` paths.

    The default account maps to ``AOC_SESSION``; any other account maps to
    ``AOC_SESSION_<ACCOUNT>`` with non-alphanumeric characters replaced by
    underscores.  If ``{name}_FILE`` is set, the token is read from that
    file and takes precedence over ``{name}``.
    """

    read_only = True

    def __init__(self, default_account: str = DEFAULT_ACCOUNT) -> None:
        self.default_account = default_account

    def variable_for(self, account: str) -> str:
        if account == self.default_account:
            return "AOC_SESSION"
        return "AOC_SESSION_" + re.sub(r"[^A-Za-z0-9]", "_", account).upper()

    def get(self, service: str, account: str) -> Optional[str]:
        name = self.variable_for(account)
        file_path = os.getenv(f"{name}_FILE")
        if file_path:
            try:
                value = Path(file_path).read_text(encoding="utf-8").strip()
            except OSError as exc:
                logger.warning("Failed to read token file %s: %s", file_path, exc)
                value = None
        else:
            value = os.getenv(name)
        return value.strip() if value else None

    def set(self, service: str, account: str, token: str) -> None:
        raise CredentialStoreError(
            f"EnvCredentialStore is read-only; export {self.variable_for(account)} instead"
        )


def get_default_credential_store(settings: Optional[Settings] = None) -> BaseCredentialStore:
    """
    Return the credential store selected by ``settings.credential_backend``:

    * ``keyring`` (default) – :class:`KeyringCredentialStore`.
    * ``file`` – :class:`FileCredentialStore` at ``settings.credential_file``.
    * ``env`` – :class:`EnvCredentialStore`.
    """
    settings = settings or Settings()
    if settings.credential_backend == "file":
        return FileCredentialStore(settings.credential_file)
    if settings.credential_backend == "env":
        return EnvCredentialStore(settings.default_account)
    return KeyringCredentialStore()


__all__ = [
    "BaseCredentialStore",
    "EnvCredentialStore",
    "FileCredentialStore",
    "KeyringCredentialStore",
    "get_default_credential_store",
]
