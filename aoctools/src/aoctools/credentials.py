"""
Session token acquisition.

:class:`CredentialBroker` hands out the session token used as the
``session`` cookie.  A token already in the credential store is returned
as-is (optionally checked against the platform first); otherwise the user
is prompted for one, which is then saved.  A stored token that fails the
check raises :class:`~aoctools.errors.AuthenticationError` instead of
prompting again, so callers decide whether to re-run ``login`` or abort.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from .config import Settings
from .errors import AuthenticationError, CredentialStoreError
from .prompter import Prompter
from .secrets_manager import BaseCredentialStore


logger = logging.getLogger(__name__)

TokenValidator = Callable[[str], Awaitable[bool]]

TOKEN_PROMPT = "Enter your session token (use browser dev tools and find the `session` cookie):"
TOKEN_INVALID_PROMPT = "Token invalid. Please try again:"
TOKEN_REQUIRED = "Token is required"


class CredentialBroker:
    def __init__(
        self,
        store: BaseCredentialStore,
        prompter: Prompter,
        validator: TokenValidator,
        settings: Optional[Settings] = None,
    ) -> None:
        """
        :param store: Where tokens are looked up and persisted.
        :param prompter: Used to ask the user for a token when none is stored.
        :param validator: Coroutine returning whether a token is accepted by
            the platform, typically ``RetryingHttpClient.is_token_valid``.
        :param settings: Supplies the service name and default account.
        """
        self.store = store
        self.prompter = prompter
        self.validator = validator
        self.settings = settings or Settings()

    async def prompt_for_token(self, verify: bool = False) -> str:
        """Ask for a token, repeating while ``verify`` is set and the token is rejected."""
        token = await self.prompter.ask_for_non_empty_string(TOKEN_PROMPT, TOKEN_REQUIRED)
        while verify and not await self.validator(token):
            logger.info("Entered token was rejected by the platform")
            token = await self.prompter.ask_for_non_empty_string(TOKEN_INVALID_PROMPT, TOKEN_REQUIRED)
        return token

    async def get_session_token(self, account: Optional[str] = None, verify: bool = False) -> str:
        """Return a session token for ``account``.

        Raises:
            AuthenticationError: ``verify`` is set and the stored token is rejected.
            CredentialStoreError: no token is stored and the store is read-only.
        """
        account = account or self.settings.default_account
        token = self.store.get(self.settings.service_name, account)
        if token:
            if verify and not await self.validator(token):
                raise AuthenticationError("token is not valid")
            return token

        if self.store.read_only:
            raise CredentialStoreError(
                f"no token stored for account {account!r} and the credential store is read-only"
            )
        logger.debug("No stored token for account %s; prompting", account)
        token = await self.prompt_for_token(verify)
        self.store.set(self.settings.service_name, account, token)
        return token

    def save_session_token(self, token: str, account: Optional[str] = None) -> None:
        """Store ``token`` for ``account``, replacing any existing value."""
        account = account or self.settings.default_account
        self.store.set(self.settings.service_name, account, token.strip())
        logger.info("Saved session token for account %s", account)


__all__ = ["CredentialBroker", "TokenValidator"]
