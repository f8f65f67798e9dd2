"""
Interactive prompting abstraction.

The credential broker asks the user for a session token through a
:class:`Prompter` so that tests (or a GUI) can substitute their own
implementation without touching the console.
"""

from __future__ import annotations

import asyncio
from typing import Callable


class Prompter:
    """Abstract base class for prompters."""

    async def ask_for_non_empty_string(self, message: str, retry_message: str) -> str:
        """Ask until a non-blank answer is given and return it stripped.

        Subclasses must implement this method.
        """
        raise NotImplementedError


class ConsolePrompter(Prompter):
    """Read answers from standard input.

    ``input`` runs in a worker thread to avoid blocking the event loop.
    """

    def __init__(self, read: Callable[[str], str] = input) -> None:
        self._read = read

    async def ask_for_non_empty_string(self, message: str, retry_message: str) -> str:
        answer = (await asyncio.to_thread(self._read, f"{message} ")).strip()
        while not answer:
            answer = (await asyncio.to_thread(self._read, f"{retry_message} ")).strip()
        return answer


__all__ = ["ConsolePrompter", "Prompter"]
