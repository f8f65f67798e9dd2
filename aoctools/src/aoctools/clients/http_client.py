"""
HTTP client for the puzzle platform with exponential backoff.

The platform is known to buckle under load right after a release, so
every request is retried for as long as it takes: transport failures
(connection errors, timeouts) and 5xx responses are logged and retried,
while any other non-2xx response ends the call with a
:class:`~aoctools.errors.RequestError` carrying the response body.

Backoff is jitter-free.  Before each attempt the client waits until the
current backoff has elapsed since the previous attempt started, then
multiplies the backoff by ``backoff_rate`` (capped at ``backoff_max``)
before the attempt's result is known.  The per-attempt timeout is the
larger of ``timeout_floor`` and the current backoff.  The first attempt
never waits.

The retry loop is driven by :class:`tenacity.AsyncRetrying`.  All retry
state lives in a :class:`BackoffState` created per call, so concurrent
requests on one client never influence each other.  Callers that need a
bound on execution can pass an :class:`asyncio.Event` as ``cancel``; it is
checked whenever the loop is about to wait or attempt.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional
from urllib.parse import quote

import aiohttp
from tenacity import AsyncRetrying, retry_if_exception_type, stop_never

from ..clock import validate_day_and_year
from ..config import Settings
from ..errors import RequestCancelled, RequestError, ValidationError


logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Characters left unescaped by JavaScript's encodeURIComponent.
_FORM_SAFE = "-_.!~*'()"


def form_url_encoded(data: Mapping[str, str]) -> str:
    """Encode a flat mapping as ``key=value`` pairs joined by ``&``.

    Values are percent-encoded; keys are emitted verbatim.
    """
    return "&".join(f"{key}={quote(str(value), safe=_FORM_SAFE)}" for key, value in data.items())


class RequestPhase(str, Enum):
    """Lifecycle of one logical request."""

    WAITING = "waiting"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    TERMINAL_FAILURE = "terminal_failure"
    CANCELLED = "cancelled"


@dataclass
class BackoffState:
    """Retry bookkeeping owned by a single :meth:`RetryingHttpClient.request` call."""

    rate: float
    maximum: float
    timeout_floor: float
    current_backoff: float
    last_attempt: Optional[float] = None
    attempts: int = 0
    phase: RequestPhase = RequestPhase.WAITING
    listener: Optional[Callable[[RequestPhase], None]] = None

    @classmethod
    def from_settings(
        cls, settings: Settings, listener: Optional[Callable[[RequestPhase], None]] = None
    ) -> "BackoffState":
        return cls(
            rate=settings.backoff_rate,
            maximum=settings.backoff_max,
            timeout_floor=settings.timeout_floor,
            current_backoff=settings.backoff_initial,
            listener=listener,
        )

    def move_to(self, phase: RequestPhase) -> None:
        """Enter ``phase`` and notify the listener, if any."""
        logger.debug("Request phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase
        if self.listener is not None:
            self.listener(phase)

    def remaining_wait(self, now: float) -> float:
        """Seconds still to wait before the next attempt may start."""
        if self.last_attempt is None:
            return 0.0
        return max(0.0, self.current_backoff - (now - self.last_attempt))

    def begin_attempt(self, now: float) -> float:
        """Record an attempt starting at ``now`` and return its timeout."""
        self.move_to(RequestPhase.ATTEMPTING)
        self.last_attempt = now
        self.attempts += 1
        self.current_backoff = min(self.current_backoff * self.rate, self.maximum)
        return max(self.timeout_floor, self.current_backoff)


class RetryableRequestFailure(Exception):
    """Transport failure or 5xx response; the request will be retried."""


class RetryingHttpClient:
    """Asynchronous client for the puzzle platform with unbounded retries."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        session_factory: Callable[[], Any] = aiohttp.ClientSession,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Construct the client.

        Args:
            settings: Base URL and backoff policy; defaults to :class:`Settings`.
            session_factory: Returns an ``aiohttp.ClientSession``-compatible
                async context manager.  A fresh session is opened per attempt.
            sleep: Coroutine used to wait between attempts.
            clock: Monotonic clock in seconds used to measure backoff.
        """
        self.settings = settings or Settings()
        self._session_factory = session_factory
        self._sleep = sleep
        self._clock = clock

    def _url(self, path: str) -> str:
        return f"{self.settings.base_url}{path}"

    @staticmethod
    def _headers(token: str, has_body: bool) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if has_body:
            headers["Content-Type"] = FORM_CONTENT_TYPE
        if token:
            headers["Cookie"] = f"session={token}"
        return headers

    @staticmethod
    def _check_cancelled(state: BackoffState, cancel: Optional[asyncio.Event]) -> None:
        if cancel is not None and cancel.is_set():
            state.move_to(RequestPhase.CANCELLED)
            raise RequestCancelled(f"request cancelled after {state.attempts} attempt(s)")

    async def _suspend(
        self, state: BackoffState, cancel: Optional[asyncio.Event], seconds: float
    ) -> None:
        state.move_to(RequestPhase.WAITING)
        self._check_cancelled(state, cancel)
        if seconds > 0:
            logger.debug("Waiting %.3fs before attempt %d", seconds, state.attempts + 1)
            await self._sleep(seconds)
        self._check_cancelled(state, cancel)

    async def _attempt(
        self, method: str, url: str, headers: Dict[str, str], body: Optional[str], timeout: float
    ) -> str:
        try:
            async with self._session_factory() as session:
                async with session.request(
                    method,
                    url,
                    headers=headers,
                    data=body,
                    timeout=aiohttp.ClientTimeout(total=timeout),
                    allow_redirects=False,
                ) as resp:
                    status = resp.status
                    text = (await resp.read()).decode("utf-8", errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Request failed and will retry: %r", exc)
            raise RetryableRequestFailure(str(exc)) from exc
        if status >= 500:
            logger.warning("Request failed with code %s. Retrying...", status)
            raise RetryableRequestFailure(f"HTTP {status}")
        if status >= 300:
            raise RequestError(text, status)
        return text

    async def request(
        self,
        path: str,
        token: str = "",
        data: Optional[Mapping[str, str]] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
        on_phase: Optional[Callable[[RequestPhase], None]] = None,
    ) -> str:
        """Send a GET (or a form POST when ``data`` is given) and return the body.

        Retries forever on transport errors and 5xx responses.

        Raises:
            RequestError: the platform answered with a non-5xx status >= 300.
            RequestCancelled: ``cancel`` was set before the request succeeded.

        ``on_phase`` is called with every :class:`RequestPhase` the call enters.
        """
        state = BackoffState.from_settings(self.settings, on_phase)
        method = "GET" if data is None else "POST"
        url = self._url(path)
        headers = self._headers(token, data is not None)
        body = form_url_encoded(data) if data is not None else None

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RetryableRequestFailure),
            wait=lambda _retry_state: state.remaining_wait(self._clock()),
            stop=stop_never,
            sleep=functools.partial(self._suspend, state, cancel),
            reraise=True,
        )
        text = ""
        try:
            async for attempt in retrying:
                with attempt:
                    self._check_cancelled(state, cancel)
                    timeout = state.begin_attempt(self._clock())
                    logger.debug("%s %s (attempt %d, timeout %.1fs)", method, path, state.attempts, timeout)
                    text = await self._attempt(method, url, headers, body, timeout)
        except RequestError:
            state.move_to(RequestPhase.TERMINAL_FAILURE)
            raise
        state.move_to(RequestPhase.SUCCEEDED)
        return text

    async def is_token_valid(self, token: str) -> bool:
        """Request the platform front page once with ``token`` as the session cookie.

        No retries are made.  Any status below 300 counts as valid;
        transport errors propagate to the caller.
        """
        async with self._session_factory() as session:
            async with session.request(
                "GET",
                self.settings.base_url,
                headers=self._headers(token, False),
                timeout=aiohttp.ClientTimeout(total=self.settings.timeout_floor),
            ) as resp:
                return resp.status < 300

    # Convenience methods for common endpoints
    async def fetch_puzzle(self, year: int, day: int, token: str = "") -> str:
        validate_day_and_year(day, year)
        return await self.request(f"/{year}/day/{day}", token)

    async def fetch_input(self, year: int, day: int, token: str) -> str:
        validate_day_and_year(day, year)
        return await self.request(f"/{year}/day/{day}/input", token)

    async def submit_answer(self, year: int, day: int, level: int, answer: str, token: str) -> str:
        """Post an answer for part ``level`` (1 or 2) and return the response page."""
        validate_day_and_year(day, year)
        if level not in (1, 2):
            raise ValidationError("level must be 1 or 2")
        return await self.request(
            f"/{year}/day/{day}/answer", token, {"level": str(level), "answer": str(answer)}
        )


__all__ = [
    "BackoffState",
    "RequestPhase",
    "RetryableRequestFailure",
    "RetryingHttpClient",
    "form_url_encoded",
]
