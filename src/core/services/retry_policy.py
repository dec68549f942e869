"""Retry/backoff and response classification for profile fetches.

The policy is split in two:

- `RetryPolicy.transition` is a pure function from (attempt number, attempt
  result) to the next state plus an optional backoff delay. It never touches
  the network or the clock unless given one, so it can be tested directly.
- `RetryPolicy.execute` drives a transport through those transitions with a
  `tenacity.Retrying` loop: non-terminal steps are retried, terminal ones stop it.

Only transport failures and 5xx responses are retried. 429 is terminal: more
automatic requests would only make the rate limit worse.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import tenacity

from core.domain.models import HttpResponse
from core.errors import (
    AuthError,
    FetchError,
    ParseError,
    RateLimited,
    TransientError,
    TransportFailure,
    UpstreamError,
)

logger = logging.getLogger(__name__)

API_KEY_SIGNUP_URL = "https://gravatar.com/developers/applications"


@dataclass(frozen=True)
class Attempting:
    attempt: int


@dataclass(frozen=True)
class Succeeded:
    document: dict[str, Any]


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class Failed:
    error: FetchError


FetchOutcome = Succeeded | NotFound | Failed
RetryState = Attempting | FetchOutcome
AttemptResult = HttpResponse | TransportFailure


@dataclass(frozen=True)
class Step:
    state: RetryState
    delay: float | None = None

    @property
    def terminal(self) -> bool:
        return not isinstance(self.state, Attempting)


@dataclass(frozen=True)
class FetchResult:
    outcome: FetchOutcome
    attempts: int
    delays: tuple[float, ...] = field(default_factory=tuple)


def _wait_seconds(response: HttpResponse, now: float) -> int | None:
    reset = response.header("x-ratelimit-reset")
    if reset is not None:
        try:
            reset_at = int(float(reset))
        except (ValueError, OverflowError):
            reset_at = None
        if reset_at is not None:
            return max(reset_at - int(now), 0)

    retry_after = response.header("retry-after")
    if retry_after is not None:
        try:
            return max(int(retry_after), 0)
        except ValueError:
            return None
    return None


def rate_limited_error(response: HttpResponse, *, authenticated: bool, now: float) -> RateLimited:
    wait = _wait_seconds(response, now)
    message = "Rate limit exceeded (429)."
    if wait is not None:
        message += f" Wait {wait} seconds for reset."
    if authenticated:
        suggestion = "Please contact Gravatar to increase your usage limit."
    else:
        suggestion = f"Consider getting an API key at {API_KEY_SIGNUP_URL} for higher rate limits."
    return RateLimited(message, retry_after=wait, suggestion=suggestion)


def parse_document(body: str, status_code: int) -> dict[str, Any]:
    try:
        document = json.loads(body)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ParseError(
            f"Failed to parse JSON response: {exc}",
            status_code=status_code,
        ) from exc
    if not isinstance(document, dict):
        raise ParseError(
            "Expected a JSON object in the profile response",
            status_code=status_code,
            details={"json_type": type(document).__name__},
        )
    return document


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 4
    base_delay: float = 0.5

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    def backoff(self, attempt: int) -> float:
        """Delay to wait after failed attempt number `attempt` (1-based)."""
        return self.base_delay * (2 ** (attempt - 1))

    def _retry_or_fail(self, attempt: int, reason: str, status_code: int | None) -> Step:
        if attempt >= self.max_attempts:
            return Step(
                Failed(
                    TransientError(
                        f"Profile request failed after {attempt} attempts: {reason}",
                        attempts=attempt,
                        status_code=status_code,
                    )
                )
            )
        return Step(Attempting(attempt + 1), delay=self.backoff(attempt))

    def transition(
        self,
        attempt: int,
        result: AttemptResult,
        *,
        authenticated: bool = False,
        now: float | None = None,
    ) -> Step:
        """Classify the result of attempt number `attempt`."""

        if isinstance(result, TransportFailure):
            return self._retry_or_fail(attempt, result.message, None)

        status = result.status_code
        if status >= 500:
            return self._retry_or_fail(attempt, f"HTTP {status}", status)
        if status == 404:
            return Step(NotFound())
        if status == 429:
            clock = time.time() if now is None else now
            return Step(Failed(rate_limited_error(result, authenticated=authenticated, now=clock)))
        if 200 <= status < 300:
            try:
                return Step(Succeeded(parse_document(result.body, status)))
            except ParseError as exc:
                return Step(Failed(exc))
        if status in (401, 403):
            return Step(
                Failed(
                    AuthError(
                        f"Authentication failed (HTTP {status})",
                        status_code=status,
                        suggestion="Check the api_key / api_key_id server option",
                    )
                )
            )
        return Step(
            Failed(
                UpstreamError(
                    f"HTTP error {status}: {result.body[:200]}",
                    status_code=status,
                )
            )
        )

    def execute(
        self,
        send: Callable[[], HttpResponse],
        *,
        authenticated: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> FetchResult:
        """Drive `send` through the state machine until a terminal state.

        `send` returns an `HttpResponse` or raises `TransportFailure`.
        Exceptions other than `TransportFailure` propagate unretried.
        """

        delays: list[float] = []
        last: list[AttemptResult] = []

        def before_sleep_handler(retry_state: tenacity.RetryCallState) -> None:
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            result = last[-1]
            logger.warning(
                "Attempt %d/%d failed: %s. Retrying in %.1fs...",
                retry_state.attempt_number,
                self.max_attempts,
                result.message if isinstance(result, TransportFailure) else f"HTTP {result.status_code}",
                delay,
            )
            delays.append(delay)

        retryer = tenacity.Retrying(
            stop=tenacity.stop_after_attempt(self.max_attempts),
            wait=lambda rs: self.backoff(rs.attempt_number),
            retry=tenacity.retry_if_result(lambda step: not step.terminal),
            sleep=sleep,
            before_sleep=before_sleep_handler,
            reraise=True,
        )

        step = Step(Attempting(1))
        attempt = 0
        for attempt_manager in retryer:
            with attempt_manager:
                attempt = attempt_manager.retry_state.attempt_number
                result: AttemptResult
                try:
                    result = send()
                except TransportFailure as exc:
                    result = exc
                last.append(result)
                step = self.transition(attempt, result, authenticated=authenticated, now=clock())
            if not attempt_manager.retry_state.outcome.failed:
                attempt_manager.retry_state.set_result(step)

        if isinstance(step.state, Failed) and isinstance(step.state.error, TransientError):
            logger.error("All %d attempts failed. Last error: %s", attempt, step.state.error.message)
        return FetchResult(outcome=step.state, attempts=attempt, delays=tuple(delays))
