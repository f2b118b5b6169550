"""
Shared retry policy for every external call (embedding, LLM, vector store).

- Exponential backoff with jitter (tenacity).
- Bounded by attempt count AND a hard ceiling on total elapsed time; a retry
  whose backoff would cross the ceiling is not attempted.
- Optional per-call timeout enforced with a worker future.
- Only transient failures are retried: 429/5xx, timeouts, connection errors,
  rate-limit wording. Everything else fails fast.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Any, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    stop_before_delay,
    wait_exponential_jitter,
)

from contract_lens.domain.errors import DomainError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_HTTP_CODES: frozenset[int] = frozenset({408, 425, 429, 500, 502, 503, 504})
PERMANENT_HTTP_CODES: frozenset[int] = frozenset({400, 401, 403, 404, 422})

_TRANSIENT_NAME_PATTERNS = (
    "timeout",
    "connection",
    "temporary",
    "unavailable",
    "ratelimit",
    "resourceexhausted",
    "deadline",
)
_TRANSIENT_MESSAGE_PATTERNS = (
    "rate limit",
    "too many requests",
    "temporarily unavailable",
    "service unavailable",
    "connection reset",
    "connection refused",
    "timed out",
    "deadline exceeded",
)


class CallTimeout(TimeoutError):
    """A single attempt exceeded the per-call timeout."""


def get_http_status_code(exception: BaseException) -> int | None:
    """Status code from openai/httpx/chromadb style exceptions, if any."""
    for attr in ("status_code", "code", "http_status"):
        code = getattr(exception, attr, None)
        if isinstance(code, int) and code >= 100:
            return code
    response = getattr(exception, "response", None)
    code = getattr(response, "status_code", None)
    if isinstance(code, int):
        return code
    return None


def _is_transient_single(exception: BaseException) -> bool | None:
    status_code = get_http_status_code(exception)
    if status_code is not None:
        if status_code in PERMANENT_HTTP_CODES:
            return False
        if status_code in TRANSIENT_HTTP_CODES:
            return True
    if isinstance(exception, (TimeoutError, ConnectionError)):
        return True
    # domain errors are judged by message and cause only
    name = type(exception).__name__.lower()
    if not isinstance(exception, DomainError) and any(p in name for p in _TRANSIENT_NAME_PATTERNS):
        return True
    message = str(exception).lower()
    if any(p in message for p in _TRANSIENT_MESSAGE_PATTERNS):
        return True
    return None


def is_transient_error(exception: BaseException) -> bool:
    """Classify an exception, following `raise ... from` chains.

    Adapters wrap vendor errors in domain errors, so the original cause is
    usually one or two links down.
    """
    seen: set[int] = set()
    current: BaseException | None = exception
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        verdict = _is_transient_single(current)
        if verdict is not None:
            return verdict
        current = current.__cause__
    return False


def _log_retry(retry_state: RetryCallState) -> None:
    fn_name = getattr(retry_state.fn, "__qualname__", None) or getattr(retry_state.fn, "__name__", "unknown")
    attempt = retry_state.attempt_number
    wait_time = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retry attempt %d for %s",
        attempt,
        fn_name,
        extra={
            "function": fn_name,
            "attempt": attempt,
            "wait_seconds": round(wait_time, 2),
            "error": str(exc) if exc else None,
            "error_type": type(exc).__name__ if exc else None,
        },
    )


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0
    jitter: float = 0.5
    total_timeout: float = 60.0
    call_timeout: float | None = None
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False, repr=False)

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_attempts) | stop_before_delay(self.total_timeout),
            wait=wait_exponential_jitter(initial=self.base_delay, max=self.max_delay, jitter=self.jitter),
            retry=retry_if_exception(is_transient_error),
            before_sleep=_log_retry,
            sleep=self.sleep,
            reraise=True,
        )

    def _with_timeout(self, fn: Callable[..., T]) -> Callable[..., T]:
        if self.call_timeout is None:
            return fn
        timeout = self.call_timeout

        def bounded(*args: Any, **kwargs: Any) -> T:
            pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bounded-call")
            try:
                future = pool.submit(fn, *args, **kwargs)
                try:
                    return future.result(timeout=timeout)
                except FutureTimeout as ex:
                    raise CallTimeout(f"call exceeded {timeout:.1f}s") from ex
            finally:
                # a hung attempt keeps its thread; we stop waiting for it
                pool.shutdown(wait=False, cancel_futures=True)

        bounded.__qualname__ = getattr(fn, "__qualname__", "call")
        return bounded

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run fn under the policy; the last exception propagates on exhaustion."""
        return self._retrying()(self._with_timeout(fn), *args, **kwargs)
