import time

import pytest

from contract_lens.domain.errors import EmbeddingUnavailable, ValidationError
from contract_lens.infrastructure.resilience.retry import (
    CallTimeout,
    RetryPolicy,
    get_http_status_code,
    is_transient_error,
)


class HttpError(Exception):
    def __init__(self, status_code):
        super().__init__(f"http {status_code}")
        self.status_code = status_code


class RateLimitError(Exception):
    pass


def _no_sleep(_):
    return None


class TestIsTransientError:
    @pytest.mark.parametrize("code", [408, 429, 500, 502, 503, 504])
    def test_transient_status_codes(self, code):
        assert is_transient_error(HttpError(code))

    @pytest.mark.parametrize("code", [400, 401, 403, 404, 422])
    def test_permanent_status_codes(self, code):
        assert not is_transient_error(HttpError(code))

    def test_timeouts_connections_and_rate_limits(self):
        assert is_transient_error(TimeoutError())
        assert is_transient_error(ConnectionResetError())
        assert is_transient_error(RateLimitError("slow down"))
        assert is_transient_error(RuntimeError("Too Many Requests"))

    def test_programming_errors_are_permanent(self):
        assert not is_transient_error(ValueError("bad input"))
        assert not is_transient_error(KeyError("missing"))

    def test_domain_errors_judged_by_cause(self):
        assert not is_transient_error(EmbeddingUnavailable("model not installed"))
        try:
            try:
                raise TimeoutError("read timed out")
            except TimeoutError as inner:
                raise EmbeddingUnavailable("encode failed") from inner
        except EmbeddingUnavailable as outer:
            assert is_transient_error(outer)

    def test_status_code_from_response(self):
        class Resp:
            status_code = 503

        class Wrapped(Exception):
            response = Resp()

        assert get_http_status_code(Wrapped()) == 503
        assert get_http_status_code(ValueError()) is None


class TestRetryPolicy:
    def test_retries_transient_then_succeeds(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise TimeoutError("first attempt timed out")
            return "ok"

        assert RetryPolicy(sleep=_no_sleep).call(flaky) == "ok"
        assert len(calls) == 2

    def test_exhaustion_reraises_last_error(self):
        calls = []

        def down():
            calls.append(1)
            raise ConnectionError("refused")

        with pytest.raises(ConnectionError):
            RetryPolicy(max_attempts=3, sleep=_no_sleep).call(down)
        assert len(calls) == 3

    def test_permanent_error_fails_fast(self):
        calls = []

        def invalid():
            calls.append(1)
            raise ValidationError("bad request")

        with pytest.raises(ValidationError):
            RetryPolicy(sleep=_no_sleep).call(invalid)
        assert len(calls) == 1

    def test_call_timeout_bounds_each_attempt(self):
        policy = RetryPolicy(max_attempts=1, call_timeout=0.05, sleep=_no_sleep)
        with pytest.raises(CallTimeout):
            policy.call(time.sleep, 0.5)

    def test_total_timeout_is_a_hard_ceiling(self):
        calls = []

        def down():
            calls.append(1)
            raise TimeoutError("upstream timed out")

        # real clock: the second backoff (0.4s) would cross the 0.3s budget
        policy = RetryPolicy(max_attempts=5, base_delay=0.2, max_delay=1.0, jitter=0, total_timeout=0.3)
        started = time.monotonic()
        with pytest.raises(TimeoutError):
            policy.call(down)
        elapsed = time.monotonic() - started
        assert len(calls) == 2
        assert elapsed < policy.total_timeout
